"""
Device controller: the seam between sessions and the (absent) device farm.

Only the simulated implementation exists. It never talks to hardware:
``install`` sleeps for a configured delay, ``capture`` invents a file name
and ``poll`` returns fixed placeholder metrics.

Usage:
    from devicelab.services.device_controller import init_device_controller
    init_device_controller(app)           # registers app.extensions["device_controller"]

    controller = get_device_controller()  # inside a request
"""

import logging
import time
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone

from flask import Flask, current_app

logger = logging.getLogger(__name__)

SCREENSHOT_PUBLIC_PREFIX = "/screenshots"


@dataclass(frozen=True)
class CaptureResult:
    filename: str
    path: str
    thumbnail: str


class DeviceController(ABC):
    """Operations a real device backend would have to provide."""

    @abstractmethod
    def install(self, device, app_path: str) -> None:
        """Install the artifact at ``app_path`` on ``device``."""

    @abstractmethod
    def capture(self, session) -> CaptureResult:
        """Capture the current screen of the session's device."""

    @abstractmethod
    def poll(self, session) -> dict:
        """Return a performance snapshot for the session's device."""


class SimulatedDeviceController(DeviceController):
    """Stand-in controller: fixed delay for installs, placeholder data otherwise."""

    def __init__(self, install_delay: float = 2.0) -> None:
        self.install_delay = max(float(install_delay), 0.0)

    def install(self, device, app_path: str) -> None:
        logger.info(
            "Simulating install of %s on %s (%.1fs)",
            app_path, getattr(device, "name", device), self.install_delay,
        )
        if self.install_delay:
            time.sleep(self.install_delay)

    def capture(self, session) -> CaptureResult:
        filename = f"screenshot-{uuid.uuid4()}.png"
        path = f"{SCREENSHOT_PUBLIC_PREFIX}/{filename}"
        # No thumbnail generation; the thumbnail points at the image itself
        return CaptureResult(filename=filename, path=path, thumbnail=path)

    def poll(self, session) -> dict:
        return {
            "session_id": session.id,
            "cpu": 18.0,
            "memory": 112.0,
            "battery": 100.0,
            "network": 0.0,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "simulated": True,
        }


def init_device_controller(app: Flask, controller: DeviceController | None = None) -> None:
    """Register the device controller on the app."""
    if controller is None:
        controller = SimulatedDeviceController(
            install_delay=app.config.get("DEVICE_INSTALL_DELAY_SECONDS", 2.0),
        )
    app.extensions["device_controller"] = controller
    logger.debug("Device controller registered: %s", type(controller).__name__)


def get_device_controller() -> DeviceController:
    return current_app.extensions["device_controller"]
