"""
Simulated device actions on a session: install app, take screenshot, poll metrics.

Each action goes through the registered DeviceController and records its
outcome in the data store (a TestLog for installs, a Screenshot row for
captures). Nothing is retried; a failed action must be resubmitted.
"""

import json
import logging

from devicelab.core.exceptions import ValidationError
from devicelab.middleware.logging_config import lab_extra
from devicelab.models import db
from devicelab.models.session import Screenshot, TestLog, TestSession
from devicelab.services.device_controller import get_device_controller
from devicelab.utils.helpers import commit_or_rollback, get_or_raise

logger = logging.getLogger(__name__)


def install_app(session_id: int) -> dict:
    """Simulate installing the session's app artifact on its device.

    Returns:
        ``{"message", "device", "app_path"}``

    Raises:
        NotFoundError: Unknown session.
        ValidationError: Session has no app artifact or no device environment.
    """
    session = get_or_raise(TestSession, session_id)
    if not session.app_path:
        raise ValidationError("No app file associated with this session")
    pairing = session.browser_device
    if pairing is None or pairing.device is None:
        raise ValidationError("No device associated with this session")
    device = pairing.device

    get_device_controller().install(device, session.app_path)

    db.session.add(TestLog(
        session_id=session.id,
        level="INFO",
        message=f"App installed successfully on {device.name}",
        log_metadata=json.dumps({"action": "install", "device": device.name}),
    ))
    commit_or_rollback()
    logger.info(
        "App installed session=%s device=%s", session.id, device.name,
        extra=lab_extra(session, device=device, app_type=session.app_type),
    )
    return {
        "message": "App installed successfully",
        "device": device.name,
        "app_path": session.app_path,
    }


def take_screenshot(session_id: int) -> dict:
    """Create a placeholder Screenshot row for the session."""
    session = get_or_raise(TestSession, session_id)
    capture = get_device_controller().capture(session)
    screenshot = Screenshot(
        session_id=session.id,
        filename=capture.filename,
        path=capture.path,
        thumbnail=capture.thumbnail,
    )
    db.session.add(screenshot)
    commit_or_rollback()
    logger.debug("Screenshot captured session=%s file=%s", session.id, screenshot.filename,
                 extra=lab_extra(session))
    return screenshot.to_dict()


def poll_metrics(session_id: int) -> dict:
    """Return a placeholder performance snapshot for the session."""
    session = get_or_raise(TestSession, session_id)
    return get_device_controller().poll(session)
