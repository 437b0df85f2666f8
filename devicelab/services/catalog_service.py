"""
Device / Browser catalog service layer.

Centralises the ORM queries for Device, Browser and BrowserDevice so that
blueprints remain HTTP-only. Listing applies two filters on purpose:
the primary entity is filtered in SQL (``is_active``), the counterpart on
each pairing is filtered in Python when serialising. An active device whose
browsers are all inactive is returned with an empty ``browser_devices`` list.
"""

import logging

from sqlalchemy.orm import selectinload

from devicelab.core.exceptions import NotFoundError, ValidationError
from devicelab.models import db
from devicelab.models.catalog import DEVICE_TYPES, Browser, BrowserDevice, Device
from devicelab.utils.helpers import commit_or_rollback, parse_flag, parse_text

logger = logging.getLogger(__name__)


# ──────────────────────────────────────────────────────────────────────────────
# Devices
# ──────────────────────────────────────────────────────────────────────────────

def list_devices() -> list[dict]:
    """Return active devices, newest first, each with its active-browser pairings."""
    devices = (
        Device.query
        .filter_by(is_active=True)
        .options(selectinload(Device.browser_devices).selectinload(BrowserDevice.browser))
        .order_by(Device.created_at.desc(), Device.id.desc())
        .all()
    )
    return [d.to_dict(include_pairings=True, active_browsers_only=True) for d in devices]


def create_device(data: dict) -> dict:
    """Persist a new device.

    Args:
        data: Request body. ``name`` is required; ``type`` must be one of
              DESKTOP, MOBILE, TABLET when given.

    Returns:
        Serialized device (without pairings).

    Raises:
        ValidationError: If ``name`` is missing or ``type`` is unknown.
    """
    name = parse_text(data.get("name"), "name", required=True)
    device_type = (parse_text(data.get("type"), "type") or "DESKTOP").upper()
    if device_type not in DEVICE_TYPES:
        raise ValidationError(
            f"type must be one of {', '.join(sorted(DEVICE_TYPES))}",
            details={"type": data.get("type")},
        )

    device = Device(
        name=name,
        type=device_type,
        manufacturer=parse_text(data.get("manufacturer"), "manufacturer") or "",
        model=parse_text(data.get("model"), "model") or "",
        os=parse_text(data.get("os"), "os") or "",
        os_version=parse_text(data.get("os_version"), "os_version") or "",
        resolution=parse_text(data.get("resolution"), "resolution") or "",
        is_mobile=parse_flag(data.get("is_mobile"), "is_mobile"),
    )
    db.session.add(device)
    commit_or_rollback()
    logger.info("Device created id=%s name=%s", device.id, device.name)
    return device.to_dict()


# ──────────────────────────────────────────────────────────────────────────────
# Browsers
# ──────────────────────────────────────────────────────────────────────────────

def list_browsers() -> list[dict]:
    """Return active browsers, newest first, each with its active-device pairings."""
    browsers = (
        Browser.query
        .filter_by(is_active=True)
        .options(selectinload(Browser.browser_devices).selectinload(BrowserDevice.device))
        .order_by(Browser.created_at.desc(), Browser.id.desc())
        .all()
    )
    return [b.to_dict(include_pairings=True, active_devices_only=True) for b in browsers]


def create_browser(data: dict) -> dict:
    """Persist a new browser. ``name`` is required."""
    name = parse_text(data.get("name"), "name", required=True)

    browser = Browser(
        name=name,
        version=parse_text(data.get("version"), "version") or "",
        engine=parse_text(data.get("engine"), "engine") or "",
        is_mobile=parse_flag(data.get("is_mobile"), "is_mobile"),
    )
    db.session.add(browser)
    commit_or_rollback()
    logger.info("Browser created id=%s name=%s", browser.id, browser.name)
    return browser.to_dict()


# ──────────────────────────────────────────────────────────────────────────────
# Pairings
# ──────────────────────────────────────────────────────────────────────────────

def resolve_browser_device(browser_device_id: int) -> BrowserDevice:
    """Return the active pairing with that id.

    Raises:
        ValidationError: If the id does not resolve to an existing active pairing.
    """
    pairing = db.session.get(BrowserDevice, browser_device_id)
    if pairing is None or not pairing.is_active:
        raise ValidationError(
            "browser_device_id does not reference an active browser/device pairing",
            details={"browser_device_id": browser_device_id},
        )
    return pairing


def first_pairing_for_device(device_id: int) -> BrowserDevice:
    """Return the device's first active pairing in insertion order.

    No compatibility reasoning happens here; inactive pairings are skipped
    and the first remaining one wins.

    Raises:
        NotFoundError: If the device does not exist.
        ValidationError: If the device has no active pairing.
    """
    device = db.session.get(Device, device_id)
    if device is None:
        raise NotFoundError(resource="Device", resource_id=device_id)
    pairing = next((bd for bd in device.browser_devices if bd.is_active), None)
    if pairing is None:
        raise ValidationError("No browser available for this device")
    return pairing
