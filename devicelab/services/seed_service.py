"""
Demo catalog seed.

Loads five devices, four browsers, ten device/browser pairings and a demo
user. Safe to re-run: it does nothing when any device already exists.

Usage:
    flask --app wsgi seed-demo
"""

import logging

from devicelab.models import db
from devicelab.models.catalog import Browser, BrowserDevice, Device
from devicelab.models.user import User
from devicelab.utils.helpers import commit_or_rollback

logger = logging.getLogger(__name__)

DEMO_DEVICES = [
    {"key": "windows", "name": "Desktop Windows 11", "type": "DESKTOP", "manufacturer": "Generic",
     "model": "Desktop PC", "os": "Windows", "os_version": "11", "resolution": "1920x1080",
     "is_mobile": False},
    {"key": "mac", "name": "Desktop macOS", "type": "DESKTOP", "manufacturer": "Apple",
     "model": "MacBook Pro", "os": "macOS", "os_version": "Sonoma", "resolution": "2560x1440",
     "is_mobile": False},
    {"key": "iphone", "name": "iPhone 15 Pro", "type": "MOBILE", "manufacturer": "Apple",
     "model": "iPhone 15 Pro", "os": "iOS", "os_version": "17", "resolution": "1179x2556",
     "is_mobile": True},
    {"key": "samsung", "name": "Samsung Galaxy S24", "type": "MOBILE", "manufacturer": "Samsung",
     "model": "Galaxy S24", "os": "Android", "os_version": "14", "resolution": "1080x2340",
     "is_mobile": True},
    {"key": "ipad", "name": "iPad Pro", "type": "TABLET", "manufacturer": "Apple",
     "model": "iPad Pro", "os": "iPadOS", "os_version": "17", "resolution": "2048x2732",
     "is_mobile": True},
]

DEMO_BROWSERS = [
    {"key": "chrome", "name": "Chrome", "version": "120", "engine": "Blink", "is_mobile": False},
    {"key": "firefox", "name": "Firefox", "version": "121", "engine": "Gecko", "is_mobile": False},
    {"key": "safari", "name": "Safari", "version": "17", "engine": "WebKit", "is_mobile": False},
    {"key": "mobile_safari", "name": "Mobile Safari", "version": "17", "engine": "WebKit",
     "is_mobile": True},
]

DEMO_PAIRINGS = [
    ("windows", "chrome"),
    ("windows", "firefox"),
    ("mac", "chrome"),
    ("mac", "safari"),
    ("mac", "firefox"),
    ("iphone", "mobile_safari"),
    ("iphone", "chrome"),
    ("samsung", "chrome"),
    ("ipad", "safari"),
    ("ipad", "chrome"),
]

DEMO_USER = {"email": "demo@example.com", "name": "Demo User"}


def seed_demo_data() -> dict:
    """Insert the demo catalog and user.

    Returns:
        Counts of created rows, or ``{"skipped": True}`` when data exists.
    """
    if db.session.query(Device.id).first() is not None:
        logger.info("Demo seed skipped: devices already present")
        return {"skipped": True}

    devices = {}
    for row in DEMO_DEVICES:
        attrs = {k: v for k, v in row.items() if k != "key"}
        devices[row["key"]] = Device(**attrs)
    browsers = {}
    for row in DEMO_BROWSERS:
        attrs = {k: v for k, v in row.items() if k != "key"}
        browsers[row["key"]] = Browser(**attrs)
    db.session.add_all(list(devices.values()) + list(browsers.values()))
    db.session.flush()

    for device_key, browser_key in DEMO_PAIRINGS:
        db.session.add(BrowserDevice(
            device_id=devices[device_key].id,
            browser_id=browsers[browser_key].id,
        ))

    user = User.query.filter_by(email=DEMO_USER["email"]).first()
    if user is None:
        db.session.add(User(**DEMO_USER))

    commit_or_rollback()
    counts = {
        "devices": len(devices),
        "browsers": len(browsers),
        "pairings": len(DEMO_PAIRINGS),
        "users": 1,
    }
    logger.info("Demo data seeded: %s", counts)
    return counts
