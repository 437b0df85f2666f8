"""
Device Lab
Catalog models: the shared reference data a session runs against.

Models:
    - Device:         physical or virtual target (desktop, phone, tablet)
    - Browser:        browser build with its rendering engine
    - BrowserDevice:  junction "this Browser is available on this Device"

Devices and browsers are long-lived and are never hard-deleted through the
API; they are switched off with ``is_active``. A pairing carries its own
``is_active`` so one combination can be disabled on its own.

Architecture ref:
    Device ──1:N──▶ BrowserDevice ◀──N:1── Browser
    BrowserDevice ──1:N──▶ TestSession
"""

from datetime import datetime, timezone

from devicelab.models import db


# ── Constants ────────────────────────────────────────────────────────────

DEVICE_TYPES = {"DESKTOP", "MOBILE", "TABLET"}


def _utcnow():
    return datetime.now(timezone.utc)


class Device(db.Model):
    """A device a test session can execute on."""

    __tablename__ = "devices"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(120), nullable=False)
    type = db.Column(
        db.String(20),
        nullable=False,
        default="DESKTOP",
        comment="DESKTOP | MOBILE | TABLET",
    )
    manufacturer = db.Column(db.String(100), default="")
    model = db.Column(db.String(100), default="")
    os = db.Column(db.String(50), default="")
    os_version = db.Column(db.String(50), default="")
    resolution = db.Column(db.String(20), default="", comment="e.g. '1920x1080'")
    is_mobile = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # ── Relationships
    browser_devices = db.relationship(
        "BrowserDevice",
        back_populates="device",
        cascade="all, delete-orphan",
        order_by="BrowserDevice.id",
    )

    def to_dict(self, include_pairings=False, active_browsers_only=True):
        d = {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "manufacturer": self.manufacturer,
            "model": self.model,
            "os": self.os,
            "os_version": self.os_version,
            "resolution": self.resolution,
            "is_mobile": self.is_mobile,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_pairings:
            d["browser_devices"] = [
                bd.to_dict(include_browser=True)
                for bd in self.browser_devices
                if not active_browsers_only or bd.browser.is_active
            ]
        return d

    def __repr__(self):
        return f"<Device {self.id}: {self.name}>"


class Browser(db.Model):
    """A browser build that can be paired with devices."""

    __tablename__ = "browsers"

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(100), nullable=False)
    version = db.Column(db.String(50), default="")
    engine = db.Column(db.String(50), default="", comment="Blink | Gecko | WebKit ...")
    is_mobile = db.Column(db.Boolean, nullable=False, default=False)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # ── Relationships
    browser_devices = db.relationship(
        "BrowserDevice",
        back_populates="browser",
        cascade="all, delete-orphan",
        order_by="BrowserDevice.id",
    )

    def to_dict(self, include_pairings=False, active_devices_only=True):
        d = {
            "id": self.id,
            "name": self.name,
            "version": self.version,
            "engine": self.engine,
            "is_mobile": self.is_mobile,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
        if include_pairings:
            d["browser_devices"] = [
                bd.to_dict(include_device=True)
                for bd in self.browser_devices
                if not active_devices_only or bd.device.is_active
            ]
        return d

    def __repr__(self):
        return f"<Browser {self.id}: {self.name} {self.version}>"


class BrowserDevice(db.Model):
    """Junction: one Browser available on one Device."""

    __tablename__ = "browser_devices"

    id = db.Column(db.Integer, primary_key=True)
    device_id = db.Column(
        db.Integer,
        db.ForeignKey("devices.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    browser_id = db.Column(
        db.Integer,
        db.ForeignKey("browsers.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    __table_args__ = (
        db.UniqueConstraint("device_id", "browser_id", name="uq_browser_device_pair"),
    )

    # ── Relationships
    device = db.relationship("Device", back_populates="browser_devices")
    browser = db.relationship("Browser", back_populates="browser_devices")

    def to_dict(self, include_device=False, include_browser=False):
        d = {
            "id": self.id,
            "device_id": self.device_id,
            "browser_id": self.browser_id,
            "is_active": self.is_active,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_device:
            d["device"] = self.device.to_dict() if self.device else None
        if include_browser:
            d["browser"] = self.browser.to_dict() if self.browser else None
        return d

    def __repr__(self):
        return f"<BrowserDevice {self.id}: device={self.device_id} browser={self.browser_id}>"
