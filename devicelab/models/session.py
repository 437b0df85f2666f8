"""
Device Lab
Test session models: the central aggregate and the records it owns.

Models:
    - TestSession:     one test run bound to an environment and a target
    - Screenshot:      captured (placeholder) image for a session
    - TestLog:         append-only log line for a session
    - NetworkRequest:  append-only network record for a session (read path only)

Architecture ref:
    User ──1:N──▶ TestSession ◀──N:1── BrowserDevice
    TestSession ──1:N──▶ Screenshot / TestLog / NetworkRequest  (cascade delete)

A session targets either a web URL or an uploaded app artifact, never both.
The two shapes are exposed as ``WebTarget`` / ``AppTarget`` through
``TestSession.target``; the columns underneath stay nullable.
"""

from dataclasses import dataclass
from datetime import datetime, timezone

from devicelab.models import db


# ── Constants ────────────────────────────────────────────────────────────

SESSION_STATUSES = {"CREATED", "RUNNING", "COMPLETED", "FAILED", "CANCELLED"}

TERMINAL_STATUSES = {"COMPLETED", "FAILED", "CANCELLED"}

APP_TYPES = {"ANDROID_APK", "ANDROID_AAB"}

LOG_LEVELS = {"DEBUG", "INFO", "WARN", "ERROR"}


# ── Lifecycle state machine ──────────────────────────────────────────────

SESSION_TRANSITIONS = {
    "CREATED":   ["RUNNING", "COMPLETED", "FAILED", "CANCELLED"],
    "RUNNING":   ["COMPLETED", "FAILED", "CANCELLED"],
    "COMPLETED": [],
    "FAILED":    [],
    "CANCELLED": [],
}


def validate_session_transition(old_status, new_status):
    """Return True if TestSession status transition is valid."""
    return new_status in SESSION_TRANSITIONS.get(old_status, [])


def _utcnow():
    return datetime.now(timezone.utc)


def _iso(value):
    return value.isoformat() if value else None


# ── Session targets ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class WebTarget:
    url: str

    kind = "web"


@dataclass(frozen=True)
class AppTarget:
    app_path: str
    app_type: str | None = None

    kind = "app"


class TestSession(db.Model):
    """A single test run on one BrowserDevice against one target."""

    __tablename__ = "test_sessions"
    __test__ = False  # keep pytest from collecting the model

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(
        db.Integer,
        db.ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    browser_device_id = db.Column(
        db.Integer,
        db.ForeignKey("browser_devices.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    url = db.Column(db.String(2048), nullable=True)
    app_path = db.Column(db.String(500), nullable=True)
    app_type = db.Column(db.String(20), nullable=True, comment="ANDROID_APK | ANDROID_AAB")
    status = db.Column(
        db.String(20),
        nullable=False,
        default="CREATED",
        index=True,
        comment="CREATED | RUNNING | COMPLETED | FAILED | CANCELLED",
    )
    started_at = db.Column(db.DateTime(timezone=True), nullable=True)
    ended_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow, index=True)
    updated_at = db.Column(db.DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    # ── Relationships
    user = db.relationship("User", back_populates="sessions")
    browser_device = db.relationship("BrowserDevice")
    screenshots = db.relationship(
        "Screenshot",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by=lambda: (Screenshot.timestamp.desc(), Screenshot.id.desc()),
    )
    logs = db.relationship(
        "TestLog",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by=lambda: (TestLog.timestamp.desc(), TestLog.id.desc()),
    )
    network_requests = db.relationship(
        "NetworkRequest",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by=lambda: (NetworkRequest.timestamp.desc(), NetworkRequest.id.desc()),
    )

    @property
    def target(self):
        if self.app_path:
            return AppTarget(app_path=self.app_path, app_type=self.app_type)
        if self.url:
            return WebTarget(url=self.url)
        return None

    @target.setter
    def target(self, value):
        if isinstance(value, WebTarget):
            self.url, self.app_path, self.app_type = value.url, None, None
        elif isinstance(value, AppTarget):
            self.url, self.app_path, self.app_type = None, value.app_path, value.app_type
        else:
            raise TypeError(f"Unsupported session target: {value!r}")

    @property
    def is_terminal(self):
        return self.status in TERMINAL_STATUSES

    def to_dict(self, include_children=False):
        bd = self.browser_device
        target = self.target
        d = {
            "id": self.id,
            "user_id": self.user_id,
            "user": self.user.to_ref() if self.user else None,
            "browser_device_id": self.browser_device_id,
            "browser_device": (
                bd.to_dict(include_device=True, include_browser=True) if bd else None
            ),
            "target_kind": target.kind if target else None,
            "url": self.url,
            "app_path": self.app_path,
            "app_type": self.app_type,
            "status": self.status,
            "started_at": _iso(self.started_at),
            "ended_at": _iso(self.ended_at),
            "created_at": _iso(self.created_at),
            "updated_at": _iso(self.updated_at),
        }
        if include_children:
            d["screenshots"] = [s.to_dict() for s in self.screenshots]
            d["logs"] = [log.to_dict() for log in self.logs]
            d["network_requests"] = [r.to_dict() for r in self.network_requests]
        return d

    def __repr__(self):
        return f"<TestSession {self.id}: {self.status}>"


class Screenshot(db.Model):
    """Placeholder screenshot record; immutable once created."""

    __tablename__ = "screenshots"

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(
        db.Integer,
        db.ForeignKey("test_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    filename = db.Column(db.String(255), nullable=False)
    path = db.Column(db.String(500), nullable=False)
    thumbnail = db.Column(db.String(500), nullable=True)
    timestamp = db.Column(db.DateTime(timezone=True), default=_utcnow)
    created_at = db.Column(db.DateTime(timezone=True), default=_utcnow)

    session = db.relationship("TestSession", back_populates="screenshots")

    def to_dict(self):
        return {
            "id": self.id,
            "session_id": self.session_id,
            "filename": self.filename,
            "path": self.path,
            "thumbnail": self.thumbnail,
            "timestamp": _iso(self.timestamp),
            "created_at": _iso(self.created_at),
        }


class TestLog(db.Model):
    """Append-only log line attached to a session."""

    __tablename__ = "test_logs"
    __test__ = False

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(
        db.Integer,
        db.ForeignKey("test_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    level = db.Column(db.String(10), nullable=False, default="INFO", comment="DEBUG | INFO | WARN | ERROR")
    message = db.Column(db.Text, nullable=False)
    # "metadata" is reserved on declarative models
    log_metadata = db.Column("metadata", db.Text, nullable=True)
    timestamp = db.Column(db.DateTime(timezone=True), default=_utcnow)

    session = db.relationship("TestSession", back_populates="logs")

    def to_dict(self):
        return {
            "id": self.id,
            "session_id": self.session_id,
            "level": self.level,
            "message": self.message,
            "metadata": self.log_metadata,
            "timestamp": _iso(self.timestamp),
        }


class NetworkRequest(db.Model):
    """Network call observed during a session. Written by external collectors."""

    __tablename__ = "network_requests"

    id = db.Column(db.Integer, primary_key=True)
    session_id = db.Column(
        db.Integer,
        db.ForeignKey("test_sessions.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    method = db.Column(db.String(10), nullable=False)
    url = db.Column(db.String(2048), nullable=False)
    status_code = db.Column(db.Integer, nullable=True)
    timestamp = db.Column(db.DateTime(timezone=True), default=_utcnow)
    duration = db.Column(db.Integer, nullable=True, comment="milliseconds")
    request_size = db.Column(db.Integer, nullable=True)
    response_size = db.Column(db.Integer, nullable=True)

    session = db.relationship("TestSession", back_populates="network_requests")

    def to_dict(self):
        return {
            "id": self.id,
            "session_id": self.session_id,
            "method": self.method,
            "url": self.url,
            "status_code": self.status_code,
            "timestamp": _iso(self.timestamp),
            "duration": self.duration,
            "request_size": self.request_size,
            "response_size": self.response_size,
        }
