"""
Test session lifecycle service.

Owns every status change on TestSession and the timestamps that go with it:

    CREATED ──start──▶ RUNNING ──stop──▶ COMPLETED
       │                  ├──fail──▶ FAILED
       └──stop/fail/cancel┴──cancel──▶ CANCELLED

started_at is written only when a session enters RUNNING; ended_at only
when it enters a terminal status. Terminal sessions never move again, with
one exception kept for callers that retry: stopping a COMPLETED session
returns it unchanged.

Reads always resolve the owner (id/email/name), the BrowserDevice with its
Device and Browser, and, for a single session, the owned screenshots, logs
and network requests newest-first.
"""

import json
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import selectinload

from devicelab.core.exceptions import ConflictError, ValidationError
from devicelab.middleware.logging_config import lab_extra
from devicelab.models import db
from devicelab.models.catalog import BrowserDevice
from devicelab.models.session import (
    APP_TYPES,
    LOG_LEVELS,
    SESSION_STATUSES,
    AppTarget,
    TestLog,
    TestSession,
    WebTarget,
    validate_session_transition,
)
from devicelab.models.user import User
from devicelab.services.catalog_service import resolve_browser_device
from devicelab.utils.helpers import commit_or_rollback, get_or_raise, parse_text

logger = logging.getLogger(__name__)


def _utcnow():
    return datetime.now(timezone.utc)


def _expanded_query():
    return TestSession.query.options(
        selectinload(TestSession.user),
        selectinload(TestSession.browser_device).selectinload(BrowserDevice.device),
        selectinload(TestSession.browser_device).selectinload(BrowserDevice.browser),
    )


def build_target(url: str | None = None, app_path: str | None = None, app_type: str | None = None):
    """Turn the raw url/app fields into a WebTarget or AppTarget.

    Raises:
        ValidationError: If neither or both targets are given, or app_type is unknown.
    """
    url = parse_text(url, "url") or None
    app_path = parse_text(app_path, "app_path") or None
    app_type = parse_text(app_type, "app_type") or None
    if url and app_path:
        raise ValidationError(
            "A session targets either a url or an app, not both",
            details={"url": url, "app_path": app_path},
        )
    if app_path:
        if app_type is not None and app_type not in APP_TYPES:
            raise ValidationError(
                f"app_type must be one of {', '.join(sorted(APP_TYPES))}",
                details={"app_type": app_type},
            )
        return AppTarget(app_path=app_path, app_type=app_type)
    if url:
        return WebTarget(url=url)
    raise ValidationError("url or app_path is required", details={"target": "missing"})


# ──────────────────────────────────────────────────────────────────────────────
# Create / read / delete
# ──────────────────────────────────────────────────────────────────────────────

def create_session(
    user_id: int | None,
    browser_device_id: int | None = None,
    url: str | None = None,
    app_path: str | None = None,
    app_type: str | None = None,
    *,
    commit: bool = True,
) -> TestSession:
    """Create a session in CREATED.

    Args:
        user_id: Owner. Must reference an existing User.
        browser_device_id: Optional environment; must be an active pairing.
        url: Web target.
        app_path / app_type: App target.
        commit: Set False to leave the transaction open for the caller.

    Returns:
        The new TestSession.

    Raises:
        ValidationError: On a missing/ambiguous target or a dangling reference.
    """
    if user_id is None:
        raise ValidationError("user_id is required", details={"user_id": "missing"})
    target = build_target(url=url, app_path=app_path, app_type=app_type)

    if db.session.get(User, user_id) is None:
        raise ValidationError(
            "user_id does not reference an existing user",
            details={"user_id": user_id},
        )
    pairing = resolve_browser_device(browser_device_id) if browser_device_id is not None else None

    session = TestSession(
        user_id=user_id,
        browser_device_id=pairing.id if pairing else None,
        status="CREATED",
    )
    session.target = target
    db.session.add(session)
    if commit:
        commit_or_rollback()
        logger.info(
            "TestSession created id=%s user=%s target=%s",
            session.id, user_id, target.kind,
            extra=lab_extra(session, app_type=session.app_type),
        )
    else:
        db.session.flush()
    return session


def get_session(session_id: int) -> dict:
    """Return one fully expanded session, children included."""
    session = get_or_raise(TestSession, session_id)
    return session.to_dict(include_children=True)


def list_sessions(status: str | None = None, user_id: int | None = None) -> list[dict]:
    """Return all sessions newest-first, fully expanded.

    Args:
        status: Optional status filter.
        user_id: Optional owner filter.
    """
    q = _expanded_query().options(
        selectinload(TestSession.screenshots),
        selectinload(TestSession.logs),
        selectinload(TestSession.network_requests),
    )
    if status:
        if status not in SESSION_STATUSES:
            raise ValidationError(
                f"status must be one of {', '.join(sorted(SESSION_STATUSES))}",
                details={"status": status},
            )
        q = q.filter(TestSession.status == status)
    if user_id is not None:
        q = q.filter(TestSession.user_id == user_id)
    sessions = q.order_by(TestSession.created_at.desc(), TestSession.id.desc()).all()
    return [s.to_dict(include_children=True) for s in sessions]


def delete_session(session_id: int) -> None:
    """Delete a session together with its screenshots, logs and network requests."""
    session = get_or_raise(TestSession, session_id)
    extra = lab_extra(session)
    db.session.delete(session)
    commit_or_rollback()
    logger.info("TestSession deleted id=%s", session_id, extra=extra)


# ──────────────────────────────────────────────────────────────────────────────
# Lifecycle transitions
# ──────────────────────────────────────────────────────────────────────────────

def _transition(session: TestSession, new_status: str) -> None:
    old = session.status
    if not validate_session_transition(old, new_status):
        raise ConflictError(
            "TestSession",
            old,
            message=f"Invalid transition: {old} → {new_status}",
        )
    session.status = new_status
    now = _utcnow()
    if new_status == "RUNNING":
        session.started_at = now
    elif session.is_terminal:
        session.ended_at = now
    logger.info(
        "TestSession id=%s transitioned: %s → %s", session.id, old, new_status,
        extra=lab_extra(session),
    )


def start_session(session_id: int) -> dict:
    """CREATED → RUNNING. Any other starting status is a ConflictError."""
    session = get_or_raise(TestSession, session_id)
    _transition(session, "RUNNING")
    commit_or_rollback()
    return session.to_dict()


def stop_session(session_id: int) -> dict:
    """Non-terminal → COMPLETED. A COMPLETED session is returned unchanged."""
    session = get_or_raise(TestSession, session_id)
    if session.status == "COMPLETED":
        logger.debug(
            "TestSession id=%s already completed; stop ignored", session_id,
            extra=lab_extra(session),
        )
        return session.to_dict()
    _transition(session, "COMPLETED")
    commit_or_rollback()
    return session.to_dict()


def fail_session(session_id: int, reason: str | None = None) -> dict:
    """Non-terminal → FAILED, recording the reason as an ERROR log line."""
    session = get_or_raise(TestSession, session_id)
    reason = parse_text(reason, "reason")
    _transition(session, "FAILED")
    db.session.add(TestLog(
        session_id=session.id,
        level="ERROR",
        message=reason or "Session marked as failed",
        log_metadata=json.dumps({"action": "fail"}),
    ))
    commit_or_rollback()
    return session.to_dict()


def cancel_session(session_id: int) -> dict:
    """Non-terminal → CANCELLED."""
    session = get_or_raise(TestSession, session_id)
    _transition(session, "CANCELLED")
    commit_or_rollback()
    return session.to_dict()


# ──────────────────────────────────────────────────────────────────────────────
# Logs
# ──────────────────────────────────────────────────────────────────────────────

def append_log(session_id: int, level: str, message: str, metadata=None) -> dict:
    """Append one TestLog to a session.

    ``metadata`` is stored opaquely: strings as given, anything else as JSON.
    """
    session = get_or_raise(TestSession, session_id)
    level = (parse_text(level, "level") or "INFO").upper()
    if level not in LOG_LEVELS:
        raise ValidationError(
            f"level must be one of {', '.join(sorted(LOG_LEVELS))}",
            details={"level": level},
        )
    message = parse_text(message, "message", required=True)
    if metadata is not None and not isinstance(metadata, str):
        metadata = json.dumps(metadata)

    log = TestLog(session_id=session.id, level=level, message=message, log_metadata=metadata)
    db.session.add(log)
    commit_or_rollback()
    return log.to_dict()
