"""Shared helpers for services and blueprints.

get_or_raise:        primary-key lookup that raises NotFoundError
parse_id:            coerce a form/JSON id to int or raise ValidationError
parse_text:          require a string field, stripped
parse_flag:          require a JSON boolean
commit_or_rollback:  commit the SQLAlchemy session, rolling back on failure
"""
import logging

from sqlalchemy.exc import IntegrityError, OperationalError

from devicelab.core.exceptions import NotFoundError, ValidationError
from devicelab.models import db

logger = logging.getLogger(__name__)


def get_or_raise(model, pk, label=None):
    """Fetch a model instance by primary key or raise NotFoundError.

    Usage::

        session = get_or_raise(TestSession, sid)
    """
    label = label or model.__name__
    obj = db.session.get(model, pk)
    if obj is None:
        raise NotFoundError(resource=label, resource_id=pk)
    return obj


def parse_id(value, field):
    """Parse an identifier from request input.

    Form fields arrive as strings and JSON bodies may carry either form.
    Returns None for empty input; raises ValidationError for anything that is
    not a positive integer. Floats are accepted only when integral (``3.0``).
    """
    if value is None or value == "":
        return None
    invalid = ValidationError(f"{field} must be an integer id", details={field: "invalid"})
    if isinstance(value, bool):
        raise invalid
    if isinstance(value, float) and not value.is_integer():
        raise invalid
    try:
        parsed = int(value)
    except (TypeError, ValueError):
        raise invalid from None
    if parsed <= 0:
        raise invalid
    return parsed


def parse_text(value, field, required=False):
    """Return a stripped string from request input.

    None stays None unless ``required``; non-string JSON values
    (numbers, lists, objects) raise ValidationError.
    """
    if value is None:
        if required:
            raise ValidationError(f"{field} is required", details={field: "missing"})
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{field} must be a string", details={field: "invalid"})
    value = value.strip()
    if required and not value:
        raise ValidationError(f"{field} is required", details={field: "missing"})
    return value


def parse_flag(value, field, default=False):
    """Return a JSON boolean, ``default`` when absent."""
    if value is None:
        return default
    if not isinstance(value, bool):
        raise ValidationError(f"{field} must be true or false", details={field: "invalid"})
    return value


# ── Database commit helper ───────────────────────────────────────────────────

def commit_or_rollback():
    """Commit the current SQLAlchemy session, rolling back on failure.

    IntegrityError → ValidationError (constraint violation, HTTP 400)
    OperationalError / other → re-raised after rollback (HTTP 500 upstream)
    """
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        logger.warning("Integrity error on commit: %s", exc.orig)
        raise ValidationError("Duplicate or constraint violation") from exc
    except OperationalError:
        db.session.rollback()
        logger.exception("Database operational error on commit")
        raise
    except Exception:
        db.session.rollback()
        logger.exception("Unexpected database error on commit")
        raise
