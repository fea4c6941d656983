"""Helpers shared by the planning services.

Services flush but do NOT commit; the caller commits (routes, CLI, the
in-process board gateway).
"""

import logging

import bleach
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from planboard.errors import (
    ConflictError,
    PersistenceError,
    Unauthenticated,
    ValidationError,
)
from planboard.extensions import db
from planboard.models.audit import AuditEvent

logger = logging.getLogger(__name__)


def sanitize(text):
    """Strip all HTML tags from user input. None passes through."""
    if text is None:
        return text
    if not isinstance(text, str):
        raise ValidationError(f"Expected text, got {type(text).__name__}.")
    return bleach.clean(text, tags=[], strip=True).strip()


def to_int(value, label):
    """Coerce a JSON value to int, or raise ValidationError."""
    try:
        return int(value)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be an integer.")


def require_user(user_id):
    """Every store operation is scoped to an authenticated user."""
    if not user_id:
        raise Unauthenticated("No active session.")
    return user_id


def check_revision(entity, expected_revision, label):
    """Reject a write made against a stale copy of `entity`."""
    if expected_revision is None:
        return
    if to_int(expected_revision, "expected_revision") != entity.revision:
        raise ConflictError(
            f"{label} was changed elsewhere "
            f"(expected revision {expected_revision}, current {entity.revision}).",
            code="stale_revision",
        )


def flush(action, conflict_message=None):
    """Flush the session, translating database failures into the taxonomy.

    IntegrityError becomes ConflictError when `conflict_message` is given;
    every other database error becomes PersistenceError. The session is
    rolled back in both cases.
    """
    try:
        db.session.flush()
    except IntegrityError as e:
        db.session.rollback()
        if conflict_message:
            logger.warning(f"{action} rejected: {e.orig}")
            raise ConflictError(conflict_message) from e
        logger.error(f"{action} failed: {e}", exc_info=True)
        raise PersistenceError(f"Failed to {action}.") from e
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"{action} failed: {e}", exc_info=True)
        raise PersistenceError(f"Failed to {action}.") from e


def audit(user_id, action, **metadata):
    db.session.add(AuditEvent(
        actor_user_id=user_id,
        action=action,
        metadata_=metadata,
    ))
