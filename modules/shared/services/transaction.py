# File path: modules/shared/services/transaction.py

from __future__ import annotations

import logging
from typing import Callable, TypeVar

from flask import current_app, has_app_context
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from modules.shared.errors import ConflictError, DomainError

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 3


def _configured_attempts() -> int:
    if has_app_context():
        return int(current_app.config.get("TX_RETRY_ATTEMPTS", DEFAULT_ATTEMPTS))
    return DEFAULT_ATTEMPTS


def run_in_transaction(session, work: Callable[..., T], *args, attempts: int = None, **kwargs) -> T:
    """
    Run work(session, *args, **kwargs) and commit it as one unit.

    - Domain errors roll back and propagate untouched (never retried).
    - Lock contention / stale version rows roll back and are retried
      up to `attempts` times, then surface as ConflictError.
    - Anything else rolls back and propagates.
    """
    attempts = attempts or _configured_attempts()
    last_exc = None

    for attempt in range(1, attempts + 1):
        try:
            result = work(session, *args, **kwargs)
            session.commit()
            return result
        except DomainError:
            session.rollback()
            raise
        except (OperationalError, StaleDataError) as exc:
            session.rollback()
            last_exc = exc
            logger.warning(
                "Transaction conflict in %s (attempt %d/%d): %s",
                getattr(work, "__name__", "work"), attempt, attempts, exc,
            )
        except Exception:
            session.rollback()
            raise

    raise ConflictError(
        "The record was changed by someone else. Please retry.",
        attempts=attempts,
        reason=str(last_exc) if last_exc else None,
    )


def lock_one(session, model, row_id):
    """
    SELECT ... FOR UPDATE on a single row, refreshing any copy already in the session.
    """
    return (
        session.query(model)
        .filter(model.id == row_id)
        .with_for_update()
        .populate_existing()
        .first()
    )


def lock_many(session, model, row_ids):
    if not row_ids:
        return {}
    rows = (
        session.query(model)
        .filter(model.id.in_(sorted(set(row_ids))))
        .order_by(model.id.asc())   # always lock in id order
        .with_for_update()
        .populate_existing()
        .all()
    )
    return {r.id: r for r in rows}
