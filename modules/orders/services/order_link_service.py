# File path: modules/orders/services/order_link_service.py
from __future__ import annotations

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional

from flask import current_app, has_app_context

from database.models import Order, OrderLink
from modules.shared.actors import Actor, actor_user_id
from modules.shared.errors import ExpiredError, NotFoundError, ValidationError
from modules.shared.services.transaction import lock_one, run_in_transaction

logger = logging.getLogger(__name__)

DEFAULT_TTL_DAYS = 7


@dataclass(frozen=True)
class LinkGrant:
    """What a resolved public token allows: progress on exactly this order."""
    link_id: int
    order_id: int
    user_id: Optional[int]


def generate_token() -> str:
    return secrets.token_hex(32)


def _ttl_days() -> int:
    if has_app_context():
        return int(current_app.config.get("ORDER_LINK_TTL_DAYS", DEFAULT_TTL_DAYS))
    return DEFAULT_TTL_DAYS


def _is_live(link: OrderLink, now: datetime) -> bool:
    return bool(link.is_active) and link.expire_at >= now


def _create_order_link(session, order_id, actor, expire_at, now):
    order = lock_one(session, Order, order_id)
    if order is None or not order.is_active:
        raise NotFoundError(f"Order {order_id} not found.")

    if expire_at is None:
        expire_at = now + timedelta(days=_ttl_days())
    if expire_at <= now:
        raise ValidationError("Link expiry must be in the future.")

    for existing in order.links:
        if not existing.is_active:
            continue
        if _is_live(existing, now):
            raise ValidationError(
                "Order link already exists for this order.",
                order_link_id=existing.id,
            )
        # expired but still flagged active
        existing.is_active = False

    token = generate_token()
    while session.query(OrderLink.id).filter(OrderLink.token == token).first():
        token = generate_token()

    link = OrderLink(
        order_id=order.id,
        user_id=actor_user_id(actor),
        token=token,
        expire_at=expire_at,
        is_active=True,
    )
    session.add(link)
    session.flush()
    return link


def create_order_link(
    session,
    order_id: int,
    actor: Optional[Actor] = None,
    expire_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> OrderLink:
    """
    One live link per order. Commits.
    """
    now = now or datetime.utcnow()
    link = run_in_transaction(session, _create_order_link, order_id, actor, expire_at, now)
    logger.info("Order link %s created for order %s, expires %s", link.id, order_id, link.expire_at.isoformat())
    return link


def resolve_order_link(session, token: str, now: Optional[datetime] = None) -> LinkGrant:
    """
    Unknown token -> NotFoundError; expired or deactivated -> ExpiredError.
    Read-only.
    """
    token = (token or "").strip()
    if not token:
        raise NotFoundError("Order link not found.")

    link = session.query(OrderLink).filter(OrderLink.token == token).first()
    if link is None:
        raise NotFoundError("Order link not found.")

    now = now or datetime.utcnow()
    if not link.is_active:
        raise ExpiredError("Order link is no longer active.")
    if now > link.expire_at:
        raise ExpiredError("Order link has expired.", expired_at=link.expire_at.isoformat())

    return LinkGrant(link_id=link.id, order_id=link.order_id, user_id=link.user_id)


def check_link_still_open(session, order: Order, order_link_id: int, now: Optional[datetime] = None) -> None:
    """
    The token was resolved before the caller's transaction; re-read the link
    under the order lock so a deactivation in between is honoured.
    """
    link = lock_one(session, OrderLink, order_link_id)
    if link is None or link.order_id != order.id:
        raise NotFoundError("Order link not found.")
    now = now or datetime.utcnow()
    if not link.is_active:
        raise ExpiredError("Order link is no longer active.")
    if now > link.expire_at:
        raise ExpiredError("Order link has expired.", expired_at=link.expire_at.isoformat())


def _deactivate_order_link(session, link_id):
    link = lock_one(session, OrderLink, link_id)
    if link is None:
        raise NotFoundError(f"Order link {link_id} not found.")
    link.is_active = False
    session.flush()
    return link


def deactivate_order_link(session, link_id: int) -> OrderLink:
    link = run_in_transaction(session, _deactivate_order_link, link_id)
    logger.info("Order link %s deactivated", link_id)
    return link


def list_order_links(session, order_id: int):
    return (
        session.query(OrderLink)
        .filter(OrderLink.order_id == order_id)
        .order_by(OrderLink.created_at.desc(), OrderLink.id.desc())
        .all()
    )
