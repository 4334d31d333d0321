from datetime import datetime, timedelta

import pytest

from database.models import OrderLink
from modules.orders.services.order_link_service import (
    create_order_link,
    deactivate_order_link,
    resolve_order_link,
)
from modules.shared.actors import UserActor
from modules.shared.errors import ExpiredError, NotFoundError, ValidationError


def test_create_and_resolve(session, seeded, admin):
    link = create_order_link(session, seeded["order_id"], actor=UserActor(admin.id))

    assert len(link.token) == 64
    assert link.user_id == admin.id
    # default ttl is 7 days
    assert timedelta(days=6, hours=23) < link.expire_at - datetime.utcnow() <= timedelta(days=7)

    grant = resolve_order_link(session, link.token)
    assert grant.order_id == seeded["order_id"]
    assert grant.link_id == link.id


def test_unknown_or_blank_token_is_not_found(session, seeded):
    with pytest.raises(NotFoundError):
        resolve_order_link(session, "nope")
    with pytest.raises(NotFoundError):
        resolve_order_link(session, "   ")


def test_expired_link_is_rejected_even_when_active(session, seeded):
    now = datetime(2026, 3, 1, 12, 0, 0)
    link = create_order_link(session, seeded["order_id"], expire_at=now + timedelta(hours=1), now=now)

    assert resolve_order_link(session, link.token, now=now + timedelta(minutes=59)).link_id == link.id

    with pytest.raises(ExpiredError):
        resolve_order_link(session, link.token, now=now + timedelta(hours=2))
    assert session.get(OrderLink, link.id).is_active is True


def test_deactivated_link_is_expired(session, seeded):
    link = create_order_link(session, seeded["order_id"])
    deactivate_order_link(session, link.id)
    with pytest.raises(ExpiredError):
        resolve_order_link(session, link.token)


def test_one_live_link_per_order(session, seeded):
    first = create_order_link(session, seeded["order_id"])
    with pytest.raises(ValidationError):
        create_order_link(session, seeded["order_id"])

    deactivate_order_link(session, first.id)
    second = create_order_link(session, seeded["order_id"])
    assert second.token != first.token


def test_stale_active_link_is_replaced(session, seeded):
    past = datetime.utcnow() - timedelta(days=10)
    old = create_order_link(session, seeded["order_id"], expire_at=past + timedelta(days=1), now=past)

    fresh = create_order_link(session, seeded["order_id"])
    session.expire_all()
    assert session.get(OrderLink, old.id).is_active is False
    assert session.get(OrderLink, fresh.id).is_active is True


def test_expiry_must_be_in_future(session, seeded):
    with pytest.raises(ValidationError):
        create_order_link(session, seeded["order_id"], expire_at=datetime.utcnow() - timedelta(minutes=1))


def test_link_ttl_comes_from_config(app, session, seeded):
    app.config["ORDER_LINK_TTL_DAYS"] = 2
    link = create_order_link(session, seeded["order_id"])
    assert link.expire_at - datetime.utcnow() <= timedelta(days=2)
