"""
Pytest fixtures: app on in-memory SQLite plus one seeded order.

Seed:
  material  Cotton Navy (500 m on hand, safety 50)
  product   SHIRT-01, BOM 2 m cotton per piece
  order     ORD-TEST-1, one line qty=100 with 40 already completed
"""
import pytest

from app import create_app
from config import TestingConfig
from database.models import (
    db as _db,
    Material,
    MaterialMovement,
    Order,
    OrderProduct,
    Product,
    ProductMaterial,
    User,
)


@pytest.fixture()
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        _db.session.remove()
        _db.drop_all()


@pytest.fixture()
def db(app):
    return _db


@pytest.fixture()
def session(db):
    return db.session


@pytest.fixture()
def admin(session):
    user = User(username="admin", name="Admin", role="admin")
    user.set_password("admin-pass")
    session.add(user)
    session.commit()
    return user


@pytest.fixture()
def tailor(session):
    user = User(username="sari", name="Sari", role="tailor")
    user.set_password("tailor-pass")
    session.add(user)
    session.commit()
    return user


@pytest.fixture()
def seeded(session):
    cotton = Material(name="Cotton Navy", code="CTN-NVY", unit="m", qty_on_hand=500.0, safety_stock=50.0)
    session.add(cotton)
    session.flush()
    # keep the ledger in step with qty_on_hand
    session.add(MaterialMovement(
        material_id=cotton.id,
        qty=500.0,
        movement_type="IN",
        movement_source="adjustment",
        qty_after=500.0,
        notes="Opening stock",
    ))

    shirt = Product(name="Navy Shirt", code="SHIRT-01", unit="pcs")
    session.add(shirt)
    session.flush()
    session.add(ProductMaterial(product_id=shirt.id, material_id=cotton.id, qty_needed=2.0))

    order = Order(order_number="ORD-TEST-1", status="processing", target_pcs=100, completed_pcs=40)
    order.lines.append(OrderProduct(product=shirt, qty=100, completed_qty=40))
    session.add(order)
    session.commit()

    return {"material_id": cotton.id, "product_id": shirt.id, "order_id": order.id}


@pytest.fixture()
def client(app):
    return app.test_client()


def login(client, username="admin", password="admin-pass"):
    return client.post("/auth/login", json={"username": username, "password": password})


@pytest.fixture()
def admin_client(client, admin):
    r = login(client)
    assert r.status_code == 200
    return client
