import pytest
from datetime import datetime
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import sessionmaker

from core.db import Base
from create_admin import create_admin_user
from models.order import Order
from models.order_item import OrderItem
from models.user import User


@pytest.fixture
def db_session():
    """Create a test database session"""
    engine = create_engine("sqlite:///:memory:")
    Base.metadata.create_all(bind=engine)
    SessionLocal = sessionmaker(bind=engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture
def buyer(db_session):
    user = User(first_name="Ama", last_name="Mensah", email="ama@example.com", password_hash="hash")
    db_session.add(user)
    db_session.commit()
    return user


def _order(user, **overrides):
    fields = dict(
        user_id=user.id,
        client_name=user.full_name,
        client_email=user.email,
        total_amount=Decimal("15.00"),
        shipping_street="1 Ring Road",
        shipping_city="Kumasi",
        shipping_zip_code="00233",
        shipping_country="Ghana",
        payment_method="Mobile Money",
    )
    fields.update(overrides)
    return Order(**fields)


class TestUser:
    """Test cases for User model"""

    def test_user_defaults(self, db_session, buyer):
        assert buyer.role == "customer"
        assert buyer.is_admin is False
        assert buyer.full_name == "Ama Mensah"
        assert isinstance(buyer.created_at, datetime)

    def test_user_email_uniqueness(self, db_session, buyer):
        db_session.add(User(first_name="A", last_name="B", email="ama@example.com", password_hash="x"))
        with pytest.raises(IntegrityError):
            db_session.commit()


class TestOrder:
    """Test cases for Order model"""

    def test_order_defaults(self, db_session, buyer):
        order = _order(buyer)
        db_session.add(order)
        db_session.commit()
        db_session.refresh(order)

        assert order.payment_status == "pending"
        assert order.delivery_status == "pending"
        assert order.payment_proof is None
        assert order.shipping_address == {
            "street": "1 Ring Road",
            "city": "Kumasi",
            "state": None,
            "zip_code": "00233",
            "country": "Ghana",
        }
        assert order.created_at is not None
        assert order.updated_at is not None

    def test_items_cascade_with_order(self, db_session, buyer):
        order = _order(buyer)
        order.items = [
            OrderItem(position=0, product_id="p1", name="Scarf", quantity=1, price=Decimal("15.00")),
        ]
        db_session.add(order)
        db_session.commit()
        assert db_session.query(OrderItem).count() == 1

        db_session.delete(order)
        db_session.commit()
        assert db_session.query(OrderItem).count() == 0

    def test_user_orders_relationship(self, db_session, buyer):
        db_session.add_all([_order(buyer), _order(buyer)])
        db_session.commit()
        db_session.refresh(buyer)
        assert len(buyer.orders) == 2


class TestCreateAdmin:
    def test_creates_new_admin(self, db_session):
        user = create_admin_user(db_session, " Boss@Example.com ", "adminpass123", "Shop", "Owner")
        db_session.commit()

        assert user.email == "boss@example.com"
        assert user.role == "admin"
        assert user.is_admin

    def test_promotes_existing_user(self, db_session, buyer):
        user = create_admin_user(db_session, "ama@example.com")
        db_session.commit()

        assert user.id == buyer.id
        assert user.role == "admin"
        assert user.password_hash == "hash"

    def test_new_admin_needs_password(self, db_session):
        with pytest.raises(ValueError):
            create_admin_user(db_session, "new@example.com")
