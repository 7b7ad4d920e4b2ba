import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from main import app
from core.access import Identity, Role
from core.db import Base, get_db
from models.user import User
from schemas.order import OrderCreate
from security.password import hash_password
from security import jwt as jwt_utils


@pytest.fixture()
def db_session_override():
    engine = create_engine(
        "sqlite+pysqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    TestingSessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False)
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()

    def _get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = _get_db
    try:
        yield db
    finally:
        db.close()
        app.dependency_overrides.clear()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture()
def client(db_session_override):
    with TestClient(app) as c:
        yield c


def _make_user(db, first_name, last_name, email, role=Role.CUSTOMER):
    user = User(
        first_name=first_name,
        last_name=last_name,
        email=email,
        password_hash=hash_password("testpass123"),
        role=role.value,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def test_user(db_session_override):
    """Create a customer."""
    return _make_user(db_session_override, "Test", "User", "test@example.com")


@pytest.fixture
def other_user(db_session_override):
    """Create a second customer."""
    return _make_user(db_session_override, "Other", "Buyer", "other@example.com")


@pytest.fixture
def admin_user(db_session_override):
    """Create an admin."""
    return _make_user(db_session_override, "Shop", "Admin", "admin@example.com", role=Role.ADMIN)


@pytest.fixture
def customer(test_user):
    return Identity.from_user(test_user)


@pytest.fixture
def other_customer(other_user):
    return Identity.from_user(other_user)


@pytest.fixture
def admin(admin_user):
    return Identity.from_user(admin_user)


def _headers_for(user):
    return {"Authorization": f"Bearer {jwt_utils.create_access_token(str(user.id))}"}


@pytest.fixture
def auth_headers(test_user):
    """Authorization headers for the customer."""
    return _headers_for(test_user)


@pytest.fixture
def other_headers(other_user):
    return _headers_for(other_user)


@pytest.fixture
def admin_headers(admin_user):
    return _headers_for(admin_user)


@pytest.fixture
def order_payload():
    """Checkout body with one item: 2 x 10.00."""
    return {
        "items": [
            {
                "product_id": "prod-1",
                "name": "Canvas Tote",
                "quantity": 2,
                "price": 10,
                "size": "M",
                "color": "black",
            }
        ],
        "total_amount": 20,
        "shipping_address": {
            "street": "12 Market Street",
            "city": "Accra",
            "state": "Greater Accra",
            "zip_code": "00233",
            "country": "Ghana",
        },
        "payment_method": "Bank Transfer",
    }


@pytest.fixture
def order_data(order_payload):
    return OrderCreate(**order_payload)
