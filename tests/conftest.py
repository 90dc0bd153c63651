import os

# Settings are read once at import time; point everything at an in-memory database first
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["SEED_ON_STARTUP"] = "false"
os.environ["USE_MOCK_SHIPMENTS"] = "true"
os.environ["SUPABASE_URL"] = ""
os.environ["SUPABASE_ANON_KEY"] = ""
os.environ["BCRYPT_ROUNDS"] = "4"

import pytest
from fastapi.testclient import TestClient

from palma.application.notifications import EmailNotifier
from palma.application.schemas import ShippingDetails
from palma.domain.models import Base
from palma.infrastructure import db
from palma.infrastructure.gateway import MockShipmentGateway
from palma.infrastructure.repositories import Repositories
from palma.infrastructure.security import create_access_token
from palma.seed import seed_database
from palma.store import MarketStore

ADMIN_ID = "a0eebc99-9c0b-4ef8-bb6d-6bb9bd380a11"
MERCHANT_ID = "b0eebc99-9c0b-4ef8-bb6d-6bb9bd380b11"
BROKER_ID = "c0eebc99-9c0b-4ef8-bb6d-6bb9bd380c11"
CUSTOMER_ID = "e0eebc99-9c0b-4ef8-bb6d-6bb9bd380e11"

@pytest.fixture
def db_session():
    Base.metadata.create_all(db.engine)
    session = db.SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(db.engine)

@pytest.fixture
def repos(db_session):
    return Repositories.from_session(db_session)

@pytest.fixture
def seeded(db_session):
    seed_database(db_session)
    return db_session

@pytest.fixture
def gateway():
    return MockShipmentGateway()

@pytest.fixture
def notifier():
    return EmailNotifier()

@pytest.fixture
def store(repos, gateway, notifier):
    return MarketStore(repos, gateway, notifier=notifier)

@pytest.fixture
def shipping():
    return ShippingDetails(
        full_name="Ahmed Customer",
        phone="0599333333",
        email="customer@palma.com",
        address="Main Street 5",
        city_id=1,
        village_id=102,
        region_id=1,
    )

@pytest.fixture
def client(db_session, gateway, notifier):
    from palma.api.deps import get_gateway, get_notifier, get_remote_catalog
    from palma.infrastructure.db import get_db
    from palma.main import app

    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_gateway] = lambda: gateway
    app.dependency_overrides[get_remote_catalog] = lambda: None
    app.dependency_overrides[get_notifier] = lambda: notifier
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()

def auth_headers(user_id: str, role: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id, role)}"}

@pytest.fixture
def customer_headers():
    return auth_headers(CUSTOMER_ID, "CUSTOMER")

@pytest.fixture
def merchant_headers():
    return auth_headers(MERCHANT_ID, "MERCHANT")

@pytest.fixture
def broker_headers():
    return auth_headers(BROKER_ID, "BROKER")

@pytest.fixture
def admin_headers():
    return auth_headers(ADMIN_ID, "ADMIN")
