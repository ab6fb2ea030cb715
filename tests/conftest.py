from decimal import Decimal

import pytest
from fastapi.testclient import TestClient

from plantnet.auth import verify_token
from plantnet.config import Settings
from plantnet.main import create_app
from plantnet.models import Plant

SELLER = {"email": "seller@example.com", "name": "Green Thumb", "image": None}


@pytest.fixture
def settings(tmp_path):
    return Settings(
        database_url=f"sqlite:///{tmp_path / 'test_temp.db'}",
        domain_url="http://localhost:5173",
        stripe_secret_key="sk_test_123",
        stripe_webhook_secret="whsec_test",
        jwt_secret="test-secret",
    )


@pytest.fixture
def fastapi_app(settings):
    return create_app(settings)


@pytest.fixture
def client(fastapi_app):
    # Bypass auth verification for tests
    fastapi_app.dependency_overrides[verify_token] = lambda: "admin@example.com"
    with TestClient(fastapi_app) as c:
        yield c
    fastapi_app.dependency_overrides.clear()


@pytest.fixture
def session_factory(client):
    return client.app.state.session_factory


@pytest.fixture
def make_plant(session_factory):
    def _make_plant(name="Monstera", price="10.00", quantity=10, category="Indoor"):
        db = session_factory()
        plant = Plant(
            name=name,
            category=category,
            price=Decimal(price),
            quantity=quantity,
            image=f"https://img.example.com/{name.lower()}.jpg",
            description=f"A healthy {name}",
            seller=SELLER,
            seller_email=SELLER["email"],
        )
        db.add(plant)
        db.commit()
        plant_id = plant.id
        db.close()
        return plant_id

    return _make_plant
