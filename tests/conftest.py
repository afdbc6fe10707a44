import os

# Configure before the package reads its settings
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GEOLOCATION_ENABLED"] = "false"
os.environ["BOOTSTRAP_DEFAULT_OWNER"] = "false"
os.environ["FRONTEND_URL"] = "http://viewer.test"

import pytest
from fastapi.testclient import TestClient

from pitchdeck import models  # noqa: F401
from pitchdeck.core.bootstrap import bootstrap_default_owner
from pitchdeck.core.database import Base, SessionLocal, engine
from pitchdeck.main import app


@pytest.fixture(autouse=True)
def setup_database():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def owner(db):
    return bootstrap_default_owner(db)


@pytest.fixture
def presentation_payload():
    return {
        "title": "Q3 hiring offer",
        "content": {
            "metadata": {"title": "Q3 hiring offer"},
            "sections": [
                {
                    "id": "hero",
                    "layout": "hero",
                    "blocks": [
                        {
                            "id": "hero-title",
                            "type": "text",
                            "content": {"text": "Hello {{clientName}}", "tag": "h1"},
                        }
                    ],
                },
                {
                    "id": "pricing",
                    "blocks": [
                        {
                            "id": "price",
                            "type": "cta",
                            "content": {"title": "Total", "price": "{{totalPrice}} PLN"},
                        }
                    ],
                },
            ],
        },
        "settings": {"theme": {"primaryColor": "#FF5A5F"}},
    }


@pytest.fixture
def presentation(client, owner, presentation_payload):
    response = client.post("/presentations/", json=presentation_payload)
    assert response.status_code == 201
    return response.json()


@pytest.fixture
def version(client, presentation):
    response = client.post("/versions/", json={
        "presentationId": presentation["id"],
        "recipientName": "Anna",
        "recipientEmail": "anna@acme.com",
        "variables": {"clientName": "Acme", "totalPrice": 12500},
    })
    assert response.status_code == 201
    return response.json()
