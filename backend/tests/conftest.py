import json
import random
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from app.api.dependencies import assemble_services
from app.core.config import Settings
from app.main import create_app
from app.services.generation_client import StructuredGenerationClient
from app.services.stores import (
    InMemoryDoctorCatalog,
    InMemoryPrescriptionStore,
    InMemoryUserStore,
)

DOCTORS = [
    {
        "sl_no": 2,
        "name": "Dr. Meera Iyer",
        "age": 45,
        "gender": "Female",
        "specialization": "Cardiology",
        "experience": 18,
        "rating": 9,
        "short_description": "Heart rhythm disorders and hypertension.",
        "email": "meera.iyer@example.com",
    },
    {
        "sl_no": 1,
        "name": "Dr. Arjun Rao",
        "age": 38,
        "gender": "Male",
        "specialization": "Dermatology",
        "experience": 10,
        "rating": 8,
        "short_description": "Eczema, acne and skin allergies.",
        "email": "arjun.rao@example.com",
    },
    {
        "sl_no": 3,
        "name": "Dr. Kavya Shah",
        "age": 52,
        "gender": "Female",
        "specialization": "Endocrinology",
        "experience": 25,
        "rating": 7.5,
        "short_description": "Diabetes and thyroid care.",
        "email": "kavya.shah@example.com",
    },
]


class FakeCompletions:
    """Stands in for client.chat.completions; replies are consumed in order."""

    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, dict):
            reply = json.dumps(reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


class FakeModelClient:
    def __init__(self, *replies):
        self.completions = FakeCompletions(replies)
        self.chat = SimpleNamespace(completions=self.completions)
        self.closed = False

    def queue(self, *replies):
        self.completions.replies.extend(replies)

    async def close(self):
        self.closed = True


@pytest.fixture
def model_client():
    return FakeModelClient()


@pytest.fixture
def generator(model_client):
    return StructuredGenerationClient(model_client, "test-model")


@pytest.fixture
def catalog():
    return InMemoryDoctorCatalog(DOCTORS)


@pytest.fixture
def users():
    return InMemoryUserStore()


@pytest.fixture
def test_settings():
    return Settings(
        OPENAI_API_KEY="",
        AZURE_FOUNDRY_ENDPOINT="",
        MONGODB_URI="",
        DOCTOR_SEARCH_LIMIT=3,
        DIET_PLAN_LIMIT=3,
        PRESCRIPTION_SCAN_LIMIT=3,
        BREVO_API_KEY="",
        SENDER_EMAIL="",
    )


@pytest.fixture
def services(test_settings, users, catalog, model_client):
    return assemble_services(
        test_settings,
        users,
        catalog,
        InMemoryPrescriptionStore(),
        model_client,
        rng=random.Random(7),
    )


@pytest.fixture
def client(services):
    with TestClient(create_app(services)) as c:
        yield c
