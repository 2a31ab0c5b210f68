import os

# moto needs credentials and a region before any boto3 resource is built
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_DEFAULT_REGION"] = "eu-west-1"

import pytest
from fastapi.testclient import TestClient
from moto import mock_aws

from app.core.security import create_access_token
from app.db import dynamo
from app.main import app


@pytest.fixture
def aws():
    with mock_aws():
        dynamo.reset_connection()
        dynamo.create_tables()
        yield
    dynamo.reset_connection()


@pytest.fixture
def client(aws):
    return TestClient(app)


def _headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(data={'sub': user_id})}"}


@pytest.fixture
def auth_headers():
    return _headers("user-alice")


@pytest.fixture
def other_headers():
    return _headers("user-bob")


@pytest.fixture
def make_transaction(client, auth_headers):
    def _make(headers=None, **overrides):
        payload = {
            "amount": 100,
            "type": "expense",
            "category": "Food",
            "paymentMethod": "Cash",
        }
        payload.update(overrides)
        response = client.post("/api/transactions", json=payload, headers=headers or auth_headers)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _make
