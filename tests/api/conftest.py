"""Shared fixtures for API tests."""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def product_payload() -> dict:
    """Valid create payload."""
    return {"name": "Steel Rod", "price": 450.50, "min_order_qty": "10 units"}


@pytest.fixture
def created_product(
    client: TestClient, auth_headers: dict[str, str], product_payload: dict
) -> dict:
    """Product created through the API."""
    response = client.post("/products", json=product_payload, headers=auth_headers)
    assert response.status_code == 201
    return response.json()
