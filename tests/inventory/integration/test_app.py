"""Integration tests for the application factory."""

import pytest
from fastapi.testclient import TestClient

from app import create_app
from inventory.domain import inventory
from inventory.service import build_service
from inventory.utils.db import setup_db


@pytest.fixture()
def client(service):
    return TestClient(create_app(service))


class TestApplication:
    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "env": "test"}

    def test_request_id_is_echoed(self, client):
        response = client.get("/health", headers={"X-Request-ID": "req-123"})
        assert response.headers["X-Request-ID"] == "req-123"

    def test_request_id_is_generated(self, client):
        assert client.get("/health").headers["X-Request-ID"]

    def test_inventory_routes_and_error_handlers_are_mounted(self, client):
        response = client.get("/inventory/products/missing")

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "NOT_FOUND"


class TestServiceBootstrap:
    def test_schema_setup_keeps_existing_rows(self, make_product, service):
        make_product("prod-001", stock=4)

        setup_db(inventory)

        assert service.get_product("prod-001").stock == 4

    def test_build_service_uses_the_given_settings(self, settings, monkeypatch):
        monkeypatch.setattr(inventory, "init", lambda: None)

        built = build_service(settings)
        built.initialize_stock("prod-001", stock=2)

        assert built.settings is settings
        assert built.get_product("prod-001").stock == 2
