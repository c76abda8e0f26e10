"""Integration tests for the payment provider API.

Exercises the HTTP surface end to end against an in-memory database:
catalog management, cooperative configuration, connectivity verification
and statistics.
"""

import pytest

from src.models import CooperativePaymentProvider

BASE = "/api/payment-providers"


def _create_provider(client, **overrides) -> dict:
    payload = {"code": "MP", "name": "MercadoPago", "type": "MERCADOPAGO"}
    payload.update(overrides)
    response = client.post(BASE, json=payload)
    assert response.status_code == 201, response.text
    return response.json()


@pytest.fixture
def provider(client) -> dict:
    return _create_provider(client)


@pytest.fixture
def configured(client, provider) -> dict:
    response = client.post(
        f"{BASE}/cooperatives/coop-1/configuration",
        json={
            "provider_id": provider["id"],
            "access_token": "secret123",
            "webhook_secret": "hook-secret",
            "is_principal": True,
            "custom_config": {"merchant": "coop-1", "installments": 3},
        },
    )
    assert response.status_code == 201, response.text
    return response.json()


class TestHealth:
    def test_health(self, client):
        assert client.get("/health").json() == {"status": "ok"}


class TestCatalogEndpoints:
    """Provider catalog over HTTP."""

    def test_create_and_fetch(self, client, provider):
        assert provider["code"] == "MP"
        assert provider["currencies"] == ["ARS"]
        assert provider["expiration_minutes"] == 60

        by_id = client.get(f"{BASE}/{provider['id']}")
        by_code = client.get(f"{BASE}/code/MP")

        assert by_id.status_code == 200
        assert by_code.json()["id"] == provider["id"]

    def test_duplicate_code_conflict(self, client, provider):
        response = client.post(BASE, json={"code": "MP", "name": "Other", "type": "PAYPAL"})

        assert response.status_code == 409
        assert response.json()["detail"]["error"]["code"] == "duplicate_code"

    def test_invalid_payload_rejected(self, client):
        response = client.post(
            BASE,
            json={"code": "X", "name": "X", "type": "CUSTOM", "min_amount": 500, "max_amount": 100},
        )

        assert response.status_code == 422

    def test_list_with_filters(self, client):
        _create_provider(client)
        _create_provider(client, code="PP", name="PayPal", type="PAYPAL", supports_webhooks=True)
        _create_provider(client, code="RP", name="Rapipago", type="RAPIPAGO", is_active=False)

        everything = client.get(BASE).json()
        webhooks = client.get(BASE, params={"supports_webhooks": "true"}).json()
        searched = client.get(BASE, params={"search": "pago"}).json()
        paged = client.get(BASE, params={"size": 2, "page": 2}).json()

        assert everything["total"] == 3
        assert [p["code"] for p in webhooks["items"]] == ["PP"]
        assert sorted(p["code"] for p in searched["items"]) == ["MP", "RP"]
        assert paged["pages"] == 2
        assert [p["code"] for p in paged["items"]] == ["RP"]

    def test_list_rejects_oversized_page(self, client):
        assert client.get(BASE, params={"size": 500}).status_code == 422

    def test_update(self, client, provider):
        response = client.put(f"{BASE}/{provider['id']}", json={"status": "MAINTENANCE"})

        assert response.status_code == 200
        assert response.json()["status"] == "MAINTENANCE"
        assert response.json()["name"] == "MercadoPago"

    def test_update_with_null_required_fields(self, client, provider):
        response = client.put(
            f"{BASE}/{provider['id']}",
            json={"is_active": None, "name": None, "status": None, "countries": None},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["is_active"] is True
        assert body["name"] == "MercadoPago"
        assert body["status"] == "ACTIVE"
        assert body["countries"] == []

    def test_missing_provider(self, client):
        response = client.get(f"{BASE}/999")

        assert response.status_code == 404
        assert response.json()["detail"]["error"]["code"] == "not_found"

    def test_delete_unused(self, client, provider):
        response = client.delete(f"{BASE}/{provider['id']}")

        assert response.status_code == 200
        assert response.json()["success"] is True
        assert client.get(f"{BASE}/{provider['id']}").status_code == 404

    def test_delete_in_use(self, client, provider, configured):
        response = client.delete(f"{BASE}/{provider['id']}")

        assert response.status_code == 409
        assert response.json()["detail"]["error"]["code"] == "in_use"


class TestCooperativeConfiguration:
    """Cooperative binding endpoints."""

    def test_configure_hides_credentials(self, db_session, configured):
        """Responses never contain credential values or field names."""
        assert configured["connectivity_status"] == "UNVERIFIED"
        assert configured["is_principal"] is True
        assert configured["provider"]["code"] == "MP"
        assert configured["custom_config"] == {"merchant": "coop-1", "installments": 3}
        for name in ("access_token", "webhook_secret", "refresh_token", "private_key", "public_key"):
            assert name not in configured

        stored = db_session.query(CooperativePaymentProvider).one()
        assert stored.access_token != "secret123"
        assert "secret123" not in str(configured)

    def test_get_configuration(self, client, configured):
        response = client.get(f"{BASE}/cooperatives/coop-1/configuration")

        assert response.status_code == 200
        assert response.json()["id"] == configured["id"]
        assert "secret123" not in response.text

    def test_get_missing_configuration_is_null(self, client):
        response = client.get(f"{BASE}/cooperatives/coop-9/configuration")

        assert response.status_code == 200
        assert response.json() is None

    def test_configure_twice_conflict(self, client, provider, configured):
        response = client.post(
            f"{BASE}/cooperatives/coop-1/configuration",
            json={"provider_id": provider["id"], "access_token": "other"},
        )

        assert response.status_code == 409
        assert response.json()["detail"]["error"]["code"] == "binding_exists"

    def test_configure_unknown_provider(self, client):
        response = client.post(
            f"{BASE}/cooperatives/coop-1/configuration",
            json={"provider_id": 999, "access_token": "t"},
        )

        assert response.status_code == 404

    def test_configure_requires_access_token(self, client, provider):
        response = client.post(
            f"{BASE}/cooperatives/coop-1/configuration",
            json={"provider_id": provider["id"], "access_token": ""},
        )

        assert response.status_code == 422

    def test_update_and_disable(self, client, configured):
        updated = client.put(
            f"{BASE}/cooperatives/coop-1/configuration",
            json={"test_environment": False, "access_token": "rotated"},
        )
        assert updated.status_code == 200
        assert updated.json()["test_environment"] is False
        assert "rotated" not in updated.text

        disabled = client.delete(f"{BASE}/cooperatives/coop-1/configuration")
        assert disabled.status_code == 200
        assert client.get(f"{BASE}/cooperatives/coop-1/configuration").json()["is_active"] is False

    def test_update_clearing_access_token_rejected(self, client, configured):
        response = client.put(
            f"{BASE}/cooperatives/coop-1/configuration",
            json={"access_token": None},
        )

        assert response.status_code == 422
        assert response.json()["detail"]["error"]["code"] == "validation_error"

    def test_disable_missing(self, client):
        assert client.delete(f"{BASE}/cooperatives/coop-9/configuration").status_code == 404


class TestVerifyAndStatistics:
    """Connectivity and statistics endpoints."""

    def test_verify_connected(self, client, configured):
        response = client.post(f"{BASE}/cooperatives/coop-1/verify-connection")

        assert response.status_code == 200
        assert response.json()["connected"] is True
        state = client.get(f"{BASE}/cooperatives/coop-1/configuration").json()
        assert state["connectivity_status"] == "CONNECTED"
        assert state["last_connection_at"] is not None

    def test_verify_without_configuration(self, client):
        response = client.post(f"{BASE}/cooperatives/coop-2/verify-connection")

        assert response.status_code == 200
        assert response.json() == {
            "connected": False,
            "message": "no provider configured",
            "details": None,
        }

    def test_statistics(self, client, bindings, configured):
        bindings.increment_usage("coop-1", 2500)

        response = client.get(
            f"{BASE}/cooperatives/coop-1/statistics",
            params={"grouping": "day", "date_from": "2026-01-01"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["total_transactions"] == 1
        assert body["total_amount_processed"] == 2500

    def test_statistics_without_configuration(self, client):
        body = client.get(f"{BASE}/cooperatives/coop-3/statistics").json()

        assert body["total_transactions"] == 0
        assert body["total_amount_processed"] == 0
        assert body["connectivity_status"] == "UNVERIFIED"
