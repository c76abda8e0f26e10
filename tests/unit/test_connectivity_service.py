"""Unit tests for the connectivity probe."""

import pytest
from sqlalchemy import event

from src.models import ConnectivityStatus, ProviderStatus, ProviderType
from src.schemas.payment_providers import (
    ConnectivityResult,
    ProviderCreate,
    ProviderUpdate,
)
from src.services.connectivity_service import (
    NO_PROVIDER_MESSAGE,
    ConnectivityCheck,
    ConnectivityCheckRegistry,
    ConnectivityService,
    CredentialConnectivityCheck,
)
from src.services.cooperative_provider_service import BindingCredentials, CooperativeProviderService
from src.services.credential_vault import CredentialVault


class StubCheck(ConnectivityCheck):
    """Returns a fixed result and records what it was asked."""

    def __init__(self, result: ConnectivityResult):
        self.result = result
        self.calls = []

    def check(self, provider, credentials, test_environment):
        self.calls.append((provider.code, credentials.access_token, test_environment))
        return self.result


class RaisingCheck(ConnectivityCheck):
    def check(self, provider, credentials, test_environment):
        raise TimeoutError("gateway did not answer for token secret123")


@pytest.fixture
def ok_check():
    return StubCheck(ConnectivityResult(connected=True, message="Connection verified successfully"))


class TestVerify:
    """Test ConnectivityService.verify."""

    def test_successful_probe_marks_connected(self, bindings, configured_binding, ok_check):
        """A successful check sets CONNECTED and clears the last error."""
        bindings.record_connectivity("coop-1", False, "previous failure")
        service = ConnectivityService(bindings, ok_check)

        result = service.verify("coop-1")

        assert result.connected is True
        assert ok_check.calls == [("MP", "secret123", True)]
        stored = bindings.get_public("coop-1")
        assert stored.connectivity_status == ConnectivityStatus.CONNECTED
        assert stored.last_connection_at is not None
        assert stored.last_connection_error is None

    def test_no_binding_returns_negative_without_writes(self, db_session, bindings, ok_check):
        """A cooperative with no binding gets a negative result and nothing is persisted."""
        service = ConnectivityService(bindings, ok_check)
        flushed = []

        def record_flush(*args, **kwargs):
            flushed.append(args)

        event.listen(db_session, "before_flush", record_flush)
        try:
            result = service.verify("coop-2")
        finally:
            event.remove(db_session, "before_flush", record_flush)

        assert result.connected is False
        assert result.message == NO_PROVIDER_MESSAGE
        assert ok_check.calls == []
        assert flushed == []
        assert db_session.new == set()
        assert db_session.dirty == set()

    def test_failed_probe_marks_error(self, bindings, configured_binding):
        check = StubCheck(ConnectivityResult(connected=False, message="Invalid credentials"))

        result = ConnectivityService(bindings, check).verify("coop-1")

        assert result.connected is False
        stored = bindings.get_public("coop-1")
        assert stored.connectivity_status == ConnectivityStatus.ERROR
        assert stored.last_connection_error == "Invalid credentials"

    def test_check_exception_becomes_negative_result(self, bindings, configured_binding):
        """A raising check is reported as an error without leaking its message."""
        result = ConnectivityService(bindings, RaisingCheck()).verify("coop-1")

        assert result.connected is False
        assert result.message == "Verification error: TimeoutError"
        assert "secret123" not in result.message
        assert bindings.get_public("coop-1").connectivity_status == ConnectivityStatus.ERROR

    def test_undecryptable_credentials_mark_error(self, db_session, configured_binding, ok_check):
        """Credentials sealed under another master secret are reported, not raised."""
        other = CooperativeProviderService(db_session, CredentialVault("rotated-master-secret"))

        result = ConnectivityService(other, ok_check).verify("coop-1")

        assert result.connected is False
        assert "decrypted" in result.message
        assert ok_check.calls == []
        assert other.get_public("coop-1").connectivity_status == ConnectivityStatus.ERROR

    def test_state_follows_latest_probe(self, bindings, configured_binding, ok_check):
        failing = StubCheck(ConnectivityResult(connected=False, message="down"))

        ConnectivityService(bindings, ok_check).verify("coop-1")
        ConnectivityService(bindings, failing).verify("coop-1")
        assert bindings.get_public("coop-1").connectivity_status == ConnectivityStatus.ERROR

        ConnectivityService(bindings, ok_check).verify("coop-1")
        assert bindings.get_public("coop-1").connectivity_status == ConnectivityStatus.CONNECTED


class TestCredentialConnectivityCheck:
    """Test the offline default check."""

    @pytest.fixture
    def check(self):
        return CredentialConnectivityCheck()

    def test_active_provider_with_token(self, check, mercadopago):
        result = check.check(mercadopago, BindingCredentials(access_token="t"), test_environment=True)

        assert result.connected is True
        assert result.details == {"provider": "MP", "environment": "test"}

    def test_blank_token(self, check, mercadopago):
        result = check.check(mercadopago, BindingCredentials(access_token="   "), test_environment=False)

        assert result.connected is False
        assert result.message == "Access token is empty"

    def test_provider_under_maintenance(self, check, catalog, mercadopago):
        catalog.update(mercadopago.id, ProviderUpdate(status=ProviderStatus.MAINTENANCE))

        result = check.check(mercadopago, BindingCredentials(access_token="t"), test_environment=True)

        assert result.connected is False
        assert "MAINTENANCE" in result.message

    def test_webhook_provider_requires_secret(self, check, catalog):
        provider = catalog.create(
            ProviderCreate(code="ST", name="Stripe", type=ProviderType.STRIPE, supports_webhooks=True)
        )

        missing = check.check(provider, BindingCredentials(access_token="t"), test_environment=True)
        present = check.check(
            provider,
            BindingCredentials(access_token="t", webhook_secret="whsec"),
            test_environment=False,
        )

        assert missing.connected is False
        assert present.connected is True
        assert present.details["environment"] == "production"


class TestConnectivityCheckRegistry:
    """Test per-type dispatch."""

    def test_dispatches_by_provider_type(self, mercadopago):
        specific = StubCheck(ConnectivityResult(connected=False, message="from MP check"))
        registry = ConnectivityCheckRegistry()
        registry.register(ProviderType.MERCADOPAGO, specific)

        result = registry.check(mercadopago, BindingCredentials(access_token="t"), True)

        assert result.message == "from MP check"

    def test_falls_back_for_unregistered_type(self, mercadopago, ok_check):
        registry = ConnectivityCheckRegistry(fallback=ok_check)
        registry.register(ProviderType.PAYPAL, StubCheck(ConnectivityResult(connected=False, message="x")))

        result = registry.check(mercadopago, BindingCredentials(access_token="t"), True)

        assert result.connected is True
        assert ok_check.calls == [("MP", "t", True)]

    def test_service_uses_registry_by_default(self, bindings, configured_binding):
        result = ConnectivityService(bindings).verify("coop-1")

        assert result.connected is True
        assert result.message == "Connection verified successfully"
