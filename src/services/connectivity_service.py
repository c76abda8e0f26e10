"""Connectivity verification of a cooperative's payment provider binding.

The probe reads the decrypted binding, asks a provider-specific
ConnectivityCheck whether the credentials work, and stores the outcome on the
binding (CONNECTED or ERROR). Provider-side failures are always reported as a
negative result; only persistence failures propagate to the caller.
"""

import logging
from abc import ABC, abstractmethod

from src.models import PaymentProvider, ProviderStatus, ProviderType
from src.schemas.payment_providers import ConnectivityResult
from src.services.cooperative_provider_service import (
    BindingCredentials,
    CooperativeProviderService,
)
from src.services.errors import DecryptionError

logger = logging.getLogger(__name__)

NO_PROVIDER_MESSAGE = "no provider configured"


class ConnectivityCheck(ABC):
    """Provider-specific connectivity check.

    Implementations must not raise on ordinary transport or authentication
    failures; they return ``ConnectivityResult(connected=False, ...)`` instead.
    """

    @abstractmethod
    def check(
        self,
        provider: PaymentProvider,
        credentials: BindingCredentials,
        test_environment: bool,
    ) -> ConnectivityResult:
        raise NotImplementedError


class CredentialConnectivityCheck(ConnectivityCheck):
    """Offline check: provider usable and required credentials present."""

    def check(
        self,
        provider: PaymentProvider,
        credentials: BindingCredentials,
        test_environment: bool,
    ) -> ConnectivityResult:
        status = ProviderStatus(provider.status)
        if not provider.is_active or status not in (ProviderStatus.ACTIVE, ProviderStatus.TESTING):
            return ConnectivityResult(
                connected=False,
                message=f"Provider {provider.code} is not available (status={status.value})",
            )
        if not credentials.access_token or not credentials.access_token.strip():
            return ConnectivityResult(connected=False, message="Access token is empty")
        if provider.supports_webhooks and not credentials.webhook_secret:
            return ConnectivityResult(
                connected=False,
                message=f"Provider {provider.code} requires a webhook secret",
            )
        return ConnectivityResult(
            connected=True,
            message="Connection verified successfully",
            details={
                "provider": provider.code,
                "environment": "test" if test_environment else "production",
            },
        )


class ConnectivityCheckRegistry(ConnectivityCheck):
    """Dispatches to a check registered for the provider's type, else the fallback."""

    def __init__(self, fallback: ConnectivityCheck | None = None):
        self.fallback = fallback or CredentialConnectivityCheck()
        self._checks: dict[str, ConnectivityCheck] = {}

    def register(self, provider_type: ProviderType, check: ConnectivityCheck) -> None:
        self._checks[ProviderType(provider_type).value] = check

    def check(
        self,
        provider: PaymentProvider,
        credentials: BindingCredentials,
        test_environment: bool,
    ) -> ConnectivityResult:
        check = self._checks.get(ProviderType(provider.type).value, self.fallback)
        return check.check(provider, credentials, test_environment)


class ConnectivityService:
    """Runs connectivity probes and records their outcome on the binding."""

    def __init__(
        self,
        bindings: CooperativeProviderService,
        checker: ConnectivityCheck | None = None,
    ):
        """Initialize service.

        Args:
            bindings: Binding service used to read credentials and store the result
            checker: Connectivity check (default: ConnectivityCheckRegistry fallback)
        """
        self.bindings = bindings
        self.checker = checker or ConnectivityCheckRegistry()

    def verify(self, cooperative_id: str) -> ConnectivityResult:
        """Probe the cooperative's provider and persist the connectivity state.

        Args:
            cooperative_id: Cooperative identifier

        Returns:
            ConnectivityResult; connected=False with "no provider configured"
            (and no write) when the cooperative has no binding

        Raises:
            SQLAlchemyError: Only if persistence is unavailable
        """
        try:
            decrypted = self.bindings.get_for_cooperative(cooperative_id)
        except DecryptionError:
            logger.error(f"Stored credentials for cooperative {cooperative_id} cannot be decrypted")
            result = ConnectivityResult(
                connected=False,
                message="Stored credentials could not be decrypted",
            )
            self.bindings.record_connectivity(cooperative_id, result.connected, result.message)
            return result

        if decrypted is None:
            return ConnectivityResult(connected=False, message=NO_PROVIDER_MESSAGE)

        try:
            result = self.checker.check(
                decrypted.provider,
                decrypted.credentials,
                decrypted.test_environment,
            )
        except Exception as e:  # noqa: BLE001
            logger.warning(
                f"Connectivity check raised for cooperative {cooperative_id}: {type(e).__name__}"
            )
            result = ConnectivityResult(
                connected=False,
                message=f"Verification error: {type(e).__name__}",
            )

        self.bindings.record_connectivity(cooperative_id, result.connected, result.message)
        logger.info(
            f"Connectivity for cooperative {cooperative_id} "
            f"({decrypted.provider.code}): connected={result.connected}"
        )
        return result


__all__ = [
    "ConnectivityCheck",
    "CredentialConnectivityCheck",
    "ConnectivityCheckRegistry",
    "ConnectivityService",
    "NO_PROVIDER_MESSAGE",
]
