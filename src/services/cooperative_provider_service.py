"""Cooperative payment provider binding service.

Owns the single provider configuration each cooperative may have:
- Configuring a binding (one per cooperative, principal flag exclusivity)
- Reading it back with credentials decrypted for internal callers
- Partial updates that re-encrypt only the credentials supplied
- Soft-disabling
- Usage counter increments for the settlement process
- Connectivity state writes for the connectivity probe

Credentials are sealed by CredentialVault before they reach the session and
are never part of the values returned to API callers (BindingResponse).
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from src.models import (
    ConnectivityStatus,
    CooperativePaymentProvider,
    PaymentProvider,
    utc_now,
)
from src.models.cooperative_provider import SECRET_FIELDS
from src.schemas.payment_providers import BindingCreate, BindingResponse, BindingUpdate
from src.services.credential_vault import CredentialVault
from src.services.errors import ConflictError, NotFoundError, ValidationError
from src.services.provider_catalog_service import ProviderCatalogService

logger = logging.getLogger(__name__)

# Non-nullable columns: an explicit None in a patch means "leave as is"
_NON_NULLABLE = ("provider_id", "is_active", "is_principal", "test_environment", "custom_config")


@dataclass(frozen=True)
class BindingCredentials:
    """Decrypted credentials. Held in memory only; masked in repr."""

    access_token: str = field(repr=False)
    refresh_token: str | None = field(default=None, repr=False)
    public_key: str | None = field(default=None, repr=False)
    private_key: str | None = field(default=None, repr=False)
    webhook_secret: str | None = field(default=None, repr=False)


@dataclass(frozen=True)
class DecryptedBinding:
    """Internal view of a binding with usable credentials.

    For in-process collaborators only (connectivity probe, payment adapters).
    Must never be serialized into an API response.
    """

    binding: CooperativePaymentProvider
    provider: PaymentProvider
    credentials: BindingCredentials

    @property
    def cooperative_id(self) -> str:
        return self.binding.cooperative_id

    @property
    def test_environment(self) -> bool:
        return self.binding.test_environment

    @property
    def webhook_url(self) -> str | None:
        return self.binding.webhook_url

    @property
    def custom_config(self) -> dict:
        return self.binding.custom_config


class CooperativeProviderService:
    """Service for cooperative-to-provider bindings."""

    def __init__(self, db: Session, vault: CredentialVault):
        """Initialize service.

        Args:
            db: SQLAlchemy database session
            vault: Credential vault holding the process master secret
        """
        self.db = db
        self.vault = vault
        self.catalog = ProviderCatalogService(db)

    # ============================================
    # Queries
    # ============================================

    def _find(self, cooperative_id: str) -> CooperativePaymentProvider | None:
        try:
            return (
                self.db.query(CooperativePaymentProvider)
                .filter(CooperativePaymentProvider.cooperative_id == cooperative_id)
                .first()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error loading provider binding for cooperative {cooperative_id}: {e}")
            raise

    def _require(self, cooperative_id: str) -> CooperativePaymentProvider:
        binding = self._find(cooperative_id)
        if not binding:
            raise NotFoundError(f"No payment provider configured for cooperative {cooperative_id}")
        return binding

    def get_for_cooperative(self, cooperative_id: str) -> DecryptedBinding | None:
        """Get the cooperative's binding with credentials decrypted.

        Args:
            cooperative_id: Cooperative identifier

        Returns:
            DecryptedBinding, or None if the cooperative has no binding

        Raises:
            DecryptionError: If a stored envelope cannot be opened
        """
        binding = self._find(cooperative_id)
        if not binding:
            return None

        credentials = BindingCredentials(
            **{name: self.vault.decrypt_optional(getattr(binding, name)) for name in SECRET_FIELDS}
        )
        return DecryptedBinding(binding=binding, provider=binding.provider, credentials=credentials)

    def get_public(self, cooperative_id: str) -> BindingResponse | None:
        """Get the cooperative's binding as a boundary-safe response (no credentials)."""
        binding = self._find(cooperative_id)
        return BindingResponse.model_validate(binding) if binding else None

    # ============================================
    # Mutations
    # ============================================

    def _clear_principal(self, cooperative_id: str, exclude_id: int | None = None) -> int:
        """Unset is_principal on the cooperative's other bindings (same transaction, no commit).

        With one binding per cooperative this matches nothing today; it keeps
        the flag exclusive if that constraint is ever relaxed.
        """
        query = self.db.query(CooperativePaymentProvider).filter(
            CooperativePaymentProvider.cooperative_id == cooperative_id,
            CooperativePaymentProvider.is_principal.is_(True),
        )
        if exclude_id is not None:
            query = query.filter(CooperativePaymentProvider.id != exclude_id)
        return query.update(
            {
                CooperativePaymentProvider.is_principal: False,
                CooperativePaymentProvider.updated_at: utc_now(),
            },
            synchronize_session="fetch",
        )

    def _commit(self, action: str, cooperative_id: str) -> None:
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Integrity conflict on {action} for cooperative {cooperative_id}: {e.orig}")
            if action == "configure":
                raise ConflictError(
                    f"Cooperative {cooperative_id} already has a payment provider configured",
                    code="binding_exists",
                ) from e
            raise ConflictError(f"Conflicting write on {action} for cooperative {cooperative_id}") from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error on {action} for cooperative {cooperative_id}: {e}")
            raise

    def configure(self, cooperative_id: str, data: BindingCreate) -> BindingResponse:
        """Create the cooperative's binding.

        Args:
            cooperative_id: Cooperative identifier
            data: Binding payload with plaintext credentials

        Returns:
            BindingResponse enriched with provider metadata (no credentials)

        Raises:
            NotFoundError: If data.provider_id is not in the catalog
            ConflictError: If the cooperative already has a binding (including
                a concurrent configure that committed first)
            EncryptionError: If a credential cannot be encrypted
        """
        provider = self.catalog.get_by_id(data.provider_id)

        if self._find(cooperative_id):
            logger.warning(f"Cooperative {cooperative_id} already has a payment provider")
            raise ConflictError(
                f"Cooperative {cooperative_id} already has a payment provider configured",
                code="binding_exists",
            )

        sealed = {name: self.vault.encrypt_optional(getattr(data, name)) for name in SECRET_FIELDS}

        if data.is_principal:
            self._clear_principal(cooperative_id)

        binding = CooperativePaymentProvider(
            cooperative_id=cooperative_id,
            provider_id=provider.id,
            is_active=data.is_active,
            is_principal=data.is_principal,
            test_environment=data.test_environment,
            webhook_url=data.webhook_url,
            custom_config=dict(data.custom_config),
            min_amount=data.min_amount,
            max_amount=data.max_amount,
            additional_fee=data.additional_fee,
            connectivity_status=ConnectivityStatus.UNVERIFIED,
            **sealed,
        )
        self.db.add(binding)
        self._commit("configure", cooperative_id)

        self.db.refresh(binding)
        logger.info(
            f"Configured provider {provider.code} for cooperative {cooperative_id} (ID={binding.id})"
        )
        return BindingResponse.model_validate(binding)

    def update(self, cooperative_id: str, patch: BindingUpdate) -> BindingResponse:
        """Apply a partial update to the cooperative's binding.

        Credentials present in ``patch`` are re-encrypted and replace the stored
        envelope; credentials absent from it keep their current envelope.

        Raises:
            NotFoundError: If the cooperative has no binding, or patch.provider_id is unknown
            ValidationError: If access_token is cleared or amount limits conflict
            EncryptionError: If a credential cannot be encrypted
        """
        binding = self._require(cooperative_id)
        changes = patch.model_dump(exclude_unset=True)

        for name in _NON_NULLABLE:
            if name in changes and changes[name] is None:
                del changes[name]

        if "access_token" in changes and changes["access_token"] is None:
            raise ValidationError("access_token cannot be removed")

        min_amount = changes.get("min_amount", binding.min_amount)
        max_amount = changes.get("max_amount", binding.max_amount)
        if min_amount is not None and max_amount is not None and min_amount > max_amount:
            raise ValidationError("min_amount must not exceed max_amount")

        if "provider_id" in changes:
            self.catalog.get_by_id(changes["provider_id"])

        for name in SECRET_FIELDS:
            if name in changes:
                changes[name] = self.vault.encrypt_optional(changes[name])

        if changes.get("is_principal"):
            self._clear_principal(cooperative_id, exclude_id=binding.id)

        if "custom_config" in changes:
            changes["custom_config"] = dict(changes["custom_config"])

        for name, value in changes.items():
            setattr(binding, name, value)
        binding.updated_at = utc_now()

        self._commit("update", cooperative_id)
        self.db.refresh(binding)

        updated = sorted(n for n in changes if n not in SECRET_FIELDS)
        rotated = sorted(n for n in changes if n in SECRET_FIELDS)
        logger.info(
            f"Updated provider binding for cooperative {cooperative_id}: "
            f"fields={updated} rotated_credentials={rotated}"
        )
        return BindingResponse.model_validate(binding)

    def disable(self, cooperative_id: str) -> None:
        """Soft-disable the cooperative's binding. Idempotent.

        Raises:
            NotFoundError: If the cooperative has no binding
        """
        binding = self._require(cooperative_id)
        binding.is_active = False
        binding.updated_at = utc_now()
        self._commit("disable", cooperative_id)
        logger.info(f"Disabled payment provider for cooperative {cooperative_id}")

    def increment_usage(
        self,
        cooperative_id: str,
        amount: int,
        timestamp: datetime | None = None,
    ) -> None:
        """Record one processed transaction against the binding's counters.

        Called by the settlement process. The increment runs as a single SQL
        UPDATE so concurrent settlements do not lose counts.

        Args:
            cooperative_id: Cooperative identifier
            amount: Processed amount in minor units (non-negative)
            timestamp: When the transaction settled (default: now, UTC)

        Raises:
            ValidationError: If amount is negative
            NotFoundError: If the cooperative has no binding
        """
        if amount < 0:
            raise ValidationError("amount must be non-negative")

        timestamp = timestamp or utc_now()
        updated = (
            self.db.query(CooperativePaymentProvider)
            .filter(CooperativePaymentProvider.cooperative_id == cooperative_id)
            .update(
                {
                    CooperativePaymentProvider.transaction_count: (
                        CooperativePaymentProvider.transaction_count + 1
                    ),
                    CooperativePaymentProvider.total_amount_processed: (
                        CooperativePaymentProvider.total_amount_processed + amount
                    ),
                    CooperativePaymentProvider.last_transaction_at: timestamp,
                    CooperativePaymentProvider.updated_at: utc_now(),
                },
                synchronize_session=False,
            )
        )
        if not updated:
            self.db.rollback()
            raise NotFoundError(f"No payment provider configured for cooperative {cooperative_id}")

        self._commit("increment_usage", cooperative_id)
        logger.debug(f"Usage recorded for cooperative {cooperative_id}: amount={amount}")

    def record_connectivity(self, cooperative_id: str, connected: bool, message: str) -> None:
        """Persist the outcome of a connectivity probe.

        Raises:
            NotFoundError: If the cooperative has no binding
        """
        binding = self._require(cooperative_id)
        binding.connectivity_status = (
            ConnectivityStatus.CONNECTED if connected else ConnectivityStatus.ERROR
        )
        binding.last_connection_at = utc_now()
        binding.last_connection_error = None if connected else message
        self._commit("record_connectivity", cooperative_id)


__all__ = [
    "BindingCredentials",
    "DecryptedBinding",
    "CooperativeProviderService",
]
