"""CooperativePaymentProvider ORM model: a cooperative's binding to one provider."""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel, utc_now


class ConnectivityStatus(str, Enum):
    """Result of the last connectivity probe against the provider."""

    UNVERIFIED = "UNVERIFIED"
    """Binding never probed."""

    CONNECTED = "CONNECTED"
    """Last probe authenticated successfully."""

    ERROR = "ERROR"
    """Last probe failed; see last_connection_error."""


# Columns that only ever hold vault envelopes ("<ivHex>:<cipherHex>")
SECRET_FIELDS = (
    "access_token",
    "refresh_token",
    "public_key",
    "private_key",
    "webhook_secret",
)


class CooperativePaymentProvider(Base, BaseModel):
    """Model representing the payment provider configured for a cooperative.

    Each cooperative has at most one binding (unique cooperative_id). Credential
    columns are ciphertext at rest and are decrypted only inside
    CooperativeProviderService. Usage counters are maintained by the settlement
    process through CooperativeProviderService.increment_usage.
    """

    __tablename__ = "cooperative_payment_providers"

    cooperative_id: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        unique=True,
        comment="Cooperative owning this configuration (one binding per cooperative)",
    )
    provider_id: Mapped[int] = mapped_column(
        ForeignKey("payment_providers.id"),
        nullable=False,
        index=True,
    )

    # Flags
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    is_principal: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    test_environment: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    # Encrypted credentials
    access_token: Mapped[str] = mapped_column(Text, nullable=False)
    refresh_token: Mapped[str | None] = mapped_column(Text, nullable=True)
    public_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    private_key: Mapped[str | None] = mapped_column(Text, nullable=True)
    webhook_secret: Mapped[str | None] = mapped_column(Text, nullable=True)

    webhook_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    custom_config: Mapped[dict[str, Any]] = mapped_column(
        JSON,
        default=dict,
        nullable=False,
        comment="Opaque provider-specific settings, stored verbatim",
    )

    # Per-binding overrides
    min_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
    max_amount: Mapped[int | None] = mapped_column(Integer, nullable=True)
    additional_fee: Mapped[Decimal | None] = mapped_column(Numeric(7, 4), nullable=True)

    # Connectivity
    connectivity_status: Mapped[ConnectivityStatus] = mapped_column(
        String(20),
        default=ConnectivityStatus.UNVERIFIED,
        nullable=False,
    )
    last_connection_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )
    last_connection_error: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Usage counters
    transaction_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    total_amount_processed: Mapped[int] = mapped_column(
        BigInteger,
        default=0,
        nullable=False,
        comment="Sum of processed amounts in minor units",
    )
    last_transaction_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
    )

    integrated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )

    # Relationships
    provider: Mapped["PaymentProvider"] = relationship(  # noqa: F821
        "PaymentProvider",
        back_populates="bindings",
        foreign_keys=[provider_id],
    )

    __table_args__ = (Index("idx_binding_cooperative_principal", "cooperative_id", "is_principal"),)

    def __repr__(self) -> str:
        # No credential columns
        return (
            f"<CooperativePaymentProvider(id={self.id}, cooperative_id={self.cooperative_id!r}, "
            f"provider_id={self.provider_id}, is_active={self.is_active}, "
            f"is_principal={self.is_principal}, connectivity_status={self.connectivity_status})>"
        )


__all__ = ["CooperativePaymentProvider", "ConnectivityStatus", "SECRET_FIELDS"]
