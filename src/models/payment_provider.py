"""PaymentProvider ORM model for the catalog of external payment processors."""

from decimal import Decimal
from enum import Enum

from sqlalchemy import JSON, Boolean, Index, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from src.models import Base, BaseModel


class ProviderCategory(str, Enum):
    """Broad family a provider type belongs to."""

    GATEWAY = "gateway"
    BANK_TRANSFER = "bank_transfer"
    CASH = "cash"
    CUSTOM = "custom"


class ProviderType(str, Enum):
    """Supported payment provider integrations."""

    MERCADOPAGO = "MERCADOPAGO"
    PAYPAL = "PAYPAL"
    STRIPE = "STRIPE"
    PAYWAY = "PAYWAY"
    DECIDIR = "DECIDIR"
    TODO_PAGO = "TODO_PAGO"
    RAPIPAGO = "RAPIPAGO"
    PAGO_FACIL = "PAGO_FACIL"
    LINK_PAGOS = "LINK_PAGOS"
    BANCO_NACION = "BANCO_NACION"
    BANCO_PROVINCIA = "BANCO_PROVINCIA"
    TRANSFERENCIA_DIRECTA = "TRANSFERENCIA_DIRECTA"
    CUSTOM = "CUSTOM"

    @property
    def category(self) -> ProviderCategory:
        """Family of this provider type (gateway, bank transfer, cash)."""
        return _CATEGORIES.get(self, ProviderCategory.CUSTOM)


_CATEGORIES = {
    ProviderType.MERCADOPAGO: ProviderCategory.GATEWAY,
    ProviderType.PAYPAL: ProviderCategory.GATEWAY,
    ProviderType.STRIPE: ProviderCategory.GATEWAY,
    ProviderType.PAYWAY: ProviderCategory.GATEWAY,
    ProviderType.DECIDIR: ProviderCategory.GATEWAY,
    ProviderType.TODO_PAGO: ProviderCategory.GATEWAY,
    ProviderType.RAPIPAGO: ProviderCategory.CASH,
    ProviderType.PAGO_FACIL: ProviderCategory.CASH,
    ProviderType.LINK_PAGOS: ProviderCategory.BANK_TRANSFER,
    ProviderType.BANCO_NACION: ProviderCategory.BANK_TRANSFER,
    ProviderType.BANCO_PROVINCIA: ProviderCategory.BANK_TRANSFER,
    ProviderType.TRANSFERENCIA_DIRECTA: ProviderCategory.BANK_TRANSFER,
}


class ProviderStatus(str, Enum):
    """Lifecycle status of a catalog entry."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    TESTING = "TESTING"
    MAINTENANCE = "MAINTENANCE"
    DISABLED = "DISABLED"


DEFAULT_CURRENCY = "ARS"


class PaymentProvider(Base, BaseModel):
    """Model representing a payment processor available to cooperatives.

    Amounts (min_amount, max_amount, fixed_fee) are stored as integer minor
    units (cents). fee_percentage is a plain percentage in the 0-100 range.
    """

    __tablename__ = "payment_providers"

    # Identity
    code: Mapped[str] = mapped_column(
        String(50),
        nullable=False,
        unique=True,
        comment="Unique provider code (e.g., 'MP', 'STRIPE_AR')",
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    type: Mapped[ProviderType] = mapped_column(
        String(50),
        nullable=False,
        comment="Provider integration type",
    )
    description: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Links
    logo_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    website_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    api_base_url: Mapped[str | None] = mapped_column(String(500), nullable=True)
    api_version: Mapped[str | None] = mapped_column(String(50), nullable=True)
    documentation_url: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Capabilities
    supports_webhooks: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    supports_cards: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    supports_transfers: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    supports_cash: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    supports_recurring: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    # Limits and fees
    min_amount: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Minimum transaction amount in minor units",
    )
    max_amount: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Maximum transaction amount in minor units",
    )
    fee_percentage: Mapped[Decimal | None] = mapped_column(Numeric(7, 4), nullable=True)
    fixed_fee: Mapped[int | None] = mapped_column(
        Integer,
        nullable=True,
        comment="Fixed fee per transaction in minor units",
    )

    # Time windows
    expiration_minutes: Mapped[int] = mapped_column(Integer, default=60, nullable=False)
    confirmation_hours: Mapped[int] = mapped_column(Integer, default=72, nullable=False)

    # Coverage
    countries: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    currencies: Mapped[list[str]] = mapped_column(
        JSON,
        default=lambda: [DEFAULT_CURRENCY],
        nullable=False,
    )

    # Lifecycle
    status: Mapped[ProviderStatus] = mapped_column(
        String(20),
        default=ProviderStatus.ACTIVE,
        nullable=False,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)

    # Relationships
    bindings: Mapped[list["CooperativePaymentProvider"]] = relationship(  # noqa: F821
        "CooperativePaymentProvider",
        back_populates="provider",
    )

    __table_args__ = (
        Index("idx_provider_type", "type"),
        Index("idx_provider_status", "status"),
    )

    def __repr__(self) -> str:
        return (
            f"<PaymentProvider(id={self.id}, code={self.code!r}, name={self.name!r}, "
            f"type={self.type}, status={self.status}, is_active={self.is_active})>"
        )


__all__ = [
    "PaymentProvider",
    "ProviderCategory",
    "ProviderStatus",
    "ProviderType",
    "DEFAULT_CURRENCY",
]
