"""SQLAlchemy base model with common fields and model exports."""

from datetime import datetime, timezone

from sqlalchemy import DateTime
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

# Base class for all models
Base = declarative_base()


def utc_now() -> datetime:
    """Current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


class BaseModel:
    """Base model with common timestamp fields."""

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        onupdate=utc_now,
        nullable=False,
    )


# Import models to register them with Base (after Base is defined)
# This must be after Base declaration to avoid circular imports
from src.models.payment_provider import (  # noqa: E402
    PaymentProvider,
    ProviderCategory,
    ProviderStatus,
    ProviderType,
)
from src.models.cooperative_provider import (  # noqa: E402
    ConnectivityStatus,
    CooperativePaymentProvider,
)

__all__ = [
    "Base",
    "BaseModel",
    "utc_now",
    "PaymentProvider",
    "ProviderCategory",
    "ProviderStatus",
    "ProviderType",
    "CooperativePaymentProvider",
    "ConnectivityStatus",
]
