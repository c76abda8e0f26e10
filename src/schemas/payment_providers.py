"""Pydantic schemas for payment providers and cooperative bindings.

Input schemas validate shape only. Response schemas are the public boundary:
none of them declares a credential field, so secrets cannot leak through
serialization even when built from an ORM object.
"""

from datetime import date, datetime
from decimal import Decimal
from math import ceil
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, computed_field, model_validator

from src.models.cooperative_provider import ConnectivityStatus
from src.models.payment_provider import DEFAULT_CURRENCY, ProviderStatus, ProviderType


def _check_amount_range(min_amount: int | None, max_amount: int | None) -> None:
    if min_amount is not None and max_amount is not None and min_amount > max_amount:
        raise ValueError("min_amount must not exceed max_amount")


# ============================================
# Provider catalog
# ============================================


class ProviderCreate(BaseModel):
    """Payload for creating a catalog entry."""

    code: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=100)
    type: ProviderType
    description: str | None = Field(None, max_length=500)
    logo_url: str | None = None
    website_url: str | None = None
    api_base_url: str | None = None
    api_version: str | None = None
    documentation_url: str | None = None

    supports_webhooks: bool = False
    supports_cards: bool = True
    supports_transfers: bool = False
    supports_cash: bool = False
    supports_recurring: bool = False

    min_amount: int | None = Field(None, ge=0, description="Minor units")
    max_amount: int | None = Field(None, ge=0, description="Minor units")
    fee_percentage: Decimal | None = Field(None, ge=0, le=100, decimal_places=4)
    fixed_fee: int | None = Field(None, ge=0, description="Minor units")

    expiration_minutes: int = Field(60, ge=1, le=1440)
    confirmation_hours: int = Field(72, ge=1, le=168)

    countries: list[str] = Field(default_factory=list)
    currencies: list[str] = Field(default_factory=lambda: [DEFAULT_CURRENCY])

    status: ProviderStatus = ProviderStatus.ACTIVE
    is_active: bool = True

    @model_validator(mode="after")
    def _amounts(self) -> "ProviderCreate":
        _check_amount_range(self.min_amount, self.max_amount)
        return self


class ProviderUpdate(BaseModel):
    """Partial update of a catalog entry. Only fields explicitly set are applied."""

    name: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    logo_url: str | None = None
    website_url: str | None = None
    api_base_url: str | None = None
    api_version: str | None = None
    documentation_url: str | None = None

    supports_webhooks: bool | None = None
    supports_cards: bool | None = None
    supports_transfers: bool | None = None
    supports_cash: bool | None = None
    supports_recurring: bool | None = None

    min_amount: int | None = Field(None, ge=0)
    max_amount: int | None = Field(None, ge=0)
    fee_percentage: Decimal | None = Field(None, ge=0, le=100, decimal_places=4)
    fixed_fee: int | None = Field(None, ge=0)

    expiration_minutes: int | None = Field(None, ge=1, le=1440)
    confirmation_hours: int | None = Field(None, ge=1, le=168)

    countries: list[str] | None = None
    currencies: list[str] | None = None

    status: ProviderStatus | None = None
    is_active: bool | None = None

    @model_validator(mode="after")
    def _amounts(self) -> "ProviderUpdate":
        _check_amount_range(self.min_amount, self.max_amount)
        return self


class ProviderFilter(BaseModel):
    """Catalog listing filters, pagination and ordering."""

    type: ProviderType | None = None
    status: ProviderStatus | None = None
    is_active: bool | None = None
    supports_webhooks: bool | None = None
    supports_cards: bool | None = None
    supports_transfers: bool | None = None
    supports_cash: bool | None = None
    supports_recurring: bool | None = None
    search: str | None = Field(None, description="Substring of name, code or description")

    page: int = Field(1, ge=1)
    size: int = Field(20, ge=1, le=100)
    sort_field: Literal["name", "code", "type", "status", "created_at", "updated_at"] = "name"
    sort_dir: Literal["asc", "desc"] = "asc"


class ProviderResponse(BaseModel):
    """Public view of a catalog entry."""

    id: int
    code: str
    name: str
    type: ProviderType
    description: str | None = None
    logo_url: str | None = None
    website_url: str | None = None
    api_base_url: str | None = None
    api_version: str | None = None
    documentation_url: str | None = None
    supports_webhooks: bool
    supports_cards: bool
    supports_transfers: bool
    supports_cash: bool
    supports_recurring: bool
    min_amount: int | None = None
    max_amount: int | None = None
    fee_percentage: Decimal | None = None
    fixed_fee: int | None = None
    expiration_minutes: int
    confirmation_hours: int
    countries: list[str]
    currencies: list[str]
    status: ProviderStatus
    is_active: bool
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProviderPage(BaseModel):
    """One page of catalog entries."""

    items: list[ProviderResponse]
    total: int
    page: int
    size: int

    @computed_field
    @property
    def pages(self) -> int:
        """Total page count: ceil(total / size)."""
        return ceil(self.total / self.size) if self.size else 0


# ============================================
# Cooperative bindings
# ============================================


class BindingCreate(BaseModel):
    """Payload for configuring a cooperative's provider."""

    provider_id: int
    is_active: bool = True
    is_principal: bool = False
    test_environment: bool = True

    access_token: str = Field(..., repr=False, min_length=1, max_length=500)
    refresh_token: str | None = Field(None, repr=False, max_length=500)
    public_key: str | None = Field(None, repr=False, max_length=500)
    private_key: str | None = Field(None, repr=False, max_length=500)
    webhook_secret: str | None = Field(None, repr=False, max_length=200)

    webhook_url: str | None = None
    custom_config: dict[str, Any] = Field(default_factory=dict)

    min_amount: int | None = Field(None, ge=0)
    max_amount: int | None = Field(None, ge=0)
    additional_fee: Decimal | None = Field(None, ge=0, le=100, decimal_places=4)

    @model_validator(mode="after")
    def _amounts(self) -> "BindingCreate":
        _check_amount_range(self.min_amount, self.max_amount)
        return self


class BindingUpdate(BaseModel):
    """Partial update of a cooperative's binding. Unset fields are left untouched."""

    provider_id: int | None = None
    is_active: bool | None = None
    is_principal: bool | None = None
    test_environment: bool | None = None

    access_token: str | None = Field(None, repr=False, min_length=1, max_length=500)
    refresh_token: str | None = Field(None, repr=False, max_length=500)
    public_key: str | None = Field(None, repr=False, max_length=500)
    private_key: str | None = Field(None, repr=False, max_length=500)
    webhook_secret: str | None = Field(None, repr=False, max_length=200)

    webhook_url: str | None = None
    custom_config: dict[str, Any] | None = None

    min_amount: int | None = Field(None, ge=0)
    max_amount: int | None = Field(None, ge=0)
    additional_fee: Decimal | None = Field(None, ge=0, le=100, decimal_places=4)

    @model_validator(mode="after")
    def _amounts(self) -> "BindingUpdate":
        _check_amount_range(self.min_amount, self.max_amount)
        return self


class BindingResponse(BaseModel):
    """Public view of a binding. Credentials are never part of this schema."""

    id: int
    cooperative_id: str
    provider_id: int
    is_active: bool
    is_principal: bool
    test_environment: bool
    webhook_url: str | None = None
    custom_config: dict[str, Any] = Field(default_factory=dict)
    min_amount: int | None = None
    max_amount: int | None = None
    additional_fee: Decimal | None = None
    connectivity_status: ConnectivityStatus
    last_connection_at: datetime | None = None
    last_connection_error: str | None = None
    transaction_count: int
    total_amount_processed: int
    last_transaction_at: datetime | None = None
    integrated_at: datetime
    created_at: datetime
    updated_at: datetime
    provider: ProviderResponse | None = None

    model_config = ConfigDict(from_attributes=True)


# ============================================
# Connectivity and statistics
# ============================================


class ConnectivityResult(BaseModel):
    """Outcome of a connectivity probe."""

    connected: bool
    message: str
    details: dict[str, Any] | None = None


class StatisticsFilter(BaseModel):
    """Statistics query options."""

    date_from: date | None = None
    date_to: date | None = None
    grouping: Literal["day", "week", "month", "year"] = "month"
    include_fees: bool = False

    @model_validator(mode="after")
    def _range(self) -> "StatisticsFilter":
        if self.date_from and self.date_to and self.date_from > self.date_to:
            raise ValueError("date_from must not be after date_to")
        return self


class ProviderStatistics(BaseModel):
    """Usage rollup read from a cooperative's binding."""

    total_transactions: int = 0
    total_amount_processed: int = 0
    last_transaction_at: datetime | None = None
    connectivity_status: ConnectivityStatus = ConnectivityStatus.UNVERIFIED
    integrated_at: datetime | None = None


__all__ = [
    "ProviderCreate",
    "ProviderUpdate",
    "ProviderFilter",
    "ProviderResponse",
    "ProviderPage",
    "BindingCreate",
    "BindingUpdate",
    "BindingResponse",
    "ConnectivityResult",
    "StatisticsFilter",
    "ProviderStatistics",
]
