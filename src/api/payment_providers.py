"""Payment provider API endpoints.

Handles:
- Provider catalog management (create, list, get, update, delete)
- Per-cooperative provider configuration (configure, get, update, disable)
- Connectivity verification
- Usage statistics

No endpoint returns credential material: responses are built from
ProviderResponse / BindingResponse, which declare no secret fields.
"""

import logging
from functools import lru_cache
from typing import Annotated

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from src.api.errors import raise_app_error
from src.schemas.payment_providers import (
    BindingCreate,
    BindingResponse,
    BindingUpdate,
    ConnectivityResult,
    ProviderCreate,
    ProviderFilter,
    ProviderPage,
    ProviderResponse,
    ProviderStatistics,
    ProviderUpdate,
    StatisticsFilter,
)
from src.services import get_db
from src.services.config import get_settings
from src.services.connectivity_service import (
    ConnectivityCheck,
    ConnectivityCheckRegistry,
    ConnectivityService,
)
from src.services.cooperative_provider_service import CooperativeProviderService
from src.services.credential_vault import CredentialVault, build_vault
from src.services.errors import AppError
from src.services.provider_catalog_service import ProviderCatalogService
from src.services.provider_statistics_service import ProviderStatisticsService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/payment-providers", tags=["payment-providers"])


# ============================================
# Dependencies
# ============================================


@lru_cache
def get_vault() -> CredentialVault:
    """Process-wide vault built from settings (key derived once)."""
    return build_vault(get_settings())


_default_checks = ConnectivityCheckRegistry()


def get_connectivity_check() -> ConnectivityCheck:
    """Connectivity check used by the verify endpoint."""
    return _default_checks


def get_binding_service(
    db: Session = Depends(get_db),
    vault: CredentialVault = Depends(get_vault),
) -> CooperativeProviderService:
    return CooperativeProviderService(db, vault)


# ============================================
# Provider catalog
# ============================================


@router.post("", response_model=ProviderResponse, status_code=status.HTTP_201_CREATED)
def create_provider(payload: ProviderCreate, db: Session = Depends(get_db)) -> ProviderResponse:
    """Create a catalog entry.

    Returns:
        201: Created provider
        409: Provider code already exists
    """
    try:
        provider = ProviderCatalogService(db).create(payload)
    except AppError as e:
        raise_app_error(e)
    return ProviderResponse.model_validate(provider)


@router.get("", response_model=ProviderPage)
def list_providers(
    filters: Annotated[ProviderFilter, Query()],
    db: Session = Depends(get_db),
) -> ProviderPage:
    """List catalog entries with filters and pagination."""
    page = ProviderCatalogService(db).list_providers(filters)
    logger.debug(f"Listed {len(page.items)} of {page.total} providers")
    return page


@router.get("/code/{code}", response_model=ProviderResponse)
def get_provider_by_code(code: str, db: Session = Depends(get_db)) -> ProviderResponse:
    """Get a provider by its unique code."""
    try:
        provider = ProviderCatalogService(db).get_by_code(code)
    except AppError as e:
        raise_app_error(e)
    return ProviderResponse.model_validate(provider)


@router.get("/{provider_id}", response_model=ProviderResponse)
def get_provider(provider_id: int, db: Session = Depends(get_db)) -> ProviderResponse:
    """Get a provider by ID."""
    try:
        provider = ProviderCatalogService(db).get_by_id(provider_id)
    except AppError as e:
        raise_app_error(e)
    return ProviderResponse.model_validate(provider)


@router.put("/{provider_id}", response_model=ProviderResponse)
def update_provider(
    provider_id: int,
    payload: ProviderUpdate,
    db: Session = Depends(get_db),
) -> ProviderResponse:
    """Partially update a provider."""
    try:
        provider = ProviderCatalogService(db).update(provider_id, payload)
    except AppError as e:
        raise_app_error(e)
    return ProviderResponse.model_validate(provider)


@router.delete("/{provider_id}")
def delete_provider(provider_id: int, db: Session = Depends(get_db)) -> dict:
    """Delete an unused provider.

    Returns:
        200: Deleted
        404: Provider not found
        409: Provider still used by cooperatives
    """
    try:
        ProviderCatalogService(db).delete(provider_id)
    except AppError as e:
        raise_app_error(e)
    return {"success": True, "message": "Payment provider deleted"}


# ============================================
# Cooperative configuration
# ============================================


@router.post(
    "/cooperatives/{cooperative_id}/configuration",
    response_model=BindingResponse,
    status_code=status.HTTP_201_CREATED,
)
def configure_cooperative_provider(
    cooperative_id: str,
    payload: BindingCreate,
    service: CooperativeProviderService = Depends(get_binding_service),
) -> BindingResponse:
    """Configure the cooperative's payment provider.

    Returns:
        201: Binding (without credentials)
        404: Provider not found
        409: Cooperative already has a provider configured
    """
    try:
        return service.configure(cooperative_id, payload)
    except AppError as e:
        raise_app_error(e)


@router.get(
    "/cooperatives/{cooperative_id}/configuration",
    response_model=BindingResponse | None,
)
def get_cooperative_provider(
    cooperative_id: str,
    service: CooperativeProviderService = Depends(get_binding_service),
) -> BindingResponse | None:
    """Get the cooperative's configuration, or null if none exists."""
    return service.get_public(cooperative_id)


@router.put(
    "/cooperatives/{cooperative_id}/configuration",
    response_model=BindingResponse,
)
def update_cooperative_provider(
    cooperative_id: str,
    payload: BindingUpdate,
    service: CooperativeProviderService = Depends(get_binding_service),
) -> BindingResponse:
    """Partially update the cooperative's configuration."""
    try:
        return service.update(cooperative_id, payload)
    except AppError as e:
        raise_app_error(e)


@router.delete("/cooperatives/{cooperative_id}/configuration")
def disable_cooperative_provider(
    cooperative_id: str,
    service: CooperativeProviderService = Depends(get_binding_service),
) -> dict:
    """Soft-disable the cooperative's configuration."""
    try:
        service.disable(cooperative_id)
    except AppError as e:
        raise_app_error(e)
    return {"success": True, "message": "Payment provider disabled"}


@router.post(
    "/cooperatives/{cooperative_id}/verify-connection",
    response_model=ConnectivityResult,
)
def verify_connection(
    cooperative_id: str,
    service: CooperativeProviderService = Depends(get_binding_service),
    check: ConnectivityCheck = Depends(get_connectivity_check),
) -> ConnectivityResult:
    """Probe the provider and record the connectivity state."""
    return ConnectivityService(service, check).verify(cooperative_id)


@router.get(
    "/cooperatives/{cooperative_id}/statistics",
    response_model=ProviderStatistics,
)
def get_statistics(
    cooperative_id: str,
    filters: Annotated[StatisticsFilter, Query()],
    db: Session = Depends(get_db),
) -> ProviderStatistics:
    """Usage statistics for the cooperative's provider."""
    return ProviderStatisticsService(db).summarize(cooperative_id, filters)
