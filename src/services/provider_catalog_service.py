"""Payment provider catalog service.

Provides methods for:
- Creating catalog entries (unique provider code)
- Filtered, paginated listing with case-insensitive search
- Lookup by id or code
- Partial updates
- Deletion guarded against providers still bound to cooperatives
"""

import logging

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from src.models import CooperativePaymentProvider, PaymentProvider, utc_now
from src.schemas.payment_providers import (
    ProviderCreate,
    ProviderFilter,
    ProviderPage,
    ProviderResponse,
    ProviderUpdate,
)
from src.services.errors import ConflictError, InUseError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

# NOT NULL columns: an explicit None in a patch means "leave as is"
_NON_NULLABLE = (
    "name",
    "supports_webhooks",
    "supports_cards",
    "supports_transfers",
    "supports_cash",
    "supports_recurring",
    "expiration_minutes",
    "confirmation_hours",
    "countries",
    "currencies",
    "status",
    "is_active",
)

# Boolean columns ProviderFilter may narrow on
_FLAG_FILTERS = (
    "is_active",
    "supports_webhooks",
    "supports_cards",
    "supports_transfers",
    "supports_cash",
    "supports_recurring",
)


def _like_pattern(term: str) -> str:
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class ProviderCatalogService:
    """Service for the payment provider registry.

    Encapsulates all PaymentProvider CRUD operations. The unique constraint on
    ``code`` is the final arbiter for concurrent creates.
    """

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def create(self, data: ProviderCreate) -> PaymentProvider:
        """Create a catalog entry.

        Args:
            data: Validated provider payload

        Returns:
            Created PaymentProvider

        Raises:
            ConflictError: If a provider with the same code already exists
        """
        existing = self.db.query(PaymentProvider).filter_by(code=data.code).first()
        if existing:
            logger.warning(f"Duplicate provider code rejected: {data.code}")
            raise ConflictError(
                f"A provider with code '{data.code}' already exists", code="duplicate_code"
            )

        provider = PaymentProvider(**data.model_dump())
        try:
            self.db.add(provider)
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.warning(f"Concurrent create lost for provider code {data.code}: {e.orig}")
            raise ConflictError(
                f"A provider with code '{data.code}' already exists", code="duplicate_code"
            ) from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error creating provider {data.code}: {e}")
            raise

        self.db.refresh(provider)
        logger.info(f"Created payment provider: {provider.code} (ID={provider.id})")
        return provider

    def list_providers(self, filters: ProviderFilter | None = None) -> ProviderPage:
        """List catalog entries matching filters.

        Args:
            filters: Type/status/flag filters, search term, page and ordering

        Returns:
            ProviderPage with the requested page and the unpaged total
        """
        filters = filters or ProviderFilter()
        query = self.db.query(PaymentProvider)

        if filters.type is not None:
            query = query.filter(PaymentProvider.type == filters.type.value)
        if filters.status is not None:
            query = query.filter(PaymentProvider.status == filters.status.value)
        for flag in _FLAG_FILTERS:
            value = getattr(filters, flag)
            if value is not None:
                query = query.filter(getattr(PaymentProvider, flag).is_(value))

        if filters.search:
            pattern = _like_pattern(filters.search.lower())
            query = query.filter(
                or_(
                    func.lower(PaymentProvider.name).like(pattern, escape="\\"),
                    func.lower(PaymentProvider.code).like(pattern, escape="\\"),
                    func.lower(PaymentProvider.description).like(pattern, escape="\\"),
                )
            )

        total = query.count()

        column = getattr(PaymentProvider, filters.sort_field)
        ordering = column.desc() if filters.sort_dir == "desc" else column.asc()
        items = (
            query.order_by(ordering, PaymentProvider.id.asc())
            .offset((filters.page - 1) * filters.size)
            .limit(filters.size)
            .all()
        )

        return ProviderPage(
            items=[ProviderResponse.model_validate(p) for p in items],
            total=total,
            page=filters.page,
            size=filters.size,
        )

    def get_by_id(self, provider_id: int) -> PaymentProvider:
        """Get provider by ID.

        Raises:
            NotFoundError: If no provider has this ID
        """
        provider = self.db.query(PaymentProvider).filter(PaymentProvider.id == provider_id).first()
        if not provider:
            raise NotFoundError(f"Payment provider not found: {provider_id}")
        return provider

    def get_by_code(self, code: str) -> PaymentProvider:
        """Get provider by its unique code.

        Raises:
            NotFoundError: If no provider has this code
        """
        provider = self.db.query(PaymentProvider).filter(PaymentProvider.code == code).first()
        if not provider:
            raise NotFoundError(f"Payment provider not found: {code}")
        return provider

    def update(self, provider_id: int, patch: ProviderUpdate) -> PaymentProvider:
        """Merge the fields set in ``patch`` into the provider.

        Args:
            provider_id: Provider to update
            patch: Partial update; unset fields and None on required columns are ignored

        Returns:
            Updated PaymentProvider

        Raises:
            NotFoundError: If the provider does not exist
            ValidationError: If the merged amount limits are inconsistent
        """
        provider = self.get_by_id(provider_id)
        changes = patch.model_dump(exclude_unset=True)

        for name in _NON_NULLABLE:
            if name in changes and changes[name] is None:
                del changes[name]

        min_amount = changes.get("min_amount", provider.min_amount)
        max_amount = changes.get("max_amount", provider.max_amount)
        if min_amount is not None and max_amount is not None and min_amount > max_amount:
            raise ValidationError("min_amount must not exceed max_amount")

        for field, value in changes.items():
            setattr(provider, field, value)
        provider.updated_at = utc_now()

        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error updating provider {provider_id}: {e}")
            raise

        self.db.refresh(provider)
        logger.info(f"Updated payment provider: {provider.code} fields={sorted(changes)}")
        return provider

    def delete(self, provider_id: int) -> None:
        """Remove a provider that no cooperative uses.

        Raises:
            NotFoundError: If the provider does not exist
            InUseError: If at least one binding references the provider
        """
        provider = self.get_by_id(provider_id)

        in_use = (
            self.db.query(func.count(CooperativePaymentProvider.id))
            .filter(CooperativePaymentProvider.provider_id == provider_id)
            .scalar()
        )
        if in_use:
            logger.warning(f"Refused to delete provider {provider.code}: used by {in_use} binding(s)")
            raise InUseError(
                f"Provider '{provider.code}' cannot be deleted: "
                f"it is used by {in_use} cooperative(s)"
            )

        try:
            self.db.delete(provider)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Error deleting provider {provider_id}: {e}")
            raise

        logger.info(f"Deleted payment provider: {provider_id}")


__all__ = ["ProviderCatalogService"]
