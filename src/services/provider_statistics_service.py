"""Usage statistics for a cooperative's payment provider."""

import logging

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from src.models import ConnectivityStatus, CooperativePaymentProvider
from src.schemas.payment_providers import ProviderStatistics, StatisticsFilter

logger = logging.getLogger(__name__)


class ProviderStatisticsService:
    """Read-only rollup of the usage counters stored on a binding.

    Counters are maintained by the settlement process; this service never
    computes or writes them.
    """

    def __init__(self, db: Session):
        """Initialize with database session."""
        self.db = db

    def summarize(
        self,
        cooperative_id: str,
        filters: StatisticsFilter | None = None,
    ) -> ProviderStatistics:
        """Summarize provider usage for a cooperative.

        Args:
            cooperative_id: Cooperative identifier
            filters: Accepted for API compatibility; the stored counters are
                already cumulative, so filters do not narrow the result

        Returns:
            ProviderStatistics; zeroed when the cooperative has no binding
        """
        try:
            binding = (
                self.db.query(CooperativePaymentProvider)
                .filter(CooperativePaymentProvider.cooperative_id == cooperative_id)
                .first()
            )
        except SQLAlchemyError as e:
            logger.error(f"Error loading statistics for cooperative {cooperative_id}: {e}")
            raise

        if not binding:
            logger.debug(f"No provider binding for cooperative {cooperative_id}; zeroed statistics")
            return ProviderStatistics()

        return ProviderStatistics(
            total_transactions=binding.transaction_count,
            total_amount_processed=binding.total_amount_processed,
            last_transaction_at=binding.last_transaction_at,
            connectivity_status=ConnectivityStatus(binding.connectivity_status),
            integrated_at=binding.integrated_at,
        )


__all__ = ["ProviderStatisticsService"]
