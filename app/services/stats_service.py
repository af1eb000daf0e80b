# app/services/stats_service.py
import uuid

from sqlmodel import Session

from app.core.errors import NotFoundError
from app.repositories.stats_repo import StatsRepository
from app.repositories.store_repo import StoreRepository
from app.schemas.stats import StoreOrderStats


class StatsService:
    """
    Order counters of the caller's store.
    """

    def __init__(self, repo: StatsRepository, store_repo: StoreRepository):
        self.repo = repo
        self.store_repo = store_repo

    def get_store_id(self, session: Session, actor_id: uuid.UUID) -> uuid.UUID:
        store = self.store_repo.get_by_merchant(session, actor_id)
        if store is None:
            raise NotFoundError("Store not found for this account")
        return store.id

    def get_store_order_stats(self, session: Session, actor_id: uuid.UUID) -> StoreOrderStats:
        store_id = self.get_store_id(session, actor_id)

        by_status = self.repo.count_by_status(session, store_id)

        return StoreOrderStats(
            store_id=store_id,
            pending_count=by_status.get("pending", 0),
            by_status=by_status,
            total_orders=sum(by_status.values()),
            total_revenue=self.repo.total_revenue(session, store_id),
        )

    def count_pending(self, session: Session, store_id: uuid.UUID) -> int:
        """Authoritative pending count, for reconciling event-driven counters."""
        return self.repo.count_pending(session, store_id)
