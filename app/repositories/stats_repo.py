# app/repositories/stats_repo.py
import uuid

from sqlalchemy import func
from sqlmodel import Session, select

from app.models.order import Order

# Orders that never turned into revenue
NON_REVENUE_STATUSES = ("cancelled", "returned")


class StatsRepository:
    """
    Read-only aggregated order queries for the merchant dashboard.

    These are the authoritative reads that event-driven counters
    reconcile against.
    """

    def count_by_status(self, session: Session, store_id: uuid.UUID) -> dict[str, int]:
        stmt = (
            select(Order.status, func.count(Order.id))
            .where(Order.store_id == store_id, Order.deleted_at.is_(None))
            .group_by(Order.status)
        )
        return {status: int(count or 0) for status, count in session.exec(stmt).all()}

    def count_pending(self, session: Session, store_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(Order)
            .where(
                Order.store_id == store_id,
                Order.status == "pending",
                Order.deleted_at.is_(None),
            )
        )
        value = session.exec(stmt).one()
        return int(value or 0)

    def total_revenue(self, session: Session, store_id: uuid.UUID) -> float:
        """
        Sum of total_price for orders that were not cancelled or returned.
        """
        stmt = select(func.coalesce(func.sum(Order.total_price), 0.0)).where(
            Order.store_id == store_id,
            Order.status.not_in(NON_REVENUE_STATUSES),
            Order.deleted_at.is_(None),
        )
        value = session.exec(stmt).one()
        return float(value or 0.0)
