# app/repositories/order_repo.py
import uuid
from datetime import datetime

from sqlalchemy import func
from sqlmodel import Session, select

from app.models.order import Order


class OrderRepository:
    """
    Data access layer for orders.

    NOTE:
      - No commits here; the service is responsible for calling
        session.commit() (or rollback on failure).
    """

    def get_by_id(self, session: Session, order_id: uuid.UUID) -> Order | None:
        return session.get(Order, order_id)

    def list_for_store(
        self,
        session: Session,
        store_id: uuid.UUID,
        statuses: list[str] | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Order]:
        stmt = select(Order).where(
            Order.store_id == store_id,
            Order.deleted_at.is_(None),
        )
        if statuses is not None:
            stmt = stmt.where(Order.status.in_(statuses))
        stmt = stmt.order_by(Order.created_at.desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def count_since(
        self,
        session: Session,
        store_id: uuid.UUID,
        since: datetime,
    ) -> int:
        """Orders created by the store at or after `since` (soft-deleted included)."""
        stmt = (
            select(func.count())
            .select_from(Order)
            .where(Order.store_id == store_id, Order.created_at >= since)
        )
        return int(session.exec(stmt).one() or 0)

    def create_order(self, session: Session, order: Order) -> Order:
        """
        Insert an Order without committing, but ensure id is populated.
        """
        session.add(order)
        session.flush()  # Assign PK
        session.refresh(order)
        return order

    def update_order(self, session: Session, order: Order) -> Order:
        session.add(order)
        session.flush()
        session.refresh(order)
        return order
