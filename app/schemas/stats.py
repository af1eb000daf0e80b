# app/schemas/stats.py
import uuid

from pydantic import ConfigDict
from sqlmodel import SQLModel


class StoreOrderStats(SQLModel):
    """
    Order counters for the merchant dashboard.
    """

    model_config = ConfigDict(extra="forbid")

    store_id: uuid.UUID
    pending_count: int
    by_status: dict[str, int]
    total_orders: int
    total_revenue: float


class PendingCount(SQLModel):
    store_id: uuid.UUID
    pending_count: int
