# app/routers/stats.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from app.core.auth import require_merchant
from app.core.events import get_event_bus
from app.database import get_session
from app.models.profile import Profile
from app.repositories.stats_repo import StatsRepository
from app.repositories.store_repo import StoreRepository
from app.schemas.stats import PendingCount, StoreOrderStats
from app.services.order_status import PendingOrderCounter
from app.services.stats_service import StatsService

router = APIRouter(prefix="/stats", tags=["Stats"])

service = StatsService(StatsRepository(), StoreRepository())

# Live pending badge, fed by order events
pending_counter = PendingOrderCounter()
get_event_bus().subscribe(pending_counter)


@router.get("/orders", response_model=StoreOrderStats)
def get_order_stats(
    session: Session = Depends(get_session),
    current: Profile = Depends(require_merchant),
):
    """
    Order counters and revenue of the caller's store.

    Revenue excludes cancelled and returned orders. The live pending
    counter is reset to this authoritative count.
    """
    stats = service.get_store_order_stats(session, current.id)
    pending_counter.reconcile(stats.store_id, lambda _: stats.pending_count)
    return stats


@router.get("/pending", response_model=PendingCount)
def get_pending_count(
    session: Session = Depends(get_session),
    current: Profile = Depends(require_merchant),
):
    """
    Pending orders of the caller's store from the live counter.

    The first read for a store is taken from the database.
    """
    store_id = service.get_store_id(session, current.id)
    if not pending_counter.is_tracked(store_id):
        pending_counter.reconcile(store_id, lambda sid: service.count_pending(session, sid))
    return PendingCount(store_id=store_id, pending_count=pending_counter.get(store_id))
