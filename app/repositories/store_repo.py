# app/repositories/store_repo.py
import uuid

from sqlmodel import Session, select

from app.models.store import Store, SubscriptionPlan


class StoreRepository:
    """
    Data access layer for stores and subscription plans.

    NOTE:
      - No commits here; provisioning and settings updates decide when
        to commit or roll back.
    """

    # ---- Stores ----

    def get_by_id(self, session: Session, store_id: uuid.UUID) -> Store | None:
        return session.get(Store, store_id)

    def get_by_slug(self, session: Session, slug: str) -> Store | None:
        stmt = select(Store).where(Store.slug == slug)
        return session.exec(stmt).first()

    def get_by_merchant(self, session: Session, merchant_id: uuid.UUID) -> Store | None:
        stmt = select(Store).where(Store.merchant_id == merchant_id)
        return session.exec(stmt).first()

    def list_all(
        self,
        session: Session,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Store]:
        stmt = select(Store).order_by(Store.created_at.desc()).offset(skip).limit(limit)
        return list(session.exec(stmt).all())

    def create(self, session: Session, store: Store) -> Store:
        """
        Insert a Store without committing, but ensure id is populated.

        A duplicate slug surfaces here as IntegrityError.
        """
        session.add(store)
        session.flush()
        session.refresh(store)
        return store

    def update(self, session: Session, store: Store) -> Store:
        session.add(store)
        session.flush()
        session.refresh(store)
        return store

    # ---- Plans ----

    def get_plan(self, session: Session, plan_id: uuid.UUID | None) -> SubscriptionPlan | None:
        if plan_id is None:
            return None
        return session.get(SubscriptionPlan, plan_id)

    def get_plan_by_name(self, session: Session, name_en: str) -> SubscriptionPlan | None:
        stmt = select(SubscriptionPlan).where(SubscriptionPlan.name_en == name_en)
        return session.exec(stmt).first()
