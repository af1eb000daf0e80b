# app/services/merchant_service.py
import logging
import uuid
from datetime import date, datetime, time, timezone

from dateutil.relativedelta import relativedelta
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from app.core.auth import ROLE_MERCHANT, ROLE_SUPER_ADMIN
from app.core.config import get_settings
from app.core.errors import (
    AuthorizationError,
    ConflictError,
    DependencyError,
    DomainError,
    NotFoundError,
    is_unique_violation,
)
from app.core.identity import IdentityService
from app.core.saga import Saga, SagaContext
from app.models.profile import Profile
from app.models.store import Store
from app.repositories.profile_repo import ProfileRepository
from app.repositories.store_repo import StoreRepository
from app.schemas.merchant import MerchantRegistration, StorePlanUpdate

settings = get_settings()
logger = logging.getLogger(__name__)

SLUG_TAKEN_MESSAGE = "This store link (slug) is already taken, please choose another"


def add_months(start: date, months: int) -> date:
    """Calendar month arithmetic; the day is clamped to the target month's end."""
    return start + relativedelta(months=months)


def subscription_window(start: date, months: int) -> tuple[datetime, datetime]:
    """(plan_started_at, plan_expires_at) as UTC midnights."""
    started = datetime.combine(start, time.min, tzinfo=timezone.utc)
    expires = datetime.combine(add_months(start, months), time.min, tzinfo=timezone.utc)
    return started, expires


class MerchantService:
    """
    Admin-side merchant onboarding and plan management.

    Provisioning spans Supabase Auth and Postgres, so it cannot be one DB
    transaction. It runs as a saga:

      A. create identity          (compensation: delete identity)
      B. upsert profile           (compensation: roll back the session)
      C. insert store
      D. commit

    A failure in B, C or D leaves no account behind.
    """

    def __init__(
        self,
        store_repo: StoreRepository,
        profile_repo: ProfileRepository,
        identity: IdentityService,
    ):
        self.store_repo = store_repo
        self.profile_repo = profile_repo
        self.identity = identity

    # ----- Provisioning -----

    def provision_merchant(
        self,
        session: Session,
        actor: Profile | None,
        payload: MerchantRegistration,
    ) -> Store:
        if actor is None or actor.role != ROLE_SUPER_ADMIN:
            raise AuthorizationError()

        plan_started_at, plan_expires_at = subscription_window(
            payload.start_date, payload.subscription_duration
        )
        plan = self.store_repo.get_plan_by_name(session, payload.subscription_type)

        def create_identity(ctx: SagaContext) -> uuid.UUID:
            return self.identity.create_user(
                email=payload.email,
                password=payload.password,
                full_name=payload.owner_name,
            )

        def delete_identity(ctx: SagaContext) -> None:
            logger.info("Rolling back: deleting identity %s", ctx["identity"])
            self.identity.delete_user(ctx["identity"])

        def upsert_profile(ctx: SagaContext) -> Profile:
            profile = Profile(
                id=ctx["identity"],
                full_name=payload.owner_name,
                role=ROLE_MERCHANT,
                phone_number=payload.phone,
            )
            try:
                return self.profile_repo.upsert(session, profile)
            except SQLAlchemyError as exc:
                logger.exception("Profile upsert failed for %s", ctx["identity"])
                raise DependencyError("Failed to create the merchant profile") from exc

        def discard_session(ctx: SagaContext) -> None:
            session.rollback()

        def insert_store(ctx: SagaContext) -> Store:
            store = Store(
                merchant_id=ctx["identity"],
                name=payload.store_name,
                slug=payload.slug,
                category=payload.category,
                subscription_type=payload.subscription_type,
                plan_id=plan.id if plan else None,
                plan_started_at=plan_started_at,
                plan_expires_at=plan_expires_at,
                currency=settings.DEFAULT_CURRENCY,
                is_active=True,
            )
            try:
                return self.store_repo.create(session, store)
            except IntegrityError as exc:
                if is_unique_violation(exc):
                    raise ConflictError(SLUG_TAKEN_MESSAGE) from exc
                logger.exception("Store insert failed for slug %s", payload.slug)
                raise DependencyError("Failed to create the store") from exc
            except SQLAlchemyError as exc:
                logger.exception("Store insert failed for slug %s", payload.slug)
                raise DependencyError("Failed to create the store") from exc

        def commit(ctx: SagaContext) -> None:
            try:
                session.commit()
            except IntegrityError as exc:
                if is_unique_violation(exc):
                    raise ConflictError(SLUG_TAKEN_MESSAGE) from exc
                raise DependencyError("Failed to save the merchant") from exc
            except SQLAlchemyError as exc:
                logger.exception("Commit failed while provisioning %s", payload.slug)
                raise DependencyError("Failed to save the merchant") from exc

        saga = (
            Saga("provision-merchant")
            .add_step("identity", create_identity, compensate=delete_identity)
            .add_step("profile", upsert_profile, compensate=discard_session)
            .add_step("store", insert_store)
            .add_step("commit", commit)
        )

        try:
            ctx = saga.run()
        except DomainError:
            raise
        except Exception as exc:
            logger.exception("Provisioning failed for slug %s", payload.slug)
            raise DependencyError("An unexpected error occurred during registration") from exc

        store: Store = ctx["store"]
        session.refresh(store)
        logger.info(
            "Provisioned merchant %s with store %s (%s)",
            store.merchant_id,
            store.id,
            store.slug,
        )
        return store

    # ----- Admin store management -----

    def check_slug_exists(self, session: Session, slug: str) -> bool:
        return self.store_repo.get_by_slug(session, slug.strip()) is not None

    def list_stores(self, session: Session, skip: int = 0, limit: int = 50) -> list[Store]:
        return self.store_repo.list_all(session, skip=skip, limit=limit)

    def update_store_plan(
        self,
        session: Session,
        store_id: uuid.UUID,
        payload: StorePlanUpdate,
    ) -> Store:
        """
        Move a store to `subscription_type` for `subscription_duration`
        months starting at `start_date`.
        """
        store = self.store_repo.get_by_id(session, store_id)
        if store is None:
            raise NotFoundError("Store not found")

        plan = self.store_repo.get_plan_by_name(session, payload.subscription_type)
        store.plan_started_at, store.plan_expires_at = subscription_window(
            payload.start_date, payload.subscription_duration
        )
        store.subscription_type = payload.subscription_type
        if plan is not None:
            store.plan_id = plan.id

        try:
            self.store_repo.update(session, store)
            session.commit()
            session.refresh(store)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Failed to update plan of store %s", store_id)
            raise DependencyError("Failed to update the plan") from exc
        return store
