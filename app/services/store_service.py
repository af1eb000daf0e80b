# app/services/store_service.py
import logging
import re
import uuid

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session

from app.core.config import get_settings
from app.core.errors import (
    ConflictError,
    DependencyError,
    NotFoundError,
    ValidationError,
    is_unique_violation,
)
from app.models.store import Store, UNLIMITED
from app.repositories.store_repo import StoreRepository
from app.schemas.merchant import SLUG_PATTERN
from app.schemas.store import (
    CityFeeRead,
    DeliveryOptionsRead,
    DeliverySettingsRead,
    DeliverySettingsUpdate,
)
from app.services.delivery_zones import (
    ZonedConfig,
    dump_zoned_config,
    is_free_delivery,
    migrate_to_zones,
    parse_zone_config,
    serviced_cities,
)

settings = get_settings()
logger = logging.getLogger(__name__)

SLUG_MIN_LENGTH = 3
SLUG_MAX_LENGTH = 50
SLUG_ALREADY_CHANGED = "The store link can only be changed once"


class StoreService:
    """
    Merchant-side store settings and the public delivery options.

    All merchant operations act on the caller's own store; the store is
    looked up from the caller id, never taken from the request.
    """

    def __init__(self, repo: StoreRepository):
        self.repo = repo

    # ----- Helpers -----

    def get_merchant_store(self, session: Session, actor_id: uuid.UUID) -> Store:
        store = self.repo.get_by_merchant(session, actor_id)
        if store is None:
            raise NotFoundError("Store not found for this account")
        return store

    def _save(self, session: Session, store: Store, action: str) -> Store:
        try:
            self.repo.update(session, store)
            session.commit()
            session.refresh(store)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Failed to %s for store %s", action, store.id)
            raise DependencyError(f"Failed to {action}") from exc
        return store

    # ----- Slug -----

    def change_slug(self, session: Session, actor_id: uuid.UUID, new_slug: str) -> Store:
        """
        One-time change of the store's public link.

        Raises:
            ValidationError: bad format, or same as the current slug.
            ConflictError: already changed once, or taken by another store.
        """
        store = self.get_merchant_store(session, actor_id)
        slug = (new_slug or "").strip()

        if store.slug_changed:
            raise ConflictError(SLUG_ALREADY_CHANGED)
        if not SLUG_MIN_LENGTH <= len(slug) <= SLUG_MAX_LENGTH:
            raise ValidationError(
                f"Slug must be between {SLUG_MIN_LENGTH} and {SLUG_MAX_LENGTH} characters"
            )
        if not re.fullmatch(SLUG_PATTERN, slug):
            raise ValidationError(
                "Slug may only contain lowercase letters, digits and hyphens"
            )
        if slug == store.slug:
            raise ValidationError("This is already your store link")

        existing = self.repo.get_by_slug(session, slug)
        if existing is not None and existing.id != store.id:
            raise ConflictError("This store link is already taken")

        old_slug = store.slug
        store.slug = slug
        store.slug_changed = True

        try:
            self.repo.update(session, store)
            session.commit()
            session.refresh(store)
        except IntegrityError as exc:
            session.rollback()
            if is_unique_violation(exc):
                raise ConflictError("This store link is already taken") from exc
            logger.exception("Failed to change slug of store %s", store.id)
            raise DependencyError("Failed to change the store link") from exc
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Failed to change slug of store %s", store.id)
            raise DependencyError("Failed to change the store link") from exc

        logger.info("Store %s slug changed %s -> %s", store.id, old_slug, slug)
        return store

    # ----- Delivery -----

    def get_delivery_settings(self, session: Session, actor_id: uuid.UUID) -> DeliverySettingsRead:
        """Current configuration, presented in the zoned shape whatever is stored."""
        store = self.get_merchant_store(session, actor_id)
        config = migrate_to_zones(
            parse_zone_config(
                store.delivery_fees,
                default_capital_fee=settings.LEGACY_CAPITAL_FEE,
                default_provinces_fee=settings.LEGACY_PROVINCES_FEE,
            ),
            default_capital_fee=settings.LEGACY_CAPITAL_FEE,
        )
        return DeliverySettingsRead(zones=config.zones, is_free_delivery=config.is_free_delivery)

    def update_delivery_zones(
        self,
        session: Session,
        actor_id: uuid.UUID,
        payload: DeliverySettingsUpdate,
    ) -> DeliverySettingsRead:
        """
        Replace the store's delivery configuration (always saved zoned).

        Raises:
            ValidationError: duplicate zone ids, or a city in two zones.
            ConflictError: more zones than the plan allows.
        """
        store = self.get_merchant_store(session, actor_id)
        plan = self.repo.get_plan(session, store.plan_id)
        cap = plan.max_delivery_zones if plan else UNLIMITED
        if cap != UNLIMITED and len(payload.zones) > cap:
            raise ConflictError(f"Your plan allows at most {cap} delivery zone(s)")

        zone_ids: set[str] = set()
        owner: dict[str, str] = {}
        for zone in payload.zones:
            if zone.id is not None and zone.id in zone_ids:
                raise ValidationError(f"Duplicate zone id {zone.id}")
            zone_ids.add(zone.id)
            for city in zone.cities:
                if city in owner:
                    raise ValidationError(
                        f"{city} is already in zone {owner[city]}"
                    )
                owner[city] = zone.name or zone.id or "another"

        config = ZonedConfig(zones=payload.zones, is_free_delivery=payload.is_free_delivery)
        store.delivery_fees = dump_zoned_config(config)
        self._save(session, store, "update delivery settings")

        logger.info(
            "Store %s delivery settings saved: %d zone(s), free=%s",
            store.id,
            len(config.zones),
            config.is_free_delivery,
        )
        return DeliverySettingsRead(zones=config.zones, is_free_delivery=config.is_free_delivery)

    def get_delivery_options(self, session: Session, slug: str) -> DeliveryOptionsRead:
        """Cities a storefront checkout can deliver to, with their fees."""
        store = self.repo.get_by_slug(session, slug.strip())
        if store is None or not store.is_active:
            raise NotFoundError("Store not found")

        config = parse_zone_config(
            store.delivery_fees,
            default_capital_fee=settings.LEGACY_CAPITAL_FEE,
            default_provinces_fee=settings.LEGACY_PROVINCES_FEE,
        )
        plan = self.repo.get_plan(session, store.plan_id)
        free = is_free_delivery(config) or bool(plan and plan.free_delivery_all_zones)

        return DeliveryOptionsRead(
            store_id=store.id,
            currency=store.currency,
            is_free_delivery=free,
            cities=[
                CityFeeRead(city=city, fee=0.0 if free else fee)
                for city, fee in serviced_cities(config)
            ],
        )
