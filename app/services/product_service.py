# app/services/product_service.py
import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.core.errors import ConflictError, DependencyError, NotFoundError
from app.models.product import IN_STOCK_QUANTITY, OUT_OF_STOCK_QUANTITY, Product
from app.models.store import Store, UNLIMITED
from app.repositories.product_repo import ProductRepository
from app.repositories.store_repo import StoreRepository
from app.schemas.product import ProductCreate, ProductUpdate, VariantsUpdate
from app.services.variants import apply_variants

logger = logging.getLogger(__name__)


def stock_for(is_available: bool) -> int:
    return IN_STOCK_QUANTITY if is_available else OUT_OF_STOCK_QUANTITY


class ProductService:
    """
    Business logic for a merchant's catalog.

    Responsibilities:
      - scope every operation to the caller's store
      - plan product cap
      - availability flag <-> mock stock quantity
      - variant options and their regenerated combinations
    """

    def __init__(self, repo: ProductRepository, store_repo: StoreRepository):
        self.repo = repo
        self.store_repo = store_repo

    # ----- Helpers -----

    def _get_store(self, session: Session, actor_id: uuid.UUID) -> Store:
        store = self.store_repo.get_by_merchant(session, actor_id)
        if store is None:
            raise NotFoundError("Store not found for this account")
        return store

    def _save(self, session: Session, product: Product) -> Product:
        try:
            return self.repo.update(session, product)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Failed to save product %s", product.id)
            raise DependencyError("Failed to save the product") from exc

    # ----- Products -----

    def list_products(
        self,
        session: Session,
        actor_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Product]:
        store = self._get_store(session, actor_id)
        return self.repo.list_for_store(session, store.id, skip=skip, limit=limit)

    def get_product(self, session: Session, actor_id: uuid.UUID, product_id: uuid.UUID) -> Product:
        store = self._get_store(session, actor_id)
        product = self.repo.get_for_store(session, store.id, product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return product

    def create_product(
        self,
        session: Session,
        actor_id: uuid.UUID,
        payload: ProductCreate,
    ) -> Product:
        """
        Create a product in the caller's store.

        Raises:
            ConflictError: the plan's product cap is reached.
        """
        store = self._get_store(session, actor_id)
        plan = self.store_repo.get_plan(session, store.plan_id)
        cap = plan.max_products if plan else UNLIMITED
        if cap != UNLIMITED and self.repo.count_for_store(session, store.id) >= cap:
            raise ConflictError(f"Your plan allows at most {cap} product(s)")

        product = Product(
            store_id=store.id,
            section_id=payload.section_id,
            name=payload.name,
            description=payload.description,
            price=payload.price,
            stock_quantity=stock_for(payload.is_available),
            out_of_stock_behavior=payload.out_of_stock_behavior,
            attributes={},
        )
        try:
            product = self.repo.create(session, product)
        except SQLAlchemyError as exc:
            session.rollback()
            logger.exception("Failed to create product in store %s", store.id)
            raise DependencyError("Failed to save the product") from exc

        logger.info("Product %s created in store %s", product.id, store.id)
        return product

    def update_product(
        self,
        session: Session,
        actor_id: uuid.UUID,
        product_id: uuid.UUID,
        payload: ProductUpdate,
    ) -> Product:
        """
        Partial update of a product.
        """
        product = self.get_product(session, actor_id, product_id)

        if payload.name is not None:
            product.name = payload.name

        if payload.description is not None:
            product.description = payload.description

        if payload.price is not None:
            product.price = payload.price

        if payload.section_id is not None:
            product.section_id = payload.section_id

        if payload.is_available is not None:
            product.stock_quantity = stock_for(payload.is_available)

        if payload.out_of_stock_behavior is not None:
            product.out_of_stock_behavior = payload.out_of_stock_behavior

        return self._save(session, product)

    def delete_product(
        self,
        session: Session,
        actor_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> None:
        """
        Soft delete: past orders keep their snapshot, the catalog stops
        offering the product.
        """
        product = self.get_product(session, actor_id, product_id)
        product.deleted_at = datetime.now(timezone.utc)
        self._save(session, product)

    # ----- Variants -----

    def set_variants(
        self,
        session: Session,
        actor_id: uuid.UUID,
        product_id: uuid.UUID,
        payload: VariantsUpdate,
    ) -> Product:
        """
        Replace the variant options and regenerate combinations.

        Price overrides of combinations that still exist are carried over;
        `payload.prices` is applied on top.
        """
        product = self.get_product(session, actor_id, product_id)
        product.attributes = apply_variants(product.attributes, payload.options, payload.prices)
        product = self._save(session, product)

        logger.info(
            "Product %s variants saved: %d combination(s)",
            product.id,
            len(product.attributes.get("variantCombinations", [])),
        )
        return product
