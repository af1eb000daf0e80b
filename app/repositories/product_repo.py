# app/repositories/product_repo.py
import uuid
from typing import Iterable

from sqlalchemy import func
from sqlmodel import Session, select

from app.models.product import Product


class ProductRepository:
    """
    Data access layer for Product.

    - Pure DB operations (CRUD + queries).
    - Soft-deleted rows (deleted_at set) are invisible to catalog reads.
    """

    def get_by_id(self, session: Session, product_id: uuid.UUID) -> Product | None:
        return session.get(Product, product_id)

    def get_for_store(
        self,
        session: Session,
        store_id: uuid.UUID,
        product_id: uuid.UUID,
    ) -> Product | None:
        stmt = select(Product).where(
            Product.id == product_id,
            Product.store_id == store_id,
            Product.deleted_at.is_(None),
        )
        return session.exec(stmt).first()

    def get_many_for_store(
        self,
        session: Session,
        store_id: uuid.UUID,
        product_ids: Iterable[uuid.UUID],
    ) -> list[Product]:
        """Catalog products of `store_id` among `product_ids`; unknown ids are simply absent."""
        ids = list(set(product_ids))
        if not ids:
            return []
        stmt = select(Product).where(
            Product.store_id == store_id,
            Product.id.in_(ids),
            Product.deleted_at.is_(None),
        )
        return list(session.exec(stmt).all())

    def list_for_store(
        self,
        session: Session,
        store_id: uuid.UUID,
        skip: int = 0,
        limit: int = 50,
    ) -> list[Product]:
        stmt = (
            select(Product)
            .where(Product.store_id == store_id, Product.deleted_at.is_(None))
            .order_by(Product.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        return list(session.exec(stmt).all())

    def count_for_store(self, session: Session, store_id: uuid.UUID) -> int:
        stmt = (
            select(func.count())
            .select_from(Product)
            .where(Product.store_id == store_id, Product.deleted_at.is_(None))
        )
        return int(session.exec(stmt).one() or 0)

    def create(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product

    def update(self, session: Session, product: Product) -> Product:
        session.add(product)
        session.commit()
        session.refresh(product)
        return product
