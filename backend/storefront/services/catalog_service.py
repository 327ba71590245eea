"""Catalog Service — product listing, lookup, and admin-only mutation.

Invariants:
    - Mutations require an admin Identity (checked here as well as at the route)
    - list_products page and count use the SAME filter expression
    - update applies only fields present in the patch; name/price/stock never null
    - delete is a hard delete; products referenced by orders raise ConflictError
"""

import logging
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.domain_types import Identity
from storefront.core.errors import (
    ConflictError, ErrorContext, ForbiddenError, ResourceNotFoundError,
)
from storefront.core.pagination import PageWindow, build_pagination
from storefront.core.patch import build_patch, merge_patch
from storefront.models.order_item import OrderItem
from storefront.models.product import Product

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = frozenset({"name", "price", "stock"})


def _require_admin(identity: Identity) -> None:
    if not identity.is_admin:
        raise ForbiddenError(context=ErrorContext(user_id=identity.id))


def _escape_like(term: str) -> str:
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def build_product_filters(
    search: str | None = None,
    min_price: Decimal | None = None,
    max_price: Decimal | None = None,
) -> list:
    """WHERE clauses shared by the page query and the count query."""
    filters = []
    if search:
        filters.append(
            Product.name.ilike(f"%{_escape_like(search.strip())}%", escape="\\"),
        )
    if min_price is not None:
        filters.append(Product.price >= min_price)
    if max_price is not None:
        filters.append(Product.price <= max_price)
    return filters


class CatalogService:
    """Product catalog operations."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_products(
        self,
        window: PageWindow,
        search: str | None = None,
        min_price: Decimal | None = None,
        max_price: Decimal | None = None,
    ) -> tuple[list[Product], dict]:
        """One page of matching products plus pagination metadata."""
        filters = build_product_filters(search, min_price, max_price)

        count_result = await self.db.execute(
            select(func.count()).select_from(Product).where(*filters),
        )
        total_count = count_result.scalar_one()

        result = await self.db.execute(
            select(Product)
            .where(*filters)
            .order_by(Product.id)
            .limit(window.limit)
            .offset(window.offset),
        )
        products = list(result.scalars().all())
        return products, build_pagination(window, total_count)

    async def get_product(self, product_id: int) -> Product:
        product = await self.db.get(Product, product_id)
        if not product:
            raise ResourceNotFoundError("Product", product_id)
        return product

    async def create_product(self, identity: Identity, data: dict) -> Product:
        _require_admin(identity)
        product = Product(**data)
        self.db.add(product)
        await self.db.commit()
        await self.db.refresh(product)
        logger.info(
            "Product created",
            extra={"user_id": identity.id, "product_id": product.id},
        )
        return product

    async def update_product(
        self, identity: Identity, product_id: int, sent: dict,
    ) -> Product:
        _require_admin(identity)
        patch = build_patch(sent, required=_REQUIRED_FIELDS)
        product = await self.get_product(product_id)
        changed = merge_patch(product, patch)
        await self.db.commit()
        await self.db.refresh(product)
        logger.info(
            f"Product updated: {', '.join(changed) or 'no changes'}",
            extra={"user_id": identity.id, "product_id": product.id},
        )
        return product

    async def delete_product(self, identity: Identity, product_id: int) -> None:
        _require_admin(identity)
        product = await self.get_product(product_id)

        referenced = await self.db.execute(
            select(OrderItem.id).where(OrderItem.product_id == product_id).limit(1),
        )
        if referenced.first() is not None:
            raise ConflictError("Product is referenced by existing orders")

        await self.db.delete(product)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Product is referenced by existing orders")
        logger.info(
            "Product deleted",
            extra={"user_id": identity.id, "product_id": product_id},
        )
