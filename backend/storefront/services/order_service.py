"""Order Service — cart checkout with atomic stock reservation, and order reads.

Invariants:
    - Snapshot read + plan_order run BEFORE the transaction; nothing is written
      for a cart that fails validation
    - Order row, item rows and every stock decrement commit together or not at all
    - Stock decrement is conditional (stock >= quantity); zero rows affected aborts
      the whole transaction with InsufficientStockError, so stock never goes negative
    - Orders are only visible to their owner; others get ResourceNotFoundError
    - Orders are listed newest first

Design Decisions:
    - Conditional UPDATE over SELECT ... FOR UPDATE: works identically on
      PostgreSQL and SQLite without depending on an isolation level
    - Identity map cleared after commit: the created order is read back fresh,
      with items, products and buyer loaded
"""

import logging
from typing import Sequence

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.core.domain_types import Identity, OrderId, ProductId
from storefront.core.errors import (
    ErrorContext, InsufficientStockError, ResourceNotFoundError, UnauthenticatedError,
)
from storefront.core.order_rules import CartLine, distinct_product_ids, plan_order
from storefront.infrastructure.database import transaction
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.product import Product

logger = logging.getLogger(__name__)


class OrderService:
    """Order placement and retrieval for the authenticated caller."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_order(
        self, identity: Identity | None, cart: Sequence[CartLine],
    ) -> Order:
        """Validate cart, reserve stock and record the order atomically."""
        if identity is None:
            raise UnauthenticatedError()

        products = await self._load_products(distinct_product_ids(cart))
        plan = plan_order(cart, products)

        async with transaction(self.db):
            order = Order(user_id=identity.id, total=plan.total)
            self.db.add(order)
            await self.db.flush()
            for line in plan.lines:
                self.db.add(OrderItem(
                    order_id=order.id,
                    product_id=line.product.id,
                    quantity=line.quantity,
                    unit_price=line.unit_price,
                ))
                await self._reserve_stock(line.product, line.quantity)
            order_id = order.id

        # Snapshot rows still hold pre-decrement stock
        self.db.expunge_all()

        logger.info(
            f"Order created with total {plan.total}",
            extra={
                "user_id": identity.id, "order_id": order_id,
                "item_count": len(plan.lines),
            },
        )
        return await self.get_order(identity, OrderId(order_id))

    async def list_orders(self, identity: Identity) -> list[Order]:
        result = await self.db.execute(
            select(Order)
            .where(Order.user_id == identity.id)
            .order_by(Order.id.desc()),
        )
        return list(result.scalars().unique().all())

    async def get_order(self, identity: Identity, order_id: OrderId) -> Order:
        """Order owned by identity. Foreign orders are reported as missing."""
        result = await self.db.execute(
            select(Order)
            .where(Order.id == order_id, Order.user_id == identity.id),
        )
        order = result.scalars().unique().one_or_none()
        if not order:
            raise ResourceNotFoundError("Order", order_id)
        return order

    async def _load_products(self, product_ids: list[ProductId]) -> dict[int, Product]:
        """Stock/price snapshot for the cart, keyed by product id."""
        if not product_ids:
            return {}
        result = await self.db.execute(
            select(Product).where(Product.id.in_(product_ids)),
        )
        return {p.id: p for p in result.scalars().all()}

    async def _reserve_stock(self, product: Product, quantity: int) -> None:
        """Decrement stock only if enough remains; otherwise abort the order."""
        result = await self.db.execute(
            update(Product)
            .where(Product.id == product.id, Product.stock >= quantity)
            .values(stock=Product.stock - quantity)
            .execution_options(synchronize_session=False),
        )
        if result.rowcount != 1:
            raise InsufficientStockError(
                product.id, product.name,
                context=ErrorContext(debug_info={"requested": quantity}),
            )
