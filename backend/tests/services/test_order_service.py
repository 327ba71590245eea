"""Order Service — transaction boundary tests below the HTTP layer.

Tests cover:
    - A stale stock snapshot cannot oversell: the conditional UPDATE aborts the order
    - A storage failure mid-transaction rolls back order, items and stock
    - create_order without an identity raises UnauthenticatedError
    - HTTP surface of a storage failure is a generic 500
"""

from decimal import Decimal

import pytest
from sqlalchemy import func, select, update
from sqlalchemy.exc import OperationalError

from storefront.core.domain_types import ProductId
from storefront.core.errors import (
    DatabaseError, InsufficientStockError, UnauthenticatedError,
)
from storefront.core.order_rules import CartLine
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.product import Product
from storefront.services.account_service import identity_of
from storefront.services.order_service import OrderService


async def _row_counts(test_session_factory) -> tuple[int, int]:
    async with test_session_factory() as db:
        orders = (await db.execute(select(func.count()).select_from(Order))).scalar_one()
        items = (await db.execute(select(func.count()).select_from(OrderItem))).scalar_one()
        return orders, items


async def test_stale_snapshot_is_rejected_by_conditional_update(
    test_session_factory, make_user, make_product, fetch_product, monkeypatch,
):
    user = await make_user()
    product = await make_product(stock=1)

    async with test_session_factory() as db:
        service = OrderService(db)
        snapshot = await service._load_products([ProductId(product.id)])

        # Another checkout takes the last unit after our snapshot was read
        async with test_session_factory() as other:
            await other.execute(
                update(Product).where(Product.id == product.id).values(stock=0),
            )
            await other.commit()

        async def _stale(product_ids):
            return snapshot

        monkeypatch.setattr(service, "_load_products", _stale)
        with pytest.raises(InsufficientStockError):
            await service.create_order(
                identity_of(user), [CartLine(ProductId(product.id), 1)],
            )

    assert (await fetch_product(product.id)).stock == 0
    assert await _row_counts(test_session_factory) == (0, 0)


async def test_second_line_failing_rolls_back_first_decrement(
    test_session_factory, make_user, make_product, fetch_product, monkeypatch,
):
    user = await make_user()
    a = await make_product(name="A", stock=5)
    b = await make_product(name="B", stock=5)

    async with test_session_factory() as db:
        service = OrderService(db)
        snapshot = await service._load_products([ProductId(a.id), ProductId(b.id)])
        async with test_session_factory() as other:
            await other.execute(update(Product).where(Product.id == b.id).values(stock=1))
            await other.commit()

        async def _stale(product_ids):
            return snapshot

        monkeypatch.setattr(service, "_load_products", _stale)
        with pytest.raises(InsufficientStockError):
            await service.create_order(
                identity_of(user),
                [CartLine(ProductId(a.id), 2), CartLine(ProductId(b.id), 2)],
            )

    assert (await fetch_product(a.id)).stock == 5
    assert (await fetch_product(b.id)).stock == 1
    assert await _row_counts(test_session_factory) == (0, 0)


async def test_storage_failure_rolls_back_and_raises_database_error(
    test_session_factory, make_user, make_product, fetch_product, monkeypatch,
):
    user = await make_user()
    product = await make_product(stock=3)

    async def _broken_reserve(self, product, quantity):
        raise OperationalError("UPDATE products", {}, Exception("disk I/O error"))

    monkeypatch.setattr(OrderService, "_reserve_stock", _broken_reserve)

    async with test_session_factory() as db:
        with pytest.raises(DatabaseError) as exc_info:
            await OrderService(db).create_order(
                identity_of(user), [CartLine(ProductId(product.id), 1)],
            )

    assert "disk I/O" not in exc_info.value.message
    assert exc_info.value.http_status == 500
    assert (await fetch_product(product.id)).stock == 3
    assert await _row_counts(test_session_factory) == (0, 0)


async def test_storage_failure_surfaces_generic_500(
    client, make_user, make_product, auth_headers, monkeypatch,
):
    user = await make_user()
    product = await make_product(stock=3)

    async def _broken_reserve(self, product, quantity):
        raise OperationalError("UPDATE products", {}, Exception("disk I/O error"))

    monkeypatch.setattr(OrderService, "_reserve_stock", _broken_reserve)
    res = await client.post(
        "/api/orders", json={"items": [{"productId": product.id, "quantity": 1}]},
        headers=auth_headers(user),
    )
    assert res.status_code == 500
    assert res.json()["code"] == "DATABASE_ERROR"
    assert "disk I/O" not in res.json()["error"]


async def test_create_order_requires_identity(test_db):
    with pytest.raises(UnauthenticatedError):
        await OrderService(test_db).create_order(None, [CartLine(ProductId(1), 1)])


async def test_created_order_total_matches_items(
    test_session_factory, make_user, make_product,
):
    user = await make_user()
    a = await make_product(price="0.10", stock=10)
    b = await make_product(price="0.20", stock=10)

    async with test_session_factory() as db:
        order = await OrderService(db).create_order(
            identity_of(user),
            [CartLine(ProductId(a.id), 1), CartLine(ProductId(b.id), 1)],
        )

    assert order.total == Decimal("0.30")
    assert sum(i.unit_price * i.quantity for i in order.items) == order.total
