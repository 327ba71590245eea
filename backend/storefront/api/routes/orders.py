"""Order Routes — checkout and the caller's order history.

Invariants:
    - Every route requires a bearer token
    - GET /{order_id} answers 404 for orders owned by someone else
    - Ids outside the INTEGER column range are rejected with 400 before any query
"""

import logging

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies import get_identity
from storefront.core.domain_types import MAX_ID, Identity, OrderId, ProductId
from storefront.core.order_rules import CartLine
from storefront.infrastructure.database import get_db
from storefront.schemas.order import CreateOrderRequest, OrderDetailRead, OrderRead
from storefront.services.order_service import OrderService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/orders", tags=["orders"])


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_order(
    body: CreateOrderRequest,
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    """Place an order for the cart; stock is reserved atomically."""
    cart = [
        CartLine(product_id=ProductId(item.product_id), quantity=item.quantity)
        for item in body.items
    ]
    order = await OrderService(db).create_order(identity, cart)
    return {
        "message": "Order created successfully",
        "order": OrderDetailRead.model_validate(order).to_wire(),
    }


@router.get("")
async def list_orders(
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    orders = await OrderService(db).list_orders(identity)
    return {
        "message": "Orders retrieved successfully",
        "orders": [OrderRead.model_validate(o).to_wire() for o in orders],
    }


@router.get("/{order_id}")
async def get_order(
    order_id: int = Path(gt=0, le=MAX_ID),
    identity: Identity = Depends(get_identity),
    db: AsyncSession = Depends(get_db),
):
    order = await OrderService(db).get_order(identity, OrderId(order_id))
    return {
        "message": "Order retrieved successfully",
        "order": OrderDetailRead.model_validate(order).to_wire(),
    }
