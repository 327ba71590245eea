"""Order Schemas — cart submission and order read models.

Invariants:
    - CreateOrderRequest.items: 1..MAX_CART_LINES lines; productId in 1..MAX_ID,
      quantity in 1..MAX_QUANTITY
    - OrderDetailRead embeds the buyer's public profile
"""

from datetime import datetime

from pydantic import Field

from storefront.core.domain_types import MAX_ID
from storefront.core.order_rules import MAX_CART_LINES, MAX_QUANTITY
from storefront.schemas.common import CamelModel, Money
from storefront.schemas.product import ProductRead
from storefront.schemas.user import UserRead


class CartItem(CamelModel):
    product_id: int = Field(gt=0, le=MAX_ID)
    quantity: int = Field(gt=0, le=MAX_QUANTITY)


class CreateOrderRequest(CamelModel):
    items: list[CartItem] = Field(min_length=1, max_length=MAX_CART_LINES)


class OrderItemRead(CamelModel):
    id: int
    product_id: int
    quantity: int
    unit_price: Money
    product: ProductRead


class OrderRead(CamelModel):
    id: int
    user_id: int
    total: Money
    created_at: datetime
    items: list[OrderItemRead]


class OrderDetailRead(OrderRead):
    user: UserRead


class UserProfileRead(UserRead):
    """Profile with the user's full order history."""
    orders: list[OrderRead]
