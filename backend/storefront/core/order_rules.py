"""Order Rules — pure cart validation and total computation over a stock snapshot.

Invariants:
    - All functions are PURE: no IO, no async, no DB, no side effects
    - Every requested product id must exist in the snapshot (else InvalidInputError)
    - At most MAX_CART_LINES lines, each quantity in 1..MAX_QUANTITY
    - Stock is checked against the cumulative quantity per product, in request order
    - Money is Decimal end-to-end, quantized to cents, never float

Design Decisions:
    - Snapshot check here, structural check (conditional UPDATE) in the service:
      this function rejects obviously bad carts before a transaction is opened,
      the UPDATE ... WHERE stock >= q is what actually prevents overselling
    - Raise StorefrontError subclasses (not error dicts): callers are HTTP services
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Mapping, Protocol, Sequence

from storefront.core.domain_types import ProductId
from storefront.core.errors import InsufficientStockError, InvalidInputError

CENTS = Decimal("0.01")

# Together with the 10-digit price column these keep any order total
# inside orders.total (Numeric(20, 2))
MAX_QUANTITY = 1_000_000
MAX_CART_LINES = 100


class ProductLike(Protocol):
    """Structural contract for the product snapshot (ORM row or test double)."""
    id: int
    name: str
    price: Decimal
    stock: int


@dataclass(frozen=True)
class CartLine:
    product_id: ProductId
    quantity: int


@dataclass(frozen=True)
class PlannedLine:
    product: ProductLike
    quantity: int
    unit_price: Decimal

    @property
    def subtotal(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass(frozen=True)
class OrderPlan:
    lines: tuple[PlannedLine, ...]
    total: Decimal


def to_money(value: Decimal | int | str) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)


def distinct_product_ids(cart: Sequence[CartLine]) -> list[ProductId]:
    """Product ids in first-seen order, without duplicates."""
    return list(dict.fromkeys(line.product_id for line in cart))


def plan_order(
    cart: Sequence[CartLine], products: Mapping[int, ProductLike],
) -> OrderPlan:
    """Validate cart against the snapshot and compute the order total."""
    if not cart:
        raise InvalidInputError("Order must contain at least one item", field="items")
    if len(cart) > MAX_CART_LINES:
        raise InvalidInputError(
            f"Order may contain at most {MAX_CART_LINES} items", field="items",
        )

    for product_id in distinct_product_ids(cart):
        if product_id not in products:
            raise InvalidInputError(
                f"Product with id {product_id} not found", field="items",
            )

    reserved: dict[int, int] = {}
    lines = []
    total = Decimal("0")
    for line in cart:
        if line.quantity <= 0:
            raise InvalidInputError(
                f"Quantity for product {line.product_id} must be positive",
                field="items",
            )
        if line.quantity > MAX_QUANTITY:
            raise InvalidInputError(
                f"Quantity for product {line.product_id} exceeds {MAX_QUANTITY}",
                field="items",
            )
        product = products[line.product_id]
        reserved[product.id] = reserved.get(product.id, 0) + line.quantity
        if product.stock < reserved[product.id]:
            raise InsufficientStockError(product.id, product.name)
        unit_price = to_money(product.price)
        planned = PlannedLine(product=product, quantity=line.quantity, unit_price=unit_price)
        lines.append(planned)
        total += planned.subtotal

    return OrderPlan(lines=tuple(lines), total=to_money(total))
