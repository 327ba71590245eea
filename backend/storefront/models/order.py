"""Order ORM — a completed purchase, immutable once created.

Invariants:
    - Always belongs to a User (user_id FK, cascade on user delete)
    - total == sum(item.unit_price * item.quantity), computed at creation
    - Numeric(20, 2) holds MAX_CART_LINES lines of MAX_QUANTITY at the largest price
    - Created in the same transaction as its items and the stock decrements

Design Decisions:
    - items and their products eager-loaded (selectin): every read of an order
      renders its lines, and async sessions cannot lazy-load
"""

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import Integer, Numeric, DateTime, ForeignKey
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.db.base import Base


class Order(Base):
    """Purchase header owned by one user."""
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False, index=True,
    )
    total: Mapped[Decimal] = mapped_column(Numeric(20, 2), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    user: Mapped["User"] = relationship(
        "User", back_populates="orders", lazy="joined",
    )
    items: Mapped[list["OrderItem"]] = relationship(
        "OrderItem", back_populates="order",
        cascade="all, delete-orphan", lazy="selectin",
        order_by="OrderItem.id",
    )
