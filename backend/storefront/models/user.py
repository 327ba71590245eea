"""User ORM — account identity record.

Invariants:
    - email is unique and stored lower-cased
    - password_hash is a bcrypt hash, never plaintext
    - role is 'user' or 'admin' (core.domain_types.Role)

Design Decisions:
    - orders cascade on delete: profile deletion removes the user's order history
    - orders loaded lazily; callers that need them use selectinload explicitly
"""

from datetime import datetime, timezone

from sqlalchemy import String, Integer, DateTime
from sqlalchemy.orm import Mapped, mapped_column, relationship

from storefront.core.domain_types import Role
from storefront.db.base import Base


class User(Base):
    """Registered customer or administrator."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True, index=True,
    )
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(
        String(10), nullable=False, default=Role.USER.value,
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )

    orders: Mapped[list["Order"]] = relationship(
        "Order", back_populates="user",
        cascade="all, delete-orphan", order_by="Order.id.desc()",
    )
