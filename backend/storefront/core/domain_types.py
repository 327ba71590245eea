"""Domain Types — rich types that replace bare primitives across the codebase.

Invariants:
    - UserId, ProductId, OrderId wrap ints; never mix them in domain logic
    - Ids accepted from clients are in 1..MAX_ID (the INTEGER column range)
    - Role is a closed set: user | admin
    - Identity is immutable once built from verified token claims

Design Decisions:
    - NewType over dataclass wrappers: zero runtime cost, full type-checker support
    - str Enums: serialize to JSON and JWT claims without custom encoders
"""

from dataclasses import dataclass
from enum import Enum
from typing import NewType


# ─── Identity Types ──────────────────────────────────────────────

UserId = NewType("UserId", int)
ProductId = NewType("ProductId", int)
OrderId = NewType("OrderId", int)

# Upper bound of the INTEGER primary key columns
MAX_ID = 2**31 - 1


# ─── Enums ───────────────────────────────────────────────────────

class Role(str, Enum):
    """Access level on a user; gates catalog mutation."""
    USER = "user"
    ADMIN = "admin"


# ─── Request Context ─────────────────────────────────────────────

@dataclass(frozen=True)
class Identity:
    """Authenticated caller, threaded explicitly into every service call."""
    id: UserId
    email: str
    role: Role

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def to_claims(self) -> dict:
        return {"id": self.id, "email": self.email, "role": self.role.value}
