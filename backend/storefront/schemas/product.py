"""Product Schemas — catalog create/update payloads and read model.

Invariants:
    - price >= 0 with at most 2 decimal places; stock fits the INTEGER column (0..MAX_ID)
    - ProductUpdate carries only the fields the client sent (exclude_unset)
"""

from datetime import datetime
from decimal import Decimal

from pydantic import Field, field_validator

from storefront.core.domain_types import MAX_ID
from storefront.schemas.common import CamelModel, Money


def _strip_name(v: str | None) -> str | None:
    if v is None:
        return v
    v = v.strip()
    if not v:
        raise ValueError("name cannot be empty or whitespace")
    return v


class ProductCreate(CamelModel):
    name: str = Field(max_length=255)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    stock: int = Field(ge=0, le=MAX_ID)
    image: str | None = Field(None, max_length=1024)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str) -> str:
        return _strip_name(v)


class ProductUpdate(CamelModel):
    name: str | None = Field(None, max_length=255)
    price: Decimal | None = Field(None, ge=0, max_digits=10, decimal_places=2)
    stock: int | None = Field(None, ge=0, le=MAX_ID)
    image: str | None = Field(None, max_length=1024)

    @field_validator("name")
    @classmethod
    def strip_name(cls, v: str | None) -> str | None:
        return _strip_name(v)


class ProductRead(CamelModel):
    id: int
    name: str
    price: Money
    stock: int
    image: str | None = None
    created_at: datetime
    updated_at: datetime
