"""Product Routes — public catalog reads, admin-only writes.

Invariants:
    - GET routes are public
    - POST/PUT/DELETE depend on require_admin: 401 without token, 403 for non-admins
    - Non-integer or out-of-range ids are rejected by path validation (400)
"""

import logging
from decimal import Decimal

from fastapi import APIRouter, Depends, Path, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from storefront.api.dependencies import require_admin
from storefront.core.domain_types import MAX_ID, Identity
from storefront.core.pagination import DEFAULT_LIMIT, DEFAULT_PAGE, MAX_LIMIT, build_window
from storefront.infrastructure.database import get_db
from storefront.schemas.common import Pagination
from storefront.schemas.product import ProductCreate, ProductRead, ProductUpdate
from storefront.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/products", tags=["products"])


@router.get("")
async def list_products(
    page: int = Query(DEFAULT_PAGE, ge=1),
    limit: int = Query(DEFAULT_LIMIT, ge=1, le=MAX_LIMIT),
    search: str | None = Query(None, max_length=255),
    min_price: Decimal | None = Query(None, alias="minPrice", ge=0),
    max_price: Decimal | None = Query(None, alias="maxPrice", ge=0),
    db: AsyncSession = Depends(get_db),
):
    """List products with pagination, name search and price range."""
    products, pagination = await CatalogService(db).list_products(
        build_window(page, limit), search, min_price, max_price,
    )
    return {
        "message": "Products retrieved successfully",
        "products": [ProductRead.model_validate(p).to_wire() for p in products],
        "pagination": Pagination(**pagination).to_wire(),
    }


@router.get("/{product_id}")
async def get_product(
    product_id: int = Path(gt=0, le=MAX_ID),
    db: AsyncSession = Depends(get_db),
):
    product = await CatalogService(db).get_product(product_id)
    return {
        "message": "Product retrieved successfully",
        "product": ProductRead.model_validate(product).to_wire(),
    }


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_product(
    body: ProductCreate,
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    product = await CatalogService(db).create_product(identity, body.model_dump())
    return {
        "message": "Product created successfully",
        "product": ProductRead.model_validate(product).to_wire(),
    }


@router.put("/{product_id}")
async def update_product(
    body: ProductUpdate,
    product_id: int = Path(gt=0, le=MAX_ID),
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    """Apply only the fields present in the body."""
    product = await CatalogService(db).update_product(
        identity, product_id, body.model_dump(exclude_unset=True),
    )
    return {
        "message": "Product updated successfully",
        "product": ProductRead.model_validate(product).to_wire(),
    }


@router.delete("/{product_id}")
async def delete_product(
    product_id: int = Path(gt=0, le=MAX_ID),
    identity: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    await CatalogService(db).delete_product(identity, product_id)
    return {"message": "Product deleted successfully"}
