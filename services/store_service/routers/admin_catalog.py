"""Admin store catalog router: stores and products."""

import uuid

from fastapi import APIRouter, Depends, HTTPException, status
from libs.auth.dependencies import require_admin
from libs.auth.models import AuthUser
from libs.common.cache import CacheKeys, catalog_cache
from libs.common.logging import get_logger
from libs.db.session import get_async_db
from services.store_service.models import Product, Store
from services.store_service.routers.catalog import product_response
from services.store_service.schemas import (
    ProductCreate,
    ProductResponse,
    ProductUpdate,
    StoreCreate,
    StoreResponse,
    StoreUpdate,
)
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

logger = get_logger(__name__)

router = APIRouter(tags=["admin-store"])


def invalidate_catalog() -> None:
    for prefix in (CacheKeys.STORES, CacheKeys.STORE, CacheKeys.PRODUCTS, CacheKeys.CATEGORIES):
        catalog_cache.invalidate_prefix(prefix)


# ============================================================================
# STORES
# ============================================================================


@router.get("/stores", response_model=list[StoreResponse])
async def list_all_stores(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List all stores (including closed)."""
    result = await db.execute(select(Store).order_by(Store.name))
    return result.scalars().all()


@router.post("/stores", response_model=StoreResponse, status_code=status.HTTP_201_CREATED)
async def create_store(
    store_in: StoreCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    store = Store(**store_in.model_dump())
    db.add(store)
    await db.commit()
    await db.refresh(store)
    invalidate_catalog()
    logger.info("Store %s created by %s", store.id, current_user.user_id)
    return store


@router.patch("/stores/{store_id}", response_model=StoreResponse)
async def update_store(
    store_id: uuid.UUID,
    store_in: StoreUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    store = await db.get(Store, store_id)
    if not store:
        raise HTTPException(status_code=404, detail="Store not found")

    for field, value in store_in.model_dump(exclude_unset=True).items():
        setattr(store, field, value)
    await db.commit()
    await db.refresh(store)
    invalidate_catalog()
    return store


@router.delete("/stores/{store_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_store(
    store_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """Delete a store together with its products."""
    store = await db.get(Store, store_id)
    if not store:
        raise HTTPException(status_code=404, detail="Store not found")

    await db.execute(delete(Product).where(Product.store_id == store_id))
    await db.execute(delete(Store).where(Store.id == store_id))
    await db.commit()
    invalidate_catalog()
    logger.info("Store %s deleted by %s", store_id, current_user.user_id)


# ============================================================================
# PRODUCTS
# ============================================================================


@router.get("/products", response_model=list[ProductResponse])
async def list_all_products(
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    """List all products (including unavailable)."""
    result = await db.execute(select(Product).order_by(Product.name))
    return [product_response(p) for p in result.scalars().unique().all()]


@router.post("/products", response_model=ProductResponse, status_code=status.HTTP_201_CREATED)
async def create_product(
    product_in: ProductCreate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    if not await db.get(Store, product_in.store_id):
        raise HTTPException(status_code=400, detail="Store does not exist")

    product = Product(**product_in.model_dump())
    db.add(product)
    await db.commit()
    invalidate_catalog()

    result = await db.execute(
        select(Product)
        .where(Product.id == product.id)
        .execution_options(populate_existing=True)
    )
    return product_response(result.scalars().unique().one())


@router.patch("/products/{product_id}", response_model=ProductResponse)
async def update_product(
    product_id: uuid.UUID,
    product_in: ProductUpdate,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    for field, value in product_in.model_dump(exclude_unset=True).items():
        setattr(product, field, value)
    await db.commit()
    invalidate_catalog()

    result = await db.execute(
        select(Product)
        .where(Product.id == product_id)
        .execution_options(populate_existing=True)
    )
    return product_response(result.scalars().unique().one())


@router.delete("/products/{product_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_product(
    product_id: uuid.UUID,
    current_user: AuthUser = Depends(require_admin),
    db: AsyncSession = Depends(get_async_db),
):
    product = await db.get(Product, product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")

    await db.execute(delete(Product).where(Product.id == product_id))
    await db.commit()
    invalidate_catalog()
