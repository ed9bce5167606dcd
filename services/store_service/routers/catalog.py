"""Store catalog router: open stores, available products and categories."""

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from libs.common.cache import CacheKeys, catalog_cache
from libs.db.session import get_async_db
from services.store_service.models import Product, Store
from services.store_service.schemas import ProductResponse, StoreResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(tags=["store"])


def product_response(product: Product) -> ProductResponse:
    response = ProductResponse.model_validate(product)
    response.store_name = product.store.name if product.store else ""
    return response


# ============================================================================
# STORES
# ============================================================================


@router.get("/stores", response_model=list[StoreResponse])
async def list_stores(db: AsyncSession = Depends(get_async_db)):
    """List open stores by name."""
    key = catalog_cache.make_key(CacheKeys.STORES)
    cached = catalog_cache.get(key)
    if cached is not None:
        return cached

    result = await db.execute(
        select(Store).where(Store.is_open.is_(True)).order_by(Store.name)
    )
    stores = [
        StoreResponse.model_validate(s).model_dump(mode="json")
        for s in result.scalars().all()
    ]
    catalog_cache.set(key, stores)
    return stores


@router.get("/stores/{store_id}", response_model=StoreResponse)
async def get_store(store_id: uuid.UUID, db: AsyncSession = Depends(get_async_db)):
    store = await db.get(Store, store_id)
    if not store:
        raise HTTPException(status_code=404, detail="Store not found")
    return store


# ============================================================================
# PRODUCTS
# ============================================================================


@router.get("/products", response_model=list[ProductResponse])
async def list_products(
    store_id: Optional[uuid.UUID] = Query(None),
    category: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_async_db),
):
    """List available products by name, optionally for one store or category."""
    key = catalog_cache.make_key(
        CacheKeys.PRODUCTS, {"store_id": store_id, "category": category}
    )
    cached = catalog_cache.get(key)
    if cached is not None:
        return cached

    query = select(Product).where(Product.is_available.is_(True)).order_by(Product.name)
    if store_id:
        query = query.where(Product.store_id == store_id)
    if category:
        query = query.where(Product.category == category)

    result = await db.execute(query)
    products = [
        product_response(p).model_dump(mode="json") for p in result.scalars().unique().all()
    ]
    catalog_cache.set(key, products)
    return products


@router.get("/categories", response_model=list[str])
async def list_categories(db: AsyncSession = Depends(get_async_db)):
    """Distinct categories of available products, sorted."""
    key = catalog_cache.make_key(CacheKeys.CATEGORIES)
    cached = catalog_cache.get(key)
    if cached is not None:
        return cached

    result = await db.execute(
        select(Product.category)
        .where(Product.is_available.is_(True), Product.category.is_not(None))
        .distinct()
    )
    categories = sorted(c for c in result.scalars().all() if c)
    catalog_cache.set(key, categories)
    return categories
