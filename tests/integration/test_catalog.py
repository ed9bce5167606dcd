"""Integration tests for the public catalog and admin catalog management."""

import pytest
from libs.common.cache import CacheKeys, catalog_cache
from tests.factories import ProductFactory, StoreFactory


@pytest.mark.asyncio
@pytest.mark.integration
async def test_list_open_stores_by_name(store_client, db_session):
    db_session.add_all(
        [
            StoreFactory.create(name="Rodic's"),
            StoreFactory.create(name="Mang Larry's Isawan"),
            StoreFactory.create(name="Closed Kiosk", is_open=False),
        ]
    )
    await db_session.commit()

    response = await store_client.get("/store/stores")

    assert response.status_code == 200
    assert [s["name"] for s in response.json()] == ["Mang Larry's Isawan", "Rodic's"]
    assert response.json()[0]["image"] == "/logo.png"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_store_list_is_cached(store_client, db_session):
    db_session.add(StoreFactory.create(name="Rodic's"))
    await db_session.commit()
    await store_client.get("/store/stores")

    db_session.add(StoreFactory.create(name="Beach House"))
    await db_session.commit()
    response = await store_client.get("/store/stores")

    assert [s["name"] for s in response.json()] == ["Rodic's"]
    assert catalog_cache.get(catalog_cache.make_key(CacheKeys.STORES)) is not None


@pytest.mark.asyncio
@pytest.mark.integration
async def test_products_filtered_by_store_and_category(store_client, db_session):
    rodics = StoreFactory.create(name="Rodic's")
    larrys = StoreFactory.create(name="Mang Larry's")
    db_session.add_all([rodics, larrys])
    await db_session.commit()
    db_session.add_all(
        [
            ProductFactory.create(store_id=rodics.id, name="Tapsilog", category="Rice Meals"),
            ProductFactory.create(store_id=rodics.id, name="Iced Tea", category="Drinks"),
            ProductFactory.create(
                store_id=rodics.id, name="Sold Out", category="Drinks", is_available=False
            ),
            ProductFactory.create(store_id=larrys.id, name="Isaw", category="Street Food"),
        ]
    )
    await db_session.commit()

    response = await store_client.get(
        "/store/products", params={"store_id": str(rodics.id), "category": "Drinks"}
    )

    assert response.status_code == 200
    data = response.json()
    assert [p["name"] for p in data] == ["Iced Tea"]
    assert data[0]["store_name"] == "Rodic's"


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_product_create_invalidates_cache(
    store_client, admin_store_client, db_session
):
    store = StoreFactory.create(name="Rodic's")
    db_session.add(store)
    await db_session.commit()
    assert (await store_client.get("/store/products")).json() == []

    response = await admin_store_client.post(
        "/admin/store/products",
        json={"store_id": str(store.id), "name": "Tapsilog", "price": "85.00"},
    )
    assert response.status_code == 201
    assert response.json()["store_name"] == "Rodic's"

    products = (await store_client.get("/store/products")).json()
    assert [p["name"] for p in products] == ["Tapsilog"]


@pytest.mark.asyncio
@pytest.mark.integration
async def test_admin_store_crud(admin_store_client, db_session):
    response = await admin_store_client.post(
        "/admin/store/stores", json={"name": "Beach House", "categories": ["Coffee"]}
    )
    assert response.status_code == 201
    store_id = response.json()["id"]

    response = await admin_store_client.patch(
        f"/admin/store/stores/{store_id}", json={"is_open": False}
    )
    assert response.status_code == 200
    assert response.json()["is_open"] is False

    response = await admin_store_client.delete(f"/admin/store/stores/{store_id}")
    assert response.status_code == 204
    assert (await admin_store_client.get("/admin/store/stores")).json() == []


@pytest.mark.asyncio
@pytest.mark.integration
async def test_customers_cannot_manage_catalog(store_client):
    response = await store_client.post("/admin/store/stores", json={"name": "Nope"})
    assert response.status_code == 403
