"""Tests for the catalog and daily menu endpoints"""

import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_list_items_sorted_by_label(client: AsyncClient, tokens, menu_items):
    response = await client.get("/menu/items", headers=tokens["employee"])

    assert response.status_code == 200
    labels = [item["label"] for item in response.json()["items"]]
    assert labels == sorted(labels)
    assert len(labels) == 5


@pytest.mark.asyncio
async def test_create_item_with_french_aliases(client: AsyncClient, tokens):
    response = await client.post(
        "/menu/items",
        json={"libelle": "Harira", "type": "Entrée", "image_url": "/uploads/harira.jpg"},
        headers=tokens["manager"],
    )

    assert response.status_code == 201
    data = response.json()
    assert data["label"] == "Harira"
    assert data["category"] == "starter"
    assert data["image_url"] == "/uploads/harira.jpg"


@pytest.mark.asyncio
async def test_create_item_validation(client: AsyncClient, tokens):
    response = await client.post(
        "/menu/items",
        json={"label": "Soupe", "category": "soup"},
        headers=tokens["manager"],
    )
    assert response.status_code == 422

    response = await client.post(
        "/menu/items",
        json={"label": "Soupe", "category": "starter", "image_url": "ftp://example.com/a.png"},
        headers=tokens["manager"],
    )
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_employee_cannot_write_catalog(client: AsyncClient, tokens):
    response = await client.post(
        "/menu/items",
        json={"label": "Harira", "category": "starter"},
        headers=tokens["employee"],
    )

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_update_item_clears_image(client: AsyncClient, tokens, menu_items):
    item_id = menu_items["fish"]
    response = await client.patch(
        f"/menu/items/{item_id}",
        json={"image_url": "https://cdn.example.com/fish.jpg", "calories": 420},
        headers=tokens["manager"],
    )
    assert response.status_code == 200
    assert response.json()["image_url"] == "https://cdn.example.com/fish.jpg"
    assert response.json()["calories"] == 420

    response = await client.patch(
        f"/menu/items/{item_id}", json={"image_url": ""}, headers=tokens["manager"]
    )
    assert response.json()["image_url"] is None
    assert response.json()["label"] == "Poisson grillé"


@pytest.mark.asyncio
async def test_update_unknown_item(client: AsyncClient, tokens):
    response = await client.patch("/menu/items/9999", json={"calories": 1}, headers=tokens["admin"])

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_item_refused_when_planned(client: AsyncClient, tokens, menu_items, plan, future_day):
    await plan(future_day, items=["fish"])

    response = await client.delete(f"/menu/items/{menu_items['fish']}", headers=tokens["manager"])
    assert response.status_code == 409

    response = await client.delete(f"/menu/items/{menu_items['salad']}", headers=tokens["manager"])
    assert response.status_code == 204

    response = await client.get("/menu/items", headers=tokens["manager"])
    assert len(response.json()["items"]) == 4


@pytest.mark.asyncio
async def test_day_menu_shows_remaining_quota(client: AsyncClient, tokens, menu_items, plan, future_day):
    await plan(future_day, quotas={"salad": 2}, items=["salad", "fish"])
    await client.post(
        "/reservations",
        json={"date": future_day.isoformat(), "menu_item_id": menu_items["salad"]},
        headers=tokens["employee"],
    )

    response = await client.get(
        "/menu/today", params={"date": future_day.isoformat()}, headers=tokens["colleague"]
    )

    assert response.status_code == 200
    data = response.json()
    assert data["locked"] is False
    by_label = {item["label"]: item for item in data["items"]}
    assert by_label["Salade marocaine"]["quota"] == 2
    assert by_label["Salade marocaine"]["remaining"] == 1
    assert by_label["Poisson grillé"]["remaining"] is None


@pytest.mark.asyncio
async def test_day_menu_created_lazily(client: AsyncClient, tokens, future_day):
    response = await client.get(
        "/menu/today", params={"date": future_day.isoformat()}, headers=tokens["employee"]
    )

    assert response.status_code == 200
    assert response.json() == {"date": future_day.isoformat(), "locked": False, "items": []}


@pytest.mark.asyncio
async def test_plan_day_replaces_previous_plan(client: AsyncClient, tokens, menu_items, future_day):
    day = future_day.isoformat()

    response = await client.post(
        "/menu/day",
        json={"date": day, "items": [{"menu_item_id": menu_items["fish"], "quota": 10}, {"menu_item_id": menu_items["cake"]}]},
        headers=tokens["manager"],
    )
    assert response.status_code == 200
    assert len(response.json()["items"]) == 2

    response = await client.post(
        "/menu/day",
        json={"date": day, "items": [{"menu_item_id": menu_items["tajine"], "quota": 5}]},
        headers=tokens["manager"],
    )
    assert [item["label"] for item in response.json()["items"]] == ["Tajine poulet"]
    assert response.json()["items"][0]["remaining"] == 5


@pytest.mark.asyncio
async def test_plan_day_validation(client: AsyncClient, tokens, menu_items, future_day):
    day = future_day.isoformat()

    response = await client.post(
        "/menu/day",
        json={"date": day, "items": [{"menu_item_id": menu_items["fish"]}, {"menu_item_id": menu_items["fish"]}]},
        headers=tokens["manager"],
    )
    assert response.status_code == 400

    response = await client.post(
        "/menu/day",
        json={"date": day, "items": [{"menu_item_id": 9999}]},
        headers=tokens["manager"],
    )
    assert response.status_code == 404

    response = await client.post(
        "/menu/day",
        json={"date": day, "items": [{"menu_item_id": menu_items["fish"]}]},
        headers=tokens["employee"],
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_lock_day_blocks_reservations(client: AsyncClient, tokens, menu_items, plan, future_day):
    await plan(future_day)
    day = future_day.isoformat()

    response = await client.post(f"/menu/day/{day}/lock", json={"locked": True}, headers=tokens["manager"])
    assert response.status_code == 200
    assert response.json()["locked"] is True

    response = await client.post(
        "/reservations",
        json={"date": day, "menu_item_id": menu_items["fish"]},
        headers=tokens["employee"],
    )
    assert response.status_code == 400
    assert response.json()["error_code"] == "DayLocked"

    await client.post(f"/menu/day/{day}/lock", json={"locked": False}, headers=tokens["manager"])
    response = await client.post(
        "/reservations",
        json={"date": day, "menu_item_id": menu_items["fish"]},
        headers=tokens["employee"],
    )
    assert response.status_code == 200
