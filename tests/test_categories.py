async def test_requires_a_shop(owner_client):
    owner = await owner_client()
    response = await owner.post("/api/categories", json={"name": "Drinks"})
    assert response.status_code == 403
    assert response.json()["message"] == "No shop for user"


async def test_names_are_unique_per_shop(owner_client, shop_for, client):
    owner_a = await owner_client("a@example.com")
    shop_a = await shop_for(owner_a)
    owner_b = await owner_client("b@example.com")
    await shop_for(owner_b, name="Cafe B")

    response = await owner_a.post("/api/categories", json={"name": "  Drinks "})
    assert response.status_code == 201
    assert response.json()["name"] == "Drinks"
    assert response.json()["shop"] == shop_a["id"]

    response = await owner_a.post("/api/categories", json={"name": "Drinks"})
    assert response.status_code == 409
    assert response.json() == {"success": False, "message": "Category already exists."}

    # other names in the same shop, and the same name in another shop, are fine
    assert (await owner_a.post("/api/categories", json={"name": "Mains"})).status_code == 201
    assert (await owner_b.post("/api/categories", json={"name": "Drinks"})).status_code == 201

    response = await client.get(f"/api/categories/shop/{shop_a['id']}")
    assert sorted(c["name"] for c in response.json()) == ["Drinks", "Mains"]
    assert len((await client.get("/api/categories/all")).json()) == 3


async def test_name_validation(owner_client, shop_for):
    owner = await owner_client()
    await shop_for(owner)
    assert (await owner.post("/api/categories", json={"name": "   "})).status_code == 400
    assert (await owner.post("/api/categories", json={"name": "x" * 51})).status_code == 400
    assert (await owner.post("/api/categories", json={})).status_code == 400


async def test_rename(owner_client, shop_for):
    owner = await owner_client()
    await shop_for(owner)
    drinks = (await owner.post("/api/categories", json={"name": "Drinks"})).json()
    await owner.post("/api/categories", json={"name": "Mains"})

    response = await owner.put(f"/api/categories/{drinks['id']}", json={"name": "Mains"})
    assert response.status_code == 409

    response = await owner.put(f"/api/categories/{drinks['id']}", json={"name": "Beverages"})
    assert response.status_code == 200
    assert response.json()["name"] == "Beverages"

    # renaming to its own name is not a conflict
    response = await owner.put(f"/api/categories/{drinks['id']}", json={"name": "Beverages"})
    assert response.status_code == 200


async def test_other_owner_cannot_touch_category(owner_client, shop_for):
    owner_a = await owner_client("a@example.com")
    await shop_for(owner_a)
    category = (await owner_a.post("/api/categories", json={"name": "Drinks"})).json()

    owner_b = await owner_client("b@example.com")
    await shop_for(owner_b, name="Cafe B")
    assert (await owner_b.put(f"/api/categories/{category['id']}", json={"name": "Mine"})).status_code == 404
    assert (await owner_b.delete(f"/api/categories/{category['id']}")).status_code == 404


async def test_delete_leaves_food_with_null_category(owner_client, shop_for, client):
    owner = await owner_client()
    shop = await shop_for(owner)
    category = (await owner.post("/api/categories", json={"name": "Drinks"})).json()
    food = await owner.post("/api/food", data={"name": "Tea", "categoryId": category["id"], "price": "150"})
    assert food.json()["category"] == {"id": category["id"], "name": "Drinks"}

    response = await owner.delete(f"/api/categories/{category['id']}")
    assert response.status_code == 200

    items = (await client.get(f"/api/food/shop/{shop['id']}")).json()
    assert len(items) == 1
    assert items[0]["name"] == "Tea"
    assert items[0]["category"] is None
    assert (await client.get(f"/api/categories/{category['id']}")).status_code == 404
