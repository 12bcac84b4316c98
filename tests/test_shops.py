import os

from beanie import PydanticObjectId

from likes import toggle_like
from models import Category, Comment, FoodItem, Shop
from routers import shops

PNG = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


async def test_create_shop_requires_session(client):
    response = await client.post("/api/shops", data={"name": "Cafe X", "shopType": "restaurant", "contact": "011"})
    assert response.status_code == 401
    assert await Shop.count() == 0


async def test_create_shop_with_photo(owner_client, shop_for, upload_dir):
    owner = await owner_client()
    shop = await shop_for(owner, name="Cafe X", photo=("front.png", PNG, "image/png"),
                          activeTime="08:00 - 20:00", priceRange="$$")

    assert shop["name"] == "Cafe X"
    assert shop["shopType"] == "restaurant"
    assert shop["activeTime"] == "08:00 - 20:00"
    assert shop["priceRange"] == "$$"
    assert shop["likeCount"] == 0 and shop["likes"] == []
    assert shop["photo"].startswith("/uploads/") and shop["photo"].endswith(".png")
    assert os.path.exists(upload_dir / os.path.basename(shop["photo"]))

    response = await owner.get("/api/shops/my-shop")
    assert response.status_code == 200
    assert response.json()["id"] == shop["id"]


async def test_one_shop_per_owner(owner_client, shop_for):
    owner = await owner_client()
    await shop_for(owner)
    response = await owner.post("/api/shops", data={"name": "Second", "shopType": "hotel", "contact": "011"})
    assert response.status_code == 409
    assert response.json()["message"] == "User already owns a shop."
    assert await Shop.count() == 1


async def test_invalid_shop_removes_uploaded_photo(owner_client, upload_dir):
    owner = await owner_client()

    response = await owner.post("/api/shops", data={"name": "Cafe X", "shopType": "restaurant"},
                                files={"photo": ("front.png", PNG, "image/png")})
    assert response.status_code == 400
    assert response.json()["message"] == "contact is required"

    response = await owner.post("/api/shops", data={"name": "Cafe X", "shopType": "bakery", "contact": "011"},
                                files={"photo": ("front.png", PNG, "image/png")})
    assert response.status_code == 400
    assert response.json()["message"].startswith("shopType must be one of")

    assert await Shop.count() == 0
    assert not upload_dir.exists() or list(upload_dir.iterdir()) == []


async def test_non_image_photo_is_rejected(owner_client):
    owner = await owner_client()
    response = await owner.post("/api/shops", data={"name": "Cafe X", "shopType": "restaurant", "contact": "011"},
                                files={"photo": ("menu.pdf", b"%PDF-1.4", "application/pdf")})
    assert response.status_code == 400
    assert response.json()["message"] == "Only image files are allowed!"


async def test_public_listing(owner_client, shop_for, client):
    await shop_for(await owner_client("a@example.com"), name="Cafe A")
    await shop_for(await owner_client("b@example.com"), name="Cafe B", shopType="hotel")

    response = await client.get("/api/shops/all")
    assert response.status_code == 200
    shops = response.json()
    assert sorted(s["name"] for s in shops) == ["Cafe A", "Cafe B"]
    assert all("owner" not in s for s in shops)

    response = await client.get(f"/api/shops/{shops[0]['id']}")
    assert response.status_code == 200
    assert response.json()["name"] == shops[0]["name"]


async def test_get_unknown_shop(client):
    response = await client.get("/api/shops/64b000000000000000000000")
    assert response.status_code == 404
    response = await client.get("/api/shops/not-an-id")
    assert response.status_code == 400


async def test_my_shop_without_shop(owner_client):
    owner = await owner_client()
    response = await owner.get("/api/shops/my-shop")
    assert response.status_code == 404


async def test_partial_update(owner_client, shop_for, upload_dir):
    owner = await owner_client()
    shop = await shop_for(owner, name="Cafe X", location="Colombo", photo=("old.png", PNG, "image/png"))

    response = await owner.put(f"/api/shops/{shop['id']}", data={"name": "Cafe Y"})
    assert response.status_code == 200
    updated = response.json()
    assert updated["name"] == "Cafe Y"
    assert updated["location"] == "Colombo"
    assert updated["contact"] == shop["contact"]
    assert updated["photo"] == shop["photo"]

    response = await owner.put(f"/api/shops/{shop['id']}", files={"photo": ("new.png", PNG, "image/png")})
    assert response.status_code == 200
    new_photo = response.json()["photo"]
    assert new_photo != shop["photo"]
    assert os.listdir(upload_dir) == [os.path.basename(new_photo)]

    response = await owner.put(f"/api/shops/{shop['id']}", data={"name": "  "})
    assert response.status_code == 400


async def test_update_keeps_likes_made_after_loading(owner_client, shop_for, site_user, client, monkeypatch):
    owner = await owner_client()
    shop = await shop_for(owner)
    fan, _ = await site_user("fan@example.com")
    load = shops.load_owned_shop

    async def load_then_like(shop_id, identity):
        loaded = await load(shop_id, identity)
        await toggle_like(Shop, loaded.id, PydanticObjectId(fan["id"]))
        return loaded

    monkeypatch.setattr(shops, "load_owned_shop", load_then_like)
    response = await owner.put(f"/api/shops/{shop['id']}", data={"name": "Renamed"})
    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"
    assert response.json()["likeCount"] == 1
    assert (await client.get(f"/api/shops/{shop['id']}/likes")).json() == {"likes": [fan["id"]], "likeCount": 1}


async def test_only_owner_may_update_or_delete(owner_client, shop_for):
    shop = await shop_for(await owner_client("a@example.com"))
    other = await owner_client("b@example.com")

    response = await other.put(f"/api/shops/{shop['id']}", data={"name": "Hijacked"})
    assert response.status_code == 403
    response = await other.delete(f"/api/shops/{shop['id']}")
    assert response.status_code == 403
    assert (await Shop.get(PydanticObjectId(shop["id"]))).name == shop["name"]


async def test_delete_cascades(owner_client, shop_for, site_user, client, upload_dir):
    owner = await owner_client()
    shop = await shop_for(owner, photo=("front.png", PNG, "image/png"))

    category = (await owner.post("/api/categories", json={"name": "Drinks"})).json()
    food = await owner.post("/api/food", data={"name": "Tea", "categoryId": category["id"], "price": "150"},
                            files={"picture": ("tea.png", PNG, "image/png")})
    assert food.status_code == 201

    _, headers = await site_user()
    comment = await client.post("/api/comments", headers=headers,
                                json={"shopId": shop["id"], "message": "Nice", "rating": 5})
    assert comment.status_code == 201

    response = await owner.delete(f"/api/shops/{shop['id']}")
    assert response.status_code == 200
    assert response.json()["success"] is True

    assert await Shop.count() == 0
    assert await Category.count() == 0
    assert await FoodItem.count() == 0
    assert await Comment.count() == 0
    assert os.listdir(upload_dir) == []
