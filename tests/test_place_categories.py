async def test_requires_bearer_token(client):
    assert (await client.post("/api/placecat", json={"name": "Cafes"})).status_code == 401
    assert (await client.get("/api/placecat/user")).status_code == 401


async def test_names_are_unique_per_user(client, site_user):
    _, alice = await site_user("alice@example.com")
    _, bob = await site_user("bob@example.com")

    response = await client.post("/api/placecat", headers=alice, json={"name": "Beaches"})
    assert response.status_code == 201
    assert (await client.post("/api/placecat", headers=alice, json={"name": "Beaches"})).status_code == 409
    assert (await client.post("/api/placecat", headers=bob, json={"name": "Beaches"})).status_code == 201

    mine = (await client.get("/api/placecat/user", headers=alice)).json()
    assert [c["name"] for c in mine] == ["Beaches"]
    assert len((await client.get("/api/placecat")).json()) == 2


async def test_rename_and_delete(client, site_user):
    _, alice = await site_user("alice@example.com")
    _, bob = await site_user("bob@example.com")
    beaches = (await client.post("/api/placecat", headers=alice, json={"name": "Beaches"})).json()
    await client.post("/api/placecat", headers=alice, json={"name": "Hikes"})

    assert (await client.put(f"/api/placecat/{beaches['id']}", headers=alice, json={"name": "Hikes"})).status_code == 409
    assert (await client.put(f"/api/placecat/{beaches['id']}", headers=bob, json={"name": "Mine"})).status_code == 404

    response = await client.put(f"/api/placecat/{beaches['id']}", headers=alice, json={"name": "Coast"})
    assert response.status_code == 200
    assert response.json()["name"] == "Coast"

    response = await client.delete(f"/api/placecat/{beaches['id']}", headers=bob)
    assert response.status_code == 404
    assert response.json()["message"] == "Category not found or not authorized"

    assert (await client.delete(f"/api/placecat/{beaches['id']}", headers=alice)).status_code == 200
    assert [c["name"] for c in (await client.get("/api/placecat/user", headers=alice)).json()] == ["Hikes"]
