import asyncio

from auth import hash_password
from database import init_db
from models import ShopOwner, Shop, ShopType, Category, FoodItem

DEMO_OWNER_EMAIL = "demo.owner@example.com"
DEMO_OWNER_PASSWORD = "demo-owner-123"

# Demo shop with its menu (categories -> food items)
DEMO_SHOP = {
    "name": "Cafe Colombo",
    "active_time": "08:00 - 22:00",
    "description": "Rice and curry, kottu and fresh juices by the lake.",
    "location": "Colombo",
    "price_range": "LKR 500 - 2500",
    "shop_type": ShopType.restaurant,
    "contact": "+94 11 234 5678",
}

DEMO_MENU = {
    "Rice & Curry": [("Chicken rice and curry", 950.0), ("Vegetable rice and curry", 650.0)],
    "Kottu": [("Cheese kottu", 1200.0), ("Egg kottu", 800.0)],
    "Drinks": [("King coconut", 250.0), ("Mango juice", 450.0)],
}


async def seed_demo_shops() -> int:
    """Create the demo owner, shop and menu; returns how many documents were added."""
    created = 0

    owner = await ShopOwner.find_one(ShopOwner.email == DEMO_OWNER_EMAIL)
    if not owner:
        owner = ShopOwner(email=DEMO_OWNER_EMAIL, name="Demo Owner",
                          password_hash=hash_password(DEMO_OWNER_PASSWORD), is_verified=True)
        await owner.insert()
        created += 1

    shop = await Shop.find_one(Shop.owner == owner.id)
    if not shop:
        shop = Shop(owner=owner.id, **DEMO_SHOP)
        await shop.insert()
        created += 1

    for category_name, items in DEMO_MENU.items():
        category = await Category.find_one({"name": category_name, "shop": shop.id})
        if not category:
            category = Category(name=category_name, shop=shop.id)
            await category.insert()
            created += 1

        for item_name, price in items:
            exists = await FoodItem.find_one({"name": item_name, "shop": shop.id})
            if not exists:
                await FoodItem(name=item_name, category=category.id, price=price, shop=shop.id).insert()
                created += 1

    return created


async def main():
    print("Connecting to the database...")
    await init_db()

    created = await seed_demo_shops()
    if created == 0:
        print("Demo data was already there, nothing changed.")
    else:
        print(f"Done! {created} new documents were created.")
        print(f"Log in as {DEMO_OWNER_EMAIL} / {DEMO_OWNER_PASSWORD}")


if __name__ == "__main__":
    asyncio.run(main())
