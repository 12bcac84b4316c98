from datetime import datetime
import math
from typing import List, Optional

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from database import fetch_by_ids
from errors import required_text, optional_text, validated, validated_changes
from models import Category, FoodItem, Shop
from routers.shops import require_owner_shop
from schemas import FoodItemResponse, MessageResponse, Reference
from uploads import save_image, discard_uploads

router = APIRouter(prefix="/api/food", tags=["food"])


async def food_responses(foods: List[FoodItem]) -> List[FoodItemResponse]:
    """Resolve each item's category; a deleted category shows up as null."""
    categories = await fetch_by_ids(Category, (food.category for food in foods))
    responses = []
    for food in foods:
        category = categories.get(food.category)
        responses.append(FoodItemResponse(
            id=food.id,
            name=food.name,
            category=Reference(id=category.id, name=category.name) if category else None,
            price=food.price,
            picture=food.picture,
            shop=food.shop,
            created_at=food.created_at,
        ))
    return responses


def parse_price(value: str) -> float:
    try:
        price = float(value)
    except (TypeError, ValueError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="price must be a number")
    if not math.isfinite(price):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="price must be a number")
    if price < 0:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="price must not be negative")
    return price


async def shop_category(shop: Shop, category_id: str) -> Category:
    try:
        oid = PydanticObjectId(category_id)
    except (InvalidId, TypeError):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid categoryId")
    category = await Category.find_one({"_id": oid, "shop": shop.id})
    if category is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Category does not belong to your shop")
    return category


# PUBLIC

@router.get("/all", response_model=List[FoodItemResponse])
async def list_food():
    return await food_responses(await FoodItem.find_all().to_list())


@router.get("/shop/{shop_id}", response_model=List[FoodItemResponse])
async def shop_food(shop_id: PydanticObjectId):
    return await food_responses(await FoodItem.find(FoodItem.shop == shop_id).to_list())


# SHOP OWNER

@router.get("/my-shop", response_model=List[FoodItemResponse])
async def my_shop_food(shop: Shop = Depends(require_owner_shop)):
    return await food_responses(await FoodItem.find(FoodItem.shop == shop.id).to_list())


@router.post("", response_model=FoodItemResponse, status_code=status.HTTP_201_CREATED)
async def create_food(
    name: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None, alias="categoryId"),
    price: Optional[str] = Form(None),
    picture: Optional[UploadFile] = File(None),
    shop: Shop = Depends(require_owner_shop),
):
    picture_url = await save_image(picture) if picture is not None and picture.filename else None
    try:
        food_name = required_text(name, "name")
        category = await shop_category(shop, required_text(category_id, "categoryId"))
        food = validated(
            FoodItem,
            name=food_name,
            category=category.id,
            price=parse_price(required_text(price, "price")),
            picture=picture_url,
            shop=shop.id,
        )
        await food.insert()
    except Exception:
        await discard_uploads([picture_url])
        raise
    return (await food_responses([food]))[0]


@router.put("/{food_id}", response_model=FoodItemResponse)
async def update_food(
    food_id: PydanticObjectId,
    name: Optional[str] = Form(None),
    category_id: Optional[str] = Form(None, alias="categoryId"),
    price: Optional[str] = Form(None),
    picture: Optional[UploadFile] = File(None),
    remove_picture: bool = Form(False, alias="removePicture"),
    shop: Shop = Depends(require_owner_shop),
):
    """Partial update; ``removePicture=true`` drops the current image."""
    food = await FoodItem.find_one({"_id": food_id, "shop": shop.id})
    if food is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Food item not found")

    changes = {}
    name = optional_text(name, "name")
    if name is not None:
        changes["name"] = name
    if category_id is not None:
        changes["category"] = (await shop_category(shop, category_id)).id
    if price is not None:
        changes["price"] = parse_price(price)
    validated_changes(food, changes)

    old_picture = new_picture = None
    if picture is not None and picture.filename:
        old_picture = food.picture
        new_picture = changes["picture"] = await save_image(picture)
    elif remove_picture:
        old_picture, changes["picture"] = food.picture, None

    changes["updated_at"] = datetime.utcnow()
    try:
        await food.update({"$set": changes})
    except Exception:
        await discard_uploads([new_picture])
        raise
    await discard_uploads([old_picture])
    return (await food_responses([food]))[0]


@router.delete("/{food_id}", response_model=MessageResponse)
async def delete_food(food_id: PydanticObjectId, shop: Shop = Depends(require_owner_shop)):
    food = await FoodItem.find_one({"_id": food_id, "shop": shop.id})
    if food is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Food item not found.")
    await food.delete()
    await discard_uploads([food.picture])
    return MessageResponse(message="Food item deleted.")


@router.get("/{food_id}", response_model=FoodItemResponse)
async def get_food(food_id: PydanticObjectId):
    food = await FoodItem.get(food_id)
    if food is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Food item not found")
    return (await food_responses([food]))[0]
