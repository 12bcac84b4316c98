from datetime import datetime
from typing import List

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, HTTPException, status

from models import Category, Shop
from routers.shops import require_owner_shop
from schemas import CategoryCreate, CategoryResponse, MessageResponse

router = APIRouter(prefix="/api/categories", tags=["categories"])


async def ensure_unique_name(shop: Shop, name: str, exclude_id=None):
    query = {"name": name, "shop": shop.id}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    if await Category.find_one(query) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category already exists.")


# PUBLIC

@router.get("/all", response_model=List[CategoryResponse])
async def list_categories():
    return [CategoryResponse.model_validate(c) for c in await Category.find_all().to_list()]


@router.get("/shop/{shop_id}", response_model=List[CategoryResponse])
async def shop_categories(shop_id: PydanticObjectId):
    return [CategoryResponse.model_validate(c) for c in await Category.find(Category.shop == shop_id).to_list()]


# SHOP OWNER

@router.get("/my-shop", response_model=List[CategoryResponse])
async def my_shop_categories(shop: Shop = Depends(require_owner_shop)):
    return [CategoryResponse.model_validate(c) for c in await Category.find(Category.shop == shop.id).to_list()]


@router.post("", response_model=CategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_category(payload: CategoryCreate, shop: Shop = Depends(require_owner_shop)):
    await ensure_unique_name(shop, payload.name)
    category = Category(name=payload.name, shop=shop.id)
    await category.insert()
    return CategoryResponse.model_validate(category)


@router.put("/{category_id}", response_model=CategoryResponse)
async def rename_category(category_id: PydanticObjectId, payload: CategoryCreate,
                          shop: Shop = Depends(require_owner_shop)):
    category = await Category.find_one({"_id": category_id, "shop": shop.id})
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found.")

    await ensure_unique_name(shop, payload.name, exclude_id=category.id)
    await category.update({"$set": {"name": payload.name, "updated_at": datetime.utcnow()}})
    return CategoryResponse.model_validate(category)


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_category(category_id: PydanticObjectId, shop: Shop = Depends(require_owner_shop)):
    """Food items keep their (now dangling) category reference."""
    category = await Category.find_one({"_id": category_id, "shop": shop.id})
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found.")
    await category.delete()
    return MessageResponse(message="Category deleted.")


@router.get("/{category_id}", response_model=CategoryResponse)
async def get_category(category_id: PydanticObjectId):
    category = await Category.get(category_id)
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found.")
    return CategoryResponse.model_validate(category)
