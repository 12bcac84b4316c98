from datetime import datetime
from typing import List

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, HTTPException, status

from auth import TokenIdentity, get_current_site_user
from models import PlaceCategory
from schemas import CategoryCreate, PlaceCategoryResponse, MessageResponse

router = APIRouter(prefix="/api/placecat", tags=["place categories"])


async def ensure_unique_name(user_id: PydanticObjectId, name: str, exclude_id=None):
    query = {"name": name, "user": user_id}
    if exclude_id is not None:
        query["_id"] = {"$ne": exclude_id}
    if await PlaceCategory.find_one(query) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Category already exists")


async def load_own_category(category_id: PydanticObjectId, identity: TokenIdentity) -> PlaceCategory:
    category = await PlaceCategory.find_one({"_id": category_id, "user": identity.current_principal_id()})
    if category is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Category not found or not authorized")
    return category


@router.get("", response_model=List[PlaceCategoryResponse])
async def list_place_categories():
    return [PlaceCategoryResponse.model_validate(c) for c in await PlaceCategory.find_all().to_list()]


@router.get("/user", response_model=List[PlaceCategoryResponse])
async def my_place_categories(identity: TokenIdentity = Depends(get_current_site_user)):
    categories = await PlaceCategory.find(PlaceCategory.user == identity.current_principal_id()).to_list()
    return [PlaceCategoryResponse.model_validate(c) for c in categories]


@router.post("", response_model=PlaceCategoryResponse, status_code=status.HTTP_201_CREATED)
async def create_place_category(payload: CategoryCreate, identity: TokenIdentity = Depends(get_current_site_user)):
    await ensure_unique_name(identity.current_principal_id(), payload.name)
    category = PlaceCategory(name=payload.name, user=identity.current_principal_id())
    await category.insert()
    return PlaceCategoryResponse.model_validate(category)


@router.put("/{category_id}", response_model=PlaceCategoryResponse)
async def rename_place_category(category_id: PydanticObjectId, payload: CategoryCreate,
                                identity: TokenIdentity = Depends(get_current_site_user)):
    category = await load_own_category(category_id, identity)
    await ensure_unique_name(identity.current_principal_id(), payload.name, exclude_id=category.id)

    await category.update({"$set": {"name": payload.name, "updated_at": datetime.utcnow()}})
    return PlaceCategoryResponse.model_validate(category)


@router.delete("/{category_id}", response_model=MessageResponse)
async def delete_place_category(category_id: PydanticObjectId, identity: TokenIdentity = Depends(get_current_site_user)):
    """Places that referenced the category simply stop listing it."""
    category = await load_own_category(category_id, identity)
    await category.delete()
    return MessageResponse(message="Category deleted successfully")
