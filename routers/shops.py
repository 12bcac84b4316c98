from datetime import datetime
import logging
from typing import List, Optional

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from auth import TokenIdentity, get_current_site_user
from errors import required_text, optional_text, validated, validated_changes
from likes import toggle_like, current_likes
from models import Shop, ShopType, Category, FoodItem, Comment
from schemas import (PublicShopResponse, ShopResponse, LikeResponse, LikesResponse,
                     LikeCountResponse, MessageResponse)
from sessions import SessionIdentity, require_owner_session
from uploads import save_image, discard_uploads

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/shops", tags=["shops"])


async def find_owner_shop(identity: SessionIdentity) -> Optional[Shop]:
    return await Shop.find_one(Shop.owner == identity.current_principal_id())


async def require_owner_shop(identity: SessionIdentity = Depends(require_owner_session)) -> Shop:
    """The caller's shop, for routes that only make sense once a shop exists."""
    shop = await find_owner_shop(identity)
    if shop is None:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="No shop for user")
    return shop


def parse_shop_type(value: str) -> ShopType:
    try:
        return ShopType(value.strip())
    except ValueError:
        allowed = ", ".join(t.value for t in ShopType)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"shopType must be one of: {allowed}")


async def load_owned_shop(shop_id: PydanticObjectId, identity: SessionIdentity) -> Shop:
    shop = await Shop.get(shop_id)
    if shop is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shop not found")
    if shop.owner != identity.current_principal_id():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Unauthorized")
    return shop


# PUBLIC

@router.get("/all", response_model=List[PublicShopResponse])
async def list_shops():
    shops = await Shop.find_all().sort(-Shop.created_at).to_list()
    return [PublicShopResponse.from_document(shop) for shop in shops]


# SHOP OWNER (session)

@router.get("/my-shop", response_model=ShopResponse)
async def my_shop(identity: SessionIdentity = Depends(require_owner_session)):
    shop = await find_owner_shop(identity)
    if shop is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shop not found")
    return ShopResponse.from_document(shop)


@router.post("", response_model=ShopResponse, status_code=status.HTTP_201_CREATED)
async def create_shop(
    name: Optional[str] = Form(None),
    shop_type: Optional[str] = Form(None, alias="shopType"),
    contact: Optional[str] = Form(None),
    active_time: Optional[str] = Form(None, alias="activeTime"),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    price_range: Optional[str] = Form(None, alias="priceRange"),
    photo: Optional[UploadFile] = File(None),
    identity: SessionIdentity = Depends(require_owner_session),
):
    if await find_owner_shop(identity) is not None:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="User already owns a shop.")

    photo_url = await save_image(photo) if photo is not None and photo.filename else None
    try:
        shop = validated(
            Shop,
            name=required_text(name, "name"),
            shop_type=parse_shop_type(required_text(shop_type, "shopType")),
            contact=required_text(contact, "contact"),
            active_time=active_time.strip() if active_time else None,
            description=description.strip() if description else None,
            location=location.strip() if location else None,
            price_range=price_range.strip() if price_range else None,
            photo=photo_url,
            owner=identity.current_principal_id(),
        )
        await shop.insert()
    except Exception:
        await discard_uploads([photo_url])
        raise
    logger.info("Shop %s created by owner %s", shop.id, shop.owner)
    return ShopResponse.from_document(shop)


@router.put("/{shop_id}", response_model=ShopResponse)
async def update_shop(
    shop_id: PydanticObjectId,
    name: Optional[str] = Form(None),
    shop_type: Optional[str] = Form(None, alias="shopType"),
    contact: Optional[str] = Form(None),
    active_time: Optional[str] = Form(None, alias="activeTime"),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    price_range: Optional[str] = Form(None, alias="priceRange"),
    photo: Optional[UploadFile] = File(None),
    identity: SessionIdentity = Depends(require_owner_session),
):
    """Only the fields that were sent replace the stored ones."""
    shop = await load_owned_shop(shop_id, identity)

    changes = {}
    name = optional_text(name, "name")
    contact = optional_text(contact, "contact")
    if name is not None:
        changes["name"] = name
    if contact is not None:
        changes["contact"] = contact
    if shop_type is not None:
        changes["shop_type"] = parse_shop_type(shop_type).value
    if active_time is not None:
        changes["active_time"] = active_time.strip()
    if description is not None:
        changes["description"] = description.strip()
    if location is not None:
        changes["location"] = location.strip()
    if price_range is not None:
        changes["price_range"] = price_range.strip()
    validated_changes(shop, changes)

    old_photo = new_photo = None
    if photo is not None and photo.filename:
        old_photo = shop.photo
        new_photo = changes["photo"] = await save_image(photo)

    # $set only what changed; likes are written concurrently by the toggle
    changes["updated_at"] = datetime.utcnow()
    try:
        await shop.update({"$set": changes})
    except Exception:
        await discard_uploads([new_photo])
        raise
    await discard_uploads([old_photo])
    return ShopResponse.from_document(shop)


@router.delete("/{shop_id}", response_model=MessageResponse)
async def delete_shop(shop_id: PydanticObjectId, identity: SessionIdentity = Depends(require_owner_session)):
    """Remove the shop with its menu, comments and stored images."""
    shop = await load_owned_shop(shop_id, identity)

    foods = await FoodItem.find(FoodItem.shop == shop.id).to_list()
    await FoodItem.find(FoodItem.shop == shop.id).delete()
    await Category.find(Category.shop == shop.id).delete()
    await Comment.find(Comment.shop == shop.id).delete()
    await shop.delete()

    await discard_uploads([shop.photo] + [food.picture for food in foods])
    logger.info("Shop %s deleted by owner %s", shop.id, shop.owner)
    return MessageResponse(message="Shop deleted.")


# LIKES

@router.post("/{shop_id}/like", response_model=LikeResponse)
async def like_shop(shop_id: PydanticObjectId, identity: TokenIdentity = Depends(get_current_site_user)):
    state = await toggle_like(Shop, shop_id, identity.current_principal_id(), not_found="Shop not found")
    return LikeResponse(liked=state.liked, like_count=state.like_count, likes=state.likes)


@router.get("/{shop_id}/likes", response_model=LikesResponse)
async def shop_likes(shop_id: PydanticObjectId):
    likes = await current_likes(Shop, shop_id, not_found="Shop not found")
    return LikesResponse(likes=likes, like_count=len(likes))


@router.get("/{shop_id}/likes/count", response_model=LikeCountResponse)
async def shop_like_count(shop_id: PydanticObjectId):
    likes = await current_likes(Shop, shop_id, not_found="Shop not found")
    return LikeCountResponse(like_count=len(likes))


@router.get("/{shop_id}", response_model=PublicShopResponse)
async def get_shop(shop_id: PydanticObjectId):
    shop = await Shop.get(shop_id)
    if shop is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shop not found")
    return PublicShopResponse.from_document(shop)
