from datetime import datetime
import logging
from typing import List, Optional

from beanie import PydanticObjectId
from bson.errors import InvalidId
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile, status

from auth import TokenIdentity, get_current_site_user
from database import fetch_by_ids
from errors import required_text, optional_text, validated, validated_changes
from likes import toggle_like, current_likes
from models import Place, PlaceCategory, PlaceComment, SiteUser
from schemas import PlaceResponse, Reference, UserReference, LikeResponse, LikesResponse, MessageResponse
from uploads import MAX_PLACE_IMAGES, save_images, discard_uploads

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/place", tags=["places"])


async def place_responses(places: List[Place]) -> List[PlaceResponse]:
    users = await fetch_by_ids(SiteUser, (place.user for place in places))
    categories = await fetch_by_ids(PlaceCategory, (cid for place in places for cid in place.categories))

    responses = []
    for place in places:
        user = users.get(place.user)
        responses.append(PlaceResponse(
            id=place.id,
            title=place.title,
            description=place.description,
            location=place.location,
            images=place.images,
            user=UserReference(id=user.id, name=user.name, email=user.email) if user else None,
            categories=[Reference(id=categories[cid].id, name=categories[cid].name)
                        for cid in place.categories if cid in categories],
            likes=place.likes,
            like_count=len(place.likes),
            created_at=place.created_at,
        ))
    return responses


async def own_category_ids(raw_ids: Optional[List[str]], identity: TokenIdentity) -> List[PydanticObjectId]:
    """Only the caller's own place categories may be attached."""
    wanted = []
    for raw in raw_ids or []:
        if not raw or not raw.strip():
            continue
        try:
            oid = PydanticObjectId(raw.strip())
        except (InvalidId, TypeError):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid category id")
        if oid not in wanted:
            wanted.append(oid)

    if wanted:
        found = await PlaceCategory.find({"_id": {"$in": wanted}, "user": identity.current_principal_id()}).count()
        if found != len(wanted):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Unknown category")
    return wanted


async def load_own_place(place_id: PydanticObjectId, identity: TokenIdentity) -> Place:
    place = await Place.find_one({"_id": place_id, "user": identity.current_principal_id()})
    if place is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Place not found or not authorized")
    return place


@router.get("", response_model=List[PlaceResponse])
async def list_places():
    return await place_responses(await Place.find_all().sort(-Place.created_at).to_list())


@router.post("", response_model=PlaceResponse, status_code=status.HTTP_201_CREATED)
async def create_place(
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    categories: Optional[List[str]] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    identity: TokenIdentity = Depends(get_current_site_user),
):
    """Store up to five images; any failure afterwards removes them again."""
    image_urls = await save_images(images, MAX_PLACE_IMAGES)
    try:
        place = validated(
            Place,
            title=required_text(title, "title"),
            location=required_text(location, "location"),
            description=description.strip() if description else None,
            images=image_urls,
            categories=await own_category_ids(categories, identity),
            user=identity.current_principal_id(),
        )
        await place.insert()
    except Exception:
        await discard_uploads(image_urls)
        raise
    logger.info("Place %s created by user %s", place.id, place.user)
    return (await place_responses([place]))[0]


@router.put("/{place_id}", response_model=PlaceResponse)
async def update_place(
    place_id: PydanticObjectId,
    title: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    location: Optional[str] = Form(None),
    categories: Optional[List[str]] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    identity: TokenIdentity = Depends(get_current_site_user),
):
    """Partial update; new images are appended while the place holds fewer than five."""
    place = await load_own_place(place_id, identity)

    changes = {}
    title = optional_text(title, "title")
    location = optional_text(location, "location")
    if title is not None:
        changes["title"] = title
    if location is not None:
        changes["location"] = location
    if description is not None:
        changes["description"] = description.strip()
    if categories is not None:
        changes["categories"] = await own_category_ids(categories, identity)
    validated_changes(place, changes)

    new_images = await save_images(images, MAX_PLACE_IMAGES - len(place.images))
    changes["updated_at"] = datetime.utcnow()
    update = {"$set": changes}
    if new_images:
        update["$push"] = {"images": {"$each": new_images}}
    try:
        await place.update(update)
    except Exception:
        await discard_uploads(new_images)
        raise
    return (await place_responses([place]))[0]


@router.delete("/{place_id}", response_model=MessageResponse)
async def delete_place(place_id: PydanticObjectId, identity: TokenIdentity = Depends(get_current_site_user)):
    place = await load_own_place(place_id, identity)
    await PlaceComment.find(PlaceComment.place == place.id).delete()
    await place.delete()
    await discard_uploads(place.images)
    return MessageResponse(message="Place deleted successfully")


@router.post("/{place_id}/like", response_model=LikeResponse)
async def like_place(place_id: PydanticObjectId, identity: TokenIdentity = Depends(get_current_site_user)):
    state = await toggle_like(Place, place_id, identity.current_principal_id(), not_found="Place not found")
    return LikeResponse(liked=state.liked, like_count=state.like_count, likes=state.likes)


@router.get("/{place_id}/likes", response_model=LikesResponse)
async def place_likes(place_id: PydanticObjectId):
    likes = await current_likes(Place, place_id, not_found="Place not found")
    return LikesResponse(likes=likes, like_count=len(likes))


@router.get("/{place_id}", response_model=PlaceResponse)
async def get_place(place_id: PydanticObjectId):
    place = await Place.get(place_id)
    if place is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Place not found")
    return (await place_responses([place]))[0]
