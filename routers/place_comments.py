from typing import List

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, HTTPException, status

from auth import TokenIdentity, get_current_site_user
from database import fetch_by_ids
from models import Place, PlaceComment, SiteUser
from routers.comments import summarize_ratings
from schemas import PlaceCommentCreate, PlaceCommentResponse, MessageResponse, RatingSummary, UserReference

router = APIRouter(prefix="/api/placecomment", tags=["place comments"])


async def place_comment_responses(comments: List[PlaceComment]) -> List[PlaceCommentResponse]:
    users = await fetch_by_ids(SiteUser, (c.user for c in comments))
    responses = []
    for comment in comments:
        user = users.get(comment.user)
        responses.append(PlaceCommentResponse(
            id=comment.id,
            message=comment.message,
            rating=comment.rating,
            user=UserReference(id=user.id, name=user.name, email=user.email) if user else None,
            place=comment.place,
            created_at=comment.created_at,
        ))
    return responses


@router.get("/place/{place_id}", response_model=List[PlaceCommentResponse])
async def place_comments(place_id: PydanticObjectId):
    """Newest first."""
    comments = await PlaceComment.find(PlaceComment.place == place_id).sort(-PlaceComment.created_at).to_list()
    return await place_comment_responses(comments)


@router.get("/place/{place_id}/rating", response_model=RatingSummary)
async def place_rating(place_id: PydanticObjectId):
    comments = await PlaceComment.find(PlaceComment.place == place_id).to_list()
    return summarize_ratings(c.rating for c in comments)


@router.get("/my-comments", response_model=List[PlaceCommentResponse])
async def my_place_comments(identity: TokenIdentity = Depends(get_current_site_user)):
    comments = await PlaceComment.find(PlaceComment.user == identity.current_principal_id()) \
        .sort(-PlaceComment.created_at).to_list()
    return await place_comment_responses(comments)


@router.post("", response_model=PlaceCommentResponse, status_code=status.HTTP_201_CREATED)
async def create_place_comment(payload: PlaceCommentCreate, identity: TokenIdentity = Depends(get_current_site_user)):
    if await Place.get(payload.place) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Place not found.")

    comment = PlaceComment(
        message=payload.message,
        rating=payload.rating,
        user=identity.current_principal_id(),
        place=payload.place,
    )
    await comment.insert()
    return (await place_comment_responses([comment]))[0]


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_place_comment(comment_id: PydanticObjectId, identity: TokenIdentity = Depends(get_current_site_user)):
    """Only the owner of the commented place may remove a comment."""
    comment = await PlaceComment.get(comment_id)
    if comment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found.")

    place = await Place.get(comment.place)
    if place is None or place.user != identity.current_principal_id():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to delete this comment")

    await comment.delete()
    return MessageResponse(message="Comment deleted.")
