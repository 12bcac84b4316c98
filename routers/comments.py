from typing import Iterable, List

import pandas as pd  # rating analysis
from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, HTTPException, status

from auth import TokenIdentity, get_current_site_user
from database import fetch_by_ids
from models import Comment, Shop, SiteUser
from routers.shops import require_owner_shop
from schemas import CommentCreate, CommentResponse, MessageResponse, RatingSummary, UserReference
from sessions import SessionIdentity, require_owner_session

router = APIRouter(prefix="/api/comments", tags=["comments"])


def summarize_ratings(ratings: Iterable[int]) -> RatingSummary:
    """Average rating (one decimal) and number of ratings."""
    df = pd.DataFrame({"rating": list(ratings)})
    if df.empty:
        return RatingSummary(average=0, count=0)
    return RatingSummary(average=round(float(df["rating"].mean()), 1), count=len(df))


async def comment_responses(comments: List[Comment]) -> List[CommentResponse]:
    users = await fetch_by_ids(SiteUser, (c.user for c in comments))
    responses = []
    for comment in comments:
        user = users.get(comment.user)
        responses.append(CommentResponse(
            id=comment.id,
            message=comment.message,
            rating=comment.rating,
            user=UserReference(id=user.id, name=user.name, email=user.email) if user else None,
            shop=comment.shop,
            created_at=comment.created_at,
        ))
    return responses


# PUBLIC

@router.get("/shop/{shop_id}", response_model=List[CommentResponse])
async def shop_comments(shop_id: PydanticObjectId):
    comments = await Comment.find(Comment.shop == shop_id).sort(-Comment.created_at).to_list()
    return await comment_responses(comments)


@router.get("/shop/{shop_id}/rating", response_model=RatingSummary)
async def shop_rating(shop_id: PydanticObjectId):
    comments = await Comment.find(Comment.shop == shop_id).to_list()
    return summarize_ratings(c.rating for c in comments)


# SHOP OWNER (reviews of the owner's shop)

@router.get("/my-shop", response_model=List[CommentResponse])
async def my_shop_comments(shop: Shop = Depends(require_owner_shop)):
    comments = await Comment.find(Comment.shop == shop.id).sort(-Comment.created_at).to_list()
    return await comment_responses(comments)


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(comment_id: PydanticObjectId, identity: SessionIdentity = Depends(require_owner_session)):
    """Comments are only removed by the owner of the shop they were left on."""
    comment = await Comment.get(comment_id)
    if comment is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Comment not found.")

    shop = await Shop.get(comment.shop)
    if shop is None or shop.owner != identity.current_principal_id():
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not allowed to delete this comment")

    await comment.delete()
    return MessageResponse(message="Comment deleted.")


# SITE USER

@router.get("/my-comments", response_model=List[CommentResponse])
async def my_comments(identity: TokenIdentity = Depends(get_current_site_user)):
    comments = await Comment.find(Comment.user == identity.current_principal_id()).sort(-Comment.created_at).to_list()
    return await comment_responses(comments)


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(payload: CommentCreate, identity: TokenIdentity = Depends(get_current_site_user)):
    if await Shop.get(payload.shop_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shop not found.")

    comment = Comment(
        message=payload.message,
        rating=payload.rating,
        user=identity.current_principal_id(),
        shop=payload.shop_id,
    )
    await comment.insert()
    return (await comment_responses([comment]))[0]
