"""Like/unlike toggle for shops and places.

Each direction is one conditional update on the target document, so two
callers liking the same target at once cannot lose each other's update. The
like count is always ``len(likes)``; it is never stored separately.
"""
from typing import List, NamedTuple, Type

from beanie import Document, PydanticObjectId
from fastapi import HTTPException, status
from pymongo import ReturnDocument


class LikeState(NamedTuple):
    liked: bool
    likes: List[PydanticObjectId]

    @property
    def like_count(self) -> int:
        return len(self.likes)


async def toggle_like(document_class: Type[Document], target_id: PydanticObjectId,
                      user_id: PydanticObjectId, not_found: str = "Not found") -> LikeState:
    collection = document_class.get_motor_collection()

    # a concurrent toggle by the same caller can flip state between the two
    # conditional updates, so try both directions twice before giving up
    for _ in range(2):
        doc = await collection.find_one_and_update(
            {"_id": target_id, "likes": {"$ne": user_id}},
            {"$addToSet": {"likes": user_id}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is not None:
            return LikeState(True, [PydanticObjectId(i) for i in doc.get("likes", [])])

        doc = await collection.find_one_and_update(
            {"_id": target_id, "likes": user_id},
            {"$pull": {"likes": user_id}},
            return_document=ReturnDocument.AFTER,
        )
        if doc is not None:
            return LikeState(False, [PydanticObjectId(i) for i in doc.get("likes", [])])

    raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)


async def current_likes(document_class: Type[Document], target_id: PydanticObjectId,
                        not_found: str = "Not found") -> List[PydanticObjectId]:
    target = await document_class.get(target_id)
    if target is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=not_found)
    return list(target.likes)
