from typing import List

from beanie import PydanticObjectId
from fastapi import APIRouter, Depends, HTTPException, status

import accounts
from auth import TokenIdentity, get_current_site_user
from database import fetch_by_ids
from models import Shop, SiteUser
from schemas import FavouriteCreate, FavouritesResponse, PublicShopResponse

router = APIRouter(prefix="/api/favourites", tags=["favourites"])


async def set_favourite(identity: TokenIdentity, update: dict) -> FavouritesResponse:
    await accounts.load_account(SiteUser, identity.current_principal_id())
    await SiteUser.get_motor_collection().update_one({"_id": identity.current_principal_id()}, update)
    user = await SiteUser.get(identity.current_principal_id())
    return FavouritesResponse(favourites=user.favourites)


@router.get("", response_model=List[PublicShopResponse])
async def list_favourites(identity: TokenIdentity = Depends(get_current_site_user)):
    """Favourite shops in the order they were added; removed shops are skipped."""
    user = await accounts.load_account(SiteUser, identity.current_principal_id())
    shops = await fetch_by_ids(Shop, user.favourites)
    return [PublicShopResponse.from_document(shops[sid]) for sid in user.favourites if sid in shops]


@router.post("", response_model=FavouritesResponse)
async def add_favourite(payload: FavouriteCreate, identity: TokenIdentity = Depends(get_current_site_user)):
    if await Shop.get(payload.shop_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Shop not found")
    return await set_favourite(identity, {"$addToSet": {"favourites": payload.shop_id}})


@router.delete("/{shop_id}", response_model=FavouritesResponse)
async def remove_favourite(shop_id: PydanticObjectId, identity: TokenIdentity = Depends(get_current_site_user)):
    return await set_favourite(identity, {"$pull": {"favourites": shop_id}})
