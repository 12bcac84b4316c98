# schemas.py
from pydantic import BaseModel, EmailStr, ConfigDict, Field, StringConstraints
from pydantic.alias_generators import to_camel
from beanie import PydanticObjectId
from typing import Optional, Annotated, List
from datetime import datetime

from models import ShopType

NonEmptyStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)]
Password = Annotated[str, Field(min_length=6)]
Rating = Annotated[int, Field(ge=1, le=5)]


class APIModel(BaseModel):
    """Wire schema: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


# 1 authentication (both realms)

class SignupRequest(APIModel):
    email: EmailStr
    password: Password
    name: NonEmptyStr

class LoginRequest(APIModel):
    email: EmailStr
    password: str

class VerifyEmailRequest(APIModel):
    code: NonEmptyStr
    email: Optional[EmailStr] = None

class ForgotPasswordRequest(APIModel):
    email: EmailStr

class ResetPasswordRequest(APIModel):
    password: Password

class ChangePasswordRequest(APIModel):
    current_password: str
    new_password: Password

class UpdateProfileRequest(APIModel):
    name: NonEmptyStr
    email: EmailStr

class AccountResponse(APIModel):
    id: PydanticObjectId
    email: EmailStr
    name: str
    is_verified: bool
    last_login: Optional[datetime] = None
    created_at: Optional[datetime] = None

class SiteUserResponse(AccountResponse):
    favourites: List[PydanticObjectId] = []

class MessageResponse(APIModel):
    success: bool = True
    message: str

class OwnerAuthResponse(MessageResponse):
    user: AccountResponse

class SiteUserAuthResponse(MessageResponse):
    user: SiteUserResponse
    token: Optional[str] = None

class CheckAuthResponse(APIModel):
    success: bool = True
    user: SiteUserResponse

class OwnerCheckAuthResponse(APIModel):
    success: bool = True
    user: AccountResponse


# 2 shared references

class Reference(APIModel):
    id: PydanticObjectId
    name: str

class UserReference(APIModel):
    id: PydanticObjectId
    name: str
    email: EmailStr


# 3 shops

class ShopReviewResponse(APIModel):
    name: Optional[str] = None
    rating: Optional[int] = None
    comment: Optional[str] = None

class PublicShopResponse(APIModel):
    id: PydanticObjectId
    name: str
    active_time: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    photo: Optional[str] = None
    price_range: Optional[str] = None
    shop_type: ShopType
    contact: str
    likes: List[PydanticObjectId] = []
    like_count: int = 0
    created_at: Optional[datetime] = None

    @classmethod
    def from_document(cls, shop):
        data = shop.model_dump()
        data["like_count"] = len(shop.likes)
        return cls.model_validate(data)

class ShopResponse(PublicShopResponse):
    owner: PydanticObjectId
    reviews: List[ShopReviewResponse] = []

class LikeResponse(APIModel):
    liked: bool
    like_count: int
    likes: List[PydanticObjectId]

class LikesResponse(APIModel):
    likes: List[PydanticObjectId]
    like_count: int

class LikeCountResponse(APIModel):
    like_count: int


# 4 categories and food

class CategoryCreate(APIModel):
    name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=50)]

class CategoryResponse(APIModel):
    id: PydanticObjectId
    name: str
    shop: PydanticObjectId
    created_at: Optional[datetime] = None

class FoodItemResponse(APIModel):
    id: PydanticObjectId
    name: str
    category: Optional[Reference] = None
    price: float
    picture: Optional[str] = None
    shop: PydanticObjectId
    created_at: Optional[datetime] = None


# 5 places

class PlaceCategoryResponse(APIModel):
    id: PydanticObjectId
    name: str
    user: PydanticObjectId
    created_at: Optional[datetime] = None

class PlaceResponse(APIModel):
    id: PydanticObjectId
    title: str
    description: Optional[str] = None
    location: str
    images: List[str] = []
    user: Optional[UserReference] = None
    categories: List[Reference] = []
    likes: List[PydanticObjectId] = []
    like_count: int = 0
    created_at: Optional[datetime] = None


# 6 comments

class CommentCreate(APIModel):
    shop_id: PydanticObjectId
    message: NonEmptyStr
    rating: Rating

class PlaceCommentCreate(APIModel):
    place: PydanticObjectId
    message: NonEmptyStr
    rating: Rating

class CommentResponse(APIModel):
    id: PydanticObjectId
    message: str
    rating: int
    user: Optional[UserReference] = None
    shop: PydanticObjectId
    created_at: Optional[datetime] = None

class PlaceCommentResponse(APIModel):
    id: PydanticObjectId
    message: str
    rating: int
    user: Optional[UserReference] = None
    place: PydanticObjectId
    created_at: Optional[datetime] = None

class RatingSummary(APIModel):
    average: float
    count: int


# 7 favourites

class FavouriteCreate(APIModel):
    shop_id: PydanticObjectId

class FavouritesResponse(APIModel):
    success: bool = True
    favourites: List[PydanticObjectId]
