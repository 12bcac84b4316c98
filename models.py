from beanie import Document, Indexed, PydanticObjectId
from pydantic import BaseModel, Field
from pymongo import ASCENDING, IndexModel
from typing import List, Optional
from datetime import datetime
from enum import Enum


# 1. ACCOUNT MODELS (two independent realms, same shape)
class Account(Document):
    email: Indexed(str, unique=True)
    name: str
    password_hash: str
    is_verified: bool = False
    verification_token: Optional[str] = None
    verification_token_expires_at: Optional[datetime] = None
    reset_password_token: Optional[str] = None
    reset_password_expires_at: Optional[datetime] = None
    last_login: datetime = Field(default_factory=datetime.utcnow)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)


class ShopOwner(Account):
    class Settings:
        name = "shop_owners"


class SiteUser(Account):
    favourites: List[PydanticObjectId] = Field(default_factory=list)

    class Settings:
        name = "site_users"


# 2. SHOP OWNER SESSIONS
class OwnerSession(Document):
    session_id: Indexed(str, unique=True)
    owner_id: PydanticObjectId
    is_verified: bool = False
    created_at: datetime = Field(default_factory=datetime.utcnow)
    expires_at: datetime

    class Settings:
        name = "sessions"
        indexes = [
            IndexModel([("expires_at", ASCENDING)], expireAfterSeconds=0),
        ]


# 3. SHOPS, CATEGORIES AND MENU
class ShopType(str, Enum):
    restaurant = "restaurant"
    small_food_shop = "small_food_shop"
    hotel = "hotel"


class ShopReview(BaseModel):
    """Legacy embedded review, superseded by Comment."""
    name: Optional[str] = None
    rating: Optional[int] = None
    comment: Optional[str] = None


class Shop(Document):
    name: str
    active_time: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None
    photo: Optional[str] = None
    price_range: Optional[str] = None
    shop_type: ShopType
    contact: str
    owner: Indexed(PydanticObjectId)
    reviews: List[ShopReview] = Field(default_factory=list)
    likes: List[PydanticObjectId] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "shops"
        indexes = ["likes"]


class Category(Document):
    name: str = Field(max_length=50)
    shop: PydanticObjectId
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "categories"
        indexes = [
            IndexModel([("name", ASCENDING), ("shop", ASCENDING)], unique=True),
        ]


class FoodItem(Document):
    name: str = Field(max_length=100)
    category: PydanticObjectId
    price: float = Field(ge=0, allow_inf_nan=False)
    picture: Optional[str] = None
    shop: Indexed(PydanticObjectId)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "food_items"


# 4. USER PLACES
class PlaceCategory(Document):
    name: str = Field(max_length=50)
    user: PydanticObjectId
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "place_categories"
        indexes = [
            IndexModel([("name", ASCENDING), ("user", ASCENDING)], unique=True),
        ]


class Place(Document):
    title: str = Field(max_length=100)
    description: Optional[str] = Field(default=None, max_length=1000)
    location: str
    images: List[str] = Field(default_factory=list)
    user: Indexed(PydanticObjectId)
    categories: List[PydanticObjectId] = Field(default_factory=list)
    likes: List[PydanticObjectId] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=datetime.utcnow)
    updated_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "places"
        indexes = ["likes"]


# 5. COMMENTS (immutable once created)
class Comment(Document):
    message: str
    rating: int = Field(ge=1, le=5)
    user: PydanticObjectId
    shop: Indexed(PydanticObjectId)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "comments"


class PlaceComment(Document):
    message: str
    rating: int = Field(ge=1, le=5)
    user: PydanticObjectId
    place: Indexed(PydanticObjectId)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    class Settings:
        name = "place_comments"
