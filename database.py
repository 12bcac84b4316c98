from dotenv import load_dotenv
import logging
import os
from typing import Dict, Iterable, Optional, Type
from motor.motor_asyncio import AsyncIOMotorClient
from beanie import Document, PydanticObjectId, init_beanie
load_dotenv()

logger = logging.getLogger(__name__)

MONGO_DB_URL = os.getenv("MONGO_DB_URL", "mongodb://localhost:27017")
MONGO_DB_NAME = os.getenv("MONGO_DB_NAME", "places_db")


def document_models():
    # local import
    from models import (ShopOwner, SiteUser, OwnerSession, Shop, Category, FoodItem,
                        Place, PlaceCategory, Comment, PlaceComment)

    return [ShopOwner, SiteUser, OwnerSession, Shop, Category, FoodItem,
            Place, PlaceCategory, Comment, PlaceComment]


async def init_db(database=None):
    """Bind every document model to the database (a fresh Motor client when none is given)."""
    if database is None:
        # 1 creating client
        client = AsyncIOMotorClient(MONGO_DB_URL)
        database = client[MONGO_DB_NAME]

    # 2 initialize beanie
    await init_beanie(database=database, document_models=document_models())
    logger.info("Connected to MongoDB database '%s'", database.name)
    return database


async def fetch_by_ids(model: Type[Document], ids: Iterable[Optional[PydanticObjectId]]) -> Dict[PydanticObjectId, Document]:
    """Load the referenced documents in one query; ids that no longer resolve are simply absent."""
    wanted = list({i for i in ids if i is not None})
    if not wanted:
        return {}
    found = await model.find({"_id": {"$in": wanted}}).to_list()
    return {doc.id: doc for doc in found}
