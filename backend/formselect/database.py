import logging

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorClient
from pymongo import ASCENDING, DESCENDING

from formselect.config import settings

logger = logging.getLogger(__name__)

client = AsyncIOMotorClient(settings.MONGO_URI)
db = client[settings.DB_NAME]

forms_collection = db[settings.FORMS_COLLECTION]


async def ensure_indexes(collection=None):
    """Create the unique formId index and the createdAt sort index."""
    collection = forms_collection if collection is None else collection
    await collection.create_index([("formId", ASCENDING)], unique=True, name="formId_unique")
    await collection.create_index([("createdAt", DESCENDING)], name="createdAt_desc")
    logger.info("Indexes ensured on collection %s", collection.name)


def convert_objectid_to_str(doc: dict) -> dict:
    """Convert MongoDB ObjectId fields to strings for JSON serialization."""
    if doc is None:
        return doc

    if isinstance(doc, dict):
        result = {}
        for key, value in doc.items():
            if isinstance(value, ObjectId):
                result[key] = str(value)
            elif isinstance(value, dict):
                result[key] = convert_objectid_to_str(value)
            elif isinstance(value, list):
                result[key] = [convert_objectid_to_str(item) if isinstance(item, dict) else (str(item) if isinstance(item, ObjectId) else item) for item in value]
            else:
                result[key] = value
        return result
    return doc


def serialize_form(doc: dict) -> dict:
    """Expose the storage _id as ``id`` and make the document JSON friendly."""
    if doc is None:
        return doc
    doc = dict(doc)
    if "_id" in doc:
        doc["id"] = doc.pop("_id")
    return convert_objectid_to_str(doc)
