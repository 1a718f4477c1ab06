import logging
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from pymongo import DESCENDING, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from formselect.errors import FormConflictError, FormNotFoundError, FormStoreError

logger = logging.getLogger(__name__)


def storage_filter(form_id: str) -> Optional[Dict[str, Any]]:
    """Filter matching the storage-assigned _id, or None if form_id is not an ObjectId."""
    try:
        return {"_id": ObjectId(form_id)}
    except (InvalidId, TypeError):
        return None


def _definition_title(definition: Dict[str, Any]) -> Optional[str]:
    # formDefinition is arbitrary JSON; only a plain string can be the document title
    title = definition.get("title")
    return title if isinstance(title, str) else None


class FormStore:
    """
    Persistence for form documents.

    Every single-record operation resolves ``form_id`` in two steps: first as
    the storage _id, then as the caller-supplied ``formId``. A malformed _id is
    a miss, never an error, so the ``formId`` lookup always gets its turn.
    """

    def __init__(self, collection):
        self.collection = collection

    async def create(self, form_id: str, definition: Dict[str, Any], title: Optional[str] = None) -> dict:
        try:
            existing = await self.collection.find_one({"formId": form_id})
        except PyMongoError as e:
            logger.exception("Error checking formId %s", form_id)
            raise FormStoreError("Error saving the form.", cause=e) from e
        if existing:
            raise FormConflictError(f"A form with formId '{form_id}' already exists.")

        doc = {
            "formId": form_id,
            "title": title or _definition_title(definition) or form_id,
            "formDefinition": definition,
            "createdAt": datetime.utcnow(),
        }
        try:
            result = await self.collection.insert_one(doc)
        except DuplicateKeyError as e:
            # Lost a concurrent create for the same formId
            raise FormConflictError(f"A form with formId '{form_id}' already exists.") from e
        except PyMongoError as e:
            logger.exception("Error saving form %s", form_id)
            raise FormStoreError("Error saving the form.", cause=e) from e

        doc["_id"] = result.inserted_id
        logger.info("Created form %s (%s)", form_id, result.inserted_id)
        return doc

    async def list_all(self) -> List[dict]:
        """Return all forms, most recently created first."""
        items = []
        try:
            async for item in self.collection.find({}, sort=[("createdAt", DESCENDING)]):
                items.append(item)
        except PyMongoError as e:
            logger.exception("Error listing forms")
            raise FormStoreError("Error retrieving the list of forms.", cause=e) from e
        return items

    async def find_by_either_id(self, form_id: str) -> dict:
        return await self._resolve(form_id, self.collection.find_one, "retrieving")

    async def update(self, form_id: str, definition: Dict[str, Any]) -> dict:
        async def update_one(query):
            return await self.collection.find_one_and_update(
                query,
                {"$set": {"formDefinition": definition}},
                return_document=ReturnDocument.AFTER,
            )

        doc = await self._resolve(form_id, update_one, "updating")
        logger.info("Updated form %s", doc.get("formId"))
        return doc

    async def delete(self, form_id: str) -> dict:
        doc = await self._resolve(form_id, self.collection.find_one_and_delete, "deleting")
        logger.info("Deleted form %s", doc.get("formId"))
        return doc

    async def _resolve(self, form_id: str, operation: Callable[[dict], Awaitable[Optional[dict]]], action: str) -> dict:
        query = storage_filter(form_id)
        if query is not None:
            try:
                doc = await operation(query)
            except PyMongoError as e:
                logger.warning("Lookup of %s by storage id failed, trying formId: %s", form_id, e)
                doc = None
            if doc:
                return doc

        try:
            doc = await operation({"formId": form_id})
        except PyMongoError as e:
            logger.exception("Error %s form %s", action, form_id)
            raise FormStoreError(f"Error {action} the form.", cause=e) from e

        if not doc:
            raise FormNotFoundError(form_id)
        return doc
