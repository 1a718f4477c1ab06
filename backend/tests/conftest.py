"""Shared fixtures: an in-memory stand-in for the forms collection."""

import copy
from datetime import datetime, timedelta
from types import SimpleNamespace

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient
from pymongo import ReturnDocument
from pymongo.errors import DuplicateKeyError

from formselect.main import app
from formselect.routers.forms import get_form_store
from formselect.store import FormStore


class _Cursor:
    def __init__(self, docs):
        self._docs = iter(docs)

    def __aiter__(self):
        return self

    async def __anext__(self):
        try:
            return next(self._docs)
        except StopIteration:
            raise StopAsyncIteration


class InMemoryCollection:
    """Implements just the collection calls FormStore makes, with a unique formId."""

    name = "forms"

    def __init__(self):
        self.docs = []

    def _match(self, query):
        for doc in self.docs:
            if all(doc.get(key) == value for key, value in query.items()):
                return doc
        return None

    async def create_index(self, keys, **kwargs):
        return kwargs.get("name")

    async def find_one(self, query):
        doc = self._match(query)
        return copy.deepcopy(doc) if doc else None

    async def insert_one(self, doc):
        if self._match({"formId": doc.get("formId")}):
            raise DuplicateKeyError("E11000 duplicate key error formId")
        stored = copy.deepcopy(doc)
        stored.setdefault("_id", ObjectId())
        self.docs.append(stored)
        return SimpleNamespace(inserted_id=stored["_id"])

    def find(self, query, sort=None):
        docs = [copy.deepcopy(doc) for doc in self.docs if all(doc.get(k) == v for k, v in query.items())]
        for field, direction in reversed(sort or []):
            docs.sort(key=lambda d: d[field], reverse=direction < 0)
        return _Cursor(docs)

    async def find_one_and_update(self, query, update, return_document=ReturnDocument.BEFORE):
        doc = self._match(query)
        if not doc:
            return None
        before = copy.deepcopy(doc)
        doc.update(copy.deepcopy(update["$set"]))
        return copy.deepcopy(doc) if return_document == ReturnDocument.AFTER else before

    async def find_one_and_delete(self, query):
        doc = self._match(query)
        if not doc:
            return None
        self.docs.remove(doc)
        return doc

    def seed(self, form_id, definition=None, age_minutes=0, **extra):
        doc = {
            "_id": ObjectId(),
            "formId": form_id,
            "title": form_id,
            "formDefinition": definition if definition is not None else {"title": form_id, "components": []},
            "createdAt": datetime(2024, 1, 1) - timedelta(minutes=age_minutes),
        }
        doc.update(extra)
        self.docs.append(doc)
        return doc


@pytest.fixture
def collection():
    return InMemoryCollection()


@pytest.fixture
def store(collection):
    return FormStore(collection)


@pytest.fixture
def client(collection):
    app.dependency_overrides[get_form_store] = lambda: FormStore(collection)
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def contact_form():
    return {
        "title": "Contact",
        "components": [
            {"type": "textfield", "key": "name", "label": "Name"},
            {"type": "email", "key": "email", "label": "Email"},
        ],
    }
