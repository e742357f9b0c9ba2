# backend/app/services/stores.py
"""
Persistence for users, the doctor catalog and authored prescriptions.

Each store has a MongoDB implementation and an in-memory one with the same
coroutine methods. The in-memory stores back local runs without a database
and the test suite.
"""

import functools
import logging
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import ValidationError as SchemaError
from pymongo import ReturnDocument
from pymongo.errors import PyMongoError

from app.core.errors import PersistenceError
from app.models import Doctor

logger = logging.getLogger(__name__)


def _db_call(func):
    """Turn driver errors into PersistenceError."""

    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except PyMongoError as e:
            logger.error("MongoDB operation %s failed: %s", func.__qualname__, e)
            raise PersistenceError("Database operation failed") from e

    return wrapper


def _to_doctors(docs: List[Dict[str, Any]]) -> List[Doctor]:
    doctors = []
    for doc in docs:
        try:
            doctors.append(Doctor.model_validate(doc))
        except SchemaError as e:
            logger.warning("Skipping malformed doctor record %r: %s", doc.get("name"), e)
    return doctors


# -------- MongoDB --------

class MongoUserStore:
    def __init__(self, collection):
        self.collection = collection

    @staticmethod
    def _from_doc(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if doc is None:
            return None
        doc["uid"] = str(doc.pop("_id"))
        return doc

    @_db_call
    async def get(self, uid: str) -> Optional[Dict[str, Any]]:
        return self._from_doc(await self.collection.find_one({"_id": uid}))

    @_db_call
    async def update(self, uid: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        doc = await self.collection.find_one_and_update(
            {"_id": uid},
            {"$set": fields},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return self._from_doc(doc)

    @_db_call
    async def increment(self, uid: str, field: str, extra: Optional[Dict[str, Any]] = None) -> int:
        update: Dict[str, Any] = {"$inc": {field: 1}}
        if extra:
            update["$set"] = extra
        doc = await self.collection.find_one_and_update(
            {"_id": uid},
            update,
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return int(doc[field])

    @_db_call
    async def list_by_role(self, role: str) -> List[Dict[str, Any]]:
        docs = await self.collection.find({"role": role}).sort("_id", 1).to_list()
        return [self._from_doc(d) for d in docs]


class MongoDoctorCatalog:
    def __init__(self, collection):
        self.collection = collection

    @_db_call
    async def list_doctors(self) -> List[Doctor]:
        docs = await self.collection.find({}, {"_id": 0}).sort("sl_no", 1).to_list()
        doctors = _to_doctors(docs)
        logger.info("Retrieved %d doctors from database", len(doctors))
        return doctors


class MongoPrescriptionStore:
    def __init__(self, collection):
        self.collection = collection

    @_db_call
    async def add(self, record: Dict[str, Any]) -> str:
        result = await self.collection.insert_one(dict(record))
        return str(result.inserted_id)

    @_db_call
    async def find(self, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        docs = await self.collection.find(filters).sort("_id", 1).to_list()
        for d in docs:
            d["id"] = str(d.pop("_id"))
        return docs


# -------- In-memory --------

class InMemoryUserStore:
    def __init__(self, users: Optional[Dict[str, Dict[str, Any]]] = None):
        self.users: Dict[str, Dict[str, Any]] = users or {}

    async def get(self, uid: str) -> Optional[Dict[str, Any]]:
        doc = self.users.get(uid)
        return {**doc, "uid": uid} if doc is not None else None

    async def update(self, uid: str, fields: Dict[str, Any]) -> Dict[str, Any]:
        self.users.setdefault(uid, {}).update(fields)
        return await self.get(uid)

    async def increment(self, uid: str, field: str, extra: Optional[Dict[str, Any]] = None) -> int:
        doc = self.users.setdefault(uid, {})
        doc.update(extra or {})
        doc[field] = doc.get(field, 0) + 1
        return doc[field]

    async def list_by_role(self, role: str) -> List[Dict[str, Any]]:
        return [
            {**doc, "uid": uid}
            for uid, doc in sorted(self.users.items())
            if doc.get("role") == role
        ]


class InMemoryDoctorCatalog:
    def __init__(self, doctors: Optional[List[Dict[str, Any]]] = None):
        self.doctors = list(doctors or [])
        self.reads = 0

    async def list_doctors(self) -> List[Doctor]:
        self.reads += 1
        return _to_doctors(sorted(self.doctors, key=lambda d: d.get("sl_no", 0)))


class InMemoryPrescriptionStore:
    def __init__(self):
        self.records: Dict[str, Dict[str, Any]] = {}

    async def add(self, record: Dict[str, Any]) -> str:
        record_id = uuid4().hex
        self.records[record_id] = dict(record)
        return record_id

    async def find(self, filters: Dict[str, Any]) -> List[Dict[str, Any]]:
        return [
            {**r, "id": rid}
            for rid, r in self.records.items()
            if all(r.get(k) == v for k, v in filters.items())
        ]
