"""
Data access for users, tenders and applications.

``MongoStore`` is the only place queries are issued. Every method is a single
round-trip (or a single aggregation) against the backing store; nothing is
cached between calls.
"""
import functools
import re
from typing import Any, Dict, List, Optional

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING
from pymongo.errors import DuplicateKeyError, PyMongoError

from app.errors import DuplicateRecordError, StoreError
from app.models import (
    NESTED_APPLICATION_FIELDS,
    PUBLIC_USER_FIELDS,
    SEARCH_TENDER_FIELDS,
    TENDER_APPLICATION_FIELDS,
    pick,
)

NO_ID = {"_id": 0}


def _store_call(func):
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        try:
            return await func(*args, **kwargs)
        except DuplicateKeyError as exc:
            raise DuplicateRecordError(str(exc)) from exc
        except PyMongoError as exc:
            raise StoreError(str(exc)) from exc
    return wrapper


def _projection(fields) -> Dict[str, int]:
    projection = {field: 1 for field in fields}
    projection["_id"] = 0
    return projection


class MongoStore:
    def __init__(self, db: AsyncIOMotorDatabase):
        self.db = db

    @_store_call
    async def ensure_indexes(self):
        await self.db.users.create_index([("email", ASCENDING)], unique=True)
        await self.db.users.create_index([("id", ASCENDING)], unique=True)
        await self.db.tenders.create_index([("id", ASCENDING)], unique=True)
        await self.db.tenders.create_index([("creator_id", ASCENDING), ("created_at", DESCENDING)])
        await self.db.applications.create_index([("id", ASCENDING)], unique=True)
        await self.db.applications.create_index([("tender_id", ASCENDING), ("created_at", DESCENDING)])
        await self.db.applications.create_index([("applicant_id", ASCENDING), ("created_at", DESCENDING)])

    # Users

    @_store_call
    async def get_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return await self.db.users.find_one({"email": email}, NO_ID)

    @_store_call
    async def get_user(self, user_id: str) -> Optional[Dict[str, Any]]:
        return await self.db.users.find_one({"id": user_id}, _projection(PUBLIC_USER_FIELDS))

    @_store_call
    async def insert_user(self, user: Dict[str, Any]) -> Dict[str, Any]:
        # insert_one adds _id to the dict it is given
        await self.db.users.insert_one(dict(user))
        return user

    # Tenders

    @_store_call
    async def insert_tender(self, tender: Dict[str, Any]) -> Dict[str, Any]:
        await self.db.tenders.insert_one(dict(tender))
        return tender

    @_store_call
    async def get_tender(self, tender_id: str) -> Optional[Dict[str, Any]]:
        return await self.db.tenders.find_one({"id": tender_id}, NO_ID)

    @_store_call
    async def list_tenders(self, *, creator_id: str = None, exclude_creator: str = None) -> List[Dict[str, Any]]:
        query = {}
        if creator_id is not None:
            query["creator_id"] = creator_id
        if exclude_creator is not None:
            query["creator_id"] = {"$ne": exclude_creator}
        cursor = self.db.tenders.find(query, NO_ID).sort("created_at", DESCENDING)
        return await cursor.to_list(length=None)

    @_store_call
    async def search_tenders(self, *, exclude_creator: str, query: str) -> List[Dict[str, Any]]:
        """Case-insensitive substring match on title or description.

        Each result carries an ``owner`` sub-document with the creator's
        industry and company name when the creator still exists.
        """
        pattern = {"$regex": re.escape(query), "$options": "i"}
        pipeline = [
            {"$match": {
                "creator_id": {"$ne": exclude_creator},
                "$or": [{"title": pattern}, {"description": pattern}],
            }},
            {"$sort": {"created_at": DESCENDING}},
            {"$lookup": {
                "from": "users",
                "localField": "creator_id",
                "foreignField": "id",
                "as": "owners",
            }},
        ]
        results = []
        async for doc in self.db.tenders.aggregate(pipeline):
            tender = pick(doc, SEARCH_TENDER_FIELDS)
            owners = doc.get("owners") or []
            tender["owner"] = pick(owners[0], ("industry", "company_name")) if owners else None
            results.append(tender)
        return results

    # Applications

    @_store_call
    async def insert_application(self, application: Dict[str, Any]) -> Dict[str, Any]:
        await self.db.applications.insert_one(dict(application))
        return application

    @_store_call
    async def get_application(self, application_id: str) -> Optional[Dict[str, Any]]:
        return await self.db.applications.find_one({"id": application_id}, NO_ID)

    @_store_call
    async def list_tender_applications(self, tender_id: str) -> List[Dict[str, Any]]:
        cursor = self.db.applications.find(
            {"tender_id": tender_id}, _projection(TENDER_APPLICATION_FIELDS)
        ).sort("created_at", DESCENDING)
        return await cursor.to_list(length=None)

    @_store_call
    async def update_application_status(self, application_id: str, status: str) -> bool:
        result = await self.db.applications.update_one({"id": application_id}, {"$set": {"status": status}})
        return result.matched_count > 0

    @_store_call
    async def list_applicant_applications(self, applicant_id: str) -> List[Dict[str, Any]]:
        pipeline = [
            {"$match": {"applicant_id": applicant_id}},
            {"$sort": {"created_at": DESCENDING}},
            {"$lookup": {
                "from": "tenders",
                "localField": "tender_id",
                "foreignField": "id",
                "as": "tender_docs",
            }},
        ]
        results = []
        async for doc in self.db.applications.aggregate(pipeline):
            application = pick(doc, ("id", "proposal_text", "status", "created_at", "tender_id"))
            tenders = doc.get("tender_docs") or []
            application["tenders"] = pick(tenders[0], ("title", "deadline")) if tenders else None
            results.append(application)
        return results

    @_store_call
    async def list_tenders_with_applications(self, creator_id: str) -> List[Dict[str, Any]]:
        pipeline = [
            {"$match": {"creator_id": creator_id}},
            {"$sort": {"created_at": DESCENDING}},
            {"$lookup": {
                "from": "applications",
                "localField": "id",
                "foreignField": "tender_id",
                "as": "applications",
            }},
        ]
        results = []
        async for doc in self.db.tenders.aggregate(pipeline):
            tender = pick(doc, ("id", "title", "description", "deadline", "budget"))
            tender["applications"] = [
                pick(application, NESTED_APPLICATION_FIELDS)
                for application in doc.get("applications") or []
            ]
            results.append(tender)
        return results
