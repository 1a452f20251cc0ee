from __future__ import annotations

import re
from datetime import datetime
from typing import Any, Dict, List

from bson import ObjectId
from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from ..errors import UpstreamFetchError
from ..models.donor import Donor, DonorProfile
from ..utils.logging import log_db_error


def serialize_id(document: Dict[str, Any]) -> Dict[str, Any]:
    """Make a Mongo document safe to load into the API models."""
    if "_id" in document:
        document["_id"] = str(document["_id"])
    return document


def resolve_id(value: str) -> Any:
    if ObjectId.is_valid(value):
        return ObjectId(value)
    return value


def id_filter(value: str) -> Dict[str, Any]:
    resolved = resolve_id(value)
    if resolved is value:
        return {"_id": value}
    # Rows written by other tools may carry the hex string instead of an ObjectId.
    return {"_id": {"$in": [resolved, value]}}


def city_filter(city: str) -> Dict[str, Any]:
    return {"$regex": re.escape(city), "$options": "i"}


class DonorRepository:
    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self.collection = collection

    async def _find(self, query: Dict[str, Any], context: str) -> List[Donor]:
        try:
            cursor = self.collection.find(query)
            return [Donor(**serialize_id(doc)) async for doc in cursor]
        except (PyMongoError, ValidationError) as exc:
            log_db_error(context, exc)
            raise UpstreamFetchError("Donor store unavailable") from exc

    async def _find_one(self, query: Dict[str, Any], context: str) -> Donor | None:
        try:
            document = await self.collection.find_one(query)
            if not document:
                return None
            return Donor(**serialize_id(document))
        except (PyMongoError, ValidationError) as exc:
            log_db_error(context, exc)
            raise UpstreamFetchError("Donor store unavailable") from exc

    async def fetch_available_donors(
        self,
        blood_group: str,
        city: str | None = None,
        pincode: str | None = None,
    ) -> List[Donor]:
        """Available donors of exactly ``blood_group``, in store order."""
        query: Dict[str, Any] = {"available": True, "blood_group": blood_group}
        if city:
            query["city"] = city_filter(city)
        if pincode:
            query["pincode"] = pincode
        return await self._find(query, "fetch_available_donors")

    async def search_donors(
        self,
        blood_group: str | None = None,
        city: str | None = None,
        pincode: str | None = None,
    ) -> List[Donor]:
        if blood_group:
            return await self.fetch_available_donors(blood_group, city, pincode)
        query: Dict[str, Any] = {"available": True}
        if city:
            query["city"] = city_filter(city)
        if pincode:
            query["pincode"] = pincode
        return await self._find(query, "search_donors")

    async def get_donor(self, donor_id: str) -> Donor | None:
        return await self._find_one(id_filter(donor_id), "get_donor")

    async def get_by_user(self, user_id: str) -> Donor | None:
        return await self._find_one({"user_id": user_id}, "get_donor_by_user")

    async def create_donor(self, profile: DonorProfile) -> Donor:
        now = datetime.utcnow()
        document = {
            **profile.model_dump(),
            "total_donations": 0,
            "last_donation_date": None,
            "created_at": now,
            "updated_at": now,
        }
        try:
            result = await self.collection.insert_one(document)
        except PyMongoError as exc:
            log_db_error("create_donor", exc)
            raise UpstreamFetchError("Donor store unavailable") from exc
        return await self._find_one({"_id": result.inserted_id}, "create_donor")

    async def update_donor(self, donor_id: str, changes: Dict[str, Any]) -> Donor | None:
        try:
            result = await self.collection.update_one(
                id_filter(donor_id),
                {"$set": {**changes, "updated_at": datetime.utcnow()}},
            )
        except PyMongoError as exc:
            log_db_error("update_donor", exc)
            raise UpstreamFetchError("Donor store unavailable") from exc
        if not result.matched_count:
            return None
        return await self.get_donor(donor_id)

    async def record_donation(self, donor_id: str, donated_at: datetime) -> None:
        try:
            await self.collection.update_one(
                id_filter(donor_id),
                {"$inc": {"total_donations": 1}, "$set": {"last_donation_date": donated_at}},
            )
        except PyMongoError as exc:
            log_db_error("record_donation", exc)
            raise UpstreamFetchError("Donor store unavailable") from exc
