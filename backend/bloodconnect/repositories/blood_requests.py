from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from ..errors import UpstreamFetchError
from ..models.blood_request import URGENCY_RANK, BloodRequest, BloodRequestCreate
from ..utils.logging import log_db_error
from .donors import id_filter, serialize_id


class BloodRequestRepository:
    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self.collection = collection

    async def create(self, payload: BloodRequestCreate) -> BloodRequest:
        now = datetime.utcnow()
        document = {
            **payload.model_dump(),
            "status": "pending",
            "fulfilled_at": None,
            "created_at": now,
            "updated_at": now,
        }
        try:
            result = await self.collection.insert_one(document)
            stored = await self.collection.find_one({"_id": result.inserted_id})
            return BloodRequest(**serialize_id(stored))
        except (PyMongoError, ValidationError) as exc:
            log_db_error("create_blood_request", exc)
            raise UpstreamFetchError("Blood requests unavailable") from exc

    async def get(self, request_id: str) -> BloodRequest | None:
        try:
            document = await self.collection.find_one(id_filter(request_id))
            if not document:
                return None
            return BloodRequest(**serialize_id(document))
        except (PyMongoError, ValidationError) as exc:
            log_db_error("get_blood_request", exc)
            raise UpstreamFetchError("Blood requests unavailable") from exc

    async def list(
        self,
        hospital_id: str | None = None,
        status: str | None = None,
        blood_group: str | None = None,
        limit: int = 100,
    ) -> List[BloodRequest]:
        """Most urgent first, newest first within the same urgency."""
        query: Dict[str, Any] = {}
        if hospital_id:
            query["hospital_id"] = hospital_id
        if status:
            query["status"] = status
        if blood_group:
            query["blood_group"] = blood_group
        try:
            cursor = self.collection.find(query).sort("created_at", -1).limit(limit)
            items = [BloodRequest(**serialize_id(doc)) async for doc in cursor]
        except (PyMongoError, ValidationError) as exc:
            log_db_error("list_blood_requests", exc)
            raise UpstreamFetchError("Blood requests unavailable") from exc
        # Urgency is stored as text, so its ordering is applied here.
        return sorted(items, key=lambda item: -URGENCY_RANK[item.urgency])

    async def set_status(self, request_id: str, status: str) -> BloodRequest | None:
        now = datetime.utcnow()
        changes: Dict[str, Any] = {"status": status, "updated_at": now}
        if status == "fulfilled":
            changes["fulfilled_at"] = now
        try:
            await self.collection.update_one(id_filter(request_id), {"$set": changes})
        except PyMongoError as exc:
            log_db_error("update_blood_request", exc)
            raise UpstreamFetchError("Blood requests unavailable") from exc
        return await self.get(request_id)
