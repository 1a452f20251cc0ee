from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List

from motor.motor_asyncio import AsyncIOMotorCollection
from pydantic import ValidationError
from pymongo.errors import PyMongoError

from ..errors import UpstreamFetchError
from ..models.connection_request import ConnectionRequest, ConnectionRequestCreate
from ..utils.logging import log_db_error
from .donors import id_filter, serialize_id


class ConnectionRequestRepository:
    def __init__(self, collection: AsyncIOMotorCollection) -> None:
        self.collection = collection

    async def create(self, payload: ConnectionRequestCreate) -> ConnectionRequest:
        now = datetime.utcnow()
        document = {
            **payload.model_dump(),
            "status": "pending",
            "created_at": now,
            "updated_at": now,
        }
        try:
            result = await self.collection.insert_one(document)
            stored = await self.collection.find_one({"_id": result.inserted_id})
            return ConnectionRequest(**serialize_id(stored))
        except (PyMongoError, ValidationError) as exc:
            log_db_error("create_connection_request", exc)
            raise UpstreamFetchError("Connection requests unavailable") from exc

    async def get(self, request_id: str) -> ConnectionRequest | None:
        try:
            document = await self.collection.find_one(id_filter(request_id))
            if not document:
                return None
            return ConnectionRequest(**serialize_id(document))
        except (PyMongoError, ValidationError) as exc:
            log_db_error("get_connection_request", exc)
            raise UpstreamFetchError("Connection requests unavailable") from exc

    async def list(
        self,
        donor_id: str | None = None,
        hospital_id: str | None = None,
        status: str | None = None,
        limit: int = 100,
    ) -> List[ConnectionRequest]:
        query: Dict[str, Any] = {}
        if donor_id:
            query["donor_id"] = donor_id
        if hospital_id:
            query["hospital_id"] = hospital_id
        if status:
            query["status"] = status
        try:
            cursor = self.collection.find(query).sort("created_at", -1).limit(limit)
            return [ConnectionRequest(**serialize_id(doc)) async for doc in cursor]
        except (PyMongoError, ValidationError) as exc:
            log_db_error("list_connection_requests", exc)
            raise UpstreamFetchError("Connection requests unavailable") from exc

    async def set_status(self, request_id: str, status: str) -> ConnectionRequest | None:
        try:
            await self.collection.update_one(
                id_filter(request_id),
                {"$set": {"status": status, "updated_at": datetime.utcnow()}},
            )
        except PyMongoError as exc:
            log_db_error("update_connection_request", exc)
            raise UpstreamFetchError("Connection requests unavailable") from exc
        return await self.get(request_id)
