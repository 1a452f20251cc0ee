from __future__ import annotations

from datetime import datetime
from typing import Dict, FrozenSet, List, Literal

from pydantic import BaseModel, Field


RequestStatus = Literal["pending", "accepted", "rejected", "completed"]

ALLOWED_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "pending": frozenset({"accepted", "rejected"}),
    "accepted": frozenset({"completed"}),
    "rejected": frozenset(),
    "completed": frozenset(),
}


class ConnectionRequest(BaseModel):
    id: str = Field(alias="_id")
    hospital_id: str
    donor_id: str
    blood_request_id: str | None = None
    message: str | None = None
    status: RequestStatus = "pending"
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ConnectionRequestCreate(BaseModel):
    hospital_id: str = Field(min_length=1)
    donor_id: str = Field(min_length=1)
    blood_request_id: str | None = None
    message: str | None = None


class ConnectionRequestUpdate(BaseModel):
    status: RequestStatus


class ConnectionRequestList(BaseModel):
    requests: List[ConnectionRequest]
