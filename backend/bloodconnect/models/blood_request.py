from __future__ import annotations

from datetime import datetime
from typing import Dict, FrozenSet, List, Literal

from pydantic import BaseModel, Field

from .donor import BloodGroup
from .match import Urgency


BloodRequestStatus = Literal["pending", "fulfilled", "cancelled"]

URGENCY_RANK: Dict[str, int] = {"low": 0, "medium": 1, "high": 2}

BLOOD_REQUEST_TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "pending": frozenset({"fulfilled", "cancelled"}),
    "fulfilled": frozenset(),
    "cancelled": frozenset(),
}


class BloodRequest(BaseModel):
    id: str = Field(alias="_id")
    hospital_id: str
    blood_group: BloodGroup
    quantity: int = Field(ge=1)
    urgency: Urgency = "medium"
    patient_name: str | None = None
    status: BloodRequestStatus = "pending"
    fulfilled_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


class BloodRequestCreate(BaseModel):
    hospital_id: str = Field(min_length=1)
    blood_group: BloodGroup
    quantity: int = Field(ge=1)
    urgency: Urgency = "medium"
    patient_name: str | None = None


class BloodRequestUpdate(BaseModel):
    status: BloodRequestStatus


class BloodRequestList(BaseModel):
    requests: List[BloodRequest]
