from __future__ import annotations

from datetime import datetime
from typing import Literal, get_args

from pydantic import BaseModel, ConfigDict, Field


BloodGroup = Literal["A+", "A-", "B+", "B-", "AB+", "AB-", "O+", "O-"]
BLOOD_GROUPS: tuple[str, ...] = get_args(BloodGroup)


class Donor(BaseModel):
    """Read-only snapshot of a donor row."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str = Field(alias="_id")
    name: str
    blood_group: BloodGroup
    city: str
    available: bool = True
    total_donations: int = Field(default=0, ge=0)
    last_donation_date: datetime | None = None
    pincode: str | None = None
    phone: str | None = None
    age: int | None = None
    gender: str | None = None
    user_id: str | None = None
    created_at: datetime | None = None


class DonorSearchParams(BaseModel):
    blood_group: BloodGroup | None = None
    city: str | None = None
    pincode: str | None = None


class DonorProfile(BaseModel):
    """Fields a donor edits on their own profile."""

    user_id: str | None = None
    name: str = Field(min_length=1)
    blood_group: BloodGroup
    city: str = Field(min_length=1)
    pincode: str | None = None
    phone: str | None = None
    age: int | None = Field(default=None, ge=18, le=65)
    gender: str | None = None
    available: bool = True


class DonorAvailabilityUpdate(BaseModel):
    available: bool
