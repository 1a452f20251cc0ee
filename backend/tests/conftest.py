from __future__ import annotations

import asyncio
from datetime import datetime
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from pymongo.errors import ServerSelectionTimeoutError

from bloodconnect.dependencies import (
    get_blood_request_repository,
    get_connection_request_repository,
    get_donor_repository,
    get_ranking_service,
)
from bloodconnect.errors import RankingUnavailable, UpstreamFetchError
from bloodconnect.main import app
from bloodconnect.models.connection_request import ConnectionRequest, ConnectionRequestCreate
from bloodconnect.models.blood_request import URGENCY_RANK, BloodRequest, BloodRequestCreate
from bloodconnect.models.donor import Donor, DonorProfile


def make_donor(donor_id: str, **overrides: Any) -> Donor:
    fields: Dict[str, Any] = {
        "_id": donor_id,
        "name": f"Donor {donor_id}",
        "blood_group": "O-",
        "city": "Mumbai",
        "available": True,
        "total_donations": 0,
    }
    fields.update(overrides)
    return Donor(**fields)


class FakeDonorRepository:
    def __init__(self, donors: Optional[List[Donor]] = None, fail: bool = False) -> None:
        self.donors = list(donors or [])
        self.fail = fail
        self.fetch_calls: List[str] = []
        self.donations: List[str] = []

    def _check(self) -> None:
        if self.fail:
            raise UpstreamFetchError("Donor store unavailable") from ServerSelectionTimeoutError("no servers")

    async def fetch_available_donors(self, blood_group, city=None, pincode=None) -> List[Donor]:
        self.fetch_calls.append(blood_group)
        self._check()
        found = [d for d in self.donors if d.available and d.blood_group == blood_group]
        if city:
            found = [d for d in found if city.lower() in d.city.lower()]
        if pincode:
            found = [d for d in found if d.pincode == pincode]
        return found

    async def search_donors(self, blood_group=None, city=None, pincode=None) -> List[Donor]:
        if blood_group:
            return await self.fetch_available_donors(blood_group, city, pincode)
        self._check()
        found = [d for d in self.donors if d.available]
        if city:
            found = [d for d in found if city.lower() in d.city.lower()]
        if pincode:
            found = [d for d in found if d.pincode == pincode]
        return found

    async def get_donor(self, donor_id: str) -> Optional[Donor]:
        self._check()
        return next((d for d in self.donors if d.id == donor_id), None)

    async def get_by_user(self, user_id: str) -> Optional[Donor]:
        self._check()
        return next((d for d in self.donors if d.user_id == user_id), None)

    async def create_donor(self, profile: DonorProfile) -> Donor:
        self._check()
        donor = Donor(_id=f"donor-{len(self.donors) + 1}", total_donations=0, **profile.model_dump())
        self.donors.append(donor)
        return donor

    async def update_donor(self, donor_id: str, changes: Dict[str, Any]) -> Optional[Donor]:
        self._check()
        for index, donor in enumerate(self.donors):
            if donor.id == donor_id:
                self.donors[index] = donor.model_copy(update=changes)
                return self.donors[index]
        return None

    async def record_donation(self, donor_id: str, donated_at: datetime) -> None:
        self._check()
        self.donations.append(donor_id)


class FakeRankingService:
    """Returns a canned answer, raises, or stalls, and records every prompt it sees."""

    def __init__(self, answer: str = "", error: Optional[Exception] = None, delay: float = 0.0) -> None:
        self.answer = answer
        self.error = error
        self.delay = delay
        self.calls: List[Dict[str, str]] = []

    async def complete(self, system_prompt: str, user_prompt: str) -> str:
        self.calls.append({"system": system_prompt, "user": user_prompt})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return self.answer


class FakeConnectionRequestRepository:
    def __init__(self) -> None:
        self.items: Dict[str, ConnectionRequest] = {}

    async def create(self, payload: ConnectionRequestCreate) -> ConnectionRequest:
        now = datetime.utcnow()
        request_id = f"req-{len(self.items) + 1}"
        created = ConnectionRequest(
            _id=request_id, status="pending", created_at=now, updated_at=now, **payload.model_dump()
        )
        self.items[request_id] = created
        return created

    async def get(self, request_id: str) -> Optional[ConnectionRequest]:
        return self.items.get(request_id)

    async def list(self, donor_id=None, hospital_id=None, status=None, limit=100) -> List[ConnectionRequest]:
        found = list(self.items.values())
        if donor_id:
            found = [r for r in found if r.donor_id == donor_id]
        if hospital_id:
            found = [r for r in found if r.hospital_id == hospital_id]
        if status:
            found = [r for r in found if r.status == status]
        return found[:limit]

    async def set_status(self, request_id: str, status: str) -> Optional[ConnectionRequest]:
        current = self.items.get(request_id)
        if current is None:
            return None
        updated = current.model_copy(update={"status": status, "updated_at": datetime.utcnow()})
        self.items[request_id] = updated
        return updated


class FakeBloodRequestRepository:
    def __init__(self) -> None:
        self.items: Dict[str, BloodRequest] = {}

    async def create(self, payload: BloodRequestCreate) -> BloodRequest:
        now = datetime.utcnow()
        request_id = f"blood-{len(self.items) + 1}"
        created = BloodRequest(_id=request_id, status="pending", created_at=now, updated_at=now, **payload.model_dump())
        self.items[request_id] = created
        return created

    async def get(self, request_id: str) -> Optional[BloodRequest]:
        return self.items.get(request_id)

    async def list(self, hospital_id=None, status=None, blood_group=None, limit=100) -> List[BloodRequest]:
        found = list(reversed(list(self.items.values())))
        if hospital_id:
            found = [r for r in found if r.hospital_id == hospital_id]
        if status:
            found = [r for r in found if r.status == status]
        if blood_group:
            found = [r for r in found if r.blood_group == blood_group]
        return sorted(found[:limit], key=lambda r: -URGENCY_RANK[r.urgency])

    async def set_status(self, request_id: str, status: str) -> Optional[BloodRequest]:
        current = self.items.get(request_id)
        if current is None:
            return None
        updated = current.model_copy(update={"status": status, "updated_at": datetime.utcnow()})
        self.items[request_id] = updated
        return updated


@pytest.fixture
def donor_repo() -> FakeDonorRepository:
    return FakeDonorRepository()


@pytest.fixture
def ranking_service() -> FakeRankingService:
    return FakeRankingService(error=RankingUnavailable("not configured in tests"))


@pytest.fixture
def request_repo() -> FakeConnectionRequestRepository:
    return FakeConnectionRequestRepository()


@pytest.fixture
def blood_request_repo() -> FakeBloodRequestRepository:
    return FakeBloodRequestRepository()


@pytest.fixture
def client(donor_repo, ranking_service, request_repo, blood_request_repo):
    app.dependency_overrides[get_donor_repository] = lambda: donor_repo
    app.dependency_overrides[get_ranking_service] = lambda: ranking_service
    app.dependency_overrides[get_connection_request_repository] = lambda: request_repo
    app.dependency_overrides[get_blood_request_repository] = lambda: blood_request_repo
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
