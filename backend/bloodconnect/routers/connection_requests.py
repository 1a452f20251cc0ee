from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger

from ..dependencies import (
    get_blood_request_repository,
    get_connection_request_repository,
    get_donor_repository,
)
from ..models.connection_request import (
    ALLOWED_TRANSITIONS,
    ConnectionRequest,
    ConnectionRequestCreate,
    ConnectionRequestList,
    ConnectionRequestUpdate,
    RequestStatus,
)
from ..repositories.blood_requests import BloodRequestRepository
from ..repositories.connection_requests import ConnectionRequestRepository
from ..repositories.donors import DonorRepository

router = APIRouter(prefix="/connection-requests", tags=["connection-requests"])


@router.post("", response_model=ConnectionRequest, response_model_by_alias=False, status_code=status.HTTP_201_CREATED)
async def create_connection_request(
    payload: ConnectionRequestCreate,
    requests: ConnectionRequestRepository = Depends(get_connection_request_repository),
    donors: DonorRepository = Depends(get_donor_repository),
    blood_requests: BloodRequestRepository = Depends(get_blood_request_repository),
) -> ConnectionRequest:
    donor = await donors.get_donor(payload.donor_id)
    if not donor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Donor not found")
    if payload.blood_request_id and not await blood_requests.get(payload.blood_request_id):
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blood request not found")
    created = await requests.create(payload)
    logger.info("Hospital {} requested donor {} ({})", payload.hospital_id, donor.id, created.id)
    return created


@router.get("", response_model=ConnectionRequestList, response_model_by_alias=False)
async def list_connection_requests(
    donor_id: str | None = None,
    hospital_id: str | None = None,
    status_filter: RequestStatus | None = Query(default=None, alias="status"),
    requests: ConnectionRequestRepository = Depends(get_connection_request_repository),
) -> ConnectionRequestList:
    items = await requests.list(donor_id=donor_id, hospital_id=hospital_id, status=status_filter)
    return ConnectionRequestList(requests=items)


@router.patch("/{request_id}", response_model=ConnectionRequest, response_model_by_alias=False)
async def update_connection_request(
    request_id: str,
    payload: ConnectionRequestUpdate,
    requests: ConnectionRequestRepository = Depends(get_connection_request_repository),
    donors: DonorRepository = Depends(get_donor_repository),
) -> ConnectionRequest:
    """Donors accept or reject; hospitals mark accepted requests completed."""
    current = await requests.get(request_id)
    if not current:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Connection request not found")
    if payload.status not in ALLOWED_TRANSITIONS[current.status]:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot move request from {current.status} to {payload.status}",
        )

    updated = await requests.set_status(request_id, payload.status)
    if payload.status == "completed":
        await donors.record_donation(current.donor_id, datetime.utcnow())
        logger.info("Donation recorded for donor {} via request {}", current.donor_id, request_id)
    return updated
