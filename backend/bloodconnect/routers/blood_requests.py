from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, status
from loguru import logger

from ..dependencies import get_blood_request_repository
from ..models.blood_request import (
    BLOOD_REQUEST_TRANSITIONS,
    BloodRequest,
    BloodRequestCreate,
    BloodRequestList,
    BloodRequestStatus,
    BloodRequestUpdate,
)
from ..models.donor import BloodGroup
from ..repositories.blood_requests import BloodRequestRepository

router = APIRouter(prefix="/blood-requests", tags=["blood-requests"])


@router.post("", response_model=BloodRequest, response_model_by_alias=False, status_code=status.HTTP_201_CREATED)
async def create_blood_request(
    payload: BloodRequestCreate,
    requests: BloodRequestRepository = Depends(get_blood_request_repository),
) -> BloodRequest:
    created = await requests.create(payload)
    logger.info(
        "Hospital {} requested {} unit(s) of {} ({} urgency)",
        payload.hospital_id,
        payload.quantity,
        payload.blood_group,
        payload.urgency,
    )
    return created


@router.get("", response_model=BloodRequestList, response_model_by_alias=False)
async def list_blood_requests(
    hospital_id: str | None = None,
    blood_group: BloodGroup | None = None,
    status_filter: BloodRequestStatus | None = Query(default=None, alias="status"),
    requests: BloodRequestRepository = Depends(get_blood_request_repository),
) -> BloodRequestList:
    items = await requests.list(hospital_id=hospital_id, status=status_filter, blood_group=blood_group)
    return BloodRequestList(requests=items)


@router.patch("/{request_id}", response_model=BloodRequest, response_model_by_alias=False)
async def update_blood_request(
    request_id: str,
    payload: BloodRequestUpdate,
    requests: BloodRequestRepository = Depends(get_blood_request_repository),
) -> BloodRequest:
    current = await requests.get(request_id)
    if not current:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Blood request not found")
    if payload.status not in BLOOD_REQUEST_TRANSITIONS[current.status]:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"Cannot move request from {current.status} to {payload.status}",
        )
    return await requests.set_status(request_id, payload.status)
