from __future__ import annotations

from typing import List

from fastapi import APIRouter, Depends, HTTPException, status
from loguru import logger

from ..dependencies import get_donor_repository
from ..models.donor import Donor, DonorAvailabilityUpdate, DonorProfile, DonorSearchParams
from ..repositories.donors import DonorRepository

router = APIRouter(prefix="/donors", tags=["donors"])


@router.post("", response_model=Donor, response_model_by_alias=False, status_code=status.HTTP_201_CREATED)
async def create_donor(
    payload: DonorProfile,
    donors: DonorRepository = Depends(get_donor_repository),
) -> Donor:
    if payload.user_id and await donors.get_by_user(payload.user_id):
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail="Donor profile already exists for this user")
    donor = await donors.create_donor(payload)
    logger.info("Registered {} donor {} in {}", donor.blood_group, donor.id, donor.city)
    return donor


@router.get("/search", response_model=List[Donor], response_model_by_alias=False)
async def search_donors(
    params: DonorSearchParams = Depends(),
    donors: DonorRepository = Depends(get_donor_repository),
) -> List[Donor]:
    """Plain filter search: city is a case-insensitive substring, pincode is exact."""
    return await donors.search_donors(params.blood_group, params.city, params.pincode)


@router.get("/{donor_id}", response_model=Donor, response_model_by_alias=False)
async def get_donor(
    donor_id: str,
    donors: DonorRepository = Depends(get_donor_repository),
) -> Donor:
    donor = await donors.get_donor(donor_id)
    if not donor:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Donor not found")
    return donor


@router.put("/{donor_id}", response_model=Donor, response_model_by_alias=False)
async def update_donor(
    donor_id: str,
    payload: DonorProfile,
    donors: DonorRepository = Depends(get_donor_repository),
) -> Donor:
    # total_donations and last_donation_date are left untouched.
    updated = await donors.update_donor(donor_id, payload.model_dump(exclude={"user_id"}))
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Donor not found")
    return updated


@router.patch("/{donor_id}/availability", response_model=Donor, response_model_by_alias=False)
async def set_availability(
    donor_id: str,
    payload: DonorAvailabilityUpdate,
    donors: DonorRepository = Depends(get_donor_repository),
) -> Donor:
    updated = await donors.update_donor(donor_id, {"available": payload.available})
    if not updated:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Donor not found")
    logger.info("Donor {} availability set to {}", donor_id, payload.available)
    return updated
