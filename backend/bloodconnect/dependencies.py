from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from .ai.ranking_service import RankingService
from .database import Settings, db, settings
from .repositories.blood_requests import BloodRequestRepository
from .repositories.connection_requests import ConnectionRequestRepository
from .repositories.donors import DonorRepository
from .services.donor_matcher import DonorMatchRanker


def get_app_settings() -> Settings:
    return settings


async def get_donor_repository() -> DonorRepository:
    return DonorRepository(db.get_collection("donors"))


async def get_connection_request_repository() -> ConnectionRequestRepository:
    return ConnectionRequestRepository(db.get_collection("donor_connection_requests"))


@lru_cache
def get_ranking_service() -> RankingService:
    return RankingService(settings)


async def get_ranker(
    repository: DonorRepository = Depends(get_donor_repository),
    ranking_service: RankingService = Depends(get_ranking_service),
    app_settings: Settings = Depends(get_app_settings),
) -> DonorMatchRanker:
    return DonorMatchRanker(
        repository,
        ranking_service,
        timeout=app_settings.ai_timeout_seconds,
        limit=app_settings.match_limit,
        preview_chars=app_settings.recommendations_preview_chars,
    )


async def get_blood_request_repository() -> BloodRequestRepository:
    return BloodRequestRepository(db.get_collection("blood_requests"))
