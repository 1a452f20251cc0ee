from __future__ import annotations

from fastapi import APIRouter, Depends, Response

from ..dependencies import get_ranker
from ..models.match import MatchQuery, MatchResult
from ..services.donor_matcher import DonorMatchRanker

router = APIRouter(tags=["matching"])

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}


@router.options("/match-donors", include_in_schema=False)
async def match_donors_preflight() -> Response:
    return Response(status_code=200, headers=CORS_HEADERS)


@router.post("/match-donors", response_model=MatchResult, response_model_by_alias=False)
async def match_donors(
    payload: MatchQuery,
    ranker: DonorMatchRanker = Depends(get_ranker),
) -> MatchResult:
    """Rank available donors for a blood group; degrades to a deterministic order if the model misbehaves."""
    return await ranker.rank(payload)
