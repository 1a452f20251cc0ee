"""Donor matching: fetch eligible donors, let the model reorder them, never fail on the model."""

from __future__ import annotations

import asyncio
import json
from typing import Iterable, List, Optional, Protocol, Sequence

from loguru import logger

from ..ai.ranking_service import SYSTEM_PROMPT
from ..ai.response_parser import parse_ranking_analysis
from ..errors import MatchValidationError, RankingUnavailable
from ..models.donor import BLOOD_GROUPS, Donor
from ..models.match import MatchQuery, MatchResult
from ..utils.logging import log_ranking_degraded


NO_DONORS_INSIGHT = "No donors found matching the criteria"
FALLBACK_INSIGHT = "Showing top donors based on location and experience (AI analysis unavailable)"
TEXTUAL_ANSWER_INSIGHT = "AI provided textual analysis. Using default ranking."
DEFAULT_AI_INSIGHT = "AI analysis complete"
CITY_NOT_SPECIFIED = "Not specified"


class DonorSource(Protocol):
    async def fetch_available_donors(
        self, blood_group: str, city: str | None = None, pincode: str | None = None
    ) -> List[Donor]: ...


class CompletionSource(Protocol):
    async def complete(self, system_prompt: str, user_prompt: str) -> str: ...


def fallback_order(donors: Sequence[Donor], city: str | None) -> List[Donor]:
    """Same-city donors first, then by donation count; sorted() keeps fetch order on ties."""
    wanted = city.strip().lower() if city and city.strip() else None

    def sort_key(donor: Donor) -> tuple[int, int]:
        same_city = wanted is not None and donor.city.strip().lower() == wanted
        return (0 if same_city else 1, -donor.total_donations)

    return sorted(donors, key=sort_key)


def merge_rankings(donors: Sequence[Donor], rankings: Iterable[str]) -> List[Donor]:
    """Ranked IDs first (unknown ones dropped), then everything else in fetch order."""
    by_id = {donor.id: donor for donor in donors}
    seen: set[str] = set()
    ordered: List[Donor] = []
    for donor_id in rankings:
        donor = by_id.get(str(donor_id))
        if donor is None or donor.id in seen:
            continue
        seen.add(donor.id)
        ordered.append(donor)
    for donor in donors:
        if donor.id not in seen:
            seen.add(donor.id)
            ordered.append(donor)
    return ordered


def build_ranking_prompt(query: MatchQuery, donors: Sequence[Donor]) -> str:
    serialized = [donor.model_dump(mode="json", by_alias=False) for donor in donors]
    return f"""Analyze these donors for a blood request:

Blood Group Needed: {query.blood_group}
City: {query.city or CITY_NOT_SPECIFIED}
Urgency: {query.urgency}

Available Donors:
{json.dumps(serialized, indent=2)}

Provide your analysis and rankings."""


class DonorMatchRanker:
    """Request-scoped ranking over explicitly injected collaborators."""

    def __init__(
        self,
        repository: DonorSource,
        ranking_service: Optional[CompletionSource],
        timeout: float = 20.0,
        limit: int = 10,
        preview_chars: int = 200,
    ) -> None:
        self.repository = repository
        self.ranking_service = ranking_service
        self.timeout = timeout
        self.limit = limit
        self.preview_chars = preview_chars

    @staticmethod
    def validate(query: MatchQuery) -> str:
        blood_group = (query.blood_group or "").strip()
        if not blood_group:
            raise MatchValidationError("blood_group is required")
        if blood_group not in BLOOD_GROUPS:
            raise MatchValidationError(f"Unknown blood group: {blood_group}")
        return blood_group

    async def rank(self, query: MatchQuery) -> MatchResult:
        blood_group = self.validate(query)
        donors = await self.repository.fetch_available_donors(blood_group)
        # Only eligible rows are ranked, whatever the store handed back.
        donors = [donor for donor in donors if donor.available and donor.blood_group == blood_group]
        if not donors:
            logger.info("No available {} donors found", blood_group)
            return MatchResult(matches=[], insights=NO_DONORS_INSIGHT)

        try:
            raw = await self._request_ranking(query, donors)
        except RankingUnavailable as exc:
            log_ranking_degraded("ranking call failed", exc)
            return self._result(fallback_order(donors, query.city), FALLBACK_INSIGHT)

        analysis = parse_ranking_analysis(raw)
        if analysis is None:
            log_ranking_degraded("unusable model answer")
            # Textual answers keep fetch order.
            return self._result(
                merge_rankings(donors, []),
                TEXTUAL_ANSWER_INSIGHT,
                raw[: self.preview_chars],
            )

        ranked = merge_rankings(donors, analysis.rankings)
        logger.info("AI ranked {} {} donors", len(ranked), blood_group)
        return self._result(ranked, analysis.insights or DEFAULT_AI_INSIGHT, analysis.recommendations)

    async def _request_ranking(self, query: MatchQuery, donors: Sequence[Donor]) -> str:
        if self.ranking_service is None:
            raise RankingUnavailable("no ranking service")
        prompt = build_ranking_prompt(query, donors)
        try:
            return await asyncio.wait_for(
                self.ranking_service.complete(SYSTEM_PROMPT, prompt),
                timeout=self.timeout,
            )
        except RankingUnavailable:
            raise
        except asyncio.TimeoutError as exc:
            raise RankingUnavailable(f"ranking call exceeded {self.timeout}s") from exc
        except Exception as exc:
            raise RankingUnavailable(str(exc) or exc.__class__.__name__) from exc

    def _result(self, donors: List[Donor], insights: str, recommendations: str | None = None) -> MatchResult:
        return MatchResult(
            matches=donors[: self.limit],
            insights=insights,
            recommendations=recommendations or None,
        )
