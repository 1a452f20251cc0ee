from __future__ import annotations

from typing import List, Literal

from pydantic import BaseModel, Field

from .donor import Donor


Urgency = Literal["low", "medium", "high"]


class MatchQuery(BaseModel):
    # Blood group is checked by the ranker so a blank value fails before any fetch.
    blood_group: str | None = None
    city: str | None = None
    urgency: Urgency = "medium"


class MatchResult(BaseModel):
    matches: List[Donor] = Field(default_factory=list)
    insights: str = Field(min_length=1)
    recommendations: str | None = None


class RankingAnalysis(BaseModel):
    """Structured part of a ranking model answer."""

    rankings: List[str]
    insights: str | None = None
    recommendations: str | None = None
