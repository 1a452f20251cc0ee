"""Pull the structured ranking out of free-form model output.

Models wrap their JSON in prose or markdown fences often enough that the
payload is treated as untrusted text: every ``{`` is tried in order, its
balanced closing brace is located (string literals and escapes respected)
and the first candidate that decodes to a JSON object wins.
"""

from __future__ import annotations

import json
from typing import Any, Dict, Iterator, Optional

from ..models.match import RankingAnalysis


def _balanced_end(text: str, start: int) -> Optional[int]:
    depth = 0
    in_string = False
    escaped = False
    for index in range(start, len(text)):
        char = text[index]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return index
    return None


def iter_object_candidates(text: str) -> Iterator[str]:
    start = text.find("{")
    while start != -1:
        end = _balanced_end(text, start)
        if end is not None:
            yield text[start : end + 1]
        start = text.find("{", start + 1)


def extract_json_object(text: str | None) -> Optional[Dict[str, Any]]:
    if not text:
        return None
    for candidate in iter_object_candidates(text):
        try:
            decoded = json.loads(candidate)
        except ValueError:
            continue
        if isinstance(decoded, dict):
            return decoded
    return None


def parse_ranking_analysis(text: str | None) -> Optional[RankingAnalysis]:
    """Return the analysis, or None when the answer cannot drive a ranking."""
    payload = extract_json_object(text)
    if payload is None:
        return None
    rankings = payload.get("rankings")
    if not isinstance(rankings, list) or not rankings:
        return None
    insights = payload.get("insights")
    recommendations = payload.get("recommendations")
    return RankingAnalysis(
        rankings=[str(item) for item in rankings if isinstance(item, (str, int))],
        insights=insights.strip() if isinstance(insights, str) and insights.strip() else None,
        recommendations=recommendations if isinstance(recommendations, str) and recommendations else None,
    )
