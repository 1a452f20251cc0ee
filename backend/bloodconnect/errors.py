from __future__ import annotations


class MatchValidationError(ValueError):
    """Raised when a match query cannot be served; no I/O has happened yet."""


class UpstreamFetchError(RuntimeError):
    """The donor store could not be read."""


class RankingUnavailable(RuntimeError):
    """The ranking model failed, timed out or answered with something unusable.

    Never leaves the ranker: it is converted into the deterministic fallback.
    """
