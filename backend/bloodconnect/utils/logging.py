from __future__ import annotations

from loguru import logger


def log_db_error(context: str, exc: Exception) -> None:
    logger.error("Database error in {}: {}", context, exc)


def log_ranking_degraded(reason: str, exc: Exception | None = None) -> None:
    if exc is None:
        logger.warning("Donor ranking degraded ({}); using fallback ordering", reason)
    else:
        logger.warning("Donor ranking degraded ({}): {}; using fallback ordering", reason, exc)
