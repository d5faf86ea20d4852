import math

from par_tracker.core.config import settings


def effective_limit(limit: int | None) -> int:
    """Page size actually used: the default when unset, capped at MAX_PAGE_SIZE."""
    return min(limit or settings.DEFAULT_PAGE_SIZE, settings.MAX_PAGE_SIZE)


def total_pages(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit else 0
