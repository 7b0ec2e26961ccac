"""
Utility functions for the application.
"""
from datetime import datetime, timezone
from math import ceil
from typing import Dict


def utcnow() -> datetime:
    """Naive UTC timestamp, matching how DateTime columns are stored."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def pagination(page: int, limit: int, total: int) -> Dict[str, int]:
    """Build pagination metadata for list responses."""
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "total_pages": ceil(total / limit) if limit else 0,
    }
