"""
Response envelope and pagination helpers
"""
import math
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from tutorial_app.config import settings


def utcnow() -> datetime:
    """Naive UTC timestamp, matching the TIMESTAMP columns"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def format_response(
    success: bool,
    data: Any = None,
    message: str = "",
    error: Optional[str] = None
) -> Dict[str, Any]:
    """Build the {success, data, message, error} envelope, omitting empty keys"""
    response: Dict[str, Any] = {"success": success}

    if data is not None:
        response["data"] = data
    if message:
        response["message"] = message
    if error:
        response["error"] = error

    return response


def calculate_pagination(page: Optional[int], limit: Optional[int]) -> Dict[str, int]:
    """
    Normalize page/limit query values

    Returns:
        Dictionary with page, limit and the row offset to skip
    """
    page_num = page if page and page > 0 else 1
    limit_num = limit if limit and limit > 0 else settings.DEFAULT_PAGE_SIZE
    limit_num = min(limit_num, settings.MAX_PAGE_SIZE)

    return {
        "page": page_num,
        "limit": limit_num,
        "skip": (page_num - 1) * limit_num
    }


def format_paginated_response(data: Any, pagination: Dict[str, int], total: int) -> Dict[str, Any]:
    """Envelope for list endpoints"""
    return {
        "success": True,
        "data": data,
        "pagination": {
            "page": pagination["page"],
            "limit": pagination["limit"],
            "total": total,
            "pages": math.ceil(total / pagination["limit"]) if pagination["limit"] else 0
        }
    }
