"""
Shared request helpers for routes
"""
import json
from typing import Any, Dict, List

from fastapi import Request

from clanchain.core.exceptions import ValidationError


async def read_json_body(request: Request) -> Any:
    """Parsed JSON body, or None when the request has none"""
    raw = await request.body()
    if not raw:
        return None
    try:
        return json.loads(raw)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Request body is not valid JSON")


def paginated(items: List[Any], total: int, page: int, limit: int) -> Dict[str, Any]:
    """Page envelope used by every paginated list route"""
    return {
        "data": [item.to_dict() for item in items],
        "total": total,
        "page": page,
        "limit": limit,
        "has_more": page * limit < total,
    }
