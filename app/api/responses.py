# app/api/responses.py
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def success(message: str, data: Any = None, pagination: Optional[Dict[str, Any]] = None,
            meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Standard success envelope"""
    body: Dict[str, Any] = {"success": True, "message": message}
    if data is not None:
        body["data"] = data
    if pagination is not None:
        body["pagination"] = pagination
    if meta is not None:
        body["meta"] = meta
    body["timestamp"] = timestamp()
    return body


def paginated(message: str, result: Dict[str, Any]) -> Dict[str, Any]:
    return success(message, data=result["items"], pagination=result["pagination"])
