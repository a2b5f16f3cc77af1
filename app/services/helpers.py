# app/services/helpers.py
import json
import math
from datetime import date
from typing import Any, Dict, List, Optional, Sequence

from app.core.exceptions import ValidationError


def filters_key(filters: Optional[Dict[str, Any]]) -> str:
    """Stable cache-key fragment for a filter set; unset filters are dropped"""
    active = {k: v for k, v in (filters or {}).items() if v is not None and v is not False}
    return json.dumps(active, sort_keys=True, default=str, separators=(",", ":"))


def pagination_meta(page: int, limit: int, total: int) -> Dict[str, Any]:
    pages = math.ceil(total / limit) if limit else 0
    return {
        "page": page,
        "limit": limit,
        "total": total,
        "pages": pages,
        "hasNext": page < pages,
        "hasPrev": page > 1,
    }


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def slice_page(rows: Sequence[Any], page: int, limit: int) -> List[Any]:
    offset = page_offset(page, limit)
    return list(rows[offset:offset + limit])


def as_date(value: Any) -> Optional[date]:
    if value is None or isinstance(value, date):
        return value
    return date.fromisoformat(str(value))


class FieldErrors:
    """Collects per-field failures so they can be reported together"""

    def __init__(self):
        self.errors: List[Dict[str, str]] = []

    def add(self, field: str, message: str) -> None:
        self.errors.append({"field": field, "message": message})

    def check_text(self, field: str, value: Any, label: str, required: bool = False,
                   min_length: int = 0, max_length: Optional[int] = None) -> None:
        if value is None or (required and not str(value).strip()):
            if required:
                self.add(field, f"{label} is required")
            return
        text = str(value).strip() if required else str(value)
        if min_length and len(text) < min_length:
            self.add(field, f"{label} must be at least {min_length} characters long")
        elif max_length is not None and len(text) > max_length:
            self.add(field, f"{label} must be at most {max_length} characters long")

    def check_choice(self, field: str, value: Any, choices: Sequence[str], label: str) -> None:
        if value is not None and value not in choices:
            self.add(field, f"{label} must be one of: {', '.join(choices)}")

    def raise_if_any(self) -> None:
        if self.errors:
            raise ValidationError("Validation failed", errors=self.errors)
