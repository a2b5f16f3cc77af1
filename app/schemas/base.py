# app/schemas/base.py
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Type

from pydantic import BaseModel, ConfigDict


def _to_camel(s: str) -> str:
    parts = s.split('_')
    return parts[0] + ''.join(p.title() for p in parts[1:])


class CamelModel(BaseModel):
    """Accepts snake_case or camelCase input, dumps camelCase with by_alias"""
    model_config = ConfigDict(
        alias_generator=_to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
        validate_default=True,
    )


class BaseSchema(CamelModel):
    """Common read fields"""
    id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProjectSummary(CamelModel):
    id: int
    name: str
    status: str


def serialize(schema: Type[BaseModel], obj: Any) -> Dict[str, Any]:
    """ORM object -> JSON-ready camelCase dict"""
    return schema.model_validate(obj).model_dump(mode="json", by_alias=True)


def serialize_many(schema: Type[BaseModel], objs: Iterable[Any]) -> List[Dict[str, Any]]:
    return [serialize(schema, obj) for obj in objs]
