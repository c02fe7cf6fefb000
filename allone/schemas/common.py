"""
Shared schema pieces: camelCase base model, pagination and the response envelope
"""

from typing import Any, Iterable, List, Optional, Type

from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema; fields are snake_case in Python and camelCase on the wire"""

    class Config:
        from_attributes = True
        populate_by_name = True
        alias_generator = to_camel


class Pagination(CamelModel):
    page: int
    limit: int
    total: int
    pages: int

    @classmethod
    def build(cls, page: int, limit: int, total: int) -> "Pagination":
        return cls(page=page, limit=limit, total=total, pages=(total + limit - 1) // limit if limit else 1)


def dump(schema: Type[CamelModel], obj: Any) -> dict:
    """Serialise an ORM object through ``schema`` using wire names"""
    return schema.model_validate(obj).model_dump(by_alias=True, mode="json")


def dump_list(schema: Type[CamelModel], objs: Iterable[Any]) -> List[dict]:
    return [dump(schema, obj) for obj in objs]


def success_response(data: Any = None, message: Optional[str] = None, **extra: Any) -> dict:
    """
    Build the success envelope

    Args:
        data: Payload placed under ``data`` (omitted when None)
        message: Optional human readable message
        extra: Additional top-level keys such as ``pagination``

    Returns:
        ``{"success": True, "data": ..., ...}``
    """
    content = {"success": True}
    if data is not None:
        content["data"] = data
    if message:
        content["message"] = message
    for key, value in extra.items():
        if isinstance(value, BaseModel):
            value = value.model_dump(by_alias=True, mode="json")
        content[key] = value
    return content
