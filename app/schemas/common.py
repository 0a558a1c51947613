from typing import Any, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Accepts and emits camelCase JSON while exposing snake_case attributes"""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, mode="json")


def blank_to_none(value: Any) -> Any:
    """Dashboard forms post '' for untouched optional inputs"""
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def reject_null(value: Any, field: str) -> Any:
    if value is None:
        raise ValueError(f"{field} cannot be null")
    return value


def envelope(data=None, message: Optional[str] = None, count: Optional[int] = None) -> dict:
    """Success body shared by every endpoint: {success, data?, message?, count?}"""
    body = {"success": True}
    if count is not None:
        body["count"] = count
    if data is not None:
        body["data"] = data
    if message is not None:
        body["message"] = message
    return body
