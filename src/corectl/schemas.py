"""Wire schemas for core responses."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError


class ErrorResponse(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    chain_code: str = Field(..., alias="code")
    message: str
    detail: Optional[str] = None
    temporary: bool = False


def decode_error_response(body: object) -> ErrorResponse | None:
    if not isinstance(body, dict):
        return None
    try:
        return ErrorResponse.model_validate(body)
    except ValidationError:
        return None
