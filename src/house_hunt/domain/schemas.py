"""Pydantic v2 schemas for API request/response validation."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ---------------------------------------------------------------------------
# Criteria
# ---------------------------------------------------------------------------


class Criteria(BaseModel):
    """Structured buyer search criteria.

    Every field is optional; a field is only stored once a chat turn has
    supplied it.
    """

    price_min: int | None = None
    price_max: int | None = None
    beds_min: int | None = None
    baths_min: int | None = None
    zones: list[str] | None = None
    must_haves: list[str] | None = None
    avoid: list[str] | None = None


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

# Request fields are optional so that missing values are reported as 400s
# by the routes rather than as FastAPI's default 422.


class _LenientRequest(BaseModel):
    """Request body whose malformed fields read as missing.

    Numbers are accepted as their string form (``"code": 123456``); any
    other non-string value becomes ``None`` and a non-object body becomes
    an empty one.
    """

    @model_validator(mode="before")
    @classmethod
    def _object_body(cls, data: Any) -> Any:
        return data if isinstance(data, dict) else {}

    @field_validator("*", mode="before")
    @classmethod
    def _scalar_to_str(cls, value: Any) -> str | None:
        if isinstance(value, bool):
            return None
        if isinstance(value, (int, float)):
            return str(value)
        return value if isinstance(value, str) else None


class SendOtpRequest(_LenientRequest):
    phone: str | None = None


class CheckOtpRequest(_LenientRequest):
    phone: str | None = None
    code: str | None = None


# ---------------------------------------------------------------------------
# Agent
# ---------------------------------------------------------------------------


class AgentMessageRequest(_LenientRequest):
    """Inbound chat turn from a verified (or verifying) buyer."""

    model_config = ConfigDict(populate_by_name=True)

    buyer_id: str | None = Field(default=None, alias="buyerId")
    message: str | None = None


class SavedSearchResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    criteria: dict
