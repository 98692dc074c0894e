from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator


class AlertCondition(str, Enum):
    ABOVE = "above"
    BELOW = "below"


class CreateAlertRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_id: str = Field(alias="userId", min_length=1, max_length=128)
    email: EmailStr
    index_symbol: str = Field(alias="indexSymbol", min_length=1, max_length=16)
    threshold: float = Field(allow_inf_nan=False)
    condition: AlertCondition

    @field_validator("index_symbol")
    @classmethod
    def _normalize_symbol(cls, value: str) -> str:
        return value.strip().upper()


class AlertRecord(BaseModel):
    """Read-only view of a stored alert handed to the processing pipeline.

    ``condition`` keeps the stored text so a malformed row is rejected by the
    evaluator rather than when the row is loaded.
    """

    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: str
    user_id: str
    email: str
    index_symbol: str
    threshold: float
    condition: str
    is_triggered: bool = False
    created_at: datetime | None = None
    last_triggered: datetime | None = None


class AlertResponse(BaseModel):
    id: str
    userId: str
    email: str
    indexSymbol: str
    threshold: float
    condition: str
    isTriggered: bool
    createdAt: datetime | None = None
    lastTriggered: datetime | None = None

    @classmethod
    def from_record(cls, record: AlertRecord) -> "AlertResponse":
        return cls(
            id=record.id,
            userId=record.user_id,
            email=record.email,
            indexSymbol=record.index_symbol,
            threshold=record.threshold,
            condition=record.condition,
            isTriggered=record.is_triggered,
            createdAt=record.created_at,
            lastTriggered=record.last_triggered,
        )
