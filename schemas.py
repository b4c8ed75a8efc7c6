import re
from datetime import datetime

from pydantic import BaseModel, ConfigDict, StrictStr, field_validator

# Date and time are both required; the offset may be left off (read as UTC).
_DATETIME_RE = re.compile(
    r"\d{4}-\d{2}-\d{2}[Tt ]\d{2}:\d{2}:\d{2}(\.\d+)?([Zz]|[+-]\d{2}:\d{2})?",
    re.ASCII,
)


class TaskIn(BaseModel):
    """Body accepted by create and update. id and timestamps are ignored if sent."""

    model_config = ConfigDict(extra="ignore")

    title: StrictStr
    description: StrictStr = ""
    due_date: datetime

    @field_validator("description", mode="before")
    @classmethod
    def _null_description(cls, v):
        # JSON null leaves the field empty instead of failing the request.
        return "" if v is None else v

    @field_validator("due_date", mode="before")
    @classmethod
    def _iso_datetime_string(cls, v):
        if not isinstance(v, str) or not _DATETIME_RE.fullmatch(v):
            raise ValueError("due_date must be an ISO-8601 date-time string")
        return v


class Task(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    description: str
    due_date: datetime
    created_at: datetime
    updated_at: datetime


class ErrorResponse(BaseModel):
    error: str
