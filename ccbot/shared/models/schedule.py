"""Schedule definition models."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ScheduleType(str, Enum):
    WEEKLY = "weekly"
    DATE = "date"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class ResponseTemplate(_CamelModel):
    """One candidate auto-response payload."""

    title: str = ""
    content: str


class ScheduleDefinition(_CamelModel):
    """A persisted reminder: when to post, what to post, and how to answer feedback.

    Recurrence fields are optional at the model level. Definitions missing
    the fields their type needs still load; the compiler skips them.
    """

    name: str
    type: ScheduleType
    enabled: bool = True
    source_channel: str
    response_channel: str | None = None
    mention_role: str | None = None

    # weekly
    hour: int | None = Field(default=None, ge=0, le=23)
    minute: int | None = Field(default=None, ge=0, le=59)
    second: int | None = Field(default=None, ge=0, le=59)
    day_of_week: int | None = Field(default=None, ge=0, le=6)
    timezone: str | None = None

    # date
    year: int | None = Field(default=None, ge=1970)
    month: int | None = Field(default=None, ge=1, le=12)
    day: int | None = Field(default=None, ge=1, le=31)
    time: str | None = None
    lead_days: int | None = Field(default=None, ge=0)

    message_content: str = ""
    responses: list[ResponseTemplate] = Field(default_factory=list)
    images: list[str] = Field(default_factory=list)
    images_enabled: bool = False

    @field_validator("source_channel", "response_channel", "mention_role", mode="before")
    @classmethod
    def _snowflake_to_str(cls, v: Any) -> Any:
        # Discord ids arrive as numbers from hand-edited files
        if isinstance(v, int) and not isinstance(v, bool):
            return str(v)
        return v

    @property
    def response_channel_id(self) -> str:
        return self.response_channel or self.source_channel

    def to_json(self) -> dict[str, Any]:
        """Serialise with the persisted (camelCase) field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)
