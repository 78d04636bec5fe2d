"""
Data models for the Hot Issue Tagger.

Uses Pydantic for validation of values passed between the pipeline stages.
Persisted rows live in db.py; these models are the read/transfer shapes.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


class ExistingTag(BaseModel):
    """A tag from the current vocabulary together with its usage count."""

    name: str = Field(..., description="Unique tag name")
    description: str = Field(default="", description="Short tag description")
    usage_count: int = Field(default=0, ge=0, description="Number of linked tickets")

    model_config = {"frozen": True}

    def to_prompt_line(self) -> str:
        """Render the tag as a vocabulary line for the system prompt."""
        return f"- {self.name}: {self.description} (usage count: {self.usage_count})"


class AnalysisResult(BaseModel):
    """
    Normalized outcome of one ticket analysis.

    Produced by the analyzer after validation and consumed immediately
    to resolve a tag and link it to the ticket.
    """

    name: str = Field(..., description="Tag category name")
    description: str = Field(..., description="Short concrete description")
    confidence: float = Field(
        ...,
        ge=0.0,
        le=1.0,
        description="Classification confidence (0-1)"
    )
    reasoning: Optional[str] = Field(
        default=None,
        description="Brief explanation or missing-information note"
    )

    model_config = {"frozen": True}


class TimeRange(BaseModel):
    """
    Inclusive [start, end] window for the stats query.

    Both bounds are stored as UTC; naive values are taken to be UTC already,
    matching the link timestamps.
    """

    start: datetime
    end: datetime

    model_config = {"frozen": True}

    @field_validator("start", "end")
    @classmethod
    def to_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    @model_validator(mode="after")
    def check_order(self) -> "TimeRange":
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self


class TagStat(BaseModel):
    """Aggregated usage of a single tag within a time window."""

    tag_name: str
    tag_description: str = ""
    count: int = Field(..., ge=0)
    avg_confidence: Optional[float] = None

    model_config = {"frozen": True}


class HotIssuesStats(BaseModel):
    """Stats response: one row per tag, most used first."""

    tag_stats: list[TagStat] = Field(default_factory=list)

    def total_links(self) -> int:
        """Get the number of ticket/tag links covered by the stats."""
        return sum(stat.count for stat in self.tag_stats)
