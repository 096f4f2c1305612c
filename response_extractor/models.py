"""
Pydantic models for the structured signals pulled out of an AI response.
One extraction pass owns its models; nothing here is shared or persisted.
"""

from typing import List, Optional, Union
from pydantic import BaseModel, ConfigDict, Field
from enum import Enum


class Trend(str, Enum):
    """Direction hint rendered next to a metric card."""
    UP = "up"
    DOWN = "down"
    STABLE = "stable"


class TimeFamily(str, Enum):
    """Lexical family a time-series point was matched by."""
    MONTH = "month"
    MONTH_YEAR = "month_year"
    QUARTER = "quarter"
    WEEK = "week"
    WEEKDAY = "weekday"
    YEAR = "year"
    DATE = "date"


class Metric(BaseModel):
    """
    A single scalar fact, e.g. "Churn Rate: 12.5%".
    """
    label: str = Field(..., description="Text preceding the value")
    value: Union[int, float, str] = Field(..., description="Parsed numeric value")
    trend: Optional[Trend] = Field(None, description="Optional trend direction")

    @property
    def key(self) -> str:
        """Composite identity used for deduplication."""
        return f"{self.label}:{self.value}"


class Table(BaseModel):
    """A markdown pipe table. Every row has exactly len(headers) cells."""
    headers: List[str] = Field(default_factory=list)
    rows: List[List[str]] = Field(default_factory=list)


class ListGroup(BaseModel):
    """One contiguous bulleted or numbered block."""
    items: List[str] = Field(default_factory=list)
    context: str = Field("", description="Nearest non-blank line above the list")


class TimeSeriesPoint(BaseModel):
    """
    One time-indexed value. `date` is a label ("Jan", "Q1 2024", "Week 3",
    "2024-01-15"), not necessarily a parseable calendar date.
    """
    date: str
    value: Union[int, float]
    label: Optional[str] = Field(None, description="Time family that matched")


class ExtractedData(BaseModel):
    """
    Output of one extraction pass.
    Serializes with camelCase keys (timeSeries) for the rendering layer.
    """
    model_config = ConfigDict(populate_by_name=True)

    metrics: List[Metric] = Field(default_factory=list)
    tables: List[Table] = Field(default_factory=list)
    lists: List[ListGroup] = Field(default_factory=list)
    time_series: List[TimeSeriesPoint] = Field(default_factory=list, alias="timeSeries")

    def is_empty(self) -> bool:
        return not (self.metrics or self.tables or self.lists or self.time_series)
