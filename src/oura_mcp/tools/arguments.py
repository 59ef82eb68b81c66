"""Validated argument models for Oura tools.

The JSON schemas advertised in ``tools/list`` are generated from these models.
"""

from datetime import date, datetime
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, model_validator

from ..time_utils import ensure_aware, get_today_date


class ToolArguments(BaseModel):
    """Base for tool arguments; unknown keys are ignored."""

    model_config = ConfigDict(extra="ignore")


class NoArguments(ToolArguments):
    """Tool takes no arguments."""


class DateRangeArguments(ToolArguments):
    start_date: Annotated[date, Field(description="Start date in YYYY-MM-DD format")]
    end_date: Annotated[
        date | None,
        Field(description="End date in YYYY-MM-DD format (optional, defaults to today)"),
    ] = None

    @model_validator(mode="after")
    def check_order(self) -> "DateRangeArguments":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    @property
    def start(self) -> str:
        return self.start_date.isoformat()

    @property
    def end(self) -> str:
        return self.end_date.isoformat() if self.end_date else get_today_date()


class SleepSummaryArguments(DateRangeArguments):
    include_hrv: Annotated[bool, Field(description="Include HRV data (default: false)")] = False


class DatetimeRangeArguments(ToolArguments):
    start_datetime: Annotated[datetime, Field(description="Start datetime in ISO 8601 format")]
    end_datetime: Annotated[
        datetime | None,
        Field(description="End datetime in ISO 8601 format (optional, defaults to now)"),
    ] = None

    @model_validator(mode="after")
    def check_order(self) -> "DatetimeRangeArguments":
        if self.end_datetime is not None and ensure_aware(self.end_datetime) < ensure_aware(
            self.start_datetime
        ):
            raise ValueError("end_datetime must not be before start_datetime")
        return self


class HealthInsightsArguments(ToolArguments):
    days: Annotated[
        int, Field(ge=1, le=90, description="Number of days to analyze (default: 7)")
    ] = 7
