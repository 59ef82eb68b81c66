"""Oura MCP tools.

``build_tool_specs`` returns the full catalogue in advertised order.
"""

from . import account, activities, daily, insights, sleep
from .arguments import (
    DateRangeArguments,
    DatetimeRangeArguments,
    HealthInsightsArguments,
    NoArguments,
    SleepSummaryArguments,
)
from .registry import ToolContext, ToolExecutor, ToolSpec


def build_tool_specs() -> list[ToolSpec]:
    return [
        ToolSpec(
            "get_oauth_status",
            "Check OAuth connection status and granted scopes "
            "(useful for debugging permission issues)",
            NoArguments,
            account.get_oauth_status,
            requires_auth=False,
        ),
        ToolSpec(
            "get_personal_info",
            "Get user's personal information and ring details",
            NoArguments,
            account.get_personal_info,
        ),
        ToolSpec(
            "get_sleep_summary",
            "Get sleep data for a date range",
            SleepSummaryArguments,
            sleep.get_sleep_summary,
        ),
        ToolSpec(
            "get_readiness_score",
            "Get daily readiness scores",
            DateRangeArguments,
            daily.get_readiness_score,
        ),
        ToolSpec(
            "get_activity_summary",
            "Get activity data including steps, calories, and intensity",
            DateRangeArguments,
            daily.get_activity_summary,
        ),
        ToolSpec(
            "get_heart_rate",
            "Get heart rate data in 5-minute intervals",
            DatetimeRangeArguments,
            activities.get_heart_rate,
        ),
        ToolSpec(
            "get_workouts",
            "Get workout sessions",
            DateRangeArguments,
            activities.get_workouts,
        ),
        ToolSpec(
            "get_sleep_detailed",
            "Get detailed sleep period data with heart rate and HRV",
            DateRangeArguments,
            sleep.get_sleep_detailed,
        ),
        ToolSpec(
            "get_health_insights",
            "Get AI-powered insights based on recent health data",
            HealthInsightsArguments,
            insights.get_health_insights,
        ),
        ToolSpec(
            "get_daily_spo2",
            "Get daily blood oxygen saturation (SpO2) averages",
            DateRangeArguments,
            daily.get_daily_spo2,
        ),
        ToolSpec(
            "get_daily_stress",
            "Get daily stress and recovery time",
            DateRangeArguments,
            daily.get_daily_stress,
        ),
        ToolSpec(
            "get_daily_resilience",
            "Get daily resilience level and contributors",
            DateRangeArguments,
            daily.get_daily_resilience,
        ),
        ToolSpec(
            "get_cardiovascular_age",
            "Get estimated cardiovascular (vascular) age",
            DateRangeArguments,
            daily.get_cardiovascular_age,
        ),
        ToolSpec(
            "get_vo2_max",
            "Get VO2 max estimates",
            DateRangeArguments,
            daily.get_vo2_max,
        ),
        ToolSpec(
            "get_sessions",
            "Get guided and unguided sessions (meditation, breathing, etc.)",
            DateRangeArguments,
            activities.get_sessions,
        ),
        ToolSpec(
            "get_rest_mode_periods",
            "Get rest mode periods",
            DateRangeArguments,
            activities.get_rest_mode_periods,
        ),
        ToolSpec(
            "get_sleep_time",
            "Get bedtime recommendations and optimal sleep windows",
            DateRangeArguments,
            sleep.get_sleep_time,
        ),
        ToolSpec(
            "get_enhanced_tags",
            "Get enhanced tags with duration and comments for lifestyle tracking",
            DateRangeArguments,
            activities.get_enhanced_tags,
        ),
        ToolSpec(
            "get_ring_configuration",
            "Get ring hardware details including color, size, and firmware",
            NoArguments,
            account.get_ring_configuration,
        ),
    ]


__all__ = ["ToolContext", "ToolExecutor", "ToolSpec", "build_tool_specs"]
