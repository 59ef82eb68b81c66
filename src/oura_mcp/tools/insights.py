"""Cross-metric health insights over a recent window."""

import asyncio
import json
from typing import Any

from ..response_builder import average
from ..time_utils import get_days_ago, get_today_date
from .arguments import HealthInsightsArguments
from .registry import ToolContext

SCORE_THRESHOLD = 70
STEPS_THRESHOLD = 7000


def score_trend(scores: list[int | None]) -> str:
    """``declining`` when the first score beats the last, else ``improving``."""
    present = [s for s in scores if s is not None]
    if len(present) < 2:
        return "insufficient_data"
    return "declining" if present[0] > present[-1] else "improving"


def build_insights(
    avg_sleep: float | None, avg_steps: float | None, avg_readiness: float | None
) -> list[dict[str, str]]:
    insights = []
    if avg_sleep is not None and avg_sleep < SCORE_THRESHOLD:
        insights.append(
            {
                "category": "sleep",
                "finding": f"Your average sleep score is {avg_sleep:.0f}, "
                "which is below optimal levels.",
                "recommendation": "Try to maintain a consistent sleep schedule and aim for "
                "7-9 hours of sleep per night.",
                "priority": "high",
            }
        )
    if avg_steps is not None and avg_steps < STEPS_THRESHOLD:
        insights.append(
            {
                "category": "activity",
                "finding": f"Your average daily steps ({avg_steps:.0f}) are below the "
                "recommended 7,000-10,000 steps.",
                "recommendation": "Consider taking short walks throughout the day to increase "
                "your activity level.",
                "priority": "medium",
            }
        )
    if avg_readiness is not None and avg_readiness < SCORE_THRESHOLD:
        insights.append(
            {
                "category": "readiness",
                "finding": f"Your average readiness score is {avg_readiness:.0f}, "
                "indicating suboptimal recovery.",
                "recommendation": "Focus on recovery strategies like adequate sleep, "
                "stress management, and proper nutrition.",
                "priority": "high",
            }
        )
    return insights


async def get_health_insights(ctx: ToolContext, args: HealthInsightsArguments) -> str:
    """Flag low sleep, readiness and step averages and report score trends.

    Not cached; each call reads the latest window.
    """
    end_date = get_today_date()
    start_date = get_days_ago(args.days)

    sleep, activity, readiness = await asyncio.gather(
        ctx.oura.get_daily_sleep(start_date, end_date),
        ctx.oura.get_daily_activity(start_date, end_date),
        ctx.oura.get_daily_readiness(start_date, end_date),
    )

    sleep_scores = [d.score for d in sleep]
    activity_scores = [d.score for d in activity]
    readiness_scores = [d.score for d in readiness]
    averages = {
        "sleep_score": average(sleep_scores),
        "steps": average(d.steps for d in activity),
        "readiness_score": average(readiness_scores),
    }

    result: dict[str, Any] = {
        "period": {"start_date": start_date, "end_date": end_date, "days": args.days},
        "averages": averages,
        "insights": build_insights(
            averages["sleep_score"], averages["steps"], averages["readiness_score"]
        ),
        "trends": {
            "sleep": score_trend(sleep_scores),
            "activity": score_trend(activity_scores),
            "readiness": score_trend(readiness_scores),
        },
    }
    return json.dumps(result, indent=2)
