"""Daily summary tools: readiness, activity, SpO2, stress, resilience, cardio age, VO2 max."""

from collections import Counter
from typing import Any

from ..response_builder import ResponseBuilder, average
from .arguments import DateRangeArguments
from .registry import ToolContext

TREND_BAND = 5


def readiness_trend(scores: list[int | None]) -> str:
    """Compare the last score with the first using a +/-5 point band.

    Missing scores count as 0.
    """
    if not scores:
        return "stable"
    first = scores[0] or 0
    last = scores[-1] or 0
    if last > first + TREND_BAND:
        return "improving"
    if last < first - TREND_BAND:
        return "declining"
    return "stable"


def _build(
    data: list[dict[str, Any]],
    summary: dict[str, Any],
    args: DateRangeArguments,
    query_type: str,
) -> str:
    return ResponseBuilder.build_response(
        data,
        summary=summary,
        metadata={"start_date": args.start, "end_date": args.end},
        query_type=query_type,
    )


async def get_readiness_score(ctx: ToolContext, args: DateRangeArguments) -> str:
    async def fetch() -> str:
        records = await ctx.oura.get_daily_readiness(args.start, args.end)
        data = []
        for item in records:
            c = item.contributors
            data.append(
                {
                    "date": item.day,
                    "score": item.score,
                    "temperature_deviation": item.temperature_deviation,
                    "temperature_trend_deviation": item.temperature_trend_deviation,
                    "activity_balance": c.activity_balance,
                    "body_temperature": c.body_temperature,
                    "hrv_balance": c.hrv_balance,
                    "previous_day_activity": c.previous_day_activity,
                    "previous_night": c.previous_night,
                    "recovery_index": c.recovery_index,
                    "resting_heart_rate": c.resting_heart_rate,
                    "sleep_balance": c.sleep_balance,
                }
            )
        scores = [d["score"] for d in data]
        summary = {
            "average_score": average(scores),
            "trend": readiness_trend(scores),
            "total_days": len(data),
        }
        return _build(data, summary, args, "readiness")

    return await ctx.cached(f"readiness:{args.start}:{args.end}", fetch)


async def get_activity_summary(ctx: ToolContext, args: DateRangeArguments) -> str:
    async def fetch() -> str:
        records = await ctx.oura.get_daily_activity(args.start, args.end)
        data = [
            {
                "date": item.day,
                "score": item.score,
                "active_calories": item.active_calories,
                "total_calories": item.total_calories,
                "steps": item.steps,
                "equivalent_walking_distance": item.equivalent_walking_distance,
                "high_activity_time": item.high_activity_time,
                "medium_activity_time": item.medium_activity_time,
                "low_activity_time": item.low_activity_time,
                "sedentary_time": item.sedentary_time,
                "resting_time": item.resting_time,
                "average_met": item.average_met_minutes,
                "inactivity_alerts": item.inactivity_alerts,
                "target_calories": item.target_calories,
                "target_meters": item.target_meters,
                "meet_daily_targets": item.contributors.meet_daily_targets,
            }
            for item in records
        ]
        steps = [d["steps"] for d in data]
        summary = {
            "average_score": average(d["score"] for d in data),
            "total_steps": sum(s for s in steps if s is not None),
            "total_calories": sum(d["total_calories"] or 0 for d in data),
            "average_steps_per_day": average(steps),
            "total_days": len(data),
        }
        return _build(data, summary, args, "activity")

    return await ctx.cached(f"activity:{args.start}:{args.end}", fetch)


async def get_daily_spo2(ctx: ToolContext, args: DateRangeArguments) -> str:
    async def fetch() -> str:
        records = await ctx.oura.get_daily_spo2(args.start, args.end)
        data = [
            {
                "id": item.id,
                "day": item.day,
                "spo2_percentage": item.spo2_percentage.average if item.spo2_percentage else None,
            }
            for item in records
        ]
        summary = {
            "average_spo2": average(d["spo2_percentage"] for d in data),
            "total_days": len(data),
        }
        return _build(data, summary, args, "daily_spo2")

    return await ctx.cached(f"daily_spo2:{args.start}:{args.end}", fetch)


async def get_daily_stress(ctx: ToolContext, args: DateRangeArguments) -> str:
    async def fetch() -> str:
        records = await ctx.oura.get_daily_stress(args.start, args.end)
        data = [
            {
                "id": item.id,
                "day": item.day,
                "stress_high": item.stress_high,
                "recovery_high": item.recovery_high,
                "day_summary": item.day_summary,
            }
            for item in records
        ]
        summary = {
            "average_stress_high": average(d["stress_high"] for d in data),
            "average_recovery_high": average(d["recovery_high"] for d in data),
            "total_days": len(data),
        }
        return _build(data, summary, args, "daily_stress")

    return await ctx.cached(f"daily_stress:{args.start}:{args.end}", fetch)


async def get_daily_resilience(ctx: ToolContext, args: DateRangeArguments) -> str:
    async def fetch() -> str:
        records = await ctx.oura.get_daily_resilience(args.start, args.end)
        data = [
            {
                "id": item.id,
                "day": item.day,
                "level": item.level,
                "contributors": item.contributors,
            }
            for item in records
        ]
        levels = Counter(d["level"] for d in data if d["level"] is not None)
        summary = {"level_distribution": dict(levels), "total_days": len(data)}
        return _build(data, summary, args, "daily_resilience")

    return await ctx.cached(f"daily_resilience:{args.start}:{args.end}", fetch)


async def get_cardiovascular_age(ctx: ToolContext, args: DateRangeArguments) -> str:
    async def fetch() -> str:
        records = await ctx.oura.get_daily_cardiovascular_age(args.start, args.end)
        data = [{"day": item.day, "vascular_age": item.vascular_age} for item in records]
        summary = {
            "average_vascular_age": average(d["vascular_age"] for d in data),
            "total_days": len(data),
        }
        return _build(data, summary, args, "cardiovascular_age")

    return await ctx.cached(f"cardiovascular_age:{args.start}:{args.end}", fetch)


async def get_vo2_max(ctx: ToolContext, args: DateRangeArguments) -> str:
    async def fetch() -> str:
        records = await ctx.oura.get_vo2_max(args.start, args.end)
        data = [{"id": item.id, "day": item.day, "vo2_max": item.vo2_max} for item in records]
        summary = {
            "average_vo2_max": average(d["vo2_max"] for d in data),
            "total_days": len(data),
        }
        return _build(data, summary, args, "vo2_max")

    return await ctx.cached(f"vo2_max:{args.start}:{args.end}", fetch)
