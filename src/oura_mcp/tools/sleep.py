"""Sleep tools.

Oura's ``daily_sleep`` collection carries contributor scores (0-100), not
durations. ``get_sleep_summary`` reports duration-shaped fields derived from
those scores: a contributor score ``s`` is reported as ``s * 3600`` seconds
and the latency score as ``latency * 60``. The values are only comparable
with each other; use ``get_sleep_detailed`` for measured sleep periods.
"""

from typing import Any

from ..models import DailySleep
from ..response_builder import ResponseBuilder, average
from .arguments import DateRangeArguments, SleepSummaryArguments
from .registry import ToolContext


def _scaled(value: float | None, factor: float) -> float | None:
    return None if value is None else value * factor


def summarize_sleep_day(item: DailySleep, include_hrv: bool = False) -> dict[str, Any]:
    """Map one daily sleep record to the summary shape."""
    c = item.contributors
    light = None
    if c.total_sleep is not None and c.deep_sleep is not None and c.rem_sleep is not None:
        light = (c.total_sleep - c.deep_sleep - c.rem_sleep) * 3600
    awake = None
    if c.total_sleep is not None and c.efficiency is not None:
        awake = c.total_sleep * (1 - c.efficiency / 100) * 3600

    day: dict[str, Any] = {
        "date": item.day,
        "score": item.score,
        "total_sleep_duration": _scaled(c.total_sleep, 3600),
        "efficiency": c.efficiency,
        "latency": _scaled(c.latency, 60),
        "deep_sleep_duration": _scaled(c.deep_sleep, 3600),
        "light_sleep_duration": light,
        "rem_sleep_duration": _scaled(c.rem_sleep, 3600),
        "awake_time": awake,
        "restfulness": c.restfulness,
        "timing": c.timing,
    }
    if include_hrv:
        # daily_sleep has no HRV balance; see get_readiness_score
        day["hrv_balance"] = None
    return day


async def get_sleep_summary(ctx: ToolContext, args: SleepSummaryArguments) -> str:
    start, end = args.start, args.end

    async def fetch() -> str:
        records = await ctx.oura.get_daily_sleep(start, end)
        days = [summarize_sleep_day(item, args.include_hrv) for item in records]
        summary = {
            "average_score": average(d["score"] for d in days),
            "average_duration": average(d["total_sleep_duration"] for d in days),
            "average_efficiency": average(d["efficiency"] for d in days),
            "total_days": len(days),
        }
        return ResponseBuilder.build_response(
            days,
            summary=summary,
            metadata={"start_date": start, "end_date": end},
            query_type="sleep_summary",
        )

    return await ctx.cached(f"sleep_summary:{start}:{end}:{args.include_hrv}", fetch)


async def get_sleep_detailed(ctx: ToolContext, args: DateRangeArguments) -> str:
    """Sleep periods with heart rate and HRV series and hypnogram strings."""
    start, end = args.start, args.end

    async def fetch() -> str:
        periods = await ctx.oura.get_sleep_periods(start, end)
        data = [
            {
                "date": p.day,
                "type": p.type,
                "bedtime_start": p.bedtime_start,
                "bedtime_end": p.bedtime_end,
                "breath_average": p.average_breath,
                "heart_rate": {
                    "interval": p.heart_rate.interval if p.heart_rate else None,
                    "samples": p.heart_rate.items if p.heart_rate else [],
                    "average": p.average_heart_rate,
                },
                "hrv": {
                    "samples": p.hrv.items if p.hrv else [],
                    "average": p.average_hrv,
                },
                "movement_30_sec": p.movement_30_sec,
                "sleep_phase_5_min": p.sleep_phase_5_min,
            }
            for p in periods
        ]
        return ResponseBuilder.build_response(
            data,
            metadata={"start_date": start, "end_date": end, "count": len(data)},
            query_type="sleep_detailed",
        )

    return await ctx.cached(f"sleep_detailed:{start}:{end}", fetch)


async def get_sleep_time(ctx: ToolContext, args: DateRangeArguments) -> str:
    start, end = args.start, args.end

    async def fetch() -> str:
        records = await ctx.oura.get_sleep_time(start, end)
        data = [
            {
                "id": item.id,
                "day": item.day,
                "optimal_bedtime": item.optimal_bedtime,
                "recommendation": item.recommendation,
                "status": item.status,
            }
            for item in records
        ]
        return ResponseBuilder.build_response(
            data, metadata={"start_date": start, "end_date": end}, query_type="sleep_time"
        )

    return await ctx.cached(f"sleep_time:{start}:{end}", fetch)
