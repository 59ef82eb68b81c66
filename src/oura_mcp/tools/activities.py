"""Heart rate, workout, session, tag and rest-mode tools."""

from typing import Any

from pydantic import BaseModel

from ..response_builder import ResponseBuilder, average
from ..time_utils import duration_seconds
from .arguments import DateRangeArguments, DatetimeRangeArguments
from .registry import ToolContext

RESTING_SAMPLE_WINDOW = 10


def _dump(model: BaseModel | None) -> dict[str, Any] | None:
    return model.model_dump(mode="json") if model is not None else None


def _unique(values: list[Any]) -> list[Any]:
    return list(dict.fromkeys(values))


def summarize_heart_rate(bpms: list[int]) -> dict[str, Any]:
    """Aggregate a bpm series.

    ``resting_hr`` is approximated as the minimum of the first ten samples.
    """
    return {
        "average_bpm": average(bpms),
        "min_bpm": min(bpms) if bpms else None,
        "max_bpm": max(bpms) if bpms else None,
        "resting_hr": min(bpms[:RESTING_SAMPLE_WINDOW]) if bpms else None,
        "total_readings": len(bpms),
    }


async def get_heart_rate(ctx: ToolContext, args: DatetimeRangeArguments) -> str:
    start = args.start_datetime
    end = args.end_datetime
    key = f"heart_rate:{start.isoformat()}:{end.isoformat() if end else 'now'}"

    async def fetch() -> str:
        samples = await ctx.oura.get_heart_rate(start, end)
        data = [{"timestamp": s.timestamp, "bpm": s.bpm, "source": s.source} for s in samples]
        return ResponseBuilder.build_response(
            data,
            summary=summarize_heart_rate([s.bpm for s in samples]),
            metadata={"start_datetime": start, "end_datetime": end},
            query_type="heart_rate",
        )

    return await ctx.cached(key, fetch)


async def get_workouts(ctx: ToolContext, args: DateRangeArguments) -> str:
    """Workouts with totals.

    The workout endpoint does not report heart rate, so the heart rate
    fields are always ``null``.
    """

    async def fetch() -> str:
        workouts = await ctx.oura.get_workouts(args.start, args.end)
        data = [
            {
                "date": w.day,
                "activity": w.activity,
                "intensity": w.intensity,
                "start_datetime": w.start_datetime,
                "end_datetime": w.end_datetime,
                "calories": w.calories,
                "distance": w.distance,
                "average_heart_rate": None,
                "max_heart_rate": None,
            }
            for w in workouts
        ]
        summary = {
            "total_workouts": len(workouts),
            "total_calories": sum(w.calories or 0 for w in workouts),
            "total_duration": sum(
                duration_seconds(w.start_datetime, w.end_datetime) for w in workouts
            ),
            "activities": _unique([w.activity for w in workouts]),
        }
        return ResponseBuilder.build_response(
            data,
            summary=summary,
            metadata={"start_date": args.start, "end_date": args.end},
            query_type="workouts",
        )

    return await ctx.cached(f"workouts:{args.start}:{args.end}", fetch)


async def get_sessions(ctx: ToolContext, args: DateRangeArguments) -> str:
    async def fetch() -> str:
        sessions = await ctx.oura.get_sessions(args.start, args.end)
        data = [
            {
                "id": s.id,
                "day": s.day,
                "start_datetime": s.start_datetime,
                "end_datetime": s.end_datetime,
                "type": s.type,
                "mood": s.mood,
                "heart_rate": _dump(s.heart_rate),
                "heart_rate_variability": _dump(s.heart_rate_variability),
                "motion_count": _dump(s.motion_count),
            }
            for s in sessions
        ]
        summary = {
            "total_sessions": len(data),
            "session_types": _unique([s.type for s in sessions]),
        }
        return ResponseBuilder.build_response(
            data,
            summary=summary,
            metadata={"start_date": args.start, "end_date": args.end},
            query_type="sessions",
        )

    return await ctx.cached(f"sessions:{args.start}:{args.end}", fetch)


async def get_enhanced_tags(ctx: ToolContext, args: DateRangeArguments) -> str:
    async def fetch() -> str:
        tags = await ctx.oura.get_enhanced_tags(args.start, args.end)
        data = [
            {
                "id": t.id,
                "tag_type_code": t.tag_type_code,
                "start_time": t.start_time,
                "end_time": t.end_time,
                "start_day": t.start_day,
                "end_day": t.end_day,
                "comment": t.comment,
                "custom_name": t.custom_name,
            }
            for t in tags
        ]
        summary = {
            "total_tags": len(data),
            "tag_types": _unique([t.tag_type_code for t in tags]),
        }
        return ResponseBuilder.build_response(
            data,
            summary=summary,
            metadata={"start_date": args.start, "end_date": args.end},
            query_type="enhanced_tags",
        )

    return await ctx.cached(f"enhanced_tags:{args.start}:{args.end}", fetch)


async def get_rest_mode_periods(ctx: ToolContext, args: DateRangeArguments) -> str:
    async def fetch() -> str:
        periods = await ctx.oura.get_rest_mode_periods(args.start, args.end)
        data = [
            {
                "id": p.id,
                "start_day": p.start_day,
                "end_day": p.end_day,
                "start_time": p.start_time,
                "end_time": p.end_time,
                "episodes": p.episodes,
            }
            for p in periods
        ]
        return ResponseBuilder.build_response(
            data,
            summary={"total_periods": len(data)},
            metadata={"start_date": args.start, "end_date": args.end},
            query_type="rest_mode_periods",
        )

    return await ctx.cached(f"rest_mode_periods:{args.start}:{args.end}", fetch)
