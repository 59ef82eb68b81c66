"""Response builder utilities for structured JSON output.

All tools return JSON with a standard structure:

{
    "data": [...] | {...},   # Main data payload
    "summary": {...},        # Optional aggregates over the payload
    "metadata": {...}        # Query metadata, timestamps
}
"""

import json
from collections.abc import Iterable
from datetime import datetime
from typing import Any, cast


def _convert_datetimes(obj: Any) -> str | dict[str, Any] | list[Any] | Any:
    """Recursively convert datetime objects to ISO strings."""
    if isinstance(obj, datetime):
        return obj.isoformat()
    elif isinstance(obj, dict):
        return {str(k): _convert_datetimes(v) for k, v in obj.items()}
    elif isinstance(obj, list):
        return [_convert_datetimes(item) for item in obj]
    return obj


def average(values: Iterable[float | int | None]) -> float | None:
    """Mean of the non-null values, or None when there are none."""
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)


class ResponseBuilder:
    """Builder for standardized JSON responses."""

    @staticmethod
    def build_response(
        data: dict[str, Any] | list[Any],
        summary: dict[str, Any] | None = None,
        metadata: dict[str, Any] | None = None,
        query_type: str | None = None,
    ) -> str:
        """Build standardized JSON response.

        Args:
            data: Main data payload
            summary: Optional aggregates
            metadata: Optional metadata (will be enriched with timestamp)
            query_type: Optional query type for metadata

        Returns:
            JSON string with ``data``, optional ``summary`` and ``metadata`` keys.
        """
        response: dict[str, Any] = {"data": _convert_datetimes(data)}

        if summary is not None:
            response["summary"] = _convert_datetimes(summary)

        meta = cast(dict[str, Any], _convert_datetimes(metadata or {}))
        meta["fetched_at"] = datetime.now().isoformat()
        if query_type:
            meta["query_type"] = query_type
        response["metadata"] = meta

        return json.dumps(response, indent=2)

    @staticmethod
    def build_error_response(
        error_message: str,
        error_type: str = "error",
        suggestions: list[str] | None = None,
    ) -> str:
        """Build standardized error response.

        Args:
            error_message: Human-readable error message
            error_type: Type of error (e.g., "not_found", "rate_limit", "api_error")
            suggestions: Optional list of suggestions to resolve the error

        Returns:
            JSON string with error structure
        """
        response: dict[str, dict[str, str | list[str]]] = {
            "error": {
                "message": error_message,
                "type": error_type,
                "timestamp": datetime.now().isoformat(),
            }
        }

        if suggestions:
            response["error"]["suggestions"] = suggestions

        return json.dumps(response, indent=2)
