"""Oura API v2 client with token refresh on 401 and rate-limit tracking."""

import types
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol, TypeVar

import httpx
from pydantic import BaseModel, TypeAdapter

from .models import (
    DailyActivity,
    DailyCardiovascularAge,
    DailyReadiness,
    DailyResilience,
    DailySleep,
    DailySpO2,
    DailyStress,
    EnhancedTag,
    HeartRateSample,
    PersonalInfo,
    RestModePeriod,
    RingConfiguration,
    Session,
    SleepPeriod,
    SleepTime,
    VO2Max,
    Workout,
)

ModelT = TypeVar("ModelT", bound=BaseModel)


class TokenSource(Protocol):
    """Supplies Oura bearer tokens to the client.

    Implemented by the token lifecycle manager.
    """

    async def get_valid_token(self) -> str:
        """Current Oura access token, refreshed if close to expiry."""
        ...

    async def force_refresh(self, stale_access_token: str) -> str:
        """Refresh after the API rejected ``stale_access_token``."""
        ...


class OuraAPIError(Exception):
    """Custom exception for Oura API errors."""

    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class RateLimitError(OuraAPIError):
    """Oura answered 429; ``retry_after`` is in seconds when provided."""

    def __init__(self, message: str, retry_after: int | None = None):
        super().__init__(message, 429)
        self.retry_after = retry_after


@dataclass
class RateLimitStatus:
    """Most recent rate-limit headers seen from Oura."""

    limit: int | None = None
    remaining: int | None = None
    retry_after: int | None = None


def _header_int(headers: httpx.Headers, name: str) -> int | None:
    value = headers.get(name)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class OuraClient:
    """Async HTTP client for Oura API v2 with automatic token refresh."""

    BASE_URL = "https://api.ouraring.com/v2"
    MAX_PAGES = 10  # Safety limit per request

    def __init__(self, token_source: TokenSource):
        """Initialize the Oura API client."""
        self.token_source = token_source
        self.rate_limit = RateLimitStatus()
        self._client: httpx.AsyncClient | None = None

    async def __aenter__(self) -> "OuraClient":
        """Async context manager entry."""
        self._client = httpx.AsyncClient(
            base_url=self.BASE_URL,
            timeout=30.0,
        )
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: types.TracebackType | None,
    ) -> None:
        """Async context manager exit."""
        if self._client:
            await self._client.aclose()

    def _track_rate_limit(self, response: httpx.Response) -> None:
        headers = response.headers
        limit = _header_int(headers, "x-ratelimit-limit")
        remaining = _header_int(headers, "x-ratelimit-remaining")
        if limit is not None:
            self.rate_limit.limit = limit
        if remaining is not None:
            self.rate_limit.remaining = remaining
        self.rate_limit.retry_after = _header_int(headers, "retry-after")

    async def _request(
        self,
        method: str,
        endpoint: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """
        Make an authenticated request to the Oura API.

        Automatically refreshes the token on 401 and retries once.
        """
        if not self._client:
            raise RuntimeError("Client not initialized. Use async context manager.")

        token = await self.token_source.get_valid_token()

        try:
            response = await self._client.request(
                method,
                endpoint,
                headers={"Authorization": f"Bearer {token}"},
                **kwargs,
            )

            # Handle 401 - token revoked or expired early
            if response.status_code == 401:
                token = await self.token_source.force_refresh(token)
                response = await self._client.request(
                    method,
                    endpoint,
                    headers={"Authorization": f"Bearer {token}"},
                    **kwargs,
                )

            self._track_rate_limit(response)

            if response.status_code == 401:
                raise OuraAPIError(
                    "Oura rejected the access token. Re-authorize at /oauth/authorize.",
                    401,
                )

            if response.status_code == 403:
                raise OuraAPIError(
                    "Access to this Oura data was denied. The granted scopes may not include it, "
                    "or the Oura membership required for this data is inactive.",
                    403,
                )

            if response.status_code == 404:
                raise OuraAPIError(
                    "Resource not found. Please check the request and try again.",
                    404,
                )

            if response.status_code == 429:
                raise RateLimitError(
                    "Oura API rate limit exceeded. Please try again later.",
                    retry_after=self.rate_limit.retry_after,
                )

            response.raise_for_status()
            return response

        except httpx.HTTPStatusError as e:
            raise OuraAPIError(
                f"Oura API returned HTTP {e.response.status_code}",
                e.response.status_code,
            ) from e
        except httpx.RequestError as e:
            raise OuraAPIError(f"Request failed: {type(e).__name__}") from e

    async def _get_collection(
        self,
        endpoint: str,
        model: type[ModelT],
        params: dict[str, Any] | None = None,
    ) -> list[ModelT]:
        """Fetch every page of a ``{"data": [...], "next_token": ...}`` collection."""
        adapter = TypeAdapter(list[model])  # type: ignore[valid-type]
        query: dict[str, Any] = dict(params or {})
        items: list[ModelT] = []

        for _ in range(self.MAX_PAGES):
            response = await self._request("GET", endpoint, params=query)
            payload = response.json()
            items.extend(adapter.validate_python(payload.get("data", [])))

            next_token = payload.get("next_token")
            if not next_token:
                break
            query["next_token"] = next_token

        return items

    async def _get_daily(
        self, endpoint: str, model: type[ModelT], start_date: str, end_date: str
    ) -> list[ModelT]:
        return await self._get_collection(
            endpoint, model, {"start_date": start_date, "end_date": end_date}
        )

    # Personal and device methods

    async def get_personal_info(self) -> PersonalInfo:
        """Get the ring owner's personal information."""
        response = await self._request("GET", "/usercollection/personal_info")
        return PersonalInfo(**response.json())

    async def get_ring_configuration(self) -> list[RingConfiguration]:
        """Get ring hardware configurations."""
        return await self._get_collection("/usercollection/ring_configuration", RingConfiguration)

    # Daily summary methods

    async def get_daily_sleep(self, start_date: str, end_date: str) -> list[DailySleep]:
        return await self._get_daily(
            "/usercollection/daily_sleep", DailySleep, start_date, end_date
        )

    async def get_daily_activity(self, start_date: str, end_date: str) -> list[DailyActivity]:
        return await self._get_daily(
            "/usercollection/daily_activity", DailyActivity, start_date, end_date
        )

    async def get_daily_readiness(self, start_date: str, end_date: str) -> list[DailyReadiness]:
        return await self._get_daily(
            "/usercollection/daily_readiness", DailyReadiness, start_date, end_date
        )

    async def get_daily_spo2(self, start_date: str, end_date: str) -> list[DailySpO2]:
        return await self._get_daily("/usercollection/daily_spo2", DailySpO2, start_date, end_date)

    async def get_daily_stress(self, start_date: str, end_date: str) -> list[DailyStress]:
        return await self._get_daily(
            "/usercollection/daily_stress", DailyStress, start_date, end_date
        )

    async def get_daily_resilience(self, start_date: str, end_date: str) -> list[DailyResilience]:
        return await self._get_daily(
            "/usercollection/daily_resilience", DailyResilience, start_date, end_date
        )

    async def get_daily_cardiovascular_age(
        self, start_date: str, end_date: str
    ) -> list[DailyCardiovascularAge]:
        return await self._get_daily(
            "/usercollection/daily_cardiovascular_age", DailyCardiovascularAge, start_date, end_date
        )

    async def get_vo2_max(self, start_date: str, end_date: str) -> list[VO2Max]:
        return await self._get_daily("/usercollection/vO2_max", VO2Max, start_date, end_date)

    # Detailed record methods

    async def get_heart_rate(
        self, start_datetime: datetime, end_datetime: datetime | None = None
    ) -> list[HeartRateSample]:
        """Get heart rate samples (5-minute intervals) for a datetime range."""
        params = {"start_datetime": start_datetime.isoformat()}
        if end_datetime:
            params["end_datetime"] = end_datetime.isoformat()
        return await self._get_collection("/usercollection/heartrate", HeartRateSample, params)

    async def get_workouts(self, start_date: str, end_date: str) -> list[Workout]:
        return await self._get_daily("/usercollection/workout", Workout, start_date, end_date)

    async def get_sleep_periods(self, start_date: str, end_date: str) -> list[SleepPeriod]:
        return await self._get_daily("/usercollection/sleep", SleepPeriod, start_date, end_date)

    async def get_enhanced_tags(self, start_date: str, end_date: str) -> list[EnhancedTag]:
        return await self._get_daily(
            "/usercollection/enhanced_tag", EnhancedTag, start_date, end_date
        )

    async def get_sessions(self, start_date: str, end_date: str) -> list[Session]:
        return await self._get_daily("/usercollection/session", Session, start_date, end_date)

    async def get_rest_mode_periods(self, start_date: str, end_date: str) -> list[RestModePeriod]:
        return await self._get_daily(
            "/usercollection/rest_mode_period", RestModePeriod, start_date, end_date
        )

    async def get_sleep_time(self, start_date: str, end_date: str) -> list[SleepTime]:
        return await self._get_daily("/usercollection/sleep_time", SleepTime, start_date, end_date)
