"""Pydantic models for Oura API v2 responses."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel

ResilienceLevel = Literal["limited", "adequate", "solid", "strong", "exceptional"]


class OuraModel(BaseModel):
    """Base model tolerating fields Oura adds over time."""

    model_config = {"extra": "allow"}


# Personal and device models
class PersonalInfo(OuraModel):
    """Personal information of the ring owner."""

    id: str | None = None
    age: int | None = None
    weight: float | None = None
    height: float | None = None
    biological_sex: str | None = None
    email: str | None = None


class RingConfiguration(OuraModel):
    """Ring hardware configuration."""

    id: str
    color: str | None = None
    design: str | None = None
    firmware_version: str | None = None
    hardware_type: str | None = None
    set_up_at: datetime | None = None
    size: int | None = None


# Sample series
class SampleModel(OuraModel):
    """Interval-sampled series embedded in other resources."""

    interval: float | None = None
    items: list[float | None] = []
    timestamp: datetime | None = None


# Daily summaries
class SleepContributors(OuraModel):
    deep_sleep: int | None = None
    efficiency: int | None = None
    latency: int | None = None
    rem_sleep: int | None = None
    restfulness: int | None = None
    timing: int | None = None
    total_sleep: int | None = None


class DailySleep(OuraModel):
    """Daily sleep score and contributors."""

    id: str
    day: str
    score: int | None = None
    timestamp: datetime | None = None
    contributors: SleepContributors = SleepContributors()


class ReadinessContributors(OuraModel):
    activity_balance: int | None = None
    body_temperature: int | None = None
    hrv_balance: int | None = None
    previous_day_activity: int | None = None
    previous_night: int | None = None
    recovery_index: int | None = None
    resting_heart_rate: int | None = None
    sleep_balance: int | None = None


class DailyReadiness(OuraModel):
    """Daily readiness score and contributors."""

    id: str
    day: str
    score: int | None = None
    temperature_deviation: float | None = None
    temperature_trend_deviation: float | None = None
    timestamp: datetime | None = None
    contributors: ReadinessContributors = ReadinessContributors()


class ActivityContributors(OuraModel):
    meet_daily_targets: int | None = None
    move_every_hour: int | None = None
    recovery_time: int | None = None
    stay_active: int | None = None
    training_frequency: int | None = None
    training_volume: int | None = None


class DailyActivity(OuraModel):
    """Daily activity totals."""

    id: str
    day: str
    score: int | None = None
    active_calories: int | None = None
    total_calories: int | None = None
    steps: int | None = None
    equivalent_walking_distance: int | None = None
    high_activity_time: int | None = None
    medium_activity_time: int | None = None
    low_activity_time: int | None = None
    sedentary_time: int | None = None
    resting_time: int | None = None
    average_met_minutes: float | None = None
    inactivity_alerts: int | None = None
    target_calories: int | None = None
    target_meters: int | None = None
    contributors: ActivityContributors = ActivityContributors()


class SpO2Percentage(OuraModel):
    average: float | None = None


class DailySpO2(OuraModel):
    """Daily blood oxygen saturation."""

    id: str
    day: str
    spo2_percentage: SpO2Percentage | None = None


class DailyStress(OuraModel):
    """Daily stress and recovery durations in seconds."""

    id: str
    day: str
    stress_high: int | None = None
    recovery_high: int | None = None
    day_summary: str | None = None


class DailyResilience(OuraModel):
    """Daily resilience level and contributors."""

    id: str
    day: str
    level: ResilienceLevel | None = None
    contributors: dict[str, Any] | None = None


class DailyCardiovascularAge(OuraModel):
    """Daily estimated vascular age."""

    day: str
    vascular_age: int | None = None


class VO2Max(OuraModel):
    """Daily VO2 max estimate."""

    id: str
    day: str
    timestamp: datetime | None = None
    vo2_max: float | None = None


# Time series and sessions
class HeartRateSample(OuraModel):
    """One heart rate reading."""

    bpm: int
    source: str | None = None
    timestamp: datetime


class Workout(OuraModel):
    """A workout recorded by the ring or imported."""

    id: str
    day: str
    activity: str | None = None
    calories: float | None = None
    distance: float | None = None
    intensity: str | None = None
    label: str | None = None
    source: str | None = None
    start_datetime: datetime
    end_datetime: datetime


class SleepPeriod(OuraModel):
    """A single sleep period (several may occur per day)."""

    id: str
    day: str
    type: str | None = None
    bedtime_start: datetime | None = None
    bedtime_end: datetime | None = None
    average_breath: float | None = None
    average_heart_rate: float | None = None
    average_hrv: float | None = None
    heart_rate: SampleModel | None = None
    hrv: SampleModel | None = None
    movement_30_sec: str | None = None
    sleep_phase_5_min: str | None = None


class EnhancedTag(OuraModel):
    """A user-entered tag."""

    id: str
    tag_type_code: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    start_day: str | None = None
    end_day: str | None = None
    comment: str | None = None
    custom_name: str | None = None


class Session(OuraModel):
    """A guided or unguided session (meditation, breathing, etc.)."""

    id: str
    day: str
    start_datetime: datetime | None = None
    end_datetime: datetime | None = None
    type: str | None = None
    mood: str | None = None
    heart_rate: SampleModel | None = None
    heart_rate_variability: SampleModel | None = None
    motion_count: SampleModel | None = None


class RestModePeriod(OuraModel):
    """A period in which rest mode was enabled."""

    id: str
    start_day: str | None = None
    end_day: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None
    episodes: list[dict[str, Any]] = []


class SleepTime(OuraModel):
    """Recommended bedtime window."""

    id: str
    day: str
    optimal_bedtime: dict[str, Any] | None = None
    recommendation: str | None = None
    status: str | None = None
