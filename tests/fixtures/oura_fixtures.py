"""Oura API v2 fixture data based on the public API reference."""

PERSONAL_INFO = {
    "id": "8f9a5221-639e-4a85-81cb-4065ef23f979",
    "age": 34,
    "weight": 72.5,
    "height": 1.78,
    "biological_sex": "female",
    "email": "ring.owner@example.com",
}

RING_CONFIGURATION = [
    {
        "id": "ring-1",
        "color": "stealth_black",
        "design": "heritage",
        "firmware_version": "2.9.21",
        "hardware_type": "gen3",
        "set_up_at": "2023-03-01T09:15:00+00:00",
        "size": 9,
    }
]

DAILY_SLEEP = [
    {
        "id": "sleep-1",
        "day": "2024-01-01",
        "score": 80,
        "timestamp": "2024-01-01T00:00:00+00:00",
        "contributors": {
            "deep_sleep": 20,
            "efficiency": 90,
            "latency": 15,
            "rem_sleep": 25,
            "restfulness": 70,
            "timing": 60,
            "total_sleep": 85,
        },
    },
    {
        "id": "sleep-2",
        "day": "2024-01-02",
        "score": 60,
        "timestamp": "2024-01-02T00:00:00+00:00",
        "contributors": {
            "deep_sleep": 10,
            "efficiency": 80,
            "latency": 30,
            "rem_sleep": 20,
            "restfulness": 50,
            "timing": 40,
            "total_sleep": 65,
        },
    },
]

DAILY_READINESS = [
    {
        "id": "readiness-1",
        "day": "2024-01-01",
        "score": 70,
        "temperature_deviation": -0.1,
        "temperature_trend_deviation": 0.05,
        "contributors": {
            "activity_balance": 80,
            "body_temperature": 95,
            "hrv_balance": 75,
            "previous_day_activity": 70,
            "previous_night": 85,
            "recovery_index": 90,
            "resting_heart_rate": 88,
            "sleep_balance": 82,
        },
    },
    {
        "id": "readiness-2",
        "day": "2024-01-02",
        "score": 84,
        "temperature_deviation": 0.2,
        "temperature_trend_deviation": 0.1,
        "contributors": {"hrv_balance": 80},
    },
]

DAILY_ACTIVITY = [
    {
        "id": "activity-1",
        "day": "2024-01-01",
        "score": 75,
        "active_calories": 450,
        "total_calories": 2300,
        "steps": 6000,
        "equivalent_walking_distance": 5200,
        "high_activity_time": 600,
        "medium_activity_time": 1800,
        "low_activity_time": 7200,
        "sedentary_time": 30000,
        "resting_time": 28000,
        "average_met_minutes": 1.6,
        "inactivity_alerts": 2,
        "target_calories": 500,
        "target_meters": 8000,
        "contributors": {"meet_daily_targets": 60},
    },
    {
        "id": "activity-2",
        "day": "2024-01-02",
        "score": 85,
        "active_calories": 600,
        "total_calories": 2500,
        "steps": 7000,
        "contributors": {"meet_daily_targets": 80},
    },
]

HEART_RATE = [
    {"bpm": 62, "source": "awake", "timestamp": "2024-01-01T08:00:00+00:00"},
    {"bpm": 58, "source": "awake", "timestamp": "2024-01-01T08:05:00+00:00"},
    {"bpm": 75, "source": "awake", "timestamp": "2024-01-01T08:10:00+00:00"},
    {"bpm": 120, "source": "workout", "timestamp": "2024-01-01T08:15:00+00:00"},
    {"bpm": 65, "source": "awake", "timestamp": "2024-01-01T08:20:00+00:00"},
]

WORKOUTS = [
    {
        "id": "workout-1",
        "day": "2024-01-01",
        "activity": "running",
        "calories": 350.5,
        "distance": 5000.0,
        "intensity": "moderate",
        "source": "autodetected",
        "start_datetime": "2024-01-01T07:00:00+00:00",
        "end_datetime": "2024-01-01T07:30:00+00:00",
    },
    {
        "id": "workout-2",
        "day": "2024-01-02",
        "activity": "cycling",
        "calories": 500.0,
        "distance": 20000.0,
        "intensity": "hard",
        "source": "manual",
        "start_datetime": "2024-01-02T18:00:00+00:00",
        "end_datetime": "2024-01-02T19:00:00+00:00",
    },
]

SLEEP_PERIODS = [
    {
        "id": "period-1",
        "day": "2024-01-01",
        "type": "long_sleep",
        "bedtime_start": "2023-12-31T23:10:00+00:00",
        "bedtime_end": "2024-01-01T07:05:00+00:00",
        "average_breath": 14.5,
        "average_heart_rate": 55.2,
        "average_hrv": 48,
        "heart_rate": {
            "interval": 300,
            "items": [58, 55, None, 54],
            "timestamp": "2023-12-31T23:10:00+00:00",
        },
        "hrv": {
            "interval": 300,
            "items": [40, 52, 51],
            "timestamp": "2023-12-31T23:10:00+00:00",
        },
        "movement_30_sec": "1112211",
        "sleep_phase_5_min": "4422331",
    }
]

DAILY_SPO2 = [
    {"id": "spo2-1", "day": "2024-01-01", "spo2_percentage": {"average": 97.0}},
    {"id": "spo2-2", "day": "2024-01-02", "spo2_percentage": None},
    {"id": "spo2-3", "day": "2024-01-03", "spo2_percentage": {"average": 95.0}},
]

DAILY_STRESS = [
    {
        "id": "stress-1",
        "day": "2024-01-01",
        "stress_high": 3600,
        "recovery_high": 1800,
        "day_summary": "normal",
    },
    {
        "id": "stress-2",
        "day": "2024-01-02",
        "stress_high": 1800,
        "recovery_high": None,
        "day_summary": "restored",
    },
]

DAILY_RESILIENCE = [
    {"id": "res-1", "day": "2024-01-01", "level": "solid", "contributors": {"sleep_recovery": 70}},
    {"id": "res-2", "day": "2024-01-02", "level": "solid", "contributors": {}},
    {"id": "res-3", "day": "2024-01-03", "level": "strong", "contributors": {}},
]

CARDIOVASCULAR_AGE = [
    {"day": "2024-01-01", "vascular_age": 30},
    {"day": "2024-01-02", "vascular_age": None},
    {"day": "2024-01-03", "vascular_age": 32},
]

VO2_MAX = [
    {"id": "vo2-1", "day": "2024-01-01", "timestamp": "2024-01-01T00:00:00+00:00", "vo2_max": 42.0},
    {"id": "vo2-2", "day": "2024-01-02", "timestamp": "2024-01-02T00:00:00+00:00", "vo2_max": 44.0},
]

SESSIONS = [
    {
        "id": "session-1",
        "day": "2024-01-01",
        "start_datetime": "2024-01-01T12:00:00+00:00",
        "end_datetime": "2024-01-01T12:10:00+00:00",
        "type": "breathing",
        "mood": "good",
        "heart_rate": {"interval": 5, "items": [60, 58], "timestamp": "2024-01-01T12:00:00+00:00"},
        "heart_rate_variability": None,
        "motion_count": None,
    },
    {
        "id": "session-2",
        "day": "2024-01-02",
        "type": "meditation",
    },
]

ENHANCED_TAGS = [
    {
        "id": "tag-1",
        "tag_type_code": "tag_generic_caffeine",
        "start_time": "2024-01-01T09:00:00+00:00",
        "end_time": None,
        "start_day": "2024-01-01",
        "end_day": None,
        "comment": "double espresso",
        "custom_name": None,
    },
    {
        "id": "tag-2",
        "tag_type_code": "tag_generic_alcohol",
        "start_day": "2024-01-01",
    },
]

REST_MODE_PERIODS = [
    {
        "id": "rest-1",
        "start_day": "2024-01-01",
        "end_day": "2024-01-03",
        "start_time": "2024-01-01T10:00:00+00:00",
        "end_time": "2024-01-03T10:00:00+00:00",
        "episodes": [{"tags": ["sick"], "timestamp": "2024-01-01T10:00:00+00:00"}],
    }
]

SLEEP_TIME = [
    {
        "id": "sleep-time-1",
        "day": "2024-01-01",
        "optimal_bedtime": {"day_tz": 0, "end_offset": 1800, "start_offset": -1800},
        "recommendation": "follow_optimal_bedtime",
        "status": "optimal_found",
    }
]

TOKEN_RESPONSE = {
    "access_token": "oura-access-token",
    "refresh_token": "oura-refresh-token",
    "token_type": "bearer",
    "expires_in": 86400,
    "scope": "extapi:email extapi:personal extapi:daily extapi:heartrate",
}
