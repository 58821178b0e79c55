"""Builders for WHOOP API JSON used across tests.

All timestamps are UTC with a +00:00 offset, so with the default 4am
cutoff a record anchored at 07:00 belongs to its calendar date.
"""

from datetime import date, datetime, timedelta, timezone
from typing import Optional

HOUR_MS = 3_600_000


def iso(day: date, hour: int = 7, minute: int = 0) -> str:
    moment = datetime(day.year, day.month, day.day, hour, minute, tzinfo=timezone.utc)
    return moment.strftime("%Y-%m-%dT%H:%M:%S.000Z")


def sleep_json(
    day: date,
    performance: Optional[float] = 85.0,
    asleep_hours: float = 7.5,
    needed_hours: float = 8.0,
    debt_hours: float = 0.0,
    nap: bool = False,
    state: str = "SCORED",
    sleep_id: str = "sleep-1",
) -> dict:
    previous = day - timedelta(days=1)
    record = {
        "id": sleep_id,
        "user_id": 10129,
        "start": iso(previous, 23),
        "end": iso(day, 7),
        "timezone_offset": "+00:00",
        "nap": nap,
        "score_state": state,
        "score": None,
    }
    if nap:
        record["start"] = iso(day, 13)
        record["end"] = iso(day, 14)
    if state == "SCORED":
        asleep = int(asleep_hours * HOUR_MS)
        record["score"] = {
            "stage_summary": {
                "total_in_bed_time_milli": asleep + HOUR_MS // 2,
                "total_awake_time_milli": HOUR_MS // 2,
                "total_light_sleep_time_milli": asleep // 2,
                "total_slow_wave_sleep_time_milli": asleep // 4,
                "total_rem_sleep_time_milli": asleep - asleep // 2 - asleep // 4,
            },
            "sleep_needed": {
                "baseline_milli": int(needed_hours * HOUR_MS),
                "need_from_sleep_debt_milli": int(debt_hours * HOUR_MS),
                "need_from_recent_strain_milli": 0,
                "need_from_recent_nap_milli": 0,
            },
            "respiratory_rate": 15.5,
            "sleep_performance_percentage": performance,
            "sleep_efficiency_percentage": 92.0,
        }
    return record


def recovery_json(
    day: date,
    score: Optional[float] = 70.0,
    hrv: Optional[float] = 40.0,
    rhr: Optional[float] = 55.0,
    state: str = "SCORED",
) -> dict:
    record = {
        "cycle_id": int(day.strftime("%Y%m%d")),
        "sleep_id": "sleep-1",
        "user_id": 10129,
        "created_at": iso(day, 7, 30),
        "updated_at": iso(day, 7, 30),
        "score_state": state,
        "score": None,
    }
    if state == "SCORED":
        record["score"] = {
            "user_calibrating": False,
            "recovery_score": score,
            "resting_heart_rate": rhr,
            "hrv_rmssd_milli": hrv,
        }
    return record


def cycle_json(day: date, strain: Optional[float] = 10.0, state: str = "SCORED") -> dict:
    record = {
        "id": int(day.strftime("%Y%m%d")),
        "user_id": 10129,
        "start": iso(day, 7),
        "end": None,
        "timezone_offset": "+00:00",
        "score_state": state,
        "score": None,
    }
    if state == "SCORED":
        record["score"] = {
            "strain": strain,
            "kilojoule": 8368.0,
            "average_heart_rate": 68,
            "max_heart_rate": 160,
        }
    return record


def workout_json(day: date, strain: float = 8.0, sport_name: str = "running") -> dict:
    return {
        "id": f"workout-{day.isoformat()}",
        "user_id": 10129,
        "start": iso(day, 17),
        "end": iso(day, 18),
        "timezone_offset": "+00:00",
        "sport_name": sport_name,
        "score_state": "SCORED",
        "score": {
            "strain": strain,
            "average_heart_rate": 130,
            "max_heart_rate": 165,
            "kilojoule": 2092.0,
        },
    }
