"""Pydantic models for WHOOP API data.

These models provide:
- Type-safe access to WHOOP records
- Explicit scored / unscored state on every daily record
- Pass-through of unknown API fields for raw JSON output
- Validation at the data boundary
"""

import time
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, Field, field_serializer, field_validator

SCORED = "SCORED"
PENDING_SCORE = "PENDING_SCORE"
UNSCORABLE = "UNSCORABLE"

EXPIRY_MARGIN_SECONDS = 60

MILLIS_PER_HOUR = 3_600_000


def parse_offset(offset: Optional[str]) -> Optional[timezone]:
    """Parse a '+HH:MM' / '-HH:MM' offset as sent by WHOOP.

    Returns None for missing or malformed values.
    """
    if not offset or len(offset) < 6 or offset[0] not in "+-":
        return None
    try:
        hours = int(offset[1:3])
        minutes = int(offset[4:6])
    except ValueError:
        return None
    delta = timedelta(hours=hours, minutes=minutes)
    return timezone(-delta if offset[0] == "-" else delta)


# =============================================================================
# Credential
# =============================================================================

class Credential(BaseModel):
    """OAuth2 token pair with absolute expiry.

    Frozen: a refresh produces a new Credential, never a partial update.
    """
    model_config = {"extra": "ignore", "frozen": True}

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    scope: frozenset[str] = frozenset()
    expires_at: int
    """Unix timestamp (seconds)."""

    @field_validator("scope", mode="before")
    @classmethod
    def _split_scope(cls, value: Any) -> Any:
        if value is None:
            return frozenset()
        if isinstance(value, str):
            return frozenset(value.split())
        return value

    @field_serializer("scope")
    def _join_scope(self, scope: frozenset[str]) -> str:
        return " ".join(sorted(scope))

    def is_expired(self, now: Optional[float] = None) -> bool:
        """True once we are within EXPIRY_MARGIN_SECONDS of expires_at."""
        if now is None:
            now = time.time()
        return now >= self.expires_at - EXPIRY_MARGIN_SECONDS

    @classmethod
    def from_token_response(cls, data: dict, now: Optional[float] = None) -> "Credential":
        """Build a credential from the token endpoint's JSON body.

        The server reports a relative expires_in; we store the absolute instant.
        """
        if now is None:
            now = time.time()
        return cls(
            access_token=data["access_token"],
            refresh_token=data.get("refresh_token") or "",
            token_type=data.get("token_type") or "bearer",
            scope=data.get("scope"),
            expires_at=int(now) + int(data.get("expires_in") or 0),
        )


# =============================================================================
# Daily records
# =============================================================================

class ApiRecord(BaseModel):
    """Base for API payloads. Unknown fields are kept for raw output."""
    model_config = {"extra": "allow"}

    @classmethod
    def from_api(cls, data: dict):
        """Parse an API JSON object."""
        return cls.model_validate(data)


class ScoredRecord(ApiRecord):
    """A daily record whose score is computed server-side.

    score is only meaningful when score_state == SCORED.
    """

    score_state: str = PENDING_SCORE
    timezone_offset: Optional[str] = None
    score: Optional[Any] = None

    @property
    def is_scored(self) -> bool:
        return self.score_state == SCORED and self.score is not None

    @property
    def is_secondary(self) -> bool:
        """Secondary entries (naps) lose to primary ones when picking a day's record."""
        return False

    @property
    def anchor(self) -> Optional[datetime]:
        """Timestamp that decides which tracker day the record belongs to."""
        return None

    def local_anchor(self) -> Optional[datetime]:
        """anchor converted to the wall-clock time the record was taken in.

        Records without a timezone_offset (recoveries) use the machine's local
        zone, the same zone day_range builds query windows in.
        """
        moment = self.anchor
        if moment is None:
            return None
        if moment.tzinfo is None:
            moment = moment.replace(tzinfo=timezone.utc)
        tz = parse_offset(self.timezone_offset)
        return moment.astimezone(tz) if tz else moment.astimezone()


class SleepStageSummary(BaseModel):
    model_config = {"extra": "allow"}

    total_in_bed_time_milli: int = 0
    total_awake_time_milli: int = 0
    total_no_data_time_milli: int = 0
    total_light_sleep_time_milli: int = 0
    total_slow_wave_sleep_time_milli: int = 0
    total_rem_sleep_time_milli: int = 0
    sleep_cycle_count: int = 0
    disturbance_count: int = 0

    @property
    def asleep_milli(self) -> int:
        """Time actually asleep (light + deep + REM)."""
        return (
            self.total_light_sleep_time_milli
            + self.total_slow_wave_sleep_time_milli
            + self.total_rem_sleep_time_milli
        )


class SleepNeeded(BaseModel):
    model_config = {"extra": "allow"}

    baseline_milli: int = 0
    need_from_sleep_debt_milli: int = 0
    need_from_recent_strain_milli: int = 0
    need_from_recent_nap_milli: int = 0

    @property
    def total_milli(self) -> int:
        """Total need. The nap component is usually negative."""
        return (
            self.baseline_milli
            + self.need_from_sleep_debt_milli
            + self.need_from_recent_strain_milli
            + self.need_from_recent_nap_milli
        )

    @property
    def nightly_milli(self) -> int:
        """Need for this night alone, without debt carried from earlier nights."""
        return self.total_milli - self.need_from_sleep_debt_milli


class SleepScore(BaseModel):
    model_config = {"extra": "allow"}

    stage_summary: SleepStageSummary = Field(default_factory=SleepStageSummary)
    sleep_needed: SleepNeeded = Field(default_factory=SleepNeeded)
    respiratory_rate: Optional[float] = None
    sleep_performance_percentage: Optional[float] = None
    sleep_consistency_percentage: Optional[float] = None
    sleep_efficiency_percentage: Optional[float] = None


class Sleep(ScoredRecord):
    """Sleep or nap. Anchored on wake-up time."""

    id: Union[str, int, None] = None
    cycle_id: Optional[int] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    nap: bool = False
    score: Optional[SleepScore] = None

    @property
    def is_secondary(self) -> bool:
        return self.nap

    @property
    def anchor(self) -> Optional[datetime]:
        return self.end or self.start

    @property
    def hours_asleep(self) -> Optional[float]:
        if not self.is_scored:
            return None
        return self.score.stage_summary.asleep_milli / MILLIS_PER_HOUR

    @property
    def hours_in_bed(self) -> Optional[float]:
        if not self.is_scored:
            return None
        return self.score.stage_summary.total_in_bed_time_milli / MILLIS_PER_HOUR

    @property
    def hours_needed(self) -> Optional[float]:
        if not self.is_scored:
            return None
        return self.score.sleep_needed.total_milli / MILLIS_PER_HOUR

    @property
    def hours_shortfall(self) -> Optional[float]:
        """Nightly need minus time asleep. Negative after a surplus night."""
        if not self.is_scored:
            return None
        return self.score.sleep_needed.nightly_milli / MILLIS_PER_HOUR - self.hours_asleep


class RecoveryScore(BaseModel):
    model_config = {"extra": "allow"}

    user_calibrating: bool = False
    recovery_score: Optional[float] = None
    resting_heart_rate: Optional[float] = None
    hrv_rmssd_milli: Optional[float] = None
    spo2_percentage: Optional[float] = None
    skin_temp_celsius: Optional[float] = None


class Recovery(ScoredRecord):
    """Morning recovery. Anchored on creation, which follows wake-up."""

    cycle_id: Optional[int] = None
    sleep_id: Union[str, int, None] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    score: Optional[RecoveryScore] = None

    @property
    def anchor(self) -> Optional[datetime]:
        return self.created_at


class CycleScore(BaseModel):
    model_config = {"extra": "allow"}

    strain: Optional[float] = None
    kilojoule: Optional[float] = None
    average_heart_rate: Optional[float] = None
    max_heart_rate: Optional[float] = None


class Cycle(ScoredRecord):
    """Physiological day, from wake-up to next wake-up. end is None while ongoing."""

    id: Optional[int] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    score: Optional[CycleScore] = None

    @property
    def anchor(self) -> Optional[datetime]:
        return self.start


class WorkoutScore(BaseModel):
    model_config = {"extra": "allow"}

    strain: Optional[float] = None
    average_heart_rate: Optional[float] = None
    max_heart_rate: Optional[float] = None
    kilojoule: Optional[float] = None
    percent_recorded: Optional[float] = None
    distance_meter: Optional[float] = None


class Workout(ScoredRecord):
    id: Union[str, int, None] = None
    user_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    start: Optional[datetime] = None
    end: Optional[datetime] = None
    sport_id: Optional[int] = None
    sport_name: Optional[str] = None
    score: Optional[WorkoutScore] = None

    @property
    def anchor(self) -> Optional[datetime]:
        return self.start

    @property
    def label(self) -> str:
        if self.sport_name:
            return self.sport_name
        if self.sport_id is not None:
            return f"sport {self.sport_id}"
        return "workout"


# =============================================================================
# Single resources
# =============================================================================

class Profile(ApiRecord):
    user_id: Optional[int] = None
    email: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None


class Body(ApiRecord):
    height_meter: Optional[float] = None
    weight_kilogram: Optional[float] = None
    max_heart_rate: Optional[int] = None


class ActivityMapping(ApiRecord):
    v2_activity_id: Optional[str] = None


# =============================================================================
# Pagination and combined output
# =============================================================================

class Page(BaseModel):
    """One page of a collection query.

    next_token is None on the last page. A token is only valid for
    continuing the exact query that produced it.
    """

    records: list[Any] = Field(default_factory=list)
    next_token: Optional[str] = None


class CombinedOutput(BaseModel):
    """Result of fetching several resource kinds for one date."""

    date: str
    fetched_at: str
    profile: Optional[Profile] = None
    body: Optional[Body] = None
    sleep: Optional[list[Sleep]] = None
    recovery: Optional[list[Recovery]] = None
    workout: Optional[list[Workout]] = None
    cycle: Optional[list[Cycle]] = None
    pagination: Optional[dict[str, str]] = None

    def to_dict(self) -> dict:
        """JSON-ready dict without the sections that were not requested."""
        data = self.model_dump(mode="json")
        return {key: value for key, value in data.items() if value is not None}


# =============================================================================
# Analytics output
# =============================================================================

class Direction(str, Enum):
    UP = "up"
    DOWN = "down"
    FLAT = "flat"


class MetricTrend(BaseModel):
    """Statistics for one metric over a window. min/max are None below two observations."""

    count: int
    mean: float
    min: Optional[float] = None
    max: Optional[float] = None
    direction: Direction = Direction.FLAT


class TrendReport(BaseModel):
    days: int
    metrics: dict[str, MetricTrend] = Field(default_factory=dict)


class Severity(str, Enum):
    POSITIVE = "positive"
    INFO = "info"
    WARNING = "warning"


class Insight(BaseModel):
    category: str
    severity: Severity
    message: str
    recommendation: str
