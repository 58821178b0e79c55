"""Trend statistics and rule-based insights over recent WHOOP history.

Everything here is a pure function of the records passed in: nothing is
fetched, cached or stored. Unscored records never reach the arithmetic,
and a rule without enough input is skipped rather than failing the run.
"""

from datetime import date, timedelta
from statistics import mean
from typing import Callable, Optional, Sequence

from .errors import ValidationError
from .models import (
    Cycle,
    Direction,
    Insight,
    MetricTrend,
    Recovery,
    ScoredRecord,
    Severity,
    Sleep,
    TrendReport,
    Workout,
)
from .normalize import group_by_day, with_cycle_offsets

TREND_DAYS = (7, 14, 30)

# Later-half mean must differ from the earlier half by more than this fraction
TREND_THRESHOLD = 0.02

RECOVERY_HIGH = 67
RECOVERY_MODERATE = 34

HRV_DEVIATION = 0.15

SLEEP_DEBT_WARNING_HOURS = 1.0

STRAIN_TARGET_HIGH = 14
STRAIN_TARGET_MODERATE = 10
STRAIN_TARGET_LOW = 6
STRAIN_TOLERANCE = 1.0


# =============================================================================
# Trends
# =============================================================================

def trend_direction(values: Sequence[float], threshold: float = TREND_THRESHOLD) -> Direction:
    """Compare the mean of the later half against the earlier half.

    For odd counts the middle observation sits in neither half.
    Fewer than two values is always flat.
    """
    if len(values) < 2:
        return Direction.FLAT

    half = len(values) // 2
    earlier = mean(values[:half])
    later = mean(values[len(values) - half:])

    margin = threshold * abs(earlier)
    if later - earlier > margin:
        return Direction.UP
    if earlier - later > margin:
        return Direction.DOWN
    return Direction.FLAT


def summarize(values: Sequence[float]) -> Optional[MetricTrend]:
    """Count/mean/min/max/direction, or None when there is nothing to summarize."""
    if not values:
        return None
    if len(values) < 2:
        return MetricTrend(count=1, mean=float(values[0]), direction=Direction.FLAT)
    return MetricTrend(
        count=len(values),
        mean=mean(values),
        min=min(values),
        max=max(values),
        direction=trend_direction(values),
    )


def _scored_series(
    records: Sequence[ScoredRecord],
    value: Callable[[ScoredRecord], Optional[float]],
    days: int,
    end_day: Optional[date],
    cutoff_hour: int,
) -> list[float]:
    """Per-day scored values, oldest first, limited to the `days` days ending at end_day."""
    per_day = group_by_day(records, cutoff_hour)
    if not per_day:
        return []

    if end_day is None:
        end_day = per_day[-1][0]
    first_day = end_day - timedelta(days=days - 1)

    series = []
    for day, record in per_day:
        if not first_day <= day <= end_day or not record.is_scored:
            continue
        observed = value(record)
        if observed is not None:
            series.append(float(observed))
    return series


METRICS = [
    ("recovery", "recovery", lambda r: r.score.recovery_score),
    ("hrv", "recovery", lambda r: r.score.hrv_rmssd_milli),
    ("rhr", "recovery", lambda r: r.score.resting_heart_rate),
    ("sleep_performance", "sleep", lambda s: s.score.sleep_performance_percentage),
    ("sleep_hours", "sleep", lambda s: s.hours_asleep),
    ("strain", "cycle", lambda c: c.score.strain),
]


def compute_trends(
    recovery: Sequence[Recovery],
    sleep: Sequence[Sleep],
    cycles: Sequence[Cycle],
    days: int = 7,
    end_day: Optional[date] = None,
    cutoff_hour: int = 4,
) -> TrendReport:
    """Rolling statistics for each tracked metric over a 7, 14 or 30 day window.

    Args:
        recovery, sleep, cycles: Raw records covering the window, any order.
        days: Window length.
        end_day: Last tracker day of the window. Defaults to the most recent day present.
        cutoff_hour: Local hour at which the tracker day rolls over.

    Returns:
        TrendReport whose metrics omit anything never observed in the window.
    """
    if days not in TREND_DAYS:
        raise ValidationError("Days must be 7, 14, or 30")

    sources = {"recovery": with_cycle_offsets(recovery, cycles), "sleep": sleep, "cycle": cycles}
    report = TrendReport(days=days)

    for name, source, value in METRICS:
        series = _scored_series(sources[source], value, days, end_day, cutoff_hour)
        trend = summarize(series)
        if trend is not None:
            report.metrics[name] = trend

    return report


# =============================================================================
# Insights
# =============================================================================

def _latest_day(series: Sequence[Sequence[ScoredRecord]], cutoff_hour: int) -> Optional[date]:
    days = [per_day[-1][0] for per_day in (group_by_day(s, cutoff_hour) for s in series) if per_day]
    return max(days) if days else None


def _split_on(records: Sequence[ScoredRecord], day: date, cutoff_hour: int):
    """(day's record if present and scored, scored records from the days before it).

    Records after `day` are ignored.
    """
    today = None
    previous = []
    for record_day, record in group_by_day(records, cutoff_hour):
        if record_day == day:
            today = record if record.is_scored else None
        elif record_day < day and record.is_scored:
            previous.append(record)
    return today, previous


def recovery_band_target(score: float) -> int:
    """Optimal day strain for a recovery score."""
    if score >= RECOVERY_HIGH:
        return STRAIN_TARGET_HIGH
    if score >= RECOVERY_MODERATE:
        return STRAIN_TARGET_MODERATE
    return STRAIN_TARGET_LOW


def _recovery_insight(today: Optional[Recovery]) -> Optional[Insight]:
    if today is None or today.score.recovery_score is None:
        return None

    score = today.score.recovery_score
    if score >= RECOVERY_HIGH:
        return Insight(
            category="recovery",
            severity=Severity.POSITIVE,
            message=f"Recovery is {score:.0f}%, you're primed for high strain",
            recommendation="Good day for a hard workout or a race effort.",
        )
    if score >= RECOVERY_MODERATE:
        return Insight(
            category="recovery",
            severity=Severity.INFO,
            message=f"Recovery is moderate at {score:.0f}%",
            recommendation="Moderate training is appropriate; keep intensity in check.",
        )
    return Insight(
        category="recovery",
        severity=Severity.WARNING,
        message=f"Recovery is low at {score:.0f}%",
        recommendation="Prioritize recovery and avoid high strain today.",
    )


def _hrv_insight(today: Optional[Recovery], previous: Sequence[Recovery]) -> Optional[Insight]:
    if today is None or today.score.hrv_rmssd_milli is None:
        return None

    history = [r.score.hrv_rmssd_milli for r in previous if r.score.hrv_rmssd_milli is not None]
    if not history:
        return None
    baseline = mean(history)
    if baseline <= 0:
        return None

    hrv = today.score.hrv_rmssd_milli
    change = (hrv - baseline) / baseline
    if change > HRV_DEVIATION:
        return Insight(
            category="hrv",
            severity=Severity.POSITIVE,
            message=f"HRV {hrv:.0f}ms is {change * 100:.0f}% above your {len(history)}-day baseline ({baseline:.0f}ms)",
            recommendation="Your body is handling load well; a demanding session should be absorbed.",
        )
    if change < -HRV_DEVIATION:
        return Insight(
            category="hrv",
            severity=Severity.WARNING,
            message=f"HRV {hrv:.0f}ms is {-change * 100:.0f}% below your {len(history)}-day baseline ({baseline:.0f}ms)",
            recommendation="Consider a lighter day. Low HRV can signal fatigue, stress or illness.",
        )
    return None


def _sleep_debt_insight(sleep: Sequence[Sleep], day: date, cutoff_hour: int) -> Optional[Insight]:
    nights = [
        record for night, record in group_by_day(sleep, cutoff_hour)
        if night <= day and record.is_scored
    ]
    if not nights:
        return None

    # Each night's need already includes debt carried from earlier nights,
    # so only the nightly part is summed
    debt = sum(night.hours_shortfall for night in nights)
    if debt <= SLEEP_DEBT_WARNING_HOURS:
        return None

    return Insight(
        category="sleep",
        severity=Severity.WARNING,
        message=f"Sleep debt of {debt:.1f}h over the last {len(nights)} nights",
        recommendation="Get to bed earlier tonight and protect a full night's sleep.",
    )


def _strain_insight(
    today_recovery: Optional[Recovery],
    today_cycle: Optional[Cycle],
    workouts: Sequence[Workout],
) -> Optional[Insight]:
    if today_recovery is None or today_recovery.score.recovery_score is None:
        return None
    if today_cycle is None or today_cycle.score.strain is None:
        return None

    target = recovery_band_target(today_recovery.score.recovery_score)
    strain = today_cycle.score.strain
    remaining = target - strain

    done = ""
    if workouts:
        done = f" after {len(workouts)} workout{'s' if len(workouts) != 1 else ''}"

    if abs(remaining) <= STRAIN_TOLERANCE:
        return Insight(
            category="strain",
            severity=Severity.POSITIVE,
            message=f"Day strain {strain:.1f}{done} is on your optimal target of ~{target}",
            recommendation="You've hit the right load for today's recovery.",
        )
    if remaining > 0:
        return Insight(
            category="strain",
            severity=Severity.INFO,
            message=f"Day strain {strain:.1f}{done}, optimal target ~{target}",
            recommendation=f"Room for about {remaining:.1f} more strain today.",
        )
    return Insight(
        category="strain",
        severity=Severity.WARNING,
        message=f"Day strain {strain:.1f}{done} is {-remaining:.1f} over the optimal ~{target}",
        recommendation="Wind down and put the focus on recovery tonight.",
    )


def generate_insights(
    recovery: Sequence[Recovery],
    sleep: Sequence[Sleep],
    cycles: Sequence[Cycle],
    workouts: Sequence[Workout] = (),
    cutoff_hour: int = 4,
    day: Optional[date] = None,
) -> list[Insight]:
    """Evaluate the fixed rule set against one tracker day.

    Rules run in this order and the output keeps it: recovery band, HRV
    deviation, sleep debt, strain capacity. Baselines come from the days
    before `day`, never including it. A series with no scored record on
    `day` skips the rules that need it; an older record never stands in.

    Args:
        recovery, sleep, cycles: History ending with `day`, any order.
        workouts: Workouts of `day`.
        day: Tracker day to evaluate. Defaults to the latest day present
            in any of the series.
    """
    recovery = with_cycle_offsets(recovery, cycles)
    if day is None:
        day = _latest_day([recovery, sleep, cycles], cutoff_hour)
        if day is None:
            return []

    today_recovery, previous_recovery = _split_on(recovery, day, cutoff_hour)
    today_cycle, _ = _split_on(cycles, day, cutoff_hour)

    candidates = [
        _recovery_insight(today_recovery),
        _hrv_insight(today_recovery, previous_recovery),
        _sleep_debt_insight(sleep, day, cutoff_hour),
        _strain_insight(today_recovery, today_cycle, workouts),
    ]
    return [insight for insight in candidates if insight is not None]
