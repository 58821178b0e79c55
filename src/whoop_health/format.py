"""Text renderers for WHOOP data.

Turns CombinedOutput, TrendReport and Insight lists into terminal text.
JSON output bypasses these and dumps the models directly.

Example pretty output:
    📅 2025-01-05

    💚 Recovery: 72% | HRV: 45.2ms | RHR: 52bpm
    😴 Sleep: 88% | 7.4h | Efficiency: 93%
    🔄 Day strain: 11.3 | 2390 cal | Avg HR: 68
"""

import json
from typing import Optional, Sequence

from .analysis import RECOVERY_HIGH, RECOVERY_MODERATE, recovery_band_target
from .models import CombinedOutput, Direction, Insight, Severity, TrendReport
from .normalize import pick_representative

KJ_PER_KCAL = 4.184


def _fmt(value: Optional[float], digits: int = 0) -> str:
    """Fixed-point number, or 'n/a' when missing."""
    if value is None:
        return "n/a"
    return f"{value:.{digits}f}"


def _kcal(kilojoule: Optional[float]) -> str:
    if kilojoule is None:
        return "n/a"
    return f"{kilojoule / KJ_PER_KCAL:.0f}"


def to_json(data) -> str:
    """Pretty JSON for a model, list of models or plain data."""
    if hasattr(data, "to_dict"):
        data = data.to_dict()
    elif hasattr(data, "model_dump"):
        data = data.model_dump(mode="json")
    elif isinstance(data, list):
        data = [d.model_dump(mode="json") if hasattr(d, "model_dump") else d for d in data]
    return json.dumps(data, indent=2, default=str)


# =============================================================================
# Records
# =============================================================================

def format_pretty(data: CombinedOutput) -> str:
    """Multi-line human-readable view of one day's data."""
    lines = [f"📅 {data.date}", ""]

    if data.profile:
        lines.append(f"👤 {data.profile.first_name or ''} {data.profile.last_name or ''}".rstrip())

    if data.body:
        b = data.body
        lines.append(f"📏 {b.height_meter}m | {b.weight_kilogram}kg | Max HR: {b.max_heart_rate}")

    recovery = pick_representative(data.recovery or [])
    if recovery and recovery.is_scored:
        r = recovery.score
        lines.append(
            f"💚 Recovery: {_fmt(r.recovery_score)}% | HRV: {_fmt(r.hrv_rmssd_milli, 1)}ms"
            f" | RHR: {_fmt(r.resting_heart_rate)}bpm"
        )
        if r.spo2_percentage is not None:
            lines.append(f"   SpO2: {r.spo2_percentage:.1f}% | Skin temp: {_fmt(r.skin_temp_celsius, 1)}°C")
    elif recovery:
        lines.append(f"💚 Recovery: {recovery.score_state}")

    sleep = pick_representative(data.sleep or [])
    if sleep and sleep.is_scored:
        s = sleep.score
        lines.append(
            f"😴 Sleep: {_fmt(s.sleep_performance_percentage)}% | {_fmt(sleep.hours_asleep, 1)}h"
            f" | Efficiency: {_fmt(s.sleep_efficiency_percentage)}%"
        )
        stages = s.stage_summary
        lines.append(
            f"   REM: {stages.total_rem_sleep_time_milli / 60000:.0f}min"
            f" | Deep: {stages.total_slow_wave_sleep_time_milli / 60000:.0f}min"
        )
    elif sleep:
        lines.append(f"😴 Sleep: {sleep.score_state}")

    if data.workout:
        lines.append("🏋️ Workouts:")
        for w in data.workout:
            if w.is_scored:
                sc = w.score
                lines.append(
                    f"   {w.label}: Strain {_fmt(sc.strain, 1)} | Avg HR: {_fmt(sc.average_heart_rate)}"
                    f" | {_kcal(sc.kilojoule)} cal"
                )
            else:
                lines.append(f"   {w.label}: {w.score_state}")

    cycle = pick_representative(data.cycle or [])
    if cycle and cycle.is_scored:
        c = cycle.score
        lines.append(
            f"🔄 Day strain: {_fmt(c.strain, 1)} | {_kcal(c.kilojoule)} cal | Avg HR: {_fmt(c.average_heart_rate)}"
        )
    elif cycle:
        lines.append(f"🔄 Cycle: {cycle.score_state}")

    if data.pagination:
        lines.append("")
        lines.append("📄 More pages available:")
        for kind, token in data.pagination.items():
            lines.append(f"   {kind}: {token}")

    return "\n".join(lines)


def format_summary(data: CombinedOutput) -> str:
    """One-line snapshot: date | recovery | HRV | RHR | sleep | strain | workouts."""
    parts = []

    recovery = pick_representative(data.recovery or [])
    if recovery and recovery.is_scored:
        r = recovery.score
        parts.append(f"Recovery: {_fmt(r.recovery_score)}%")
        parts.append(f"HRV: {_fmt(r.hrv_rmssd_milli)}ms")
        parts.append(f"RHR: {_fmt(r.resting_heart_rate)}")
    elif recovery:
        parts.append(f"Recovery: {recovery.score_state}")

    sleep = pick_representative(data.sleep or [])
    if sleep and sleep.is_scored and sleep.score.sleep_performance_percentage is not None:
        parts.append(f"Sleep: {sleep.score.sleep_performance_percentage:.0f}%")
    elif sleep:
        parts.append(f"Sleep: {sleep.score_state}")

    cycle = pick_representative(data.cycle or [])
    if cycle and cycle.is_scored:
        parts.append(f"Strain: {_fmt(cycle.score.strain, 1)}")
    elif cycle:
        parts.append(f"Strain: {cycle.score_state}")

    if data.workout:
        parts.append(f"Workouts: {len(data.workout)}")

    if not parts:
        return f"{data.date} | No data"
    return f"{data.date} | " + " | ".join(parts)


def status_icon(value: float, green: float, yellow: float, invert: bool = False) -> str:
    """Traffic-light icon. invert=True when lower is better."""
    if invert:
        if value <= green:
            return "🟢"
        elif value <= yellow:
            return "🟡"
        return "🔴"
    if value >= green:
        return "🟢"
    elif value >= yellow:
        return "🟡"
    return "🔴"


def format_summary_color(data: CombinedOutput) -> str:
    """Summary with status icons per metric."""
    lines = [f"📅 {data.date}"]

    recovery = pick_representative(data.recovery or [])
    recovery_score = None
    if recovery and recovery.is_scored and recovery.score.recovery_score is not None:
        r = recovery.score
        recovery_score = r.recovery_score
        icon = status_icon(recovery_score, RECOVERY_HIGH, RECOVERY_MODERATE)
        lines.append(
            f"{icon} Recovery: {recovery_score:.0f}% | HRV: {_fmt(r.hrv_rmssd_milli)}ms"
            f" | RHR: {_fmt(r.resting_heart_rate)}bpm"
        )
    elif recovery:
        lines.append(f"🟡 Recovery: {recovery.score_state}")

    sleep = pick_representative(data.sleep or [])
    if sleep and sleep.is_scored and sleep.score.sleep_performance_percentage is not None:
        performance = sleep.score.sleep_performance_percentage
        icon = status_icon(performance, 85, 70)
        lines.append(
            f"{icon} Sleep: {performance:.0f}% | {_fmt(sleep.hours_asleep, 1)}h"
            f" | Efficiency: {_fmt(sleep.score.sleep_efficiency_percentage)}%"
        )
    elif sleep:
        lines.append(f"🟡 Sleep: {sleep.score_state}")

    cycle = pick_representative(data.cycle or [])
    if cycle and cycle.is_scored and cycle.score.strain is not None:
        strain = cycle.score.strain
        # Unknown recovery is treated as moderate
        optimal = recovery_band_target(recovery_score if recovery_score is not None else 50)
        icon = status_icon(abs(strain - optimal), 2, 4, invert=True)
        lines.append(f"{icon} Strain: {strain:.1f} (optimal: ~{optimal}) | {_kcal(cycle.score.kilojoule)} cal")
    elif cycle:
        lines.append(f"🟡 Strain: {cycle.score_state}")

    if data.workout:
        names = ", ".join(w.label for w in data.workout)
        lines.append(f"🏋️ Workouts: {len(data.workout)} | {names}")

    return "\n".join(lines)


# =============================================================================
# Analytics
# =============================================================================

METRIC_LABELS = {
    "recovery": ("Recovery", "%", 0),
    "hrv": ("HRV", "ms", 1),
    "rhr": ("Resting HR", "bpm", 0),
    "sleep_performance": ("Sleep performance", "%", 0),
    "sleep_hours": ("Sleep", "h", 1),
    "strain": ("Strain", "", 1),
}

ARROWS = {
    Direction.UP: "↑",
    Direction.DOWN: "↓",
    Direction.FLAT: "→",
}


def format_trends(report: TrendReport, pretty: bool = True) -> str:
    """Trend table, or JSON when pretty is False."""
    if not pretty:
        return to_json(report)

    lines = [f"📊 {report.days}-day trends", ""]
    if not report.metrics:
        lines.append("No scored data in this period.")
        return "\n".join(lines)

    for name, trend in report.metrics.items():
        label, unit, digits = METRIC_LABELS.get(name, (name, "", 1))
        line = f"{label}: {trend.mean:.{digits}f}{unit} avg {ARROWS[trend.direction]}"
        if trend.min is not None and trend.max is not None:
            line += f" (range {trend.min:.{digits}f}-{trend.max:.{digits}f}{unit}, n={trend.count})"
        else:
            line += f" (n={trend.count})"
        lines.append(line)

    return "\n".join(lines)


SEVERITY_ICONS = {
    Severity.POSITIVE: "✅",
    Severity.INFO: "💡",
    Severity.WARNING: "⚠️",
}


def format_insights(insights: Sequence[Insight], pretty: bool = True) -> str:
    """Insight list with recommendations, or JSON when pretty is False."""
    if not pretty:
        return to_json(list(insights))

    if not insights:
        return "No insights for today - not enough scored data yet."

    lines = []
    for insight in insights:
        lines.append(f"{SEVERITY_ICONS[insight.severity]} {insight.message}")
        lines.append(f"   → {insight.recommendation}")
    return "\n".join(lines)
