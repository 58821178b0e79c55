"""Tests for Pydantic models.

These tests verify:
1. Models parse actual WHOOP API data correctly
2. Unscored and partial records are handled without errors
3. Computed properties work as expected
"""

import json
from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest

from whoop_health.models import (
    Credential,
    CombinedOutput,
    Cycle,
    Recovery,
    Sleep,
    Workout,
    parse_offset,
)


FIXTURES_DIR = Path(__file__).parent / "fixtures"


def load_fixture(name: str) -> dict:
    """Load a JSON fixture file."""
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


# ============================================================================
# Credential Tests
# ============================================================================

class TestCredential:
    """Tests for Credential model."""

    def test_expired_inside_margin(self):
        """A token with 30s left is treated as expired."""
        credential = Credential(access_token="a", refresh_token="r", expires_at=1030)
        assert credential.is_expired(now=1000) is True

    def test_valid_outside_margin(self):
        credential = Credential(access_token="a", refresh_token="r", expires_at=1120)
        assert credential.is_expired(now=1000) is False

    def test_margin_boundary_is_expired(self):
        credential = Credential(access_token="a", refresh_token="r", expires_at=1060)
        assert credential.is_expired(now=1000) is True

    def test_scope_split_and_serialized(self):
        credential = Credential(
            access_token="a",
            refresh_token="r",
            scope="read:sleep offline read:sleep",
            expires_at=0,
        )
        assert credential.scope == frozenset({"offline", "read:sleep"})
        assert credential.model_dump()["scope"] == "offline read:sleep"

    def test_round_trips_through_json(self):
        credential = Credential(access_token="a", refresh_token="r", scope="offline", expires_at=5)
        assert Credential.model_validate_json(credential.model_dump_json()) == credential

    def test_from_token_response_uses_absolute_expiry(self):
        credential = Credential.from_token_response(
            {"access_token": "a", "refresh_token": "r", "expires_in": 3600, "scope": "offline"},
            now=1000.7,
        )
        assert credential.expires_at == 4600
        assert credential.token_type == "bearer"

    def test_frozen(self):
        credential = Credential(access_token="a", refresh_token="r", expires_at=0)
        with pytest.raises(Exception):
            credential.access_token = "b"


class TestParseOffset:
    def test_negative_offset(self):
        assert parse_offset("-05:00") == timezone(-timedelta(hours=5))

    def test_half_hour_offset(self):
        assert parse_offset("+05:30") == timezone(timedelta(hours=5, minutes=30))

    def test_malformed(self):
        assert parse_offset(None) is None
        assert parse_offset("Z") is None
        assert parse_offset("+ab:cd") is None


# ============================================================================
# Sleep Tests
# ============================================================================

class TestSleep:
    """Tests for Sleep model."""

    def test_from_api_with_real_data(self):
        """Parse actual WHOOP sleep data."""
        sleep = Sleep.from_api(load_fixture("sleep_sample.json"))

        assert sleep.is_scored
        assert sleep.nap is False
        assert sleep.score.sleep_performance_percentage == 94
        assert sleep.hours_asleep == pytest.approx(26_660_000 / 3_600_000)
        assert sleep.hours_needed == pytest.approx(27_944_229 / 3_600_000)

    def test_shortfall_excludes_carried_debt(self):
        """sleep_needed includes 352_230 ms of debt from earlier nights."""
        sleep = Sleep.from_api(load_fixture("sleep_sample.json"))

        assert sleep.hours_shortfall == pytest.approx((27_591_999 - 26_660_000) / 3_600_000)

    def test_anchor_is_wake_up_in_local_time(self):
        sleep = Sleep.from_api(load_fixture("sleep_sample.json"))

        local = sleep.local_anchor()
        assert local.hour == 6
        assert local.date() == date(2025, 1, 5)

    def test_unknown_fields_are_kept(self):
        sleep = Sleep.from_api(load_fixture("sleep_sample.json"))
        assert sleep.model_dump()["v1_id"] == 93845

    def test_pending_score(self):
        """score is null until WHOOP finishes scoring."""
        sleep = Sleep.from_api({
            "id": "x",
            "end": "2025-01-05T11:00:00.000Z",
            "score_state": "PENDING_SCORE",
            "score": None,
        })

        assert sleep.is_scored is False
        assert sleep.hours_asleep is None
        assert sleep.hours_needed is None

    def test_nap_is_secondary(self):
        sleep = Sleep.from_api({"id": "x", "nap": True, "score_state": "SCORED", "score": {}})
        assert sleep.is_secondary is True

    def test_anchor_falls_back_to_start(self):
        sleep = Sleep.from_api({"id": "x", "start": "2025-01-05T03:00:00.000Z"})
        assert sleep.anchor == datetime(2025, 1, 5, 3, tzinfo=timezone.utc)


# ============================================================================
# Recovery / Cycle / Workout Tests
# ============================================================================

class TestRecovery:
    def test_from_api_with_real_data(self):
        recovery = Recovery.from_api(load_fixture("recovery_sample.json"))

        assert recovery.is_scored
        assert recovery.score.recovery_score == 44
        assert recovery.score.hrv_rmssd_milli == pytest.approx(31.81, abs=0.01)
        assert recovery.anchor == datetime(2025, 1, 5, 12, 31, 2, 184000, tzinfo=timezone.utc)

    def test_unscorable(self):
        recovery = Recovery.from_api({"cycle_id": 1, "score_state": "UNSCORABLE"})
        assert recovery.is_scored is False
        assert recovery.is_secondary is False


class TestCycle:
    def test_ongoing_cycle_has_no_end(self):
        cycle = Cycle.from_api(load_fixture("cycle_sample.json"))

        assert cycle.end is None
        assert cycle.score.strain == 11.3
        assert cycle.local_anchor().date() == date(2025, 1, 5)


class TestWorkout:
    def test_from_api_with_real_data(self):
        workout = Workout.from_api(load_fixture("workout_sample.json"))

        assert workout.label == "running"
        assert workout.score.strain == pytest.approx(8.2463)

    def test_label_fallbacks(self):
        assert Workout.from_api({"sport_id": 44}).label == "sport 44"
        assert Workout.from_api({}).label == "workout"


# ============================================================================
# CombinedOutput Tests
# ============================================================================

class TestCombinedOutput:
    def test_to_dict_omits_unrequested_sections(self):
        output = CombinedOutput(
            date="2025-01-05",
            fetched_at="2025-01-05T20:00:00.000Z",
            sleep=[Sleep.from_api(load_fixture("sleep_sample.json"))],
        )

        data = output.to_dict()
        assert set(data) == {"date", "fetched_at", "sleep"}
        assert data["sleep"][0]["id"] == "ecfc6a15-4661-442f-a9a4-f160dd7afae8"

    def test_empty_list_is_kept(self):
        output = CombinedOutput(date="2025-01-05", fetched_at="x", recovery=[])
        assert output.to_dict()["recovery"] == []
