"""Tests for scheduling value objects and CRUD."""
from datetime import datetime, timezone

import pytest
from pydantic import TypeAdapter, ValidationError

from surfcheck.core.errors import InvalidTargetError, NotFoundError
from surfcheck.services.scheduling.crud import (
    create_scheduling,
    delete_scheduling,
    get_scheduling,
    list_active_snapshots,
    list_schedulings,
    resolve_target_spots,
    save_next_day_forecast,
    to_snapshot,
    update_scheduling,
)
from surfcheck.services.scheduling.types import (
    NotificationSettings,
    RegionalTarget,
    SchedulingPreferences,
    SchedulingTarget,
    SingleTarget,
    TimeWindow,
)


class TestPreferences:
    """Tests for SchedulingPreferences validation."""

    def test_defaults(self):
        prefs = SchedulingPreferences()

        assert prefs.days_ahead == 3
        assert prefs.time_windows == (TimeWindow.MORNING,)
        assert prefs.min_score == 60
        assert prefs.min_energy == 1.0

    @pytest.mark.parametrize(
        "field,value",
        [("days_ahead", 2), ("min_score", 101), ("min_score", -1), ("min_energy", -0.1), ("time_windows", []), ("surf_style", "bodyboard")],
    )
    def test_invalid_field_rejected(self, field, value):
        with pytest.raises(ValidationError) as exc:
            SchedulingPreferences(**{field: value})

        assert exc.value.errors()[0]["loc"][0] == field

    def test_every_violation_reported(self):
        """min_score=150 and days_ahead=7 give two errors, not one."""
        with pytest.raises(ValidationError) as exc:
            SchedulingPreferences(min_score=150, days_ahead=7)

        assert {e["loc"][0] for e in exc.value.errors()} == {"min_score", "days_ahead"}

    def test_time_windows_deduped_in_order(self):
        prefs = SchedulingPreferences(time_windows=["afternoon", "morning", "afternoon"])

        assert prefs.time_windows == (TimeWindow.AFTERNOON, TimeWindow.MORNING)

    def test_bad_time_window_is_a_single_error(self):
        """An unknown member is reported once, at its index, with no length error on the list."""
        with pytest.raises(ValidationError) as exc:
            SchedulingPreferences(time_windows=["night"])

        errors = exc.value.errors()
        assert len(errors) == 1
        assert errors[0]["loc"] == ("time_windows", 0)
        assert errors[0]["type"] == "enum"

    def test_empty_time_windows_message(self):
        with pytest.raises(ValidationError) as exc:
            SchedulingPreferences(time_windows=[])

        errors = exc.value.errors()
        assert len(errors) == 1
        assert errors[0]["loc"] == ("time_windows",)
        assert "at least one time window" in errors[0]["msg"]

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            SchedulingPreferences(min_scor=70)


class TestNotificationSettings:
    """Tests for NotificationSettings validation."""

    def test_defaults(self):
        ns = NotificationSettings()

        assert ns.push_enabled is True
        assert ns.advance_hours == 1.0
        assert ns.daily_summary is False
        assert ns.fixed_time is None
        assert ns.fixed_time_minutes is None

    @pytest.mark.parametrize("value", ["7:00", "24:00", "07:60", "0700", "morning"])
    def test_bad_fixed_time(self, value):
        with pytest.raises(ValidationError):
            NotificationSettings(fixed_time=value)

    def test_fixed_time_minutes(self):
        assert NotificationSettings(fixed_time="07:05").fixed_time_minutes == 425

    @pytest.mark.parametrize("hours", [0.25, 25])
    def test_advance_hours_bounds(self, hours):
        with pytest.raises(ValidationError):
            NotificationSettings(advance_hours=hours)

    def test_unknown_timezone(self):
        with pytest.raises(ValidationError):
            NotificationSettings(timezone="Mars/Olympus")

    def test_tz_property(self):
        assert NotificationSettings(timezone="Europe/Lisbon").tz.key == "Europe/Lisbon"


class TestTargets:
    """Tests for target parsing and resolution."""

    def test_discriminated_union(self):
        adapter = TypeAdapter(SchedulingTarget)

        assert isinstance(adapter.validate_python({"kind": "single", "spot_id": "felix"}), SingleTarget)
        assert isinstance(adapter.validate_python({"kind": "regional", "region_id": "ubatuba"}), RegionalTarget)
        with pytest.raises(ValidationError):
            adapter.validate_python({"kind": "nationwide"})

    def test_single_resolves_to_one_spot(self):
        assert [s.id for s in resolve_target_spots(SingleTarget(spot_id="felix"))] == ["felix"]

    def test_region_without_subset_covers_all_its_spots(self):
        spots = resolve_target_spots(RegionalTarget(region_id="ubatuba"))

        assert {s.id for s in spots} == {"itamambuca", "vermelha_norte", "felix"}

    def test_subset_keeps_requested_order(self):
        spots = resolve_target_spots(RegionalTarget(region_id="ubatuba", spot_ids=("felix", "itamambuca")))

        assert [s.id for s in spots] == ["felix", "itamambuca"]

    def test_subset_outside_region_is_invalid(self):
        with pytest.raises(InvalidTargetError):
            resolve_target_spots(RegionalTarget(region_id="ubatuba", spot_ids=("maresias",)))

    def test_unknown_spot_and_region(self):
        with pytest.raises(NotFoundError):
            resolve_target_spots(SingleTarget(spot_id="pipeline"))
        with pytest.raises(NotFoundError):
            resolve_target_spots(RegionalTarget(region_id="hawaii"))


class TestCrud:
    """Tests for scheduling persistence."""

    def test_create_and_get(self, db):
        row = create_scheduling(db, "u1", SingleTarget(spot_id="itamambuca"), SchedulingPreferences(min_score=70))

        fetched = get_scheduling(db, row.id, "u1")

        assert fetched.active is True
        assert to_snapshot(fetched).preferences.min_score == 70
        assert to_snapshot(fetched).notifications.timezone == "America/Sao_Paulo"

    def test_get_is_scoped_to_owner(self, db):
        row = create_scheduling(db, "u1", SingleTarget(spot_id="itamambuca"))

        with pytest.raises(NotFoundError):
            get_scheduling(db, row.id, "someone-else")

    def test_create_rejects_unknown_spot(self, db):
        with pytest.raises(NotFoundError):
            create_scheduling(db, "u1", SingleTarget(spot_id="pipeline"))

        assert list_schedulings(db, "u1") == []

    def test_update_clears_next_day_forecast_when_preferences_change(self, db):
        row = create_scheduling(db, "u1", SingleTarget(spot_id="itamambuca"))
        save_next_day_forecast(db, row.id, {"score": 80}, datetime(2025, 3, 10, tzinfo=timezone.utc))

        kept = update_scheduling(db, row.id, "u1", notifications=NotificationSettings(daily_summary=True))
        assert kept.next_day_forecast == {"score": 80}

        cleared = update_scheduling(db, row.id, "u1", preferences=SchedulingPreferences(min_score=80))
        assert cleared.next_day_forecast is None

    def test_regional_target_round_trips(self, db):
        target = RegionalTarget(region_id="ubatuba", spot_ids=("felix", "itamambuca"))
        row = create_scheduling(db, "u1", target)

        assert to_snapshot(row).target == target
        assert to_snapshot(row).is_regional

    def test_inactive_schedulings_are_not_evaluated(self, db):
        a = create_scheduling(db, "u1", SingleTarget(spot_id="itamambuca"))
        b = create_scheduling(db, "u1", SingleTarget(spot_id="felix"))
        update_scheduling(db, b.id, "u1", active=False)

        assert [s.id for s in list_active_snapshots(db)] == [a.id]
        assert len(list_schedulings(db, "u1")) == 2
        assert len(list_schedulings(db, "u1", active_only=True)) == 1

    def test_delete(self, db):
        row = create_scheduling(db, "u1", SingleTarget(spot_id="itamambuca"))

        delete_scheduling(db, row.id, "u1")

        with pytest.raises(NotFoundError):
            get_scheduling(db, row.id)
        assert save_next_day_forecast(db, row.id, {"score": 1}) is False
