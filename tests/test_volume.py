import pytest

from coach_models import RegionTarget
from coach_volume import (
    aggregate_by_muscle, aggregate_by_region, effective_sets, region_targets,
    sessions_in_window, volume_status, volume_table, weekly_set_targets,
)


class TestEffectiveSets:

    def test_primary_and_secondary_credit(self, catalog):
        assert effective_sets(catalog, "squat_bb", 4) == {"quads": 4.0, "glute_max": 2.0}

    def test_unknown_exercise_contributes_nothing(self, catalog):
        assert effective_sets(catalog, "nope", 4) == {}

    def test_overlapping_leaves_are_summed(self, catalog, make_session, today):
        # primary group covers quads, secondary lists quads again
        sessions = [make_session("leg_machine", set_count=2)]
        by_leaf = aggregate_by_muscle(sessions, catalog, 7, today)
        assert by_leaf == {"quads": 3.0, "hamstrings": 2.0, "glute_max": 2.0}

    def test_sessions_add_up(self, catalog, make_session, today):
        sessions = [make_session("squat_bb", 0, set_count=4), make_session("squat_bb", 3, set_count=2)]
        by_leaf = aggregate_by_muscle(sessions, catalog, 7, today)
        assert by_leaf["quads"] == 6.0
        assert by_leaf["glute_max"] == 3.0


class TestWindows:

    def test_window_bounds(self, make_session, today):
        inside = make_session("squat_bb", 6)
        edge = make_session("squat_bb", 7)
        future = make_session("squat_bb", -1)
        assert sessions_in_window([inside, edge, future], 7, today) == [inside]

    def test_region_totals_include_untrained_regions(self, catalog, make_session, today):
        by_region = aggregate_by_region([make_session("bench_bb", set_count=3)], catalog, 7, today)
        assert by_region["Chest"] == 3.0
        assert by_region["Arms"] == 1.5
        assert by_region["Thighs"] == 0.0
        assert set(by_region) == set(catalog.taxonomy.regions)


class TestTargets:

    @pytest.mark.parametrize("goal, experience, expected", [
        ("strength", "novice", (6, 12)),
        ("hypertrophy", "intermediate", (10, 18)),
        ("general", "advanced", (10, 16)),
    ])
    def test_weekly_set_targets(self, goal, experience, expected):
        assert weekly_set_targets(goal, experience) == expected

    def test_auto_targets(self):
        targets = region_targets("strength", "novice", "balanced", ["Thighs"])
        assert targets["Thighs"] == RegionTarget(6, 12, 17)

    def test_priority_boost(self):
        targets = region_targets("hypertrophy", "novice", "arms", ["Arms", "Thighs"])
        assert targets["Arms"].lo == 11
        assert targets["Thighs"].lo == 8

    def test_custom_targets_are_clamped(self):
        custom = {"Thighs": {"lo": 200, "hi": 1, "mrv": 1}}
        targets = region_targets("strength", "novice", "balanced", ["Thighs", "Back"], "custom", custom)
        assert targets["Thighs"] == RegionTarget(100, 100, 100)
        assert targets["Back"] == RegionTarget(6, 12, 17)

    def test_custom_ignored_in_auto_mode(self):
        custom = {"Thighs": RegionTarget(1, 2, 3)}
        targets = region_targets("strength", "novice", "balanced", ["Thighs"], "auto", custom)
        assert targets["Thighs"] == RegionTarget(6, 12, 17)


class TestVolumeStatus:

    @pytest.mark.parametrize("sets, status", [(5, "Low"), (6, "In range"), (13, "High"), (20, "Over")])
    def test_bands(self, sets, status):
        assert volume_status(sets, RegionTarget(6, 12, 17))["status"] == status

    def test_table_rows(self, catalog, make_session, today):
        targets = region_targets("strength", "novice", "balanced", catalog.taxonomy.regions)
        rows = volume_table([make_session("bench_bb", 10, set_count=3)], catalog, targets, today)
        chest = next(r for r in rows if r["region"] == "Chest")
        assert chest["sets_7d"] == 0.0
        assert chest["sets_14d"] == 3.0
        assert chest["status"] == "Low"
