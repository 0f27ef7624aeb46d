from datetime import timedelta

import pytest

from coach_models import PRRecord, PRStore, Settings, ValidationError
from coach_tools import plate_breakdown, pr_test_baseline, pr_test_plan, warmup_sets


class TestWarmupSets:

    def test_three_step_ramp(self):
        ramp = warmup_sets(200, 5, steps=3, round_to=2.5)
        assert [s.weight for s in ramp] == [110.0, 150.0, 200.0]
        assert [s.reps for s in ramp] == [8, 5, 5]
        assert ramp[-1].label == "Work set"

    def test_five_step_ramp(self):
        ramp = warmup_sets(100, 3, steps=5, round_to=5)
        assert [s.weight for s in ramp] == [40.0, 60.0, 75.0, 85.0, 100.0]
        assert [s.reps for s in ramp] == [10, 6, 4, 2, 3]

    def test_unknown_step_count_uses_four(self):
        assert len(warmup_sets(100, 5, steps=9)) == 4

    def test_needs_a_weight(self):
        with pytest.raises(ValidationError):
            warmup_sets(0, 5)


class TestPlateBreakdown:

    def test_exact_load(self):
        load = plate_breakdown(225, 45, Settings().plates).value
        assert load.per_side == [(45.0, 2)]
        assert load.achieved == 225
        assert load.diff == 0

    def test_mixed_plates(self):
        load = plate_breakdown(185, 45, Settings().plates).value
        assert load.per_side == [(45.0, 1), (25.0, 1)]

    def test_unreachable_remainder_reported(self):
        load = plate_breakdown(137.5, 45, Settings().plates).value
        assert load.achieved == 135
        assert load.diff == 2.5

    def test_limited_inventory(self):
        load = plate_breakdown(315, 45, {45: 2, 25: 4}).value
        assert load.per_side == [(45.0, 1), (25.0, 2)]
        assert load.achieved == 235
        assert load.diff == 80

    def test_target_must_exceed_bar(self):
        result = plate_breakdown(45, 45, Settings().plates)
        assert not result
        assert result.reason == "Target must be heavier than the bar."


class TestPRTestPlan:

    def test_attempts_and_taper(self, today):
        plan = pr_test_plan(200, today, "standard", 2.5)
        assert plan.attempts == [190.0, 200.0, 207.5]
        assert [t["date"] for t in plan.taper] == [today - timedelta(days=d) for d in (6, 4, 2, 1)]
        assert plan.taper[0]["load"] == 160.0
        assert plan.taper[-1]["load"] is None
        assert plan.warmups[0]["note"] == "bar"
        assert len(plan.warmups) == 7

    def test_style_changes_last_attempt(self, today):
        assert pr_test_plan(200, today, "aggressive").attempts[-1] == 212.5
        assert pr_test_plan(200, today, "conservative").attempts[-1] == 205.0

    def test_placeholder_without_history(self, today):
        plan = pr_test_plan(pr_test_baseline(PRStore(), "squat_bb"), today)
        assert plan.placeholder
        assert plan.baseline == 100.0

    def test_baseline_from_prs(self):
        prs = PRStore(by_exercise={"squat_bb": PRRecord(best_e1rm=210.0)})
        assert pr_test_baseline(prs, "squat_bb") == 210.0
