from datetime import timedelta

import pytest

from coach_goals import (
    goal_pacing, goal_progress, infer_baseline_e1rm, recompute_prs, update_prs_with_session,
)
from coach_models import PR_EVENT_LIMIT, Goal, PRStore, ValidationError


class TestGoalPacing:

    def test_aggressive_intermediate(self):
        pacing = goal_pacing(200, 250, 10, "intermediate")
        assert pacing.required_pct_per_week == pytest.approx(2.5)
        assert pacing.per_week == pytest.approx(5.0)
        assert pacing.classification == "aggressive"

    def test_reasonable_novice(self):
        assert goal_pacing(100, 110, 10, "novice").classification == "reasonable"

    def test_conservative_advanced(self):
        assert goal_pacing(400, 401, 12, "advanced").classification == "conservative"

    def test_milestones(self):
        pacing = goal_pacing(200, 224, 12, "novice")
        assert pacing.milestones == {4: 208.0, 8: 216.0, 12: 224.0}

    @pytest.mark.parametrize("baseline, target, weeks", [(0, 100, 10), (200, 200, 10), (200, 250, 0)])
    def test_invalid_input(self, baseline, target, weeks):
        with pytest.raises(ValidationError):
            goal_pacing(baseline, target, weeks, "novice")


class TestGoalProgress:

    def test_best_recent_e1rm(self, make_session, today):
        sessions = [make_session("squat_bb", 3, reps=5, weight=150), make_session("squat_bb", 10, reps=3, weight=150)]
        goal = Goal("squat_bb", 150, 200, today - timedelta(days=30), today + timedelta(days=20))
        progress = goal_progress(goal, sessions, "epley", today)
        assert progress["best"] == pytest.approx(175.0)
        assert progress["pct"] == pytest.approx(87.5)
        assert progress["days_left"] == 20

    def test_infer_baseline(self, make_session, today):
        sessions = [make_session("squat_bb", 3, reps=5, weight=150)]
        assert infer_baseline_e1rm(sessions, "squat_bb", "epley", today) == pytest.approx(175.0)
        assert infer_baseline_e1rm(sessions, "bench_bb", "epley", today) == 0.0


class TestPersonalRecords:

    def test_first_session_sets_both_records(self, make_session):
        prs = PRStore()
        events = update_prs_with_session(prs, make_session("squat_bb", reps=5, weight=150))
        assert [e.kind for e in events] == ["e1rm", "weight"]
        assert prs.by_exercise["squat_bb"].best_weight == 150

    def test_no_event_without_improvement(self, make_session):
        prs = PRStore()
        update_prs_with_session(prs, make_session("squat_bb", 2, reps=5, weight=150))
        assert update_prs_with_session(prs, make_session("squat_bb", 1, reps=5, weight=150)) == []

    def test_recompute_matches_incremental(self, make_session):
        sessions = [
            make_session("squat_bb", 30, reps=5, weight=140),
            make_session("bench_bb", 25, reps=8, weight=100),
            make_session("squat_bb", 20, reps=8, weight=135),
            make_session("squat_bb", 10, reps=3, weight=160),
            make_session("bench_bb", 5, reps=5, weight=105),
            make_session("squat_bb", 1, reps=10, weight=120),
        ]
        incremental = PRStore()
        for s in sorted(sessions, key=lambda s: s.date):
            update_prs_with_session(incremental, s)
        rebuilt = recompute_prs(reversed(sessions))
        assert rebuilt.by_exercise == incremental.by_exercise

    def test_event_log_is_bounded(self, make_session):
        prs = PRStore()
        for i in range(PR_EVENT_LIMIT + 20):
            update_prs_with_session(prs, make_session("squat_bb", reps=1, weight=100 + i))
        assert len(prs.events) == PR_EVENT_LIMIT
        assert prs.events[-1].value == 100 + PR_EVENT_LIMIT + 19
