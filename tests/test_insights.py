from datetime import timedelta

import pytest

from coach_insights import (
    best_lift_for_trend, bottleneck_summary, cardio_interference, recommended_frequency,
    rep_intensity_defaults, week_summary, weekly_report_text,
)
from coach_models import Cardio, Checkin, Goal, PlanDay, PlanItem, Plan, Profile, Progression
from coach_state import save_checkin


class TestDefaults:

    @pytest.mark.parametrize("experience, expected", [
        ("novice", (2, 3)), ("intermediate", (3, 4)), ("advanced", (4, 5)),
    ])
    def test_recommended_frequency(self, experience, expected):
        assert recommended_frequency(experience) == expected

    def test_rep_defaults(self):
        assert rep_intensity_defaults("strength")["reps"] == "3-6"
        assert rep_intensity_defaults("hypertrophy")["rest"] == "1-3 min"
        assert rep_intensity_defaults("general")["rpe"] == "6-8"


class TestBottlenecks:

    def test_no_sessions(self, catalog, state, today):
        keys = [b["key"] for b in bottleneck_summary(state, catalog, today)]
        assert keys[0] == "Consistency"
        assert "Volume" in keys

    def test_low_frequency_and_recovery(self, catalog, state, make_session, today):
        state.sessions = [make_session("squat_bb", 1, set_count=3)]
        save_checkin(state, Checkin(today, 1, 10, 10, 1))
        keys = [b["key"] for b in bottleneck_summary(state, catalog, today)]
        assert keys == ["Frequency", "Volume", "Recovery"]

    def test_on_track(self, catalog, state, make_session, today):
        state.settings.volume_mode = "custom"
        state.settings.volume_custom = {r: {"lo": 1, "hi": 2, "mrv": 3} for r in catalog.taxonomy.regions}
        state.sessions = [make_session("squat_bb", d) for d in (0, 2, 4)]
        assert [b["key"] for b in bottleneck_summary(state, catalog, today)] == ["Focus"]


class TestWeeklyReport:

    def test_trend_lift_prefers_goal(self, catalog, state, today):
        state.goals = [Goal("bench_bb", 100, 120, today, today + timedelta(days=60))]
        assert best_lift_for_trend(state, catalog, today) == "bench_bb"

    def test_trend_lift_falls_back_to_first_exercise(self, catalog, state, today):
        assert best_lift_for_trend(state, catalog, today) == "squat_bb"

    def test_summary(self, catalog, state, make_session, today):
        state.sessions = [make_session("squat_bb", 1, reps=5, weight=150, duration_min=60, session_rpe=7)]
        summary = week_summary(state, catalog, today)
        assert summary["total_sessions"] == 1
        assert summary["last_e1rm"] == pytest.approx(175.0)
        assert summary["latest_load"].week_load == 420.0
        assert summary["highest"][0]["region"] == "Thighs"
        assert len(summary["lowest"]) == 3

    def test_report_text(self, catalog, state, make_session, today):
        state.sessions = [make_session("squat_bb", 1, reps=5, weight=150)]
        text = weekly_report_text(state, catalog, today)
        assert text.startswith("Weekly Report (2024-06-12)")
        assert "Back Squat e1RM (latest): 175 lb" in text
        assert "not enough data" in text
        assert "Bottlenecks:" in text


class TestCardioInterference:

    def test_no_cardio_is_low(self):
        result = cardio_interference(Profile(goal="hypertrophy"))
        assert result["risk"] == "Low"
        assert not result["has_cardio"]

    def test_hard_frequent_hiit(self):
        profile = Profile(cardio=Cardio("hiit", 4, 30, "hard"))
        result = cardio_interference(profile)
        assert result["score"] == 9
        assert result["risk"] == "Higher"

    def test_moderate_running(self):
        result = cardio_interference(Profile(goal="general", cardio=Cardio("run", 2, 30, "easy")))
        assert result["risk"] == "Moderate"

    def test_lower_days_flagged(self, catalog):
        plan = Plan("Test", [
            PlanDay("Lower", [PlanItem("squat", "squat_bb", 3, "", "")]),
            PlanDay("Upper", [PlanItem("push", "bench_bb", 3, "", "")]),
        ], Progression("", ""))
        days = cardio_interference(Profile(), plan, catalog)["days"]
        assert [d["is_lower"] for d in days] == [True, False]
