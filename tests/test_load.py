from datetime import timedelta

import pytest

from coach_load import latest_week, session_load, week_metrics, weekly_load_metrics


class TestWeekMetrics:

    def test_identical_days(self, today):
        w = week_metrics(today, [300.0] * 7)
        assert w.mean == 300.0
        assert w.sd == 0.0
        assert w.monotony == 7.0
        assert w.week_load == 2100.0
        assert w.strain == 49 * 300.0

    def test_empty_week(self, today):
        w = week_metrics(today, [0.0] * 7)
        assert (w.week_load, w.monotony, w.strain) == (0.0, 0.0, 0.0)

    def test_varied_week(self, today):
        w = week_metrics(today, [700.0, 0, 0, 0, 0, 0, 0])
        assert w.mean == 100.0
        assert w.sd == pytest.approx(244.949, rel=1e-4)
        assert w.monotony == pytest.approx(100.0 / w.sd)


class TestWeeklyLoad:

    def test_session_load_needs_both_fields(self, make_session):
        assert session_load(make_session("squat_bb", duration_min=60, session_rpe=7)) == 420.0
        assert session_load(make_session("squat_bb", duration_min=60)) == 0.0
        assert session_load(make_session("squat_bb", session_rpe=7)) == 0.0

    def test_weeks_are_oldest_first_and_end_today(self, make_session, today):
        weeks = weekly_load_metrics([make_session("squat_bb", 0, duration_min=60, session_rpe=5)], 4, today)
        assert len(weeks) == 4
        assert weeks[-1].week_start == today - timedelta(days=6)
        assert weeks[0].week_start == today - timedelta(days=27)
        assert weeks[-1].week_load == 300.0
        assert all(w.week_load == 0.0 for w in weeks[:-1])

    def test_same_day_sessions_combine(self, make_session, today):
        sessions = [make_session("squat_bb", 1, duration_min=30, session_rpe=6),
                    make_session("bench_bb", 1, duration_min=30, session_rpe=4)]
        assert latest_week(sessions, 1, today).week_load == 300.0
