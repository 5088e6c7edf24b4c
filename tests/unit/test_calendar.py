"""
Unit tests for the calendar projection.
"""

from datetime import date

from reps.views.calendar import month_grid, tasks_by_date


class TestTasksByDate:

    def test_task_appears_on_review_and_deadline_days(self, make_task):
        task = make_task(next_review=date(2024, 1, 10), deadline=date(2024, 1, 20))

        by_date = tasks_by_date([task])

        assert by_date[date(2024, 1, 10)] == [task]
        assert by_date[date(2024, 1, 20)] == [task]

    def test_same_day_listed_once(self, make_task):
        task = make_task(next_review=date(2024, 1, 10), deadline=date(2024, 1, 10))

        assert tasks_by_date([task]) == {date(2024, 1, 10): [task]}

    def test_completed_tasks_are_skipped(self, make_task):
        task = make_task(completed=True, status="done")

        assert tasks_by_date([task]) == {}


class TestMonthGrid:

    def test_weeks_start_on_sunday(self):
        # January 2024 starts on a Monday
        grid = month_grid(2024, 1)

        assert grid[0] == [None, 1, 2, 3, 4, 5, 6]
        assert all(len(week) == 7 for week in grid)
        assert grid[-1][:4] == [28, 29, 30, 31]
        assert grid[-1][4:] == [None, None, None]
