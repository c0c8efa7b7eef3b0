"""Unit tests for task tracking."""

from search_sync.services.index_client import TaskRef
from search_sync.services.task_tracker import TaskTracker


class TestTaskTracker:
    """Tests for TaskTracker."""

    def test_starts_empty(self):
        tracker = TaskTracker()

        assert tracker.last is None
        assert tracker.resolve() is None

    def test_last_write_wins(self):
        tracker = TaskTracker()
        tracker.record(TaskRef("products", 1))
        returned = tracker.record(TaskRef("categories", 2))

        assert returned == TaskRef("categories", 2)
        assert tracker.last == TaskRef("categories", 2)

    def test_resolve_uses_tracked_values(self):
        tracker = TaskTracker()
        tracker.record(TaskRef("products", 5))

        assert tracker.resolve() == TaskRef("products", 5)

    def test_explicit_values_win(self):
        tracker = TaskTracker()
        tracker.record(TaskRef("products", 5))

        assert tracker.resolve("pages", 9) == TaskRef("pages", 9)
        assert tracker.resolve(task_id=9) == TaskRef("products", 9)
        assert tracker.resolve(index_name="pages") == TaskRef("pages", 5)

    def test_incomplete_pair_resolves_to_none(self):
        tracker = TaskTracker()

        assert tracker.resolve(index_name="products") is None
        assert tracker.resolve(task_id=3) is None

    def test_task_id_zero_is_valid(self):
        tracker = TaskTracker()

        assert tracker.resolve("products", 0) == TaskRef("products", 0)

    def test_trackers_are_independent(self):
        first, second = TaskTracker(), TaskTracker()
        first.record(TaskRef("products", 1))

        assert second.last is None

    def test_reset(self):
        tracker = TaskTracker()
        tracker.record(TaskRef("products", 1))
        tracker.reset()

        assert tracker.last is None
