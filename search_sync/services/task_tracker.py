"""Bookkeeping of the most recent mutating engine operation.

Each SearchIndexService owns one TaskTracker. Mutating operations record
their TaskRef here (last write wins) and also return it, so callers running
concurrent operations can wait on their own task instead of the tracked one.
"""

from typing import Optional

from .index_client import TaskRef


class TaskTracker:
    """Last-write-wins store of the latest (index name, task id) pair."""

    def __init__(self):
        self._last: Optional[TaskRef] = None

    @property
    def last(self) -> Optional[TaskRef]:
        """The most recently recorded task, if any."""
        return self._last

    def record(self, task: TaskRef) -> TaskRef:
        """Remember ``task`` as the latest operation and hand it back."""
        self._last = task
        return task

    def resolve(
        self,
        index_name: Optional[str] = None,
        task_id: Optional[int] = None,
    ) -> Optional[TaskRef]:
        """
        Combine explicit arguments with the tracked task.

        Explicit values win; missing ones are filled from the tracked task.

        Returns:
            A complete TaskRef, or None when no index name or no task id
            can be determined
        """
        if index_name is None and self._last is not None:
            index_name = self._last.index_name
        if task_id is None and self._last is not None:
            task_id = self._last.task_id

        if not index_name or task_id is None:
            return None
        return TaskRef(index_name=index_name, task_id=task_id)

    def reset(self) -> None:
        """Forget the tracked task."""
        self._last = None
