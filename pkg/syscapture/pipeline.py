from __future__ import annotations

from typing import List, Iterable

from .tasks.base import CaptureTask
from .errors import SysCaptureError


class Pipeline:
    """
    Simple linear pipeline of CaptureTasks.
    """

    def __init__(self, tasks: List[CaptureTask] | None = None) -> None:
        self.tasks: List[CaptureTask] = list(tasks) if tasks else []

    def add(self, task: CaptureTask) -> None:
        self.tasks.append(task)

    def extend(self, tasks: Iterable[CaptureTask]) -> None:
        self.tasks.extend(tasks)

    def validate(self) -> None:
        if not self.tasks:
            raise SysCaptureError("EMPTY_PIPELINE", "add at least one task", recoverable=True)
        seen: set[str] = set()
        for i, t in enumerate(self.tasks):
            if not isinstance(t, CaptureTask):
                raise SysCaptureError("INVALID_TASK", f"index {i} is not a CaptureTask")
            if not getattr(t, "name", ""):
                raise SysCaptureError("MISSING_TASK_NAME", f"index {i}")
            if t.key in seen:
                raise SysCaptureError("DUPLICATE_OUTPUT", t.key)
            seen.add(t.key)
