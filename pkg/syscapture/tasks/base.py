from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, TYPE_CHECKING

from ..models import (
    FAILED_EXIT,
    FAILED_PRECONDITION,
    PLACEHOLDER,
    SUCCEEDED,
    CaptureResult,
    CaptureWarning,
    DeviceDescriptor,
    Requirement,
)
from .actions import Action, ActionOutcome

if TYPE_CHECKING:  # avoid import cycle
    from ..session import Session  # pragma: no cover


@dataclass(frozen=True, slots=True)
class CaptureTask:
    """
    One named output produced by an ordered fallback chain of actions.

    Actions whose requirements are unmet are passed over, the first one that
    succeeds wins, and a failing one hands over to the next. Task-level
    requirements gate the whole chain.
    """
    name: str
    actions: Tuple[Action, ...]
    requires: Tuple[Requirement, ...] = ()
    group: str = ""
    subtree: str = ""
    device: DeviceDescriptor | None = None

    @property
    def key(self) -> str:
        return f"{self.subtree}/{self.name}" if self.subtree else self.name

    def run(self, session: "Session") -> CaptureResult:
        prober = session.prober
        dest = session.tree.claim(self.name, self.subtree)
        artifact = str(dest)

        unmet = prober.first_unmet(self.requires, self.device)
        if unmet is not None:
            dest.write_text(PLACEHOLDER, encoding="utf-8")
            return CaptureResult(self.key, FAILED_PRECONDITION, artifact, None, unmet.describe())

        skipped: list[Requirement] = []
        last: ActionOutcome | None = None
        for action in self.actions:
            missing = prober.first_unmet(action.requirements(), self.device)
            if missing is not None:
                skipped.append(missing)
                continue
            session.say(f"  Capturing: {action.describe()}")
            last = action.perform(dest, session.runner)
            if last.ok:
                return CaptureResult(self.key, SUCCEEDED, artifact, 0)

        if last is not None:
            return CaptureResult(self.key, FAILED_EXIT, artifact, last.exit_code, last.detail)

        dest.write_text(PLACEHOLDER, encoding="utf-8")
        return CaptureResult(self.key, FAILED_PRECONDITION, artifact, None, _reason(skipped))

    def warning(self, result: CaptureResult) -> CaptureWarning | None:
        if result.status == FAILED_PRECONDITION:
            return CaptureWarning(self.key, f"{result.detail}, skipping capture to {self.key}")
        if result.status == FAILED_EXIT:
            return CaptureWarning(self.key, f"{result.detail} while capturing {self.key}")
        return None


def _reason(skipped: list[Requirement]) -> str:
    # a transport mismatch only means "not applicable", so prefer anything else
    for req in skipped:
        if req.kind != "transport":
            return req.describe()
    if skipped:
        return skipped[0].describe()
    return "No capture action defined"
