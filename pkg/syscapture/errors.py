from __future__ import annotations

from typing import Any


class SysCaptureError(Exception):
    """
    syscapture base error.

    Raised for problems with the run itself (output location, catalog shape,
    artifact reuse). Task failures never raise; they become CaptureResults
    and warnings.
    """
    def __init__(self, code: str, hint: str = "", recoverable: bool = False) -> None:
        super().__init__(f"{code}: {hint}" if hint else code)
        self.code = code
        self.hint = hint
        self.recoverable = recoverable

    def as_dict(self) -> dict[str, Any]:
        return {"code": self.code, "hint": self.hint, "recoverable": self.recoverable}
