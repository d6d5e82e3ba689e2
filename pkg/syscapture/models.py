from __future__ import annotations

from dataclasses import dataclass
from typing import Any

# Written in place of real output when a task's precondition is unmet.
PLACEHOLDER = "Not available on this system (capture skipped)\n"

SUCCEEDED = "succeeded"
FAILED_PRECONDITION = "failed-precondition"
FAILED_EXIT = "failed-exit-nonzero"

# Transport classes
ATA = "ata"
NVME = "nvme"


@dataclass(frozen=True, slots=True)
class Requirement:
    """
    One precondition clause.

    kind is one of tool, file, path, root, nonroot or transport.
    """
    kind: str
    target: str = ""

    def describe(self) -> str:
        if self.kind == "tool":
            return f"Command '{self.target}' not found"
        if self.kind == "file":
            return f"File '{self.target}' not found"
        if self.kind == "path":
            return f"Path '{self.target}' not found"
        if self.kind == "root":
            return "Running as non-root"
        if self.kind == "nonroot":
            return "Running as root"
        if self.kind == "transport":
            return f"Not a {self.target} device"
        return f"Unmet requirement {self.kind}:{self.target}"


def tool(name: str) -> Requirement:
    return Requirement("tool", name)


def file(path: str) -> Requirement:
    return Requirement("file", path)


ROOT = Requirement("root")
# reduced variants stand in for privileged ones only when root is missing
NONROOT = Requirement("nonroot")


@dataclass(frozen=True, slots=True)
class DeviceDescriptor:
    name: str
    path: str
    size_bytes: int
    transport: str
    bus: str = ""


@dataclass(frozen=True, slots=True)
class CaptureResult:
    task: str
    status: str
    artifact: str | None
    exit_code: int | None = None
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.status == SUCCEEDED

    def as_dict(self) -> dict[str, Any]:
        return {
            "task": self.task,
            "status": self.status,
            "artifact": self.artifact,
            "exit_code": self.exit_code,
            "detail": self.detail,
        }


@dataclass(frozen=True, slots=True)
class CaptureWarning:
    task: str
    message: str

    def __str__(self) -> str:
        return f"WARNING: {self.message}"
