from __future__ import annotations

import gzip
import re
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from ..drivers.shell import Runner
from ..models import Requirement, file, tool


@dataclass(frozen=True, slots=True)
class ActionOutcome:
    exit_code: int
    detail: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class Action:
    """
    One way of producing an artifact. Subclasses implement perform(dest, runner).

    requirements() is what must hold before the action is attempted: what the
    action itself needs (its tool or its source) followed by the extra
    clauses it was declared with.
    """
    __slots__ = ()

    def implicit(self) -> Tuple[Requirement, ...]:
        return ()

    def requirements(self) -> Tuple[Requirement, ...]:
        return self.implicit() + tuple(getattr(self, "requires", ()))

    def describe(self) -> str:  # pragma: no cover
        raise NotImplementedError

    def perform(self, dest: Path, runner: Runner) -> ActionOutcome:  # pragma: no cover
        raise NotImplementedError


@dataclass(frozen=True, slots=True)
class RunCommand(Action):
    """Run a command; only lines matching ``match`` (case-insensitive) are kept when set."""
    argv: Tuple[str, ...]
    match: str | None = None
    requires: Tuple[Requirement, ...] = ()

    def implicit(self) -> Tuple[Requirement, ...]:
        return (tool(self.argv[0]),)

    def describe(self) -> str:
        return " ".join(self.argv)

    def perform(self, dest: Path, runner: Runner) -> ActionOutcome:
        res = runner(self.argv)
        text = res.output
        if self.match:
            pattern = re.compile(self.match, re.IGNORECASE)
            kept = [line for line in text.splitlines() if pattern.search(line)]
            text = "".join(line + "\n" for line in kept)
        # partial output of a failing command is kept as the artifact
        dest.write_text(text, encoding="utf-8")
        if res.returncode != 0:
            return ActionOutcome(res.returncode, f"Command '{self.describe()}' failed (exit code {res.returncode})")
        return ActionOutcome(0)


@dataclass(frozen=True, slots=True)
class CopyFile(Action):
    source: str
    requires: Tuple[Requirement, ...] = ()

    def implicit(self) -> Tuple[Requirement, ...]:
        return (file(self.source),)

    def describe(self) -> str:
        return self.source

    def perform(self, dest: Path, runner: Runner) -> ActionOutcome:
        try:
            shutil.copyfile(self.source, dest)
        except OSError as exc:
            return ActionOutcome(1, f"Failed to copy '{self.source}': {exc.strerror or exc}")
        return ActionOutcome(0)


@dataclass(frozen=True, slots=True)
class CopyTree(Action):
    """Copy a directory keeping its internal layout, or a plain file if that is what is there."""
    source: str
    requires: Tuple[Requirement, ...] = ()

    def implicit(self) -> Tuple[Requirement, ...]:
        return (Requirement("path", self.source),)

    def describe(self) -> str:
        return self.source

    def perform(self, dest: Path, runner: Runner) -> ActionOutcome:
        try:
            if Path(self.source).is_dir():
                shutil.copytree(self.source, dest, dirs_exist_ok=True)
            else:
                shutil.copyfile(self.source, dest)
        except (OSError, shutil.Error) as exc:
            return ActionOutcome(1, f"Failed to copy directory '{self.source}': {exc}")
        return ActionOutcome(0)


@dataclass(frozen=True, slots=True)
class GunzipFile(Action):
    source: str
    requires: Tuple[Requirement, ...] = ()

    def implicit(self) -> Tuple[Requirement, ...]:
        return (file(self.source),)

    def describe(self) -> str:
        return f"zcat {self.source}"

    def perform(self, dest: Path, runner: Runner) -> ActionOutcome:
        try:
            with gzip.open(self.source, "rb") as src, dest.open("wb") as out:
                shutil.copyfileobj(src, out)
        except (OSError, EOFError) as exc:
            return ActionOutcome(1, f"Failed to decompress '{self.source}': {exc}")
        return ActionOutcome(0)
