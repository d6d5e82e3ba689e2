from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Callable, Sequence


@dataclass(frozen=True, slots=True)
class CommandResult:
    returncode: int
    output: str


Runner = Callable[[Sequence[str]], CommandResult]


def run_command(argv: Sequence[str]) -> CommandResult:
    """
    Run argv to completion and return its exit code with stdout and stderr combined.

    No timeout is applied. A binary that disappears between probing and
    execution is reported the way a shell would, with exit code 127.
    """
    try:
        proc = subprocess.run(
            list(argv),
            stdout=subprocess.PIPE,
            stderr=subprocess.STDOUT,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
    except FileNotFoundError:
        binary = argv[0] if argv else "<empty>"
        return CommandResult(127, f"{binary}: command not found\n")
    except OSError as exc:
        binary = argv[0] if argv else "<empty>"
        return CommandResult(126, f"{binary}: {exc}\n")
    return CommandResult(proc.returncode, proc.stdout)
