from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path
from typing import List

from .artifacts import ArtifactTree
from .models import CaptureResult, CaptureWarning, DeviceDescriptor
from .pipeline import Pipeline
from .logging import Logger
from .drivers.inventory import enumerate_devices
from .drivers.probe import Prober
from .drivers.shell import Runner, run_command
from .errors import SysCaptureError

RAW_DIR = "raw"
LOG_FILE = "capture-log.jsonl"


@dataclass(slots=True)
class CaptureRun:
    tree: ArtifactTree
    warnings: List[CaptureWarning]
    results: List[CaptureResult]

    @property
    def failed(self) -> List[CaptureResult]:
        return [r for r in self.results if not r.ok]


class Session:
    """
    Runs a capture pipeline into one output directory.
    """

    @staticmethod
    def discover(runner: Runner = run_command) -> List[DeviceDescriptor]:
        return enumerate_devices(runner)

    def __init__(
        self,
        workdir: str | Path,
        prober: Prober | None = None,
        runner: Runner = run_command,
        quiet: bool = False,
    ) -> None:
        self.workdir = Path(workdir)
        try:
            (self.workdir / RAW_DIR).mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise SysCaptureError("OUTPUT_DIR", f"cannot create {self.workdir}: {exc}") from exc
        self.prober = prober or Prober()
        self.runner = runner
        self.quiet = quiet
        self.tree = ArtifactTree(self.workdir / RAW_DIR)
        self._logger = Logger(self.workdir / LOG_FILE)

    def say(self, msg: str) -> None:
        if not self.quiet:
            print(msg)

    def warn(self, warning: CaptureWarning) -> None:
        print(str(warning), file=sys.stderr)
        self._logger.event("warning", {"task": warning.task, "message": warning.message})

    def run(self, pipeline: Pipeline, warnings: List[CaptureWarning] | None = None) -> CaptureRun:
        """
        Execute tasks in catalog order. Task failures are recorded, never raised.

        warnings is the accumulator new warnings are appended to; pass one in
        to collect across several runs.
        """
        pipeline.validate()
        warnings = [] if warnings is None else warnings
        results: list[CaptureResult] = []
        self._logger.event("run_start", {"tasks": len(pipeline.tasks), "root": self.prober.is_root()})
        group = None
        for task in pipeline.tasks:
            if task.group != group:
                group = task.group
                self.say("")
                self.say(f"=== Capturing {group} ===")
            self._logger.event("task_start", {"name": task.key})
            try:
                result = task.run(self)
            except Exception as exc:  # noqa: BLE001
                # link failure to a task and preserve chain integrity
                self._logger.event("task_error", {"name": task.key, "error": repr(exc)})
                raise
            results.append(result)
            self._logger.event("task_end", result.as_dict())
            warning = task.warning(result)
            if warning is not None:
                warnings.append(warning)
                self.warn(warning)
        self._logger.event(
            "run_end",
            {"tasks": len(results), "failed": sum(1 for r in results if not r.ok), "warnings": len(warnings)},
        )
        return CaptureRun(self.tree, warnings, results)

    def log(self) -> Logger:
        return self._logger
