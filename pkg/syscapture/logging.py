from __future__ import annotations

import json
import hashlib
import time
from pathlib import Path
from typing import Any, Iterator


def _digest(line: str) -> str:
    return hashlib.sha256(line.encode("utf-8")).hexdigest()


class Logger:
    """
    Append-only JSONL audit log of a capture run, hash-chained through ``prev``.

    Opening an existing log continues its chain, so a directory that is
    captured into twice still verifies end to end.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._prev = ""
        if self.path.exists():
            with self.path.open("r", encoding="utf-8") as f:
                for line in f:
                    line = line.rstrip("\n")
                    if line:
                        self._prev = _digest(line)

    def event(self, kind: str, data: dict[str, Any]) -> str:
        ts = int(time.time())
        payload = {"ts": ts, "kind": kind, "data": data, "prev": self._prev}
        line = json.dumps(payload, ensure_ascii=False, separators=(",", ":"))
        self._prev = _digest(line)
        with self.path.open("a", encoding="utf-8") as f:
            f.write(line + "\n")
            f.flush()
        return self._prev


def read_events(path: Path, kind: str | None = None) -> Iterator[dict[str, Any]]:
    """Yield logged events in order, optionally only those of one kind."""
    path = Path(path)
    if not path.exists():
        return
    with path.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue
            if kind is None or entry.get("kind") == kind:
                yield entry


def verify_chain(path: Path) -> bool:
    """True when every entry's ``prev`` is the hash of the line before it."""
    prev = ""
    with Path(path).open("r", encoding="utf-8") as f:
        for line in f:
            line = line.rstrip("\n")
            if not line:
                continue
            if json.loads(line).get("prev") != prev:
                return False
            prev = _digest(line)
    return True
