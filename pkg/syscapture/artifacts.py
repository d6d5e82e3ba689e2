from __future__ import annotations

from pathlib import Path
from typing import Dict, List

from .errors import SysCaptureError
from .models import PLACEHOLDER


class ArtifactTree:
    """
    Raw capture outputs on disk, addressed by output name and optional subtree.

    Each name may be claimed once, and never over something already on disk.
    Readers never have to tell a missing file from a skipped capture: both
    come back through available() as None.
    """

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self._claimed: set[str] = set()

    def path(self, name: str, subtree: str = "") -> Path:
        return self.root / subtree / name if subtree else self.root / name

    def claim(self, name: str, subtree: str = "") -> Path:
        key = f"{subtree}/{name}" if subtree else name
        out = self.path(name, subtree)
        if key in self._claimed or out.exists():
            raise SysCaptureError("ARTIFACT_EXISTS", key)
        self._claimed.add(key)
        out.parent.mkdir(parents=True, exist_ok=True)
        return out

    def write(self, name: str, text: str, subtree: str = "") -> Path:
        out = self.claim(name, subtree)
        out.write_text(text, encoding="utf-8")
        return out

    def read(self, name: str, subtree: str = "") -> str | None:
        p = self.path(name, subtree)
        if not p.is_file():
            return None
        return p.read_text(encoding="utf-8", errors="replace")

    def is_placeholder(self, name: str, subtree: str = "") -> bool:
        return self.read(name, subtree) == PLACEHOLDER

    def available(self, name: str, subtree: str = "") -> str | None:
        """Text of a real capture, or None for a missing or placeholder artifact."""
        text = self.read(name, subtree)
        if text is None or text == PLACEHOLDER:
            return None
        return text

    def per_device(self, prefix: str, subtree: str = "") -> Dict[str, str]:
        """Map device name to captured text for every ``<prefix>-<device>.txt``."""
        base = self.path("", subtree) if subtree else self.root
        found: Dict[str, str] = {}
        if not base.is_dir():
            return found
        for p in sorted(base.glob(f"{prefix}-*.txt")):
            text = self.available(p.name, subtree)
            if text is None:
                continue
            found[p.stem[len(prefix) + 1:]] = text
        return found

    def names(self) -> List[str]:
        if not self.root.is_dir():
            return []
        return sorted(
            str(p.relative_to(self.root)) for p in self.root.rglob("*") if p.is_file()
        )
