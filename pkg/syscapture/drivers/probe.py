from __future__ import annotations

import os
import shutil

from ..models import DeviceDescriptor, Requirement


class Prober:
    """
    Answers precondition queries against the live environment.

    Pure query: nothing here raises or mutates anything. path and root exist
    so tests can pin the search path and the privilege level.
    """

    def __init__(self, path: str | None = None, root: bool | None = None) -> None:
        self.path = path
        self.root = root

    def has_tool(self, name: str) -> bool:
        return shutil.which(name, path=self.path) is not None

    def is_root(self) -> bool:
        if self.root is not None:
            return self.root
        geteuid = getattr(os, "geteuid", None)
        return geteuid is not None and geteuid() == 0

    def probe(self, req: Requirement, device: DeviceDescriptor | None = None) -> bool:
        if req.kind == "tool":
            return self.has_tool(req.target)
        if req.kind == "file":
            return os.path.isfile(req.target) and os.access(req.target, os.R_OK)
        if req.kind == "path":
            return os.path.exists(req.target)
        if req.kind == "root":
            return self.is_root()
        if req.kind == "nonroot":
            return not self.is_root()
        if req.kind == "transport":
            return device is not None and device.transport == req.target
        return False

    def first_unmet(self, reqs, device: DeviceDescriptor | None = None) -> Requirement | None:
        for req in reqs:
            if not self.probe(req, device):
                return req
        return None
