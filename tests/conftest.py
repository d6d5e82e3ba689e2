import pytest

from pkg.syscapture.drivers.probe import Prober
from pkg.syscapture.drivers.shell import CommandResult


class FakeRunner:
    """Canned command results keyed by argv; unknown commands succeed with empty output."""

    def __init__(self, results=None):
        self.results = {tuple(k): v for k, v in (results or {}).items()}
        self.calls = []

    def __call__(self, argv):
        argv = tuple(argv)
        self.calls.append(argv)
        res = self.results.get(argv)
        if res is None:
            return CommandResult(0, "")
        if isinstance(res, str):
            return CommandResult(0, res)
        return CommandResult(*res)

    def ran(self, *argv):
        return tuple(argv) in self.calls


class FakeProber(Prober):
    """tools=None means every tool resolves; files=None means probe the real filesystem."""

    def __init__(self, tools=(), root=False, files=None):
        super().__init__(root=root)
        self.tools = None if tools is None else set(tools)
        self.files = None if files is None else set(files)

    def has_tool(self, name):
        return self.tools is None or name in self.tools

    def probe(self, req, device=None):
        if req.kind in ("file", "path") and self.files is not None:
            return req.target in self.files
        return super().probe(req, device)


@pytest.fixture
def runner():
    return FakeRunner()
