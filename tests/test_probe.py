import os

from pkg.syscapture.drivers.probe import Prober
from pkg.syscapture.models import NONROOT, ROOT, DeviceDescriptor, Requirement, file, tool


def make_tool(bindir, name):
    p = bindir / name
    p.write_text("#!/bin/sh\nexit 0\n")
    p.chmod(0o755)
    return p


def test_tool_on_search_path(tmp_path):
    make_tool(tmp_path, "hdparm")
    prober = Prober(path=str(tmp_path))
    assert prober.probe(tool("hdparm"))
    assert not prober.probe(tool("smartctl"))


def test_file_requires_regular_readable_file(tmp_path):
    f = tmp_path / "os-release"
    f.write_text("NAME=Test\n")
    prober = Prober()
    assert prober.probe(file(str(f)))
    assert not prober.probe(file(str(tmp_path)))
    assert not prober.probe(file(str(tmp_path / "missing")))


def test_path_accepts_directories(tmp_path):
    assert Prober().probe(Requirement("path", str(tmp_path)))


def test_root_override():
    assert Prober(root=True).probe(ROOT)
    assert not Prober(root=False).probe(ROOT)
    if hasattr(os, "geteuid"):
        assert Prober().is_root() == (os.geteuid() == 0)


def test_transport_checked_against_device():
    dev = DeviceDescriptor("nvme0n1", "/dev/nvme0n1", 1, "nvme")
    prober = Prober()
    assert prober.probe(Requirement("transport", "nvme"), dev)
    assert not prober.probe(Requirement("transport", "ata"), dev)
    assert not prober.probe(Requirement("transport", "nvme"))


def test_first_unmet_keeps_order():
    prober = Prober(path="", root=False)
    reqs = (tool("hdparm"), ROOT)
    assert prober.first_unmet(reqs) == tool("hdparm")
    assert prober.first_unmet(()) is None


def test_nonroot_is_the_inverse_of_root():
    assert Prober(root=False).probe(NONROOT)
    assert not Prober(root=True).probe(NONROOT)
