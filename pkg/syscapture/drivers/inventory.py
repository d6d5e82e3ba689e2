from __future__ import annotations

import os
import shlex
from typing import List

from ..models import ATA, NVME, DeviceDescriptor
from .shell import Runner, run_command

LSBLK_ARGV = ["lsblk", "-d", "-n", "-p", "-b", "-P", "-o", "NAME,TYPE,SIZE,TRAN"]


def parse_lsblk_pairs(text: str) -> List[dict[str, str]]:
    """Parse ``lsblk -P`` output (KEY="value" pairs, one device per line)."""
    rows = []
    for line in text.splitlines():
        line = line.strip()
        if not line:
            continue
        row = {}
        for token in shlex.split(line):
            key, sep, value = token.partition("=")
            if sep:
                row[key] = value
        if row:
            rows.append(row)
    return rows


def classify(name: str, bus: str = "") -> str:
    if bus.lower() == "nvme" or "nvme" in os.path.basename(name):
        return NVME
    return ATA


def descriptors_from_lsblk(text: str) -> List[DeviceDescriptor]:
    """
    Whole disks with a nonzero size, sorted by path.

    Zero-size disks are empty card-reader slots and are dropped.
    """
    devices = []
    for row in parse_lsblk_pairs(text):
        if row.get("TYPE") != "disk":
            continue
        try:
            size = int(row.get("SIZE") or 0)
        except ValueError:
            continue
        if size <= 0:
            continue
        path = row.get("NAME", "")
        if not path:
            continue
        bus = row.get("TRAN", "")
        devices.append(
            DeviceDescriptor(
                name=os.path.basename(path),
                path=path,
                size_bytes=size,
                transport=classify(path, bus),
                bus=bus,
            )
        )
    return sorted(devices, key=lambda d: d.path)


def enumerate_devices(runner: Runner = run_command) -> List[DeviceDescriptor]:
    """Return classified block devices; an unusable lsblk yields an empty list."""
    res = runner(LSBLK_ARGV)
    if res.returncode != 0:
        return []
    return descriptors_from_lsblk(res.output)
