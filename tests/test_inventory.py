from conftest import FakeRunner

from pkg.syscapture.drivers.inventory import (
    LSBLK_ARGV,
    classify,
    descriptors_from_lsblk,
    enumerate_devices,
    parse_lsblk_pairs,
)

LSBLK = """\
NAME="/dev/sdb" TYPE="disk" SIZE="0" TRAN="usb"
NAME="/dev/sda" TYPE="disk" SIZE="500107862016" TRAN="sata"
NAME="/dev/nvme0n1" TYPE="disk" SIZE="1000204886016" TRAN="nvme"
NAME="/dev/sr0" TYPE="rom" SIZE="1073741312" TRAN="sata"
NAME="/dev/loop0" TYPE="loop" SIZE="65536" TRAN=""
"""


def test_parse_pairs_keeps_empty_values():
    rows = parse_lsblk_pairs(LSBLK)
    assert len(rows) == 5
    assert rows[4] == {"NAME": "/dev/loop0", "TYPE": "loop", "SIZE": "65536", "TRAN": ""}


def test_zero_size_and_non_disks_dropped():
    devices = descriptors_from_lsblk(LSBLK)
    assert [d.path for d in devices] == ["/dev/nvme0n1", "/dev/sda"]


def test_transport_classes():
    devices = {d.name: d for d in descriptors_from_lsblk(LSBLK)}
    assert devices["sda"].transport == "ata"
    assert devices["sda"].size_bytes == 500107862016
    assert devices["nvme0n1"].transport == "nvme"
    assert devices["nvme0n1"].bus == "nvme"


def test_classify_by_name_when_transport_unknown():
    assert classify("/dev/nvme1n1") == "nvme"
    assert classify("/dev/vda") == "ata"
    assert classify("/dev/xyz", bus="nvme") == "nvme"


def test_sorted_by_path():
    text = 'NAME="/dev/sdc" TYPE="disk" SIZE="10" TRAN=""\nNAME="/dev/sda" TYPE="disk" SIZE="10" TRAN=""\n'
    assert [d.name for d in descriptors_from_lsblk(text)] == ["sda", "sdc"]


def test_enumerate_uses_lsblk():
    runner = FakeRunner({tuple(LSBLK_ARGV): LSBLK})
    devices = enumerate_devices(runner)
    assert runner.calls == [tuple(LSBLK_ARGV)]
    assert len(devices) == 2


def test_enumerate_lsblk_failure_yields_nothing():
    runner = FakeRunner({tuple(LSBLK_ARGV): (127, "lsblk: command not found\n")})
    assert enumerate_devices(runner) == []
