"""
The capture catalog.

Static groups are plain tuples of CaptureTasks. Device tasks are generated
from the classified device list, and the optional groups (vendor GPU tools,
bootloader config, Gentoo extras) only contribute tasks that apply to this
host, so what is left out produces neither a result nor a warning.
"""
from __future__ import annotations

import platform
from typing import Iterable, List

from ..drivers.probe import Prober
from ..models import ATA, NONROOT, NVME, ROOT, DeviceDescriptor, Requirement, file
from ..pipeline import Pipeline
from .actions import CopyFile, CopyTree, GunzipFile, RunCommand
from .base import CaptureTask

G_CORE = "Core System Information"
G_CPU = "CPU Information"
G_MEMORY = "Memory Information"
G_STORAGE = "Storage Information"
G_DISKS = "SATA/SAS Disk Benchmarks"
G_NVME = "NVMe Drive Information"
G_PCI_USB = "PCI and USB Devices"
G_GPU = "GPU Information"
G_NETWORK = "Network Configuration"
G_SENSORS = "Sensor Readings"
G_KERNEL = "Kernel Information"
G_GENTOO = "Gentoo-Specific Information"

ATA_ONLY = Requirement("transport", ATA)
NVME_ONLY = Requirement("transport", NVME)

GENTOO_MARKER = "/etc/gentoo-release"
GENTOO_SUBTREE = "gentoo"
PORTAGE_TREES = (
    "package.use",
    "package.accept_keywords",
    "package.keywords",
    "package.mask",
    "package.unmask",
    "package.license",
    "package.env",
    "env",
)
GRUB_CONFIGS = ("/boot/grub/grub.cfg", "/boot/grub2/grub.cfg")


def _cmd(*argv: str, requires=(), match: str | None = None) -> RunCommand:
    return RunCommand(tuple(argv), match=match, requires=tuple(requires))


CORE_SYSTEM = (
    CaptureTask("uname.txt", (_cmd("uname", "-a"),), group=G_CORE),
    CaptureTask("hostnamectl.txt", (_cmd("hostnamectl"),), group=G_CORE),
    CaptureTask("os-release.txt", (CopyFile("/etc/os-release"),), group=G_CORE),
    CaptureTask("uptime.txt", (_cmd("uptime"),), group=G_CORE),
    CaptureTask("date.txt", (_cmd("date"),), group=G_CORE),
    CaptureTask("last-logins.txt", (_cmd("last", "-20"),), group=G_CORE),
    CaptureTask("who.txt", (_cmd("who", "-a"),), group=G_CORE),
)

CPU = (
    CaptureTask("cpuinfo.txt", (CopyFile("/proc/cpuinfo"),), group=G_CPU),
    CaptureTask("lscpu.txt", (_cmd("lscpu"),), group=G_CPU),
)

MEMORY = (
    CaptureTask("meminfo.txt", (CopyFile("/proc/meminfo"),), group=G_MEMORY),
    CaptureTask("free.txt", (_cmd("free", "-h"),), group=G_MEMORY),
    CaptureTask("dmidecode.txt", (_cmd("dmidecode"),), requires=(ROOT,), group=G_MEMORY),
    CaptureTask("dmidecode-memory.txt", (_cmd("dmidecode", "-t", "memory"),), requires=(ROOT,), group=G_MEMORY),
)

STORAGE = (
    CaptureTask("lsblk.txt", (_cmd("lsblk", "-o", "NAME,SIZE,TYPE,FSTYPE,MODEL,SERIAL,MOUNTPOINT"),), group=G_STORAGE),
    CaptureTask("df.txt", (_cmd("df", "-h"),), group=G_STORAGE),
    CaptureTask("mount.txt", (_cmd("mount"),), group=G_STORAGE),
    CaptureTask("fdisk.txt", (_cmd("fdisk", "-l"),), requires=(ROOT,), group=G_STORAGE),
)

PCI_USB = (
    CaptureTask("lspci.txt", (_cmd("lspci", "-vvv"), _cmd("lspci", "-v"), _cmd("lspci")), group=G_PCI_USB),
    CaptureTask("lsusb.txt", (_cmd("lsusb", "-v"), _cmd("lsusb")), group=G_PCI_USB),
)

NETWORK = (
    CaptureTask("ip-addr.txt", (_cmd("ip", "addr"),), group=G_NETWORK),
    CaptureTask("ip-route.txt", (_cmd("ip", "route"),), group=G_NETWORK),
    CaptureTask("ip-link.txt", (_cmd("ip", "link"),), group=G_NETWORK),
    CaptureTask("ifconfig.txt", (_cmd("ifconfig", "-a"),), group=G_NETWORK),
)

SENSORS = (
    CaptureTask("sensors.txt", (_cmd("sensors"),), group=G_SENSORS),
)


def hdparm_task(dev: DeviceDescriptor, group: str) -> CaptureTask:
    # identity probing does not apply to NVMe; timing needs root on both.
    # Without root an ATA disk still gets the identity-only query.
    return CaptureTask(
        f"hdparm-{dev.name}.txt",
        (
            _cmd("hdparm", "-itT", dev.path, requires=(ATA_ONLY, ROOT)),
            _cmd("hdparm", "-tT", dev.path, requires=(NVME_ONLY, ROOT)),
            _cmd("hdparm", "-i", dev.path, requires=(ATA_ONLY, NONROOT)),
        ),
        group=group,
        device=dev,
    )


def smartctl_task(dev: DeviceDescriptor, group: str) -> CaptureTask:
    return CaptureTask(
        f"smartctl-{dev.name}.txt",
        (_cmd("smartctl", "-a", dev.path),),
        requires=(ROOT,),
        group=group,
        device=dev,
    )


def device_tasks(devices: Iterable[DeviceDescriptor]) -> List[CaptureTask]:
    devices = sorted(devices, key=lambda d: d.path)
    tasks: List[CaptureTask] = []
    for dev in devices:
        if dev.transport == ATA:
            tasks.append(hdparm_task(dev, G_DISKS))
            tasks.append(smartctl_task(dev, G_DISKS))
    nvme = [d for d in devices if d.transport == NVME]
    if nvme:
        tasks.append(CaptureTask("nvme-list.txt", (_cmd("nvme", "list"),), group=G_NVME))
        for dev in nvme:
            tasks.append(
                CaptureTask(
                    f"nvme-smart-{dev.name}.txt",
                    (_cmd("nvme", "smart-log", dev.path),),
                    requires=(ROOT,),
                    group=G_NVME,
                    device=dev,
                )
            )
            tasks.append(smartctl_task(dev, G_NVME))
            tasks.append(hdparm_task(dev, G_NVME))
    return tasks


def gpu_tasks(prober: Prober) -> List[CaptureTask]:
    tasks = [CaptureTask("gpu-info.txt", (_cmd("lspci", match=r"vga|3d|display"),), group=G_GPU)]
    if prober.has_tool("nvidia-smi"):
        tasks.append(CaptureTask("nvidia-smi.txt", (_cmd("nvidia-smi"),), group=G_GPU))
        tasks.append(CaptureTask("nvidia-smi-query.txt", (_cmd("nvidia-smi", "-q"),), group=G_GPU))
    if prober.has_tool("radeontop"):
        tasks.append(CaptureTask("radeontop.txt", (_cmd("radeontop", "-d", "-", "-l", "1"),), group=G_GPU))
    return tasks


def kernel_tasks(prober: Prober, release: str) -> List[CaptureTask]:
    tasks = [
        CaptureTask("lsmod.txt", (_cmd("lsmod"),), group=G_KERNEL),
        CaptureTask("cmdline.txt", (CopyFile("/proc/cmdline"),), group=G_KERNEL),
        CaptureTask("version.txt", (CopyFile("/proc/version"),), group=G_KERNEL),
        CaptureTask(
            "kernel-config.txt",
            (GunzipFile("/proc/config.gz"), CopyFile(f"/boot/config-{release}")),
            group=G_KERNEL,
        ),
    ]
    # other bootloaders have no grub.cfg, which is not worth a warning
    grub = [cfg for cfg in GRUB_CONFIGS if prober.probe(file(cfg))]
    if grub:
        tasks.append(CaptureTask("grub.cfg", tuple(CopyFile(cfg) for cfg in grub), group=G_KERNEL))
    return tasks


def gentoo_tasks(prober: Prober) -> List[CaptureTask]:
    if not prober.probe(file(GENTOO_MARKER)):
        return []

    def task(name, *actions):
        return CaptureTask(name, actions, group=G_GENTOO, subtree=GENTOO_SUBTREE)

    tasks = [task("gentoo-release.txt", CopyFile(GENTOO_MARKER))]
    if prober.has_tool("emerge"):
        tasks.append(task("emerge-info.txt", _cmd("emerge", "--info")))
    if any(prober.has_tool(t) for t in ("qlist", "eix", "emerge")):
        tasks.append(
            task(
                "installed-packages.txt",
                _cmd("qlist", "-Iv"),
                _cmd("eix", "-I", "--format", "<installedversions:NAMEVERSION>"),
                _cmd("emerge", "-ep", "@world"),
            )
        )
    tasks.append(task("world.txt", CopyFile("/var/lib/portage/world")))
    tasks.append(task("make.conf.txt", CopyFile("/etc/portage/make.conf")))
    for name in PORTAGE_TREES:
        source = f"/etc/portage/{name}"
        if prober.probe(Requirement("path", source)):
            tasks.append(task(name, CopyTree(source)))
    if prober.has_tool("eselect"):
        tasks.append(task("eselect-profile.txt", _cmd("eselect", "profile", "show")))
    return tasks


def build_catalog(
    prober: Prober,
    devices: Iterable[DeviceDescriptor],
    release: str | None = None,
) -> Pipeline:
    """Assemble the full catalog in capture order."""
    release = release or platform.release()
    pipeline = Pipeline()
    pipeline.extend(CORE_SYSTEM)
    pipeline.extend(CPU)
    pipeline.extend(MEMORY)
    pipeline.extend(STORAGE)
    pipeline.extend(device_tasks(devices))
    pipeline.extend(PCI_USB)
    pipeline.extend(gpu_tasks(prober))
    pipeline.extend(NETWORK)
    pipeline.extend(SENSORS)
    pipeline.extend(kernel_tasks(prober, release))
    pipeline.extend(gentoo_tasks(prober))
    return pipeline
