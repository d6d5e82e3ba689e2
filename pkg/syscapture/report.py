"""
Report synthesis.

Each section pulls a few artifacts out of the raw tree and runs them through
a small extractor: a pure function from captured text to a record whose
fields are all optional. Placeholder or missing artifacts simply leave the
fields empty, so a section never fails because a capture was skipped.
"""
from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .artifacts import ArtifactTree
from .models import CaptureWarning

RULE = "=" * 80


# Extractors

@dataclass(slots=True)
class OsRelease:
    name: Optional[str] = None
    version: Optional[str] = None


def _unquote(value: str) -> str:
    return value.strip().strip('"').strip("'")


def extract_os_release(text: str) -> OsRelease:
    rec = OsRelease()
    for line in text.splitlines():
        key, sep, value = line.partition("=")
        if not sep:
            continue
        if key == "NAME":
            rec.name = _unquote(value)
        elif key == "VERSION":
            rec.version = _unquote(value)
    return rec


CPU_LABELS = re.compile(
    r"^(Model name|CPU\(s\)|Thread|Core|Socket|CPU max MHz|CPU min MHz|Cache|L\d\w* cache|Architecture)"
)


@dataclass(slots=True)
class CpuFacts:
    architecture: Optional[str] = None
    model_name: Optional[str] = None
    cpus: Optional[str] = None
    threads_per_core: Optional[str] = None
    cores_per_socket: Optional[str] = None
    sockets: Optional[str] = None
    max_mhz: Optional[str] = None
    min_mhz: Optional[str] = None
    lines: List[Tuple[str, str]] = field(default_factory=list)


_CPU_FIELDS = {
    "Architecture": "architecture",
    "Model name": "model_name",
    "CPU(s)": "cpus",
    "Thread(s) per core": "threads_per_core",
    "Core(s) per socket": "cores_per_socket",
    "Socket(s)": "sockets",
    "CPU max MHz": "max_mhz",
    "CPU min MHz": "min_mhz",
}


def extract_lscpu(text: str) -> CpuFacts:
    """Labelled lscpu fields. Newer lscpu indents most of them under a vendor line."""
    facts = CpuFacts()
    for raw in text.splitlines():
        line = raw.strip()
        if not CPU_LABELS.match(line):
            continue
        label, sep, value = line.partition(":")
        if not sep:
            continue
        label, value = label.strip(), value.strip()
        facts.lines.append((label, value))
        attr = _CPU_FIELDS.get(label)
        if attr and getattr(facts, attr) is None:
            setattr(facts, attr, value)
    return facts


MEMORY_FIELD = re.compile(r"^\s*(Size|Type|Speed|Manufacturer|Part Number|Configured[\w ]*|Locator):")


def extract_memory_modules(text: str, limit: int = 40) -> List[str]:
    """Per-slot dmidecode fields, empty slots left out."""
    out = []
    for line in text.splitlines():
        if "No Module Installed" in line or not MEMORY_FIELD.match(line):
            continue
        out.append(line.strip())
        if len(out) >= limit:
            break
    return out


@dataclass(slots=True)
class DiskBenchmark:
    model: Optional[str] = None
    serial: Optional[str] = None
    firmware: Optional[str] = None
    cached_reads: Optional[str] = None
    buffered_reads: Optional[str] = None


_HDPARM_ID = re.compile(r"(Model|FwRev|SerialNo)=\s*([^,]+)")
_HDPARM_RATE = re.compile(r"=\s*([\d.]+\s*\w+/sec)")


def extract_hdparm(text: str) -> DiskBenchmark:
    rec = DiskBenchmark()
    for line in text.splitlines():
        for key, value in _HDPARM_ID.findall(line):
            value = value.strip()
            if key == "Model":
                rec.model = value
            elif key == "SerialNo":
                rec.serial = value
            else:
                rec.firmware = value
        if "Timing" not in line:
            continue
        m = _HDPARM_RATE.search(line)
        if not m:
            continue
        if "cached reads" in line:
            rec.cached_reads = m.group(1)
        elif "disk reads" in line:
            rec.buffered_reads = m.group(1)
    return rec


@dataclass(slots=True)
class DriveHealth:
    model: Optional[str] = None
    serial: Optional[str] = None
    capacity: Optional[str] = None
    health: Optional[str] = None
    power_on_hours: Optional[str] = None
    temperature: Optional[str] = None
    reallocated: Optional[str] = None
    pending: Optional[str] = None
    uncorrectable: Optional[str] = None


_SMART_INFO = {
    "Device Model": "model",
    "Model Number": "model",
    "Serial Number": "serial",
    "User Capacity": "capacity",
    "Total NVM Capacity": "capacity",
    "SMART overall-health self-assessment test result": "health",
    "SMART Health Status": "health",
    "Temperature": "temperature",
    "Current Drive Temperature": "temperature",
    "Power On Hours": "power_on_hours",
}
_SMART_ATTRS = {
    "Power_On_Hours": "power_on_hours",
    "Temperature_Celsius": "temperature",
    "Airflow_Temperature_Cel": "temperature",
    "Reallocated_Sector_Ct": "reallocated",
    "Current_Pending_Sector": "pending",
    "Offline_Uncorrectable": "uncorrectable",
}


def extract_smartctl(text: str) -> DriveHealth:
    """Identity and health from ``smartctl -a``, ATA attribute table or NVMe log layout."""
    rec = DriveHealth()
    for line in text.splitlines():
        stripped = line.strip()
        label, sep, value = stripped.partition(":")
        if sep and label in _SMART_INFO:
            attr = _SMART_INFO[label]
            if getattr(rec, attr) is None:
                setattr(rec, attr, value.strip())
            continue
        cols = stripped.split()
        # ID# ATTRIBUTE_NAME FLAG VALUE WORST THRESH TYPE UPDATED WHEN_FAILED RAW_VALUE
        if len(cols) >= 10 and cols[0].isdigit() and cols[1] in _SMART_ATTRS:
            attr = _SMART_ATTRS[cols[1]]
            if getattr(rec, attr) is None:
                setattr(rec, attr, " ".join(cols[9:]))
    return rec


@dataclass(slots=True)
class NvmeHealth:
    critical_warning: Optional[str] = None
    temperature: Optional[str] = None
    percentage_used: Optional[str] = None
    data_units_written: Optional[str] = None
    power_on_hours: Optional[str] = None
    media_errors: Optional[str] = None


def extract_nvme_smart_log(text: str) -> NvmeHealth:
    rec = NvmeHealth()
    for line in text.splitlines():
        label, sep, value = line.partition(":")
        if not sep:
            continue
        attr = label.strip().lower().replace(" ", "_")
        if attr in NvmeHealth.__dataclass_fields__ and getattr(rec, attr) is None:
            setattr(rec, attr, value.strip())
    return rec


def extract_interfaces(text: str) -> List[str]:
    """Interface header lines and IPv4 addresses from ``ip addr``."""
    return [line for line in text.splitlines() if re.match(r"^\d+:", line) or "inet " in line]


def extract_pci_summary(text: str, limit: int = 30) -> List[str]:
    lines = [line for line in text.splitlines() if re.match(r"^[0-9a-f]+:", line)]
    return (lines or text.splitlines())[:limit]


def extract_usb_summary(text: str, limit: int = 20) -> List[str]:
    lines = [line for line in text.splitlines() if line.startswith("Bus")]
    return (lines or text.splitlines())[:limit]


def count_modules(text: str) -> int:
    """Loaded modules in ``lsmod`` output, header excluded."""
    return sum(1 for line in text.splitlines() if line.strip() and not line.startswith("Module "))


MAKE_CONF_KEYS = re.compile(r"^(CFLAGS|CXXFLAGS|MAKEOPTS|USE|ACCEPT_KEYWORDS|VIDEO_CARDS|INPUT_DEVICES)=")


def extract_make_conf(text: str) -> List[str]:
    return [line for line in text.splitlines() if MAKE_CONF_KEYS.match(line)]


def count_entries(text: str) -> int:
    return sum(1 for line in text.splitlines() if line.strip())


# Document

@dataclass(slots=True)
class Section:
    title: str
    lines: List[str] = field(default_factory=list)

    def render(self) -> str:
        body = [self.title, "-" * len(self.title), *self.lines, ""]
        return "\n".join(body)


@dataclass(slots=True)
class ReportDocument:
    hostname: str
    generated: str
    sections: List[Section]
    raw_dir: str = "raw"

    def titles(self) -> List[str]:
        return [s.title for s in self.sections]

    def section(self, title: str) -> Section | None:
        for s in self.sections:
            if s.title == title:
                return s
        return None

    def render(self) -> str:
        out = [
            RULE,
            f"                    SYSTEM LEGACY REPORT: {self.hostname}",
            f"                    Generated: {self.generated}",
            RULE,
            "",
        ]
        out.extend(s.render() for s in self.sections)
        out.extend([RULE, f"Raw data files are available in: {self.raw_dir}/", RULE])
        return "\n".join(out) + "\n"


def _indent(lines: Iterable[str], pad: str = "  ") -> List[str]:
    return [f"{pad}{line}" for line in lines]


def _kv(label: str, value: Optional[str]) -> List[str]:
    return [f"  {label}: {value}"] if value else []


def _overview(tree: ArtifactTree, hostname: str) -> List[str]:
    lines = [f"Hostname:       {hostname}"]
    text = tree.available("os-release.txt")
    if text is not None:
        rel = extract_os_release(text)
        os_name = " ".join(p for p in (rel.name or "Unknown", rel.version) if p)
        lines.append(f"OS:             {os_name}")
    uname = tree.available("uname.txt")
    if uname is not None:
        lines.append(f"Kernel:         {uname.strip()}")
    uptime = tree.available("uptime.txt")
    if uptime is not None:
        lines.append(f"Uptime:         {uptime.strip()}")
    return lines


def _cpu(tree: ArtifactTree) -> List[str]:
    text = tree.available("lscpu.txt")
    if text is None:
        return []
    return [f"  {label}: {value}" for label, value in extract_lscpu(text).lines]


def _memory(tree: ArtifactTree) -> List[str]:
    lines: List[str] = []
    free = tree.available("free.txt")
    if free is not None:
        lines.append("Current Usage:")
        lines.extend(_indent(free.splitlines()))
    modules = tree.available("dmidecode-memory.txt")
    if modules:
        found = extract_memory_modules(modules)
        if found:
            lines.append("")
            lines.append("Physical Memory Modules:")
            lines.extend(_indent(found))
    return lines


def _storage(tree: ArtifactTree) -> List[str]:
    lines: List[str] = []
    lsblk = tree.available("lsblk.txt")
    if lsblk is not None:
        lines.append("Block Devices:")
        lines.extend(_indent(lsblk.splitlines()))
    df = tree.available("df.txt")
    if df is not None:
        if lines:
            lines.append("")
        lines.append("Disk Usage:")
        lines.extend(_indent(df.splitlines()))
    return lines


def _benchmarks(tree: ArtifactTree) -> List[str]:
    lines: List[str] = []
    for dev, text in tree.per_device("hdparm").items():
        rec = extract_hdparm(text)
        lines.append(f"Device: /dev/{dev}")
        lines.extend(_kv("Model", rec.model))
        lines.extend(_kv("Serial", rec.serial))
        lines.extend(_kv("Firmware", rec.firmware))
        lines.extend(_kv("Cached reads", rec.cached_reads))
        lines.extend(_kv("Buffered disk reads", rec.buffered_reads))
        lines.append("")
    return lines


def _health(tree: ArtifactTree) -> List[str]:
    lines: List[str] = []
    for dev, text in tree.per_device("smartctl").items():
        rec = extract_smartctl(text)
        lines.append(f"Device: /dev/{dev}")
        lines.extend(_kv("Model", rec.model))
        lines.extend(_kv("Serial", rec.serial))
        lines.extend(_kv("Capacity", rec.capacity))
        lines.extend(_kv("Overall health", rec.health))
        lines.extend(_kv("Power on hours", rec.power_on_hours))
        lines.extend(_kv("Temperature", rec.temperature))
        lines.extend(_kv("Reallocated sectors", rec.reallocated))
        lines.extend(_kv("Pending sectors", rec.pending))
        lines.extend(_kv("Uncorrectable sectors", rec.uncorrectable))
        lines.append("")
    return lines


def _nvme(tree: ArtifactTree) -> List[str]:
    lines: List[str] = []
    listing = tree.available("nvme-list.txt")
    if listing is not None:
        lines.extend(_indent(listing.splitlines()))
        lines.append("")
    for dev, text in tree.per_device("nvme-smart").items():
        rec = extract_nvme_smart_log(text)
        lines.append(f"Device: /dev/{dev}")
        lines.extend(_kv("Critical warning", rec.critical_warning))
        lines.extend(_kv("Temperature", rec.temperature))
        lines.extend(_kv("Percentage used", rec.percentage_used))
        lines.extend(_kv("Data units written", rec.data_units_written))
        lines.extend(_kv("Power on hours", rec.power_on_hours))
        lines.extend(_kv("Media errors", rec.media_errors))
        lines.append("")
    return lines


def _graphics(tree: ArtifactTree) -> List[str]:
    lines: List[str] = []
    gpu = tree.available("gpu-info.txt")
    if gpu and gpu.strip():
        lines.extend(_indent(gpu.splitlines()))
    nvidia = tree.available("nvidia-smi.txt")
    if nvidia is not None:
        lines.append("")
        lines.append("NVIDIA GPU Details:")
        lines.extend(_indent(nvidia.splitlines()[:20]))
    return lines


def _network(tree: ArtifactTree) -> List[str]:
    text = tree.available("ip-addr.txt")
    if text is None:
        return []
    return _indent(extract_interfaces(text) or text.splitlines())


def _sensors(tree: ArtifactTree) -> List[str]:
    text = tree.available("sensors.txt")
    return [] if text is None else _indent(text.splitlines())


def _pci(tree: ArtifactTree) -> List[str]:
    text = tree.available("lspci.txt")
    return [] if text is None else _indent(extract_pci_summary(text))


def _usb(tree: ArtifactTree) -> List[str]:
    text = tree.available("lsusb.txt")
    return [] if text is None else _indent(extract_usb_summary(text))


def _kernel(tree: ArtifactTree) -> List[str]:
    lines: List[str] = []
    cmdline = tree.available("cmdline.txt")
    if cmdline is not None:
        lines.append("Boot Parameters:")
        lines.extend(_indent(cmdline.splitlines()))
    lsmod = tree.available("lsmod.txt")
    count = "unknown" if lsmod is None else str(count_modules(lsmod))
    lines.append(f"Loaded Modules (count): {count}")
    return lines


def _gentoo(tree: ArtifactTree) -> List[str]:
    sub = "gentoo"
    lines: List[str] = []
    profile = tree.available("eselect-profile.txt", sub)
    if profile is not None:
        lines.append("Profile:")
        lines.extend(_indent(profile.splitlines()))
    world = tree.available("world.txt", sub)
    if world is not None:
        lines.append(f"World File Packages: {count_entries(world)}")
    installed = tree.available("installed-packages.txt", sub)
    if installed is not None:
        lines.append(f"Total Installed Packages: {count_entries(installed)}")
    make_conf = tree.available("make.conf.txt", sub)
    if make_conf is not None:
        highlights = extract_make_conf(make_conf)
        if highlights:
            lines.append("make.conf highlights:")
            lines.extend(_indent(highlights))
    return lines


def synthesize(
    tree: ArtifactTree,
    warnings: Iterable[CaptureWarning],
    hostname: str,
    generated: str,
) -> ReportDocument:
    """Build the report in its fixed section order from a finished capture."""
    sections = [
        Section("SYSTEM OVERVIEW", _overview(tree, hostname)),
        Section("CPU", _cpu(tree)),
        Section("MEMORY", _memory(tree)),
        Section("STORAGE", _storage(tree)),
        Section("DISK BENCHMARKS (hdparm)", _benchmarks(tree)),
        Section("DRIVE HEALTH (SMART)", _health(tree)),
        Section("NVME DRIVES", _nvme(tree)),
        Section("GRAPHICS", _graphics(tree)),
        Section("NETWORK INTERFACES", _network(tree)),
        Section("TEMPERATURE SENSORS", _sensors(tree)),
        Section("PCI DEVICES (Summary)", _pci(tree)),
        Section("USB DEVICES (Summary)", _usb(tree)),
        Section("KERNEL", _kernel(tree)),
    ]
    # the platform extras section exists only on hosts where they were captured
    if tree.read("gentoo-release.txt", "gentoo") is not None:
        sections.append(Section("GENTOO CONFIGURATION", _gentoo(tree)))
    warnings = list(warnings)
    if warnings:
        sections.append(Section("CAPTURE WARNINGS", [f"  - {w}" for w in warnings]))
    return ReportDocument(hostname, generated, sections, raw_dir=str(tree.root))


def warnings_from_log(events: Iterable[Dict]) -> List[CaptureWarning]:
    """Rebuild the warning list of the most recent run from the audit log."""
    warnings: List[CaptureWarning] = []
    for e in events:
        if e.get("kind") == "run_start":
            warnings = []
        elif e.get("kind") == "warning":
            warnings.append(CaptureWarning(e["data"].get("task", ""), e["data"].get("message", "")))
    return warnings
