from __future__ import annotations

from .session import Session, CaptureRun
from .pipeline import Pipeline
from .errors import SysCaptureError
from .artifacts import ArtifactTree
from .models import (
    PLACEHOLDER,
    CaptureResult,
    CaptureWarning,
    DeviceDescriptor,
    Requirement,
)
from .drivers.probe import Prober
from .drivers.inventory import enumerate_devices
from .tasks.base import CaptureTask
from .tasks.actions import CopyFile, CopyTree, GunzipFile, RunCommand
from .tasks.catalog import build_catalog
from .report import ReportDocument, synthesize

__all__ = [
    "Session",
    "CaptureRun",
    "Pipeline",
    "SysCaptureError",
    "ArtifactTree",
    "PLACEHOLDER",
    "CaptureResult",
    "CaptureWarning",
    "DeviceDescriptor",
    "Requirement",
    "Prober",
    "enumerate_devices",
    "CaptureTask",
    "CopyFile",
    "CopyTree",
    "GunzipFile",
    "RunCommand",
    "build_catalog",
    "ReportDocument",
    "synthesize",
]
