"""Typed telemetry models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Family(str, Enum):
    CPU = "CPU"
    DISK = "DISK"
    NET = "NET"
    GPU = "GPU"


@dataclass(frozen=True)
class CounterHandle:
    """Reference to one live counter stream, e.g. ``% Idle Time`` of disk ``0 C:``."""

    family: Family
    category: str
    metric: str
    instance: str
    index: int | None = None
    token: Any = field(default=None, compare=False, repr=False)


@dataclass(frozen=True)
class DiskEntity:
    index: int
    instance: str
    letters: tuple[str, ...]
    idle: CounterHandle
    read_bps: CounterHandle
    write_bps: CounterHandle
    media_type: str = "Unknown"


@dataclass(frozen=True)
class NicEntity:
    instance: str
    rx: CounterHandle
    tx: CounterHandle
    ipv4: str | None = None


@dataclass(frozen=True)
class GpuEngineEntity:
    instance: str
    utilization: CounterHandle


@dataclass(frozen=True)
class ProcessorInfo:
    current_mhz: float = 0.0
    max_mhz: float = 0.0
    sockets: int = 0
    cores: int = 0
    logical: int = 0


@dataclass(frozen=True)
class MemoryStatus:
    total_physical: int
    available_physical: int

    @property
    def used_physical(self) -> int:
        return max(self.total_physical - self.available_physical, 0)

    @property
    def percent(self) -> float:
        if self.total_physical <= 0:
            return 0.0
        return self.used_physical / self.total_physical * 100.0


@dataclass(frozen=True)
class ProcessStats:
    processes: int = 0
    threads: int = 0
    handles: int = 0


@dataclass(frozen=True)
class VolumeUsage:
    free: int
    total: int


@dataclass(frozen=True)
class Topology:
    """Static snapshot of everything sampled for the lifetime of the process."""

    cpu: CounterHandle | None
    disks: tuple[DiskEntity, ...] = ()
    nics: tuple[NicEntity, ...] = ()
    gpu_engines: tuple[GpuEngineEntity, ...] = ()


@dataclass(frozen=True)
class ReadResult:
    value: float | None = None
    error: str | None = None

    @classmethod
    def of(cls, value: float) -> "ReadResult":
        return cls(value=float(value))

    @classmethod
    def failed(cls, error: str) -> "ReadResult":
        return cls(value=None, error=error)

    @property
    def ok(self) -> bool:
        return self.value is not None

    def value_or(self, default: float) -> float:
        return self.value if self.value is not None else default
