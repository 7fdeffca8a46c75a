"""Interfaces of the OS-facing collaborators consumed by the sampler."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol

from .models import MemoryStatus, ProcessStats, VolumeUsage


class CategoryUnavailableError(RuntimeError):
    """Counter family (category) is not exposed on this host."""


class InventoryError(RuntimeError):
    """Inventory query failed or returned unreadable data."""


@dataclass(frozen=True)
class ProcessorRecord:
    current_mhz: float = 0.0
    max_mhz: float = 0.0
    cores: int = 0
    logical: int = 0


@dataclass(frozen=True)
class PartitionRecord:
    device_id: str
    disk_index: int


@dataclass(frozen=True)
class LogicalDiskLink:
    # Object paths, e.g. Win32_DiskPartition.DeviceID="Disk #0, Partition #1"
    antecedent: str
    dependent: str


@dataclass(frozen=True)
class DiskDriveRecord:
    index: int
    media_type: str = ""
    model: str = ""


@dataclass(frozen=True)
class AdapterRecord:
    description: str
    connection_id: str = ""
    ip_enabled: bool = True
    addresses: tuple[str, ...] = field(default_factory=tuple)


class CounterSource(Protocol):
    def list_instances(self, category: str) -> list[str]: ...

    def create_counter(self, category: str, metric: str, instance: str) -> Any: ...

    def read_value(self, token: Any) -> float: ...


class InventorySource(Protocol):
    def processors(self) -> list[ProcessorRecord]: ...

    def disk_partitions(self) -> list[PartitionRecord]: ...

    def logical_disk_links(self) -> list[LogicalDiskLink]: ...

    def disk_drives(self) -> list[DiskDriveRecord]: ...

    def ip_adapters(self) -> list[AdapterRecord]: ...


class MemoryStatusSource(Protocol):
    def query(self) -> MemoryStatus: ...


class HostStatsSource(Protocol):
    def process_stats(self) -> ProcessStats: ...

    def uptime_ms(self) -> int: ...

    def volume_usage(self, letter: str) -> VolumeUsage: ...


class IdentityResolver(Protocol):
    def resolve(self, raw_name: str) -> str | None: ...
