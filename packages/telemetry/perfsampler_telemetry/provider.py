"""Cross-platform counter, inventory and host sources with graceful GPU fallbacks."""

from __future__ import annotations

import socket
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import psutil

from .capabilities import (
    AdapterRecord,
    CategoryUnavailableError,
    DiskDriveRecord,
    LogicalDiskLink,
    PartitionRecord,
    ProcessorRecord,
)
from .discovery import (
    CATEGORY_DISK,
    CATEGORY_GPU,
    CATEGORY_NET,
    CATEGORY_PROCESSOR,
    GPU_3D_MARKER,
    METRIC_DISK_IDLE,
    METRIC_DISK_READ,
    METRIC_DISK_WRITE,
    METRIC_GPU_UTILIZATION,
    METRIC_NET_RX,
    METRIC_NET_TX,
    METRIC_PROCESSOR_TIME,
    TOTAL_INSTANCE,
)
from .models import MemoryStatus, ProcessStats, VolumeUsage

_SYS_BLOCK = Path("/sys/class/block")
_VIRTUAL_DISK_PREFIXES = ("loop", "ram", "zram", "dm-", "md", "sr", "fd")

_METRICS = {
    CATEGORY_PROCESSOR: {METRIC_PROCESSOR_TIME},
    CATEGORY_DISK: {METRIC_DISK_IDLE, METRIC_DISK_READ, METRIC_DISK_WRITE},
    CATEGORY_NET: {METRIC_NET_RX, METRIC_NET_TX},
    CATEGORY_GPU: {METRIC_GPU_UTILIZATION},
}


class _GpuAdapter:
    def engines(self) -> list[str]:
        raise CategoryUnavailableError("no GPU telemetry backend")

    def utilization(self, index: int) -> float:
        raise CategoryUnavailableError("no GPU telemetry backend")


class _NvmlGpuAdapter(_GpuAdapter):
    def __init__(self) -> None:
        import pynvml  # type: ignore

        self._nvml = pynvml
        pynvml.nvmlInit()

    def engines(self) -> list[str]:
        count = self._nvml.nvmlDeviceGetCount()
        return [f"gpu{i}_engtype_3D" for i in range(count)]

    def utilization(self, index: int) -> float:
        nvml = self._nvml
        h = nvml.nvmlDeviceGetHandleByIndex(index)
        return float(nvml.nvmlDeviceGetUtilizationRates(h).gpu)


def _build_gpu_adapter() -> _GpuAdapter:
    try:
        return _NvmlGpuAdapter()
    except Exception:
        return _GpuAdapter()


def _read_sys(path: Path) -> str | None:
    try:
        return path.read_text(encoding="utf-8").strip()
    except OSError:
        return None


def _is_partition(name: str) -> bool:
    return (_SYS_BLOCK / name / "partition").exists()


def physical_disks() -> list[str]:
    """Whole-disk device names in a stable order; the position is the disk index."""
    counters = psutil.disk_io_counters(perdisk=True) or {}
    return sorted(
        name for name in counters if not name.startswith(_VIRTUAL_DISK_PREFIXES) and not _is_partition(name)
    )


def _parent_disk(name: str, disks: list[str]) -> str | None:
    if name in disks:
        return name
    if _is_partition(name):
        try:
            parent = (_SYS_BLOCK / name).resolve().parent.name
        except OSError:
            return None
        return parent if parent in disks else None
    return None


@dataclass(frozen=True)
class _Volume:
    disk_index: int
    partition: str
    mountpoint: str

    @property
    def partition_id(self) -> str:
        return f"Disk #{self.disk_index}, Partition {self.partition}"


def _volume_layout() -> list[_Volume]:
    disks = physical_disks()
    volumes: list[_Volume] = []
    for part in psutil.disk_partitions(all=False):
        name = Path(part.device).name
        disk = _parent_disk(name, disks)
        if disk is None:
            continue
        number = _read_sys(_SYS_BLOCK / name / "partition") or "0"
        volumes.append(_Volume(disk_index=disks.index(disk), partition=f"#{number}", mountpoint=part.mountpoint))
    return volumes


def _is_loopback(name: str, stats: dict[str, Any]) -> bool:
    st = stats.get(name)
    if st is not None and "loopback" in getattr(st, "flags", ""):
        return True
    return name == "lo" or name.lower().startswith("loopback")


@dataclass
class _PsutilCounter:
    category: str
    metric: str
    key: str | int | None
    prev_value: float | None = None
    prev_total: float | None = None
    prev_ts: float = 0.0


class PsutilCounterSource:
    """Counter subsystem over psutil cumulative counters.

    Every counter keeps its own baseline; the first read of a rate counter
    returns 0.0 and later reads return the delta over the elapsed time.
    """

    def __init__(self) -> None:
        self._gpu = _build_gpu_adapter()

    def list_instances(self, category: str) -> list[str]:
        if category == CATEGORY_PROCESSOR:
            return [TOTAL_INSTANCE] + [str(i) for i in range(psutil.cpu_count() or 0)]
        if category == CATEGORY_DISK:
            return [TOTAL_INSTANCE] + [f"{i} {name}" for i, name in enumerate(physical_disks())]
        if category == CATEGORY_NET:
            stats = psutil.net_if_stats()
            return [n for n in (psutil.net_io_counters(pernic=True) or {}) if not _is_loopback(n, stats)]
        if category == CATEGORY_GPU:
            return self._gpu.engines()
        raise CategoryUnavailableError(f"unknown counter category: {category}")

    def create_counter(self, category: str, metric: str, instance: str) -> _PsutilCounter:
        if category not in _METRICS:
            raise CategoryUnavailableError(f"unknown counter category: {category}")
        if metric not in _METRICS[category]:
            raise ValueError(f"unknown counter {category}\\{metric}")

        key: str | int | None
        if category == CATEGORY_PROCESSOR:
            key = None if instance == TOTAL_INSTANCE else int(instance)
        elif category == CATEGORY_DISK:
            _index, _sep, key = instance.partition(" ")
            if not key:
                raise ValueError(f"unrecognised disk instance: {instance!r}")
        elif category == CATEGORY_GPU:
            if GPU_3D_MARKER not in instance.lower() or not instance.startswith("gpu"):
                raise ValueError(f"unrecognised gpu engine instance: {instance!r}")
            key = int(instance[3:].split("_", 1)[0])
        else:
            key = instance
        return _PsutilCounter(category=category, metric=metric, key=key)

    def read_value(self, token: _PsutilCounter) -> float:
        if token.category == CATEGORY_PROCESSOR:
            return self._processor_time(token)
        if token.category == CATEGORY_GPU:
            return self._gpu.utilization(int(token.key))  # type: ignore[arg-type]

        now = time.monotonic()
        raw = self._raw(token)
        prev, prev_ts = token.prev_value, token.prev_ts
        token.prev_value, token.prev_ts = raw, now
        if prev is None:
            return 0.0
        elapsed = max(now - prev_ts, 1e-6)

        if token.metric == METRIC_DISK_IDLE:
            busy_pct = max(raw - prev, 0.0) / (elapsed * 1000.0) * 100.0
            return 100.0 - busy_pct
        return max(raw - prev, 0.0) / elapsed

    def _raw(self, token: _PsutilCounter) -> float:
        if token.category == CATEGORY_DISK:
            counters = psutil.disk_io_counters(perdisk=True) or {}
            dio = counters.get(str(token.key))
            if dio is None:
                raise RuntimeError(f"disk {token.key} is not present")
            if token.metric == METRIC_DISK_READ:
                return float(dio.read_bytes)
            if token.metric == METRIC_DISK_WRITE:
                return float(dio.write_bytes)
            busy = getattr(dio, "busy_time", None)
            return float(busy if busy is not None else dio.read_time + dio.write_time)

        counters = psutil.net_io_counters(pernic=True) or {}
        nio = counters.get(str(token.key))
        if nio is None:
            raise RuntimeError(f"network interface {token.key} is not present")
        return float(nio.bytes_recv if token.metric == METRIC_NET_RX else nio.bytes_sent)

    @staticmethod
    def _processor_time(token: _PsutilCounter) -> float:
        if token.key is None:
            times = psutil.cpu_times()
        else:
            times = psutil.cpu_times(percpu=True)[int(token.key)]
        # guest time is already accounted in user/nice on Linux
        total = float(sum(times)) - getattr(times, "guest", 0.0) - getattr(times, "guest_nice", 0.0)
        idle = float(times.idle + getattr(times, "iowait", 0.0))

        prev_total, prev_idle = token.prev_total, token.prev_value
        token.prev_total, token.prev_value = total, idle
        if prev_total is None or prev_idle is None:
            return 0.0
        d_total = total - prev_total
        if d_total <= 0:
            return 0.0
        return (1.0 - max(idle - prev_idle, 0.0) / d_total) * 100.0


class PsutilInventorySource:
    """Inventory records shaped like the Windows association classes."""

    def processors(self) -> list[ProcessorRecord]:
        freq = psutil.cpu_freq()
        return [
            ProcessorRecord(
                current_mhz=float(freq.current) if freq else 0.0,
                max_mhz=float(freq.max) if freq else 0.0,
                cores=psutil.cpu_count(logical=False) or 0,
                logical=psutil.cpu_count() or 0,
            )
        ]

    def disk_partitions(self) -> list[PartitionRecord]:
        seen: dict[str, PartitionRecord] = {}
        for vol in _volume_layout():
            seen.setdefault(vol.partition_id, PartitionRecord(device_id=vol.partition_id, disk_index=vol.disk_index))
        return list(seen.values())

    def logical_disk_links(self) -> list[LogicalDiskLink]:
        return [
            LogicalDiskLink(
                antecedent=f'DiskPartition.DeviceID="{vol.partition_id}"',
                dependent=f'LogicalDisk.DeviceID="{vol.mountpoint}"',
            )
            for vol in _volume_layout()
        ]

    def disk_drives(self) -> list[DiskDriveRecord]:
        records = []
        for index, name in enumerate(physical_disks()):
            rotational = _read_sys(_SYS_BLOCK / name / "queue" / "rotational")
            if rotational == "0":
                media = "Solid state drive (SSD)"
            elif rotational == "1":
                media = "Fixed hard disk media"
            else:
                media = ""
            model = _read_sys(_SYS_BLOCK / name / "device" / "model") or ""
            records.append(DiskDriveRecord(index=index, media_type=media, model=model))
        return records

    def ip_adapters(self) -> list[AdapterRecord]:
        stats = psutil.net_if_stats()
        records = []
        for name, addrs in psutil.net_if_addrs().items():
            st = stats.get(name)
            records.append(
                AdapterRecord(
                    description=name,
                    connection_id=name,
                    ip_enabled=bool(st.isup) if st is not None else True,
                    addresses=tuple(
                        a.address for a in addrs if a.family in (socket.AF_INET, socket.AF_INET6) and a.address
                    ),
                )
            )
        return records


class PsutilMemoryStatus:
    def query(self) -> MemoryStatus:
        vm = psutil.virtual_memory()
        return MemoryStatus(total_physical=int(vm.total), available_physical=int(vm.available))


class PsutilHostStats:
    def process_stats(self) -> ProcessStats:
        handle_attr = "num_handles" if psutil.WINDOWS else "num_fds"
        processes = threads = handles = 0
        for proc in psutil.process_iter(["num_threads", handle_attr]):
            info = proc.info
            processes += 1
            threads += info.get("num_threads") or 0
            handles += info.get(handle_attr) or 0
        return ProcessStats(processes=processes, threads=threads, handles=handles)

    def uptime_ms(self) -> int:
        return int(max(time.time() - psutil.boot_time(), 0.0) * 1000)

    def volume_usage(self, letter: str) -> VolumeUsage:
        path = letter + "\\" if letter.endswith(":") else letter
        usage = psutil.disk_usage(path)
        return VolumeUsage(free=int(usage.free), total=int(usage.total))
