"""Sampling loop: discover once, warm up, then sample and emit on a fixed interval."""

from __future__ import annotations

import logging
import time
from datetime import datetime
from enum import Enum
from typing import Callable

from perfsampler_telemetry import (
    MemoryStatus,
    ProcessorInfo,
    ProcessStats,
    ReadResult,
    SampleReader,
    Sources,
    Topology,
    VolumeUsage,
    active_percent,
    build_topology,
    clamp_percent,
    fmt_bytes,
    fmt_percent,
    fmt_rate,
    fmt_uptime,
    format_line,
)
from perfsampler_telemetry.capabilities import IdentityResolver
from perfsampler_telemetry.formatting import fmt_ghz
from perfsampler_telemetry.models import CounterHandle, DiskEntity

from .sink import LineSink

log = logging.getLogger(__name__)


class SamplerState(str, Enum):
    IDLE = "idle"
    DISCOVERING = "discovering"
    WARMING_UP = "warming_up"
    SAMPLING = "sampling"
    EMITTING = "emitting"


def _rate(result: ReadResult) -> float:
    return max(result.value_or(0.0), 0.0)


class SamplingOrchestrator:
    def __init__(
        self,
        sources: Sources,
        sink: LineSink,
        interval_s: float = 5.0,
        warmup_s: float = 1.0,
        ip_resolver: IdentityResolver | None = None,
        media_resolver: IdentityResolver | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.interval_s = interval_s
        self.warmup_s = warmup_s
        self.state = SamplerState.IDLE
        self.ticks = 0

        self._sources = sources
        self._sink = sink
        self._reader = SampleReader(sources.counters)
        self._ip_resolver = ip_resolver
        self._media_resolver = media_resolver
        self._sleep = sleep
        self._clock = clock
        self._topology: Topology | None = None

    @property
    def topology(self) -> Topology | None:
        return self._topology

    def initialize(self) -> Topology:
        if self._topology is not None:
            return self._topology

        self.state = SamplerState.DISCOVERING
        topology = build_topology(
            self._reader,
            self._sources.inventory,
            ip_resolver=self._ip_resolver,
            media_resolver=self._media_resolver,
        )
        self._topology = topology

        self.state = SamplerState.WARMING_UP
        if self.warmup_s > 0:
            self._sleep(self.warmup_s)
        self.state = SamplerState.SAMPLING
        log.info("sampler ready", extra={"event": "sampler_ready"})
        return topology

    def tick(self) -> list[str]:
        """Sample every entity once and hand the resulting lines to the sink."""
        topology = self.initialize()
        self.state = SamplerState.SAMPLING
        ts = self._clock()

        lines: list[str] = []
        for section in (self._cpu_lines, self._ram_lines, self._disk_lines, self._net_lines, self._gpu_lines):
            try:
                lines.extend(section(topology, ts))
            except Exception:
                log.exception("sampling section %s failed", section.__name__)

        self.state = SamplerState.EMITTING
        self._sink.write(lines, ts)
        self.ticks += 1
        self.state = SamplerState.SAMPLING
        return lines

    def run(self, iterations: int | None = None) -> int:
        """Tick forever, or ``iterations`` times; ``iterations=1`` is a one-shot snapshot."""
        self.initialize()
        count = 0
        while iterations is None or count < iterations:
            self.tick()
            count += 1
            if iterations is not None and count >= iterations:
                break
            self._sleep(self.interval_s)
        return count

    # ---- sources with zero fallbacks ----

    def _read(self, handle: CounterHandle | None) -> ReadResult:
        if handle is None:
            return ReadResult.failed("no counter")
        return self._reader.read(handle)

    def _processor_info(self) -> ProcessorInfo:
        try:
            records = self._sources.inventory.processors()
        except Exception as exc:
            log.debug("processor inventory failed: %s", exc)
            return ProcessorInfo()
        if not records:
            return ProcessorInfo()
        return ProcessorInfo(
            current_mhz=records[0].current_mhz,
            max_mhz=records[0].max_mhz,
            sockets=len(records),
            cores=sum(r.cores for r in records),
            logical=sum(r.logical for r in records),
        )

    def _process_stats(self) -> ProcessStats:
        try:
            return self._sources.host.process_stats()
        except Exception as exc:
            log.debug("process enumeration failed: %s", exc)
            return ProcessStats()

    def _uptime_ms(self) -> int:
        try:
            return self._sources.host.uptime_ms()
        except Exception as exc:
            log.debug("uptime query failed: %s", exc)
            return 0

    def _memory(self) -> MemoryStatus:
        try:
            return self._sources.memory.query()
        except Exception as exc:
            log.debug("memory status query failed: %s", exc)
            return MemoryStatus(total_physical=0, available_physical=0)

    def _volume(self, letter: str) -> VolumeUsage | None:
        try:
            return self._sources.host.volume_usage(letter)
        except Exception as exc:
            log.debug("volume %s not ready: %s", letter, exc)
            return None

    # ---- line sections ----

    def _cpu_lines(self, topology: Topology, ts: datetime) -> list[str]:
        usage = clamp_percent(self._read(topology.cpu).value_or(0.0))
        info = self._processor_info()
        stats = self._process_stats()
        return [
            format_line(
                ts,
                "CPU",
                f"usage={fmt_percent(usage)} speed={fmt_ghz(info.current_mhz)} base={fmt_ghz(info.max_mhz)} "
                f"sockets={info.sockets} cores={info.cores} logical={info.logical}",
            ),
            format_line(
                ts,
                "CPU_ALL",
                f"processes={stats.processes} threads={stats.threads} handles={stats.handles} "
                f"uptime={fmt_uptime(self._uptime_ms())}",
            ),
        ]

    def _ram_lines(self, topology: Topology, ts: datetime) -> list[str]:
        mem = self._memory()
        return [
            format_line(
                ts,
                "RAM",
                f"used={fmt_bytes(mem.used_physical)} total={fmt_bytes(mem.total_physical)} ({mem.percent:.1f}%)",
            )
        ]

    def _disk_lines(self, topology: Topology, ts: datetime) -> list[str]:
        lines: list[str] = []
        total_read = total_write = total_active = 0.0
        reported = active_reported = 0

        for disk in topology.disks:
            vols = ",".join(disk.letters) if disk.letters else "-"
            idle = self._read(disk.idle)
            read_bps = self._read(disk.read_bps)
            write_bps = self._read(disk.write_bps)
            if not (idle.ok or read_bps.ok or write_bps.ok):
                log.debug("disk %d unreadable: %s", disk.index, idle.error)
                lines.append(format_line(ts, "DISK_PHYS", f"disk={disk.index} vols={vols} status=error"))
                continue

            active = active_percent(idle.value) if idle.value is not None else 0.0
            r = _rate(read_bps)
            w = _rate(write_bps)
            total_read += r
            total_write += w
            reported += 1
            if idle.ok:
                total_active += active
                active_reported += 1

            lines.extend(self._disk_entity_lines(disk, vols, active, r, w, ts))

        if reported:
            # Disks without an idle reading carry rates but no active figure.
            mean_active = total_active / active_reported if active_reported else 0.0
            lines.append(
                format_line(
                    ts,
                    "DISK_ALL",
                    f"active={fmt_percent(mean_active)} read={fmt_rate(total_read)} write={fmt_rate(total_write)}",
                )
            )
        return lines

    def _disk_entity_lines(
        self, disk: DiskEntity, vols: str, active: float, r: float, w: float, ts: datetime
    ) -> list[str]:
        usages = [(letter, self._volume(letter)) for letter in disk.letters]
        sum_free = sum(u.free for _l, u in usages if u is not None)
        sum_total = sum(u.total for _l, u in usages if u is not None)

        lines = [
            format_line(
                ts,
                "DISK_PHYS",
                f"disk={disk.index} vols={vols} active={fmt_percent(active)} read={fmt_rate(r)} "
                f"write={fmt_rate(w)} free={fmt_bytes(sum_free)}/{fmt_bytes(sum_total)} type={disk.media_type}",
            )
        ]
        for letter, usage in usages:
            if usage is None:
                lines.append(format_line(ts, "DISK", f"drive={letter} status=not_ready"))
                continue
            lines.append(
                format_line(
                    ts,
                    "DISK",
                    f"drive={letter} active={fmt_percent(active)} read={fmt_rate(r)} write={fmt_rate(w)} "
                    f"free={fmt_bytes(usage.free)}/{fmt_bytes(usage.total)}",
                )
            )
        return lines

    def _net_lines(self, topology: Topology, ts: datetime) -> list[str]:
        if not topology.nics:
            return [format_line(ts, "NET", "none")]

        lines: list[str] = []
        total_up = total_down = 0.0
        for nic in topology.nics:
            ip = nic.ipv4 or "-"
            rx = self._read(nic.rx)
            tx = self._read(nic.tx)
            if not (rx.ok or tx.ok):
                log.debug("network interface %s unreadable: %s", nic.instance, rx.error)
                lines.append(format_line(ts, "NET", f"{nic.instance} status=error ip={ip}"))
                continue
            down = _rate(rx)
            up = _rate(tx)
            total_up += up
            total_down += down
            lines.append(format_line(ts, "NET", f"{nic.instance} up={fmt_rate(up)} down={fmt_rate(down)} ip={ip}"))

        lines.append(format_line(ts, "NET_ALL", f"up={fmt_rate(total_up)} down={fmt_rate(total_down)}"))
        return lines

    def _gpu_lines(self, topology: Topology, ts: datetime) -> list[str]:
        # 3D engines run in parallel; their utilization adds up.
        total = sum(self._read(engine.utilization).value_or(0.0) for engine in topology.gpu_engines)
        return [format_line(ts, "GPU", f"usage={fmt_percent(clamp_percent(total))}")]
