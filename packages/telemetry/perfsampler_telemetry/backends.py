"""Backend selection for the OS-facing sources."""

from __future__ import annotations

import logging
import platform
from dataclasses import dataclass

from .capabilities import CounterSource, HostStatsSource, InventorySource, MemoryStatusSource

log = logging.getLogger(__name__)

BACKENDS = ("auto", "psutil", "windows")


@dataclass(frozen=True)
class Sources:
    name: str
    counters: CounterSource
    inventory: InventorySource
    memory: MemoryStatusSource
    host: HostStatsSource


def _psutil_sources() -> Sources:
    from .provider import PsutilCounterSource, PsutilHostStats, PsutilInventorySource, PsutilMemoryStatus

    return Sources(
        name="psutil",
        counters=PsutilCounterSource(),
        inventory=PsutilInventorySource(),
        memory=PsutilMemoryStatus(),
        host=PsutilHostStats(),
    )


def _windows_sources() -> Sources:
    from .pdh import PdhCounterSource
    from .provider import PsutilHostStats, PsutilMemoryStatus
    from .wmi import WmiInventorySource

    return Sources(
        name="windows",
        counters=PdhCounterSource(),
        inventory=WmiInventorySource(),
        memory=PsutilMemoryStatus(),
        host=PsutilHostStats(),
    )


def build_sources(backend: str = "auto") -> Sources:
    if backend not in BACKENDS:
        raise ValueError(f"unknown backend {backend!r}; expected one of {', '.join(BACKENDS)}")
    if backend == "windows":
        return _windows_sources()
    if backend == "auto" and platform.system() == "Windows":
        try:
            return _windows_sources()
        except Exception as exc:
            log.warning("windows counter backend unavailable, falling back to psutil: %s", exc)
    return _psutil_sources()
