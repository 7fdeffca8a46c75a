"""Entity discovery over the counter subsystem."""

from __future__ import annotations

import logging

from .capabilities import CategoryUnavailableError, CounterSource

log = logging.getLogger(__name__)

TOTAL_INSTANCE = "_Total"
GPU_3D_MARKER = "engtype_3d"

CATEGORY_PROCESSOR = "Processor"
CATEGORY_DISK = "PhysicalDisk"
CATEGORY_NET = "Network Interface"
CATEGORY_GPU = "GPU Engine"

METRIC_PROCESSOR_TIME = "% Processor Time"
METRIC_DISK_IDLE = "% Idle Time"
METRIC_DISK_READ = "Disk Read Bytes/sec"
METRIC_DISK_WRITE = "Disk Write Bytes/sec"
METRIC_NET_RX = "Bytes Received/sec"
METRIC_NET_TX = "Bytes Sent/sec"
METRIC_GPU_UTILIZATION = "Utilization Percentage"


def discover(source: CounterSource, category: str) -> list[str]:
    """Return per-entity instance names of ``category``; empty when the family is unsupported."""
    try:
        names = source.list_instances(category)
    except CategoryUnavailableError as exc:
        log.warning("counter category unavailable: %s (%s)", category, exc)
        return []
    except Exception as exc:
        log.warning("instance enumeration failed for %s: %s", category, exc)
        return []

    seen: set[str] = set()
    out: list[str] = []
    for name in names:
        if not name or name == TOTAL_INSTANCE or name in seen:
            continue
        if category == CATEGORY_GPU and GPU_3D_MARKER not in name.lower():
            continue
        seen.add(name)
        out.append(name)
    log.debug("discovered %d %s instance(s)", len(out), category)
    return out


def extract_disk_index(instance: str) -> int | None:
    """Leading integer of a physical disk instance name (``"0 C:"`` -> 0)."""
    stripped = instance.lstrip()
    end = 0
    while end < len(stripped) and stripped[end].isdigit():
        end += 1
    if end == 0:
        return None
    try:
        return int(stripped[:end])
    except ValueError:
        return None
