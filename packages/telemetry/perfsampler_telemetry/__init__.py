"""Host counter discovery, identity correlation and sample reading."""

from .backends import Sources, build_sources
from .capabilities import (
    AdapterRecord,
    CategoryUnavailableError,
    DiskDriveRecord,
    InventoryError,
    LogicalDiskLink,
    PartitionRecord,
    ProcessorRecord,
)
from .correlator import (
    MediaTypeResolver,
    SubstringIPv4Resolver,
    classify_media_type,
    extract_quoted_value,
    resolve_disk_volumes,
)
from .discovery import discover, extract_disk_index
from .formatting import fmt_bytes, fmt_percent, fmt_rate, fmt_timestamp, fmt_uptime, format_line
from .models import (
    CounterHandle,
    DiskEntity,
    Family,
    GpuEngineEntity,
    MemoryStatus,
    NicEntity,
    ProcessorInfo,
    ProcessStats,
    ReadResult,
    Topology,
    VolumeUsage,
)
from .reader import SampleReader, active_percent, clamp_percent
from .topology import build_topology

__all__ = [
    "AdapterRecord",
    "CategoryUnavailableError",
    "CounterHandle",
    "DiskDriveRecord",
    "DiskEntity",
    "Family",
    "GpuEngineEntity",
    "InventoryError",
    "LogicalDiskLink",
    "MediaTypeResolver",
    "MemoryStatus",
    "NicEntity",
    "PartitionRecord",
    "ProcessorInfo",
    "ProcessorRecord",
    "ProcessStats",
    "ReadResult",
    "SampleReader",
    "Sources",
    "SubstringIPv4Resolver",
    "Topology",
    "VolumeUsage",
    "active_percent",
    "build_sources",
    "build_topology",
    "clamp_percent",
    "classify_media_type",
    "discover",
    "extract_disk_index",
    "extract_quoted_value",
    "fmt_bytes",
    "fmt_percent",
    "fmt_rate",
    "fmt_timestamp",
    "fmt_uptime",
    "format_line",
    "resolve_disk_volumes",
]
