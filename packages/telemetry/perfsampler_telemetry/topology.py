"""One-shot discovery and correlation producing the static sampling topology."""

from __future__ import annotations

import logging

from .capabilities import IdentityResolver, InventorySource
from .correlator import MediaTypeResolver, SubstringIPv4Resolver, resolve_disk_volumes
from .discovery import (
    CATEGORY_DISK,
    CATEGORY_GPU,
    CATEGORY_NET,
    CATEGORY_PROCESSOR,
    METRIC_DISK_IDLE,
    METRIC_DISK_READ,
    METRIC_DISK_WRITE,
    METRIC_GPU_UTILIZATION,
    METRIC_NET_RX,
    METRIC_NET_TX,
    METRIC_PROCESSOR_TIME,
    TOTAL_INSTANCE,
    discover,
    extract_disk_index,
)
from .models import CounterHandle, DiskEntity, Family, GpuEngineEntity, NicEntity, Topology
from .reader import SampleReader

log = logging.getLogger(__name__)


class _MediaLookup:
    def __init__(self, inventory: InventorySource) -> None:
        try:
            drives = inventory.disk_drives()
        except Exception as exc:
            log.warning("disk drive inventory unavailable: %s", exc)
            drives = []
        self._resolver = MediaTypeResolver(drives)

    def resolve(self, raw_name: str) -> str | None:
        index = extract_disk_index(raw_name)
        if index is None:
            return None
        return self._resolver.resolve(index)


def _disk_volume_map(inventory: InventorySource) -> dict[int, list[str]]:
    try:
        partitions = inventory.disk_partitions()
        links = inventory.logical_disk_links()
    except Exception as exc:
        log.warning("disk/volume association unavailable: %s", exc)
        return {}
    return resolve_disk_volumes(partitions, links)


def _ip_resolver(inventory: InventorySource) -> IdentityResolver:
    try:
        adapters = inventory.ip_adapters()
    except Exception as exc:
        log.warning("adapter inventory unavailable: %s", exc)
        adapters = []
    return SubstringIPv4Resolver(adapters)


def _cpu_handle(reader: SampleReader) -> CounterHandle | None:
    try:
        return reader.create(Family.CPU, CATEGORY_PROCESSOR, METRIC_PROCESSOR_TIME, TOTAL_INSTANCE)
    except Exception as exc:
        log.warning("processor counter unavailable: %s", exc)
        return None


def _disks(reader: SampleReader, inventory: InventorySource, media: IdentityResolver) -> tuple[DiskEntity, ...]:
    volumes = _disk_volume_map(inventory)
    disks: dict[int, DiskEntity] = {}
    for inst in discover(reader.source, CATEGORY_DISK):
        index = extract_disk_index(inst)
        if index is None or index in disks:
            continue
        try:
            idle = reader.create(Family.DISK, CATEGORY_DISK, METRIC_DISK_IDLE, inst, index)
            read_bps = reader.create(Family.DISK, CATEGORY_DISK, METRIC_DISK_READ, inst, index)
            write_bps = reader.create(Family.DISK, CATEGORY_DISK, METRIC_DISK_WRITE, inst, index)
        except Exception as exc:
            log.warning("skipping disk %s: %s", inst, exc)
            continue
        disks[index] = DiskEntity(
            index=index,
            instance=inst,
            letters=tuple(volumes.get(index, ())),
            idle=idle,
            read_bps=read_bps,
            write_bps=write_bps,
            media_type=media.resolve(inst) or "Unknown",
        )
    return tuple(disks[i] for i in sorted(disks))


def _nics(reader: SampleReader, resolver: IdentityResolver) -> tuple[NicEntity, ...]:
    nics: list[NicEntity] = []
    for inst in discover(reader.source, CATEGORY_NET):
        try:
            rx = reader.create(Family.NET, CATEGORY_NET, METRIC_NET_RX, inst)
            tx = reader.create(Family.NET, CATEGORY_NET, METRIC_NET_TX, inst)
        except Exception as exc:
            log.warning("skipping network interface %s: %s", inst, exc)
            continue
        nics.append(NicEntity(instance=inst, rx=rx, tx=tx, ipv4=resolver.resolve(inst)))
    return tuple(nics)


def _gpu_engines(reader: SampleReader) -> tuple[GpuEngineEntity, ...]:
    engines: list[GpuEngineEntity] = []
    for inst in discover(reader.source, CATEGORY_GPU):
        try:
            util = reader.create(Family.GPU, CATEGORY_GPU, METRIC_GPU_UTILIZATION, inst)
        except Exception as exc:
            log.warning("skipping gpu engine %s: %s", inst, exc)
            continue
        engines.append(GpuEngineEntity(instance=inst, utilization=util))
    return tuple(engines)


def build_topology(
    reader: SampleReader,
    inventory: InventorySource,
    ip_resolver: IdentityResolver | None = None,
    media_resolver: IdentityResolver | None = None,
) -> Topology:
    """Discover entities, resolve their identities and create warmed-up counters."""
    topology = Topology(
        cpu=_cpu_handle(reader),
        disks=_disks(reader, inventory, media_resolver or _MediaLookup(inventory)),
        nics=_nics(reader, ip_resolver or _ip_resolver(inventory)),
        gpu_engines=_gpu_engines(reader),
    )
    log.info(
        "topology built: disks=%d nics=%d gpu_engines=%d",
        len(topology.disks),
        len(topology.nics),
        len(topology.gpu_engines),
    )
    return topology
