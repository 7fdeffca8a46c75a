"""Identity correlation between counter instances and inventory records.

Counter instance names and inventory objects share no key, so everything here
is either a relational join on parsed object paths (disk volumes) or a
best-effort heuristic (media type, adapter addresses).
"""

from __future__ import annotations

import logging
from typing import Iterable

from .capabilities import AdapterRecord, DiskDriveRecord, LogicalDiskLink, PartitionRecord

log = logging.getLogger(__name__)

MEDIA_SSD = "SSD"
MEDIA_HDD = "HDD"
MEDIA_UNKNOWN = "Unknown"

# Characters the counter subsystem rewrites in instance names.
_INSTANCE_MANGLING = str.maketrans({"(": "[", ")": "]", "#": "_", "/": "_", "\\": "_"})


def extract_quoted_value(path: str | None) -> str | None:
    if not path:
        return None
    start = path.find('"')
    if start < 0:
        return None
    end = path.find('"', start + 1)
    if end < 0:
        return None
    return path[start + 1 : end]


def resolve_disk_volumes(
    partitions: Iterable[PartitionRecord],
    links: Iterable[LogicalDiskLink],
) -> dict[int, list[str]]:
    """Join partition->disk and volume->partition relations into disk index -> letters."""
    part_to_disk: dict[str, int] = {}
    for part in partitions:
        if part.device_id:
            part_to_disk[part.device_id.casefold()] = part.disk_index

    mapping: dict[int, list[str]] = {}
    owner: dict[str, int] = {}
    for link in links:
        part_id = extract_quoted_value(link.antecedent)
        letter = extract_quoted_value(link.dependent)
        if not part_id or not letter:
            continue
        disk_index = part_to_disk.get(part_id.casefold())
        if disk_index is None:
            continue

        previous = owner.get(letter)
        if previous is not None and previous != disk_index:
            log.warning("volume %s mapped to disk %d and disk %d; keeping %d", letter, previous, disk_index, disk_index)
            mapping[previous].remove(letter)
        owner[letter] = disk_index

        letters = mapping.setdefault(disk_index, [])
        if letter not in letters:
            letters.append(letter)
    return mapping


def classify_media_type(media_type: str | None, model: str | None) -> str:
    media = (media_type or "").lower()
    name = (model or "").lower()
    if "ssd" in media:
        return MEDIA_SSD
    if "nvme" in name or "ssd" in name:
        return MEDIA_SSD
    if "fixed" in media:
        return MEDIA_HDD
    return MEDIA_UNKNOWN


class MediaTypeResolver:
    def __init__(self, drives: Iterable[DiskDriveRecord]) -> None:
        self._by_index: dict[int, str] = {}
        for drive in drives:
            # First record for an index decides.
            self._by_index.setdefault(drive.index, classify_media_type(drive.media_type, drive.model))

    def resolve(self, disk_index: int) -> str:
        return self._by_index.get(disk_index, MEDIA_UNKNOWN)


def normalize_instance_name(name: str) -> str:
    return name.translate(_INSTANCE_MANGLING).casefold()


def first_ipv4(addresses: Iterable[str]) -> str | None:
    for addr in addresses:
        if addr and ":" not in addr:
            return addr
    return None


class SubstringIPv4Resolver:
    """Resolve a network counter instance to an IPv4 address by substring containment."""

    def __init__(self, adapters: Iterable[AdapterRecord]) -> None:
        self._addresses: dict[str, str] = {}
        for adapter in adapters:
            if not adapter.ip_enabled:
                continue
            ip = first_ipv4(adapter.addresses)
            if ip is None:
                continue
            for key in (adapter.description, adapter.connection_id):
                if key:
                    self._addresses.setdefault(normalize_instance_name(key), ip)

    @property
    def addresses(self) -> dict[str, str]:
        return dict(self._addresses)

    def resolve(self, raw_name: str) -> str | None:
        needle = normalize_instance_name(raw_name)
        if not needle:
            return None
        exact = self._addresses.get(needle)
        if exact is not None:
            return exact

        # Longest overlapping key, so "eth1" never claims "eth10"; ties keep inventory order.
        best: tuple[int, str] | None = None
        for key, ip in self._addresses.items():
            if (key in needle or needle in key) and (best is None or len(key) > best[0]):
                best = (len(key), ip)
        return best[1] if best is not None else None
