"""Windows inventory records from WMI, queried through Windows PowerShell."""

from __future__ import annotations

import json
import logging
import subprocess
from typing import Any, Callable

from .capabilities import (
    AdapterRecord,
    DiskDriveRecord,
    InventoryError,
    LogicalDiskLink,
    PartitionRecord,
    ProcessorRecord,
)

log = logging.getLogger(__name__)

QUERY_TIMEOUT_S = 30.0

Runner = Callable[[str], str]


def _powershell(script: str) -> str:
    try:
        return subprocess.check_output(
            ["powershell.exe", "-NoProfile", "-NonInteractive", "-Command", script],
            timeout=QUERY_TIMEOUT_S,
            text=True,
            encoding="utf-8",
            errors="replace",
        )
    except (OSError, subprocess.SubprocessError) as exc:
        raise InventoryError(f"powershell query failed: {exc}") from exc


def _to_int(value: Any) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


def _to_float(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _as_list(value: Any) -> list[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


class WmiInventorySource:
    def __init__(self, runner: Runner | None = None) -> None:
        self._run = runner or _powershell

    def query(self, wql: str, properties: list[str]) -> list[dict[str, Any]]:
        """Run a WQL query and return one dict per object with only ``properties``."""
        script = (
            f"Get-WmiObject -Query '{wql}' | Select-Object {','.join(properties)} "
            "| ConvertTo-Json -Compress -Depth 3"
        )
        output = self._run(script).strip()
        if not output:
            return []
        try:
            data = json.loads(output)
        except json.JSONDecodeError as exc:
            raise InventoryError(f"unreadable WMI output for {wql!r}: {exc}") from exc
        return [row for row in _as_list(data) if isinstance(row, dict)]

    def processors(self) -> list[ProcessorRecord]:
        rows = self.query(
            "SELECT CurrentClockSpeed, MaxClockSpeed, NumberOfCores, NumberOfLogicalProcessors FROM Win32_Processor",
            ["CurrentClockSpeed", "MaxClockSpeed", "NumberOfCores", "NumberOfLogicalProcessors"],
        )
        return [
            ProcessorRecord(
                current_mhz=_to_float(r.get("CurrentClockSpeed")),
                max_mhz=_to_float(r.get("MaxClockSpeed")),
                cores=_to_int(r.get("NumberOfCores")),
                logical=_to_int(r.get("NumberOfLogicalProcessors")),
            )
            for r in rows
        ]

    def disk_partitions(self) -> list[PartitionRecord]:
        rows = self.query("SELECT DeviceID, DiskIndex FROM Win32_DiskPartition", ["DeviceID", "DiskIndex"])
        return [
            PartitionRecord(device_id=str(r.get("DeviceID") or ""), disk_index=_to_int(r.get("DiskIndex")))
            for r in rows
            if r.get("DeviceID")
        ]

    def logical_disk_links(self) -> list[LogicalDiskLink]:
        rows = self.query("SELECT * FROM Win32_LogicalDiskToPartition", ["Antecedent", "Dependent"])
        return [
            LogicalDiskLink(antecedent=str(r.get("Antecedent") or ""), dependent=str(r.get("Dependent") or ""))
            for r in rows
        ]

    def disk_drives(self) -> list[DiskDriveRecord]:
        rows = self.query("SELECT Index, MediaType, Model FROM Win32_DiskDrive", ["Index", "MediaType", "Model"])
        return [
            DiskDriveRecord(
                index=_to_int(r.get("Index")),
                media_type=str(r.get("MediaType") or ""),
                model=str(r.get("Model") or ""),
            )
            for r in rows
        ]

    def ip_adapters(self) -> list[AdapterRecord]:
        configs = self.query(
            "SELECT Index, Description, IPAddress FROM Win32_NetworkAdapterConfiguration WHERE IPEnabled = True",
            ["Index", "Description", "IPAddress"],
        )
        try:
            adapters = self.query(
                "SELECT DeviceID, NetConnectionID FROM Win32_NetworkAdapter", ["DeviceID", "NetConnectionID"]
            )
        except InventoryError as exc:
            log.warning("adapter connection names unavailable: %s", exc)
            adapters = []
        names = {str(a.get("DeviceID")): str(a.get("NetConnectionID") or "") for a in adapters}

        return [
            AdapterRecord(
                description=str(c.get("Description") or ""),
                connection_id=names.get(str(c.get("Index")), ""),
                ip_enabled=True,
                addresses=tuple(str(a) for a in _as_list(c.get("IPAddress")) if a),
            )
            for c in configs
        ]
