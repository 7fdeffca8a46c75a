"""Doctor payload describing the host, settings and discovered topology."""

from __future__ import annotations

import platform
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any

from perfsampler_telemetry import Topology

from .config import AppConfig, config_path, output_dir


def describe_topology(topology: Topology) -> dict[str, Any]:
    return {
        "cpu": topology.cpu.instance if topology.cpu else None,
        "disks": [
            {
                "index": d.index,
                "instance": d.instance,
                "volumes": list(d.letters),
                "type": d.media_type,
            }
            for d in topology.disks
        ],
        "nics": [{"instance": n.instance, "ipv4": n.ipv4} for n in topology.nics],
        "gpu_engines": [g.instance for g in topology.gpu_engines],
    }


def build_doctor_payload(cfg: AppConfig, backend: str, topology: Topology | None = None) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "ts_utc": datetime.now(timezone.utc).isoformat(),
        "platform": platform.platform(),
        "python": platform.python_version(),
        "backend": backend,
        "config_path": str(config_path()),
        "output_dir": str(output_dir(cfg)),
        "config": asdict(cfg),
    }
    if topology is not None:
        payload["topology"] = describe_topology(topology)
    return payload
