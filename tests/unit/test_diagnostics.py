import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))
sys.path.insert(0, str(ROOT / "packages" / "core"))

from perfsampler_core.config import load_config
from perfsampler_core.diagnostics import build_doctor_payload
from perfsampler_telemetry.models import CounterHandle, DiskEntity, Family, NicEntity, Topology


def _handle(family, instance):
    return CounterHandle(family=family, category="c", metric="m", instance=instance)


class DiagnosticsTests(unittest.TestCase):
    def test_payload_without_topology(self):
        cfg = load_config(Path("/tmp/nonexistent-perfsampler-config.json"))
        payload = build_doctor_payload(cfg, "psutil")
        self.assertEqual(payload["backend"], "psutil")
        self.assertEqual(payload["config"]["sampling"]["interval_s"], 5.0)
        self.assertNotIn("topology", payload)

    def test_payload_describes_topology(self):
        cfg = load_config(Path("/tmp/nonexistent-perfsampler-config.json"))
        disk = DiskEntity(
            index=0,
            instance="0 C:",
            letters=("C:",),
            idle=_handle(Family.DISK, "0 C:"),
            read_bps=_handle(Family.DISK, "0 C:"),
            write_bps=_handle(Family.DISK, "0 C:"),
            media_type="SSD",
        )
        nic = NicEntity(instance="Ethernet", rx=_handle(Family.NET, "Ethernet"), tx=_handle(Family.NET, "Ethernet"))
        topo = Topology(cpu=None, disks=(disk,), nics=(nic,))
        payload = build_doctor_payload(cfg, "windows", topo)
        self.assertEqual(
            payload["topology"],
            {
                "cpu": None,
                "disks": [{"index": 0, "instance": "0 C:", "volumes": ["C:"], "type": "SSD"}],
                "nics": [{"instance": "Ethernet", "ipv4": None}],
                "gpu_engines": [],
            },
        )


if __name__ == "__main__":
    unittest.main()
