import sys
import unittest
from datetime import datetime
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from perfsampler_telemetry.formatting import (
    fmt_bytes,
    fmt_ghz,
    fmt_percent,
    fmt_rate,
    fmt_timestamp,
    fmt_uptime,
    format_line,
)


def _parse(text: str, units: tuple[str, ...]) -> tuple[float, int]:
    for i in reversed(range(len(units))):
        if text.endswith(units[i]) and text[: -len(units[i])].replace(".", "", 1).isdigit():
            return float(text[: -len(units[i])]), i
    raise AssertionError(f"unparseable {text!r}")


class FormattingTests(unittest.TestCase):
    def test_bytes_scale_through_units(self):
        self.assertEqual(fmt_bytes(0), "0.0B")
        self.assertEqual(fmt_bytes(1023), "1023.0B")
        self.assertEqual(fmt_bytes(1024), "1.0KB")
        self.assertEqual(fmt_bytes(1536), "1.5KB")
        self.assertEqual(fmt_bytes(16 * 1024**3), "16.0GB")
        self.assertEqual(fmt_bytes(3 * 1024**5), "3.0PB")
        self.assertEqual(fmt_bytes(2048 * 1024**5), "2048.0PB")

    def test_bytes_value_and_unit_reconstruct_input(self):
        units = ("B", "KB", "MB", "GB", "TB", "PB")
        for b in (1, 999, 1024, 5000, 123456789, 7 * 1024**4 + 12345, 1024**5):
            value, unit = _parse(fmt_bytes(b), units)
            self.assertGreaterEqual(value, 1.0)
            self.assertLess(value, 1024.0)
            self.assertAlmostEqual(value * 1024**unit, b, delta=0.05 * 1024**unit)

    def test_rate_caps_at_gigabytes(self):
        self.assertEqual(fmt_rate(512), "512.0B/s")
        self.assertEqual(fmt_rate(1536), "1.5KB/s")
        self.assertEqual(fmt_rate(1024**3), "1.0GB/s")
        self.assertEqual(fmt_rate(2**40), "1024.0GB/s")
        self.assertNotIn("TB", fmt_rate(2**50))

    def test_uptime(self):
        self.assertEqual(fmt_uptime(0), "0d 00:00:00")
        self.assertEqual(fmt_uptime(90_061_000), "1d 01:01:01")
        self.assertEqual(fmt_uptime(59_999), "0d 00:00:59")
        self.assertEqual(fmt_uptime(-5), "0d 00:00:00")

    def test_percent_and_clock(self):
        self.assertEqual(fmt_percent(12.34), "12.3%")
        self.assertEqual(fmt_ghz(3400), "3.40GHz")
        self.assertEqual(fmt_ghz(0), "0.00GHz")

    def test_line_schema(self):
        ts = datetime(2024, 1, 2, 3, 4, 5)
        self.assertEqual(fmt_timestamp(ts), "2024-01-02 03:04:05")
        self.assertEqual(format_line(ts, "GPU", "usage=1.0%"), "2024-01-02 03:04:05 | GPU | usage=1.0%")


if __name__ == "__main__":
    unittest.main()
