import sys
import unittest
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from perfsampler_telemetry import backends


class BuildSourcesTests(unittest.TestCase):
    def test_unknown_backend_rejected(self):
        with self.assertRaises(ValueError):
            backends.build_sources("wmi")

    def test_psutil_backend(self):
        try:
            import psutil  # noqa: F401
        except Exception:
            self.skipTest("psutil not installed")
        sources = backends.build_sources("psutil")
        self.assertEqual(sources.name, "psutil")

    def test_auto_falls_back_when_windows_backend_fails(self):
        fallback = object()
        with patch.object(backends.platform, "system", return_value="Windows"), patch.object(
            backends, "_windows_sources", side_effect=OSError("pdh.dll missing")
        ), patch.object(backends, "_psutil_sources", return_value=fallback):
            self.assertIs(backends.build_sources("auto"), fallback)

    def test_auto_uses_psutil_off_windows(self):
        fallback = object()
        with patch.object(backends.platform, "system", return_value="Linux"), patch.object(
            backends, "_windows_sources"
        ) as windows, patch.object(backends, "_psutil_sources", return_value=fallback):
            self.assertIs(backends.build_sources("auto"), fallback)
        windows.assert_not_called()


if __name__ == "__main__":
    unittest.main()
