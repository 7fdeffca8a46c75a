import sys
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))

from perfsampler_telemetry.capabilities import CategoryUnavailableError
from perfsampler_telemetry.pdh import PdhCounterSource, PdhError, counter_path, parse_multi_sz

PDH_CSTATUS_NO_OBJECT = 0xC0000BB8
PDH_CSTATUS_NO_COUNTER = 0xC0000BB9


class FakePdh:
    def __init__(self, add_status=0, enum_status=0):
        self.add_status = add_status
        self.enum_status = enum_status
        self.added = []
        self.closed = 0

    def PdhOpenQueryW(self, source, user_data, query_ref):
        return 0

    def PdhAddEnglishCounterW(self, query, path, user_data, counter_ref):
        self.added.append(path)
        return self.add_status

    def PdhCloseQuery(self, query):
        self.closed += 1
        return 0

    def PdhEnumObjectItemsW(self, *args):
        return self.enum_status


class PdhHelperTests(unittest.TestCase):
    def test_parse_multi_sz_stops_at_double_null(self):
        self.assertEqual(parse_multi_sz("0 C:\x001 D: E:\x00_Total\x00\x00stale\x00"), ["0 C:", "1 D: E:", "_Total"])
        self.assertEqual(parse_multi_sz("\x00"), [])
        self.assertEqual(parse_multi_sz(""), [])

    def test_counter_path(self):
        self.assertEqual(
            counter_path("Network Interface", "Bytes Sent/sec", "Intel[R] Ethernet"),
            "\\Network Interface(Intel[R] Ethernet)\\Bytes Sent/sec",
        )

    def test_error_keeps_unsigned_status(self):
        err = PdhError("PdhCollectQueryData", -1073738824)
        self.assertEqual(err.status, PDH_CSTATUS_NO_OBJECT)
        self.assertIn("0xc0000bb8", str(err))


class PdhCounterSourceTests(unittest.TestCase):
    def test_create_counter_uses_english_path(self):
        pdh = FakePdh()
        token = PdhCounterSource(pdh).create_counter("PhysicalDisk", "% Idle Time", "0 C:")
        self.assertEqual(pdh.added, ["\\PhysicalDisk(0 C:)\\% Idle Time"])
        self.assertEqual(token.path, "\\PhysicalDisk(0 C:)\\% Idle Time")
        self.assertEqual(pdh.closed, 0)

    def test_failed_add_closes_query(self):
        pdh = FakePdh(add_status=PDH_CSTATUS_NO_COUNTER)
        with self.assertRaises(PdhError):
            PdhCounterSource(pdh).create_counter("PhysicalDisk", "Bogus", "0 C:")
        self.assertEqual(pdh.closed, 1)

    def test_missing_category_is_unavailable(self):
        pdh = FakePdh(enum_status=PDH_CSTATUS_NO_OBJECT)
        with self.assertRaises(CategoryUnavailableError):
            PdhCounterSource(pdh).list_instances("GPU Engine")

    def test_category_without_items(self):
        self.assertEqual(PdhCounterSource(FakePdh()).list_instances("GPU Engine"), [])


if __name__ == "__main__":
    unittest.main()
