import json
import sys
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "tests"))

from fakes import make_sources
from perfsampler_app import cli
from perfsampler_app.cli import build_parser


class CliParserTests(unittest.TestCase):
    def test_run_command(self):
        parser = build_parser()
        args = parser.parse_args(["run", "--interval", "2.5", "--count", "3", "--console"])
        self.assertEqual(args.command, "run")
        self.assertEqual(args.interval, 2.5)
        self.assertEqual(args.count, 3)
        self.assertTrue(args.console)

    def test_run_defaults_to_config_interval(self):
        args = build_parser().parse_args(["run"])
        self.assertIsNone(args.interval)
        self.assertIsNone(args.count)

    def test_snapshot_command(self):
        args = build_parser().parse_args(["--config", "cfg.json", "snapshot", "--stdout"])
        self.assertEqual(args.command, "snapshot")
        self.assertEqual(args.config, "cfg.json")
        self.assertTrue(args.stdout)

    def test_doctor_command(self):
        args = build_parser().parse_args(["doctor", "--skip-discovery"])
        self.assertEqual(args.command, "doctor")
        self.assertTrue(args.skip_discovery)


class CliCommandTests(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = Path(self._tmp.name)
        self.config = self.tmp / "config.json"
        self.config.write_text(
            json.dumps(
                {
                    "config_version": 2,
                    "sampling": {"warmup_s": 0.5},
                    "output": {"log_directory": str(self.tmp / "metrics"), "log_prefix": "perf"},
                }
            ),
            encoding="utf-8",
        )

    def tearDown(self):
        self._tmp.cleanup()

    def test_snapshot_appends_one_tick_to_daily_file(self):
        with patch.object(cli, "build_sources", return_value=make_sources()):
            rc = cli.cmd_snapshot(build_parser().parse_args(["--config", str(self.config), "snapshot"]))
        self.assertEqual(rc, 0)
        files = list((self.tmp / "metrics").glob("perf_*.log"))
        self.assertEqual(len(files), 1)
        text = files[0].read_text(encoding="utf-8")
        self.assertIn(" | CPU | usage=37.5%", text)
        self.assertIn(" | GPU | usage=100.0%", text)

    def test_doctor_prints_topology(self):
        with patch.object(cli, "build_sources", return_value=make_sources()), patch.object(cli, "_print_json") as out:
            rc = cli.cmd_doctor(build_parser().parse_args(["--config", str(self.config), "doctor"]))
        self.assertEqual(rc, 0)
        payload = out.call_args[0][0]
        self.assertEqual(payload["backend"], "fake")
        self.assertEqual([d["index"] for d in payload["topology"]["disks"]], [0, 1])
        self.assertEqual(payload["topology"]["disks"][1]["volumes"], ["D:", "E:"])
        self.assertEqual(payload["topology"]["nics"][0]["ipv4"], "192.168.1.20")


if __name__ == "__main__":
    unittest.main()
