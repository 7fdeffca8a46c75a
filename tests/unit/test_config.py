import json
import sys
import tempfile
import unittest
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(ROOT / "packages" / "telemetry"))
sys.path.insert(0, str(ROOT / "packages" / "core"))

from perfsampler_core.config import AppConfig, load_config, output_dir, save_config


class ConfigTests(unittest.TestCase):
    def test_load_default_when_missing(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "missing.json"
            cfg = load_config(path)
            self.assertIsInstance(cfg, AppConfig)
            self.assertEqual(cfg.sampling.interval_s, 5.0)
            self.assertEqual(cfg.sampling.warmup_s, 1.0)
            self.assertEqual(cfg.output.log_prefix, "performance")
            self.assertEqual(cfg.counters.backend, "auto")

    def test_save_and_reload(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            cfg = load_config(path)
            cfg.sampling.interval_s = 10.0
            cfg.output.log_directory = str(Path(tmp) / "metrics")
            save_config(cfg, path)
            reloaded = load_config(path)
            self.assertEqual(reloaded.sampling.interval_s, 10.0)
            self.assertEqual(output_dir(reloaded), Path(tmp) / "metrics")

    def test_values_are_normalized(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(
                json.dumps(
                    {
                        "config_version": 2,
                        "sampling": {"interval_s": 0.01, "warmup_s": 500},
                        "counters": {"backend": "wmi"},
                        "diagnostics": {"keep_log_files": 0, "level": "chatty"},
                        "unknown": {"x": 1},
                    }
                ),
                encoding="utf-8",
            )
            cfg = load_config(path)
            self.assertEqual(cfg.sampling.interval_s, 1.0)
            self.assertEqual(cfg.sampling.warmup_s, 60.0)
            self.assertEqual(cfg.counters.backend, "auto")
            self.assertEqual(cfg.diagnostics.keep_log_files, 2)
            self.assertEqual(cfg.diagnostics.level, "INFO")

    def test_warmup_cannot_be_disabled(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps({"config_version": 2, "sampling": {"warmup_s": 0}}), encoding="utf-8")
            self.assertEqual(load_config(path).sampling.warmup_s, 0.5)

    def test_migrate_v1_app_settings_shape(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text(json.dumps({"LogDirectory": "D:\\PerfLogs", "LogPrefix": "host01"}), encoding="utf-8")
            cfg = load_config(path)
            self.assertEqual(cfg.config_version, 2)
            self.assertEqual(cfg.output.log_directory, "D:\\PerfLogs")
            self.assertEqual(cfg.output.log_prefix, "host01")

    def test_corrupt_file_falls_back_to_defaults(self):
        with tempfile.TemporaryDirectory() as tmp:
            path = Path(tmp) / "config.json"
            path.write_text("{not json", encoding="utf-8")
            self.assertEqual(load_config(path), AppConfig())


if __name__ == "__main__":
    unittest.main()
