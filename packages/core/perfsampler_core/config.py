"""Persistent sampler settings schema and load/save helpers."""

from __future__ import annotations

import json
import os
import platform
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any


CONFIG_VERSION = 2
CONFIG_ENV = "PERFSAMPLER_CONFIG"
BACKENDS = ("auto", "psutil", "windows")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")
# Rate counters need one settled interval before the first reported sample.
MIN_WARMUP_S = 0.5


@dataclass
class SamplingConfig:
    interval_s: float = 5.0
    warmup_s: float = 1.0


@dataclass
class OutputConfig:
    log_directory: str | None = None
    log_prefix: str = "performance"
    console: bool = False


@dataclass
class CountersConfig:
    backend: str = "auto"


@dataclass
class DiagnosticsConfig:
    keep_log_files: int = 7
    level: str = "INFO"


@dataclass
class AppConfig:
    config_version: int = CONFIG_VERSION
    sampling: SamplingConfig = field(default_factory=SamplingConfig)
    output: OutputConfig = field(default_factory=OutputConfig)
    counters: CountersConfig = field(default_factory=CountersConfig)
    diagnostics: DiagnosticsConfig = field(default_factory=DiagnosticsConfig)


DEFAULT_CONFIG = AppConfig()


def config_root() -> Path:
    system = platform.system()
    if system == "Windows":
        base = Path(os.environ.get("APPDATA", Path.home() / "AppData" / "Roaming"))
        return base / "PerfSampler"
    if system == "Darwin":
        return Path.home() / "Library" / "Application Support" / "PerfSampler"
    return Path.home() / ".config" / "perfsampler"


def config_path() -> Path:
    override = os.environ.get(CONFIG_ENV)
    if override:
        return Path(override).expanduser()
    return config_root() / "config.json"


def default_output_dir() -> Path:
    if platform.system() == "Windows":
        return Path("C:\\Logs")
    return Path.home() / ".local" / "share" / "perfsampler" / "metrics"


def output_dir(cfg: AppConfig) -> Path:
    if cfg.output.log_directory:
        return Path(cfg.output.log_directory).expanduser()
    return default_output_dir()


def _merge(dataclass_type, raw: dict[str, Any]):
    defaults = dataclass_type()  # type: ignore[misc]
    for k, v in (raw or {}).items():
        if hasattr(defaults, k):
            setattr(defaults, k, v)
    return defaults


def _normalize_sampling(cfg: AppConfig) -> None:
    cfg.sampling.interval_s = max(1.0, min(3600.0, float(cfg.sampling.interval_s)))
    cfg.sampling.warmup_s = max(MIN_WARMUP_S, min(60.0, float(cfg.sampling.warmup_s)))


def _normalize_output(cfg: AppConfig) -> None:
    if not cfg.output.log_prefix:
        cfg.output.log_prefix = "performance"
    if cfg.output.log_directory == "":
        cfg.output.log_directory = None
    cfg.output.console = bool(cfg.output.console)


def _normalize_counters(cfg: AppConfig) -> None:
    if cfg.counters.backend not in BACKENDS:
        cfg.counters.backend = "auto"


def _normalize_diagnostics(cfg: AppConfig) -> None:
    cfg.diagnostics.keep_log_files = max(2, int(cfg.diagnostics.keep_log_files))
    level = str(cfg.diagnostics.level).upper()
    cfg.diagnostics.level = level if level in LOG_LEVELS else "INFO"


def _migrate(raw: dict[str, Any]) -> dict[str, Any]:
    version = int(raw.get("config_version", 1))
    data = dict(raw)

    if version < 2:
        # v1 was the flat appSettings shape: LogDirectory / LogPrefix.
        output = dict(data.get("output", {}) or {})
        if data.get("LogDirectory"):
            output.setdefault("log_directory", data.pop("LogDirectory"))
        if data.get("LogPrefix"):
            output.setdefault("log_prefix", data.pop("LogPrefix"))
        data["output"] = output
        data.setdefault("sampling", {})
        data.setdefault("counters", {})
        data.setdefault("diagnostics", {})
        data["config_version"] = 2

    return data


def load_config(path: Path | None = None) -> AppConfig:
    path = path or config_path()
    if not path.exists():
        return AppConfig()

    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except Exception:
        return AppConfig()
    if not isinstance(raw, dict):
        return AppConfig()

    data = _migrate(raw)
    cfg = AppConfig(
        config_version=int(data.get("config_version", CONFIG_VERSION)),
        sampling=_merge(SamplingConfig, data.get("sampling", {})),
        output=_merge(OutputConfig, data.get("output", {})),
        counters=_merge(CountersConfig, data.get("counters", {})),
        diagnostics=_merge(DiagnosticsConfig, data.get("diagnostics", {})),
    )

    _normalize_sampling(cfg)
    _normalize_output(cfg)
    _normalize_counters(cfg)
    _normalize_diagnostics(cfg)
    return cfg


def save_config(cfg: AppConfig, path: Path | None = None) -> Path:
    cfg.config_version = CONFIG_VERSION
    path = path or config_path()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(asdict(cfg), indent=2, sort_keys=True), encoding="utf-8")
    return path
