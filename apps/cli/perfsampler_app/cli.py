"""CLI entrypoints for the sampler loop, one-shot snapshots and diagnostics."""

from __future__ import annotations

import argparse
import json
from pathlib import Path

from perfsampler_core import (
    AppConfig,
    DailyFileSink,
    SamplingOrchestrator,
    StreamSink,
    TeeSink,
    build_doctor_payload,
    load_config,
    output_dir,
)
from perfsampler_core.logging_setup import configure_logging, get_logger, install_crash_hooks
from perfsampler_core.sink import LineSink
from perfsampler_telemetry import build_sources


def _print_json(data: object) -> None:
    print(json.dumps(data, indent=2, sort_keys=True, default=str))


def _load(args: argparse.Namespace) -> AppConfig:
    return load_config(Path(args.config).expanduser() if args.config else None)


def _build_sink(cfg: AppConfig, console: bool) -> LineSink:
    file_sink = DailyFileSink(output_dir(cfg), prefix=cfg.output.log_prefix)
    if console or cfg.output.console:
        return TeeSink(file_sink, StreamSink())
    return file_sink


def _build_orchestrator(cfg: AppConfig, sink: LineSink, interval_s: float | None = None) -> SamplingOrchestrator:
    sources = build_sources(cfg.counters.backend)
    get_logger().info(
        f"counter backend: {sources.name}",
        extra={"event": "backend_selected"},
    )
    return SamplingOrchestrator(
        sources,
        sink,
        interval_s=interval_s if interval_s is not None else cfg.sampling.interval_s,
        warmup_s=cfg.sampling.warmup_s,
    )


def cmd_run(args: argparse.Namespace) -> int:
    cfg = _load(args)
    install_crash_hooks()
    interval = max(1.0, args.interval) if args.interval is not None else None
    orchestrator = _build_orchestrator(cfg, _build_sink(cfg, args.console), interval_s=interval)
    try:
        orchestrator.run(iterations=args.count)
    except KeyboardInterrupt:
        get_logger().info("sampler stopped", extra={"event": "sampler_stopped"})
    return 0


def cmd_snapshot(args: argparse.Namespace) -> int:
    cfg = _load(args)
    sink = StreamSink() if args.stdout else _build_sink(cfg, console=False)
    orchestrator = _build_orchestrator(cfg, sink)
    orchestrator.run(iterations=1)
    return 0


def cmd_doctor(args: argparse.Namespace) -> int:
    cfg = _load(args)
    sources = build_sources(cfg.counters.backend)
    topology = None
    if not args.skip_discovery:
        orchestrator = SamplingOrchestrator(sources, StreamSink(), warmup_s=0.0)
        topology = orchestrator.initialize()
    _print_json(build_doctor_payload(cfg, sources.name, topology))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="perfsampler", description="Host CPU/RAM/disk/network/GPU sampler")
    parser.add_argument("--config", default=None, help="Path to config JSON (defaults to the per-user config)")
    sub = parser.add_subparsers(dest="command", required=True)

    run_cmd = sub.add_parser("run", help="Sample continuously until terminated")
    run_cmd.add_argument("--interval", type=float, default=None, help="Seconds between samples")
    run_cmd.add_argument("--count", type=int, default=None, help="Stop after this many samples")
    run_cmd.add_argument("--console", action="store_true", help="Also print metric lines to stdout")
    run_cmd.set_defaults(func=cmd_run)

    snap_cmd = sub.add_parser("snapshot", help="Take one sample and exit")
    snap_cmd.add_argument("--stdout", action="store_true", help="Print lines instead of appending to the log file")
    snap_cmd.set_defaults(func=cmd_snapshot)

    doctor_cmd = sub.add_parser("doctor", help="Print settings and discovered counters")
    doctor_cmd.add_argument("--skip-discovery", action="store_true", help="Do not enumerate counters")
    doctor_cmd.set_defaults(func=cmd_doctor)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    cfg = _load(args)
    configure_logging(
        keep_files=cfg.diagnostics.keep_log_files,
        console=False,
        level=cfg.diagnostics.level,
    )
    return int(args.func(args))


if __name__ == "__main__":
    raise SystemExit(main())
