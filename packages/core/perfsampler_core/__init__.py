"""Core sampler services for settings, logging, output sinks and the sampling loop."""

from .config import AppConfig, load_config, output_dir, save_config
from .diagnostics import build_doctor_payload, describe_topology
from .orchestrator import SamplerState, SamplingOrchestrator
from .sink import DailyFileSink, LineSink, StreamSink, TeeSink

__all__ = [
    "AppConfig",
    "DailyFileSink",
    "LineSink",
    "SamplerState",
    "SamplingOrchestrator",
    "StreamSink",
    "TeeSink",
    "build_doctor_payload",
    "describe_topology",
    "load_config",
    "output_dir",
    "save_config",
]
