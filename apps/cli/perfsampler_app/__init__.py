"""PerfSampler command-line application."""
