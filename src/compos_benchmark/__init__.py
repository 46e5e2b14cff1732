"""
CompOS Boot Benchmark

Host-side benchmark measuring Android boot time with and without
staged compilation by the CompOS compilation service.
"""

__version__ = "0.1.0"

from .core.benchmark_runner import BootBenchmarkRunner
from .core.device import AdbDevice
from .core.metrics import MetricsCollector

__all__ = [
    "AdbDevice",
    "BootBenchmarkRunner",
    "MetricsCollector",
]
