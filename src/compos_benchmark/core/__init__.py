"""
Core boot benchmark infrastructure.
"""

from .benchmark_runner import BootBenchmarkResult, BootBenchmarkRunner
from .config import BootBenchmarkConfig
from .device import AdbDevice, CommandResult, CommandRunner, DeviceControl
from .metrics import MetricsCollector, MetricsSink, MetricSummary, summarize
from .simulated_device import SimulatedDevice, VirtualClock

__all__ = [
    "AdbDevice",
    "BootBenchmarkConfig",
    "BootBenchmarkResult",
    "BootBenchmarkRunner",
    "CommandResult",
    "CommandRunner",
    "DeviceControl",
    "MetricsCollector",
    "MetricsSink",
    "MetricSummary",
    "SimulatedDevice",
    "VirtualClock",
    "summarize",
]
