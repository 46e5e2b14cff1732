"""
Boot time statistics and metric reporting.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, Sequence

import numpy as np
from rich.console import Console
from rich.table import Table


@dataclass
class MetricSummary:
    """Aggregate statistics for one sample set."""

    average: float
    min: float
    max: float
    stdev: float  # sample standard deviation, N-1 divisor

    def as_dict(self) -> Dict[str, float]:
        return {
            "average": self.average,
            "min": self.min,
            "max": self.max,
            "stdev": self.stdev,
        }


def summarize(values: Sequence[float]) -> MetricSummary:
    """Compute average, extrema and sample standard deviation.

    Args:
        values: Non-negative measurements, at least two of them

    Returns:
        MetricSummary for the values
    """
    samples = np.asarray(values, dtype=np.float64)

    if samples.size < 2:
        raise ValueError(
            f"At least 2 samples are needed for a standard deviation, got {samples.size}"
        )
    if np.any(samples < 0):
        raise ValueError(f"Samples must be non-negative: {list(values)}")

    return MetricSummary(
        average=float(np.mean(samples)),
        min=float(np.min(samples)),
        max=float(np.max(samples)),
        stdev=float(np.std(samples, ddof=1)),
    )


def metric_name(prefix: str, name: str, stat: str, unit: str) -> str:
    return f"{prefix}{name}_{stat}_{unit}"


class MetricsSink(ABC):
    """Destination for named test metrics."""

    @abstractmethod
    def add_test_metric(self, name: str, value: str) -> None:
        """Record one metric value."""


def report_metric(
    sink: MetricsSink, prefix: str, name: str, unit: str, values: Sequence[float]
) -> MetricSummary:
    """Summarize ``values`` and send the four statistics to ``sink``.

    Args:
        sink: Where to report
        prefix: Metric namespace, e.g. ``avf_perf/compos/``
        name: Metric base name
        unit: Unit label appended to every metric name
        values: Samples to summarize

    Returns:
        The reported summary
    """
    summary = summarize(values)
    for stat, value in summary.as_dict().items():
        sink.add_test_metric(metric_name(prefix, name, stat, unit), str(float(value)))
    return summary


class MetricsCollector(MetricsSink):
    """Keep reported metrics in memory."""

    def __init__(self):
        self._metrics: Dict[str, str] = {}

    def add_test_metric(self, name: str, value: str) -> None:
        self._metrics[name] = value

    def get_metrics(self) -> Dict[str, str]:
        """Get all reported metrics, in report order."""
        return self._metrics.copy()

    def clear_metrics(self) -> None:
        """Clear all reported metrics."""
        self._metrics.clear()

    def print_metrics(self, console: Console = None) -> None:
        """Print reported metrics as a table."""
        console = console or Console()

        if not self._metrics:
            console.print("[yellow]No metrics reported.[/yellow]")
            return

        table = Table(title="Boot Benchmark Metrics")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", style="yellow", justify="right")

        for name, value in self._metrics.items():
            table.add_row(name, value)

        console.print(table)
