"""
Boot benchmark runner comparing boot time with and without CompOS.
"""

import logging
import re
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from .config import BootBenchmarkConfig
from .device import CommandRunner, DeviceControl
from .errors import (
    ApexNotFoundError,
    BenchmarkError,
    DeviceNotCapableError,
    TransientFailure,
)
from .metrics import MetricsCollector, MetricsSink, MetricSummary, report_metric
from .retry import poll_until

logger = logging.getLogger(__name__)

ART_APEX_PATTERN = re.compile(
    r"^package:(.*)=(com(?:\.google)?\.android\.art)$", re.MULTILINE
)


@dataclass
class BootBenchmarkResult:
    """Boot times collected by a benchmark run, in seconds."""

    boot_time_with_compos: List[float]
    boot_time_without_compos: List[float]
    with_compos: Optional[MetricSummary] = None
    without_compos: Optional[MetricSummary] = None
    metadata: dict = field(default_factory=dict)


def find_art_apex_path(packages_output: str) -> str:
    """Extract the ART APEX file path from ``pm list packages -f`` output.

    Raises:
        ApexNotFoundError: If the listing has no ART entry, or more than one
    """
    matches = ART_APEX_PATTERN.findall(packages_output.replace("\r", ""))
    if len(matches) != 1:
        reason = "ART module not found" if not matches else "Multiple ART modules found"
        raise ApexNotFoundError(f"{reason}. Packages are:\n{packages_output}")
    return matches[0][0]


class BootBenchmarkRunner:
    """Measure boot time after staged CompOS compilation against a plain reboot."""

    def __init__(
        self,
        device: DeviceControl,
        config: Optional[BootBenchmarkConfig] = None,
        metrics_sink: Optional[MetricsSink] = None,
        clock: Callable[[], float] = time.perf_counter,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """Initialize boot benchmark runner.

        Args:
            device: Device under test
            config: Benchmark constants, defaults when None
            metrics_sink: Where summary metrics go, an in-memory collector by default
            clock: Monotonic time source in seconds
            sleep: Sleep function used between retries
        """
        self.device = device
        self.config = config or BootBenchmarkConfig()
        self.metrics_sink = metrics_sink or MetricsCollector()
        self.clock = clock
        self.sleep = sleep
        self.android = CommandRunner(device)

    def set_up(self) -> None:
        if not self.device.supports_required_feature():
            raise DeviceNotCapableError("Device does not support CompOS")

    def tear_down(self) -> None:
        """Reboot to drop any staged session, then remove CompOS test files.

        Failures are logged and ignored.
        """
        try:
            self.reboot_and_wait_boot_completed()
        except BenchmarkError as e:
            logger.warning("Reboot during teardown failed: %s", e)

        try:
            self.android.try_run("rm", "-rf", self.config.compos_test_root)
        except BenchmarkError as e:
            logger.warning("Failed to clear CompOS test files: %s", e)

    def run(self) -> BootBenchmarkResult:
        """Check the device, measure boot times and always clean up afterwards."""
        try:
            self.set_up()
            return self.measure_boot_times()
        finally:
            self.tear_down()

    def measure_boot_times(self) -> BootBenchmarkResult:
        """Run every round and report summary metrics.

        Nothing is reported unless all rounds succeed.
        """
        round_count = self.config.round_count
        boot_with_compos_time = [0.0] * round_count
        boot_without_compos_time = [0.0] * round_count

        for round_index in range(round_count):
            # boot time with compilation OS
            self.reinstall_apex()
            self.device.set_property(
                self.config.compiler_filter_prop, self.config.compiler_filter
            )
            self.compile_staged_apex()
            elapsed = self._timed_reboot()
            boot_with_compos_time[round_index] = elapsed
            logger.info("Boot time with compilation OS took %ss", elapsed)

            # boot time without compilation OS
            self.reinstall_apex()
            elapsed = self._timed_reboot()
            boot_without_compos_time[round_index] = elapsed
            logger.info("Boot time without compilation OS took %ss", elapsed)

        prefix = self.config.metric_prefix
        with_compos = report_metric(
            self.metrics_sink, prefix, "boot_time_with_compos", "s", boot_with_compos_time
        )
        without_compos = report_metric(
            self.metrics_sink,
            prefix,
            "boot_time_without_compos",
            "s",
            boot_without_compos_time,
        )

        return BootBenchmarkResult(
            boot_time_with_compos=boot_with_compos_time,
            boot_time_without_compos=boot_without_compos_time,
            with_compos=with_compos,
            without_compos=without_compos,
            metadata={
                "round_count": round_count,
                "compiler_filter": self.config.compiler_filter,
            },
        )

    def _timed_reboot(self) -> float:
        start = self.clock()
        self.reboot_and_wait_boot_completed()
        return self.clock() - start

    def reboot_and_wait_boot_completed(self) -> None:
        timeout_ms = self.config.boot_complete_timeout_ms
        self.device.non_blocking_reboot()
        self.device.wait_for_device_online(timeout_ms)
        self.device.wait_for_boot_complete(timeout_ms)
        self.device.enable_root(timeout_ms)

    def _compile_staged_apex_once(self) -> str:
        result = self.android.run(self.config.composd_cmd, "staged-apex-compile")
        if "all ok" not in result.lower():
            raise TransientFailure(
                f"Failed to compile staged APEX. Reason: {result}"
            )
        logger.info("Compiled staged APEX. Result: %s", result)
        return result

    def compile_staged_apex(self, timeout: Optional[float] = None) -> str:
        """Trigger staged compilation until composd reports all ok.

        Args:
            timeout: Seconds to keep retrying, the configured timeout when None

        Returns:
            Output of the successful compile command
        """
        if timeout is None:
            timeout = self.config.compile_staged_apex_timeout

        return poll_until(
            self._compile_staged_apex_once,
            timeout=timeout,
            interval=self.config.compile_staged_apex_retry_interval,
            description="compile staged APEX",
            clock=self.clock,
            sleep=self.sleep,
        )

    def _reinstall_apex_once(self) -> str:
        packages_output = self.android.run("pm list packages -f --apex-only")
        art_apex_path = find_art_apex_path(packages_output)

        result = self.android.run_for_result("pm install --apex", art_apex_path)
        if result.exit_code != 0:
            raise TransientFailure(f"Failed to install APEX. Reason: {result}")

        logger.info("Installed APEX %s. Result: %s", art_apex_path, result)
        return art_apex_path

    def reinstall_apex(self, timeout: Optional[float] = None) -> str:
        """Reinstall the active ART APEX from its listed path.

        Args:
            timeout: Seconds to keep retrying, the configured timeout when None

        Returns:
            Path of the installed APEX file

        Raises:
            ApexNotFoundError: Immediately, if the device lists no ART APEX
            RetryTimeoutError: If installation kept failing
        """
        if timeout is None:
            timeout = self.config.reinstall_apex_timeout

        return poll_until(
            self._reinstall_apex_once,
            timeout=timeout,
            interval=self.config.reinstall_apex_retry_interval,
            description="reinstall art APEX",
            clock=self.clock,
            sleep=self.sleep,
        )
