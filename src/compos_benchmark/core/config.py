"""
Benchmark configuration.
"""

from dataclasses import dataclass

COMPOSD_CMD_BIN = "/apex/com.android.compos/bin/composd_cmd"

# files that define the "test" instance of CompOS
COMPOS_TEST_ROOT = "/data/misc/apexdata/com.android.compos/test/"

SYSTEM_SERVER_COMPILER_FILTER_PROP_NAME = "dalvik.vm.systemservercompilerfilter"

METRIC_PREFIX = "avf_perf/compos/"


@dataclass
class BootBenchmarkConfig:
    """Constants driving a boot benchmark run."""

    round_count: int = 5
    reinstall_apex_retry_interval: float = 5.0  # seconds
    reinstall_apex_timeout: float = 15.0  # seconds
    compile_staged_apex_retry_interval: float = 10.0  # seconds
    compile_staged_apex_timeout: float = 540.0  # seconds
    boot_complete_timeout_ms: int = 10 * 60 * 1000
    metric_prefix: str = METRIC_PREFIX
    compiler_filter_prop: str = SYSTEM_SERVER_COMPILER_FILTER_PROP_NAME
    compiler_filter: str = "speed"
    composd_cmd: str = COMPOSD_CMD_BIN
    compos_test_root: str = COMPOS_TEST_ROOT

    def __post_init__(self):
        # stdev needs at least two samples
        if self.round_count < 2:
            raise ValueError(f"round_count must be at least 2, got {self.round_count}")

        for field_name in (
            "reinstall_apex_retry_interval",
            "reinstall_apex_timeout",
            "compile_staged_apex_retry_interval",
            "compile_staged_apex_timeout",
            "boot_complete_timeout_ms",
        ):
            if getattr(self, field_name) <= 0:
                raise ValueError(f"{field_name} must be positive")
