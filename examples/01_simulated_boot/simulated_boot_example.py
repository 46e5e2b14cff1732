"""
Simulated Boot Benchmark Example

This example runs the full boot benchmark against a simulated device:
- Reinstalling the ART APEX
- Staged compilation through composd
- Timed reboots with and without CompOS

The simulated device boots faster after staged compilation, so the
reported averages differ between the two conditions.
"""

import logging

from compos_benchmark.core.benchmark_runner import BootBenchmarkRunner
from compos_benchmark.core.config import BootBenchmarkConfig
from compos_benchmark.core.metrics import MetricsCollector
from compos_benchmark.core.simulated_device import SimulatedDevice


def boot_delay(reboot: int) -> float:
    """Odd reboots follow staged compilation and are faster."""
    return 24.0 + reboot * 0.1 if reboot % 2 else 31.0 + reboot * 0.1


def demonstrate_boot_benchmark():
    """Run the boot benchmark on a simulated device."""
    print("=" * 60)
    print("BOOT BENCHMARK: Simulated Device Example")
    print("=" * 60)

    device = SimulatedDevice(boot_delay=boot_delay, install_failures=1)
    collector = MetricsCollector()
    runner = BootBenchmarkRunner(
        device,
        BootBenchmarkConfig(round_count=5),
        collector,
        clock=device.clock,
        sleep=device.clock.sleep,
    )

    result = runner.run()

    print(f"\n  Reboots issued: {device.reboot_count}")
    print(f"  APEX installs: {len(device.installed)}")
    print(f"  Simulated time elapsed: {device.clock():.1f} s")

    print("\n  Boot time per round:")
    for index, (with_compos, without_compos) in enumerate(
        zip(result.boot_time_with_compos, result.boot_time_without_compos)
    ):
        print(f"    round {index}: {with_compos:6.2f} s with, {without_compos:6.2f} s without")

    print()
    collector.print_metrics()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    demonstrate_boot_benchmark()
