"""
Command-line interface for the CompOS boot benchmark.
"""

import json
import logging
from pathlib import Path
from typing import Optional

import typer
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..core.benchmark_runner import BootBenchmarkResult, BootBenchmarkRunner
from ..core.config import BootBenchmarkConfig
from ..core.device import AdbDevice
from ..core.errors import BenchmarkError
from ..core.metrics import MetricsCollector
from ..core.simulated_device import SimulatedDevice

app = typer.Typer(
    help="CompOS Boot Benchmark - boot time with and without staged compilation"
)
console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
        force=True,
    )


@app.command()
def device_info(
    serial: Optional[str] = typer.Option(None, "--serial", "-s", help="Device serial"),
    adb_path: str = typer.Option("adb", "--adb", help="Path to the adb executable"),
) -> None:
    """Display device information."""
    try:
        device = AdbDevice(serial, adb_path)
        info = device.describe()
    except BenchmarkError as e:
        rprint(f"[red]Error getting device info: {e}[/red]")
        raise typer.Exit(code=1)

    table = Table(title="Device Information")
    table.add_column("Property", style="cyan")
    table.add_column("Value", style="green")
    for name, value in info.items():
        table.add_row(name, value or "N/A")

    console.print(table)


@app.command()
def check(
    serial: Optional[str] = typer.Option(None, "--serial", "-s", help="Device serial"),
    adb_path: str = typer.Option("adb", "--adb", help="Path to the adb executable"),
) -> None:
    """Check whether the device can run CompOS."""
    try:
        capable = AdbDevice(serial, adb_path).supports_required_feature()
    except BenchmarkError as e:
        rprint(f"[red]Error checking device: {e}[/red]")
        raise typer.Exit(code=1)

    if not capable:
        rprint("[yellow]Device does not support CompOS[/yellow]")
        raise typer.Exit(code=1)

    rprint("[green]Device supports CompOS[/green]")


@app.command()
def run(
    serial: Optional[str] = typer.Option(None, "--serial", "-s", help="Device serial"),
    adb_path: str = typer.Option("adb", "--adb", help="Path to the adb executable"),
    rounds: int = typer.Option(5, "--rounds", "-r", help="Number of measurement rounds"),
    compile_timeout: float = typer.Option(
        540.0, "--compile-timeout", help="Seconds to retry staged compilation"
    ),
    reinstall_timeout: float = typer.Option(
        15.0, "--reinstall-timeout", help="Seconds to retry APEX reinstallation"
    ),
    simulate: bool = typer.Option(
        False, "--simulate", help="Run against a simulated device"
    ),
    boot_delay: float = typer.Option(
        30.0, "--boot-delay", help="Simulated boot time in seconds"
    ),
    json_output: Optional[Path] = typer.Option(
        None, "--json", help="Write reported metrics to this JSON file"
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose output"),
) -> None:
    """Measure boot time with and without CompOS."""
    _setup_logging(verbose)

    try:
        config = BootBenchmarkConfig(
            round_count=rounds,
            compile_staged_apex_timeout=compile_timeout,
            reinstall_apex_timeout=reinstall_timeout,
        )
    except ValueError as e:
        rprint(f"[red]Invalid configuration: {e}[/red]")
        raise typer.Exit(code=2)

    collector = MetricsCollector()

    if simulate:
        simulated = SimulatedDevice(boot_delay=boot_delay)
        runner = BootBenchmarkRunner(
            simulated,
            config,
            collector,
            clock=simulated.clock,
            sleep=simulated.clock.sleep,
        )
        rprint("[blue]Running boot benchmark on a simulated device[/blue]")
    else:
        device = AdbDevice(serial, adb_path, composd_cmd=config.composd_cmd)
        runner = BootBenchmarkRunner(device, config, collector)
        rprint(f"[blue]Running boot benchmark on {serial or 'default device'}[/blue]")

    try:
        result = runner.run()
    except BenchmarkError as e:
        rprint(f"[red]Boot benchmark failed: {e}[/red]")
        raise typer.Exit(code=1)

    _print_samples_table(result)
    collector.print_metrics(console)

    if json_output:
        json_output.write_text(json.dumps(collector.get_metrics(), indent=2) + "\n")
        rprint(f"[green]Metrics written to {json_output}[/green]")


def _print_samples_table(result: BootBenchmarkResult) -> None:
    """Print per-round boot times."""
    table = Table(title="Boot Time per Round (s)")
    table.add_column("Round", style="cyan", justify="right")
    table.add_column("With CompOS", style="green", justify="right")
    table.add_column("Without CompOS", style="magenta", justify="right")

    for index, (with_compos, without_compos) in enumerate(
        zip(result.boot_time_with_compos, result.boot_time_without_compos)
    ):
        table.add_row(str(index), f"{with_compos:.3f}", f"{without_compos:.3f}")

    console.print(table)


def main() -> None:
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
