"""
Device control interface and its adb-backed implementation.
"""

import logging
import shlex
import subprocess
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional

from .config import COMPOSD_CMD_BIN
from .errors import (
    DeviceCommandError,
    DeviceError,
    DeviceTimeoutError,
    RetryTimeoutError,
    TransientFailure,
)
from .retry import poll_until

logger = logging.getLogger(__name__)

HYPERVISOR_PROPS = (
    "ro.boot.hypervisor.vm.supported",
    "ro.boot.hypervisor.protected_vm.supported",
)

BOOT_COMPLETED_PROP = "sys.boot_completed"


@dataclass
class CommandResult:
    """Outcome of a shell command run on the device."""

    stdout: str
    stderr: str = ""
    exit_code: int = 0

    @property
    def succeeded(self) -> bool:
        return self.exit_code == 0

    def __str__(self) -> str:
        return (
            f"exit_code={self.exit_code} stdout={self.stdout.strip()!r} "
            f"stderr={self.stderr.strip()!r}"
        )


class DeviceControl(ABC):
    """Operations the boot benchmark needs from a device under test."""

    @abstractmethod
    def run_shell_command(self, command: str) -> str:
        """Run a shell command and return its output.

        Raises:
            DeviceCommandError: If the command exits with a non-zero status
        """

    @abstractmethod
    def run_shell_command_for_result(self, command: str) -> CommandResult:
        """Run a shell command and return its full result without raising."""

    @abstractmethod
    def get_property(self, name: str) -> str:
        """Read a system property."""

    @abstractmethod
    def set_property(self, name: str, value: str) -> None:
        """Set a system property."""

    @abstractmethod
    def non_blocking_reboot(self) -> None:
        """Issue a reboot and return without waiting for the device."""

    @abstractmethod
    def wait_for_device_online(self, timeout_ms: int) -> None:
        """Block until the device transport is available again."""

    @abstractmethod
    def wait_for_boot_complete(self, timeout_ms: int) -> None:
        """Block until the device reports boot complete."""

    @abstractmethod
    def enable_root(self, timeout_ms: int) -> None:
        """Restart the device-side daemon with root privileges."""

    @abstractmethod
    def supports_required_feature(self) -> bool:
        """Check if the device can run CompOS."""

    def describe(self) -> Dict[str, str]:
        """Get identifying device information."""
        info = {}
        for prop in (
            "ro.product.model",
            "ro.build.fingerprint",
            "ro.build.version.sdk",
        ) + HYPERVISOR_PROPS:
            info[prop] = self.get_property(prop)
        return info


class CommandRunner:
    """Convenience wrapper for running argv-style commands on a device."""

    def __init__(self, device: DeviceControl):
        self.device = device

    @staticmethod
    def _join(args) -> str:
        return " ".join(args)

    def run(self, *args: str) -> str:
        return self.device.run_shell_command(self._join(args)).strip()

    def run_for_result(self, *args: str) -> CommandResult:
        return self.device.run_shell_command_for_result(self._join(args))

    def try_run(self, *args: str) -> Optional[str]:
        """Run a command, returning None instead of raising on failure."""
        result = self.run_for_result(*args)
        if not result.succeeded:
            logger.warning("Command '%s' failed: %s", self._join(args), result)
            return None
        return result.stdout.strip()


class AdbDevice(DeviceControl):
    """Device reached through the ``adb`` command line tool."""

    def __init__(
        self,
        serial: Optional[str] = None,
        adb_path: str = "adb",
        composd_cmd: str = COMPOSD_CMD_BIN,
        boot_poll_interval: float = 1.0,
    ):
        """Initialize adb device.

        Args:
            serial: Device serial number, or None for the only connected device
            adb_path: Path to the adb executable
            composd_cmd: CompOS command binary that must exist on capable devices
            boot_poll_interval: Seconds between boot-complete checks
        """
        self.serial = serial
        self.adb_path = adb_path
        self.composd_cmd = composd_cmd
        self.boot_poll_interval = boot_poll_interval
        self._reboot_pending = False

    def _adb_command(self, *args: str) -> List[str]:
        command = [self.adb_path]
        if self.serial:
            command += ["-s", self.serial]
        command.extend(args)
        return command

    def _adb(self, *args: str, timeout: Optional[float] = None) -> CommandResult:
        command = self._adb_command(*args)
        logger.debug("Running %s", shlex.join(command))
        try:
            result = subprocess.run(
                command,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except FileNotFoundError as e:
            raise DeviceError(f"adb executable not found: {self.adb_path}") from e
        except subprocess.TimeoutExpired as e:
            raise DeviceTimeoutError(
                f"'{shlex.join(command)}' timed out after {timeout}s"
            ) from e
        return CommandResult(result.stdout, result.stderr, result.returncode)

    def run_shell_command_for_result(self, command: str) -> CommandResult:
        return self._adb("shell", command)

    def run_shell_command(self, command: str) -> str:
        result = self.run_shell_command_for_result(command)
        if not result.succeeded:
            raise DeviceCommandError(
                f"Command '{command}' failed: {result}", result=result
            )
        return result.stdout

    def get_property(self, name: str) -> str:
        return self.run_shell_command(f"getprop {name}").strip()

    def set_property(self, name: str, value: str) -> None:
        self.run_shell_command(f"setprop {name} {shlex.quote(value)}")

    def non_blocking_reboot(self) -> None:
        result = self._adb("reboot")
        if not result.succeeded:
            raise DeviceCommandError(f"Failed to reboot: {result}", result=result)
        self._reboot_pending = True

    def _wait_for(self, state: str, timeout_ms: int) -> None:
        result = self._adb(f"wait-for-{state}", timeout=timeout_ms / 1000)
        if not result.succeeded:
            raise DeviceError(f"Failed waiting for {state}: {result}")

    def wait_for_device_online(self, timeout_ms: int) -> None:
        # the old boot still answers until the device drops off the transport
        if self._reboot_pending:
            self._wait_for("disconnect", timeout_ms)
            self._reboot_pending = False
        self._wait_for("device", timeout_ms)

    def _check_boot_completed(self) -> None:
        result = self.run_shell_command_for_result(f"getprop {BOOT_COMPLETED_PROP}")
        if result.stdout.strip() != "1":
            raise TransientFailure(f"{BOOT_COMPLETED_PROP}={result.stdout.strip()!r}")

    def wait_for_boot_complete(self, timeout_ms: int) -> None:
        try:
            poll_until(
                self._check_boot_completed,
                timeout=timeout_ms / 1000,
                interval=self.boot_poll_interval,
                description="wait for boot complete",
            )
        except RetryTimeoutError as e:
            raise DeviceTimeoutError(
                f"Device did not complete boot within {timeout_ms} ms"
            ) from e

    def enable_root(self, timeout_ms: int) -> None:
        result = self._adb("root", timeout=timeout_ms / 1000)
        if not result.succeeded:
            raise DeviceCommandError(f"Failed to enable root: {result}", result=result)
        # adb root returns once adbd has gone away to restart as root
        self._wait_for("device", timeout_ms)

    def supports_required_feature(self) -> bool:
        vm_supported = any(self.get_property(prop) == "1" for prop in HYPERVISOR_PROPS)
        if not vm_supported:
            logger.info("Device does not support virtual machines")
            return False

        result = self.run_shell_command_for_result(f"test -e {self.composd_cmd}")
        if not result.succeeded:
            logger.info("CompOS is not installed: %s missing", self.composd_cmd)
            return False

        return True

    def describe(self) -> Dict[str, str]:
        info = {"serial": self.serial or "(default)"}
        info.update(super().describe())
        return info
