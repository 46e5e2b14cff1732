"""
Simulated device for exercising the benchmark without hardware.
"""

import logging
from typing import Callable, Dict, List, Optional, Union

from .config import COMPOS_TEST_ROOT, COMPOSD_CMD_BIN
from .device import CommandResult, DeviceControl
from .errors import DeviceCommandError, DeviceTimeoutError

logger = logging.getLogger(__name__)

DEFAULT_APEX_LISTING = (
    "package:/system/apex/com.android.adbd.capex=com.android.adbd\n"
    "package:/data/apex/active/com.android.art@331413030.apex=com.android.art\n"
    "package:/system/apex/com.android.compos.capex=com.android.compos\n"
)


class VirtualClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 0.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def sleep(self, seconds: float) -> None:
        self.advance(seconds)

    def advance_to(self, when: float) -> None:
        self.now = max(self.now, when)


class SimulatedDevice(DeviceControl):
    """In-memory device with scripted behavior and a virtual clock."""

    def __init__(
        self,
        boot_delay: Union[float, Callable[[int], float]] = 30.0,
        apex_listing: str = DEFAULT_APEX_LISTING,
        install_failures: int = 0,
        compile_failures: int = 0,
        capable: bool = True,
        command_duration: float = 0.0,
        clock: Optional[VirtualClock] = None,
        composd_cmd: str = COMPOSD_CMD_BIN,
        compos_test_root: str = COMPOS_TEST_ROOT,
        offline_fraction: float = 0.25,
    ):
        """Initialize simulated device.

        Args:
            boot_delay: Seconds each reboot takes, or a callable mapping the
                reboot number (starting at 1) to its delay
            apex_listing: Output of ``pm list packages -f --apex-only``
            install_failures: Number of initial ``pm install`` calls that fail
            compile_failures: Number of initial staged compiles that fail
            capable: Result of the capability probe
            command_duration: Virtual seconds every shell command takes
            clock: Clock to advance, a fresh one by default
            composd_cmd: Path recognized as the CompOS command binary
            compos_test_root: Directory staged compilation writes instance files to
            offline_fraction: Share of each boot during which the transport
                is unreachable
        """
        self.boot_delay = boot_delay
        self.apex_listing = apex_listing
        self.install_failures = install_failures
        self.compile_failures = compile_failures
        self.capable = capable
        self.command_duration = command_duration
        self.clock = clock or VirtualClock()
        self.composd_cmd = composd_cmd
        self.compos_test_root = compos_test_root
        self.offline_fraction = offline_fraction

        self.commands: List[str] = []
        self.properties: Dict[str, str] = {
            "ro.product.model": "Simulated Device",
            "ro.build.fingerprint": "simulated/device/user",
            "ro.build.version.sdk": "34",
            "ro.boot.hypervisor.vm.supported": "1" if capable else "",
            "ro.boot.hypervisor.protected_vm.supported": "",
            "sys.boot_completed": "1",
        }
        self.installed: List[str] = []
        self.compile_calls = 0
        self.install_calls = 0
        self.reboot_count = 0
        self.root_enabled = False
        self.files = set()
        self._online_at: Optional[float] = None
        self._pending_boot: Optional[float] = None

    def _install(self, path: str) -> CommandResult:
        self.install_calls += 1
        if self.install_calls <= self.install_failures:
            return CommandResult(
                "", "Failure [INSTALL_FAILED_INTERNAL_ERROR: staged session]", 1
            )
        self.installed.append(path)
        return CommandResult("Success\n")

    def _compile(self) -> CommandResult:
        self.compile_calls += 1
        if self.compile_calls <= self.compile_failures:
            return CommandResult("Error: no staged APEX\n")
        self.files.add(self.compos_test_root)
        return CommandResult("All Ok\n")

    def run_shell_command_for_result(self, command: str) -> CommandResult:
        self.commands.append(command)
        self.clock.advance(self.command_duration)

        if self.is_offline:
            return CommandResult("", "error: device offline", 1)

        argv = command.split()
        if command.startswith("pm list packages"):
            return CommandResult(self.apex_listing)
        if argv[:3] == ["pm", "install", "--apex"] and len(argv) == 4:
            return self._install(argv[3])
        if argv[:2] == [self.composd_cmd, "staged-apex-compile"]:
            return self._compile()
        if argv[:1] == ["getprop"] and len(argv) == 2:
            return CommandResult(self.properties.get(argv[1], "") + "\n")
        if argv[:1] == ["setprop"] and len(argv) == 3:
            self.properties[argv[1]] = argv[2]
            return CommandResult("")
        if argv[:2] == ["rm", "-rf"]:
            for path in argv[2:]:
                self.files.discard(path)
            return CommandResult("")
        if argv[:2] == ["test", "-e"] and len(argv) == 3:
            return CommandResult("", "", 0 if argv[2] == self.composd_cmd else 1)

        return CommandResult("", f"/system/bin/sh: {argv[0]}: inaccessible or not found", 127)

    def run_shell_command(self, command: str) -> str:
        result = self.run_shell_command_for_result(command)
        if not result.succeeded:
            raise DeviceCommandError(
                f"Command '{command}' failed: {result}", result=result
            )
        return result.stdout

    def get_property(self, name: str) -> str:
        return self.properties.get(name, "")

    def set_property(self, name: str, value: str) -> None:
        self.run_shell_command(f"setprop {name} {value}")

    def non_blocking_reboot(self) -> None:
        self.reboot_count += 1
        delay = self.boot_delay
        if callable(delay):
            delay = delay(self.reboot_count)
        self.properties["sys.boot_completed"] = ""
        self.root_enabled = False
        self._online_at = self.clock() + delay * self.offline_fraction
        self._pending_boot = self.clock() + delay
        logger.debug("Simulated reboot #%d, boot takes %.3fs", self.reboot_count, delay)

    @property
    def is_offline(self) -> bool:
        return self._online_at is not None and self.clock() < self._online_at

    def wait_for_device_online(self, timeout_ms: int) -> None:
        if self._online_at is None:
            return

        remaining = self._online_at - self.clock()
        if remaining * 1000 > timeout_ms:
            self.clock.advance(timeout_ms / 1000)
            raise DeviceTimeoutError(f"Device did not come online within {timeout_ms} ms")

        self.clock.advance_to(self._online_at)
        self._online_at = None

    def wait_for_boot_complete(self, timeout_ms: int) -> None:
        if self._pending_boot is None:
            return

        remaining = self._pending_boot - self.clock()
        if remaining * 1000 > timeout_ms:
            self.clock.advance(timeout_ms / 1000)
            raise DeviceTimeoutError(
                f"Device did not complete boot within {timeout_ms} ms"
            )

        self.clock.advance_to(self._pending_boot)
        self._online_at = None
        self._pending_boot = None
        self.properties["sys.boot_completed"] = "1"

    def enable_root(self, timeout_ms: int) -> None:
        self.root_enabled = True

    def supports_required_feature(self) -> bool:
        return self.capable
