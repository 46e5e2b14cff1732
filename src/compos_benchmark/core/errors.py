"""
Exceptions raised while driving a device through a boot benchmark.
"""

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from .device import CommandResult


class BenchmarkError(Exception):
    """Base exception for boot benchmark failures."""


class TransientFailure(BenchmarkError):
    """An attempt ran but its success condition was not met. Retried."""


class ApexNotFoundError(BenchmarkError):
    """The expected APEX package is missing from the device listing."""


class RetryTimeoutError(BenchmarkError):
    """Every attempt of a retried operation failed before the deadline."""

    def __init__(self, message: str, attempts: int = 0):
        super().__init__(message)
        self.attempts = attempts


class DeviceError(BenchmarkError):
    """Base exception for device communication failures."""


class DeviceCommandError(DeviceError):
    """A shell command on the device exited with a non-zero status."""

    def __init__(self, message: str, result: Optional["CommandResult"] = None):
        super().__init__(message)
        self.result = result


class DeviceTimeoutError(DeviceError):
    """The device did not come online or finish booting in time."""


class DeviceNotCapableError(DeviceError):
    """The device lacks the capability the benchmark requires."""
