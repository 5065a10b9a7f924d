"""Exception taxonomy for compiler acquisition and invocation.

Infrastructure faults (platform, network, integrity, storage, locking, runner crashes) derive
from :class:`InfrastructureError`. A :class:`CompilationError` means the compiler ran and reported
a source-level error and is not an infrastructure fault.
"""

from __future__ import annotations

from typing import Any, ClassVar, Dict, Optional


class SolcToolchainError(RuntimeError):
    """Base class for all errors raised by solc_toolchain."""

    retryable: ClassVar[bool] = False
    """Whether the caller may retry the failed operation."""


class InfrastructureError(SolcToolchainError):
    """Raised when the environment, network or cache prevents producing a result."""


class UnsupportedPlatformError(InfrastructureError):
    """Raised when the running OS has no compiler artifact family."""


class DownloadError(InfrastructureError):
    """Raised when the manifest or an artifact cannot be fetched, or the version is unknown."""

    retryable = True


class IntegrityError(InfrastructureError):
    """Raised when a downloaded artifact does not match its published checksum."""

    retryable = True


class StorageError(InfrastructureError):
    """Raised when the cache directory cannot be read or written."""

    retryable = True


class LockTimeoutError(InfrastructureError):
    """Raised when a version lock could not be acquired within the configured timeout."""

    retryable = True


class RunnerCrashError(InfrastructureError):
    """Raised when the compiler process or module fails to produce a result document."""


class CompilationError(SolcToolchainError):
    """Raised when the compiler reports a diagnostic with ``error`` severity."""

    def __init__(self, message: str, diagnostic: Optional[Dict[str, Any]] = None) -> None:
        super().__init__(f"Failed to compile: {message}")
        self.message = message
        self.diagnostic = diagnostic if diagnostic is not None else {}
