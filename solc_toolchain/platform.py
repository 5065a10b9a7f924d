"""Resolution of the running operating system to a compiler artifact family."""

from __future__ import annotations

import functools
import platform as _platform
from enum import Enum
from typing import Optional

from solc_toolchain.errors import UnsupportedPlatformError

_X86_64_MACHINES = {"x86_64", "amd64", "x64"}


class CompilerPlatform(str, Enum):
    """Canonical platform identifiers. Values match the upstream mirror's directory names."""

    LINUX_AMD64 = "linux-amd64"
    """Native Linux x86-64 executables."""
    MACOS_AMD64 = "macosx-amd64"
    """Native macOS executables (universal binaries on recent releases)."""
    WINDOWS_AMD64 = "windows-amd64"
    """Native Windows x86-64 executables."""
    WASM = "wasm"
    """Script-based fallback for platforms without native builds."""


def resolve_platform(
    system: Optional[str] = None, machine: Optional[str] = None
) -> CompilerPlatform:
    """Map an operating system and CPU architecture to a compiler platform.

    Parameters
    ----------
    system : Optional[str]
        OS name as reported by ``platform.system()``. Defaults to the running OS.
    machine : Optional[str]
        Architecture as reported by ``platform.machine()``. Defaults to the running machine.

    Returns
    -------
    CompilerPlatform
        The artifact family to download. Known operating systems on architectures without native
        builds fall back to ``WASM``.

    Raises
    ------
    UnsupportedPlatformError
        If the operating system is not one the upstream mirror publishes compilers for.
    """
    system = (system if system is not None else _platform.system()).lower()
    machine = (machine if machine is not None else _platform.machine()).lower()
    is_x86_64 = machine in _X86_64_MACHINES

    if system == "linux":
        return CompilerPlatform.LINUX_AMD64 if is_x86_64 else CompilerPlatform.WASM
    if system == "darwin":
        return CompilerPlatform.MACOS_AMD64
    if system == "windows":
        return CompilerPlatform.WINDOWS_AMD64 if is_x86_64 else CompilerPlatform.WASM
    raise UnsupportedPlatformError(
        f"No compiler builds are published for operating system '{system}' ({machine})"
    )


@functools.lru_cache(maxsize=None)
def get_compiler_platform() -> CompilerPlatform:
    """Resolve the running platform once per process."""
    return resolve_platform()
