"""Environment-driven configuration accessors."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

_DEFAULT_BINARIES_URL = "https://binaries.soliditylang.org"
_DEFAULT_LOCK_TIMEOUT = 120.0
_DEFAULT_LOG_LEVEL = "WARNING"
_TRUTHY = {"1", "true", "yes", "on"}


def get_solc_cache_path() -> Path:
    """Root of the on-disk cache. ``SOLC_CACHE_PATH`` overrides ``~/.cache/solc_toolchain``."""
    value = os.environ.get("SOLC_CACHE_PATH")
    if value:
        return Path(value).expanduser()
    return Path.home() / ".cache" / "solc_toolchain"


def get_solc_compilers_path() -> Path:
    """Directory holding the per-platform compiler caches."""
    return get_solc_cache_path() / "compilers"


def get_solc_binaries_url() -> str:
    """Base URL of the upstream compiler mirror, without a trailing slash."""
    return os.environ.get("SOLC_BINARIES_URL", _DEFAULT_BINARIES_URL).rstrip("/")


def get_solc_lock_timeout() -> float:
    """Seconds to wait for a version lock before giving up."""
    value = os.environ.get("SOLC_LOCK_TIMEOUT")
    if not value:
        return _DEFAULT_LOCK_TIMEOUT
    try:
        timeout = float(value)
    except ValueError as e:
        raise ValueError(f"SOLC_LOCK_TIMEOUT must be a number, got {value!r}") from e
    if timeout <= 0:
        raise ValueError(f"SOLC_LOCK_TIMEOUT must be > 0, got {value!r}")
    return timeout


def get_solc_native() -> bool:
    """Whether a locally supplied compiler path points at a native executable.

    Accepts ``true`` as well as ``1``, ``yes`` and ``on`` (case-insensitive). Any other value,
    or leaving it unset, treats local compilers as script-based modules.
    """
    return os.environ.get("SOLC_NATIVE", "").strip().lower() in _TRUTHY


def get_solc_log_level(default: Optional[str] = None) -> str:
    """Log level name for :func:`solc_toolchain.logging.configure_logging`."""
    return os.environ.get("SOLC_LOG_LEVEL", default or _DEFAULT_LOG_LEVEL).upper()
