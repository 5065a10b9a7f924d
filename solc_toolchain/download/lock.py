"""Cross-process, version-scoped mutual exclusion."""

from __future__ import annotations

import os
import re
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from tvm_ffi.utils import FileLock

from solc_toolchain.errors import LockTimeoutError, StorageError
from solc_toolchain.logging import get_logger

logger = get_logger("VersionLock")


def _lock_file_name(key: str) -> str:
    return re.sub(r"[^0-9a-zA-Z_.+-]", "_", key) + ".lock"


class VersionLock:
    """Advisory file locks keyed by an arbitrary string, stored under one directory.

    Locks are held through the operating system, which releases them when the holding process
    exits, so a crashed holder can never block other callers forever. Waiting is bounded: after
    ``timeout`` seconds the acquirer gives up with :class:`LockTimeoutError` and is expected to
    restart from a fresh cache check.

    Examples
    --------
    >>> locks = VersionLock(cache_dir / ".locks")
    >>> with locks.acquire("0.8.0", timeout=60):
    ...     download()
    """

    def __init__(
        self,
        lock_dir: Path,
        backoff_initial: float = 0.05,
        backoff_factor: float = 2.0,
        backoff_max: float = 1.0,
    ) -> None:
        self._lock_dir = Path(lock_dir)
        self._backoff_initial = backoff_initial
        self._backoff_factor = backoff_factor
        self._backoff_max = backoff_max

    def lock_path(self, key: str) -> Path:
        """Path of the lock file backing ``key``."""
        return self._lock_dir / _lock_file_name(key)

    @contextmanager
    def acquire(self, key: str, timeout: float) -> Iterator[Path]:
        """Hold the lock for ``key`` for the duration of the ``with`` block.

        The lock is released on every exit path, including exceptions raised in the block.

        Parameters
        ----------
        key : str
            The lock key, typically a compiler version.
        timeout : float
            Maximum seconds to wait for the lock.

        Yields
        ------
        Path
            The lock file path.

        Raises
        ------
        LockTimeoutError
            If the lock is still held by someone else after ``timeout`` seconds.
        StorageError
            If the lock directory cannot be created or the lock file cannot be opened.
        """
        try:
            self._lock_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create lock directory {self._lock_dir}: {e}") from e

        path = self.lock_path(key)
        # FileLock.acquire() reports every OSError as contention; open failures are storage faults
        try:
            os.close(os.open(path, os.O_WRONLY | os.O_CREAT))
        except OSError as e:
            raise StorageError(f"Cannot open lock file {path}: {e}") from e

        lock = FileLock(str(path))
        deadline = time.monotonic() + timeout
        delay = self._backoff_initial
        attempts = 0

        while not lock.acquire():
            attempts += 1
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise LockTimeoutError(
                    f"Timed out after {timeout:.2f}s waiting for lock '{key}' ({path})"
                )
            if attempts == 1:
                logger.info(f"Waiting for lock '{key}' held by another caller")
            time.sleep(min(delay, remaining))
            delay = min(delay * self._backoff_factor, self._backoff_max)

        try:
            yield path
        finally:
            lock.release()
