"""Runner registry for dispatching compilers to runners."""

from __future__ import annotations

import threading
from typing import ClassVar, Dict, Optional, Type

from solc_toolchain.data import CompilerDescriptor, CompilerKind

from .native_runner import NativeRunner
from .runner import CompilerRunner
from .script_runner import ScriptRunner

_RUNNER_TYPES: Dict[CompilerKind, Type[CompilerRunner]] = {
    CompilerKind.NATIVE: NativeRunner,
    CompilerKind.SCRIPT: ScriptRunner,
}
"""Runner type for each compiler kind."""


class RunnerRegistry:
    """Central registry for selecting and caching compiler runners.

    The runner is chosen once per descriptor from its kind; later calls for the same descriptor
    return the cached runner.

    Use get_instance() to obtain the shared, process-wide registry.
    """

    _instance: ClassVar[Optional["RunnerRegistry"]] = None
    """Singleton instance of the RunnerRegistry."""

    _instance_lock: ClassVar[threading.Lock] = threading.Lock()
    """Guards creation of the singleton instance."""

    _runner_types: Dict[CompilerKind, Type[CompilerRunner]]
    """Runner type for each compiler kind."""

    _cache: Dict[CompilerDescriptor, CompilerRunner]
    """Cache mapping descriptors to their runners."""

    def __init__(
        self, runner_types: Optional[Dict[CompilerKind, Type[CompilerRunner]]] = None
    ) -> None:
        """Initialize the registry.

        Parameters
        ----------
        runner_types : Optional[Dict[CompilerKind, Type[CompilerRunner]]]
            Runner type for each kind. Defaults to the native and script runners.

        Raises
        ------
        ValueError
            If a compiler kind has no runner type.
        """
        runner_types = dict(runner_types if runner_types is not None else _RUNNER_TYPES)
        missing = [kind.value for kind in CompilerKind if kind not in runner_types]
        if missing:
            raise ValueError(f"RunnerRegistry is missing runners for kinds: {missing}")
        self._runner_types = runner_types
        self._cache = {}
        self._lock = threading.Lock()

    @classmethod
    def get_instance(cls) -> "RunnerRegistry":
        """Get the shared registry instance, creating it on first use."""
        with cls._instance_lock:
            if cls._instance is None:
                cls._instance = RunnerRegistry()
            return cls._instance

    def get_runner(self, descriptor: CompilerDescriptor) -> CompilerRunner:
        """Get the runner for a compiler, creating it on first use.

        Parameters
        ----------
        descriptor : CompilerDescriptor
            The compiler to run.

        Returns
        -------
        CompilerRunner
            The runner matching ``descriptor.kind``.
        """
        with self._lock:
            runner = self._cache.get(descriptor)
            if runner is None:
                runner = self._runner_types[descriptor.kind](descriptor)
                self._cache[descriptor] = runner
            return runner

    def cleanup(self) -> None:
        """Clean up and forget all cached runners."""
        with self._lock:
            runners = list(self._cache.values())
            self._cache.clear()
        for runner in runners:
            runner.cleanup()
