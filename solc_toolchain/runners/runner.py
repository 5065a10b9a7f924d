"""Abstract base class for compiler runners."""

from __future__ import annotations

import json
from abc import ABC, abstractmethod
from typing import Any, Dict, Union

from solc_toolchain.data import CompilerDescriptor, CompilerKind
from solc_toolchain.errors import RunnerCrashError

CompilerInput = Dict[str, Any]
"""A Standard-JSON compilation request."""

CompilerOutput = Dict[str, Any]
"""A Standard-JSON compilation result."""


class CompilerRunner(ABC):
    """Runs one compiler artifact against Standard-JSON compilation requests.

    A CompilerRunner hides how the compiler executes. Every runner accepts the same input
    document and returns the same output document shape, so callers never need to know which
    kind of compiler produced the result.

    Subclasses declare the :class:`CompilerKind` they execute in ``KIND`` and implement
    :meth:`run`.
    """

    KIND: CompilerKind
    """The artifact kind this runner executes."""

    def __init__(self, descriptor: CompilerDescriptor) -> None:
        """Initialize the runner.

        Parameters
        ----------
        descriptor : CompilerDescriptor
            The compiler artifact to run. Its kind must match ``KIND``.

        Raises
        ------
        ValueError
            If the descriptor is of a different kind.
        """
        if not self.can_run(descriptor):
            raise ValueError(
                f"{type(self).__name__} cannot run {descriptor.kind.value} compiler "
                f"{descriptor.long_version}"
            )
        self._descriptor = descriptor

    @property
    def descriptor(self) -> CompilerDescriptor:
        """The compiler artifact this runner executes."""
        return self._descriptor

    @classmethod
    def can_run(cls, descriptor: CompilerDescriptor) -> bool:
        """Check if this runner type can execute the given compiler.

        Parameters
        ----------
        descriptor : CompilerDescriptor
            The compiler to check.

        Returns
        -------
        bool
            True if the descriptor's kind is the runner's ``KIND``.
        """
        return descriptor.kind == cls.KIND

    @abstractmethod
    def run(self, compiler_input: CompilerInput) -> CompilerOutput:
        """Compile a Standard-JSON request.

        Parameters
        ----------
        compiler_input : CompilerInput
            The request. Runners never modify it.

        Returns
        -------
        CompilerOutput
            The compiler's output document, passed through unexamined.

        Raises
        ------
        RunnerCrashError
            If the compiler fails to produce an output document.
        """
        ...

    def cleanup(self) -> None:
        """Release resources held by the runner. The default implementation does nothing."""


def parse_compiler_output(raw: Union[str, bytes, Dict[str, Any]], source: str) -> CompilerOutput:
    """Parse a compiler's raw output into an output document.

    Parameters
    ----------
    raw : Union[str, bytes, Dict[str, Any]]
        Serialized JSON or an already decoded document.
    source : str
        Human-readable name of the producer, used in error messages.

    Returns
    -------
    CompilerOutput
        The decoded output document.

    Raises
    ------
    RunnerCrashError
        If ``raw`` is not a JSON object.
    """
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    if not isinstance(raw, str):
        raise RunnerCrashError(f"{source} returned {type(raw).__name__}, expected JSON")
    try:
        output = json.loads(raw)
    except json.JSONDecodeError as e:
        raise RunnerCrashError(f"{source} produced invalid JSON output: {e}") from e
    if not isinstance(output, dict):
        raise RunnerCrashError(f"{source} produced a JSON {type(output).__name__}, expected object")
    return output
