"""Top-level compile operation: acquire a compiler, run it, and check its diagnostics."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, Tuple, Union

from solc_toolchain.data import CompilerDescriptor, CompilerKind
from solc_toolchain.download import get_concurrency_safe_downloader
from solc_toolchain.env import get_solc_native
from solc_toolchain.errors import CompilationError
from solc_toolchain.input import CompilerOptions, build_input_for_files, build_input_for_literal
from solc_toolchain.logging import get_logger
from solc_toolchain.runners import CompilerInput, CompilerOutput, RunnerRegistry

logger = get_logger("CompileOrchestrator")

PathLike = Union[str, Path]


def check_diagnostics(compiler_output: CompilerOutput) -> None:
    """Raise on the first diagnostic with ``error`` severity.

    Diagnostics of any other severity (warnings, info) are ignored.

    Raises
    ------
    CompilationError
        Carrying the offending diagnostic and its message verbatim.
    """
    for error in compiler_output.get("errors") or []:
        if isinstance(error, dict) and error.get("severity") == "error":
            raise CompilationError(str(error.get("message", "")), diagnostic=error)


class CompileOrchestrator:
    """Runs compilation requests against downloaded compilers.

    The runner is selected from the descriptor's kind through a :class:`RunnerRegistry`, so
    native and script-based compilers are used the same way.
    """

    def __init__(self, registry: Optional[RunnerRegistry] = None) -> None:
        """Initialize the orchestrator.

        Parameters
        ----------
        registry : Optional[RunnerRegistry]
            Registry to take runners from. Defaults to the shared registry.
        """
        self._registry = registry if registry is not None else RunnerRegistry.get_instance()

    def compile(
        self, compiler_input: CompilerInput, descriptor: CompilerDescriptor
    ) -> Tuple[CompilerInput, CompilerOutput]:
        """Compile a request with the given compiler.

        Parameters
        ----------
        compiler_input : CompilerInput
            The Standard-JSON request. It is passed through unchanged.
        descriptor : CompilerDescriptor
            The compiler to run.

        Returns
        -------
        Tuple[CompilerInput, CompilerOutput]
            The very same request object, paired with the compiler's output.

        Raises
        ------
        CompilationError
            If the output contains a diagnostic with ``error`` severity.
        RunnerCrashError
            If the compiler fails to produce an output document.
        """
        runner = self._registry.get_runner(descriptor)
        logger.debug(f"Compiling with {descriptor.long_version} ({descriptor.kind.value})")
        compiler_output = runner.run(compiler_input)
        check_diagnostics(compiler_output)
        return compiler_input, compiler_output


def get_compiler_for_version(
    solidity_version: str, cache_dir: Optional[PathLike] = None
) -> CompilerDescriptor:
    """Get the compiler for a version, downloading it if it is not cached yet."""
    downloader = get_concurrency_safe_downloader(cache_dir=cache_dir)
    return downloader.get_compiler(solidity_version)


def download_compiler(solidity_version: str, cache_dir: Optional[PathLike] = None) -> None:
    """Make sure a version is downloaded, without resolving a runner."""
    downloader = get_concurrency_safe_downloader(cache_dir=cache_dir)
    if not downloader.is_compiler_downloaded(solidity_version):
        downloader.download_compiler(solidity_version)


def get_local_compiler(options: CompilerOptions) -> CompilerDescriptor:
    """Describe a pre-installed compiler at an absolute ``compiler_path``.

    The kind comes from the ``SOLC_NATIVE`` switch: native when it is set, script otherwise.
    """
    return CompilerDescriptor(
        path=Path(options.compiler_path),
        kind=CompilerKind.NATIVE if get_solc_native() else CompilerKind.SCRIPT,
        version=options.solidity_version,
        long_version=options.solidity_version,
    )


def compile_input(
    compiler_input: CompilerInput,
    descriptor: CompilerDescriptor,
    registry: Optional[RunnerRegistry] = None,
) -> Tuple[CompilerInput, CompilerOutput]:
    """Compile a request with the given compiler. See :meth:`CompileOrchestrator.compile`."""
    return CompileOrchestrator(registry).compile(compiler_input, descriptor)


def compile_files(
    sources: Sequence[PathLike],
    options: CompilerOptions,
    cache_dir: Optional[PathLike] = None,
) -> Tuple[CompilerInput, CompilerOutput]:
    """Compile source files.

    When ``options.compiler_path`` is absolute, that local compiler is used and nothing is
    downloaded. Otherwise ``options.solidity_version`` is acquired through the cache.
    """
    if Path(options.compiler_path).is_absolute():
        descriptor = get_local_compiler(options)
    else:
        descriptor = get_compiler_for_version(options.solidity_version, cache_dir=cache_dir)
    return compile_input(build_input_for_files(sources, options), descriptor)


def compile_literal(
    source: str,
    options: Optional[CompilerOptions] = None,
    filename: str = "literal.sol",
    cache_dir: Optional[PathLike] = None,
) -> Tuple[CompilerInput, CompilerOutput]:
    """Compile a single source string, by default with compiler 0.8.0 and 1 optimizer run."""
    if options is None:
        options = CompilerOptions(runs=1)
    descriptor = get_compiler_for_version(options.solidity_version, cache_dir=cache_dir)
    return compile_input(build_input_for_literal(source, options, filename), descriptor)


__all__ = [
    "CompileOrchestrator",
    "check_diagnostics",
    "compile_files",
    "compile_input",
    "compile_literal",
    "download_compiler",
    "get_compiler_for_version",
    "get_local_compiler",
]
