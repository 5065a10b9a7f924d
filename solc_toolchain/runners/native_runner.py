"""Runner for native compiler executables."""

from __future__ import annotations

import json
import subprocess
from typing import ClassVar, List, Optional

from solc_toolchain.data import CompilerDescriptor, CompilerKind
from solc_toolchain.errors import RunnerCrashError
from solc_toolchain.logging import get_logger

from .runner import CompilerInput, CompilerOutput, CompilerRunner, parse_compiler_output

logger = get_logger("NativeRunner")


class NativeRunner(CompilerRunner):
    """Runs a native compiler executable as a subprocess speaking Standard JSON over stdio.

    The request is written to the process's stdin and its stdout is read to completion, with no
    fixed buffer limit. The subprocess is always killed and reaped before :meth:`run` returns,
    including when the caller is interrupted.
    """

    KIND: ClassVar[CompilerKind] = CompilerKind.NATIVE

    _ARGS: ClassVar[List[str]] = ["--standard-json"]
    """Command line arguments selecting Standard-JSON mode."""

    def __init__(self, descriptor: CompilerDescriptor, timeout: Optional[float] = None) -> None:
        """Initialize the runner.

        Parameters
        ----------
        descriptor : CompilerDescriptor
            The native compiler to run.
        timeout : Optional[float]
            Maximum seconds a single compilation may take. None waits indefinitely.
        """
        super().__init__(descriptor)
        self._timeout = timeout

    def _command(self) -> List[str]:
        return [str(self._descriptor.path), *self._ARGS]

    def run(self, compiler_input: CompilerInput) -> CompilerOutput:
        """Compile a request by piping it through the compiler executable.

        Raises
        ------
        RunnerCrashError
            If the executable cannot be started, times out, or exits without parseable output.
        """
        cmd = self._command()
        payload = json.dumps(compiler_input).encode("utf-8")
        logger.debug(f"Running {' '.join(cmd)} ({len(payload)} bytes of input)")

        try:
            proc = subprocess.Popen(
                cmd, stdin=subprocess.PIPE, stdout=subprocess.PIPE, stderr=subprocess.PIPE
            )
        except OSError as e:
            raise RunnerCrashError(f"Cannot start compiler {cmd[0]}: {e}") from e

        try:
            stdout, stderr = proc.communicate(input=payload, timeout=self._timeout)
        except subprocess.TimeoutExpired as e:
            raise RunnerCrashError(
                f"Compiler {self._descriptor.long_version} timed out after {self._timeout}s"
            ) from e
        finally:
            if proc.poll() is None:
                proc.kill()
            proc.wait()

        name = f"Compiler {self._descriptor.long_version}"
        if proc.returncode != 0:
            try:
                output = parse_compiler_output(stdout, name)
            except RunnerCrashError as e:
                message = stderr.decode("utf-8", errors="replace").strip()
                raise RunnerCrashError(
                    f"{name} exited with code {proc.returncode}: {message or 'no output'}"
                ) from e
            logger.warning(f"{name} exited with code {proc.returncode} but produced output")
            return output
        return parse_compiler_output(stdout, name)
