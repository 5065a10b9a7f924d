"""Compiler runners.

This package runs downloaded compilers behind one call contract. It includes:
- CompilerRunner: Abstract base class, ``run(input) -> output``
- NativeRunner: Runs an executable as a subprocess over stdio
- ScriptRunner: Loads a script-based compiler module and calls it in-process
- RunnerRegistry: Selects the runner for a compiler descriptor

The typical workflow is:
1. Get the registry: registry = RunnerRegistry.get_instance()
2. Get a runner: runner = registry.get_runner(descriptor)
3. Execute: output = runner.run(compiler_input)
"""

from .native_runner import NativeRunner
from .registry import RunnerRegistry
from .runner import CompilerInput, CompilerOutput, CompilerRunner, parse_compiler_output
from .script_runner import ScriptRunner

__all__ = [
    "CompilerInput",
    "CompilerOutput",
    "CompilerRunner",
    "NativeRunner",
    "ScriptRunner",
    "RunnerRegistry",
    "parse_compiler_output",
]
