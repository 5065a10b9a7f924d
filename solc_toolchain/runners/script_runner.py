"""Runner for script-based compilers loaded in-process."""

from __future__ import annotations

import asyncio
import hashlib
import importlib.machinery
import importlib.util
import inspect
import json
import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from types import ModuleType
from typing import Any, ClassVar, Dict

from solc_toolchain.data import CompilerDescriptor, CompilerKind
from solc_toolchain.errors import RunnerCrashError
from solc_toolchain.logging import get_logger

from .runner import CompilerInput, CompilerOutput, CompilerRunner, parse_compiler_output

logger = get_logger("ScriptRunner")


def _run_coroutine(awaitable: Any) -> Any:
    """Drive an awaitable to completion from synchronous code."""
    try:
        asyncio.get_running_loop()
    except RuntimeError:
        return asyncio.run(awaitable)
    # Called from inside an event loop: run on a private loop in a worker thread
    with ThreadPoolExecutor(max_workers=1) as executor:
        return executor.submit(asyncio.run, awaitable).result()


class ScriptRunner(CompilerRunner):
    """Runs a script-based compiler module in the current process.

    The artifact is a Python source file (any file extension) exposing an entry point::

        def compile(input_json: str) -> str | bytes | dict: ...

    The entry point may also be a coroutine function. Each artifact is loaded at most once per
    process; every runner for the same path shares the loaded module.
    """

    KIND: ClassVar[CompilerKind] = CompilerKind.SCRIPT

    ENTRY_POINT: ClassVar[str] = "compile"
    """Name of the compile function looked up in the loaded module."""

    _modules: ClassVar[Dict[str, ModuleType]] = {}
    """Process-wide cache of loaded compiler modules, keyed by resolved artifact path."""

    _modules_lock: ClassVar[threading.Lock] = threading.Lock()
    """Guards ``_modules`` so concurrent runners load a module only once."""

    @classmethod
    def load_module(cls, descriptor: CompilerDescriptor) -> ModuleType:
        """Load the compiler module of ``descriptor``, or return the already loaded one.

        Parameters
        ----------
        descriptor : CompilerDescriptor
            The script compiler to load.

        Returns
        -------
        ModuleType
            The loaded module.

        Raises
        ------
        RunnerCrashError
            If the file cannot be loaded or does not define the entry point.
        """
        key = str(descriptor.path.resolve())
        with cls._modules_lock:
            module = cls._modules.get(key)
            if module is not None:
                return module

            digest = hashlib.sha256(key.encode("utf-8")).hexdigest()[:12]
            module_name = f"_solc_compiler_{digest}"
            loader = importlib.machinery.SourceFileLoader(module_name, key)
            spec = importlib.util.spec_from_file_location(module_name, key, loader=loader)
            if spec is None:
                raise RunnerCrashError(f"Cannot load compiler module from {key}")
            module = importlib.util.module_from_spec(spec)
            sys.modules[module_name] = module
            try:
                loader.exec_module(module)
            except Exception as e:
                sys.modules.pop(module_name, None)
                raise RunnerCrashError(
                    f"Failed to load compiler {descriptor.long_version} from {key}: {e}"
                ) from e

            if not callable(getattr(module, cls.ENTRY_POINT, None)):
                sys.modules.pop(module_name, None)
                raise RunnerCrashError(
                    f"Compiler module {key} does not define a '{cls.ENTRY_POINT}' function"
                )

            logger.info(f"Loaded compiler {descriptor.long_version} from {key}")
            cls._modules[key] = module
            return module

    @classmethod
    def unload_all(cls) -> None:
        """Forget every loaded compiler module."""
        with cls._modules_lock:
            for module in cls._modules.values():
                sys.modules.pop(module.__name__, None)
            cls._modules.clear()

    def run(self, compiler_input: CompilerInput) -> CompilerOutput:
        """Compile a request by calling the module's entry point.

        Raises
        ------
        RunnerCrashError
            If the module cannot be loaded, the entry point raises, or it returns something
            other than a JSON object.
        """
        module = self.load_module(self._descriptor)
        entry = getattr(module, self.ENTRY_POINT)
        name = f"Compiler {self._descriptor.long_version}"

        try:
            raw = entry(json.dumps(compiler_input))
            if inspect.isawaitable(raw):
                raw = _run_coroutine(raw)
        except Exception as e:
            raise RunnerCrashError(f"{name} raised {type(e).__name__}: {e}") from e

        return parse_compiler_output(raw, name)
