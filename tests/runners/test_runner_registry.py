import sys
import threading
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from solc_toolchain.data import CompilerDescriptor, CompilerKind
from solc_toolchain.errors import RunnerCrashError
from solc_toolchain.runners import CompilerRunner, NativeRunner, RunnerRegistry, ScriptRunner
from solc_toolchain.runners.runner import parse_compiler_output


def _descriptor(kind: CompilerKind, path: str = "/opt/solc") -> CompilerDescriptor:
    return CompilerDescriptor(path=Path(path), kind=kind, version="0.8.0", long_version="0.8.0")


def test_dispatch_by_kind():
    registry = RunnerRegistry()
    assert isinstance(registry.get_runner(_descriptor(CompilerKind.NATIVE)), NativeRunner)
    assert isinstance(registry.get_runner(_descriptor(CompilerKind.SCRIPT)), ScriptRunner)


def test_runner_cached_per_descriptor():
    registry = RunnerRegistry()
    runner = registry.get_runner(_descriptor(CompilerKind.NATIVE))
    assert registry.get_runner(_descriptor(CompilerKind.NATIVE)) is runner
    assert registry.get_runner(_descriptor(CompilerKind.NATIVE, "/opt/other")) is not runner


def test_cleanup_clears_cache():
    runner = MagicMock(spec=CompilerRunner)
    runner_type = MagicMock(return_value=runner)
    registry = RunnerRegistry({CompilerKind.NATIVE: runner_type, CompilerKind.SCRIPT: runner_type})
    descriptor = _descriptor(CompilerKind.SCRIPT)

    assert registry.get_runner(descriptor) is runner
    registry.cleanup()
    runner.cleanup.assert_called_once()

    registry.get_runner(descriptor)
    assert runner_type.call_count == 2


def test_concurrent_get_runner_builds_one_runner():
    barrier = threading.Barrier(8)
    created = []

    class CountingRunner(NativeRunner):
        def __init__(self, descriptor):
            created.append(descriptor)
            super().__init__(descriptor)

    registry = RunnerRegistry(
        {CompilerKind.NATIVE: CountingRunner, CompilerKind.SCRIPT: ScriptRunner}
    )
    descriptor = _descriptor(CompilerKind.NATIVE)

    def get(_):
        barrier.wait()
        return registry.get_runner(descriptor)

    with ThreadPoolExecutor(max_workers=8) as executor:
        runners = list(executor.map(get, range(8)))

    assert all(runner is runners[0] for runner in runners)
    assert len(created) == 1


def test_missing_runner_type():
    with pytest.raises(ValueError, match="script"):
        RunnerRegistry({CompilerKind.NATIVE: NativeRunner})


def test_get_instance_is_singleton():
    assert RunnerRegistry.get_instance() is RunnerRegistry.get_instance()


@pytest.mark.parametrize("raw", ['{"a": 1}', b'{"a": 1}', {"a": 1}])
def test_parse_compiler_output(raw):
    assert parse_compiler_output(raw, "test") == {"a": 1}


@pytest.mark.parametrize("raw", ["", "null", b"\xff", None])
def test_parse_compiler_output_rejects(raw):
    with pytest.raises(RunnerCrashError, match="test"):
        parse_compiler_output(raw, "test")


if __name__ == "__main__":
    pytest.main(sys.argv)
