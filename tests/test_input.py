import sys

import pytest
from pydantic import ValidationError

from solc_toolchain.input import (
    DEFAULT_OUTPUT_SELECTION,
    CompilerOptions,
    build_compiler_input,
    build_input_for_files,
    build_input_for_literal,
    get_source_file_mapping,
)


def test_default_options():
    options = CompilerOptions()
    assert options.solidity_version == "0.8.0"
    assert options.compiler_path == "soljson-v0.8.0+commit.c7dfd78e.js"
    assert options.runs is None


def test_optimizer_disabled_without_runs():
    settings = build_compiler_input({}, CompilerOptions())["settings"]
    assert settings["optimizer"] == {"enabled": False, "runs": 200}


@pytest.mark.parametrize("runs", [0, 1, 1000])
def test_optimizer_enabled_with_runs(runs):
    settings = build_compiler_input({}, CompilerOptions(runs=runs))["settings"]
    assert settings["optimizer"] == {"enabled": True, "runs": runs}


def test_negative_runs_rejected():
    with pytest.raises(ValidationError):
        CompilerOptions(runs=-1)


def test_output_selection():
    compiler_input = build_compiler_input({}, CompilerOptions())
    assert compiler_input["language"] == "Solidity"
    assert compiler_input["settings"]["outputSelection"] == {
        "*": {
            "*": ["abi", "evm.bytecode", "evm.deployedBytecode", "evm.methodIdentifiers"],
            "": ["id", "ast"],
        }
    }


def test_output_selection_is_not_shared():
    compiler_input = build_compiler_input({}, CompilerOptions())
    compiler_input["settings"]["outputSelection"]["*"]["*"].append("metadata")
    assert "metadata" not in DEFAULT_OUTPUT_SELECTION["*"]["*"]


def test_literal_input():
    compiler_input = build_input_for_literal("contract A {}", CompilerOptions())
    assert compiler_input["sources"] == {"literal.sol": {"content": "contract A {}"}}

    compiler_input = build_input_for_literal("contract A {}", CompilerOptions(), "A.sol")
    assert list(compiler_input["sources"]) == ["A.sol"]


def test_files_keyed_by_basename(tmp_path):
    (tmp_path / "contracts").mkdir()
    first = tmp_path / "contracts" / "A.sol"
    first.write_text("contract A {}")
    second = tmp_path / "B.sol"
    second.write_text("contract B {}")

    assert get_source_file_mapping([first, str(second)]) == {
        "A.sol": {"content": "contract A {}"},
        "B.sol": {"content": "contract B {}"},
    }
    compiler_input = build_input_for_files([first, second], CompilerOptions(runs=5))
    assert set(compiler_input["sources"]) == {"A.sol", "B.sol"}
    assert compiler_input["settings"]["optimizer"]["runs"] == 5


def test_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        build_input_for_files([tmp_path / "missing.sol"], CompilerOptions())


if __name__ == "__main__":
    pytest.main(sys.argv)
