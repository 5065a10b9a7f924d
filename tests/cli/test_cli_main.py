import json
import logging
import sys

import pytest
import requests

import solc_toolchain.logging as solc_logging
from solc_toolchain.cli import cli
from solc_toolchain.platform import get_compiler_platform


@pytest.fixture(autouse=True)
def _detach_cli_log_handler(monkeypatch):
    """The CLI installs a handler on the package logger; drop it after each test."""
    monkeypatch.setattr(solc_logging, "_handler", None)
    yield
    logger = solc_logging.get_logger()
    logger.setLevel(logging.NOTSET)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)


@pytest.fixture
def online(monkeypatch, mirror):
    monkeypatch.setattr(requests, "Session", lambda: mirror)
    return mirror


@pytest.fixture
def sources(tmp_path, valid_source, syntax_error_source):
    good = tmp_path / "Good.sol"
    good.write_text(valid_source)
    bad = tmp_path / "Bad.sol"
    bad.write_text(syntax_error_source)
    return good, bad


def test_platform(capsys):
    assert cli(["platform"]) == 0
    assert capsys.readouterr().out.strip() == get_compiler_platform().value


def test_list_empty(tmp_cache_dir, capsys):
    assert cli(["list"]) == 0
    assert "No compilers downloaded" in capsys.readouterr().out


def test_download_then_list(tmp_cache_dir, online, capsys):
    assert cli(["download", "0.8.0"]) == 0
    assert "0.8.0+commit.c7dfd78e (script)" in capsys.readouterr().out

    assert cli(["list"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("0.8.0\tscript\t0.8.0+commit.c7dfd78e")
    assert online.total_downloads() == 1


def test_download_unknown_version(tmp_cache_dir, online, capsys):
    assert cli(["download", "0.4.99"]) == 2
    assert "not available" in capsys.readouterr().err


def test_download_into_cache_dir(tmp_path, tmp_cache_dir, online):
    cache_dir = tmp_path / "custom"
    assert cli(["--cache-dir", str(cache_dir), "download", "0.8.0"]) == 0
    assert any(cache_dir.rglob("0.8.0.json"))


def test_compile_with_local_compiler(tmp_cache_dir, script_compiler, sources, capsys):
    good, _ = sources
    argv = ["compile", str(good), "--compiler-path", str(script_compiler.path), "--runs", "7"]
    assert cli(argv) == 0

    output = json.loads(capsys.readouterr().out)
    assert "C" in output["contracts"]["Good.sol"]
    assert output["settings"]["optimizer"] == {"enabled": True, "runs": 7}


def test_compile_to_file(tmp_path, tmp_cache_dir, online, sources, capsys):
    good, _ = sources
    target = tmp_path / "out" / "output.json"
    assert cli(["compile", str(good), "--output", str(target)]) == 0

    assert "written to" in capsys.readouterr().out
    assert "Good.sol" in json.loads(target.read_text())["contracts"]


def test_compile_error_exit_code(tmp_cache_dir, script_compiler, sources, capsys):
    _, bad = sources
    assert cli(["compile", str(bad), "--compiler-path", str(script_compiler.path)]) == 1
    assert "error: Failed to compile: Expected '}' but got end of source" in capsys.readouterr().err


def test_runner_crash_exit_code(tmp_path, tmp_cache_dir, sources, capsys):
    good, _ = sources
    broken = tmp_path / "broken.py"
    broken.write_text("def compile(input_json):\n    return 'garbage'\n")
    assert cli(["compile", str(good), "--compiler-path", str(broken)]) == 2
    assert "invalid JSON" in capsys.readouterr().err


def test_log_level_option(tmp_cache_dir, capsys):
    assert cli(["--log-level", "debug", "list"]) == 0
    assert solc_logging.get_logger().level == logging.DEBUG


if __name__ == "__main__":
    pytest.main(sys.argv)
