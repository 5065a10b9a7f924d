import hashlib
import json
import os
import stat
import sys
import threading
import time
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Set

import pytest
import requests

from solc_toolchain.data import CompilerDescriptor, CompilerKind
from solc_toolchain.runners import ScriptRunner

MIRROR_URL = "https://mirror.test"
"""Base URL served by the FakeMirror."""

FAKE_SOLC_SOURCE = '''
import json
import re

LONG_VERSION = "0.8.0+commit.c7dfd78e"


def _compile(request):
    output = {"sources": {}, "contracts": {}}
    errors = []
    for index, name in enumerate(sorted(request["sources"])):
        content = request["sources"][name]["content"]
        output["sources"][name] = {"id": index}
        if content.count("{") != content.count("}"):
            errors.append(
                {
                    "severity": "error",
                    "type": "ParserError",
                    "message": "Expected '}' but got end of source",
                    "formattedMessage": "ParserError: Expected '}' but got end of source --> "
                    + name,
                }
            )
            continue
        if "pragma solidity" not in content:
            errors.append(
                {
                    "severity": "warning",
                    "type": "Warning",
                    "message": "Source file does not specify required compiler version!",
                }
            )
        output["contracts"][name] = {
            contract: {"abi": []} for contract in re.findall(r"\\bcontract\\s+(\\w+)", content)
        }
    output["settings"] = request.get("settings", {})
    if errors:
        output["errors"] = errors
    return output


def compile(input_json):
    return json.dumps(_compile(json.loads(input_json)))
'''
"""A script-based compiler module that understands just enough Solidity for tests."""

VALID_SOURCE = 'pragma solidity ^0.8.0;\ncontract C { function f() public {} }\n'
"""A trivial, valid source."""

SYNTAX_ERROR_SOURCE = "pragma solidity ^0.8.0;\ncontract C { function f() public {\n"
"""A source with an unbalanced brace."""


class FakeResponse:
    """The subset of ``requests.Response`` used by the downloader."""

    def __init__(self, url: str, status_code: int, body: bytes, chunk_delay: float = 0.0) -> None:
        self.url = url
        self.status_code = status_code
        self._body = body
        self._chunk_delay = chunk_delay

    def __enter__(self) -> "FakeResponse":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def close(self) -> None:
        pass

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Client Error for url: {self.url}")

    def json(self):
        return json.loads(self._body)

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        for start in range(0, len(self._body), chunk_size):
            if self._chunk_delay:
                time.sleep(self._chunk_delay)
            yield self._body[start : start + chunk_size]


class FakeMirror:
    """An in-memory compiler mirror standing in for ``requests.Session``.

    It serves the same builds for every platform and counts every request.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._builds: List[dict] = []
        self._releases: Dict[str, str] = {}
        self._artifacts: Dict[str, bytes] = {}
        self.downloads: Dict[str, int] = {}
        self.manifest_fetches = 0
        self.failing: Set[str] = set()
        self.chunk_delay = 0.0

    def add_build(
        self,
        version: str,
        content: bytes,
        kind: Optional[str] = None,
        sha256: Optional[str] = None,
        released: bool = True,
    ) -> str:
        """Publish a build and return its path."""
        long_version = f"{version}+commit.c7dfd78e"
        path = f"solc-v{long_version}"
        build = {
            "path": path,
            "version": version,
            "longVersion": long_version,
            "sha256": "0x" + (sha256 or hashlib.sha256(content).hexdigest()),
            "keccak256": "0x" + "00" * 32,
            "urls": [f"dweb:/ipfs/{version}"],
        }
        if kind is not None:
            build["kind"] = kind
        with self._lock:
            self._builds = [b for b in self._builds if b["path"] != path] + [build]
            self._artifacts[path] = content
            if released:
                self._releases[version] = path
        return path

    def replace_artifact(self, path: str, content: bytes) -> None:
        with self._lock:
            self._artifacts[path] = content

    def manifest(self) -> dict:
        with self._lock:
            latest = sorted(self._releases)[-1] if self._releases else None
            return {
                "builds": list(self._builds),
                "releases": dict(self._releases),
                "latestRelease": latest,
            }

    def get(self, url: str, stream: bool = False, timeout: Optional[float] = None) -> FakeResponse:
        if url in self.failing:
            raise requests.ConnectionError(f"Connection refused: {url}")
        name = url.rsplit("/", 1)[-1]
        if name == "list.json":
            with self._lock:
                self.manifest_fetches += 1
            return FakeResponse(url, 200, json.dumps(self.manifest()).encode())
        with self._lock:
            content = self._artifacts.get(name)
            if content is not None:
                self.downloads[name] = self.downloads.get(name, 0) + 1
        if content is None:
            return FakeResponse(url, 404, b"Not Found")
        return FakeResponse(url, 200, content, chunk_delay=self.chunk_delay)

    def total_downloads(self) -> int:
        with self._lock:
            return sum(self.downloads.values())


@pytest.fixture
def tmp_cache_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Use isolated temporary directory for cache in all tests.

    This fixture sets SOLC_CACHE_PATH to a unique temporary directory for each test, preventing
    cache pollution between tests, and points SOLC_BINARIES_URL at the fake mirror.
    """
    cache_dir = tmp_path / "cache"
    monkeypatch.setenv("SOLC_CACHE_PATH", str(cache_dir))
    monkeypatch.setenv("SOLC_BINARIES_URL", MIRROR_URL)
    monkeypatch.delenv("SOLC_NATIVE", raising=False)
    monkeypatch.delenv("SOLC_LOCK_TIMEOUT", raising=False)
    return cache_dir


@pytest.fixture
def mirror() -> FakeMirror:
    """A fake mirror publishing the script compiler as release 0.8.0."""
    fake = FakeMirror()
    fake.add_build("0.8.0", FAKE_SOLC_SOURCE.encode(), kind="script")
    return fake


@pytest.fixture(autouse=True)
def _forget_loaded_compilers() -> Iterator[None]:
    """Script compilers are loaded once per process; unload them between tests."""
    yield
    ScriptRunner.unload_all()


@pytest.fixture
def script_compiler(tmp_path: Path) -> CompilerDescriptor:
    """A script compiler artifact on disk, outside of any cache."""
    path = tmp_path / "soljson-v0.8.0+commit.c7dfd78e.py"
    path.write_text(FAKE_SOLC_SOURCE)
    return CompilerDescriptor(
        path=path, kind=CompilerKind.SCRIPT, version="0.8.0", long_version="0.8.0+commit.c7dfd78e"
    )


def write_executable(path: Path, body: str) -> Path:
    """Write a Python script runnable as a native executable."""
    path.write_text(f"#!{sys.executable}\n{body}")
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return path


@pytest.fixture
def native_compiler(tmp_path: Path) -> CompilerDescriptor:
    """A native compiler executable speaking Standard JSON over stdio."""
    if os.name == "nt":
        pytest.skip("Shebang executables are not supported on Windows")
    body = FAKE_SOLC_SOURCE + (
        "\n\nif __name__ == '__main__':\n"
        "    import sys\n"
        "    if sys.argv[1:] != ['--standard-json']:\n"
        "        sys.stderr.write('expected --standard-json')\n"
        "        sys.exit(2)\n"
        "    sys.stdout.write(compile(sys.stdin.read()))\n"
    )
    path = write_executable(tmp_path / "solc-v0.8.0", body)
    return CompilerDescriptor(
        path=path, kind=CompilerKind.NATIVE, version="0.8.0", long_version="0.8.0+commit.c7dfd78e"
    )


@pytest.fixture
def fake_solc_source() -> str:
    """Source of the script-based test compiler."""
    return FAKE_SOLC_SOURCE


@pytest.fixture
def valid_source() -> str:
    return VALID_SOURCE


@pytest.fixture
def syntax_error_source() -> str:
    return SYNTAX_ERROR_SOURCE
