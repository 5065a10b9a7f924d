"""Construction of Standard-JSON compilation requests."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from pydantic import Field

from solc_toolchain.data.utils import BaseModelWithDocstrings, NonEmptyString, SemanticVersion

DEFAULT_OPTIMIZER_RUNS = 200
"""Optimizer runs used when the caller does not ask for optimization."""

DEFAULT_OUTPUT_SELECTION: Dict[str, Dict[str, List[str]]] = {
    "*": {
        "*": ["abi", "evm.bytecode", "evm.deployedBytecode", "evm.methodIdentifiers"],
        "": ["id", "ast"],
    }
}
"""Outputs requested for every contract and every source unit."""


class CompilerOptions(BaseModelWithDocstrings):
    """Options controlling which compiler is used and how requests are built."""

    solidity_version: SemanticVersion = "0.8.0"
    """The compiler version to acquire, e.g. ``0.8.0``."""
    compiler_path: NonEmptyString = "soljson-v0.8.0+commit.c7dfd78e.js"
    """Artifact name, or an absolute path to a locally installed compiler. An absolute path
    bypasses the downloader."""
    runs: Optional[int] = Field(default=None, ge=0)
    """Optimizer runs. None disables the optimizer."""


def get_source_file_mapping(sources: Sequence[Union[str, Path]]) -> Dict[str, Dict[str, str]]:
    """Read source files into a Standard-JSON ``sources`` mapping keyed by base name.

    Parameters
    ----------
    sources : Sequence[Union[str, Path]]
        Paths of the source files.

    Returns
    -------
    Dict[str, Dict[str, str]]
        ``{basename: {"content": text}}`` for every file.
    """
    mapping: Dict[str, Dict[str, str]] = {}
    for source in sources:
        path = Path(source)
        mapping[path.name] = {"content": path.read_text(encoding="utf-8")}
    return mapping


def build_compiler_input(
    sources: Dict[str, Dict[str, str]], options: CompilerOptions
) -> Dict[str, Any]:
    """Build a Standard-JSON request for the given sources.

    The optimizer is enabled exactly when ``options.runs`` is set.
    """
    return {
        "language": "Solidity",
        "sources": sources,
        "settings": {
            "optimizer": {
                "enabled": options.runs is not None,
                "runs": options.runs if options.runs is not None else DEFAULT_OPTIMIZER_RUNS,
            },
            "outputSelection": {
                file_glob: {contract_glob: list(kinds) for contract_glob, kinds in outputs.items()}
                for file_glob, outputs in DEFAULT_OUTPUT_SELECTION.items()
            },
        },
    }


def build_input_for_files(
    sources: Sequence[Union[str, Path]], options: CompilerOptions
) -> Dict[str, Any]:
    return build_compiler_input(get_source_file_mapping(sources), options)


def build_input_for_literal(
    source: str, options: CompilerOptions, filename: str = "literal.sol"
) -> Dict[str, Any]:
    return build_compiler_input({filename: {"content": source}}, options)
