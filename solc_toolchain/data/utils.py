from pathlib import Path, PureWindowsPath
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, StringConstraints

NonEmptyString = Annotated[str, StringConstraints(min_length=1)]
"""Type alias for non-empty strings with minimum length of 1."""

SemanticVersion = Annotated[
    str, StringConstraints(strip_whitespace=True, pattern=r"^\d+\.\d+\.\d+$")
]
"""A short compiler version such as ``0.8.0``, without prerelease or build tags."""

HexDigest = Annotated[str, StringConstraints(pattern=r"^[0-9a-f]+$")]
"""A lowercase hex digest without ``0x`` prefix."""


def _require_file_name(value: str) -> str:
    if value in {".", ".."} or Path(value).name != value or PureWindowsPath(value).name != value:
        raise ValueError(f"Expected a plain file name, got {value!r}")
    return value


FileName = Annotated[str, StringConstraints(min_length=1), AfterValidator(_require_file_name)]
"""A single path component, never a directory traversal or an absolute path."""


class BaseModelWithDocstrings(BaseModel):
    """Base model whose attribute docstrings end up in the JSON schema."""

    model_config = ConfigDict(use_attribute_docstrings=True)


class FrozenModelWithDocstrings(BaseModelWithDocstrings):
    """Immutable, hashable variant for values that are shared between callers."""

    model_config = ConfigDict(use_attribute_docstrings=True, frozen=True)
