"""Strong-typed data definitions for downloaded compiler artifacts."""

from enum import Enum
from pathlib import Path

from pydantic import Field

from .utils import (
    FileName,
    FrozenModelWithDocstrings,
    HexDigest,
    NonEmptyString,
    SemanticVersion,
)


class CompilerKind(str, Enum):
    """Execution strategy of a compiler artifact."""

    NATIVE = "native"
    """A platform executable, run as a subprocess speaking Standard JSON over stdio."""
    SCRIPT = "script"
    """A script-based compiler module, loaded and called in-process."""


class CompilerDescriptor(FrozenModelWithDocstrings):
    """A concrete, fully downloaded compiler artifact.

    Descriptors are produced by the cache and are immutable. Callers pass them to runners but
    never modify them.
    """

    path: Path
    """Absolute filesystem path of the artifact."""
    kind: CompilerKind
    """How the artifact is executed."""
    version: SemanticVersion
    """The short semantic version, e.g. ``0.8.0``."""
    long_version: NonEmptyString
    """The full version string including the build tag, e.g. ``0.8.0+commit.c7dfd78e``."""


class DownloadRecord(FrozenModelWithDocstrings):
    """The persisted cache entry written after an artifact has been placed atomically.

    The presence of a complete record is the only signal that a version is downloaded.
    """

    platform: NonEmptyString
    """Canonical platform identifier the artifact was downloaded for."""
    version: SemanticVersion
    """The short semantic version."""
    long_version: NonEmptyString
    """The full version string including the build tag."""
    kind: CompilerKind
    """How the artifact is executed."""
    artifact: FileName
    """File name of the artifact inside the platform directory."""
    sha256: HexDigest
    """Lowercase hex sha256 digest of the artifact, without ``0x`` prefix."""
    size: int = Field(ge=0)
    """Artifact size in bytes."""
