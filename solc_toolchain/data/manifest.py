"""Strong-typed data definitions for the upstream compiler manifest (``list.json``)."""

from typing import Dict, List, Optional

from pydantic import ConfigDict, Field, field_validator

from .compiler import CompilerKind
from .utils import BaseModelWithDocstrings, FileName, NonEmptyString, SemanticVersion


class CompilerBuild(BaseModelWithDocstrings):
    """A single downloadable compiler build listed in the manifest."""

    model_config = ConfigDict(use_attribute_docstrings=True, populate_by_name=True)

    path: FileName
    """File name of the build relative to the platform directory, e.g.
    ``solc-linux-amd64-v0.8.0+commit.c7dfd78e``."""
    version: SemanticVersion
    """The short semantic version."""
    long_version: NonEmptyString = Field(alias="longVersion")
    """The full version string including the build tag."""
    sha256: NonEmptyString
    """Published sha256 digest, normalized to lowercase hex without ``0x``."""
    keccak256: Optional[str] = None
    """Published keccak256 digest. Kept for reference, not verified."""
    urls: List[str] = Field(default_factory=list)
    """Alternative content-addressed locations (``bzzr://``, ``dweb:/ipfs/``)."""
    kind: Optional[CompilerKind] = None
    """Explicit execution strategy. When absent, the platform decides."""

    @field_validator("sha256", "keccak256")
    @classmethod
    def _normalize_digest(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip().lower()
        if value.startswith("0x"):
            value = value[2:]
        return value


class CompilerManifest(BaseModelWithDocstrings):
    """The platform-keyed list of available compiler builds."""

    model_config = ConfigDict(use_attribute_docstrings=True, populate_by_name=True)

    builds: List[CompilerBuild] = Field(default_factory=list)
    """All builds, including prereleases and nightlies."""
    releases: Dict[str, str] = Field(default_factory=dict)
    """Mapping from released version to the ``path`` of its build."""
    latest_release: Optional[str] = Field(default=None, alias="latestRelease")
    """The most recent released version."""

    def get_build(self, version: str) -> Optional[CompilerBuild]:
        """Get the release build for a version.

        Parameters
        ----------
        version : str
            The short semantic version, e.g. ``0.8.0``.

        Returns
        -------
        Optional[CompilerBuild]
            The single build the version is released as, or None if the version is not a release
            in this manifest.
        """
        build_path = self.releases.get(version)
        if build_path is None:
            return None
        matches = [build for build in self.builds if build.path == build_path]
        if len(matches) != 1:
            return None
        return matches[0]
