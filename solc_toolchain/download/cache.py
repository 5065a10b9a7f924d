"""Directory-backed store of downloaded compiler artifacts."""

from __future__ import annotations

import hashlib
import json
import os
import stat
import uuid
from pathlib import Path
from typing import List, Optional, Union

from pydantic import ValidationError

from solc_toolchain.data import (
    CompilerBuild,
    CompilerDescriptor,
    CompilerKind,
    CompilerManifest,
    DownloadRecord,
)
from solc_toolchain.errors import IntegrityError, StorageError
from solc_toolchain.logging import get_logger
from solc_toolchain.platform import CompilerPlatform

logger = get_logger("CompilerCache")

_HASH_CHUNK_SIZE = 1 << 20


def sha256_file(path: Path) -> str:
    """Compute the lowercase hex sha256 digest of a file without loading it into memory."""
    digest = hashlib.sha256()
    with open(path, "rb") as f:
        for chunk in iter(lambda: f.read(_HASH_CHUNK_SIZE), b""):
            digest.update(chunk)
    return digest.hexdigest()


def _atomic_write_text(path: Path, text: str) -> None:
    """Write ``text`` next to ``path`` and rename it into place."""
    tmp_path = path.with_name(f".{path.name}.{uuid.uuid4().hex}.tmp")
    try:
        tmp_path.write_text(text, encoding="utf-8")
        os.replace(tmp_path, path)
    finally:
        if tmp_path.exists():
            tmp_path.unlink()


class CompilerCache:
    """A directory-backed map from ``(platform, version)`` to downloaded compiler artifacts.

    Every write goes through an atomic rename, so readers only ever observe fully committed
    state and need no lock. The layout under ``root`` is::

        <platform>/list.json               cached manifest
        <platform>/<build path>            artifact in its final slot
        <platform>/<version>.json          download record, written last
        <platform>/.tmp/<version>-*.part   in-flight downloads
        <platform>/.locks/<version>.lock   version locks

    The cache never deletes committed artifacts; eviction is left to the owner of the directory.
    """

    _MANIFEST_FILE_NAME = "list.json"
    """File name of the cached manifest inside each platform directory."""

    _TEMP_DIR_NAME = ".tmp"
    """Subdirectory for in-flight downloads. It lives on the same filesystem as the final slots,
    so the promotion rename is atomic."""

    _LOCK_DIR_NAME = ".locks"
    """Subdirectory for version lock files."""

    def __init__(self, root: Union[str, Path]) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        """The cache root directory."""
        return self._root

    def platform_dir(self, platform: CompilerPlatform) -> Path:
        """Directory holding all artifacts of one platform."""
        return self._root / CompilerPlatform(platform).value

    def lock_dir(self, platform: CompilerPlatform) -> Path:
        """Directory holding the version lock files of one platform."""
        return self.platform_dir(platform) / self._LOCK_DIR_NAME

    def _temp_dir(self, platform: CompilerPlatform) -> Path:
        return self.platform_dir(platform) / self._TEMP_DIR_NAME

    def _record_path(self, platform: CompilerPlatform, version: str) -> Path:
        return self.platform_dir(platform) / f"{version}.json"

    def _read_record(self, platform: CompilerPlatform, version: str) -> Optional[DownloadRecord]:
        record_path = self._record_path(platform, version)
        try:
            text = record_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Cannot read download record {record_path}: {e}") from e
        try:
            return DownloadRecord.model_validate_json(text)
        except ValidationError:
            logger.warning(f"Ignoring unreadable download record {record_path}")
            return None

    def _descriptor(self, platform: CompilerPlatform, record: DownloadRecord) -> CompilerDescriptor:
        return CompilerDescriptor(
            path=self.platform_dir(platform) / record.artifact,
            kind=record.kind,
            version=record.version,
            long_version=record.long_version,
        )

    def is_downloaded(self, platform: CompilerPlatform, version: str) -> bool:
        """Check whether a version has a complete download record and artifact.

        Parameters
        ----------
        platform : CompilerPlatform
            The artifact family.
        version : str
            The short semantic version.

        Returns
        -------
        bool
            True only after :meth:`store` has committed both the artifact and its record.
        """
        return self.lookup(platform, version) is not None

    def lookup(self, platform: CompilerPlatform, version: str) -> Optional[CompilerDescriptor]:
        """Get the descriptor of a downloaded version.

        Parameters
        ----------
        platform : CompilerPlatform
            The artifact family.
        version : str
            The short semantic version.

        Returns
        -------
        Optional[CompilerDescriptor]
            The descriptor, or None if the version is not (completely) downloaded.

        Raises
        ------
        StorageError
            If the record exists but cannot be read.
        """
        record = self._read_record(platform, version)
        if record is None:
            return None
        descriptor = self._descriptor(platform, record)
        if not descriptor.path.is_file():
            return None
        return descriptor

    def list_downloaded(self, platform: CompilerPlatform) -> List[CompilerDescriptor]:
        """List all downloaded versions of a platform, sorted by version string."""
        platform_dir = self.platform_dir(platform)
        if not platform_dir.is_dir():
            return []
        descriptors = []
        for record_path in sorted(platform_dir.glob("*.json")):
            if record_path.name == self._MANIFEST_FILE_NAME:
                continue
            descriptor = self.lookup(platform, record_path.stem)
            if descriptor is not None:
                descriptors.append(descriptor)
        return descriptors

    def new_temp_path(self, platform: CompilerPlatform, version: str) -> Path:
        """Reserve a unique path for an in-flight download of ``version``.

        Raises
        ------
        StorageError
            If the temporary directory cannot be created.
        """
        temp_dir = self._temp_dir(platform)
        try:
            temp_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Cannot create temporary directory {temp_dir}: {e}") from e
        return temp_dir / f"{version}-{uuid.uuid4().hex}.part"

    def discard_temp_files(self, platform: CompilerPlatform, version: str) -> int:
        """Remove in-flight files of ``version`` left behind by abandoned downloads.

        Only call this while holding the version lock, otherwise a concurrent download may lose
        its temporary file.

        Returns
        -------
        int
            Number of files removed.
        """
        temp_dir = self._temp_dir(platform)
        if not temp_dir.is_dir():
            return 0
        removed = 0
        for path in temp_dir.glob(f"{version}-*.part"):
            try:
                path.unlink()
                removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                raise StorageError(f"Cannot remove stale temporary file {path}: {e}") from e
        if removed:
            logger.info(f"Discarded {removed} stale temporary file(s) for {version}")
        return removed

    def store(
        self,
        platform: CompilerPlatform,
        build: CompilerBuild,
        kind: CompilerKind,
        content: Union[bytes, Path],
    ) -> CompilerDescriptor:
        """Verify an artifact and atomically commit it to its final slot.

        The artifact is first written to (or already sits in) a temporary file. Its sha256 is
        checked against the manifest entry, native artifacts are marked executable, the file is
        renamed into place, and only then is the download record written.

        Parameters
        ----------
        platform : CompilerPlatform
            The artifact family.
        build : CompilerBuild
            The manifest entry the artifact was downloaded for.
        kind : CompilerKind
            How the artifact is executed.
        content : Union[bytes, Path]
            The artifact bytes, or the path of a temporary file inside this cache. A temporary
            file is consumed: it is either promoted or deleted.

        Returns
        -------
        CompilerDescriptor
            The descriptor of the committed artifact.

        Raises
        ------
        IntegrityError
            If the checksum does not match. Nothing is promoted.
        StorageError
            If the filesystem rejects any write.
        """
        platform_dir = self.platform_dir(platform)
        final_path = platform_dir / build.path

        try:
            if isinstance(content, Path):
                temp_path = content
            else:
                temp_path = self.new_temp_path(platform, build.version)
                temp_path.write_bytes(content)

            try:
                actual = sha256_file(temp_path)
                if actual != build.sha256:
                    logger.error(
                        f"Checksum mismatch for {build.path}: expected {build.sha256}, got {actual}"
                    )
                    raise IntegrityError(
                        f"Checksum mismatch for compiler {build.long_version}: "
                        f"expected sha256 {build.sha256}, got {actual}"
                    )
                size = temp_path.stat().st_size
                if kind == CompilerKind.NATIVE:
                    mode = temp_path.stat().st_mode
                    temp_path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
                os.replace(temp_path, final_path)
            finally:
                if temp_path.exists():
                    temp_path.unlink()

            record = DownloadRecord(
                platform=CompilerPlatform(platform).value,
                version=build.version,
                long_version=build.long_version,
                kind=kind,
                artifact=build.path,
                sha256=build.sha256,
                size=size,
            )
            _atomic_write_text(self._record_path(platform, build.version), record.model_dump_json())
        except OSError as e:
            raise StorageError(f"Cannot store compiler {build.long_version}: {e}") from e

        logger.info(f"Stored compiler {build.long_version} ({kind.value}) at {final_path}")
        return self._descriptor(platform, record)

    def read_manifest(self, platform: CompilerPlatform) -> Optional[CompilerManifest]:
        """Read the cached manifest of a platform, or None if absent or unreadable."""
        manifest_path = self.platform_dir(platform) / self._MANIFEST_FILE_NAME
        try:
            text = manifest_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except OSError as e:
            raise StorageError(f"Cannot read manifest {manifest_path}: {e}") from e
        try:
            return CompilerManifest.model_validate_json(text)
        except ValidationError:
            logger.warning(f"Ignoring unreadable cached manifest {manifest_path}")
            return None

    def write_manifest(self, platform: CompilerPlatform, manifest: CompilerManifest) -> None:
        """Atomically replace the cached manifest of a platform."""
        platform_dir = self.platform_dir(platform)
        try:
            platform_dir.mkdir(parents=True, exist_ok=True)
            _atomic_write_text(
                platform_dir / self._MANIFEST_FILE_NAME,
                json.dumps(manifest.model_dump(mode="json", by_alias=True, exclude_none=True)),
            )
        except OSError as e:
            raise StorageError(f"Cannot write manifest for {platform}: {e}") from e
