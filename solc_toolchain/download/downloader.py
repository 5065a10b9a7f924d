"""Concurrency-safe compiler downloader."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

import requests
from pydantic import ValidationError

from solc_toolchain.data import CompilerBuild, CompilerDescriptor, CompilerKind, CompilerManifest
from solc_toolchain.env import get_solc_compilers_path
from solc_toolchain.errors import DownloadError, StorageError
from solc_toolchain.logging import get_logger
from solc_toolchain.platform import CompilerPlatform, get_compiler_platform

from .cache import CompilerCache
from .config import DownloaderConfig
from .lock import VersionLock

logger = get_logger("CompilerDownloader")


class CompilerDownloader:
    """Guarantees at most one in-flight download per ``(platform, version)``.

    Any number of downloaders, in the same or in different processes, may share one cache
    directory. A caller that finds the version missing takes the version lock, checks the cache
    again (a concurrent holder may have just finished), and only then downloads. Different
    versions use different locks and proceed in parallel.

    Examples
    --------
    >>> downloader = CompilerDownloader(CompilerPlatform.LINUX_AMD64, CompilerCache(cache_dir))
    >>> descriptor = downloader.get_compiler("0.8.0")
    >>> descriptor.kind
    <CompilerKind.NATIVE: 'native'>
    """

    def __init__(
        self,
        platform: CompilerPlatform,
        cache: CompilerCache,
        config: Optional[DownloaderConfig] = None,
        session: Optional[requests.Session] = None,
    ) -> None:
        """Initialize the downloader.

        Parameters
        ----------
        platform : CompilerPlatform
            The artifact family to download.
        cache : CompilerCache
            The cache the artifacts are committed to.
        config : Optional[DownloaderConfig]
            Download and locking settings. Defaults to :meth:`DownloaderConfig.from_env`.
        session : Optional[requests.Session]
            HTTP session. A new session is created when omitted.
        """
        self._platform = CompilerPlatform(platform)
        self._cache = cache
        self._config = config if config is not None else DownloaderConfig.from_env()
        self._session = session if session is not None else requests.Session()
        self._locks = VersionLock(
            cache.lock_dir(self._platform),
            backoff_initial=self._config.backoff_initial,
            backoff_factor=self._config.backoff_factor,
            backoff_max=self._config.backoff_max,
        )

    @property
    def platform(self) -> CompilerPlatform:
        """The artifact family this downloader serves."""
        return self._platform

    @property
    def cache(self) -> CompilerCache:
        """The cache artifacts are committed to."""
        return self._cache

    def is_compiler_downloaded(self, version: str) -> bool:
        """Check whether ``version`` is fully downloaded. Takes no lock."""
        return self._cache.is_downloaded(self._platform, version)

    def get_compiler(self, version: str) -> CompilerDescriptor:
        """Get the descriptor for ``version``, downloading it first if needed.

        Parameters
        ----------
        version : str
            The short semantic version, e.g. ``0.8.0``.

        Returns
        -------
        CompilerDescriptor
            The descriptor of the committed artifact.

        Raises
        ------
        DownloadError
            If the manifest or artifact cannot be fetched, or the version is unknown.
        IntegrityError
            If the downloaded artifact does not match the published checksum.
        LockTimeoutError
            If another caller held the version lock for longer than the configured timeout.
        StorageError
            If the cache directory cannot be written.
        """
        descriptor = self._cache.lookup(self._platform, version)
        if descriptor is not None:
            logger.debug(f"Compiler {version} found in cache at {descriptor.path}")
            return descriptor
        return self.download_compiler(version)

    def download_compiler(self, version: str) -> CompilerDescriptor:
        """Download ``version`` under its lock, unless a concurrent caller already did.

        Raises the same errors as :meth:`get_compiler`.
        """
        with self._locks.acquire(version, timeout=self._config.lock_timeout):
            # Double-check after acquiring the lock (another caller may have downloaded it)
            descriptor = self._cache.lookup(self._platform, version)
            if descriptor is not None:
                logger.debug(f"Compiler {version} was downloaded by a concurrent caller")
                return descriptor

            self._cache.discard_temp_files(self._platform, version)
            build = self.get_build(version)
            temp_path = self._fetch_artifact(build)
            return self._cache.store(self._platform, build, self._resolve_kind(build), temp_path)

    def get_manifest(self, force: bool = False) -> CompilerManifest:
        """Get the platform manifest, from the cache unless ``force`` is set.

        Raises
        ------
        DownloadError
            If the manifest cannot be fetched or parsed.
        """
        if not force:
            manifest = self._cache.read_manifest(self._platform)
            if manifest is not None:
                return manifest

        url = self._url("list.json")
        logger.info(f"Fetching compiler manifest {url}")
        try:
            response = self._session.get(url, timeout=self._config.request_timeout)
            response.raise_for_status()
            manifest = CompilerManifest.model_validate(response.json())
        except requests.RequestException as e:
            raise DownloadError(f"Failed to fetch compiler manifest from {url}: {e}") from e
        except (ValueError, ValidationError) as e:
            raise DownloadError(f"Invalid compiler manifest at {url}: {e}") from e

        self._cache.write_manifest(self._platform, manifest)
        return manifest

    def get_build(self, version: str) -> CompilerBuild:
        """Select the release build of ``version`` for this platform.

        A cached manifest that does not list the version is refreshed once, since new releases
        are published over time.

        Raises
        ------
        DownloadError
            If no release build exists for the version.
        """
        manifest = self.get_manifest()
        build = manifest.get_build(version)
        if build is None:
            manifest = self.get_manifest(force=True)
            build = manifest.get_build(version)
        if build is None:
            raise DownloadError(
                f"Compiler version {version} is not available for platform {self._platform.value}"
            )
        return build

    def _url(self, name: str) -> str:
        return f"{self._config.binaries_url.rstrip('/')}/{self._platform.value}/{name}"

    def _resolve_kind(self, build: CompilerBuild) -> CompilerKind:
        if build.kind is not None:
            return build.kind
        if self._platform == CompilerPlatform.WASM:
            return CompilerKind.SCRIPT
        return CompilerKind.NATIVE

    def _fetch_artifact(self, build: CompilerBuild) -> Path:
        """Stream a build into a fresh temporary file of the cache and return its path."""
        url = self._url(build.path)
        temp_path = self._cache.new_temp_path(self._platform, build.version)
        logger.info(f"Downloading compiler {build.long_version} from {url}")

        try:
            with self._session.get(
                url, stream=True, timeout=self._config.request_timeout
            ) as response:
                response.raise_for_status()
                with open(temp_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=self._config.chunk_size):
                        if chunk:
                            f.write(chunk)
        except requests.RequestException as e:
            temp_path.unlink(missing_ok=True)
            raise DownloadError(f"Failed to download compiler {build.long_version}: {e}") from e
        except OSError as e:
            temp_path.unlink(missing_ok=True)
            raise StorageError(f"Cannot write compiler {build.long_version}: {e}") from e
        except BaseException:
            # Interrupted download; the partial file must never be promoted.
            temp_path.unlink(missing_ok=True)
            raise

        logger.debug(f"Downloaded {build.path} to {temp_path}")
        return temp_path


def get_concurrency_safe_downloader(
    platform: Optional[CompilerPlatform] = None,
    cache_dir: Optional[Union[str, Path]] = None,
    config: Optional[DownloaderConfig] = None,
    session: Optional[requests.Session] = None,
) -> CompilerDownloader:
    """Create a downloader over the configured compilers directory.

    Parameters
    ----------
    platform : Optional[CompilerPlatform]
        The artifact family. Defaults to the running platform.
    cache_dir : Optional[Union[str, Path]]
        Cache root. Defaults to ``SOLC_CACHE_PATH/compilers``.
    config : Optional[DownloaderConfig]
        Download and locking settings.
    session : Optional[requests.Session]
        HTTP session.

    Returns
    -------
    CompilerDownloader
        A downloader sharing its cache directory with every other downloader on that directory.
    """
    if platform is None:
        platform = get_compiler_platform()
    if cache_dir is None:
        cache_dir = get_solc_compilers_path()
    return CompilerDownloader(platform, CompilerCache(cache_dir), config=config, session=session)
