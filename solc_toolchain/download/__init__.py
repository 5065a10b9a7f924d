"""Compiler acquisition: a directory-backed artifact cache, version locks, and the downloader.

The typical workflow is:
1. Create a downloader: downloader = get_concurrency_safe_downloader()
2. Acquire a compiler: descriptor = downloader.get_compiler("0.8.0")
3. Run it through a runner from :mod:`solc_toolchain.runners`.
"""

from .cache import CompilerCache
from .config import DownloaderConfig
from .downloader import CompilerDownloader, get_concurrency_safe_downloader
from .lock import VersionLock

__all__ = [
    "CompilerCache",
    "CompilerDownloader",
    "DownloaderConfig",
    "VersionLock",
    "get_concurrency_safe_downloader",
]
