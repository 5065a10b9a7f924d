"""Configuration for compiler downloads."""

from __future__ import annotations

from pydantic import BaseModel, Field

from solc_toolchain.env import get_solc_binaries_url, get_solc_lock_timeout


class DownloaderConfig(BaseModel):
    """Configuration for :class:`~solc_toolchain.download.CompilerDownloader`.

    Lock waiting uses bounded exponential backoff: the first sleep is ``backoff_initial``
    seconds, each next sleep is multiplied by ``backoff_factor`` and capped at ``backoff_max``,
    and the whole wait never exceeds ``lock_timeout``.
    """

    binaries_url: str = "https://binaries.soliditylang.org"
    """Base URL of the compiler mirror. Manifests live at ``<url>/<platform>/list.json``."""
    lock_timeout: float = Field(default=120.0, gt=0)
    """Maximum seconds to wait for the version lock."""
    backoff_initial: float = Field(default=0.05, gt=0)
    """First sleep between lock attempts, in seconds."""
    backoff_factor: float = Field(default=2.0, ge=1)
    """Multiplier applied to the sleep after every failed attempt."""
    backoff_max: float = Field(default=1.0, gt=0)
    """Upper bound of a single sleep, in seconds."""
    request_timeout: float = Field(default=30.0, gt=0)
    """Connect/read timeout for HTTP requests, in seconds."""
    chunk_size: int = Field(default=1 << 16, gt=0)
    """Chunk size for streaming artifact downloads, in bytes."""

    @classmethod
    def from_env(cls) -> "DownloaderConfig":
        """Build a config from ``SOLC_BINARIES_URL`` and ``SOLC_LOCK_TIMEOUT``."""
        return cls(binaries_url=get_solc_binaries_url(), lock_timeout=get_solc_lock_timeout())
