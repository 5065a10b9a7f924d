"""Data layer with strongly-typed models for compilers, cache records and manifests."""

from .compiler import CompilerDescriptor, CompilerKind, DownloadRecord
from .manifest import CompilerBuild, CompilerManifest

__all__ = [
    "CompilerKind",
    "CompilerDescriptor",
    "DownloadRecord",
    "CompilerBuild",
    "CompilerManifest",
]
