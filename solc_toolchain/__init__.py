from solc_toolchain.data import (
    CompilerBuild,
    CompilerDescriptor,
    CompilerKind,
    CompilerManifest,
    DownloadRecord,
)
from solc_toolchain.download import (
    CompilerCache,
    CompilerDownloader,
    DownloaderConfig,
    VersionLock,
    get_concurrency_safe_downloader,
)
from solc_toolchain.errors import (
    CompilationError,
    DownloadError,
    InfrastructureError,
    IntegrityError,
    LockTimeoutError,
    RunnerCrashError,
    SolcToolchainError,
    StorageError,
    UnsupportedPlatformError,
)
from solc_toolchain.input import CompilerOptions, build_compiler_input
from solc_toolchain.logging import configure_logging, get_logger
from solc_toolchain.orchestrator import (
    CompileOrchestrator,
    compile_files,
    compile_input,
    compile_literal,
    download_compiler,
    get_compiler_for_version,
)
from solc_toolchain.platform import CompilerPlatform, get_compiler_platform, resolve_platform
from solc_toolchain.runners import CompilerRunner, NativeRunner, RunnerRegistry, ScriptRunner

__version__ = "0.1.0"

__all__ = [
    # Main classes
    "CompileOrchestrator",
    "CompilerDownloader",
    "CompilerCache",
    "DownloaderConfig",
    "VersionLock",
    "CompilerRunner",
    "NativeRunner",
    "ScriptRunner",
    "RunnerRegistry",
    # Compile API
    "compile_input",
    "compile_files",
    "compile_literal",
    "download_compiler",
    "get_compiler_for_version",
    "get_concurrency_safe_downloader",
    # Input construction
    "CompilerOptions",
    "build_compiler_input",
    # Platform
    "CompilerPlatform",
    "get_compiler_platform",
    "resolve_platform",
    # Data types
    "CompilerKind",
    "CompilerDescriptor",
    "DownloadRecord",
    "CompilerBuild",
    "CompilerManifest",
    # Errors
    "SolcToolchainError",
    "InfrastructureError",
    "UnsupportedPlatformError",
    "DownloadError",
    "IntegrityError",
    "StorageError",
    "LockTimeoutError",
    "RunnerCrashError",
    "CompilationError",
    "configure_logging",
    "get_logger",
]
