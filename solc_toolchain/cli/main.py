import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from solc_toolchain.download import get_concurrency_safe_downloader
from solc_toolchain.errors import CompilationError, InfrastructureError
from solc_toolchain.input import CompilerOptions
from solc_toolchain.logging import configure_logging
from solc_toolchain.orchestrator import compile_files
from solc_toolchain.platform import get_compiler_platform

EXIT_COMPILATION_ERROR = 1
EXIT_INFRASTRUCTURE_ERROR = 2


def show_platform(args: argparse.Namespace):
    """Print the compiler platform of this machine."""
    print(get_compiler_platform().value)


def list_compilers(args: argparse.Namespace):
    """List the downloaded compilers of this platform."""
    downloader = get_concurrency_safe_downloader(cache_dir=args.cache_dir)
    descriptors = downloader.cache.list_downloaded(downloader.platform)
    if not descriptors:
        print(f"No compilers downloaded for {downloader.platform.value}.")
        return
    for descriptor in descriptors:
        print(f"{descriptor.version}\t{descriptor.kind.value}\t{descriptor.long_version}")
        print(f"\t{descriptor.path}")


def download(args: argparse.Namespace):
    """Download one or more compiler versions."""
    downloader = get_concurrency_safe_downloader(cache_dir=args.cache_dir)
    for version in args.versions:
        descriptor = downloader.get_compiler(version)
        print(f"{descriptor.long_version} ({descriptor.kind.value}): {descriptor.path}")


def compile_sources(args: argparse.Namespace):
    """Compile Solidity files and print or save the compiler output."""
    options = CompilerOptions(solidity_version=args.solc_version, runs=args.runs)
    if args.compiler_path:
        options = options.model_copy(update={"compiler_path": str(args.compiler_path.resolve())})
    _, output = compile_files(args.files, options, cache_dir=args.cache_dir)

    for error in output.get("errors") or []:
        print(error.get("formattedMessage") or error.get("message", ""), file=sys.stderr)

    text = json.dumps(output, indent=2)
    if args.output:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        args.output.write_text(text)
        print(f"Compiler output written to {args.output}")
    else:
        print(text)


def cli(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        description="Solidity compiler acquisition and invocation",
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument("--log-level", default=None, help="Defaults to SOLC_LOG_LEVEL or WARNING.")
    parser.add_argument(
        "--cache-dir",
        type=Path,
        default=None,
        help="Compilers directory. Defaults to SOLC_CACHE_PATH/compilers.",
    )

    command_subparsers = parser.add_subparsers(
        dest="command", required=True, help="Primary commands"
    )

    platform_parser = command_subparsers.add_parser(
        "platform", help="Print the compiler platform of this machine."
    )
    platform_parser.set_defaults(func=show_platform)

    list_parser = command_subparsers.add_parser("list", help="List downloaded compilers.")
    list_parser.set_defaults(func=list_compilers)

    download_parser = command_subparsers.add_parser("download", help="Download compilers.")
    download_parser.add_argument("versions", nargs="+", help="Versions, e.g. 0.8.0")
    download_parser.set_defaults(func=download)

    compile_parser = command_subparsers.add_parser("compile", help="Compile Solidity files.")
    compile_parser.add_argument("files", type=Path, nargs="+")
    compile_parser.add_argument("--solc-version", default="0.8.0")
    compile_parser.add_argument(
        "--runs", type=int, default=None, help="Enable the optimizer with this many runs."
    )
    compile_parser.add_argument(
        "--compiler-path",
        type=Path,
        default=None,
        help="Use a pre-installed compiler instead of downloading one.\n"
        "Set SOLC_NATIVE=true if it is a native executable.",
    )
    compile_parser.add_argument("--output", type=Path, default=None)
    compile_parser.set_defaults(func=compile_sources)

    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        args.func(args)
    except CompilationError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_COMPILATION_ERROR
    except InfrastructureError as e:
        print(f"error: {e}", file=sys.stderr)
        return EXIT_INFRASTRUCTURE_ERROR
    return 0


def main() -> None:
    sys.exit(cli())


if __name__ == "__main__":
    main()
