"""CLI interface for cdylib-wheel."""

import argparse
import logging
import sys
from pathlib import Path

from . import __version__
from .assembly import build_wheels
from .config import BuildConfig
from .errors import CdylibWheelError
from .interpreter import BridgeModel, Target
from .manifest import read_project_metadata
from .taggers import ManifestDriven, ProbeDriven, create_tagger

logger = logging.getLogger(__name__)


def _select_strategy(args, config: BuildConfig):
    """Pick the tagging strategy: interpreter probe or manifest abi3 features."""
    if args.tag_with_python:
        # The library is loaded as a plain C extension, whatever the interpreter
        return ProbeDriven(
            target=Target.current(),
            bridge=BridgeModel.CFFI,
            candidates=config.interpreters,
        )
    return ManifestDriven(
        manifest_path=args.manifest_path,
        binding=args.binding or config.binding,
    )


def cmd_build(args):
    """Package the compiled library into one wheel per resolved tag."""
    try:
        config = BuildConfig.from_yaml(args.config) if args.config else BuildConfig()

        tagger = create_tagger(_select_strategy(args, config))
        tasks = tagger.resolve(args.module_name)
        logger.debug("Resolved tags: %s", ", ".join(task.tag for task in tasks) or "(none)")

        metadata = read_project_metadata(args.manifest_path)
        build_wheels(
            tasks,
            output_dir=args.output_dir,
            metadata=metadata,
            artifact_path=args.artifact_path,
            scripts=config.scripts,
        )
    except CdylibWheelError as e:
        print(f"Error: {e.stage}: {e}", file=sys.stderr)
        return 1

    return 0


def create_parser():
    """Create argument parser."""
    parser = argparse.ArgumentParser(
        prog="cdylib-wheel",
        description="Package a pre-built Rust cdylib into Python wheels",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # abi3 wheel tagged from the pyo3 features in Cargo.toml
  cdylib-wheel build --module-name mymod --manifest-path Cargo.toml \\
      --artifact-path target/release/libmymod.so --output-dir dist

  # one wheel per Python interpreter on PATH
  cdylib-wheel build --tag-with-python --module-name mymod --manifest-path Cargo.toml \\
      --artifact-path target/release/libmymod.so --output-dir dist
"""
    )

    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # build
    bp = subparsers.add_parser("build", help="Build the crate into wheels")
    bp.add_argument("--module-name", required=True,
                    help="Name of the Python module to create. Must match the name "
                         "of the module the library initializes, or importing it fails.")
    bp.add_argument("--manifest-path", type=Path, required=True,
                    help="Path to Cargo.toml, which provides the wheel metadata. "
                         "A readme it refers to must be in the same directory.")
    bp.add_argument("--artifact-path", type=Path, required=True,
                    help="Path to the compiled library (crate-type \"cdylib\"). On macOS "
                         "link it with \"-C link-arg=-undefined -C link-arg=dynamic_lookup\".")
    bp.add_argument("--output-dir", type=Path, required=True,
                    help="Directory to store the output wheels")
    bp.add_argument("--tag-with-python", action="store_true",
                    help="Tag the wheels with the Python interpreters found in the "
                         "environment instead of the abi3 features in Cargo.toml")
    bp.add_argument("--binding", metavar="CRATE",
                    help="Python binding crate carrying the abi3 features (default: pyo3)")
    bp.add_argument("--config", type=Path, metavar="FILE",
                    help="YAML file with build defaults (binding, interpreters, scripts)")
    bp.add_argument("-v", "--verbose", action="store_true")

    return parser


def main(argv=None):
    """Entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stderr,
    )

    handlers = {
        "build": cmd_build,
    }
    return handlers[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
