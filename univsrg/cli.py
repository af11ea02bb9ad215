"""Command-line interface for the chart bundle converter.

WHY: The common job is "merge these bundles into one" or "rebuild this
bundle cleanly". The CLI picks a format per file, parses every input
into one Package and compiles it once, behind a single command.

HOW: argparse accepts one or more input bundles and an output path.
Inputs are parsed in order into a shared Package, then the output
format compiles it. Status messages go to stderr; progress and skipped
charts are reported through logging.

RULES:
- Positional arguments: input bundle paths (at least one)
- -o/--output: output bundle path (required); its directory must exist
- Input and output extensions must be registered bundle formats
- --clear-path-index/--no-clear-path-index controls whether the pool's
  path index is reset between input bundles (default: on)
- Exit code 0 when at least one chart was written, 1 otherwise
- Skipped charts never change the exit code on their own
"""

from __future__ import annotations

import argparse
import logging
import sys
import zipfile
from pathlib import Path
from typing import List, Optional

from univsrg import __version__
from univsrg.config import DEFAULT_CLEAR_PATH_INDEX, LOG_LEVEL
from univsrg.core.errors import UnivsrgError
from univsrg.core.types import Package
from univsrg.formats import BUNDLE_FORMATS, get_format

logger = logging.getLogger(__name__)


def _status(msg: str) -> None:
    """Print a status message to stderr, flushed immediately."""
    print(msg, file=sys.stderr, flush=True)


def _configure_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else getattr(logging, LOG_LEVEL, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def convert(
    inputs: List[Path],
    output: Path,
    *,
    clear_path_index: bool = DEFAULT_CLEAR_PATH_INDEX,
) -> int:
    """Parse every input into one Package and compile it to ``output``.

    Returns:
        Number of charts written to the output bundle.

    Raises:
        UnsupportedFormatError: an input or the output has an unknown
            extension (checked before any work is done).
        OSError, zipfile.BadZipFile: a bundle cannot be read or written.
    """
    readers = [(path, get_format(path)) for path in inputs]
    writer = get_format(output)

    package = Package()
    skipped = 0
    for path, reader in readers:
        _status("Reading {} ({})...".format(path.name, reader.name))
        result = reader.append_to_package(path, package, clear_path_index=clear_path_index)
        skipped += len(result.failed)
        _status("  {} chart(s), {} skipped".format(len(result.succeeded), len(result.failed)))

    pool = package.resource_pool
    _status("Package: {} beatmap(s), {} resource(s), {} bytes".format(
        len(package.beatmaps), len(pool), pool.total_bytes,
    ))

    _status("Writing {} ({})...".format(output.name, writer.name))
    result = writer.compile_package(package, output)
    skipped += len(result.failed)

    _status("")
    _status("Done! Wrote {} chart(s) to {}".format(len(result.succeeded), output))
    for name in result.succeeded:
        _status("  {}".format(name))
    if skipped:
        _status("{} item(s) skipped, see log for details".format(skipped))
    return len(result.succeeded)


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser; separate from main() for testing."""
    parser = argparse.ArgumentParser(
        prog="univsrg",
        description="Convert and merge rhythm game chart bundles. "
                    "Supported formats: {}.".format(", ".join(sorted(BUNDLE_FORMATS))),
    )

    parser.add_argument(
        "inputs",
        nargs="+",
        help="Input bundle files, read in order.",
    )

    parser.add_argument(
        "-o", "--output",
        required=True,
        help="Output bundle file.",
    )

    parser.add_argument(
        "--clear-path-index",
        action=argparse.BooleanOptionalAction,
        default=DEFAULT_CLEAR_PATH_INDEX,
        help="Reset resource path lookups between input bundles (default: %(default)s).",
    )

    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log debug output.",
    )

    parser.add_argument(
        "--version",
        action="version",
        version="%(prog)s {}".format(__version__),
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for ``python -m univsrg``; returns the exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    _configure_logging(args.verbose)

    inputs = [Path(p).resolve() for p in args.inputs]
    output = Path(args.output).resolve()

    for path in inputs:
        if not path.is_file():
            print("Error: File not found: {}".format(path), file=sys.stderr)
            return 1
    if not output.parent.is_dir():
        print("Error: Output directory does not exist: {}".format(output.parent), file=sys.stderr)
        return 1

    try:
        written = convert(inputs, output, clear_path_index=args.clear_path_index)
    except (UnivsrgError, OSError, zipfile.BadZipFile) as e:
        logger.debug("Conversion failed", exc_info=True)
        print("Error: {}".format(e), file=sys.stderr)
        return 1

    return 0 if written else 1


if __name__ == "__main__":
    sys.exit(main())
