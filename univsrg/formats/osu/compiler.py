"""Write a Package out as a single .osz bundle.

WHY: The output bundle must contain every distinct resource once, one
chart per beatmap, and charts must reference the media by the exact
names that ended up in the archive.

HOW: In a scratch directory: inflate the pool (ResourceOut), encode each
beatmap next to the media, then zip the whole tree with deflate. The
ResourceOut built by inflate is the only name source the encoder sees.

RULES:
- Scratch directory removed on every exit path
- One beatmap failing to encode is recorded and skipped
- Two beatmaps with the same chart name: the later one gets " (2)",
  " (3)", ... before the extension (case-insensitive comparison)
- Archive member names are the scratch-relative paths, "/"-separated
"""

from __future__ import annotations

import logging
import tempfile
import zipfile
from pathlib import Path
from typing import Union

from univsrg.core.batch import BatchResult
from univsrg.core.resource import ResourceOut
from univsrg.core.types import Beatmap, Package
from univsrg.formats.osu.encoder import encode_beatmap, make_basename
from univsrg.formats.osu.parser import RECOVERABLE_ERRORS

logger = logging.getLogger(__name__)


def _resolve_chart_path(root: Path, basename: str) -> Path:
    """Return a free path for ``basename`` inside ``root``.

    Bundles are extracted on case-insensitive filesystems too, so names
    are compared lowercased.
    """
    taken = {p.name.lower() for p in root.iterdir()}
    if basename.lower() not in taken:
        return root / basename

    stem = Path(basename).stem
    suffix = Path(basename).suffix
    counter = 2
    while True:
        candidate = "{} ({}){}".format(stem, counter, suffix)
        if candidate.lower() not in taken:
            logger.info("Chart name %s taken, using %s", basename, candidate)
            return root / candidate
        counter += 1


def archive_directory(root: Path, destination: Path) -> int:
    """Zip every file under ``root`` into ``destination``; return the count."""
    files = sorted(p for p in root.rglob("*") if p.is_file())
    with zipfile.ZipFile(destination, "w", zipfile.ZIP_DEFLATED) as archive:
        for path in files:
            archive.write(path, path.relative_to(root).as_posix())
    return len(files)


def compile_package(
    package: Package,
    destination: Union[str, Path],
) -> BatchResult[Beatmap, str]:
    """Compile ``package`` into an .osz archive at ``destination``.

    Returns:
        BatchResult of written chart names and (beatmap, error) pairs.

    Raises:
        OSError: the scratch tree or the destination cannot be written.
    """
    destination = Path(destination)

    with tempfile.TemporaryDirectory(prefix="univsrg-build-") as scratch:
        root = Path(scratch)
        resources = ResourceOut()
        resources.inflate(root, package.resource_pool)

        def _write(beatmap: Beatmap) -> str:
            text = encode_beatmap(beatmap, resources)
            path = _resolve_chart_path(root, make_basename(beatmap))
            path.write_text(text, encoding="utf-8")
            return path.name

        result: BatchResult[Beatmap, str] = BatchResult.run(
            package.beatmaps, _write, RECOVERABLE_ERRORS
        )
        count = archive_directory(root, destination)

    for beatmap, error in result.failed:
        logger.warning("Skipped %s: %s", beatmap.display_name(), error)
    logger.info(
        "Wrote %s: %d chart(s), %d resource(s), %d file(s) total",
        destination.name, len(result.succeeded), len(resources), count,
    )
    return result
