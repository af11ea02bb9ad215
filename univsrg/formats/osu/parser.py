"""Read an .osz bundle into a Package.

WHY: A bundle is a zip of chart files plus the media they reference.
Several bundles can be merged into one Package, so each parse appends
to a caller-owned Package and grows its shared resource pool.

HOW: The archive is extracted into a scratch directory that lives only
for this call. Every .osu entry is decoded against the pool; media is
read lazily, only when a chart references it. Per-chart failures are
collected in a BatchResult and logged; they never stop the loop.

RULES:
- Scratch directory removed on every exit path
- Only entries ending in .osu (any case) are decoded
- The pool's path index is cleared before decoding when
  clear_path_index is true, so reused relative names from an earlier
  bundle cannot resolve to stale content
- Missing archive / bad zip propagate (whole bundle fails)
"""

from __future__ import annotations

import logging
import tempfile
import zipfile
from pathlib import Path, PurePosixPath
from typing import List, Union

from univsrg.config import CHART_EXTENSION, DEFAULT_CLEAR_PATH_INDEX
from univsrg.core.batch import BatchResult
from univsrg.core.errors import UnivsrgError
from univsrg.core.types import Beatmap, Package
from univsrg.formats.osu.decoder import decode_chart_file

logger = logging.getLogger(__name__)

RECOVERABLE_ERRORS = (UnivsrgError, OSError, ValueError)


def list_chart_entries(archive: zipfile.ZipFile) -> List[str]:
    """Names of the archive's chart members, in archive order."""
    names = []
    for info in archive.infolist():
        if info.is_dir() or not info.filename.lower().endswith(CHART_EXTENSION):
            continue
        pure = PurePosixPath(info.filename)
        if pure.is_absolute() or ".." in pure.parts:
            logger.warning("Ignoring chart outside the bundle root: %s", info.filename)
            continue
        names.append(info.filename)
    return names


def append_bundle(
    archive_path: Union[str, Path],
    package: Package,
    *,
    clear_path_index: bool = DEFAULT_CLEAR_PATH_INDEX,
) -> BatchResult[str, Beatmap]:
    """Decode every chart of an .osz bundle into ``package``.

    Args:
        archive_path: The .osz file to read.
        package: Package to append to; its resource pool is mutated.
        clear_path_index: Drop the pool's path index before decoding.

    Returns:
        BatchResult of decoded beatmaps and (chart name, error) pairs.

    Raises:
        OSError: the archive cannot be opened or extracted.
        zipfile.BadZipFile: the file is not a zip archive.
    """
    archive_path = Path(archive_path)
    pool = package.resource_pool
    if clear_path_index:
        pool.clear_path_index()

    with zipfile.ZipFile(archive_path) as archive, \
            tempfile.TemporaryDirectory(prefix="univsrg-osz-") as scratch:
        root = Path(scratch)
        chart_names = list_chart_entries(archive)
        archive.extractall(root)
        pooled_before = len(pool)

        def _decode(name: str) -> Beatmap:
            chart_path = root.joinpath(*PurePosixPath(name).parts)
            beatmap = decode_chart_file(chart_path, chart_path.parent, pool, root)
            logger.debug("Decoded %s", name)
            return beatmap

        result: BatchResult[str, Beatmap] = BatchResult.run(
            chart_names, _decode, RECOVERABLE_ERRORS
        )

    package.beatmaps.extend(result.succeeded)
    for name, error in result.failed:
        logger.warning("Skipped %s in %s: %s", name, archive_path.name, error)
    logger.info(
        "%s: %d chart(s) decoded, %d skipped, %d new resource(s)",
        archive_path.name,
        len(result.succeeded),
        len(result.failed),
        len(pool) - pooled_before,
    )
    return result
