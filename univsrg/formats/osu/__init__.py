"""osu!mania bundle support (.osz archives of .osu charts).

WHY: osu!mania is the first target game. Its chart text, lane algebra,
decoder, encoder and bundle glue live together in this package.

HOW: OszFormat adapts parser.append_bundle and compiler.compile_package
to the BaseBundleFormat interface used by the registry.
"""

from __future__ import annotations

from pathlib import Path

from univsrg.config import BUNDLE_EXTENSION
from univsrg.core.batch import BatchResult
from univsrg.core.types import Beatmap, Package
from univsrg.formats.base import BaseBundleFormat
from univsrg.formats.osu.compiler import compile_package
from univsrg.formats.osu.parser import append_bundle


class OszFormat(BaseBundleFormat):

    @property
    def name(self) -> str:
        return "osu!mania bundle"

    @property
    def extension(self) -> str:
        return BUNDLE_EXTENSION

    def append_to_package(
        self,
        path: Path,
        package: Package,
        *,
        clear_path_index: bool,
    ) -> BatchResult[str, Beatmap]:
        return append_bundle(path, package, clear_path_index=clear_path_index)

    def compile_package(self, package: Package, path: Path) -> BatchResult[Beatmap, str]:
        return compile_package(package, path)
