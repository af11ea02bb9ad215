"""Abstract base for bundle formats.

WHY: The CLI reads inputs and writes the output by file extension. A
common interface lets it drive any registered format without knowing
its codec, and keeps a new game format to one new package.

HOW: BaseBundleFormat is an ABC with a ``name``, the bundle
``extension`` it owns, and the two directions of conversion.

RULES:
- append_to_package() mutates the given Package and returns a BatchResult
- compile_package() never mutates the Package
- Per-chart failures are reported in the BatchResult, not raised

To add a bundle format:
1. Create a package under formats/
2. Subclass BaseBundleFormat
3. Register it in BUNDLE_FORMATS in formats/__init__.py
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from pathlib import Path

from univsrg.core.batch import BatchResult
from univsrg.core.types import Beatmap, Package


class BaseBundleFormat(ABC):

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable format name, e.g. 'osu!mania bundle'."""

    @property
    @abstractmethod
    def extension(self) -> str:
        """Lowercase bundle extension with dot, e.g. '.osz'."""

    @abstractmethod
    def append_to_package(
        self,
        path: Path,
        package: Package,
        *,
        clear_path_index: bool,
    ) -> BatchResult[str, Beatmap]:
        """Decode every chart of the bundle at ``path`` into ``package``."""

    @abstractmethod
    def compile_package(self, package: Package, path: Path) -> BatchResult[Beatmap, str]:
        """Write ``package`` as one bundle at ``path``."""
