"""Bundle format registry.

WHY: The CLI picks a reader for each input and a writer for the output
from the file extension alone. One dict keeps that lookup in a single
place.

HOW: BUNDLE_FORMATS maps lowercase extensions to BaseBundleFormat
subclasses (classes, not instances). get_format() instantiates the one
matching a path.

RULES:
- Keys are lowercase extensions including the dot
- Unknown extensions raise UnsupportedFormatError
"""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Dict, Type, Union

from univsrg.core.errors import UnsupportedFormatError
from univsrg.formats.osu import OszFormat

if TYPE_CHECKING:
    from univsrg.formats.base import BaseBundleFormat

BUNDLE_FORMATS: Dict[str, Type[BaseBundleFormat]] = {
    ".osz": OszFormat,
}


def get_format(path: Union[str, Path]) -> BaseBundleFormat:
    extension = Path(path).suffix.lower()
    try:
        return BUNDLE_FORMATS[extension]()
    except KeyError:
        raise UnsupportedFormatError(extension, list(BUNDLE_FORMATS)) from None
