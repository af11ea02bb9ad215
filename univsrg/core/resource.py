"""Content-addressed resource pool and the export-time inflator.

WHY: A Package can be assembled from several input bundles that ship
the same song audio or background under different names, and unrelated
files under the same name. Media must be stored once per distinct
content and written out under names that never collide.

HOW: Three pieces:
  ResourceEntry — immutable bytes + the relative path they came from;
                  hash and equality look at the bytes only
  ResourcePool  — the distinct entries of one Package, plus a separate
                  path → entry index used as an import-time shortcut
  ResourceOut   — built once per export by inflate(); maps every entry
                  to the relative path it was written to

RULES:
- Identity is content: equal bytes → same entry, whatever the path
- The path index is never identity; it may be cleared at any time
- inflate() requires an empty directory and runs at most once
- Colliding names grow by COLLISION_SUFFIX until unique
"""

from __future__ import annotations

import hashlib
import logging
import posixpath
from pathlib import Path, PurePosixPath
from typing import Dict, Iterator, List, Optional, Set, Tuple

from univsrg.config import COLLISION_SUFFIX, MAX_FILENAME_LENGTH
from univsrg.core.errors import NameCollisionError

logger = logging.getLogger(__name__)


def normalize_resource_path(path: str) -> str:
    """Normalise a chart-recorded path to forward-slash relative form.

    Charts authored on Windows use backslashes, and some carry a leading
    "./". Both spellings must hit the same path index slot.
    """
    text = path.strip().replace("\\", "/")
    normalized = posixpath.normpath(text) if text else ""
    return "" if normalized == "." else normalized


class ResourceEntry:
    """One distinct piece of media content.

    Instances are shared, never copied: the pool owns them and every
    Beatmap referencing the same content holds the very same object.
    """

    __slots__ = ("original_path", "data", "_hash")

    def __init__(self, original_path: str, data: bytes) -> None:
        self.original_path = normalize_resource_path(original_path)
        self.data = bytes(data)
        self._hash = hash(self.data)

    @property
    def digest(self) -> str:
        """SHA-256 of the content, for logs and reports."""
        return hashlib.sha256(self.data).hexdigest()

    def __len__(self) -> int:
        return len(self.data)

    def __hash__(self) -> int:
        return self._hash

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ResourceEntry):
            return NotImplemented
        return self is other or self.data == other.data

    def __repr__(self) -> str:
        return "ResourceEntry({!r}, {} bytes)".format(self.original_path, len(self.data))


class ResourcePool:
    """The distinct resource entries of one Package.

    ``insert`` is the only way content enters the pool. Entries are kept
    in insertion order so exports are deterministic.
    """

    def __init__(self) -> None:
        self._entries: Dict[bytes, ResourceEntry] = {}
        self._path_index: Dict[str, ResourceEntry] = {}

    def insert(self, original_path: str, data: bytes) -> Tuple[ResourceEntry, bool]:
        """Insert content, returning ``(entry, is_new)``.

        Content already present is not stored again; the existing entry
        is returned and ``original_path`` is (re)pointed at it in the
        path index.
        """
        key = normalize_resource_path(original_path)
        content = bytes(data)
        entry = self._entries.get(content)
        is_new = entry is None
        if entry is None:
            entry = ResourceEntry(key, content)
            self._entries[entry.data] = entry
            logger.debug("Pooled %s (%d bytes, sha256 %s)", key, len(entry), entry.digest[:12])
        else:
            logger.debug("Deduplicated %s -> %s", key, entry.original_path)
        self._path_index[key] = entry
        return entry, is_new

    def lookup_by_path(self, path: str) -> Optional[ResourceEntry]:
        return self._path_index.get(normalize_resource_path(path))

    def clear_path_index(self) -> None:
        """Forget every path → entry association; content is untouched."""
        self._path_index.clear()

    @property
    def total_bytes(self) -> int:
        return sum(len(entry) for entry in self._entries.values())

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ResourceEntry]:
        return iter(list(self._entries.values()))

    def __contains__(self, entry: object) -> bool:
        return isinstance(entry, ResourceEntry) and entry.data in self._entries


def _candidate_parts(original_path: str) -> Tuple[PurePosixPath, str, str]:
    """Split an entry's original path into (parent, stem, suffix).

    Paths that are absolute or climb out of the bundle root keep only
    their base name so nothing is ever written outside the output tree.
    """
    path = PurePosixPath(original_path or "resource")
    if path.is_absolute() or ".." in path.parts:
        path = PurePosixPath(path.name or "resource")
    return path.parent, path.stem, path.suffix


class ResourceOut:
    """Export-time mapping from resource entry to output-relative path.

    WHY: Encoders must reference resources by the name they actually got
    in the output tree, which can differ from the original name when two
    distinct contents shared one.

    HOW: inflate() writes each pooled entry into the directory, growing
    the base name with COLLISION_SUFFIX while the candidate is taken, and
    records where it went. Names are compared lowercased, since bundles
    are extracted on case-insensitive filesystems too. A folder name
    already used by a file grows the same way.

    RULES:
    - The target directory must exist and be empty
    - inflate() may be called once per instance
    - Recorded paths are relative, forward-slash separated
    - No two written paths differ only in case
    """

    def __init__(self) -> None:
        self._entry_to_path: Dict[ResourceEntry, str] = {}
        self._inflated = False
        # Lowercased paths already written, and the folders holding them.
        self._taken_files: Set[str] = set()
        self._taken_dirs: Set[str] = set()

    def inflate(self, directory: Path, pool: ResourcePool) -> None:
        """Write every pooled entry into ``directory``.

        Raises:
            FileExistsError: ``directory`` is not empty (nothing written).
            NameCollisionError: a candidate name grew past the filesystem
                limit.
            RuntimeError: this instance was already inflated.
        """
        if self._inflated:
            raise RuntimeError("ResourceOut.inflate() may only be called once")
        root = Path(directory)
        if any(root.iterdir()):
            raise FileExistsError(
                "directory ({}) should be an empty folder.".format(root)
            )
        self._inflated = True

        for entry in pool:
            relative = self._assign_path(entry)
            target = root / relative
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(entry.data)
            self._entry_to_path[entry] = relative.as_posix()
            if relative.as_posix() != entry.original_path:
                logger.info("Renamed %s -> %s", entry.original_path, relative.as_posix())

        logger.debug("Inflated %d resource(s) into %s", len(self._entry_to_path), root)

    def _free_parent(self, parent: PurePosixPath) -> PurePosixPath:
        parts: List[str] = []
        for part in parent.parts:
            while posixpath.join(*parts, part).lower() in self._taken_files:
                part += COLLISION_SUFFIX
            parts.append(part)
        return PurePosixPath(*parts)

    def _is_taken(self, candidate: PurePosixPath) -> bool:
        key = candidate.as_posix().lower()
        return key in self._taken_files or key in self._taken_dirs

    def _assign_path(self, entry: ResourceEntry) -> PurePosixPath:
        parent, stem, suffix = _candidate_parts(entry.original_path)
        parent = self._free_parent(parent)
        candidate = parent / (stem + suffix)
        while self._is_taken(candidate):
            stem += COLLISION_SUFFIX
            candidate = parent / (stem + suffix)
        if any(len(part) > MAX_FILENAME_LENGTH for part in candidate.parts):
            raise NameCollisionError(
                "no free name for {} within {} characters".format(
                    entry.original_path, MAX_FILENAME_LENGTH
                )
            )
        self._taken_files.add(candidate.as_posix().lower())
        for folder in candidate.parents:
            if folder.parts:
                self._taken_dirs.add(folder.as_posix().lower())
        return candidate

    def path_for(self, entry: ResourceEntry) -> Optional[str]:
        return self._entry_to_path.get(entry)

    def items(self) -> List[Tuple[ResourceEntry, str]]:
        return list(self._entry_to_path.items())

    def __len__(self) -> int:
        return len(self._entry_to_path)
