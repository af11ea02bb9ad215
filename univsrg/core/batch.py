"""Skip-and-continue batch outcome.

WHY: Bundles are converted chart by chart. A single broken chart must
not sink its siblings, but the failure must not vanish either: callers
report how many items were skipped and why.

HOW: BatchResult collects successes and (item, error) failures. run()
folds a callable over items, catching only the error classes the
caller declares recoverable; anything else propagates.

RULES:
- Failures keep the original exception object
- Order of succeeded/failed follows input order
- Unlisted exception types are never swallowed
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Generic, Iterable, List, Tuple, Type, TypeVar

T = TypeVar("T")
R = TypeVar("R")


@dataclass
class BatchResult(Generic[T, R]):
    succeeded: List[R] = field(default_factory=list)
    failed: List[Tuple[T, BaseException]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @classmethod
    def run(
        cls,
        items: Iterable[T],
        func: Callable[[T], R],
        recoverable: Tuple[Type[BaseException], ...],
    ) -> "BatchResult[T, R]":
        result: BatchResult[T, R] = cls()
        for item in items:
            try:
                result.succeeded.append(func(item))
            except recoverable as e:
                result.failed.append((item, e))
        return result
