"""Exception types shared by the decoders, encoders and bundle layer.

WHY: Bundle conversion is best-effort per chart but fatal per bundle.
Callers need typed errors to tell "skip this chart" apart from "give up".

HOW: Everything chart-level derives from UnivsrgError. Plain OSError is
left as-is for I/O failures so callers can catch the standard hierarchy.

RULES:
- MissingFieldError: a mandatory field (lane count, audio) is absent
- MalformedChartError: chart text or a mandatory value is unusable
- NameCollisionError: no usable output name could be derived
- UnsupportedFormatError: no bundle format registered for an extension
"""

from __future__ import annotations


class UnivsrgError(Exception):
    """Base class for all conversion errors raised by this package."""


class MissingFieldError(UnivsrgError):
    """Raised when a field required by the target format is absent.

    The missing field's name is kept on ``field`` so batch reports can
    summarise skipped charts without parsing the message.
    """

    def __init__(self, field: str, detail: str = "") -> None:
        self.field = field
        message = f"missing mandatory field '{field}'"
        if detail:
            message = f"{message}: {detail}"
        super().__init__(message)


class MalformedChartError(UnivsrgError):
    """Raised when chart text cannot be parsed or holds unusable values."""


class UnsupportedModeError(MalformedChartError):
    """Raised when a chart belongs to a game mode other than osu!mania."""

    def __init__(self, mode: str) -> None:
        self.mode = mode
        super().__init__(f"unsupported game mode {mode!r} (expected osu!mania)")


class NameCollisionError(UnivsrgError):
    """Raised when a collision-free output file name cannot be derived."""


class UnsupportedFormatError(UnivsrgError, ValueError):
    """Raised when no bundle format is registered for a file extension."""

    def __init__(self, extension: str, available: list[str]) -> None:
        self.extension = extension
        super().__init__(
            "Unsupported bundle type '{}'. Supported formats: {}".format(
                extension or "(none)", ", ".join(sorted(available))
            )
        )
