"""
Error taxonomy.

We separate error types so callers can react correctly.
Example:
ValidationError is raised before any remote call is made.
AmbiguousResult means a lookup expected to be unique matched zero or many.
NotFound means a named sub resource is missing among its candidates.
RemoteError wraps a failure reported by the resource client.

Annotations
Errors are never flattened into strings while they propagate. Each layer that
knows something useful adds a Frame, and the original exception object keeps
travelling. The root cause is the deepest exception reachable via __cause__.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Iterator, List


@dataclass(frozen=True)
class Frame:
    """
    One contextual annotation.

    context is a short human readable description of what the code was doing
    when the error passed through.
    """

    context: str


class ExerciserError(Exception):
    """Base class for all exerciser exceptions."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message
        self._frames: List[Frame] = []

    def annotate(self, context: str) -> ExerciserError:
        """
        Record a frame and return self so callers can write raise err.annotate(...).

        Frames are recorded innermost first, in the order the error travels.
        """
        self._frames.append(Frame(context=context))
        return self

    @property
    def frames(self) -> List[Frame]:
        """Frames ordered from the outermost call site to the innermost one."""
        return list(reversed(self._frames))

    def __str__(self) -> str:
        return self.message


class ValidationError(ExerciserError):
    """Raised when arguments have the wrong count or shape."""


class AmbiguousResult(ExerciserError):
    """
    Raised when a lookup expected to be unique returned zero or many matches.

    kind names the resource type, key the value looked up, count the number
    of matches returned.
    """

    def __init__(self, kind: str, key: str, count: int) -> None:
        super().__init__(f"expected one {kind} matching {key!r}, got {count}")
        self.kind = kind
        self.key = key
        self.count = count


class NotFound(ExerciserError):
    """
    Raised when a named resource does not exist among its candidates.

    kind names the resource type, key the name that was looked up.
    """

    def __init__(self, kind: str, key: str, detail: str = "") -> None:
        message = f"{kind} {key!r} not found"
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)
        self.kind = kind
        self.key = key


class RemoteError(ExerciserError):
    """
    Raised when the resource client reports a failure.

    status is the HTTP status when one is known. The underlying exception is
    attached as __cause__ by the raiser.
    """

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class ResponseDecodeError(RemoteError):
    """Raised when a service payload does not have the expected shape."""


def root_cause(exc: BaseException) -> BaseException:
    """Follow __cause__ links to the deepest exception."""
    seen = {id(exc)}
    current = exc
    while current.__cause__ is not None and id(current.__cause__) not in seen:
        current = current.__cause__
        seen.add(id(current))
    return current


@contextmanager
def trace(context: str) -> Iterator[None]:
    """
    Annotate any ExerciserError that leaves the block, then re raise it.

    Other exceptions pass through untouched.
    """
    try:
        yield
    except ExerciserError as exc:
        exc.annotate(context)
        raise
