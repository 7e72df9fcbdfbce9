"""Exception hierarchy and the process-wide error kind registry.

S3 reports failures as an XML document carrying a ``Code`` string. Rather
than defining one exception class per code, every service failure is a
:class:`ServiceError` tagged with an :class:`ErrorKind`. Kinds are minted by
:data:`ERROR_KINDS` the first time a code is seen and reused afterwards, so
callers can compare them by identity::

    try:
        client.delete("missing.txt")
    except ServiceError as e:
        if e.kind is error_kind("NoSuchKey"):
            ...
"""

import threading
from typing import Optional


class S3Error(Exception):
    """Base exception for s3_classic errors."""

    code = "S3Error"

    def __init__(self, message: str):
        self.message = message
        super().__init__(f"{self.code}: {message}")


class ConfigError(S3Error, ValueError):
    """Missing or malformed connection descriptor."""

    code = "ConfigError"


class TransportError(S3Error):
    """Network-level failure talking to the endpoint. Safe to retry."""

    code = "TransportError"


class ProtocolError(S3Error):
    """Response did not have the shape the protocol promises."""

    code = "ProtocolError"

    def __init__(self, message: str, status: Optional[int] = None, body: bytes = b""):
        self.status = status
        self.body = body
        super().__init__(message)


class ErrorKind:
    """Opaque, comparable tag for one service error code.

    Instances are only created by :class:`ErrorKindRegistry`; two kinds are
    equal exactly when they are the same object.
    """

    __slots__ = ("code",)

    def __init__(self, code: str):
        self.code = code

    def __repr__(self) -> str:
        return f"ErrorKind({self.code!r})"

    def __str__(self) -> str:
        return self.code


class ErrorKindRegistry:
    """Append-only mapping of error code strings to :class:`ErrorKind` tags.

    Starts empty and only grows. Lookups and insertions go through one lock,
    so racing first sightings of a new code all receive the same tag.
    """

    def __init__(self):
        self._kinds: dict[str, ErrorKind] = {}
        self._lock = threading.Lock()

    def get_or_create(self, code: str) -> ErrorKind:
        """Return the tag for ``code``, minting it on first sighting."""
        with self._lock:
            kind = self._kinds.get(code)
            if kind is None:
                kind = ErrorKind(code)
                self._kinds[code] = kind
            return kind

    def get(self, code: str) -> Optional[ErrorKind]:
        with self._lock:
            return self._kinds.get(code)

    def codes(self) -> list[str]:
        with self._lock:
            return list(self._kinds)

    def __contains__(self, code: str) -> bool:
        with self._lock:
            return code in self._kinds

    def __len__(self) -> int:
        with self._lock:
            return len(self._kinds)


# Lives for the whole process; never reset.
ERROR_KINDS = ErrorKindRegistry()


def error_kind(code: str) -> ErrorKind:
    """Shorthand for ``ERROR_KINDS.get_or_create(code)``."""
    return ERROR_KINDS.get_or_create(code)


class ServiceError(S3Error):
    """Request rejected by the service with a structured error document.

    Attributes:
        kind: ErrorKind tag for the service's error code
        status: HTTP status code of the response
        message: Message text from the error document
    """

    def __init__(self, kind: ErrorKind, status: int, message: str):
        self.kind = kind
        self.status = status
        super().__init__(message)

    @property
    def code(self) -> str:
        return self.kind.code
