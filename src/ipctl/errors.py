"""
Error types raised across ipctl.

Every failure a command can surface is an ``IpctlError`` carrying an
``ErrorKind``. Handlers raise, the leaf action lets the error travel up
the click tree, and ``ipctl.cli.execute`` turns it into a single
``Error: <message>`` line plus a non-zero exit status.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

import click


class ErrorKind(str, Enum):
    """Broad classification used for exit handling and invocation state."""

    CONFIGURATION = "configuration"
    TRANSPORT = "transport"
    DEADLINE = "deadline"
    AUTHENTICATION = "authentication"
    VALIDATION = "validation"
    SERVER = "server"
    FORMATTING = "formatting"
    INTERNAL = "internal"


class IpctlError(Exception):
    """Base class for all ipctl errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str, *, cause: Optional[BaseException] = None):
        """Create an error.

        Args:
            message: Human-readable description.
            cause: Underlying exception, reported by ``describe``.
        """
        super().__init__(message)
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return self.message

    def describe(self) -> str:
        """Return the message followed by every wrapped cause."""
        parts = [self.message]
        cause = self.__cause__
        while cause is not None:
            parts.append(str(cause))
            cause = cause.__cause__
        return ": ".join(p for p in parts if p)


class ConfigError(IpctlError):
    """Configuration is missing or malformed."""

    kind = ErrorKind.CONFIGURATION


class DescriptorError(ConfigError):
    """A command descriptor category or entry is missing or unreadable."""


class TransportError(IpctlError):
    """A request or store operation could not be delivered."""

    kind = ErrorKind.TRANSPORT


class ServerError(IpctlError):
    """The server answered with an unexpected status code."""

    kind = ErrorKind.SERVER

    def __init__(self, message: str, status_code: int = 0, body: bytes = b""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class DeadlineError(IpctlError):
    """The invocation deadline passed or the invocation was cancelled."""

    kind = ErrorKind.DEADLINE


class AuthenticationError(IpctlError):
    """The platform rejected the configured credentials."""

    kind = ErrorKind.AUTHENTICATION


class ValidationError(IpctlError):
    """User input or an asset document is invalid."""

    kind = ErrorKind.VALIDATION


class FormattingError(IpctlError):
    """Data could not be decoded or rendered."""

    kind = ErrorKind.FORMATTING


class InternalError(IpctlError):
    """An unexpected failure inside ipctl."""

    kind = ErrorKind.INTERNAL


def kind_of(err: BaseException) -> ErrorKind:
    """Classify *err*, including exceptions raised outside ipctl.

    Local file and socket failures (``OSError``) count as transport
    errors, an interrupted prompt counts as a cancellation and anything
    else is internal.
    """
    if isinstance(err, IpctlError):
        return err.kind
    if isinstance(err, OSError):
        return ErrorKind.TRANSPORT
    if isinstance(err, (KeyboardInterrupt, click.Abort)):
        return ErrorKind.DEADLINE
    return ErrorKind.INTERNAL
