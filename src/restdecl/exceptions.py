"""Exception hierarchy for restdecl.

All exceptions inherit from :class:`RestdeclError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`restdecl.exit_codes`.
The client pipeline never swallows a failure: every outcome other than a
decoded value surfaces as one of these types. The top-level error handler in
:func:`restdecl.app.main` catches ``RestdeclError`` and exits with the
appropriate code.

Subclass hierarchy::

    RestdeclError (exit 1)
    +-- MalformedRequestError (exit 2)
    +-- TerminalError         (exit 3)
    +-- DecodeError           (exit 4)
    +-- RetryExhaustedError   (exit 5)
    +-- TransportFault        (exit 6)
    +-- CallCancelledError    (exit 130)
    +-- ConfigError           (exit 1)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

from restdecl.exit_codes import (
    EXIT_CANCELLED,
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_MALFORMED_REQUEST,
    EXIT_RETRY_EXHAUSTED,
    EXIT_TERMINAL_STATUS,
)

if TYPE_CHECKING:
    from restdecl.client.classifier import ClassifiedFailure, Terminal


class RestdeclError(Exception):
    """Base exception for all restdecl errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`restdecl.exit_codes`.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class MalformedRequestError(RestdeclError):
    """Raised when a descriptor and its arguments cannot form a request.

    A programmer or input error; the client never retries it.
    """

    exit_code = EXIT_MALFORMED_REQUEST


class TransportFault(RestdeclError):
    """Raised by a transport on network-level failures.

    Covers connection refused, DNS resolution, timeouts and socket resets.
    A non-2xx status is *not* a transport fault.

    Attributes:
        retryable: ``False`` for faults that will recur on every attempt,
            such as a redirect loop. The client raises those immediately.
    """

    exit_code = EXIT_CONNECTION_ERROR

    def __init__(self, message: str, retryable: bool = True) -> None:
        super().__init__(message)
        self.retryable = retryable


class TerminalError(RestdeclError):
    """Raised when a non-2xx response is classified as non-retryable.

    Attributes:
        failure: The :class:`~restdecl.client.classifier.Terminal`
            classification, carrying the status and raw body.
    """

    exit_code = EXIT_TERMINAL_STATUS

    def __init__(self, failure: Terminal) -> None:
        super().__init__(failure.message)
        self.failure = failure

    @property
    def status(self) -> int:
        """HTTP status code of the rejected response."""
        return self.failure.status

    @property
    def body(self) -> bytes:
        """Raw response body, kept for diagnostics."""
        return self.failure.body


class DecodeError(RestdeclError):
    """Raised when a 2xx response body does not decode into the result type."""

    exit_code = EXIT_DECODE_ERROR

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        body_preview: str = "",
    ) -> None:
        super().__init__(message)
        self.status = status
        self.body_preview = body_preview


class RetryExhaustedError(RestdeclError):
    """Raised when the retry policy gives up on a transient failure.

    Attributes:
        last_failure: The last retryable classification observed.
        attempts: Number of transport invocations made for the call.
    """

    exit_code = EXIT_RETRY_EXHAUSTED

    def __init__(self, last_failure: ClassifiedFailure, attempts: int) -> None:
        super().__init__(
            f"Giving up after {attempts} attempt{'s' if attempts != 1 else ''}: "
            f"{last_failure.message}"
        )
        self.last_failure = last_failure
        self.attempts = attempts


class CallCancelledError(RestdeclError):
    """Raised when a call is cancelled during a backoff wait."""

    exit_code = EXIT_CANCELLED


class ConfigError(RestdeclError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE
