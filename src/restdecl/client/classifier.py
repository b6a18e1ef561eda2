"""Classify non-2xx responses as retryable or terminal.

The client hands every non-2xx :class:`~restdecl.models.Response` to an
:class:`ErrorClassifier` and acts only on the returned variant:

* :class:`Retryable` -- the retry policy decides whether to try again.
* :class:`Terminal` -- raised immediately as
  :class:`~restdecl.exceptions.TerminalError`.
* :class:`TransportFailure` -- produced by the client itself when the
  transport raises :class:`~restdecl.exceptions.TransportFault`; it shares
  the retry budget with :class:`Retryable`.

The classifier is a strategy. To change which statuses are retried, subclass
:class:`DefaultErrorClassifier` (or implement the protocol) and pass it to
the client; nothing else needs to change::

    class RetryOnConflict(DefaultErrorClassifier):
        def classify(self, response):
            if response.status_code == 409:
                return Retryable(cause_status=409, message="conflict, retrying")
            return super().classify(response)
"""

from __future__ import annotations

import json
import math
import threading
from dataclasses import dataclass
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Iterable, Optional, Protocol, Union

from restdecl.models import Response
from restdecl.output import warning

RETRY_AFTER = "Retry-After"

# Longest delay threading.Event.wait accepts.
MAX_RETRY_AFTER_MS = int(threading.TIMEOUT_MAX * 1000)


@dataclass(frozen=True)
class Retryable:
    """A transient failure worth another attempt.

    Attributes:
        suggested_delay_ms: Server-directed wait before the next attempt
            (from ``Retry-After``); overrides the policy's backoff once.
        cause_status: Status code of the response, if any.
        message: Human-readable description.
    """

    suggested_delay_ms: Optional[int] = None
    cause_status: Optional[int] = None
    message: str = "retryable failure"


@dataclass(frozen=True)
class Terminal:
    """A failure that no retry will fix."""

    status: int
    body: bytes
    message: str


@dataclass(frozen=True)
class TransportFailure:
    """A network-level failure reported by the transport."""

    message: str


ClassifiedFailure = Union[Retryable, Terminal, TransportFailure]


class ErrorClassifier(Protocol):
    """Turns a non-2xx response into a :data:`ClassifiedFailure`."""

    def classify(self, response: Response) -> ClassifiedFailure:
        ...


class DefaultErrorClassifier:
    """Retry 5xx, configured transient statuses, and anything with ``Retry-After``.

    Rules, in order:

    1. A parseable ``Retry-After`` header makes the response retryable
       whatever its status, with the header value as the suggested delay.
    2. Status 5xx, or a status in *transient_statuses*, is retryable.
    3. Every other status is :class:`Terminal`.

    Args:
        transient_statuses: Extra statuses to retry (e.g. ``{429}``).
    """

    def __init__(self, transient_statuses: Iterable[int] = ()) -> None:
        self.transient_statuses = frozenset(transient_statuses)

    def classify(self, response: Response) -> ClassifiedFailure:
        """Classify *response*.

        Args:
            response: A response whose status is outside 200-299.

        Returns:
            :class:`Retryable` or :class:`Terminal`.
        """
        status = response.status_code
        delay_ms = retry_after_ms(response)

        if delay_ms is not None or self.is_transient(status):
            message = f"HTTP {status}"
            if delay_ms is not None:
                message += f" (Retry-After {delay_ms} ms)"
            return Retryable(suggested_delay_ms=delay_ms, cause_status=status, message=message)

        return Terminal(status=status, body=response.body, message=error_message(response))

    def is_transient(self, status: int) -> bool:
        """Whether *status* alone makes a response retryable."""
        return 500 <= status < 600 or status in self.transient_statuses


def parse_retry_after(value: str, now: Optional[datetime] = None) -> Optional[int]:
    """Parse a ``Retry-After`` value (delta-seconds or HTTP-date) into milliseconds.

    Args:
        value: Raw header value.
        now: Reference time for HTTP-dates; defaults to the current UTC time.

    Returns:
        The delay in milliseconds (never negative), or ``None`` if the value
        cannot be parsed or exceeds :data:`MAX_RETRY_AFTER_MS`.
    """
    value = value.strip()
    try:
        seconds = float(value)
    except ValueError:
        pass
    else:
        if not math.isfinite(seconds) or seconds < 0:
            return None
        delay = int(round(seconds * 1000))
        return delay if delay <= MAX_RETRY_AFTER_MS else None

    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError, IndexError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    reference = now or datetime.now(tz=timezone.utc)
    delay = max(0, int((when - reference).total_seconds() * 1000))
    return delay if delay <= MAX_RETRY_AFTER_MS else None


def retry_after_ms(response: Response) -> Optional[int]:
    """Return the response's ``Retry-After`` delay in milliseconds, if any."""
    raw = response.header(RETRY_AFTER)
    if raw is None:
        return None
    delay = parse_retry_after(raw)
    if delay is None:
        warning(f"Ignoring unusable {RETRY_AFTER} header {raw!r}")
    return delay


def error_message(response: Response) -> str:
    """Build ``HTTP <status>: <detail>`` from an error response body."""
    status = response.status_code
    text = response.body.decode("utf-8", errors="replace") if response.body else ""
    msg = ""
    try:
        detail = json.loads(text) if text else None
    except ValueError:
        msg = text[:200]
    else:
        if isinstance(detail, dict):
            msg = str(detail.get("message") or detail.get("error") or detail.get("detail") or "")
        elif detail is not None:
            msg = str(detail)

    prefix = f"HTTP {status}"
    return f"{prefix}: {msg}" if msg else prefix
