"""Deterministic doubles for exercising the client pipeline without a network.

:class:`ScriptedTransport` plays back a fixed sequence of responses and
transport faults, one per ``send``; :class:`RecordingSleep` replaces
:func:`time.sleep` so backoff waits are recorded instead of slept.

Example::

    transport = ScriptedTransport([
        make_response(503),
        make_response(200, json=[{"login": "octocat", "contributions": 3}]),
    ])
    sleep = RecordingSleep()
    client = Client(transport=transport, sleep=sleep)
    client.call(CONTRIBUTORS, "OpenFeign", "feign")
    assert transport.calls == 2
"""

from __future__ import annotations

import json as json_mod
import threading
from typing import Any, Iterable, Mapping, Optional, Union

from restdecl.exceptions import TransportFault
from restdecl.models import Request, RequestOptions, Response

Outcome = Union[Response, TransportFault]


def make_response(
    status: int = 200,
    *,
    json: Any = None,  # noqa: ANN401
    body: bytes = b"",
    headers: Optional[Mapping[str, str]] = None,
) -> Response:
    """Build a :class:`~restdecl.models.Response` for a script.

    Args:
        status: HTTP status code.
        json: Value serialised as the JSON body (sets ``Content-Type``).
        body: Raw body, used when *json* is ``None``.
        headers: Single-valued response headers.
    """
    all_headers = {name: (value,) for name, value in (headers or {}).items()}
    if json is not None:
        body = json_mod.dumps(json).encode("utf-8")
        all_headers.setdefault("Content-Type", ("application/json",))
    return Response(status_code=status, headers=all_headers, body=body)


class ScriptedTransport:
    """Transport that returns or raises scripted outcomes in order.

    Args:
        outcomes: Responses to return and :class:`TransportFault` instances
            to raise, one per ``send``.
        repeat_last: Once the script is used up, keep replaying the last
            outcome. When ``False`` an extra ``send`` fails the test with
            :class:`AssertionError`.

    Attributes:
        requests: Every request received, in order.
        options: The options passed with each request.
    """

    def __init__(self, outcomes: Iterable[Outcome], *, repeat_last: bool = True) -> None:
        self._outcomes = list(outcomes)
        if not self._outcomes:
            raise ValueError("ScriptedTransport needs at least one outcome")
        self._repeat_last = repeat_last
        self._lock = threading.Lock()
        self.requests: list[Request] = []
        self.options: list[RequestOptions] = []
        self.closed = False

    @property
    def calls(self) -> int:
        """Number of ``send`` invocations so far."""
        with self._lock:
            return len(self.requests)

    def send(self, request: Request, options: RequestOptions) -> Response:
        with self._lock:
            index = len(self.requests)
            self.requests.append(request)
            self.options.append(options)
            if index >= len(self._outcomes):
                if not self._repeat_last:
                    raise AssertionError(
                        f"Unexpected send #{index + 1}: only {len(self._outcomes)} outcome(s) scripted"
                    )
                index = len(self._outcomes) - 1
            outcome = self._outcomes[index]

        if isinstance(outcome, TransportFault):
            raise outcome
        return outcome.model_copy(update={"request": request})

    def close(self) -> None:
        self.closed = True


class RecordingSleep:
    """Stand-in for :func:`time.sleep` that records requested delays.

    Attributes:
        delays: Seconds requested by each call, in order.
    """

    def __init__(self) -> None:
        self.delays: list[float] = []

    def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)

    def wait(self, event: threading.Event, seconds: float) -> bool:
        """Stand-in for :meth:`threading.Event.wait`; records and never blocks.

        Pass as ``Client(wait=sleep.wait)`` to record cancellable waits.
        """
        self.delays.append(seconds)
        return event.is_set()

    @property
    def total(self) -> float:
        """Sum of all recorded delays in seconds."""
        return sum(self.delays)
