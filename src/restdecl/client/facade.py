"""The client facade -- one call through the whole pipeline.

:class:`Client` wires together the request builder, a transport, a decoder,
an error classifier and a retry policy. Each :meth:`Client.call` runs::

    build -> send -> 2xx?  -> decode -> value
                  -> fault / non-2xx -> classify
                       -> terminal  -> raise TerminalError
                       -> retryable -> policy -> wait -> send again
                                               -> give up -> raise RetryExhaustedError

Only the backoff wait suspends the calling thread. The client keeps no
per-call state on the instance, so one client can serve concurrent calls
from many threads.

See Also:
    :mod:`restdecl.client.classifier` and :mod:`restdecl.client.retry` for
    the pluggable strategies.
"""

from __future__ import annotations

import threading
import time
from typing import Any, Callable, Optional

from restdecl.client.classifier import (
    DefaultErrorClassifier,
    ErrorClassifier,
    Retryable,
    Terminal,
    TransportFailure,
)
from restdecl.client.decoder import Decoder, JsonDecoder
from restdecl.client.request import build_request
from restdecl.client.retry import ExponentialBackoff, GiveUp, RetryPolicy, RetryState
from restdecl.client.transport import HttpxTransport, Transport
from restdecl.exceptions import (
    CallCancelledError,
    RetryExhaustedError,
    TerminalError,
    TransportFault,
)
from restdecl.models import ClientConfig, EndpointDescriptor, Request
from restdecl.output import get_output


def _wait_on_event(event: threading.Event, seconds: float) -> bool:
    return event.wait(seconds)


class Client:
    """Invokes declared endpoints with decoding, classification and retry.

    Every collaborator is optional and defaults from *config*:
    :class:`~restdecl.client.transport.HttpxTransport`,
    :class:`~restdecl.client.decoder.JsonDecoder`,
    :class:`~restdecl.client.classifier.DefaultErrorClassifier` (with
    ``config.transient_statuses``) and
    :class:`~restdecl.client.retry.ExponentialBackoff` (from
    ``config.retry``).

    Args:
        config: Base URL, timeouts, retry and classification settings.
        transport: Sends requests; replace with
            :class:`~restdecl.testing.ScriptedTransport` in tests.
        decoder: Turns 2xx bodies into result values.
        classifier: Turns non-2xx responses into classified failures.
        retry_policy: Decides whether and when to retry.
        sleep: Called with seconds to wait between attempts.
        wait: Called with the cancel event and seconds to wait when a call
            passes ``cancel``; returns ``True`` if the event was set.

    Example::

        with Client(ClientConfig(base_url="https://api.github.com")) as client:
            contributors = client.call(CONTRIBUTORS, "OpenFeign", "feign")
    """

    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        *,
        transport: Optional[Transport] = None,
        decoder: Optional[Decoder] = None,
        classifier: Optional[ErrorClassifier] = None,
        retry_policy: Optional[RetryPolicy] = None,
        sleep: Callable[[float], object] = time.sleep,
        wait: Callable[[threading.Event, float], bool] = _wait_on_event,
    ) -> None:
        self.config = config or ClientConfig()
        self._transport: Transport = transport or HttpxTransport()
        self._decoder: Decoder = decoder or JsonDecoder()
        self._classifier: ErrorClassifier = classifier or DefaultErrorClassifier(
            self.config.transient_statuses
        )
        self._retry_policy: RetryPolicy = retry_policy or ExponentialBackoff.from_config(
            self.config.retry
        )
        self._sleep = sleep
        self._wait_on = wait

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the transport."""
        self._transport.close()

    # ------------------------------------------------------------------ #
    # Public API
    # ------------------------------------------------------------------ #

    def bind(self, descriptor: EndpointDescriptor) -> BoundEndpoint:
        """Return a callable that invokes *descriptor* through this client.

        Example::

            contributors = client.bind(CONTRIBUTORS)
            contributors("OpenFeign", "feign")
        """
        return BoundEndpoint(self, descriptor)

    def call(
        self,
        descriptor: EndpointDescriptor,
        *args: Any,
        cancel: Optional[threading.Event] = None,
    ) -> Any:  # noqa: ANN401
        """Invoke *descriptor* with *args* and return the decoded result.

        Args:
            descriptor: The endpoint to call.
            *args: Arguments in the order of ``descriptor.parameters``.
            cancel: Optional event; if it is set while the call waits to
                retry, the call stops with :class:`CallCancelledError`.

        Returns:
            The body decoded into ``descriptor.result_type``.

        Raises:
            MalformedRequestError: If the request cannot be built.
            DecodeError: If a 2xx body does not decode.
            TerminalError: If a response is classified as terminal.
            TransportFault: If the transport reports a fault that is not
                retryable (for example a redirect loop).
            RetryExhaustedError: If the retry policy gives up.
            CallCancelledError: If *cancel* is set during a backoff wait.
        """
        request = build_request(
            descriptor,
            args,
            base_url=self.config.base_url,
            headers={"User-Agent": self.config.user_agent},
        )
        output = get_output()
        state = RetryState()

        while True:
            state.attempts += 1
            fault: Optional[TransportFault] = None
            try:
                response = self._transport.send(request, self.config.request)
            except TransportFault as exc:
                if not exc.retryable:
                    output.debug(f"{descriptor.key}: {exc}, not retrying")
                    raise
                fault = exc
                failure: Retryable | TransportFailure = TransportFailure(message=str(exc))
            else:
                if response.is_success:
                    output.debug(
                        f"{descriptor.key}: HTTP {response.status_code} "
                        f"(attempt {state.attempts})"
                    )
                    return self._decoder.decode(response, descriptor.result_type)

                classified = self._classifier.classify(response)
                if isinstance(classified, Terminal):
                    output.debug(f"{descriptor.key}: {classified.message}, not retrying")
                    raise TerminalError(classified)
                failure = classified

            state.last_failure = failure
            decision = self._retry_policy.next_delay(state, failure)
            if isinstance(decision, GiveUp):
                output.debug(
                    f"{descriptor.key}: {failure.message}, giving up after "
                    f"{state.attempts} attempt(s)"
                )
                raise RetryExhaustedError(failure, state.attempts) from fault

            state.delays_ms.append(decision.delay_ms)
            output.debug(
                f"{descriptor.key}: {failure.message}, retrying in {decision.delay_ms}ms "
                f"(attempt {state.attempts})"
            )
            self._wait(decision.delay_ms, cancel, request)

    # ------------------------------------------------------------------ #
    # Private helpers
    # ------------------------------------------------------------------ #

    def _wait(
        self,
        delay_ms: int,
        cancel: Optional[threading.Event],
        request: Request,
    ) -> None:
        """Back off for *delay_ms*, aborting early if *cancel* is set."""
        seconds = delay_ms / 1000.0
        if cancel is None:
            self._sleep(seconds)
            return
        if self._wait_on(cancel, seconds):
            raise CallCancelledError(
                f"Cancelled while waiting to retry {request.method.value} {request.url}"
            )


class BoundEndpoint:
    """A descriptor bound to a client, callable like the remote operation.

    Attributes:
        descriptor: The bound endpoint.
    """

    def __init__(self, client: Client, descriptor: EndpointDescriptor) -> None:
        self._client = client
        self.descriptor = descriptor

    def __call__(self, *args: Any, cancel: Optional[threading.Event] = None) -> Any:  # noqa: ANN401
        return self._client.call(self.descriptor, *args, cancel=cancel)

    def __repr__(self) -> str:
        return f"<BoundEndpoint {self.descriptor.key}>"
