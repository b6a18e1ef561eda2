"""Transports -- the only component that performs network I/O.

A transport takes a fully built :class:`~restdecl.models.Request` and returns
a :class:`~restdecl.models.Response`. HTTP-level failures (4xx, 5xx) are
ordinary responses. Network-level problems raise
:class:`~restdecl.exceptions.TransportFault`, which the client retries under
the same attempt budget as transient HTTP failures unless the fault is marked
non-retryable (redirect loops, unsupported URL schemes). A response whose
content encoding cannot be decoded raises
:class:`~restdecl.exceptions.DecodeError`, and a request httpx refuses to
write raises :class:`~restdecl.exceptions.MalformedRequestError`.

Classes:
    :class:`Transport` -- the protocol the client depends on.
    :class:`HttpxTransport` -- the default implementation over :class:`httpx.Client`.

See Also:
    :class:`restdecl.testing.ScriptedTransport` for the deterministic test
    double.
"""

from __future__ import annotations

from typing import Optional, Protocol

import httpx

from restdecl.exceptions import DecodeError, MalformedRequestError, TransportFault
from restdecl.models import Request, RequestOptions, Response


class Transport(Protocol):
    """Sends one request and returns its response."""

    def send(self, request: Request, options: RequestOptions) -> Response:
        """Send *request* and return the response.

        Raises:
            TransportFault: On connection, DNS, timeout or socket errors.
            MalformedRequestError: If the request cannot be written.
            DecodeError: If the response content cannot be decoded.
        """
        ...

    def close(self) -> None:
        """Release any resources held by the transport."""
        ...


class HttpxTransport:
    """Transport backed by :class:`httpx.Client`.

    The underlying client is created lazily on first use. An injected client
    (for example one built with :class:`httpx.MockTransport`) is used as-is
    and is never closed by this transport.

    Args:
        client: Optional pre-configured :class:`httpx.Client`.
        verify: Verify TLS certificates when creating the default client.

    Example::

        with HttpxTransport() as transport:
            response = transport.send(request, RequestOptions())
    """

    def __init__(self, client: Optional[httpx.Client] = None, verify: bool = True) -> None:
        self._client = client
        self._owns_client = client is None
        self._verify = verify

    def __enter__(self) -> HttpxTransport:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def send(self, request: Request, options: RequestOptions) -> Response:
        """Send *request* over HTTP.

        The response body is read completely before returning so that a read
        timeout surfaces here as a :class:`TransportFault`.

        Args:
            request: The built request.
            options: Timeouts and redirect handling for this call.

        Returns:
            The response, whatever its status code.

        Raises:
            TransportFault: On network-level errors. Redirect loops and
                unsupported URL schemes are marked ``retryable=False``.
            MalformedRequestError: If the request cannot be put on the wire
                (non-ASCII or illegal header values).
            DecodeError: If the response content encoding is corrupt.
        """
        client = self._get_client()
        headers = _to_httpx_headers(request)
        try:
            raw = client.request(
                request.method.value,
                request.url,
                headers=headers,
                content=request.body,
                timeout=httpx.Timeout(options.read_timeout, connect=options.connect_timeout),
                follow_redirects=options.follow_redirects,
            )
        except httpx.LocalProtocolError as exc:
            raise MalformedRequestError(
                f"Cannot send {request.method.value} {request.url}: {exc}"
            ) from exc
        except (httpx.UnsupportedProtocol, httpx.TooManyRedirects) as exc:
            raise TransportFault(_describe(exc, request), retryable=False) from exc
        except httpx.TransportError as exc:
            raise TransportFault(_describe(exc, request)) from exc
        except httpx.DecodingError as exc:
            raise DecodeError(
                f"{request.method.value} {request.url}: cannot decode response content: {exc}"
            ) from exc
        except httpx.RequestError as exc:
            raise TransportFault(_describe(exc, request), retryable=False) from exc

        response_headers: dict[str, tuple[str, ...]] = {}
        for name, value in raw.headers.multi_items():
            response_headers[name] = response_headers.get(name, ()) + (value,)

        return Response(
            status_code=raw.status_code,
            headers=response_headers,
            body=raw.content,
            request=request,
        )

    def close(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(verify=self._verify)
        return self._client


def _to_httpx_headers(request: Request) -> httpx.Headers:
    """Flatten multi-valued request headers; non-ASCII values cannot be sent."""
    try:
        return httpx.Headers(
            [(name, value) for name, values in request.headers.items() for value in values]
        )
    except UnicodeEncodeError as exc:
        raise MalformedRequestError(
            f"Cannot send {request.method.value} {request.url}: header is not ASCII ({exc.reason})"
        ) from exc


def _describe(exc: httpx.RequestError, request: Request) -> str:
    return f"{type(exc).__name__} on {request.method.value} {request.url}: {exc}"
