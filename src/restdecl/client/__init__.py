"""Client pipeline for declared endpoints.

Stages, leaf-first:

* :func:`~restdecl.client.request.build_request` -- descriptor + args to a request.
* :class:`~restdecl.client.transport.HttpxTransport` -- sends it over HTTP.
* :class:`~restdecl.client.decoder.JsonDecoder` -- decodes 2xx bodies.
* :class:`~restdecl.client.classifier.DefaultErrorClassifier` -- tags
  non-2xx responses as retryable or terminal.
* :class:`~restdecl.client.retry.ExponentialBackoff` -- bounds retries.
* :class:`~restdecl.client.facade.Client` -- runs one call through all of it.

Example::

    from restdecl.client import Client

    with Client() as client:
        value = client.call(descriptor, "arg1", "arg2")
"""

from restdecl.client.classifier import (
    ClassifiedFailure,
    DefaultErrorClassifier,
    ErrorClassifier,
    Retryable,
    Terminal,
    TransportFailure,
)
from restdecl.client.decoder import Decoder, JsonDecoder
from restdecl.client.facade import BoundEndpoint, Client
from restdecl.client.request import build_request
from restdecl.client.retry import (
    Decision,
    ExponentialBackoff,
    GiveUp,
    NoRetry,
    RetryPolicy,
    RetryState,
    WaitThenRetry,
)
from restdecl.client.transport import HttpxTransport, Transport

__all__ = [
    "BoundEndpoint",
    "ClassifiedFailure",
    "Client",
    "Decision",
    "Decoder",
    "DefaultErrorClassifier",
    "ErrorClassifier",
    "ExponentialBackoff",
    "GiveUp",
    "HttpxTransport",
    "JsonDecoder",
    "NoRetry",
    "RetryPolicy",
    "RetryState",
    "Retryable",
    "Terminal",
    "Transport",
    "TransportFailure",
    "WaitThenRetry",
    "build_request",
]
