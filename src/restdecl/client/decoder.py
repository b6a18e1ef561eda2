"""Decode successful response bodies into typed values.

The decoder runs only after the client has established that the status is
2xx; it never looks at status codes itself. A body that cannot be turned
into the declared result type raises
:class:`~restdecl.exceptions.DecodeError`, which is never retried.
"""

from __future__ import annotations

import functools
from typing import Any, Protocol, get_origin

from pydantic import TypeAdapter, ValidationError

from restdecl.exceptions import DecodeError
from restdecl.models import Response


class Decoder(Protocol):
    """Maps a 2xx response body to a value of the declared result type."""

    def decode(self, response: Response, result_type: Any) -> Any:  # noqa: ANN401
        ...


@functools.lru_cache(maxsize=256)
def _adapter(result_type: Any) -> TypeAdapter[Any]:  # noqa: ANN401
    return TypeAdapter(result_type)


def _preview(body: bytes) -> str:
    return body[:200].decode("utf-8", errors="replace") if body else ""


class JsonDecoder:
    """Validate JSON bodies against the result type with pydantic.

    Any type pydantic can validate works as a result type: models,
    ``list[Model]``, ``dict[str, int]``, plain builtins. Unknown JSON fields
    on models are ignored.

    Example::

        JsonDecoder().decode(response, list[Contributor])
    """

    def decode(self, response: Response, result_type: Any) -> Any:  # noqa: ANN401
        """Decode *response* into *result_type*.

        Args:
            response: A response with a 2xx status.
            result_type: Target type, or ``None`` to discard the body.

        Returns:
            The validated value, or ``None`` when *result_type* is ``None``.

        Raises:
            DecodeError: If the body is empty, not JSON, or does not match
                the declared shape.
        """
        if result_type is None:
            return None

        body = response.body
        if not body or not body.strip():
            raise DecodeError(
                f"HTTP {response.status_code}: empty body, expected {_type_name(result_type)}",
                status=response.status_code,
            )

        try:
            adapter = _adapter(result_type)
        except TypeError:
            # Unhashable type annotations cannot be cached.
            adapter = TypeAdapter(result_type)

        try:
            return adapter.validate_json(body)
        except ValidationError as exc:
            raise DecodeError(
                f"HTTP {response.status_code}: body does not decode into "
                f"{_type_name(result_type)}: {exc.error_count()} error(s), "
                f"first: {exc.errors()[0]['msg']}",
                status=response.status_code,
                body_preview=_preview(body),
            ) from exc


def _type_name(result_type: Any) -> str:  # noqa: ANN401
    if get_origin(result_type) is not None:
        return repr(result_type)
    return getattr(result_type, "__name__", None) or repr(result_type)
