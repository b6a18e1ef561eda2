"""Resolve an endpoint descriptor and call arguments into a concrete request.

:func:`build_request` is the first stage of every call. It is pure: no
network access and no shared state, so the same descriptor can be built
concurrently from any number of threads.

**Mapping rules:**

* **Path parameters** replace their ``{name}`` placeholder, percent-encoded
  so that ``/`` or spaces in a value cannot change the path structure.
* **Query parameters** are appended in declaration order; ``None`` is
  omitted and lists repeat the key.
* **Header parameters** add a header value; ``None`` is omitted. Header
  names and values must be ASCII without CR, LF or NUL.
* **The body parameter** is serialised as JSON.

Values must be strings or plainly string-convertible (numbers, booleans,
``Decimal``, ``UUID``, enums). Anything else raises
:class:`~restdecl.exceptions.MalformedRequestError`, which the client never
retries.
"""

from __future__ import annotations

import enum
import json
from decimal import Decimal
from typing import Any, Mapping, Optional, Sequence
from urllib.parse import quote, urlencode, urlsplit
from uuid import UUID

from pydantic import BaseModel

from restdecl.exceptions import MalformedRequestError
from restdecl.models import (
    PLACEHOLDER_RE,
    EndpointDescriptor,
    ParameterLocation,
    Request,
)

_ILLEGAL_VALUE_CHARS = frozenset("\r\n\0")
_ILLEGAL_NAME_CHARS = _ILLEGAL_VALUE_CHARS | frozenset(" \t:")


def build_request(
    descriptor: EndpointDescriptor,
    args: Sequence[Any],
    *,
    base_url: str = "",
    headers: Optional[Mapping[str, str | Sequence[str]]] = None,
) -> Request:
    """Build the :class:`~restdecl.models.Request` for one call.

    Args:
        descriptor: The endpoint being invoked.
        args: Call arguments, in the order of ``descriptor.parameters``.
        base_url: Prefix for relative URL templates.
        headers: Client-wide default headers (e.g. ``User-Agent``). The
            descriptor's static headers override them by name.

    Returns:
        A frozen request with an absolute URL.

    Raises:
        MalformedRequestError: On an argument count mismatch, an
            unconvertible value, a URL that does not resolve to an
            absolute http(s) URL, or a header that cannot be sent.
    """
    args = tuple(args)
    expected = descriptor.parameter_names
    if len(args) < len(expected):
        missing = ", ".join(expected[len(args):])
        raise MalformedRequestError(f"{descriptor.key}: missing argument(s) for {missing}")
    if len(args) > len(expected):
        raise MalformedRequestError(
            f"{descriptor.key}: expected {len(expected)} argument(s), got {len(args)}"
        )

    path_values: dict[str, str] = {}
    query: list[tuple[str, str]] = []
    header_args: list[tuple[str, str]] = []
    body: Optional[bytes] = None

    for param, value in zip(descriptor.parameters, args):
        if param.location == ParameterLocation.PATH:
            if value is None:
                raise MalformedRequestError(f"Path parameter '{param.name}' must not be None")
            path_values[param.name] = quote(_stringify(param.name, value), safe="")
        elif param.location == ParameterLocation.QUERY:
            if value is None:
                continue
            items = value if isinstance(value, (list, tuple)) else [value]
            query.extend((param.name, _stringify(param.name, item)) for item in items)
        elif param.location == ParameterLocation.HEADER:
            if value is not None:
                header_args.append((param.name, _stringify(param.name, value)))
        else:
            body = _encode_body(param.name, value)

    path = PLACEHOLDER_RE.sub(lambda m: path_values[m.group(1)], descriptor.url_template)
    url = _resolve_url(base_url, path)
    if query:
        separator = "&" if "?" in url else "?"
        url = f"{url}{separator}{urlencode(query, quote_via=quote)}"

    merged: dict[str, tuple[str, ...]] = {}
    for name, values in (headers or {}).items():
        _set_header(merged, name, (values,) if isinstance(values, str) else tuple(values))
    for name, values in descriptor.headers.items():
        _set_header(merged, name, values)
    if descriptor.result_type is not None and _find_header(merged, "Accept") is None:
        merged["Accept"] = ("application/json",)
    if body is not None and _find_header(merged, "Content-Type") is None:
        merged["Content-Type"] = ("application/json",)
    for name, value in header_args:
        existing = _find_header(merged, name)
        if existing is None:
            merged[name] = (value,)
        else:
            merged[existing] = merged[existing] + (value,)

    for name, values in merged.items():
        _check_header(name, values)

    return Request(method=descriptor.method, url=url, headers=merged, body=body)


def _stringify(name: str, value: Any) -> str:  # noqa: ANN401
    """Render a call argument as a string, rejecting anything ambiguous."""
    if isinstance(value, enum.Enum):
        value = value.value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (str, int, float, Decimal, UUID)):
        return str(value)
    raise MalformedRequestError(
        f"Parameter '{name}': cannot convert {type(value).__name__} to a string"
    )


def _encode_body(name: str, value: Any) -> Optional[bytes]:  # noqa: ANN401
    """Serialise the body argument as JSON."""
    if value is None:
        return None
    if isinstance(value, BaseModel):
        return value.model_dump_json().encode("utf-8")
    if isinstance(value, bytes):
        return value
    try:
        return json.dumps(value, ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise MalformedRequestError(f"Body parameter '{name}' is not JSON-serialisable: {exc}") from exc


def _resolve_url(base_url: str, path: str) -> str:
    """Join a relative template to *base_url* and check the result is absolute."""
    if path.startswith(("http://", "https://")):
        url = path
    elif base_url:
        url = f"{base_url.rstrip('/')}/{path.lstrip('/')}"
    else:
        url = path

    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.netloc:
        raise MalformedRequestError(f"Cannot resolve an absolute URL from {url!r}")
    return url


def _check_header(name: str, values: tuple[str, ...]) -> None:
    """Reject header names and values that cannot be written to the wire."""
    if not name or not name.isascii() or any(c in _ILLEGAL_NAME_CHARS for c in name):
        raise MalformedRequestError(f"Invalid header name {name!r}")
    for value in values:
        if not value.isascii() or any(c in _ILLEGAL_VALUE_CHARS for c in value):
            raise MalformedRequestError(
                f"Header '{name}': value {value!r} must be ASCII without CR, LF or NUL"
            )


def _find_header(headers: Mapping[str, Any], name: str) -> Optional[str]:
    """Return the stored key matching *name* case-insensitively."""
    wanted = name.lower()
    for key in headers:
        if key.lower() == wanted:
            return key
    return None


def _set_header(headers: dict[str, tuple[str, ...]], name: str, values: tuple[str, ...]) -> None:
    """Replace any existing header named *name* (case-insensitive)."""
    existing = _find_header(headers, name)
    if existing is not None:
        del headers[existing]
    headers[name] = values
