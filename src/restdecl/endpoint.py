"""Declare endpoint descriptors from request lines.

Turns a compact request line such as ``"GET /repos/{owner}/{repo}/contributors"``
into an immutable :class:`~restdecl.models.EndpointDescriptor`. Path
parameters are taken from the template placeholders in the order they appear;
query, header and body parameters follow in that order.

Example::

    CONTRIBUTORS = endpoint(
        "GET /repos/{owner}/{repo}/contributors",
        query=["anon"],
        result_type=list[Contributor],
    )
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping, Optional

from restdecl.models import (
    PLACEHOLDER_RE,
    EndpointDescriptor,
    EndpointParameter,
    HTTPMethod,
    ParameterLocation,
)


def parse_request_line(request_line: str) -> tuple[HTTPMethod, str]:
    """Split ``"<METHOD> <template>"`` into its verb and URL template.

    Args:
        request_line: e.g. ``"GET /repos/{owner}/{repo}/contributors"``.

    Returns:
        A ``(method, url_template)`` tuple.

    Raises:
        ValueError: If the line has no template or the verb is unknown.
    """
    parts = request_line.strip().split(None, 1)
    if len(parts) != 2:
        raise ValueError(f"Request line must be '<METHOD> <template>': {request_line!r}")
    verb, template = parts
    try:
        method = HTTPMethod(verb.upper())
    except ValueError:
        raise ValueError(f"Unsupported HTTP method: {verb}") from None
    return method, template.strip()


def _path_names(template: str) -> list[str]:
    """Placeholder names in first-appearance order."""
    seen: list[str] = []
    for name in PLACEHOLDER_RE.findall(template):
        if name not in seen:
            seen.append(name)
    return seen


def endpoint(
    request_line: str,
    *,
    result_type: Any = None,
    query: Iterable[str] = (),
    header_params: Iterable[str] = (),
    body: Optional[str] = None,
    headers: Optional[Mapping[str, str | Iterable[str]]] = None,
) -> EndpointDescriptor:
    """Build an :class:`~restdecl.models.EndpointDescriptor` from a request line.

    Args:
        request_line: Verb and URL template, e.g. ``"GET /users/{id}"``.
        result_type: Type the 2xx body decodes into, or ``None``.
        query: Names of query-string parameters.
        header_params: Names of headers supplied per call.
        body: Name of the JSON body parameter, if any.
        headers: Static headers sent with every call.

    Returns:
        The frozen descriptor. Call arguments follow the order path
        placeholders, *query*, *header_params*, *body*.
    """
    method, template = parse_request_line(request_line)

    params = [EndpointParameter(name=n, location=ParameterLocation.PATH) for n in _path_names(template)]
    params += [EndpointParameter(name=n, location=ParameterLocation.QUERY) for n in query]
    params += [EndpointParameter(name=n, location=ParameterLocation.HEADER) for n in header_params]
    if body is not None:
        params.append(EndpointParameter(name=body, location=ParameterLocation.BODY))

    static: dict[str, tuple[str, ...]] = {}
    for name, value in (headers or {}).items():
        static[name] = (value,) if isinstance(value, str) else tuple(value)

    return EndpointDescriptor(
        method=method,
        url_template=template,
        parameters=tuple(params),
        result_type=result_type,
        headers=static,
    )
