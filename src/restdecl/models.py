"""Canonical Pydantic models shared across all restdecl modules.

This is the single source of truth for data shapes in the project. The models
fall into two groups:

**Pipeline models** -- immutable values flowing through one client call:
    :class:`HTTPMethod`, :class:`ParameterLocation`,
    :class:`EndpointParameter`, :class:`EndpointDescriptor`,
    :class:`Request`, and :class:`Response`.

**Configuration models** -- serialised as JSON in the user's config directory:
    :class:`RequestOptions`, :class:`RetryConfig`, :class:`ClientConfig`,
    :class:`OutputConfig`, and :class:`GlobalConfig`.

Pipeline models are frozen so a descriptor can be declared once at import
time and shared read-only by every call on every thread.
"""

from __future__ import annotations

import enum
import re
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from restdecl import __version__

# Matches ``{name}`` placeholders in a URL template.
PLACEHOLDER_RE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_.\-]*)\}")


# --- Pipeline models ---


class HTTPMethod(str, enum.Enum):
    """HTTP verbs an :class:`EndpointDescriptor` can declare."""

    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"


class ParameterLocation(str, enum.Enum):
    """Where a call-time argument ends up in the built request."""

    PATH = "path"
    QUERY = "query"
    HEADER = "header"
    BODY = "body"


class EndpointParameter(BaseModel):
    """One declared parameter slot of an endpoint.

    ``name`` is the placeholder name for PATH parameters, the query key for
    QUERY parameters and the header name for HEADER parameters.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    location: ParameterLocation = ParameterLocation.PATH


class EndpointDescriptor(BaseModel):
    """Data-only description of one remote operation.

    A descriptor is built once (usually via :func:`restdecl.endpoint.endpoint`)
    and applied to call-time arguments by
    :func:`~restdecl.client.request.build_request`. Arguments are supplied in
    the order of :attr:`parameters`.

    Example::

        EndpointDescriptor(
            method=HTTPMethod.GET,
            url_template="/repos/{owner}/{repo}/contributors",
            parameters=(EndpointParameter(name="owner"), EndpointParameter(name="repo")),
            result_type=list[Contributor],
        )

    Raises:
        pydantic.ValidationError: If a template placeholder is not declared
            as a PATH parameter, a PATH parameter does not appear in the
            template, names repeat, or more than one BODY parameter exists.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    method: HTTPMethod
    url_template: str
    parameters: tuple[EndpointParameter, ...] = ()
    result_type: Any = Field(
        default=None, description="Type the response body decodes into; None for no body"
    )
    headers: dict[str, tuple[str, ...]] = Field(default_factory=dict)

    @model_validator(mode="after")
    def _check_slots(self) -> EndpointDescriptor:
        names = [p.name for p in self.parameters]
        duplicates = sorted({n for n in names if names.count(n) > 1})
        if duplicates:
            raise ValueError(f"Duplicate parameter names: {', '.join(duplicates)}")

        placeholders = set(PLACEHOLDER_RE.findall(self.url_template))
        path_names = {p.name for p in self.parameters if p.location == ParameterLocation.PATH}
        undeclared = placeholders - path_names
        if undeclared:
            raise ValueError(
                f"Placeholders without a path parameter: {', '.join(sorted(undeclared))}"
            )
        unused = path_names - placeholders
        if unused:
            raise ValueError(
                f"Path parameters missing from template: {', '.join(sorted(unused))}"
            )

        bodies = [p for p in self.parameters if p.location == ParameterLocation.BODY]
        if len(bodies) > 1:
            raise ValueError("At most one body parameter is allowed")
        return self

    @property
    def parameter_names(self) -> tuple[str, ...]:
        """Declared parameter names in call order."""
        return tuple(p.name for p in self.parameters)

    @property
    def key(self) -> str:
        """Short label for log messages, e.g. ``GET /repos/{owner}/{repo}``."""
        return f"{self.method.value} {self.url_template}"


class Request(BaseModel):
    """A concrete request, built fresh for each call."""

    model_config = ConfigDict(frozen=True)

    method: HTTPMethod
    url: str
    headers: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    body: Optional[bytes] = None


class Response(BaseModel):
    """A concrete response as returned by a transport.

    A non-2xx status is a valid response, not a transport failure.
    """

    model_config = ConfigDict(frozen=True)

    status_code: int
    headers: dict[str, tuple[str, ...]] = Field(default_factory=dict)
    body: bytes = b""
    request: Optional[Request] = None

    @property
    def is_success(self) -> bool:
        """Whether the status is in the 2xx range."""
        return 200 <= self.status_code < 300

    def header(self, name: str) -> Optional[str]:
        """Return the first value of header *name* (case-insensitive), or ``None``."""
        wanted = name.lower()
        for key, values in self.headers.items():
            if key.lower() == wanted and values:
                return values[0]
        return None


# --- Configuration models ---


class RequestOptions(BaseModel):
    """Per-request transport settings."""

    connect_timeout: float = Field(default=10.0, gt=0, description="Connect timeout in seconds")
    read_timeout: float = Field(default=60.0, gt=0, description="Read timeout in seconds")
    follow_redirects: bool = Field(default=True, description="Follow HTTP redirects")


class RetryConfig(BaseModel):
    """Settings for the default exponential backoff policy.

    ``max_attempts`` counts the first try, so the default of 5 allows up to
    four retries.
    """

    max_attempts: int = Field(default=5, ge=1, description="Total attempts per call")
    base_delay_ms: int = Field(default=100, ge=0, description="Delay before the first retry")
    multiplier: float = Field(default=1.5, ge=1.0, description="Growth factor per retry")
    max_delay_ms: int = Field(default=1000, ge=0, description="Upper bound on computed delays")


class ClientConfig(BaseModel):
    """Settings for a :class:`~restdecl.client.Client`."""

    base_url: str = Field(default="https://api.github.com", description="Base URL for relative templates")
    user_agent: str = Field(default=f"restdecl/{__version__}")
    request: RequestOptions = Field(default_factory=RequestOptions)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    transient_statuses: list[int] = Field(
        default_factory=list,
        description="Statuses outside 5xx that should be retried",
    )


class OutputConfig(BaseModel):
    """Default output format preferences stored in :class:`GlobalConfig`."""

    format: Literal["auto", "json", "plain", "rich"] = Field(
        default="auto",
        description="Output format used when neither --json nor --plain is given",
    )


class GlobalConfig(BaseModel):
    """User-wide configuration persisted at ``~/.config/restdecl/config.json``.

    Loaded and saved by :func:`~restdecl.config.load_global_config` and
    :func:`~restdecl.config.save_global_config`. See
    :func:`~restdecl.config.resolve_config` for the full precedence chain.
    """

    client: ClientConfig = Field(default_factory=ClientConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)
