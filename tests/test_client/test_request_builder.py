"""Tests for restdecl.client.request -- descriptor + args to a concrete request."""

from __future__ import annotations

import enum
import json
from decimal import Decimal
from uuid import UUID

import pytest
from pydantic import BaseModel

from restdecl.client.request import build_request
from restdecl.endpoint import endpoint
from restdecl.exceptions import MalformedRequestError
from restdecl.github import CONTRIBUTORS, Contributor
from restdecl.models import HTTPMethod

BASE = "https://api.github.com"


class State(str, enum.Enum):
    OPEN = "open"
    CLOSED = "closed"


class NewIssue(BaseModel):
    title: str
    labels: list[str] = []


# ---------------------------------------------------------------------------
# Path parameters
# ---------------------------------------------------------------------------


class TestPathParameters:
    def test_contributors_url(self) -> None:
        request = build_request(CONTRIBUTORS, ("OpenFeign", "feign"), base_url=BASE)
        assert request.method == HTTPMethod.GET
        assert request.url == "https://api.github.com/repos/OpenFeign/feign/contributors"
        assert request.body is None

    def test_values_are_percent_encoded(self) -> None:
        request = build_request(CONTRIBUTORS, ("a/b", "c d"), base_url=BASE)
        assert request.url == "https://api.github.com/repos/a%2Fb/c%20d/contributors"

    def test_repeated_placeholder_filled_everywhere(self) -> None:
        desc = endpoint("GET /mirror/{name}/of/{name}")
        request = build_request(desc, ("x",), base_url=BASE)
        assert request.url == "https://api.github.com/mirror/x/of/x"

    def test_none_path_value_rejected(self) -> None:
        with pytest.raises(MalformedRequestError, match="owner"):
            build_request(CONTRIBUTORS, (None, "feign"), base_url=BASE)

    @pytest.mark.parametrize(
        "value, expected",
        [
            (42, "42"),
            (True, "true"),
            (False, "false"),
            (Decimal("1.50"), "1.50"),
            (UUID("12345678-1234-5678-1234-567812345678"), "12345678-1234-5678-1234-567812345678"),
            (State.OPEN, "open"),
        ],
    )
    def test_scalar_conversion(self, value, expected: str) -> None:
        desc = endpoint("GET /items/{id}")
        request = build_request(desc, (value,), base_url=BASE)
        assert request.url == f"https://api.github.com/items/{expected}"

    def test_unconvertible_value_rejected(self) -> None:
        desc = endpoint("GET /items/{id}")
        with pytest.raises(MalformedRequestError, match="cannot convert dict"):
            build_request(desc, ({"id": 1},), base_url=BASE)


# ---------------------------------------------------------------------------
# Argument count
# ---------------------------------------------------------------------------


class TestArgumentCount:
    def test_missing_arguments_named(self) -> None:
        with pytest.raises(MalformedRequestError, match="missing argument\\(s\\) for repo"):
            build_request(CONTRIBUTORS, ("OpenFeign",), base_url=BASE)

    def test_extra_arguments_rejected(self) -> None:
        with pytest.raises(MalformedRequestError, match="expected 2 argument\\(s\\), got 3"):
            build_request(CONTRIBUTORS, ("a", "b", "c"), base_url=BASE)

    def test_malformed_request_exit_code(self) -> None:
        with pytest.raises(MalformedRequestError) as exc_info:
            build_request(CONTRIBUTORS, (), base_url=BASE)
        assert exc_info.value.exit_code == 2


# ---------------------------------------------------------------------------
# Query parameters
# ---------------------------------------------------------------------------


class TestQueryParameters:
    def test_query_appended_in_order(self) -> None:
        desc = endpoint("GET /repos/{owner}/{repo}/issues", query=["state", "per_page"])
        request = build_request(desc, ("o", "r", State.CLOSED, 50), base_url=BASE)
        assert request.url.endswith("/repos/o/r/issues?state=closed&per_page=50")

    def test_none_query_value_omitted(self) -> None:
        desc = endpoint("GET /search", query=["q", "sort"])
        request = build_request(desc, ("feign", None), base_url=BASE)
        assert request.url == "https://api.github.com/search?q=feign"

    def test_all_none_leaves_no_question_mark(self) -> None:
        desc = endpoint("GET /search", query=["q"])
        request = build_request(desc, (None,), base_url=BASE)
        assert request.url == "https://api.github.com/search"

    def test_list_repeats_key(self) -> None:
        desc = endpoint("GET /search", query=["label"])
        request = build_request(desc, (["bug", "help wanted"],), base_url=BASE)
        assert request.url == "https://api.github.com/search?label=bug&label=help%20wanted"

    def test_template_with_existing_query(self) -> None:
        desc = endpoint("GET /search?type=repo", query=["q"])
        request = build_request(desc, ("x",), base_url=BASE)
        assert request.url == "https://api.github.com/search?type=repo&q=x"


# ---------------------------------------------------------------------------
# Headers
# ---------------------------------------------------------------------------


class TestHeaders:
    def test_accept_defaults_to_json_for_typed_results(self) -> None:
        desc = endpoint("GET /users/{login}", result_type=Contributor)
        request = build_request(desc, ("octocat",), base_url=BASE)
        assert request.headers["Accept"] == ("application/json",)

    def test_no_accept_without_result_type(self) -> None:
        desc = endpoint("DELETE /users/{login}")
        request = build_request(desc, ("octocat",), base_url=BASE)
        assert "Accept" not in request.headers

    def test_descriptor_headers_override_client_defaults(self) -> None:
        desc = endpoint("GET /x", headers={"user-agent": "special/1.0"})
        request = build_request(desc, (), base_url=BASE, headers={"User-Agent": "restdecl/0.1.0"})
        assert request.headers == {"user-agent": ("special/1.0",)}

    def test_descriptor_accept_kept(self) -> None:
        request = build_request(CONTRIBUTORS, ("o", "r"), base_url=BASE)
        assert request.headers["Accept"] == ("application/vnd.github+json",)

    def test_header_parameter_added(self) -> None:
        desc = endpoint("GET /x", header_params=["If-None-Match"])
        request = build_request(desc, ('"etag"',), base_url=BASE)
        assert request.headers["If-None-Match"] == ('"etag"',)

    def test_none_header_parameter_omitted(self) -> None:
        desc = endpoint("GET /x", header_params=["If-None-Match"])
        request = build_request(desc, (None,), base_url=BASE)
        assert "If-None-Match" not in request.headers

    def test_header_parameter_appends_to_static_value(self) -> None:
        desc = endpoint("GET /x", header_params=["X-Tag"], headers={"x-tag": "static"})
        request = build_request(desc, ("dynamic",), base_url=BASE)
        assert request.headers["x-tag"] == ("static", "dynamic")

    @pytest.mark.parametrize(
        "value",
        ["caf\u00e9", "a\r\nInjected: 1", "line\nbreak", "nul\0byte"],
    )
    def test_unsendable_header_parameter_rejected(self, value: str) -> None:
        desc = endpoint("GET /x", header_params=["X-Name"])
        with pytest.raises(MalformedRequestError, match="X-Name"):
            build_request(desc, (value,), base_url=BASE)

    def test_unsendable_static_header_rejected(self) -> None:
        desc = endpoint("GET /x", headers={"X-Trace": "ok\r\nX-Evil: 1"})
        with pytest.raises(MalformedRequestError, match="must be ASCII without CR, LF or NUL"):
            build_request(desc, (), base_url=BASE)

    @pytest.mark.parametrize("name", ["Bad Name", "X:Colon", "", "Ca\u00f1on"])
    def test_invalid_client_header_name_rejected(self, name: str) -> None:
        with pytest.raises(MalformedRequestError, match="Invalid header name"):
            build_request(CONTRIBUTORS, ("o", "r"), base_url=BASE, headers={name: "v"})

    def test_printable_ascii_header_value_accepted(self) -> None:
        desc = endpoint("GET /x", header_params=["If-None-Match"])
        request = build_request(desc, ('W/"abc", "d;e=f"',), base_url=BASE)
        assert request.headers["If-None-Match"] == ('W/"abc", "d;e=f"',)


# ---------------------------------------------------------------------------
# Body
# ---------------------------------------------------------------------------


class TestBody:
    def test_model_body_serialised(self) -> None:
        desc = endpoint("POST /repos/{owner}/{repo}/issues", body="issue")
        request = build_request(desc, ("o", "r", NewIssue(title="Bug")), base_url=BASE)
        assert json.loads(request.body) == {"title": "Bug", "labels": []}
        assert request.headers["Content-Type"] == ("application/json",)

    def test_dict_body_serialised(self) -> None:
        desc = endpoint("POST /x", body="payload")
        request = build_request(desc, ({"name": "café"},), base_url=BASE)
        assert json.loads(request.body.decode("utf-8")) == {"name": "café"}

    def test_bytes_body_passed_through(self) -> None:
        desc = endpoint("PUT /x", body="raw", headers={"Content-Type": "text/plain"})
        request = build_request(desc, (b"hello",), base_url=BASE)
        assert request.body == b"hello"
        assert request.headers["Content-Type"] == ("text/plain",)

    def test_none_body_sends_nothing(self) -> None:
        desc = endpoint("POST /x", body="payload")
        request = build_request(desc, (None,), base_url=BASE)
        assert request.body is None
        assert "Content-Type" not in request.headers

    def test_unserialisable_body_rejected(self) -> None:
        desc = endpoint("POST /x", body="payload")
        with pytest.raises(MalformedRequestError, match="not JSON-serialisable"):
            build_request(desc, ({"when": object()},), base_url=BASE)


# ---------------------------------------------------------------------------
# URL resolution
# ---------------------------------------------------------------------------


class TestUrlResolution:
    def test_trailing_and_leading_slashes_joined_once(self) -> None:
        desc = endpoint("GET /rate_limit")
        request = build_request(desc, (), base_url="https://ghe.example.com/api/v3/")
        assert request.url == "https://ghe.example.com/api/v3/rate_limit"

    def test_absolute_template_ignores_base(self) -> None:
        desc = endpoint("GET https://status.example.com/{page}")
        request = build_request(desc, ("health",), base_url=BASE)
        assert request.url == "https://status.example.com/health"

    def test_relative_without_base_rejected(self) -> None:
        with pytest.raises(MalformedRequestError, match="absolute URL"):
            build_request(endpoint("GET /x"), ())

    def test_non_http_scheme_rejected(self) -> None:
        with pytest.raises(MalformedRequestError):
            build_request(endpoint("GET /x"), (), base_url="ftp://files.example.com")

    def test_build_is_pure(self) -> None:
        first = build_request(CONTRIBUTORS, ("o", "r"), base_url=BASE)
        second = build_request(CONTRIBUTORS, ("o", "r"), base_url=BASE)
        assert first == second
