"""Tests for restdecl.client.decoder."""

from __future__ import annotations

from typing import Optional

import pytest
from pydantic import BaseModel

from restdecl.client.decoder import JsonDecoder
from restdecl.exceptions import DecodeError
from restdecl.github import Contributor
from restdecl.testing import make_response


class Repo(BaseModel):
    full_name: str
    stargazers_count: int = 0
    description: Optional[str] = None


class TestJsonDecoder:
    def test_decodes_list_of_models(self, contributors_payload: list) -> None:
        result = JsonDecoder().decode(make_response(json=contributors_payload), list[Contributor])
        assert [c.login for c in result] == ["adriancole", "velo", "kdavisk6"]
        assert result[0].contributions == 402

    def test_unknown_fields_ignored(self) -> None:
        response = make_response(json={"full_name": "OpenFeign/feign", "fork": False, "id": 1})
        repo = JsonDecoder().decode(response, Repo)
        assert repo == Repo(full_name="OpenFeign/feign")

    def test_builtin_result_types(self) -> None:
        assert JsonDecoder().decode(make_response(json={"a": 1}), dict[str, int]) == {"a": 1}
        assert JsonDecoder().decode(make_response(json=3), int) == 3

    def test_none_result_type_discards_body(self) -> None:
        assert JsonDecoder().decode(make_response(204), None) is None
        assert JsonDecoder().decode(make_response(json={"x": 1}), None) is None

    def test_empty_body_is_an_error(self) -> None:
        with pytest.raises(DecodeError, match="empty body") as exc_info:
            JsonDecoder().decode(make_response(200, body=b"  \n"), Repo)
        assert exc_info.value.status == 200

    def test_invalid_json_is_an_error(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            JsonDecoder().decode(make_response(200, body=b"<html>oops</html>"), Repo)
        assert exc_info.value.body_preview == "<html>oops</html>"
        assert exc_info.value.exit_code == 4

    def test_shape_mismatch_is_an_error(self) -> None:
        response = make_response(json=[{"login": "x"}])
        with pytest.raises(DecodeError, match="does not decode into") as exc_info:
            JsonDecoder().decode(response, list[Contributor])
        assert "1 error(s)" in str(exc_info.value)

    def test_body_preview_truncated(self) -> None:
        with pytest.raises(DecodeError) as exc_info:
            JsonDecoder().decode(make_response(body=b"x" * 1000), Repo)
        assert len(exc_info.value.body_preview) == 200

    def test_type_name_in_message(self) -> None:
        with pytest.raises(DecodeError, match="expected Repo"):
            JsonDecoder().decode(make_response(body=b""), Repo)
