"""GitHub endpoints used by the demo CLI."""

from __future__ import annotations

from pydantic import BaseModel

from restdecl.endpoint import endpoint


class Contributor(BaseModel):
    """One entry of ``GET /repos/{owner}/{repo}/contributors``."""

    login: str
    contributions: int


CONTRIBUTORS = endpoint(
    "GET /repos/{owner}/{repo}/contributors",
    result_type=list[Contributor],
    headers={"Accept": "application/vnd.github+json"},
)
