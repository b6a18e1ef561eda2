"""Shared test fixtures for restdecl.

Provides isolated config environments, a clean global output manager, and
canned GitHub contributor payloads. Fixtures are discovered automatically by
pytest.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import pytest

from restdecl.output import OutputManager, reset_output, set_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    Typer's CliRunner swaps sys.stdout/sys.stderr during a test; a manager
    created then would keep references to closed streams.
    """
    yield
    reset_output()


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a quiet, colourless output manager."""
    output = OutputManager(no_color=True, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# Payloads
# ---------------------------------------------------------------------------


@pytest.fixture
def contributors_payload() -> list[dict[str, Any]]:
    """A GitHub contributors response body, including fields we ignore."""
    return [
        {"login": "adriancole", "id": 64215, "contributions": 402, "type": "User"},
        {"login": "velo", "id": 136590, "contributions": 381, "type": "User"},
        {"login": "kdavisk6", "id": 4047, "contributions": 114, "type": "User"},
    ]


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG directories and the working directory at *tmp_path*.

    Clears every RESTDECL_* variable so the real environment never leaks in.
    """
    monkeypatch.setattr("restdecl.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))
    for var in ("RESTDECL_BASE_URL", "RESTDECL_MAX_ATTEMPTS"):
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path
