"""Pytest configuration and fixtures."""

from __future__ import annotations

import os

from typing import TYPE_CHECKING

import pytest

from gridkit.config import clear_settings
from gridkit.models import RowIdentity


if TYPE_CHECKING:
    from collections.abc import Generator


@pytest.fixture(autouse=True)
def isolated_settings(
    monkeypatch: pytest.MonkeyPatch, tmp_path_factory: pytest.TempPathFactory
) -> Generator[None, None, None]:
    """Run every test against built-in defaults only.

    GRIDKIT_* environment variables are removed, and the working directory
    and home point at empty temp dirs so no TOML file is picked up.
    """
    for key in list(os.environ):
        if key.startswith("GRIDKIT_"):
            monkeypatch.delenv(key)
    monkeypatch.chdir(tmp_path_factory.mktemp("cwd"))
    monkeypatch.setenv("HOME", str(tmp_path_factory.mktemp("home")))
    clear_settings()
    yield
    clear_settings()


@pytest.fixture
def identity() -> RowIdentity:
    """Row identity keyed by the "id" field."""
    return RowIdentity.from_field("id")


@pytest.fixture
def rows() -> list[dict]:
    """A small set of work-log style rows."""
    return [
        {"id": "r1", "name": "Design review", "hours": 2.0, "details": "kickoff"},
        {"id": "r2", "name": "Implementation", "hours": 6.5, "details": ""},
        {"id": "r3", "name": "Testing", "hours": 3.0, "details": None},
    ]
