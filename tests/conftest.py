"""Shared test fixtures for oaslink.

Provides reusable fixtures for loading fixture documents, building small
documents inline, isolating config, managing output and logging state, and
running CLI commands. These fixtures are automatically discovered by pytest
and available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Callable, Optional

import pytest

from oaslink.output import OutputLogHandler, reset_output


FIXTURES_DIR = Path(__file__).parent / "fixtures"


# ---------------------------------------------------------------------------
# Auto-reset global output and logging state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _reset_oaslink_logger() -> None:
    """Drop handlers and level the CLI installs on the ``oaslink`` logger."""
    yield
    logger = logging.getLogger("oaslink")
    for handler in list(logger.handlers):
        if isinstance(handler, OutputLogHandler):
            logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)


# ---------------------------------------------------------------------------
# Document fixtures
# ---------------------------------------------------------------------------


def _load_fixture(name: str) -> dict[str, Any]:
    with open(FIXTURES_DIR / name) as f:
        return json.load(f)


@pytest.fixture
def users_doc() -> dict[str, Any]:
    """The ``Users`` document: ``GET /users/{id}`` accepts a ``UserID``."""
    return _load_fixture("users.json")


@pytest.fixture
def orders_doc() -> dict[str, Any]:
    """The ``Orders`` document: ``GET /orders/{id}`` declares an ``owner`` smart link."""
    return _load_fixture("orders.json")


@pytest.fixture
def make_document() -> Callable[..., dict[str, Any]]:
    """Factory for minimal documents built inline.

    Usage::

        doc = make_document("Users", {"/users/{id}": {"get": {...}}})
    """

    def _make(
        title: Optional[str],
        paths: dict[str, Any],
        components: Optional[dict[str, Any]] = None,
    ) -> dict[str, Any]:
        document: dict[str, Any] = {"openapi": "3.0.3", "paths": paths}
        document["info"] = {"version": "1.0.0"}
        if title is not None:
            document["info"]["title"] = title
        if components is not None:
            document["components"] = components
        return document

    return _make


@pytest.fixture
def fixture_paths(tmp_path: Path) -> tuple[Path, Path]:
    """Copy the Users and Orders fixtures into *tmp_path* and return their paths."""
    users = tmp_path / "users.json"
    orders = tmp_path / "orders.json"
    users.write_text((FIXTURES_DIR / "users.json").read_text())
    orders.write_text((FIXTURES_DIR / "orders.json").read_text())
    return users, orders


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path
    so that tests never touch real user config. Clears all OASLINK_*
    environment variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("oaslink.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in [
        "OASLINK_KEY_STRATEGY",
        "OASLINK_AUTO_LINKS",
        "OASLINK_MAX_WORKERS",
    ]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner.

    Returns a CliRunner instance that captures stdout/stderr and
    provides a consistent interface for invoking Typer apps in tests.
    """
    from typer.testing import CliRunner

    return CliRunner()
