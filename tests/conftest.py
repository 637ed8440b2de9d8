"""Shared test fixtures for pluggable.

Provides a fresh plugin manager, an isolated configuration environment,
output-state management, and a CLI runner. These fixtures are discovered
automatically by pytest and available to all test modules.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from pluggable.models import GlobalConfig
from pluggable.output import OutputFormat, OutputManager, reset_output, set_output
from pluggable.plugins import PluginManager


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time. When the CLI runner redirects those streams and the
    test finishes, the cached references become stale.
    """
    yield
    reset_output()


@pytest.fixture(autouse=True)
def _restore_pluggable_logger() -> None:
    """Undo handlers and levels installed by ``configure_logging``."""
    logger = logging.getLogger("pluggable")
    handlers, level = list(logger.handlers), logger.level
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)


# ---------------------------------------------------------------------------
# Registry fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def config() -> GlobalConfig:
    """A default GlobalConfig."""
    return GlobalConfig()


@pytest.fixture
def manager() -> PluginManager:
    """A fresh PluginManager with no plugins loaded."""
    return PluginManager()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Forces the XDG layout, points XDG_CONFIG_HOME at a subdirectory of
    tmp_path, clears all PLUGGABLE_* environment variables and changes the
    working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("pluggable.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    for var in ["PLUGGABLE_METHOD_PREFIX", "PLUGGABLE_LOG_LEVEL"]:
        monkeypatch.delenv(var, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


# ---------------------------------------------------------------------------
# Output fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def quiet_output() -> OutputManager:
    """Install a PLAIN-format, quiet OutputManager for the test."""
    output = OutputManager(format=OutputFormat.PLAIN, quiet=True)
    set_output(output)
    yield output
    reset_output()


# ---------------------------------------------------------------------------
# CLI runner fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def cli_runner():
    """Typer CLI test runner."""
    from typer.testing import CliRunner

    return CliRunner()
