"""Shared fixtures for CLI tests."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner


@pytest.fixture
def runner() -> CliRunner:
    """Create a Click test runner."""
    return CliRunner()


@pytest.fixture(autouse=True)
def _restore_package_logger():
    """The CLI group reconfigures the package logger; undo it after each test."""
    logger = logging.getLogger("imcdatasets")
    handlers, level, propagate = logger.handlers[:], logger.level, logger.propagate
    yield
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


@pytest.fixture
def toy_registered(dataset_config, local_fetcher):
    """Register the synthetic dataset and serve its files locally."""
    with patch.dict("imcdatasets.workflow.defaults.DATASETS", {"toy": dataset_config}), \
            patch("imcdatasets.workflow.defaults.fetch_all", local_fetcher):
        yield dataset_config


@pytest.fixture
def built_dir(runner: CliRunner, toy_registered, tmp_path: Path) -> Path:
    """Output directory holding a complete build of the synthetic dataset."""
    from imcdatasets.cli.main import cli

    out = tmp_path / "out"
    result = runner.invoke(cli, ["build", str(out), "-d", "toy"])
    assert result.exit_code == 0, result.output
    return out


def flat_output(result) -> str:
    """Command output with Rich line wrapping undone."""
    return " ".join(result.output.split())
