from __future__ import annotations

import logging

import pytest
from typer.testing import CliRunner

from benefits.main import app

runner = CliRunner()


@pytest.fixture(autouse=True)
def restore_root_logging():
    """Commands reconfigure the root logger onto the runner's streams."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers = handlers
    root.setLevel(level)


def test_info_prints_configuration() -> None:
    result = runner.invoke(app, ["info"])

    assert result.exit_code == 0
    assert "store=" in result.output
    assert "max_attempts=" in result.output


def test_create_on_memory_backend() -> None:
    result = runner.invoke(
        app, ["create", "--name", "meal", "--value", "10.00", "--backend", "memory"]
    )

    assert result.exit_code == 0
    assert "meal" in result.output


def test_create_rejects_bad_value() -> None:
    result = runner.invoke(app, ["create", "--name", "meal", "--value", "ten", "--backend", "memory"])

    assert result.exit_code != 0


def test_transfer_failure_exits_with_status_line() -> None:
    result = runner.invoke(app, ["transfer", "1", "2", "10", "--backend", "memory"])

    assert result.exit_code == 1
    assert "ParticipantNotFound" in result.output


def test_stress_on_memory_backend() -> None:
    result = runner.invoke(
        app,
        ["stress", "--records", "3", "--transfers", "40", "--workers", "4", "--backend", "memory", "--json"],
    )

    assert result.exit_code == 0
    assert '"conservation_ok": true' in result.output


def test_stress_rejects_negative_initial_value() -> None:
    result = runner.invoke(app, ["stress", "--initial-value=-5", "--backend", "memory"])

    assert result.exit_code == 2
    assert "initial_value" in result.output
    assert not isinstance(result.exception, ValueError)


def test_stress_rejects_zero_max_amount() -> None:
    result = runner.invoke(app, ["stress", "--max-amount", "0", "--backend", "memory"])

    assert result.exit_code == 2
    assert "max_amount" in result.output
