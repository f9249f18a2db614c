# Released under MIT License.
# Copyright (c) 2025 Ladislav Bartos and Robert Vacha Lab

from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner

from ksub_lib import __version__, cli
from ksub_lib.core.config import CFG
from ksub_lib.core.error import (
    KSubClusterError,
    KSubConfigurationError,
    KSubInvariantViolation,
    KSubPreconditionError,
    KSubTransientError,
)
from ksub_lib.submit import cli as submit_cli
from ksub_lib.submit.cli import submit


def _factory(submitter=None, error=None):
    factory_mock = MagicMock()
    if error:
        factory_mock.makeSubmitter.side_effect = error
    else:
        factory_mock.makeSubmitter.return_value = submitter
    return factory_mock


def test_submit_successful():
    runner = CliRunner()

    submitter_mock = MagicMock()
    submitter_mock.submit.return_value = "pi-123"
    submitter_mock.getAppId.return_value = "pi-123"

    with (
        patch(
            "ksub_lib.submit.cli.SubmitterFactory",
            return_value=_factory(submitter_mock),
        ) as mock_factory_class,
        patch("ksub_lib.submit.cli.logger") as mock_logger,
    ):
        result = runner.invoke(
            submit,
            [
                "--name",
                "pi",
                "--jars",
                "http://host/a.jar",
                "-c",
                "spark.driver.memory=2g",
                "http://host/app.jar",
                "org.example.Main",
                "10",
                "--verbose",
            ],
        )

    assert result.exit_code == 0
    assert result.output.strip() == "pi-123"

    args, kwargs = mock_factory_class.call_args
    assert args == ("http://host/app.jar", "org.example.Main", ("10", "--verbose"))
    assert kwargs["name"] == "pi"
    assert kwargs["jars"] == "http://host/a.jar"
    assert kwargs["conf"] == ("spark.driver.memory=2g",)
    assert kwargs["staging_server"] is None
    submitter_mock.submit.assert_called_once()

    info_messages = [call.args[0] for call in mock_logger.info.call_args_list]
    assert any("pi-123" in msg for msg in info_messages)


@pytest.mark.parametrize(
    "app_args",
    [
        ["--name", "foo"],
        ["-c", "spark.app.name=foo"],
        ["--staging-server", "http://elsewhere", "--help"],
    ],
)
def test_submit_options_after_main_class_go_to_application(app_args):
    runner = CliRunner()
    submitter_mock = MagicMock()
    submitter_mock.submit.return_value = "pi-123"

    with (
        patch(
            "ksub_lib.submit.cli.SubmitterFactory",
            return_value=_factory(submitter_mock),
        ) as mock_factory_class,
        patch("ksub_lib.submit.cli.logger"),
    ):
        result = runner.invoke(
            submit, ["--name", "pi", "http://host/app.jar", "Main", *app_args]
        )

    assert result.exit_code == 0
    args, kwargs = mock_factory_class.call_args
    assert args == ("http://host/app.jar", "Main", tuple(app_args))
    assert kwargs["name"] == "pi"
    assert kwargs["conf"] == ()
    assert kwargs["staging_server"] is None


def test_submit_missing_main_class():
    runner = CliRunner()

    with patch("ksub_lib.submit.cli.SubmitterFactory") as mock_factory_class:
        result = runner.invoke(submit, ["http://host/app.jar"])

    assert result.exit_code == 2
    mock_factory_class.assert_not_called()


def test_submit_missing_properties_file(tmp_path):
    runner = CliRunner()

    with patch("ksub_lib.submit.cli.SubmitterFactory") as mock_factory_class:
        result = runner.invoke(
            submit,
            [
                "--properties-file",
                str(tmp_path / "missing.yaml"),
                "http://host/app.jar",
                "Main",
            ],
        )

    assert result.exit_code == 2
    mock_factory_class.assert_not_called()


def test_submit_configuration_error():
    runner = CliRunner()
    error = KSubConfigurationError("Invalid configuration option 'oops'.")

    with (
        patch(
            "ksub_lib.submit.cli.SubmitterFactory", return_value=_factory(error=error)
        ),
        patch("ksub_lib.submit.cli.logger") as mock_logger,
    ):
        result = runner.invoke(submit, ["-c", "oops", "http://host/app.jar", "Main"])

    assert result.exit_code == CFG.exit_codes.default
    mock_logger.error.assert_called_once_with(error)


def test_submit_precondition_error():
    runner = CliRunner()
    submitter_mock = MagicMock()
    submitter_mock.submit.side_effect = KSubPreconditionError(
        "a resource staging server must be provided"
    )

    with (
        patch(
            "ksub_lib.submit.cli.SubmitterFactory",
            return_value=_factory(submitter_mock),
        ),
        patch("ksub_lib.submit.cli.logger") as mock_logger,
    ):
        result = runner.invoke(submit, ["/local/app.jar", "Main"])

    assert result.exit_code == CFG.exit_codes.precondition
    assert result.output == ""
    mock_logger.error.assert_called_once()


def test_submit_transient_and_cluster_errors():
    runner = CliRunner()

    for error, code in [
        (KSubTransientError("unreachable"), CFG.exit_codes.transient),
        (KSubClusterError("forbidden", 403), CFG.exit_codes.default),
    ]:
        submitter_mock = MagicMock()
        submitter_mock.submit.side_effect = error

        with (
            patch(
                "ksub_lib.submit.cli.SubmitterFactory",
                return_value=_factory(submitter_mock),
            ),
            patch("ksub_lib.submit.cli.logger"),
        ):
            result = runner.invoke(submit, ["http://host/app.jar", "Main"])

        assert result.exit_code == code


def test_submit_invariant_violation():
    runner = CliRunner()
    submitter_mock = MagicMock()
    submitter_mock.submit.side_effect = KSubInvariantViolation("scheme in classpath")

    with (
        patch(
            "ksub_lib.submit.cli.SubmitterFactory",
            return_value=_factory(submitter_mock),
        ),
        patch("ksub_lib.submit.cli.logger") as mock_logger,
    ):
        result = runner.invoke(submit, ["http://host/app.jar", "Main"])

    assert result.exit_code == CFG.exit_codes.invariant_violation
    mock_logger.critical.assert_called_once()
    mock_logger.error.assert_not_called()


def test_submit_unexpected_error():
    runner = CliRunner()
    submitter_mock = MagicMock()
    submitter_mock.submit.side_effect = RuntimeError("boom")

    with (
        patch(
            "ksub_lib.submit.cli.SubmitterFactory",
            return_value=_factory(submitter_mock),
        ),
        patch("ksub_lib.submit.cli.logger") as mock_logger,
    ):
        result = runner.invoke(submit, ["http://host/app.jar", "Main"])

    assert result.exit_code == CFG.exit_codes.unexpected_error
    mock_logger.critical.assert_called_once()


def test_cli_version():
    runner = CliRunner()

    result = runner.invoke(cli, ["--version"])

    assert result.exit_code == 0
    assert result.output.strip() == __version__


def test_cli_without_command_prints_help():
    runner = CliRunner()

    result = runner.invoke(cli, [])

    assert result.exit_code == 0
    assert "submit" in result.output


def test_cli_dispatches_to_submit():
    runner = CliRunner()
    submitter_mock = MagicMock()
    submitter_mock.submit.return_value = "pi-123"

    with (
        patch.object(
            submit_cli, "SubmitterFactory", return_value=_factory(submitter_mock)
        ),
        patch.object(submit_cli, "logger"),
    ):
        result = runner.invoke(cli, ["submit", "http://host/app.jar", "Main"])

    assert result.exit_code == 0
    assert "pi-123" in result.output
