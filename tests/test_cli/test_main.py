"""Tests for the top-level imcdatasets CLI group."""

from click.testing import CliRunner

from imcdatasets.cli.main import cli


class TestMain:
    def test_help(self, runner: CliRunner):
        result = runner.invoke(cli, ["--help"])
        assert result.exit_code == 0
        for command in ("build", "verify", "list"):
            assert command in result.output

    def test_no_subcommand_prints_help(self, runner: CliRunner):
        result = runner.invoke(cli, [])
        assert result.exit_code == 0
        assert "Usage" in result.output

    def test_list(self, runner: CliRunner):
        result = runner.invoke(cli, ["list"])
        assert result.exit_code == 0
        assert "pancreas" in result.output

    def test_unknown_command(self, runner: CliRunner):
        result = runner.invoke(cli, ["frobnicate"])
        assert result.exit_code != 0
