"""Tests for imcdatasets build command."""

from pathlib import Path
from unittest.mock import patch

from click.testing import CliRunner

from imcdatasets.cli.main import cli
from imcdatasets.core.exceptions import AcquisitionError, StageError
from imcdatasets.io.models import BuildManifest
from tests.test_cli.conftest import flat_output


def _manifest() -> BuildManifest:
    return BuildManifest(
        dataset="pancreas",
        version="1.0.0",
        created_at="2024-05-01T12:00:00",
        sources={},
        artifacts={"dataset": "pancreas_sce.h5ad"},
        n_cells=12,
        channel_names=["H3", "SMA"],
        image_names=["A01"],
    )


class TestBuildCommand:
    def test_build_help(self, runner: CliRunner):
        result = runner.invoke(cli, ["build", "--help"])
        assert result.exit_code == 0
        assert "OUTPUT_DIR" in result.output

    def test_build_calls_workflow(self, runner: CliRunner, tmp_path: Path):
        with patch("imcdatasets.workflow.build_dataset", return_value=_manifest()) as mock:
            result = runner.invoke(cli, ["build", str(tmp_path / "out")])
        assert result.exit_code == 0, result.output
        assert "Built pancreas" in flat_output(result)
        args, kwargs = mock.call_args
        assert args[0] == "pancreas"
        assert args[1] == tmp_path / "out"

    def test_unknown_dataset(self, runner: CliRunner, tmp_path: Path):
        result = runner.invoke(cli, ["build", str(tmp_path), "-d", "lung"])
        assert result.exit_code == 1
        assert "Unknown dataset" in flat_output(result)

    def test_existing_build_protected(self, runner: CliRunner, tmp_path: Path):
        (tmp_path / "manifest.yaml").write_text("dataset: pancreas\n")
        with patch("imcdatasets.workflow.build_dataset", return_value=_manifest()) as mock:
            result = runner.invoke(cli, ["build", str(tmp_path)])
            assert result.exit_code == 1
            assert "already contains a build" in flat_output(result)
            mock.assert_not_called()

            result = runner.invoke(cli, ["build", str(tmp_path), "--overwrite"])
            assert result.exit_code == 0

    def test_dataset_error_exits_1(self, runner: CliRunner, tmp_path: Path):
        error = StageError("acquire_tables", AcquisitionError("https://x", "timed out"))
        with patch("imcdatasets.workflow.build_dataset", side_effect=error):
            result = runner.invoke(cli, ["build", str(tmp_path / "out")])
        assert result.exit_code == 1
        assert "acquire_tables" in flat_output(result)

    def test_unexpected_error_exits_2(self, runner: CliRunner, tmp_path: Path):
        with patch("imcdatasets.workflow.build_dataset", side_effect=RuntimeError("boom")):
            result = runner.invoke(cli, ["build", str(tmp_path / "out")])
        assert result.exit_code == 2
        assert "Internal error" in flat_output(result)

    def test_end_to_end(self, runner: CliRunner, built_dir: Path):
        assert (built_dir / "manifest.yaml").is_file()
        assert (built_dir / "toy_sce.h5ad").is_file()
