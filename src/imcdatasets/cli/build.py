"""imcdatasets build — fetch and prepare a dataset."""

from __future__ import annotations

from pathlib import Path

import click

from imcdatasets.cli.utils import console, error_handler


@click.command()
@click.argument("output_dir", type=click.Path(file_okay=False))
@click.option(
    "-d", "--dataset", default="pancreas", show_default=True,
    help="Name of the dataset to build.",
)
@click.option(
    "--overwrite", is_flag=True,
    help="Build even if OUTPUT_DIR already holds a manifest.",
)
@error_handler
def build(output_dir: str, dataset: str, overwrite: bool) -> None:
    """Download, merge and write a dataset to OUTPUT_DIR."""
    from imcdatasets.io.serialization import MANIFEST_NAME
    from imcdatasets.workflow import DATASETS, build_dataset

    if dataset not in DATASETS:
        console.print(
            f"[red]Error:[/red] Unknown dataset '{dataset}'. "
            f"Available: {', '.join(sorted(DATASETS))}"
        )
        raise SystemExit(1)

    out = Path(output_dir).expanduser()
    if (out / MANIFEST_NAME).exists() and not overwrite:
        console.print(
            f"[red]Error:[/red] {out} already contains a build.\n"
            "Use --overwrite to replace it."
        )
        raise SystemExit(1)

    def _progress(stage: str, status: str) -> None:
        if status != "running":
            console.print(f"  {stage}: {status}")

    with console.status(f"[bold blue]Building {dataset}..."):
        manifest = build_dataset(dataset, out, progress_callback=_progress)

    console.print(
        f"[green]Built {manifest.dataset} {manifest.version}:[/green] "
        f"{manifest.n_cells} cells, {manifest.n_channels} channels, "
        f"{manifest.n_images} images in {out}"
    )
