"""imcdatasets verify — re-read a build and check its invariants."""

from __future__ import annotations

from pathlib import Path

import click
from rich.table import Table

from imcdatasets.cli.utils import console, error_handler


@click.command()
@click.argument("output_dir", type=click.Path(exists=True, file_okay=False))
@error_handler
def verify(output_dir: str) -> None:
    """Check the artifacts in OUTPUT_DIR against their manifest."""
    from imcdatasets.workflow import verify_build

    with console.status("[bold blue]Verifying..."):
        manifest = verify_build(Path(output_dir))

    table = Table(show_header=True, title=f"{manifest.dataset} {manifest.version}")
    table.add_column("artifact", style="bold")
    table.add_column("file")
    for key, name in manifest.artifacts.items():
        table.add_row(key, name)
    console.print(table)
    console.print(
        f"[green]OK:[/green] {manifest.n_cells} cells, "
        f"{manifest.n_channels} channels, {manifest.n_images} images"
    )
