"""imcdatasets list — show the built-in datasets."""

from __future__ import annotations

import click
from rich.table import Table

from imcdatasets.cli.utils import console


@click.command("list")
def list_cmd() -> None:
    """List datasets that can be built."""
    from imcdatasets.workflow import DATASETS

    table = Table(show_header=True, title="Datasets")
    table.add_column("name", style="bold")
    table.add_column("version")
    table.add_column("description")
    for name, config in sorted(DATASETS.items()):
        table.add_row(name, config.version, config.description)
    console.print(table)
