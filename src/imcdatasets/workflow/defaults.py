"""Built-in dataset configurations and the standard build pipeline."""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import Any, Callable

from imcdatasets.core.exceptions import NameMismatchError
from imcdatasets.core.models import PANEL_COLUMNS
from imcdatasets.images.assembler import assemble_collections
from imcdatasets.images.loader import load_image_collection
from imcdatasets.io.fetch import acquisition_workspace, fetch_all
from imcdatasets.io.h5ad import write_dataset
from imcdatasets.io.models import BuildManifest, DatasetConfig, RemoteFile
from imcdatasets.io.serialization import MANIFEST_NAME, manifest_to_yaml
from imcdatasets.io.tables import read_channel_mass, read_table
from imcdatasets.io.zarr_io import write_collection
from imcdatasets.tables.merger import merge_tables
from imcdatasets.workflow.engine import Pipeline
from imcdatasets.workflow.stage import FunctionStage

Fetcher = Callable[[dict[str, RemoteFile], Path], dict[str, Path]]

TABLE_FILES = ("cells", "images", "cell_types", "donors", "panel", "channel_mass")
RASTER_FILES = ("image_archive", "mask_archive")


# ---------------------------------------------------------------------------
# Dataset configurations
# ---------------------------------------------------------------------------

# Damond et al. (2019), Cell Metabolism, doi:10.17632/cydmwsfztj.2
PANCREAS_BASE_URL = "https://data.mendeley.com/datasets/cydmwsfztj/2/files"
# Overrides PANCREAS_BASE_URL; read on every get_dataset() call.
PANCREAS_URL_ENV = "IMCDATASETS_PANCREAS_URL"


def _pancreas_files(base_url: str) -> dict[str, RemoteFile]:
    base = base_url.rstrip("/")
    return {
        "cells": RemoteFile(f"{base}/All_Cells.csv", "All_Cells.csv"),
        "images": RemoteFile(f"{base}/All_Image.csv", "All_Image.csv"),
        "cell_types": RemoteFile(f"{base}/CellTypes.csv", "CellTypes.csv"),
        "donors": RemoteFile(f"{base}/Donors.csv", "Donors.csv"),
        "panel": RemoteFile(f"{base}/pancreas_panel.csv", "pancreas_panel.csv"),
        "channel_mass": RemoteFile(f"{base}/ChannelMass.csv", "ChannelMass.csv"),
        "image_archive": RemoteFile(f"{base}/Images.zip", "Images.zip", archive=True),
        "mask_archive": RemoteFile(f"{base}/Masks.zip", "Masks.zip", archive=True),
    }


PANCREAS = DatasetConfig(
    name="pancreas",
    version="1.0.0",
    description=(
        "Human pancreas IMC (Damond et al. 2019): 100 images, 38 channels, "
        "islet cells from donors with and without type 1 diabetes"
    ),
    files=_pancreas_files(PANCREAS_BASE_URL),
    metadata={"reference": "Damond N. et al., Cell Metab. 2019;29(3):755-768"},
)

DATASETS: dict[str, DatasetConfig] = {PANCREAS.name: PANCREAS}


def get_dataset(name: str) -> DatasetConfig:
    """Look up a built-in dataset configuration.

    When ``$IMCDATASETS_PANCREAS_URL`` is set, the pancreas files are
    fetched from that base URL instead.

    Raises:
        KeyError: If the dataset is not registered.
    """
    if name not in DATASETS:
        raise KeyError(f"Unknown dataset '{name}'. Available: {sorted(DATASETS)}")
    config = DATASETS[name]
    base_url = os.environ.get(PANCREAS_URL_ENV)
    if name == PANCREAS.name and base_url:
        config = replace(config, files=_pancreas_files(base_url))
    return config


# ---------------------------------------------------------------------------
# Stage functions
# ---------------------------------------------------------------------------


def acquire_tables(ctx: Mapping[str, Any]) -> dict[str, Any]:
    """Download the source tables and read them; downloads are removed on exit."""
    config: DatasetConfig = ctx["config"]
    fetcher: Fetcher = ctx.get("fetcher") or fetch_all
    with acquisition_workspace(ctx.get("workspace_dir")) as workdir:
        paths = fetcher({k: config.files[k] for k in TABLE_FILES}, workdir)
        return {
            "cells": read_table(paths["cells"], ("ImageNumber", "ObjectNumber")),
            "image_table": read_table(paths["images"], ("ImageNumber",)),
            "cell_types": read_table(paths["cell_types"], ("id",)),
            "donors": read_table(paths["donors"], ("slide",)),
            "panel": read_table(paths["panel"], PANEL_COLUMNS),
            "channel_mass": read_channel_mass(paths["channel_mass"]),
        }


def merge_stage(ctx: Mapping[str, Any]) -> dict[str, Any]:
    config: DatasetConfig = ctx["config"]
    dataset = merge_tables(
        ctx["cells"],
        ctx["image_table"],
        ctx["cell_types"],
        ctx["donors"],
        ctx["panel"],
        ctx["channel_mass"],
        suffix=config.filename_suffix,
        intensity_pattern=config.intensity_pattern,
    )
    return {"dataset": dataset}


def acquire_rasters(ctx: Mapping[str, Any]) -> dict[str, Any]:
    """Download and extract image and mask archives, then load them into memory."""
    config: DatasetConfig = ctx["config"]
    fetcher: Fetcher = ctx.get("fetcher") or fetch_all
    with acquisition_workspace(ctx.get("workspace_dir")) as workdir:
        paths = fetcher({k: config.files[k] for k in RASTER_FILES}, workdir)
        images = load_image_collection(
            paths["image_archive"], config.image_pattern, config.image_token
        )
        masks = load_image_collection(
            paths["mask_archive"], config.mask_pattern, config.mask_token
        )
    return {"raw_images": images, "raw_masks": masks}


def assemble_stage(ctx: Mapping[str, Any]) -> dict[str, Any]:
    assembled = assemble_collections(
        ctx["raw_images"], ctx["raw_masks"], ctx["panel"], ctx["channel_mass"]
    )
    return {"assembled": assembled}


def check_outputs(ctx: Mapping[str, Any]) -> None:
    """Cross-check the dataset and the collections before anything is written.

    Raises:
        NameMismatchError: If the dataset channels and image channel labels differ.
    """
    dataset = ctx["dataset"]
    assembled = ctx["assembled"]
    dataset.validate()
    assembled.validate()
    image_channels = list(assembled.images.channel_names or ())
    if dataset.channel_names != image_channels:
        raise NameMismatchError(
            expected=dataset.channel_names, actual=image_channels, what="Channel names"
        )


def persist_outputs(ctx: Mapping[str, Any]) -> dict[str, Any]:
    """Write the dataset, both collections and the manifest to ``output_dir``."""
    config: DatasetConfig = ctx["config"]
    output_dir = Path(ctx["output_dir"])
    output_dir.mkdir(parents=True, exist_ok=True)
    dataset = ctx["dataset"]
    assembled = ctx["assembled"]

    artifacts = {
        "dataset": f"{config.name}_sce.h5ad",
        "images": f"{config.name}_images.zarr",
        "masks": f"{config.name}_masks.zarr",
    }
    write_dataset(output_dir / artifacts["dataset"], dataset)
    write_collection(output_dir / artifacts["images"], assembled.images)
    write_collection(output_dir / artifacts["masks"], assembled.masks, labels=True)

    manifest = BuildManifest(
        dataset=config.name,
        version=config.version,
        created_at=datetime.now().isoformat(timespec="seconds"),
        sources={k: f.url for k, f in config.files.items()},
        artifacts=artifacts,
        n_cells=dataset.n_cells,
        channel_names=dataset.channel_names,
        image_names=list(assembled.images.image_names),
    )
    manifest_to_yaml(manifest, output_dir / MANIFEST_NAME)
    return {"manifest": manifest}


def _validate_dataset(ctx: Mapping[str, Any]) -> None:
    ctx["dataset"].validate()


def _validate_assembled(ctx: Mapping[str, Any]) -> None:
    ctx["assembled"].validate()


# ---------------------------------------------------------------------------
# Pipeline factory
# ---------------------------------------------------------------------------


def build_pipeline() -> Pipeline:
    """Standard pipeline: tables first, then rasters, then write.

    Context keys expected at start: ``config``, ``output_dir``.
    Optional: ``fetcher``, ``workspace_dir``.
    """
    table_keys = ("cells", "image_table", "cell_types", "donors", "panel", "channel_mass")
    return Pipeline([
        FunctionStage("acquire_tables", acquire_tables, inputs=("config",), outputs=table_keys),
        FunctionStage(
            "merge_tables",
            merge_stage,
            inputs=("config", *table_keys),
            outputs=("dataset",),
            validators=(_validate_dataset,),
        ),
        FunctionStage(
            "acquire_rasters",
            acquire_rasters,
            inputs=("config",),
            outputs=("raw_images", "raw_masks"),
        ),
        FunctionStage(
            "assemble_images",
            assemble_stage,
            inputs=("raw_images", "raw_masks", "panel", "channel_mass"),
            outputs=("assembled",),
            validators=(_validate_assembled,),
        ),
        FunctionStage(
            "check_outputs",
            lambda ctx: {},
            inputs=("dataset", "assembled"),
            validators=(check_outputs,),
        ),
        FunctionStage(
            "persist_outputs",
            persist_outputs,
            inputs=("config", "output_dir", "dataset", "assembled"),
            outputs=("manifest",),
        ),
    ])
