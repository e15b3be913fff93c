"""Shared test fixtures for imcdatasets.

The synthetic dataset has two images (A01, B02) with five cells, three
panel channels in the stacks (SMA, H3, INS after channel-mass ordering)
and an extra mask C03 that has no image.
"""

from __future__ import annotations

import shutil
from pathlib import Path

import numpy as np
import pandas as pd
import pytest
import tifffile

from imcdatasets.io.models import DatasetConfig, RemoteFile

CHANNEL_MASS = ["In115", "In113", "Pr141"]
INTENSITY_CHANNELS = (10, 1, 2)  # column order in the raw table, sorted on read


def intensity_value(image_number: int, object_number: int, channel: int) -> float:
    return image_number * 100 + object_number * 10 + channel + 0.5


@pytest.fixture
def cells_raw() -> pd.DataFrame:
    """Raw cell table, image 2 listed before image 1."""
    rows = []
    for image_number, n_cells in ((2, 2), (1, 3)):
        for obj in range(n_cells, 0, -1):
            row = {
                "ImageNumber": image_number,
                "ObjectNumber": obj,
                "Location_Center_X": float(obj),
                "Location_Center_Y": float(obj) + 0.25,
                "Parent_Islets": obj % 2,
                "Parent_ExpandedIslets": 1,
                "AreaShape_Area": 10.0 * obj,
                "Neighbors_NumberOfNeighbors_3": obj - 1,
                "Metadata_Unused": "x",
            }
            for ch in INTENSITY_CHANNELS:
                row[f"Intensity_MeanIntensity_CleanStack_c{ch}"] = intensity_value(
                    image_number, obj, ch
                )
            rows.append(row)
    return pd.DataFrame(rows)


@pytest.fixture
def image_table() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "ImageNumber": [1, 2],
            "FileName_CleanStack": ["A01_a0_full_clean.tiff", "B02_a0_full_clean.tiff"],
            "Metadata_Slide": ["S1", "S2"],
            "Width_CleanStack": [8, 8],
            "Height_CleanStack": [8, 8],
            "PathName_CleanStack": ["/data", "/data"],
        }
    )


@pytest.fixture
def cell_types() -> pd.DataFrame:
    ids = ["A01_1", "A01_2", "A01_3", "B02_1", "B02_2"]
    return pd.DataFrame(
        {
            "id": ids,
            "CellCat": ["islet", "islet", "immune", "exocrine", "islet"],
            "CellType": ["beta", "alpha", "Tc", "acinar", "delta"],
            "core": ["c1"] * 5,
        }
    )


@pytest.fixture
def donors() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "slide": ["S1", "S2"],
            "case": [6126, 6180],
            "stage": ["Non-diabetic", "Onset"],
        }
    )


@pytest.fixture
def panel() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "full": [1, 1, 1, 0, 1],
            "MetalTag": ["In113", "In115", "Pr141", "Nd142", "Nd143"],
            "shortname": ["H3", "SMA", "INS", "CD19", "unused"],
            "clean": [1, 1, 1, 0, 0],
        }
    )


@pytest.fixture
def channel_mass() -> list[str]:
    return list(CHANNEL_MASS)


def write_stack(path: Path, data: np.ndarray) -> None:
    tifffile.imwrite(str(path), data, photometric="minisblack")


def make_stack(seed: int, channels: int = 3) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 1000, (channels, 8, 8), dtype=np.uint16)


def make_mask(n_cells: int) -> np.ndarray:
    mask = np.zeros((8, 8), dtype=np.uint16)
    for label in range(1, n_cells + 1):
        mask[label, 1:3] = label
    return mask


@pytest.fixture
def raster_dirs(tmp_path: Path) -> tuple[Path, Path]:
    """Image and mask directories; masks include C03 which has no image."""
    image_dir = tmp_path / "images"
    mask_dir = tmp_path / "masks"
    image_dir.mkdir()
    mask_dir.mkdir()
    for i, name in enumerate(("A01", "B02")):
        write_stack(image_dir / f"{name}_a0_full_clean.tiff", make_stack(i))
    for name, n in (("A01", 3), ("B02", 2), ("C03", 4)):
        write_stack(mask_dir / f"{name}_a0_full_mask.tiff", make_mask(n))
    return image_dir, mask_dir


@pytest.fixture
def source_dir(
    tmp_path: Path,
    cells_raw: pd.DataFrame,
    image_table: pd.DataFrame,
    cell_types: pd.DataFrame,
    donors: pd.DataFrame,
    panel: pd.DataFrame,
    channel_mass: list[str],
    raster_dirs: tuple[Path, Path],
) -> Path:
    """All source files as they would look after download and extraction."""
    d = tmp_path / "source"
    d.mkdir()
    cells_raw.to_csv(d / "cells.csv", index=False)
    image_table.to_csv(d / "images.csv", index=False)
    cell_types.to_csv(d / "celltypes.csv", index=False)
    donors.to_csv(d / "donors.csv", index=False)
    panel.to_csv(d / "panel.csv", index=False)
    (d / "channelmass.csv").write_text("\n".join(channel_mass) + "\n")
    shutil.copytree(raster_dirs[0], d / "images.zip")
    shutil.copytree(raster_dirs[1], d / "masks.zip")
    return d


@pytest.fixture
def dataset_config() -> DatasetConfig:
    base = "https://example.org/imc"
    return DatasetConfig(
        name="toy",
        version="0.0.1",
        description="Synthetic two-image dataset",
        files={
            "cells": RemoteFile(f"{base}/cells.csv", "cells.csv"),
            "images": RemoteFile(f"{base}/images.csv", "images.csv"),
            "cell_types": RemoteFile(f"{base}/celltypes.csv", "celltypes.csv"),
            "donors": RemoteFile(f"{base}/donors.csv", "donors.csv"),
            "panel": RemoteFile(f"{base}/panel.csv", "panel.csv"),
            "channel_mass": RemoteFile(f"{base}/channelmass.csv", "channelmass.csv"),
            "image_archive": RemoteFile(f"{base}/images.zip", "images.zip", archive=True),
            "mask_archive": RemoteFile(f"{base}/masks.zip", "masks.zip", archive=True),
        },
    )


@pytest.fixture
def local_fetcher(source_dir: Path):
    """Fetcher copying files from ``source_dir`` instead of downloading.

    Records every workspace it was handed in ``fetcher.workdirs``.
    """

    def fetcher(files: dict[str, RemoteFile], workdir: Path) -> dict[str, Path]:
        fetcher.workdirs.append(Path(workdir))
        out = {}
        for key, remote in files.items():
            src = source_dir / remote.fname
            dest = Path(workdir) / remote.fname
            if remote.archive:
                shutil.copytree(src, dest)
            else:
                shutil.copy(src, dest)
            out[key] = dest
        return out

    fetcher.workdirs = []
    return fetcher
