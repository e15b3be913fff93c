"""Joining cells with images, cell types and donors.

Every join is an inner join: rows whose key has no partner on the other
side are dropped. The number of dropped rows is logged.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Sequence

import numpy as np
import pandas as pd

from imcdatasets.core.dataset import SingleCellDataset, composite_ids
from imcdatasets.core.exceptions import DuplicateIdentifierError, ShapeMismatchError
from imcdatasets.core.models import CELL_COLUMNS, IMAGE_COLUMNS
from imcdatasets.core.naming import remove_token
from imcdatasets.tables.panel import build_panel

logger = logging.getLogger(__name__)

CELL_RENAMES = {
    "ImageNumber": "ImageNumber",
    "ObjectNumber": "CellNumber",
    "Location_Center_X": "Pos_X",
    "Location_Center_Y": "Pos_Y",
    "Parent_Islets": "ParentIslet",
    "Parent_ExpandedIslets": "ClosestIslet",
    "AreaShape_Area": "Area",
    "Neighbors_NumberOfNeighbors_3": "NbNeighbours",
}

IMAGE_RENAMES = {
    "ImageNumber": "ImageNumber",
    "FileName_CleanStack": "ImageFullName",
    "Metadata_Slide": "slide",
    "Width_CleanStack": "width",
    "Height_CleanStack": "height",
}

CELL_TYPE_COLUMNS = ("id", "CellCat", "CellType")

DEFAULT_FILENAME_SUFFIX = "_a0_full_clean.tiff"
DEFAULT_INTENSITY_PATTERN = r"^Intensity_MeanIntensity_CleanStack_c(\d+)$"


def _select(df: pd.DataFrame, renames: dict[str, str], table: str) -> pd.DataFrame:
    missing = [c for c in renames if c not in df.columns]
    if missing:
        raise ValueError(f"{table} table is missing columns: {', '.join(missing)}")
    return df.loc[:, list(renames)].rename(columns=renames)


def _inner(left: pd.DataFrame, right: pd.DataFrame, on: str, what: str) -> pd.DataFrame:
    merged = left.merge(right, how="inner", on=on)
    dropped = len(left) - len(merged)
    if dropped > 0:
        logger.info("Join on %s (%s) dropped %d of %d rows", on, what, dropped, len(left))
    return merged


# ---------------------------------------------------------------------------
# Individual steps
# ---------------------------------------------------------------------------


def select_cell_columns(cells: pd.DataFrame) -> pd.DataFrame:
    """Select and rename the per-cell measurement columns."""
    return _select(cells, CELL_RENAMES, "cells")


def prepare_image_table(
    images: pd.DataFrame, suffix: str = DEFAULT_FILENAME_SUFFIX
) -> pd.DataFrame:
    """Select image columns and derive ``ImageName`` from the file name.

    The first occurrence of ``suffix`` is removed. A file name without it
    keeps its full name as ImageName.
    """
    out = _select(images, IMAGE_RENAMES, "images")
    out["ImageName"] = [remove_token(str(name), suffix) for name in out["ImageFullName"]]
    return out.loc[:, list(IMAGE_COLUMNS)]


def merge_cells_images(cells: pd.DataFrame, images: pd.DataFrame) -> pd.DataFrame:
    """Inner-join cells to images on ``ImageNumber``."""
    return _inner(cells, images, "ImageNumber", "images")


def add_composite_id(cells: pd.DataFrame) -> pd.DataFrame:
    """Add ``id`` = ``{ImageName}_{CellNumber}``."""
    out = cells.copy()
    out["id"] = composite_ids(out["ImageName"], out["CellNumber"])
    return out


def merge_cell_types(cells: pd.DataFrame, cell_types: pd.DataFrame) -> pd.DataFrame:
    """Inner-join the cell category and type labels on ``id``."""
    labels = _select(cell_types, {c: c for c in CELL_TYPE_COLUMNS}, "cell types")
    labels = labels.astype({"id": str})
    return _inner(cells, labels, "id", "cell types")


def _slide_keys(
    cells: pd.DataFrame, donors: pd.DataFrame
) -> tuple[pd.DataFrame, pd.DataFrame]:
    """Give both ``slide`` columns a common dtype.

    Numeric on both sides compares as numbers (integers when every value is
    integral); anything else compares as text. Rows without a slide are
    dropped since they cannot match.
    """
    cells = cells.loc[cells["slide"].notna()]
    donors = donors.loc[donors["slide"].notna()]
    left = pd.to_numeric(cells["slide"], errors="coerce")
    right = pd.to_numeric(donors["slide"], errors="coerce")
    if left.notna().all() and right.notna().all():
        if (left % 1 == 0).all() and (right % 1 == 0).all():
            left, right = left.astype("int64"), right.astype("int64")
        return cells.assign(slide=left), donors.assign(slide=right)
    return cells.astype({"slide": str}), donors.astype({"slide": str})


def merge_donors(cells: pd.DataFrame, donors: pd.DataFrame) -> pd.DataFrame:
    """Inner-join donor metadata on ``slide``."""
    if "slide" not in donors.columns:
        raise ValueError("donors table is missing columns: slide")
    n_cells = len(cells)
    cells, donors = _slide_keys(cells, donors)
    if len(cells) < n_cells:
        logger.info("Dropped %d cells without a slide", n_cells - len(cells))
    return _inner(cells, donors, "slide", "donors")


def finalize_cell_table(cells: pd.DataFrame) -> pd.DataFrame:
    """Sort by image and cell number and index by ``id``.

    Image file metadata other than ``ImageName`` is dropped.

    Raises:
        DuplicateIdentifierError: If ``id`` is not unique.
    """
    out = cells.sort_values(["ImageNumber", "CellNumber"], kind="stable")
    dupes = out.loc[out["id"].duplicated(), "id"]
    if len(dupes):
        raise DuplicateIdentifierError("cell id", sorted(set(dupes)))

    dropped = {"ImageFullName", "width", "height"}
    leading = [c for c in CELL_COLUMNS if c in out.columns]
    rest = [c for c in out.columns if c not in leading and c not in dropped and c != "id"]
    out = out.set_index("id").loc[:, leading + rest]
    out.index.name = "id"
    return out


def intensity_columns(
    columns: Sequence[str], pattern: str = DEFAULT_INTENSITY_PATTERN
) -> list[str]:
    """Mean-intensity column names ordered by their channel number.

    Raises:
        ValueError: If two columns carry the same channel number.
    """
    regex = re.compile(pattern)
    numbered: dict[int, str] = {}
    for col in columns:
        m = regex.search(str(col))
        if not m:
            continue
        channel = int(m.group(1))
        if channel in numbered:
            raise ValueError(
                f"Channel {channel} matched by both {numbered[channel]!r} and {col!r}"
            )
        numbered[channel] = str(col)
    return [numbered[k] for k in sorted(numbered)]


def extract_counts(
    cells_raw: pd.DataFrame,
    cell_table: pd.DataFrame,
    pattern: str = DEFAULT_INTENSITY_PATTERN,
) -> np.ndarray:
    """Channels x cells mean-intensity matrix, columns in ``cell_table`` order.

    Rows of the raw table are matched to the merged table by
    (ImageNumber, ObjectNumber) == (ImageNumber, CellNumber).

    Raises:
        ValueError: If no intensity columns are found.
        DuplicateIdentifierError: If raw (ImageNumber, ObjectNumber) repeat.
    """
    columns = intensity_columns(cells_raw.columns, pattern)
    if not columns:
        raise ValueError(f"No intensity columns match {pattern!r}")

    keys = pd.MultiIndex.from_arrays(
        [cell_table["ImageNumber"].to_numpy(), cell_table["CellNumber"].to_numpy()]
    )
    raw = cells_raw.set_index(["ImageNumber", "ObjectNumber"])
    # Only rows that survived the joins need unique keys.
    raw = raw.loc[raw.index.isin(keys)]
    if not raw.index.is_unique:
        dupes = raw.index[raw.index.duplicated()]
        raise DuplicateIdentifierError(
            "(ImageNumber, ObjectNumber)", [f"{i}/{o}" for i, o in dupes]
        )
    values = raw.loc[keys, columns].to_numpy(dtype=np.float64)
    return values.T


# ---------------------------------------------------------------------------
# Full merge
# ---------------------------------------------------------------------------


def merge_tables(
    cells: pd.DataFrame,
    images: pd.DataFrame,
    cell_types: pd.DataFrame,
    donors: pd.DataFrame,
    panel: pd.DataFrame,
    channel_mass: Sequence[str],
    suffix: str = DEFAULT_FILENAME_SUFFIX,
    intensity_pattern: str = DEFAULT_INTENSITY_PATTERN,
) -> SingleCellDataset:
    """Join the four source tables and build a validated SingleCellDataset.

    Args:
        cells: Raw per-cell table, including intensity columns.
        images: Per-image metadata table.
        cell_types: Composite id to CellCat/CellType labels.
        donors: Per-slide donor metadata.
        panel: Raw antibody panel.
        channel_mass: Metal tags in physical channel order.
        suffix: File-name suffix stripped to get ImageName.
        intensity_pattern: Regex selecting intensity columns; its single
            group is the channel number.

    Raises:
        DuplicateIdentifierError: If composite ids repeat.
        ChannelMassMismatchError: If the lookup does not match the panel.
        ShapeMismatchError: If intensity channels and panel rows disagree.
    """
    table = select_cell_columns(cells)
    table = merge_cells_images(table, prepare_image_table(images, suffix))
    table = add_composite_id(table)
    table = merge_cell_types(table, cell_types)
    table = merge_donors(table, donors)
    table = finalize_cell_table(table)

    row_data = build_panel(panel, channel_mass)
    counts = extract_counts(cells, table, intensity_pattern)
    if counts.shape[0] != len(row_data):
        raise ShapeMismatchError("intensity channels vs panel rows", len(row_data), counts.shape[0])

    dataset = SingleCellDataset.from_counts(counts, row_data=row_data, col_data=table)
    dataset.validate()
    logger.info(
        "Merged %d cells from %d images over %d channels",
        dataset.n_cells,
        table["ImageName"].nunique(),
        dataset.n_channels,
    )
    return dataset
