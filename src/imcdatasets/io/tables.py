"""CSV readers for cell, image, panel and channel-mass tables."""

from __future__ import annotations

import logging
from pathlib import Path

import pandas as pd

from imcdatasets.core.exceptions import AcquisitionError

logger = logging.getLogger(__name__)


def read_table(path: Path, required: tuple[str, ...] = ()) -> pd.DataFrame:
    """Read a CSV table with a header row.

    Args:
        path: Path to the CSV file.
        required: Column names that must be present.

    Returns:
        The table as a DataFrame.

    Raises:
        AcquisitionError: If the file does not exist.
        ValueError: If a required column is missing.
    """
    path = Path(path)
    if not path.is_file():
        raise AcquisitionError(str(path), "file not found")
    df = pd.read_csv(path)
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(f"{path.name} is missing columns: {', '.join(missing)}")
    logger.debug("Read %s: %d rows x %d columns", path.name, len(df), df.shape[1])
    return df


def read_channel_mass(path: Path) -> list[str]:
    """Read a headerless single-column CSV of metal tags, in channel order."""
    path = Path(path)
    if not path.is_file():
        raise AcquisitionError(str(path), "file not found")
    df = pd.read_csv(path, header=None, dtype=str)
    if df.shape[1] != 1:
        raise ValueError(
            f"{path.name} must have a single column, found {df.shape[1]}"
        )
    return [v.strip() for v in df.iloc[:, 0].tolist()]
