"""TIFF reading via tifffile."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import tifffile


def read_tiff(path: Path) -> np.ndarray:
    """Read a TIFF file into a numpy array.

    Multi-page stacks come back as (C, Y, X); single pages as (Y, X).

    Args:
        path: Path to the TIFF file.

    Returns:
        Numpy array with the image data.
    """
    return tifffile.imread(str(path))

