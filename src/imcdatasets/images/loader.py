"""Loading TIFF files into ImageCollections."""

from __future__ import annotations

import logging
from pathlib import Path

from imcdatasets.core.collection import ImageCollection
from imcdatasets.core.exceptions import AcquisitionError
from imcdatasets.core.naming import remove_token
from imcdatasets.io.tiff import read_tiff

logger = logging.getLogger(__name__)

IMAGE_PATTERN = "*_full_clean.tiff"
MASK_PATTERN = "*_full_mask.tiff"
IMAGE_TOKEN = "_a0_full_clean"
MASK_TOKEN = "_a0_full_mask"


def find_rasters(directory: Path, pattern: str) -> list[Path]:
    """Sorted files under ``directory`` whose name matches ``pattern``.

    Symlinks are skipped to prevent directory escape and circular loops.

    Raises:
        AcquisitionError: If the directory does not exist or nothing matches.
    """
    directory = Path(directory)
    if not directory.is_dir():
        raise AcquisitionError(str(directory), "directory not found")
    paths = sorted(
        p for p in directory.rglob(pattern) if p.is_file() and not p.is_symlink()
    )
    if not paths:
        raise AcquisitionError(str(directory), f"no files matching {pattern}")
    return paths


def image_name_from_stem(stem: str, token: str, strict: bool = False) -> str:
    """Derive the ImageName shared with the cell table from a file stem.

    ``"E02_a0_full_clean"`` with token ``"_a0_full_clean"`` gives ``"E02"``.
    A stem without the token is returned unchanged unless ``strict``.
    """
    return remove_token(stem, token, strict=strict)


def load_image_collection(
    directory: Path,
    pattern: str,
    token: str,
    strict: bool = False,
) -> ImageCollection:
    """Read all matching rasters into a collection keyed by file stem.

    Args:
        directory: Directory searched recursively.
        pattern: Glob for file names, e.g. ``"*_full_clean.tiff"``.
        token: Substring removed from each stem to get ``ImageName``.
        strict: Fail on stems that do not contain ``token``.

    Returns:
        ImageCollection in sorted file-name order.
    """
    arrays = {}
    names = []
    for path in find_rasters(directory, pattern):
        arrays[path.stem] = read_tiff(path)
        names.append(image_name_from_stem(path.stem, token, strict=strict))
    logger.info("Loaded %d rasters matching %s from %s", len(arrays), pattern, directory)
    return ImageCollection.from_arrays(arrays, image_names=names)
