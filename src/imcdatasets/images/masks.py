"""Segmentation mask rescaling and alignment with images."""

from __future__ import annotations

import logging

import numpy as np
from skimage.util import img_as_float

from imcdatasets.core.collection import ImageCollection
from imcdatasets.core.exceptions import NameMismatchError

logger = logging.getLogger(__name__)

UINT16_MAX = 2**16 - 1


def _as_uint16(mask: np.ndarray) -> np.ndarray:
    """Interpret a raw mask as unsigned 16-bit cell ids."""
    if mask.dtype == np.uint16:
        return mask
    values = np.asarray(mask)
    if np.issubdtype(values.dtype, np.floating):
        values = np.rint(values)
    elif not np.issubdtype(values.dtype, np.integer) and values.dtype != np.bool_:
        raise ValueError(f"Unsupported mask dtype: {values.dtype}")
    if values.size and (values.min() < 0 or values.max() > UINT16_MAX):
        raise ValueError(
            f"Mask values outside [0, {UINT16_MAX}]: "
            f"min={values.min()}, max={values.max()}"
        )
    return values.astype(np.uint16)


def rescale_mask(mask: np.ndarray) -> np.ndarray:
    """Restore integer cell ids from a 16-bit mask.

    The mask is normalized to [0, 1] by dividing by 2**16 - 1 and then
    scaled back and rounded, so masks already holding integer ids in
    range come back unchanged.

    Returns:
        uint16 array, 0 for background.

    Raises:
        ValueError: If values fall outside the 16-bit range.
    """
    normalized = img_as_float(_as_uint16(mask))
    restored = np.rint(normalized.astype(np.float64) * UINT16_MAX)
    return restored.astype(np.uint16)


def rescale_masks(masks: ImageCollection) -> ImageCollection:
    """Apply rescale_mask() to every entry of a collection."""
    return masks.with_arrays([rescale_mask(m) for m in masks.arrays])


def match_masks_to_images(
    masks: ImageCollection, images: ImageCollection
) -> ImageCollection:
    """Keep only masks whose ImageName is also an image's ImageName.

    Order among the kept masks is preserved.

    Returns:
        Filtered mask collection.

    Raises:
        NameMismatchError: If the kept mask names are not element-for-element
            equal to the image names.
    """
    image_names = set(images.image_names)
    keep = [i for i, name in enumerate(masks.image_names) if name in image_names]
    dropped = len(masks) - len(keep)
    if dropped:
        logger.info("Dropped %d masks without a matching image", dropped)
    filtered = masks.select(keep)

    if list(filtered.image_names) != list(images.image_names):
        raise NameMismatchError(
            expected=list(images.image_names), actual=list(filtered.image_names)
        )
    return filtered
