"""Image and mask assembly: load, name, rescale, align and label channels."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import pandas as pd

from imcdatasets.core.collection import ImageCollection
from imcdatasets.core.exceptions import NameMismatchError, ShapeMismatchError
from imcdatasets.images.loader import (
    IMAGE_PATTERN,
    IMAGE_TOKEN,
    MASK_PATTERN,
    MASK_TOKEN,
    load_image_collection,
)
from imcdatasets.images.masks import match_masks_to_images, rescale_masks
from imcdatasets.tables.panel import build_panel

logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class AssembledImages:
    """Images and masks aligned position by position."""

    images: ImageCollection
    masks: ImageCollection

    def validate(self) -> None:
        """Check that both collections refer to the same images in the same order.

        Raises:
            NameMismatchError: If ImageName sequences differ.
            ShapeMismatchError: If channel labels and stack depth disagree,
                or a mask's size differs from its image.
        """
        if list(self.masks.image_names) != list(self.images.image_names):
            raise NameMismatchError(
                expected=list(self.images.image_names),
                actual=list(self.masks.image_names),
            )
        if self.images.channel_names is not None:
            for image_id, n in zip(self.images.ids, self.images.channel_counts()):
                if n != len(self.images.channel_names):
                    raise ShapeMismatchError(
                        f"channels in image {image_id}", len(self.images.channel_names), n
                    )
        for image, mask, image_id in zip(self.images.arrays, self.masks.arrays, self.images.ids):
            if tuple(image.shape[-2:]) != tuple(mask.shape[-2:]):
                raise ShapeMismatchError(
                    f"mask pixels for image {image_id}",
                    int(image.shape[-2] * image.shape[-1]),
                    int(mask.shape[-2] * mask.shape[-1]),
                )


def attach_channel_names(
    images: ImageCollection, panel: pd.DataFrame
) -> ImageCollection:
    """Label image channels with the panel's short names.

    Args:
        images: Collection of (C, Y, X) stacks.
        panel: Output of build_panel(), in channel order.

    Raises:
        ShapeMismatchError: If any stack depth differs from the panel length.
    """
    return images.with_channel_names(panel["shortname"].astype(str).tolist())


def assemble_images(
    image_dir: Path,
    mask_dir: Path,
    panel: pd.DataFrame,
    channel_mass: Sequence[str],
    image_pattern: str = IMAGE_PATTERN,
    mask_pattern: str = MASK_PATTERN,
    image_token: str = IMAGE_TOKEN,
    mask_token: str = MASK_TOKEN,
) -> AssembledImages:
    """Build the aligned image and mask collections.

    Args:
        image_dir: Directory holding the multi-channel stacks.
        mask_dir: Directory holding the segmentation masks.
        panel: Raw antibody panel.
        channel_mass: Metal tags in physical channel order.

    Returns:
        Validated AssembledImages.
    """
    images = load_image_collection(image_dir, image_pattern, image_token)
    masks = load_image_collection(mask_dir, mask_pattern, mask_token)
    return assemble_collections(images, masks, panel, channel_mass)


def assemble_collections(
    images: ImageCollection,
    masks: ImageCollection,
    panel: pd.DataFrame,
    channel_mass: Sequence[str],
) -> AssembledImages:
    """Rescale, align and label already loaded collections.

    Raises:
        NameMismatchError: If masks cannot be aligned with images.
        ChannelMassMismatchError: If the lookup does not match the panel.
        ShapeMismatchError: If stack depth differs from the panel length.
    """
    masks = rescale_masks(masks)
    masks = match_masks_to_images(masks, images)
    images = attach_channel_names(images, build_panel(panel, channel_mass))

    assembled = AssembledImages(images=images, masks=masks)
    assembled.validate()
    logger.info(
        "Assembled %d images with %d channels and matching masks",
        len(images),
        len(images.channel_names or ()),
    )
    return assembled
