"""imcdatasets images — image and mask collection assembly."""

from imcdatasets.images.assembler import (
    AssembledImages,
    assemble_collections,
    assemble_images,
    attach_channel_names,
)
from imcdatasets.images.loader import (
    find_rasters,
    image_name_from_stem,
    load_image_collection,
)
from imcdatasets.images.masks import match_masks_to_images, rescale_mask, rescale_masks

__all__ = [
    "AssembledImages",
    "assemble_collections",
    "assemble_images",
    "attach_channel_names",
    "find_rasters",
    "image_name_from_stem",
    "load_image_collection",
    "match_masks_to_images",
    "rescale_mask",
    "rescale_masks",
]
