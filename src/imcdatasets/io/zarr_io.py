"""OME-Zarr read/write for image collections.

One group per image, named by image id, holding a single-resolution
array at ``<id>/0`` with NGFF 0.4 metadata. Stacks are (C, Y, X), masks
(Y, X). The root group records the collection order and channel names.
"""

from __future__ import annotations

from pathlib import Path

import dask.array as da
import numpy as np
import zarr
from numcodecs import Blosc, Zstd

from imcdatasets.core.collection import ImageCollection

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

IMAGE_COMPRESSOR = Blosc(cname="lz4", clevel=5, shuffle=Blosc.BITSHUFFLE)
IMAGE_CHUNKS_CYX = (1, 512, 512)

LABEL_COMPRESSOR = Zstd(level=3)
LABEL_CHUNKS = (512, 512)

FORMAT_VERSION = "1"


# ---------------------------------------------------------------------------
# NGFF 0.4 metadata builders
# ---------------------------------------------------------------------------


def _axes(ndim: int) -> list[dict]:
    yx = [
        {"name": "y", "type": "space", "unit": "micrometer"},
        {"name": "x", "type": "space", "unit": "micrometer"},
    ]
    if ndim == 3:
        return [{"name": "c", "type": "channel"}, *yx]
    return yx


def _build_multiscales(name: str, ndim: int) -> list[dict]:
    """Build NGFF 0.4 multiscales metadata for one image or label group."""
    return [
        {
            "version": "0.4",
            "name": name,
            "axes": _axes(ndim),
            "datasets": [
                {
                    "path": "0",
                    "coordinateTransformations": [
                        {"type": "scale", "scale": [1.0] * ndim}
                    ],
                }
            ],
        }
    ]


def _build_omero(channel_names: tuple[str, ...] | None, n_channels: int) -> dict:
    labels = list(channel_names) if channel_names else [f"c{i}" for i in range(n_channels)]
    return {
        "channels": [
            {
                "label": label,
                "color": "FFFFFF",
                "active": True,
                "window": {"start": 0, "end": 65535},
            }
            for label in labels
        ],
    }


# ---------------------------------------------------------------------------
# Collection I/O
# ---------------------------------------------------------------------------


def write_collection(
    zarr_path: Path,
    collection: ImageCollection,
    labels: bool = False,
) -> None:
    """Write an ImageCollection to a new zarr store.

    Args:
        zarr_path: Path of the store to create (overwritten if present).
        collection: The collection to persist.
        labels: Write entries as label images (masks) instead of stacks.
    """
    root = zarr.open(str(zarr_path), mode="w")
    for image_id, data, image_name in zip(
        collection.ids, collection.arrays, collection.image_names
    ):
        if labels and data.ndim != 2:
            raise ValueError(
                f"Expected 2D label image for {image_id}, got shape {data.shape}"
            )
        if not labels and data.ndim not in (2, 3):
            raise ValueError(
                f"Expected (Y, X) or (C, Y, X) image for {image_id}, got shape {data.shape}"
            )
        group = root.require_group(image_id)
        if labels:
            root.array(
                f"{image_id}/0",
                data=data,
                chunks=LABEL_CHUNKS,
                compressor=LABEL_COMPRESSOR,
                overwrite=True,
            )
        else:
            chunks = IMAGE_CHUNKS_CYX if data.ndim == 3 else IMAGE_CHUNKS_CYX[1:]
            root.array(
                f"{image_id}/0",
                data=data,
                chunks=chunks,
                compressor=IMAGE_COMPRESSOR,
                overwrite=True,
            )

        attrs: dict = {
            "multiscales": _build_multiscales(image_id, data.ndim),
            "ImageName": image_name,
        }
        if labels:
            attrs["image-label"] = {"version": "0.4"}
        else:
            n_channels = data.shape[0] if data.ndim == 3 else 1
            attrs["omero"] = _build_omero(collection.channel_names, n_channels)
        group.attrs.update(attrs)

    root.attrs.update(
        {
            "imcdatasets_format": FORMAT_VERSION,
            "kind": "labels" if labels else "images",
            "ids": list(collection.ids),
            "channel_names": (
                list(collection.channel_names)
                if collection.channel_names is not None
                else None
            ),
        }
    )


def read_collection(zarr_path: Path, lazy: bool = False) -> ImageCollection:
    """Read an ImageCollection written by write_collection().

    Args:
        zarr_path: Path to the store.
        lazy: Return dask arrays instead of loading pixel data.

    Raises:
        FileNotFoundError: If the store does not exist.
        ValueError: If the store was not written by this module.
    """
    zarr_path = Path(zarr_path)
    if not zarr_path.exists():
        raise FileNotFoundError(f"Zarr store not found: {zarr_path}")
    root = zarr.open(str(zarr_path), mode="r")
    if "imcdatasets_format" not in root.attrs:
        raise ValueError(f"Not an imcdatasets image collection: {zarr_path}")

    ids = list(root.attrs["ids"])
    arrays = []
    names = []
    for image_id in ids:
        arr = root[f"{image_id}/0"]
        arrays.append(da.from_zarr(arr) if lazy else np.array(arr))
        names.append(root[image_id].attrs["ImageName"])

    channel_names = root.attrs.get("channel_names")
    return ImageCollection(
        ids=tuple(ids),
        arrays=tuple(arrays),
        image_names=tuple(names),
        channel_names=tuple(channel_names) if channel_names is not None else None,
    )
