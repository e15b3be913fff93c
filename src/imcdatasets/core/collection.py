"""Ordered rasters keyed by file stem, each carrying an ImageName."""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field

import numpy as np

from imcdatasets.core.exceptions import DuplicateIdentifierError, ShapeMismatchError


@dataclass(frozen=True, eq=False)
class ImageCollection:
    """An ordered mapping of image identifier to raster array.

    Images are stored as (C, Y, X) stacks, masks as (Y, X) label images.
    Each entry carries an ``ImageName`` used to cross-reference cell tables.

    Attributes:
        ids: Image identifiers (file stems) in load order.
        arrays: Raster arrays, aligned with ``ids``.
        image_names: Derived image names, aligned with ``ids``.
        channel_names: Channel labels shared by all stacks, or None.
    """

    ids: tuple[str, ...]
    arrays: tuple[np.ndarray, ...]
    image_names: tuple[str, ...]
    channel_names: tuple[str, ...] | None = None
    _positions: dict[str, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        if not (len(self.ids) == len(self.arrays) == len(self.image_names)):
            raise ShapeMismatchError(
                "collection entries", len(self.ids), len(self.arrays)
            )
        positions: dict[str, int] = {}
        dupes = []
        for i, image_id in enumerate(self.ids):
            if image_id in positions:
                dupes.append(image_id)
            positions[image_id] = i
        if dupes:
            raise DuplicateIdentifierError("image id", dupes)
        object.__setattr__(self, "_positions", positions)

    @classmethod
    def from_arrays(
        cls,
        arrays: dict[str, np.ndarray],
        image_names: Sequence[str] | None = None,
        channel_names: Sequence[str] | None = None,
    ) -> ImageCollection:
        """Build a collection from an ordered dict of id -> array."""
        ids = tuple(arrays)
        names = tuple(image_names) if image_names is not None else ids
        return cls(
            ids=ids,
            arrays=tuple(arrays.values()),
            image_names=names,
            channel_names=tuple(channel_names) if channel_names is not None else None,
        )

    def __len__(self) -> int:
        return len(self.ids)

    def __iter__(self) -> Iterator[str]:
        return iter(self.ids)

    def __contains__(self, image_id: object) -> bool:
        return image_id in self._positions

    def __getitem__(self, key: str | int) -> np.ndarray:
        if isinstance(key, int):
            return self.arrays[key]
        return self.arrays[self._positions[key]]

    def channel_counts(self) -> list[int]:
        """Number of channels of each entry; 2D rasters count as one."""
        return [a.shape[0] if a.ndim == 3 else 1 for a in self.arrays]

    def select(self, positions: Sequence[int]) -> ImageCollection:
        """Return a new collection with the entries at ``positions``, in that order."""
        return ImageCollection(
            ids=tuple(self.ids[i] for i in positions),
            arrays=tuple(self.arrays[i] for i in positions),
            image_names=tuple(self.image_names[i] for i in positions),
            channel_names=self.channel_names,
        )

    def with_image_names(self, image_names: Sequence[str]) -> ImageCollection:
        return ImageCollection(
            ids=self.ids,
            arrays=self.arrays,
            image_names=tuple(image_names),
            channel_names=self.channel_names,
        )

    def with_arrays(self, arrays: Sequence[np.ndarray]) -> ImageCollection:
        return ImageCollection(
            ids=self.ids,
            arrays=tuple(arrays),
            image_names=self.image_names,
            channel_names=self.channel_names,
        )

    def with_channel_names(self, channel_names: Sequence[str]) -> ImageCollection:
        """Return a copy labelled with ``channel_names``.

        Raises:
            ShapeMismatchError: If any stack has a different channel count.
        """
        labels = tuple(str(c) for c in channel_names)
        for image_id, n in zip(self.ids, self.channel_counts()):
            if n != len(labels):
                raise ShapeMismatchError(
                    f"channels in image {image_id}", len(labels), n
                )
        return ImageCollection(
            ids=self.ids,
            arrays=self.arrays,
            image_names=self.image_names,
            channel_names=labels,
        )
