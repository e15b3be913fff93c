"""imcdatasets core — data models, composite containers and exceptions."""

from imcdatasets.core.collection import ImageCollection
from imcdatasets.core.dataset import SingleCellDataset, asinh_transform, composite_ids
from imcdatasets.core.exceptions import (
    AcquisitionError,
    ChannelMassMismatchError,
    DatasetError,
    DuplicateIdentifierError,
    JoinCardinalityError,
    NameMismatchError,
    ShapeMismatchError,
    StageError,
)
from imcdatasets.core.models import CellRecord, ImageRecord, PanelRow

__all__ = [
    "ImageCollection",
    "SingleCellDataset",
    "asinh_transform",
    "composite_ids",
    "CellRecord",
    "ImageRecord",
    "PanelRow",
    "DatasetError",
    "AcquisitionError",
    "JoinCardinalityError",
    "DuplicateIdentifierError",
    "ChannelMassMismatchError",
    "NameMismatchError",
    "ShapeMismatchError",
    "StageError",
]
