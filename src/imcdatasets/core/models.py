"""Row-level data models for the imcdatasets core module."""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any


@dataclass(frozen=True)
class CellRecord:
    """A segmented cell joined with its image, cell type and donor."""

    id: str
    ImageName: str
    ImageNumber: int
    CellNumber: int
    Pos_X: float
    Pos_Y: float
    ParentIslet: int
    ClosestIslet: int
    Area: float
    NbNeighbours: int
    CellCat: str | None = None
    CellType: str | None = None
    slide: str | int | None = None
    donor: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ImageRecord:
    """Metadata for one acquired image, used as a join target for cells."""

    ImageNumber: int
    ImageFullName: str
    ImageName: str
    slide: str | int
    width: int | None = None
    height: int | None = None


@dataclass(frozen=True)
class PanelRow:
    """One antibody/metal channel of the acquisition panel."""

    MetalTag: str
    shortname: str
    full: int = 1
    extra: dict[str, Any] = field(default_factory=dict)


# Column order of the merged cell table before donor columns.
CELL_COLUMNS: tuple[str, ...] = tuple(
    f.name for f in fields(CellRecord) if f.name not in ("id", "donor")
)

# Panel columns every source panel must provide.
PANEL_COLUMNS: tuple[str, ...] = tuple(f.name for f in fields(PanelRow) if f.name != "extra")

IMAGE_COLUMNS: tuple[str, ...] = tuple(f.name for f in fields(ImageRecord))
