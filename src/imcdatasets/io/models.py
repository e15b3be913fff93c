"""Configuration models for the IO module."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from urllib.parse import urlparse

_MAX_PATTERN_LENGTH = 200


@dataclass(frozen=True)
class RemoteFile:
    """A file published at a fixed URL.

    Attributes:
        url: Download location.
        fname: Local file name inside the acquisition workspace.
        known_hash: Optional pooch hash string ("sha256:..."); None skips checks.
        archive: If True the file is a zip archive and is extracted.
    """

    url: str
    fname: str
    known_hash: str | None = None
    archive: bool = False

    def __post_init__(self) -> None:
        parsed = urlparse(self.url)
        if parsed.scheme not in ("http", "https", "ftp", "file"):
            raise ValueError(f"Unsupported URL scheme for {self.fname}: {self.url!r}")
        if not self.fname or "/" in self.fname or self.fname in (".", ".."):
            raise ValueError(f"Invalid local file name: {self.fname!r}")


@dataclass(frozen=True)
class DatasetConfig:
    """Everything needed to build one dataset.

    Tables and archives are fetched from ``files``; the keys
    ``cells``, ``images``, ``cell_types``, ``donors``, ``panel``,
    ``channel_mass``, ``image_archive`` and ``mask_archive`` are required.
    """

    name: str
    version: str
    files: dict[str, RemoteFile]
    description: str = ""
    image_pattern: str = "*_full_clean.tiff"
    mask_pattern: str = "*_full_mask.tiff"
    image_token: str = "_a0_full_clean"
    mask_token: str = "_a0_full_mask"
    filename_suffix: str = "_a0_full_clean.tiff"
    intensity_pattern: str = r"^Intensity_MeanIntensity_CleanStack_c(\d+)$"
    metadata: dict[str, str] = field(default_factory=dict)

    REQUIRED_FILES = (
        "cells",
        "images",
        "cell_types",
        "donors",
        "panel",
        "channel_mass",
        "image_archive",
        "mask_archive",
    )

    def __post_init__(self) -> None:
        """Validate the file table and the intensity column pattern."""
        missing = [k for k in self.REQUIRED_FILES if k not in self.files]
        if missing:
            raise ValueError(
                f"Dataset '{self.name}' is missing files: {', '.join(missing)}"
            )
        if len(self.intensity_pattern) > _MAX_PATTERN_LENGTH:
            raise ValueError(
                f"intensity_pattern exceeds max length {_MAX_PATTERN_LENGTH}"
            )
        try:
            compiled = re.compile(self.intensity_pattern)
        except re.error as e:
            raise ValueError(f"Invalid regex for 'intensity_pattern': {e}") from e
        if compiled.groups != 1:
            raise ValueError(
                "intensity_pattern must contain exactly one capture group "
                "for the channel number"
            )


@dataclass
class BuildManifest:
    """What a build produced, written next to the artifacts."""

    dataset: str
    version: str
    created_at: str
    sources: dict[str, str]
    artifacts: dict[str, str]
    n_cells: int
    channel_names: list[str]
    image_names: list[str]

    @property
    def n_channels(self) -> int:
        return len(self.channel_names)

    @property
    def n_images(self) -> int:
        return len(self.image_names)
