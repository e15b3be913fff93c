"""Panel construction: full-stack channels in physical channel order."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import pandas as pd

from imcdatasets.core.exceptions import ChannelMassMismatchError, DuplicateIdentifierError
from imcdatasets.core.models import PANEL_COLUMNS

logger = logging.getLogger(__name__)


def match_channel_mass(
    metal_tags: Sequence[str], channel_mass: Sequence[str]
) -> list[int | None]:
    """Positional exact-match lookup of each channel mass in ``metal_tags``.

    Returns one entry per channel mass: the position of the matching tag,
    or None when no tag matches. When a tag occurs more than once the
    first position is returned; use ``ambiguous_channel_mass`` to detect it.
    """
    first: dict[str, int] = {}
    for i, tag in enumerate(metal_tags):
        first.setdefault(str(tag), i)
    return [first.get(str(mass)) for mass in channel_mass]


def ambiguous_channel_mass(
    metal_tags: Sequence[str], channel_mass: Sequence[str]
) -> list[str]:
    """Channel masses that match more than one metal tag."""
    counts = pd.Series([str(t) for t in metal_tags]).value_counts()
    return [str(m) for m in channel_mass if counts.get(str(m), 0) > 1]


def full_panel_rows(panel: pd.DataFrame) -> pd.DataFrame:
    """Rows of the raw panel flagged as part of the full stack (``full == 1``)."""
    missing = [c for c in PANEL_COLUMNS if c not in panel.columns]
    if missing:
        raise ValueError(f"Panel is missing columns: {', '.join(missing)}")
    flags = pd.to_numeric(panel["full"], errors="coerce")
    return panel.loc[flags == 1]


def build_panel(panel: pd.DataFrame, channel_mass: Sequence[str]) -> pd.DataFrame:
    """Filter the panel to full-stack rows and order them like the image stacks.

    Args:
        panel: Raw panel table with at least ``full``, ``MetalTag`` and
            ``shortname`` columns.
        channel_mass: Metal tags in physical channel order.

    Returns:
        Panel table with one row per channel-mass entry, in lookup order,
        indexed by ``shortname``. Full-stack rows whose metal tag is not in
        the lookup are left out.

    Raises:
        ChannelMassMismatchError: If a lookup entry matches no row, or more
            than one row.
        DuplicateIdentifierError: If the resulting short names repeat.
    """
    full = full_panel_rows(panel)
    tags = [str(t).strip() for t in full["MetalTag"]]

    positions = match_channel_mass(tags, channel_mass)
    missing = [str(m) for m, p in zip(channel_mass, positions) if p is None]
    ambiguous = ambiguous_channel_mass(tags, channel_mass)
    if missing or ambiguous:
        raise ChannelMassMismatchError(missing=missing, ambiguous=ambiguous)

    ordered = full.iloc[[p for p in positions if p is not None]].copy()
    excluded = len(full) - len(set(positions))
    if excluded:
        logger.info("%d full-stack panel rows are not in the channel-mass lookup", excluded)

    shortnames = ordered["shortname"].astype(str)
    if not shortnames.is_unique:
        raise DuplicateIdentifierError(
            "shortname", sorted(set(shortnames[shortnames.duplicated()]))
        )
    ordered.index = pd.Index(shortnames, name="channel")
    return ordered
