"""imcdatasets tables: joining cell, image, cell-type and donor tables."""

from imcdatasets.tables.merger import (
    add_composite_id,
    extract_counts,
    finalize_cell_table,
    intensity_columns,
    merge_cell_types,
    merge_cells_images,
    merge_donors,
    merge_tables,
    prepare_image_table,
    select_cell_columns,
)
from imcdatasets.tables.panel import build_panel, full_panel_rows, match_channel_mass

__all__ = [
    "add_composite_id",
    "build_panel",
    "extract_counts",
    "finalize_cell_table",
    "full_panel_rows",
    "intensity_columns",
    "match_channel_mass",
    "merge_cell_types",
    "merge_cells_images",
    "merge_donors",
    "merge_tables",
    "prepare_image_table",
    "select_cell_columns",
]
