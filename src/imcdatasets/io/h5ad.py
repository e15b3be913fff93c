"""SingleCellDataset persistence as AnnData ``.h5ad`` files."""

from __future__ import annotations

import logging
from pathlib import Path

from imcdatasets.core.dataset import SingleCellDataset

logger = logging.getLogger(__name__)


def write_dataset(path: Path, dataset: SingleCellDataset) -> None:
    """Validate and write a dataset to ``path``.

    String columns are stored as categoricals, which is how anndata
    keeps columns with missing values writable.
    """
    dataset.validate()
    adata = dataset.to_anndata()
    adata.strings_to_categoricals()
    adata.write_h5ad(Path(path))
    logger.info(
        "Wrote %s (%d cells x %d channels)", Path(path).name, adata.n_obs, adata.n_vars
    )


def read_dataset(path: Path) -> SingleCellDataset:
    """Read a dataset written by write_dataset().

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    import anndata as ad

    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"Dataset file not found: {path}")
    return SingleCellDataset.from_anndata(ad.read_h5ad(path))
