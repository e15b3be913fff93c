"""Channel x cell assays with panel and cell metadata."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np
import pandas as pd

from imcdatasets.core.exceptions import (
    DatasetError,
    DuplicateIdentifierError,
    JoinCardinalityError,
    ShapeMismatchError,
)

if TYPE_CHECKING:
    import anndata as ad

COUNTS_ASSAY = "counts"
EXPRESSION_ASSAY = "exprs"


def asinh_transform(counts: np.ndarray) -> np.ndarray:
    """Elementwise inverse hyperbolic sine, without cofactor scaling."""
    return np.arcsinh(np.asarray(counts, dtype=np.float64))


@dataclass(frozen=True, eq=False)
class SingleCellDataset:
    """Channels x cells measurement matrix with row and column metadata.

    Attributes:
        counts: 2D float array (channels, cells) of mean intensities.
        expression: asinh(counts), same shape.
        row_data: Panel table, one row per channel, indexed by shortname.
        col_data: Cell table, one row per cell, indexed by composite id.
    """

    counts: np.ndarray
    expression: np.ndarray
    row_data: pd.DataFrame
    col_data: pd.DataFrame

    @classmethod
    def from_counts(
        cls,
        counts: np.ndarray,
        row_data: pd.DataFrame,
        col_data: pd.DataFrame,
    ) -> SingleCellDataset:
        """Build a dataset from raw counts, deriving the expression assay."""
        counts = np.asarray(counts, dtype=np.float64)
        return cls(
            counts=counts,
            expression=asinh_transform(counts),
            row_data=row_data,
            col_data=col_data,
        )

    @property
    def n_channels(self) -> int:
        return self.counts.shape[0]

    @property
    def n_cells(self) -> int:
        return self.counts.shape[1]

    @property
    def channel_names(self) -> list[str]:
        return [str(i) for i in self.row_data.index]

    @property
    def cell_ids(self) -> list[str]:
        return [str(i) for i in self.col_data.index]

    def validate(self) -> None:
        """Check shape, label and assay invariants.

        Raises:
            ShapeMismatchError: If matrix and metadata sizes disagree.
            DuplicateIdentifierError: If channel or cell labels repeat.
            JoinCardinalityError: If a cell id is not ImageName_CellNumber.
            DatasetError: If expression is not asinh(counts).
        """
        if self.counts.ndim != 2:
            raise ShapeMismatchError("counts dimensions", 2, self.counts.ndim)
        if self.expression.shape != self.counts.shape:
            raise ShapeMismatchError(
                "expression size", self.counts.size, self.expression.size
            )
        if len(self.row_data) != self.n_channels:
            raise ShapeMismatchError("panel rows vs counts rows", self.n_channels, len(self.row_data))
        if len(self.col_data) != self.n_cells:
            raise ShapeMismatchError("cell rows vs counts columns", self.n_cells, len(self.col_data))

        _check_unique(self.row_data.index, "channel name")
        _check_unique(self.col_data.index, "cell id")

        if {"ImageName", "CellNumber"} <= set(self.col_data.columns):
            expected = composite_ids(self.col_data["ImageName"], self.col_data["CellNumber"])
            bad = [
                cid for cid, exp in zip(self.col_data.index, expected) if cid != exp
            ]
            if bad:
                raise JoinCardinalityError(
                    f"Cell ids do not match ImageName_CellNumber: {', '.join(bad[:5])}"
                )

        if not np.array_equal(self.expression, asinh_transform(self.counts), equal_nan=True):
            raise DatasetError("Expression assay is not asinh(counts)")

    def to_anndata(self) -> ad.AnnData:
        """Convert to a cells x channels AnnData with both assays as layers."""
        import anndata as ad

        obs = self.col_data.copy()
        obs.index = obs.index.astype(str)
        var = self.row_data.copy()
        var.index = var.index.astype(str)
        return ad.AnnData(
            X=self.counts.T.copy(),
            obs=obs,
            var=var,
            layers={
                COUNTS_ASSAY: self.counts.T.copy(),
                EXPRESSION_ASSAY: self.expression.T.copy(),
            },
        )

    @classmethod
    def from_anndata(cls, adata: ad.AnnData) -> SingleCellDataset:
        """Rebuild a dataset from an AnnData written by to_anndata()."""
        counts = np.asarray(adata.layers[COUNTS_ASSAY]).T
        if EXPRESSION_ASSAY in adata.layers:
            expression = np.asarray(adata.layers[EXPRESSION_ASSAY]).T
        else:
            expression = asinh_transform(counts)
        return cls(
            counts=counts,
            expression=expression,
            row_data=adata.var.copy(),
            col_data=adata.obs.copy(),
        )


def composite_ids(image_names: pd.Series, cell_numbers: pd.Series) -> list[str]:
    """Format ``{ImageName}_{CellNumber}`` with the cell number as integer text."""
    return [
        f"{name}_{int(number)}" for name, number in zip(image_names, cell_numbers)
    ]


def _check_unique(index: pd.Index, label: str) -> None:
    if index.is_unique:
        return
    dupes = index[index.duplicated()].unique()
    raise DuplicateIdentifierError(label, [str(d) for d in dupes])
