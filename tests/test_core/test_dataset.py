"""Tests for imcdatasets.core.dataset."""

from __future__ import annotations

import numpy as np
import pandas as pd
import pytest

from imcdatasets.core.dataset import SingleCellDataset, asinh_transform, composite_ids
from imcdatasets.core.exceptions import (
    DatasetError,
    DuplicateIdentifierError,
    JoinCardinalityError,
    ShapeMismatchError,
)


def _row_data(names=("H3", "SMA")) -> pd.DataFrame:
    return pd.DataFrame(
        {
            "full": [1] * len(names),
            "MetalTag": [f"M{i}" for i in range(len(names))],
            "shortname": list(names),
        },
        index=pd.Index(list(names), name="channel"),
    )


def _col_data(ids=("A01_1", "A01_2", "B02_1")) -> pd.DataFrame:
    image_names = [i.split("_")[0] for i in ids]
    numbers = [int(i.split("_")[1]) for i in ids]
    return pd.DataFrame(
        {
            "ImageName": image_names,
            "ImageNumber": [1 if n == "A01" else 2 for n in image_names],
            "CellNumber": numbers,
            "Pos_X": [1.0] * len(ids),
            "Pos_Y": [2.0] * len(ids),
            "ParentIslet": [0] * len(ids),
            "ClosestIslet": [1] * len(ids),
            "Area": [10.0] * len(ids),
            "NbNeighbours": [2] * len(ids),
            "CellCat": ["islet"] * len(ids),
            "CellType": ["beta"] * len(ids),
            "slide": ["S1"] * len(ids),
            "case": [6126] * len(ids),
        },
        index=pd.Index(list(ids), name="id"),
    )


@pytest.fixture
def dataset() -> SingleCellDataset:
    counts = np.array([[0.0, 1.0, 2.0], [3.0, 4.0, 5.0]])
    return SingleCellDataset.from_counts(counts, _row_data(), _col_data())


class TestAsinh:
    def test_matches_numpy(self):
        x = np.array([[0.0, 1.0], [10.0, 1e4]])
        np.testing.assert_array_equal(asinh_transform(x), np.arcsinh(x))

    def test_integer_input_becomes_float(self):
        assert asinh_transform(np.array([1, 2])).dtype == np.float64


class TestCompositeIds:
    def test_cell_number_as_integer_text(self):
        ids = composite_ids(pd.Series(["A01", "B02"]), pd.Series([1.0, 12.0]))
        assert ids == ["A01_1", "B02_12"]


class TestSingleCellDataset:
    def test_expression_is_exact_asinh(self, dataset):
        np.testing.assert_array_equal(dataset.expression, np.arcsinh(dataset.counts))

    def test_dimensions(self, dataset):
        assert dataset.n_channels == 2
        assert dataset.n_cells == 3
        assert dataset.channel_names == ["H3", "SMA"]
        assert dataset.cell_ids == ["A01_1", "A01_2", "B02_1"]

    def test_validate_passes(self, dataset):
        dataset.validate()

    def test_rejects_panel_row_count(self):
        counts = np.zeros((3, 3))
        ds = SingleCellDataset.from_counts(counts, _row_data(), _col_data())
        with pytest.raises(ShapeMismatchError, match="panel rows"):
            ds.validate()

    def test_rejects_cell_count(self):
        counts = np.zeros((2, 2))
        ds = SingleCellDataset.from_counts(counts, _row_data(), _col_data())
        with pytest.raises(ShapeMismatchError, match="cell rows"):
            ds.validate()

    def test_rejects_duplicate_cell_ids(self):
        col = _col_data(("A01_1", "A01_1", "B02_1"))
        ds = SingleCellDataset.from_counts(np.zeros((2, 3)), _row_data(), col)
        with pytest.raises(DuplicateIdentifierError):
            ds.validate()

    def test_rejects_duplicate_channel_names(self):
        ds = SingleCellDataset.from_counts(
            np.zeros((2, 3)), _row_data(("H3", "H3")), _col_data()
        )
        with pytest.raises(DuplicateIdentifierError):
            ds.validate()

    def test_rejects_id_not_matching_name_and_number(self):
        col = _col_data()
        col.loc["A01_2", "CellNumber"] = 7
        ds = SingleCellDataset.from_counts(np.zeros((2, 3)), _row_data(), col)
        with pytest.raises(JoinCardinalityError, match="ImageName_CellNumber"):
            ds.validate()

    def test_rejects_tampered_expression(self, dataset):
        expression = dataset.expression.copy()
        expression[0, 0] += 1
        ds = SingleCellDataset(
            counts=dataset.counts,
            expression=expression,
            row_data=dataset.row_data,
            col_data=dataset.col_data,
        )
        with pytest.raises(DatasetError, match="asinh"):
            ds.validate()


class TestAnnData:
    def test_orientation_and_layers(self, dataset):
        adata = dataset.to_anndata()
        assert adata.shape == (3, 2)
        assert list(adata.obs_names) == dataset.cell_ids
        assert list(adata.var_names) == dataset.channel_names
        np.testing.assert_array_equal(adata.layers["counts"], dataset.counts.T)
        np.testing.assert_array_equal(adata.layers["exprs"], dataset.expression.T)

    def test_back_and_forth_keeps_matrices(self, dataset):
        again = SingleCellDataset.from_anndata(dataset.to_anndata())
        np.testing.assert_array_equal(again.counts, dataset.counts)
        np.testing.assert_array_equal(again.expression, dataset.expression)
        assert again.cell_ids == dataset.cell_ids
        again.validate()
