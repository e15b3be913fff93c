"""Tests for imcdatasets.images.loader."""

import numpy as np
import pytest

from imcdatasets.core.exceptions import AcquisitionError
from imcdatasets.images.loader import find_rasters, image_name_from_stem, load_image_collection
from tests.conftest import make_stack, write_stack


class TestFindRasters:
    def test_sorted_matches(self, raster_dirs):
        _, mask_dir = raster_dirs
        paths = find_rasters(mask_dir, "*_full_mask.tiff")
        assert [p.name for p in paths] == [
            "A01_a0_full_mask.tiff",
            "B02_a0_full_mask.tiff",
            "C03_a0_full_mask.tiff",
        ]

    def test_searches_subdirectories(self, tmp_path):
        nested = tmp_path / "Images" / "inner"
        nested.mkdir(parents=True)
        write_stack(nested / "X_a0_full_clean.tiff", make_stack(0))
        assert len(find_rasters(tmp_path, "*_full_clean.tiff")) == 1

    def test_missing_directory(self, tmp_path):
        with pytest.raises(AcquisitionError, match="directory not found"):
            find_rasters(tmp_path / "nope", "*.tiff")

    def test_no_matches(self, tmp_path):
        (tmp_path / "readme.txt").write_text("x")
        with pytest.raises(AcquisitionError, match="no files matching"):
            find_rasters(tmp_path, "*.tiff")


class TestImageNameFromStem:
    def test_token_removed(self):
        assert image_name_from_stem("E02_a0_full_clean", "_a0_full_clean") == "E02"

    def test_missing_token_unchanged(self):
        assert image_name_from_stem("E02", "_a0_full_clean") == "E02"

    def test_missing_token_strict(self):
        with pytest.raises(ValueError):
            image_name_from_stem("E02", "_a0_full_clean", strict=True)


class TestLoadImageCollection:
    def test_keys_and_names(self, raster_dirs):
        image_dir, _ = raster_dirs
        coll = load_image_collection(image_dir, "*_full_clean.tiff", "_a0_full_clean")
        assert coll.ids == ("A01_a0_full_clean", "B02_a0_full_clean")
        assert coll.image_names == ("A01", "B02")
        assert coll.channel_names is None
        np.testing.assert_array_equal(coll["A01_a0_full_clean"], make_stack(0))

    def test_masks(self, raster_dirs):
        _, mask_dir = raster_dirs
        coll = load_image_collection(mask_dir, "*_full_mask.tiff", "_a0_full_mask")
        assert coll.image_names == ("A01", "B02", "C03")
        assert coll[2].ndim == 2
