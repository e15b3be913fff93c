"""imcdatasets IO: downloads, CSV and TIFF readers, h5ad and OME-Zarr stores."""

from __future__ import annotations

from imcdatasets.io.fetch import acquisition_workspace, fetch, fetch_all
from imcdatasets.io.h5ad import read_dataset, write_dataset
from imcdatasets.io.models import BuildManifest, DatasetConfig, RemoteFile
from imcdatasets.io.serialization import MANIFEST_NAME, manifest_from_yaml, manifest_to_yaml
from imcdatasets.io.tables import read_channel_mass, read_table
from imcdatasets.io.tiff import read_tiff
from imcdatasets.io.zarr_io import read_collection, write_collection

__all__ = [
    "BuildManifest",
    "DatasetConfig",
    "MANIFEST_NAME",
    "RemoteFile",
    "acquisition_workspace",
    "fetch",
    "fetch_all",
    "manifest_from_yaml",
    "manifest_to_yaml",
    "read_channel_mass",
    "read_collection",
    "read_dataset",
    "read_table",
    "read_tiff",
    "write_collection",
    "write_dataset",
]
