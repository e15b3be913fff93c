"""Building datasets end to end and verifying written builds."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from imcdatasets.core.exceptions import NameMismatchError, ShapeMismatchError
from imcdatasets.images.assembler import AssembledImages
from imcdatasets.io.h5ad import read_dataset
from imcdatasets.io.models import BuildManifest, DatasetConfig
from imcdatasets.io.serialization import MANIFEST_NAME, manifest_from_yaml
from imcdatasets.io.zarr_io import read_collection
from imcdatasets.workflow.defaults import Fetcher, build_pipeline, get_dataset

logger = logging.getLogger(__name__)


def build_dataset(
    dataset: str | DatasetConfig,
    output_dir: Path,
    fetcher: Fetcher | None = None,
    workspace_dir: Path | None = None,
    progress_callback: Callable[[str, str], None] | None = None,
) -> BuildManifest:
    """Fetch, merge, assemble and write one dataset.

    Args:
        dataset: Registered dataset name or a DatasetConfig.
        output_dir: Directory receiving the artifacts and manifest.
        fetcher: Replacement for io.fetch.fetch_all (key -> RemoteFile
            mapping and workspace dir in, key -> local path out).
        workspace_dir: Parent of the temporary acquisition workspaces.
        progress_callback: Called with (stage_name, status_msg).

    Returns:
        The manifest written next to the artifacts.

    Raises:
        KeyError: If the dataset name is unknown.
        StageError: If any stage fails; nothing is written unless all
            checks before the write stage passed.
    """
    config = get_dataset(dataset) if isinstance(dataset, str) else dataset
    logger.info("Building dataset %s %s into %s", config.name, config.version, output_dir)
    context = {
        "config": config,
        "output_dir": Path(output_dir),
        "fetcher": fetcher,
        "workspace_dir": workspace_dir,
    }
    result = build_pipeline().run(context, progress_callback=progress_callback)
    logger.info(
        "Built %s in %.1fs (%d stages)",
        config.name,
        result.total_elapsed_seconds,
        result.stages_completed,
    )
    return result.context["manifest"]


def verify_build(output_dir: Path) -> BuildManifest:
    """Re-read a build and check it against its manifest.

    Raises:
        FileNotFoundError: If the manifest or an artifact is missing.
        ShapeMismatchError: If cell or channel counts differ from the manifest.
        NameMismatchError: If names differ from the manifest or between
            images and masks.
    """
    output_dir = Path(output_dir)
    manifest_path = output_dir / MANIFEST_NAME
    if not manifest_path.is_file():
        raise FileNotFoundError(f"No {MANIFEST_NAME} in {output_dir}")
    manifest = manifest_from_yaml(manifest_path)

    dataset = read_dataset(output_dir / manifest.artifacts["dataset"])
    dataset.validate()
    if dataset.n_cells != manifest.n_cells:
        raise ShapeMismatchError("cells", manifest.n_cells, dataset.n_cells)
    if dataset.channel_names != manifest.channel_names:
        raise NameMismatchError(
            expected=manifest.channel_names, actual=dataset.channel_names, what="Channel names"
        )

    images = read_collection(output_dir / manifest.artifacts["images"], lazy=True)
    masks = read_collection(output_dir / manifest.artifacts["masks"], lazy=True)
    AssembledImages(images=images, masks=masks).validate()
    if list(images.image_names) != manifest.image_names:
        raise NameMismatchError(expected=manifest.image_names, actual=list(images.image_names))
    if list(images.channel_names or ()) != manifest.channel_names:
        raise NameMismatchError(
            expected=manifest.channel_names,
            actual=list(images.channel_names or ()),
            what="Channel names",
        )
    return manifest
