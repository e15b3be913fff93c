"""Download of published source files into a scoped temporary workspace.

Files are fetched with pooch. Everything lands under a throw-away
directory that is removed when the ``acquisition_workspace`` block exits,
whether or not loading succeeded.
"""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

import pooch

from imcdatasets.core.exceptions import AcquisitionError
from imcdatasets.io.models import RemoteFile

logger = logging.getLogger(__name__)

# Parent directory for acquisition workspaces; defaults to the system temp dir.
DATA_DIR_ENV = "IMCDATASETS_DATA_DIR"


@contextmanager
def acquisition_workspace(parent: Path | None = None) -> Iterator[Path]:
    """Yield a fresh directory that is deleted on exit.

    Args:
        parent: Directory to create the workspace in. Falls back to
            ``$IMCDATASETS_DATA_DIR`` and then the system temp dir.
    """
    if parent is None and os.environ.get(DATA_DIR_ENV):
        parent = Path(os.environ[DATA_DIR_ENV])
    if parent is not None:
        Path(parent).mkdir(parents=True, exist_ok=True)
    workdir = Path(tempfile.mkdtemp(prefix="imcdatasets-", dir=parent))
    logger.debug("Created acquisition workspace %s", workdir)
    try:
        yield workdir
    finally:
        shutil.rmtree(workdir, ignore_errors=True)
        logger.debug("Removed acquisition workspace %s", workdir)


def fetch(remote: RemoteFile, workdir: Path) -> Path:
    """Download one file into ``workdir``.

    Archives are unzipped next to the download and the extraction
    directory is returned instead of the archive path.

    Args:
        remote: What to download.
        workdir: Destination directory.

    Returns:
        Path to the downloaded file, or to the extraction directory.

    Raises:
        AcquisitionError: If the download or extraction fails.
    """
    extract_dir = f"{Path(remote.fname).stem}_extracted"
    processor = pooch.Unzip(extract_dir=extract_dir) if remote.archive else None
    logger.info("Fetching %s", remote.url)
    try:
        result = pooch.retrieve(
            url=remote.url,
            known_hash=remote.known_hash,
            fname=remote.fname,
            path=str(workdir),
            processor=processor,
            progressbar=False,
        )
    except Exception as exc:
        raise AcquisitionError(remote.url, str(exc)) from exc

    if remote.archive:
        target = Path(workdir) / extract_dir
        if not result or not target.is_dir():
            raise AcquisitionError(remote.url, "archive contained no files")
        return target
    return Path(result)


def fetch_all(files: dict[str, RemoteFile], workdir: Path) -> dict[str, Path]:
    """Fetch every file in order, returning key -> local path."""
    return {key: fetch(remote, workdir) for key, remote in files.items()}
