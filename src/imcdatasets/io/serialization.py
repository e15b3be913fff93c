"""YAML serialization for BuildManifest.

Requires pyyaml. Raises ImportError with clear install instructions
if pyyaml is not available.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from imcdatasets.io.models import BuildManifest

MANIFEST_NAME = "manifest.yaml"


def _require_yaml() -> Any:
    """Import and return the yaml module, or raise a helpful error."""
    try:
        import yaml

        return yaml
    except ImportError:
        raise ImportError(
            "pyyaml is required for build manifests. "
            "Install it with: pip install pyyaml"
        ) from None


def manifest_to_yaml(manifest: BuildManifest, path: Path) -> None:
    """Serialize a BuildManifest to a YAML file.

    Args:
        manifest: The manifest to serialize.
        path: File path to write.
    """
    yaml = _require_yaml()

    data: dict[str, Any] = {
        "dataset": manifest.dataset,
        "version": manifest.version,
        "created_at": manifest.created_at,
        "sources": dict(manifest.sources),
        "artifacts": dict(manifest.artifacts),
        "n_cells": manifest.n_cells,
        "n_channels": manifest.n_channels,
        "channel_names": list(manifest.channel_names),
        "n_images": manifest.n_images,
        "image_names": list(manifest.image_names),
    }

    with open(path, "w") as f:
        yaml.dump(data, f, default_flow_style=False, sort_keys=False)


def manifest_from_yaml(path: Path) -> BuildManifest:
    """Deserialize a BuildManifest from a YAML file.

    Raises:
        FileNotFoundError: If the YAML file doesn't exist.
        ValueError: If the YAML is invalid or missing required fields.
    """
    yaml = _require_yaml()

    path = Path(path)
    with open(path) as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Invalid manifest YAML: expected a mapping, got {type(data).__name__}")

    required = ("dataset", "version", "artifacts", "n_cells", "channel_names", "image_names")
    for key in required:
        if key not in data:
            raise ValueError(f"Invalid manifest YAML: missing required key '{key}'")

    return BuildManifest(
        dataset=data["dataset"],
        version=str(data["version"]),
        created_at=str(data.get("created_at", "")),
        sources=data.get("sources", {}),
        artifacts=data["artifacts"],
        n_cells=int(data["n_cells"]),
        channel_names=[str(c) for c in data["channel_names"]],
        image_names=[str(n) for n in data["image_names"]],
    )
