from __future__ import annotations

from pathlib import Path
from typing import Mapping, Optional

import yaml

from .errors import CatalogError
from .models import ArtifactCatalog

ARTIFACTS_FILE = "artifacts.yaml"


def load_artifact_catalog(
    file_name: str | Path = ARTIFACTS_FILE,
    base_dir: Optional[str | Path] = None,
) -> ArtifactCatalog:
    """Load the artifact sources metadata.

    Relative names resolve against the process working directory unless
    ``base_dir`` is given; the image configuration directory is never used.
    """

    path = Path(file_name)
    if base_dir is not None and not path.is_absolute():
        path = Path(base_dir) / path

    try:
        raw_text = path.read_bytes()
    except FileNotFoundError as exc:
        raise CatalogError(f"artifact sources file '{file_name}' does not exist") from exc
    except OSError as exc:
        raise CatalogError(f"reading artifact sources file: {exc}") from exc

    try:
        raw_data = yaml.safe_load(raw_text)
    except yaml.YAMLError as exc:
        raise CatalogError(f"decoding artifacts sources: {exc}") from exc

    if raw_data is None:
        raw_data = {}
    if not isinstance(raw_data, Mapping):
        raise CatalogError(
            f"decoding artifacts sources: expected a mapping, got {type(raw_data).__name__}"
        )

    return ArtifactCatalog.from_dict(path, raw_data)
