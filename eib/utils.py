from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Mapping


def ensure_directory(path: str | Path, *, exist_ok: bool = True) -> Path:
    """Create ``path`` with any missing parents.

    With ``exist_ok=False`` an existing entry raises ``FileExistsError`` so
    callers can claim a fresh directory.
    """

    path = Path(path)
    path.mkdir(parents=True, exist_ok=exist_ok)
    return path


def sha256_file(path: str | Path) -> str:
    digest = hashlib.sha256()
    with open(path, "rb") as file_handle:
        for chunk in iter(lambda: file_handle.read(8192), b""):
            digest.update(chunk)
    return digest.hexdigest()


def dump_json(path: str | Path, payload: Mapping[str, object], *, indent: int = 2) -> Path:
    """Write ``payload`` as sorted, indented JSON and return the path written."""

    path = Path(path)
    path.write_text(json.dumps(payload, indent=indent, sort_keys=True) + "\n", encoding="utf-8")
    return path
