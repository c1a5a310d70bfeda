"""Creation of the on-disk working area for a build run."""

from __future__ import annotations

import datetime as _dt
from pathlib import Path
from typing import Optional, Tuple

from .errors import BuildEnvironmentError
from .utils import ensure_directory

DEFAULT_ROOT_DIR_NAME = "_build"
COMBUSTION_DIR_NAME = "combustion"
ARTEFACTS_DIR_NAME = "artefacts"

_BUILD_DIR_TIME_FORMAT = "%b%d_%H-%M-%S"


def _create_dir(path: Path, *, exist_ok: bool = True) -> Path:
    try:
        ensure_directory(path, exist_ok=exist_ok)
    except FileExistsError:
        if not exist_ok:
            raise
        raise BuildEnvironmentError(
            f"The directory '{path}' could not be created.",
            f"Creating directory {path} failed: a file with that name already exists",
        ) from None
    except OSError as exc:
        raise BuildEnvironmentError(
            f"The directory '{path}' could not be created.",
            f"Creating directory {path} failed: {exc}",
        ) from exc
    return path


def provision_root_dir(configured_root: Optional[str | Path], config_dir: str | Path) -> Path:
    """Return the root directory that holds per-run build directories.

    An explicitly configured root is used as given. Otherwise ``_build`` under
    the configuration directory is created on demand.
    """

    if configured_root:
        return Path(configured_root)

    return _create_dir(Path(config_dir) / DEFAULT_ROOT_DIR_NAME)


def provision_build_dir(root_dir: str | Path, now: Optional[_dt.datetime] = None) -> Path:
    """Create a new, uniquely named build directory under ``root_dir``."""

    root_dir = _create_dir(Path(root_dir))
    stamp = (now or _dt.datetime.now()).strftime(_BUILD_DIR_TIME_FORMAT)
    base_name = f"build-{stamp}"

    candidate = root_dir / base_name
    suffix = 0
    while True:
        try:
            return _create_dir(candidate, exist_ok=False)
        except FileExistsError:
            suffix += 1
            candidate = root_dir / f"{base_name}-{suffix}"


def provision_combustion_dirs(build_dir: str | Path) -> Tuple[Path, Path]:
    build_dir = Path(build_dir)
    combustion_dir = _create_dir(build_dir / COMBUSTION_DIR_NAME)
    artefacts_dir = _create_dir(build_dir / ARTEFACTS_DIR_NAME)
    return combustion_dir, artefacts_dir
