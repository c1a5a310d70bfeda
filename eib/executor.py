from __future__ import annotations

import datetime as _dt
from pathlib import Path
from typing import Optional, Protocol

from .definition import DEFAULT_DEFINITION_FILE
from .errors import BuildExecutionError
from .log import BuildLogger
from .models import BuildContext
from .utils import dump_json, sha256_file

CONTEXT_MANIFEST_FILE = "build-context.json"


class BuildExecutor(Protocol):
    """Consumes a finalized build context.

    Implementations raise ``BuildExecutionError`` to report a failed build;
    any other exception is treated as an unexpected fault.
    """

    def execute(self, ctx: BuildContext, root_build_dir: Path) -> None: ...


def _file_digest(path: Path) -> Optional[str]:
    return sha256_file(path) if path.is_file() else None


class ContextManifestExecutor:
    """Records the finalized context in the build directory."""

    def __init__(self, logger: BuildLogger, definition_file: str = DEFAULT_DEFINITION_FILE) -> None:
        self.logger = logger
        self.definition_file = definition_file

    def manifest(self, ctx: BuildContext, root_build_dir: Path) -> dict:
        image = ctx.definition.image
        return {
            "root_build_dir": str(root_build_dir),
            "build_dir": str(ctx.build_dir),
            "config_dir": str(ctx.config_dir),
            "combustion_dir": str(ctx.combustion_dir),
            "artefacts_dir": str(ctx.artefacts_dir),
            "definition": {
                "api_version": ctx.definition.api_version,
                "sha256": _file_digest(Path(ctx.config_dir) / self.definition_file),
                "image_type": image.image_type,
                "arch": image.arch,
                "base_image": image.base_image,
                "output_image_name": image.output_image_name,
            },
            "artifact_sources": {
                "path": str(ctx.artifact_catalog.path),
                "components": {
                    name: ctx.artifact_catalog.component_version(name) for name in sorted(ctx.artifact_catalog)
                },
            },
            "generated_at": _dt.datetime.now(_dt.timezone.utc).isoformat(),
        }

    def execute(self, ctx: BuildContext, root_build_dir: Path) -> None:
        manifest_path = Path(ctx.build_dir) / CONTEXT_MANIFEST_FILE
        try:
            dump_json(manifest_path, self.manifest(ctx, root_build_dir))
        except OSError as exc:
            raise BuildExecutionError(f"writing {manifest_path}: {exc}") from exc
        self.logger.info("Build context recorded at %s", manifest_path)
