from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from typing import Mapping, Optional

from .catalog import ARTIFACTS_FILE
from .definition import DEFAULT_DEFINITION_FILE

ENV_CONFIG_DIR = "EIB_CONFIG_DIR"
ENV_DEFINITION_FILE = "EIB_DEFINITION_FILE"
ENV_BUILD_DIR = "EIB_BUILD_DIR"
ENV_ARTIFACTS_FILE = "EIB_ARTIFACTS_FILE"


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    value = environ.get(name, "").strip()
    return value or None


@dataclass(frozen=True)
class BuildArgs:
    """Inputs for one pipeline run."""

    config_dir: str
    definition_file: str = DEFAULT_DEFINITION_FILE
    root_build_dir: Optional[str] = None
    artifacts_file: str = ARTIFACTS_FILE

    @classmethod
    def from_namespace(
        cls,
        args: argparse.Namespace,
        environ: Optional[Mapping[str, str]] = None,
    ) -> "BuildArgs":
        """Merge parsed CLI flags over environment defaults; flags win."""

        environ = os.environ if environ is None else environ
        config_dir = getattr(args, "config_dir", None) or _env(environ, ENV_CONFIG_DIR)
        if not config_dir:
            raise ValueError(f"An image configuration directory is required (--config-dir or {ENV_CONFIG_DIR}).")

        return cls(
            config_dir=config_dir,
            definition_file=getattr(args, "definition_file", None)
            or _env(environ, ENV_DEFINITION_FILE)
            or DEFAULT_DEFINITION_FILE,
            root_build_dir=getattr(args, "build_dir", None) or _env(environ, ENV_BUILD_DIR),
            artifacts_file=getattr(args, "artifacts_file", None)
            or _env(environ, ENV_ARTIFACTS_FILE)
            or ARTIFACTS_FILE,
        )
