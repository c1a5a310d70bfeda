"""Loading of the user supplied image definition."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import yaml

from .errors import DefinitionParseError, InvalidSchemaVersionError, UserInputError
from .models import ImageDefinition
from .version import SUPPORTED_SCHEMA_VERSIONS

DEFAULT_DEFINITION_FILE = "definition.yaml"


def parse_definition(data: bytes) -> ImageDefinition:
    try:
        payload = yaml.safe_load(data)
    except yaml.YAMLError as exc:
        raise DefinitionParseError(f"invalid YAML: {exc}") from exc

    if not isinstance(payload, Mapping):
        raise DefinitionParseError("definition must contain a YAML mapping")

    version = payload.get("apiVersion")
    if version is None:
        raise DefinitionParseError("definition is missing the 'apiVersion' field")
    # Unquoted YAML versions such as 1.0 decode as floats.
    if str(version) not in SUPPORTED_SCHEMA_VERSIONS:
        raise InvalidSchemaVersionError(version)

    for section in ("image", "operatingSystem", "kubernetes"):
        value = payload.get(section)
        if value is not None and not isinstance(value, Mapping):
            raise DefinitionParseError(f"'{section}' must be a mapping, got {type(value).__name__}")

    normalized: dict[str, Any] = dict(payload)
    normalized["apiVersion"] = str(version)
    return ImageDefinition.from_dict(normalized)


def check_config_dir(config_dir: str | Path) -> None:
    """Raise ``UserInputError`` unless the image configuration directory exists."""

    try:
        os.stat(config_dir)
    except FileNotFoundError:
        raise UserInputError(
            f"The specified image configuration directory '{config_dir}' could not be found."
        ) from None
    except OSError as exc:
        raise UserInputError(
            f"Unable to check the filesystem for the image configuration directory '{config_dir}'.",
            f"Reading image config dir failed: {exc}",
        ) from exc

    if not Path(config_dir).is_dir():
        raise UserInputError(
            f"The specified image configuration directory '{config_dir}' could not be found."
        )


def load_definition(config_dir: str | Path, file_name: str) -> ImageDefinition:
    definition_path = Path(config_dir) / file_name

    try:
        data = definition_path.read_bytes()
    except FileNotFoundError:
        raise UserInputError(
            f"The specified definition file '{definition_path}' could not be found."
        ) from None
    except OSError as exc:
        raise UserInputError(
            f"The specified definition file '{definition_path}' could not be read.",
            f"Reading definition file failed: {exc}",
        ) from exc

    try:
        return parse_definition(data)
    except InvalidSchemaVersionError as exc:
        message = (
            "Invalid schema version specified. This version of Edge Image Builder "
            f"supports the following schema versions: {', '.join(SUPPORTED_SCHEMA_VERSIONS)}"
        )
        raise UserInputError(message, message) from exc
    except DefinitionParseError as exc:
        raise UserInputError(
            f"The image definition file '{definition_path}' could not be parsed.",
            f"Parsing definition file failed: {exc}",
        ) from exc
