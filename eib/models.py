from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Iterator, List, Mapping, Optional


def _freeze_value(value: Any) -> Any:
    if isinstance(value, Mapping):
        return MappingProxyType({key: _freeze_value(item) for key, item in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze_value(item) for item in value)
    return value


def _frozen(data: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    """Deep read-only copy: mappings become proxies, lists become tuples."""

    return _freeze_value(dict(data or {}))


@dataclass(frozen=True)
class ImageSection:
    """The ``image`` block of a definition file."""

    image_type: str = ""
    arch: str = ""
    base_image: str = ""
    output_image_name: str = ""

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ImageSection":
        return cls(
            image_type=str(data.get("imageType", "") or ""),
            arch=str(data.get("arch", "") or ""),
            base_image=str(data.get("baseImage", "") or ""),
            output_image_name=str(data.get("outputImageName", "") or ""),
        )


@dataclass(frozen=True)
class ImageDefinition:
    """Parsed, versioned image definition.

    Only ``api_version`` and the ``image`` block are interpreted here; the
    remaining sections are kept as deep read-only mappings for later stages.
    """

    api_version: str
    image: ImageSection = field(default_factory=ImageSection)
    operating_system: Mapping[str, Any] = field(default_factory=dict)
    kubernetes: Mapping[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ImageDefinition":
        return cls(
            api_version=str(data["apiVersion"]),
            image=ImageSection.from_dict(data.get("image") or {}),
            operating_system=_frozen(data.get("operatingSystem")),
            kubernetes=_frozen(data.get("kubernetes")),
        )


@dataclass(frozen=True)
class ArtifactCatalog:
    """Artifact sources metadata shipped alongside the tool."""

    path: Path
    components: Mapping[str, Mapping[str, Any]] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, path: Path, data: Mapping[str, Any]) -> "ArtifactCatalog":
        components = {
            str(name): _frozen(entry if isinstance(entry, Mapping) else {"value": entry})
            for name, entry in data.items()
        }
        return cls(path=Path(path), components=MappingProxyType(components))

    def get(self, name: str) -> Optional[Mapping[str, Any]]:
        return self.components.get(name)

    def component_version(self, name: str) -> Optional[str]:
        entry = self.components.get(name)
        if entry is None or entry.get("version") is None:
            return None
        return str(entry["version"])

    def __iter__(self) -> Iterator[str]:
        return iter(self.components)

    def __len__(self) -> int:
        return len(self.components)

    def __contains__(self, name: object) -> bool:
        return name in self.components


@dataclass(frozen=True)
class BuildContext:
    """Everything a build executor needs; assembled once per run."""

    config_dir: Path
    build_dir: Path
    combustion_dir: Path
    artefacts_dir: Path
    definition: ImageDefinition
    artifact_catalog: ArtifactCatalog


@dataclass
class PipelineResult:
    """Terminal outcome of a pipeline run."""

    status: str
    stage: str
    kind: Optional[str] = None
    detail: Optional[str] = None
    build_dir: Optional[Path] = None
    log_file: Optional[Path] = None
    completed_stages: List[str] = field(default_factory=list)

    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def succeeded(self) -> bool:
        return self.status == self.SUCCEEDED

    @property
    def exit_code(self) -> int:
        return 0 if self.succeeded else 1

    def to_dict(self) -> Dict[str, Any]:
        return {
            "status": self.status,
            "stage": self.stage,
            "kind": self.kind,
            "detail": self.detail,
            "build_dir": str(self.build_dir) if self.build_dir else None,
            "log_file": str(self.log_file) if self.log_file else None,
            "completed_stages": list(self.completed_stages),
        }
