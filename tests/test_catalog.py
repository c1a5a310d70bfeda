from pathlib import Path

import pytest

from eib.catalog import load_artifact_catalog
from eib.errors import CatalogError


def test_catalog_loads_artifact_sources(tmp_path: Path) -> None:
    catalog_path = tmp_path / "artifacts.yaml"
    catalog_path.write_text(
        """
metallb:
  chart: metallb
  repository: https://suse-edge.github.io/charts
  version: 0.14.3
kubernetes:
  k3s:
    selinuxPackage: k3s-selinux
"""
    )
    catalog = load_artifact_catalog("artifacts.yaml", base_dir=tmp_path)
    assert len(catalog) == 2
    assert "metallb" in catalog
    assert catalog.component_version("metallb") == "0.14.3"
    assert catalog.component_version("kubernetes") is None
    assert "k3s" in catalog.get("kubernetes")


def test_catalog_reads_from_working_directory(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    (tmp_path / "artifacts.yaml").write_text("metallb:\n  version: 1.0.0\n")
    monkeypatch.chdir(tmp_path)
    catalog = load_artifact_catalog()
    assert catalog.component_version("metallb") == "1.0.0"


def test_catalog_is_read_only(tmp_path: Path) -> None:
    (tmp_path / "artifacts.yaml").write_text("metallb:\n  version: 1.0.0\n")
    catalog = load_artifact_catalog("artifacts.yaml", base_dir=tmp_path)
    with pytest.raises(TypeError):
        catalog.components["extra"] = {}  # type: ignore[index]


def test_missing_catalog_names_file(tmp_path: Path) -> None:
    with pytest.raises(CatalogError, match="artifact sources file 'artifacts.yaml' does not exist"):
        load_artifact_catalog("artifacts.yaml", base_dir=tmp_path)


def test_undecodable_catalog(tmp_path: Path) -> None:
    (tmp_path / "artifacts.yaml").write_text("metallb: [unterminated\n")
    with pytest.raises(CatalogError, match="decoding artifacts sources"):
        load_artifact_catalog("artifacts.yaml", base_dir=tmp_path)


def test_catalog_must_be_a_mapping(tmp_path: Path) -> None:
    (tmp_path / "artifacts.yaml").write_text("- metallb\n- elemental\n")
    with pytest.raises(CatalogError, match="expected a mapping"):
        load_artifact_catalog("artifacts.yaml", base_dir=tmp_path)
