from __future__ import annotations

from pathlib import Path

from eib.definition import parse_definition
from eib.models import ArtifactCatalog
from eib.pipeline import assemble_context
from eib.validation import (
    FailedValidation,
    build_validation_error,
    validate_context,
    validate_image,
    validate_kubernetes,
    validate_users,
)


def _context(tmp_path: Path, definition_text: str, catalog=None):
    definition = parse_definition(definition_text.encode())
    catalog = ArtifactCatalog.from_dict(tmp_path / "artifacts.yaml", catalog or {})
    return assemble_context(tmp_path / "build", tmp_path / "c", tmp_path / "a", tmp_path, definition, catalog)


def _with_base_image(tmp_path: Path, name: str = "slemicro.iso") -> None:
    (tmp_path / "base-images").mkdir(exist_ok=True)
    (tmp_path / "base-images" / name).write_bytes(b"iso")


GOOD_IMAGE = """
apiVersion: "1.1"
image:
  imageType: iso
  arch: x86_64
  baseImage: slemicro.iso
  outputImageName: out.iso
"""


def test_valid_image_passes(tmp_path: Path) -> None:
    _with_base_image(tmp_path)
    assert validate_context(_context(tmp_path, GOOD_IMAGE)) == []


def test_image_rules_collect_every_failure(tmp_path: Path) -> None:
    ctx = _context(
        tmp_path,
        """
apiVersion: "1.1"
image:
  imageType: qcow2
  arch: sparc
  baseImage: missing.iso
""",
    )
    messages = [failure.user_message for failure in validate_image(ctx)]
    assert len(messages) == 4
    assert any("imageType" in message for message in messages)
    assert any("arch" in message for message in messages)
    assert any("outputImageName" in message for message in messages)
    assert any("missing.iso" in message for message in messages)


def test_users_require_unique_names(tmp_path: Path) -> None:
    ctx = _context(
        tmp_path,
        """
apiVersion: "1.1"
operatingSystem:
  users:
    - username: alice
    - username: alice
    - encryptedPassword: x
""",
    )
    messages = [failure.user_message for failure in validate_users(ctx)]
    assert messages == [
        "Duplicate username found: alice",
        "The 'username' field is required for all entries under 'users'.",
    ]


def test_username_must_be_a_string(tmp_path: Path) -> None:
    ctx = _context(
        tmp_path,
        """
apiVersion: "1.1"
operatingSystem:
  users:
    - username: [alice]
    - username: {name: bob}
    - username: carol
""",
    )
    messages = [failure.user_message for failure in validate_users(ctx)]
    assert messages == ["The 'username' field must be a string."] * 2


def test_kubernetes_version_needs_catalog_sources(tmp_path: Path) -> None:
    text = 'apiVersion: "1.1"\nkubernetes:\n  version: v1.28.0+rke2r1\n'

    assert validate_kubernetes(_context(tmp_path, text, {"kubernetes": {"rke2": {}}})) == []

    failures = validate_kubernetes(_context(tmp_path, text, {"kubernetes": {"k3s": {}}}))
    assert len(failures) == 1
    assert "rke2" in failures[0].user_message


def test_kubernetes_version_must_name_distribution(tmp_path: Path) -> None:
    failures = validate_kubernetes(_context(tmp_path, 'apiVersion: "1.1"\nkubernetes:\n  version: v1.28.0\n'))
    assert len(failures) == 1


def test_custom_rules_are_all_run(tmp_path: Path) -> None:
    calls = []

    def rule(name):
        def _rule(ctx):
            calls.append(name)
            return [FailedValidation("Test", f"{name} failed")]

        return _rule

    failures = validate_context(_context(tmp_path, GOOD_IMAGE), rules=[rule("first"), rule("second")])
    assert calls == ["first", "second"]
    assert len(failures) == 2


def test_validation_error_groups_by_component() -> None:
    error = build_validation_error(
        [
            FailedValidation("Image", "bad arch"),
            FailedValidation("Operating System", "bad user"),
            FailedValidation("Image", "bad type"),
        ]
    )
    assert error.user_message.splitlines() == [
        "Image definition validation found the following errors:",
        "  Image",
        "    bad arch",
        "    bad type",
        "  Operating System",
        "    bad user",
    ]
    assert len(error.failures) == 3
    assert error.log_message is None
