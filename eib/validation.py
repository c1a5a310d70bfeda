"""Semantic checks run against an assembled build context.

Every rule is run and every failure is collected so a single report can
list all problems before any build work starts.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional, Sequence

from .errors import ValidationError
from .log import BuildLogger
from .models import BuildContext

IMAGE_COMPONENT = "Image"
OS_COMPONENT = "Operating System"
KUBERNETES_COMPONENT = "Kubernetes"

IMAGE_TYPES = ("iso", "raw")
ARCHITECTURES = ("x86_64", "aarch64")
BASE_IMAGES_DIR = "base-images"
KUBERNETES_DISTRIBUTIONS = ("k3s", "rke2")


@dataclass(frozen=True)
class FailedValidation:
    component: str
    user_message: str
    error: Optional[str] = None


ValidationRule = Callable[[BuildContext], List[FailedValidation]]


def validate_image(ctx: BuildContext) -> List[FailedValidation]:
    image = ctx.definition.image
    failures: List[FailedValidation] = []

    if not image.image_type:
        failures.append(FailedValidation(IMAGE_COMPONENT, "The 'imageType' field is required in the 'image' section."))
    elif image.image_type not in IMAGE_TYPES:
        failures.append(
            FailedValidation(
                IMAGE_COMPONENT,
                f"The 'imageType' field must be one of: {', '.join(IMAGE_TYPES)}",
            )
        )

    if not image.arch:
        failures.append(FailedValidation(IMAGE_COMPONENT, "The 'arch' field is required in the 'image' section."))
    elif image.arch not in ARCHITECTURES:
        failures.append(
            FailedValidation(
                IMAGE_COMPONENT,
                f"The 'arch' field must be one of: {', '.join(ARCHITECTURES)}",
            )
        )

    if not image.output_image_name:
        failures.append(
            FailedValidation(IMAGE_COMPONENT, "The 'outputImageName' field is required in the 'image' section.")
        )

    if not image.base_image:
        failures.append(FailedValidation(IMAGE_COMPONENT, "The 'baseImage' field is required in the 'image' section."))
    else:
        base_image_path = Path(ctx.config_dir) / BASE_IMAGES_DIR / image.base_image
        if not base_image_path.is_file():
            failures.append(
                FailedValidation(
                    IMAGE_COMPONENT,
                    f"The specified base image '{image.base_image}' cannot be found.",
                    f"base image not found at {base_image_path}",
                )
            )

    return failures


def validate_users(ctx: BuildContext) -> List[FailedValidation]:
    users = ctx.definition.operating_system.get("users") or ()
    if not isinstance(users, (list, tuple)):
        return [FailedValidation(OS_COMPONENT, "The 'users' field must be a list.")]

    failures: List[FailedValidation] = []
    seen = set()
    for user in users:
        username = user.get("username") if isinstance(user, Mapping) else None
        if not username:
            failures.append(FailedValidation(OS_COMPONENT, "The 'username' field is required for all entries under 'users'."))
            continue
        if not isinstance(username, str):
            failures.append(FailedValidation(OS_COMPONENT, "The 'username' field must be a string."))
            continue
        if username in seen:
            failures.append(FailedValidation(OS_COMPONENT, f"Duplicate username found: {username}"))
        seen.add(username)
    return failures


def validate_kubernetes(ctx: BuildContext) -> List[FailedValidation]:
    version = ctx.definition.kubernetes.get("version")
    if not version:
        return []

    version = str(version)
    distribution = next((name for name in KUBERNETES_DISTRIBUTIONS if name in version), None)
    if distribution is None:
        return [
            FailedValidation(
                KUBERNETES_COMPONENT,
                f"Kubernetes version '{version}' does not name a supported distribution: "
                f"{', '.join(KUBERNETES_DISTRIBUTIONS)}",
            )
        ]

    sources = ctx.artifact_catalog.get("kubernetes") or {}
    if distribution not in sources:
        return [
            FailedValidation(
                KUBERNETES_COMPONENT,
                f"Artifact sources for Kubernetes distribution '{distribution}' are not available.",
                f"'{distribution}' missing from kubernetes section of {ctx.artifact_catalog.path}",
            )
        ]
    return []


DEFAULT_RULES: Sequence[ValidationRule] = (validate_image, validate_users, validate_kubernetes)


def validate_context(
    ctx: BuildContext,
    rules: Sequence[ValidationRule] = DEFAULT_RULES,
) -> List[FailedValidation]:
    failures: List[FailedValidation] = []
    for rule in rules:
        failures.extend(rule(ctx))
    return failures


def build_validation_error(
    failures: Sequence[FailedValidation],
    logger: Optional[BuildLogger] = None,
) -> ValidationError:
    """Render all failures into one user-facing message, logging the detail."""

    by_component: Dict[str, List[FailedValidation]] = {}
    for failure in failures:
        by_component.setdefault(failure.component, []).append(failure)

    lines = ["Image definition validation found the following errors:"]
    for component, component_failures in by_component.items():
        lines.append(f"  {component}")
        for failure in component_failures:
            lines.append(f"    {failure.user_message}")
            if logger is not None:
                if failure.error:
                    logger.error("%s: %s (%s)", component, failure.user_message, failure.error)
                else:
                    logger.error("%s: %s", component, failure.user_message)

    return ValidationError("\n".join(lines), failures)
