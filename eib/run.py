from __future__ import annotations

import argparse
import dataclasses
import json
import shutil
import sys
import tempfile

from .config import ENV_ARTIFACTS_FILE, ENV_BUILD_DIR, ENV_CONFIG_DIR, ENV_DEFINITION_FILE, BuildArgs
from .models import PipelineResult
from .pipeline import BuildPipeline, Stage
from .version import SUPPORTED_SCHEMA_VERSIONS, __version__


def _build_args(args: argparse.Namespace) -> BuildArgs | None:
    try:
        return BuildArgs.from_namespace(args)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return None


def _finish(args: argparse.Namespace, result: PipelineResult) -> int:
    if not result.succeeded and result.log_file is not None:
        print(f"Build log: {result.log_file}")
    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    return result.exit_code


def cmd_build(args: argparse.Namespace) -> int:
    build_args = _build_args(args)
    if build_args is None:
        return 2
    return _finish(args, BuildPipeline(build_args).run())


def cmd_validate(args: argparse.Namespace) -> int:
    build_args = _build_args(args)
    if build_args is None:
        return 2

    # Keep validation runs out of the configuration directory. The temporary
    # root is removed after a clean run and kept on failure for its build log.
    temp_root = None
    if not build_args.root_build_dir:
        temp_root = tempfile.mkdtemp(prefix="eib-")
        build_args = dataclasses.replace(build_args, root_build_dir=temp_root)

    result = BuildPipeline(build_args).run_until(Stage.VALIDATE)
    if result.succeeded:
        print("The specified image definition is valid.")
        if temp_root is not None:
            shutil.rmtree(temp_root, ignore_errors=True)
    return _finish(args, result)


def cmd_version(args: argparse.Namespace) -> int:
    print(f"Edge Image Builder version: {__version__}")
    print(f"Supported schema versions: {', '.join(SUPPORTED_SCHEMA_VERSIONS)}")
    return 0


def _add_definition_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config-dir",
        help=f"Full path to the image configuration directory (default: ${ENV_CONFIG_DIR}).",
    )
    parser.add_argument(
        "--definition-file",
        help=f"Name of the image definition file in the configuration directory (default: ${ENV_DEFINITION_FILE} or definition.yaml).",
    )
    parser.add_argument(
        "--artifacts-file",
        help=f"Artifact sources metadata file, relative to the working directory (default: ${ENV_ARTIFACTS_FILE} or artifacts.yaml).",
    )
    parser.add_argument("--json", action="store_true", help="Print the pipeline result as JSON.")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="eib", description="Edge Image Builder")
    subparsers = parser.add_subparsers(dest="command", required=True)

    build_parser_ = subparsers.add_parser("build", help="Build a new image")
    _add_definition_arguments(build_parser_)
    build_parser_.add_argument(
        "--build-dir",
        help=f"Root directory for per-run build directories (default: ${ENV_BUILD_DIR} or <config-dir>/_build).",
    )
    build_parser_.set_defaults(func=cmd_build)

    validate_parser = subparsers.add_parser("validate", help="Validate an image definition without building")
    _add_definition_arguments(validate_parser)
    validate_parser.set_defaults(func=cmd_validate)

    version_parser = subparsers.add_parser("version", help="Show version and supported schema versions")
    version_parser.set_defaults(func=cmd_version)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
