from __future__ import annotations

import datetime as _dt
from enum import Enum, auto
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional, Sequence

from .catalog import load_artifact_catalog
from .config import BuildArgs
from .definition import check_config_dir, load_definition
from .errors import (
    BuildEnvironmentError,
    BuildExecutionError,
    CatalogError,
    ExecutionFault,
    StageError,
)
from .executor import BuildExecutor, ContextManifestExecutor
from .log import BuildLogger
from .models import ArtifactCatalog, BuildContext, ImageDefinition, PipelineResult
from .validation import FailedValidation, build_validation_error, validate_context
from .workspace import provision_build_dir, provision_combustion_dirs, provision_root_dir

BUILD_LOG_FILENAME = "eib-build.log"
CHECK_BUILD_LOG_MESSAGE = (
    f"Please check the {BUILD_LOG_FILENAME} file under the build directory for more information."
)

Validator = Callable[[BuildContext], Sequence[FailedValidation]]


class Stage(Enum):
    RESOLVE_ROOT_DIR = auto()
    CREATE_BUILD_DIR = auto()
    CONFIGURE_LOGGING = auto()
    CHECK_CONFIG_DIR = auto()
    LOAD_DEFINITION = auto()
    CREATE_COMBUSTION_DIRS = auto()
    LOAD_ARTIFACT_CATALOG = auto()
    ASSEMBLE_CONTEXT = auto()
    VALIDATE = auto()
    EXECUTE = auto()

    @classmethod
    def ordered(cls) -> Iterable["Stage"]:
        return (
            cls.RESOLVE_ROOT_DIR,
            cls.CREATE_BUILD_DIR,
            cls.CONFIGURE_LOGGING,
            cls.CHECK_CONFIG_DIR,
            cls.LOAD_DEFINITION,
            cls.CREATE_COMBUSTION_DIRS,
            cls.LOAD_ARTIFACT_CATALOG,
            cls.ASSEMBLE_CONTEXT,
            cls.VALIDATE,
            cls.EXECUTE,
        )


def assemble_context(
    build_dir: Path,
    combustion_dir: Path,
    artefacts_dir: Path,
    config_dir: Path,
    definition: ImageDefinition,
    artifact_catalog: ArtifactCatalog,
) -> BuildContext:
    """Assemble the build context from already loaded inputs."""

    return BuildContext(
        config_dir=Path(config_dir),
        build_dir=Path(build_dir),
        combustion_dir=Path(combustion_dir),
        artefacts_dir=Path(artefacts_dir),
        definition=definition,
        artifact_catalog=artifact_catalog,
    )


class BuildPipeline:
    """Runs the setup stages in order and hands the context to the executor.

    Each stage runs at most once. The first failure stops the run and is
    reported through the audit channel and, once it exists, the build log.
    Nothing here exits the process; callers map the returned
    ``PipelineResult`` to an exit status.
    """

    def __init__(
        self,
        args: BuildArgs,
        *,
        executor: Optional[BuildExecutor] = None,
        logger: Optional[BuildLogger] = None,
        validator: Validator = validate_context,
        now: Optional[_dt.datetime] = None,
    ) -> None:
        self.args = args
        self.logger = logger or BuildLogger()
        self.executor = executor or ContextManifestExecutor(self.logger, args.definition_file)
        self.validator = validator
        self.now = now

        self.completed_stages: List[Stage] = []
        self.root_build_dir: Optional[Path] = None
        self.build_dir: Optional[Path] = None
        self.combustion_dir: Optional[Path] = None
        self.artefacts_dir: Optional[Path] = None
        self.definition: Optional[ImageDefinition] = None
        self.artifact_catalog: Optional[ArtifactCatalog] = None
        self.context: Optional[BuildContext] = None

        self._logging_configured = False
        self._started = False
        self._handlers: Dict[Stage, Callable[[], None]] = {
            Stage.RESOLVE_ROOT_DIR: self._resolve_root_dir,
            Stage.CREATE_BUILD_DIR: self._create_build_dir,
            Stage.CONFIGURE_LOGGING: self._configure_logging,
            Stage.CHECK_CONFIG_DIR: self._check_config_dir,
            Stage.LOAD_DEFINITION: self._load_definition,
            Stage.CREATE_COMBUSTION_DIRS: self._create_combustion_dirs,
            Stage.LOAD_ARTIFACT_CATALOG: self._load_artifact_catalog,
            Stage.ASSEMBLE_CONTEXT: self._assemble_context,
            Stage.VALIDATE: self._validate,
            Stage.EXECUTE: self._execute,
        }

    def run(self) -> PipelineResult:
        return self.run_until(Stage.EXECUTE)

    def run_until(self, target_stage: Stage) -> PipelineResult:
        if self._started:
            raise RuntimeError("A build pipeline can only be run once.")
        self._started = True

        try:
            for stage in Stage.ordered():
                try:
                    self._handlers[stage]()
                except StageError as exc:
                    self._report(stage, exc)
                    return self._result(PipelineResult.FAILED, stage, exc)
                self.completed_stages.append(stage)
                if stage is target_stage:
                    break
            self.logger.info("Pipeline completed stage %s", self.completed_stages[-1].name.lower())
            return self._result(PipelineResult.SUCCEEDED, self.completed_stages[-1])
        finally:
            self.logger.close()

    def _result(self, status: str, stage: Stage, exc: Optional[StageError] = None) -> PipelineResult:
        return PipelineResult(
            status=status,
            stage=stage.name.lower(),
            kind=exc.kind if exc else None,
            detail=(exc.log_message or exc.user_message) if exc else None,
            build_dir=self.build_dir,
            log_file=self.logger.log_file,
            completed_stages=[s.name.lower() for s in self.completed_stages],
        )

    def _report(self, stage: Stage, exc: StageError) -> None:
        self.logger.debug("Stage %s failed (%s)", stage.name.lower(), exc.kind)
        if isinstance(exc, (BuildEnvironmentError, ExecutionFault)):
            if self._logging_configured and not isinstance(exc, ExecutionFault):
                self.logger.audit("%s %s", exc.user_message, CHECK_BUILD_LOG_MESSAGE)
            else:
                self.logger.audit(exc.user_message)
            cause = exc.__cause__
            with_trace = isinstance(exc, ExecutionFault) and not isinstance(cause, BuildExecutionError)
            self.logger.fatal(exc.log_message or exc.user_message, exc_info=cause if with_trace else None)
            return

        # Problems the user can fix: say what is wrong, then where to look.
        self.logger.audit(exc.user_message)
        if exc.log_message:
            self.logger.error(exc.log_message)
        self.logger.audit(CHECK_BUILD_LOG_MESSAGE)

    def _resolve_root_dir(self) -> None:
        try:
            self.root_build_dir = provision_root_dir(self.args.root_build_dir, self.args.config_dir)
        except BuildEnvironmentError as exc:
            raise BuildEnvironmentError(
                "The root build directory could not be set up under the configuration "
                f"directory '{self.args.config_dir}'.",
                exc.log_message,
            ) from exc

    def _create_build_dir(self) -> None:
        assert self.root_build_dir is not None
        try:
            self.build_dir = provision_build_dir(self.root_build_dir, self.now)
        except BuildEnvironmentError as exc:
            raise BuildEnvironmentError("The build directory could not be set up.", exc.log_message) from exc

    def _configure_logging(self) -> None:
        assert self.build_dir is not None
        if self._logging_configured:
            raise RuntimeError("The build log can only be configured once per run.")
        log_file = self.build_dir / BUILD_LOG_FILENAME
        try:
            self.logger.configure(log_file)
        except OSError as exc:
            raise BuildEnvironmentError(
                "The build log could not be set up.",
                f"Configuring build log {log_file} failed: {exc}",
            ) from exc
        self._logging_configured = True
        self.logger.info("Build directory: %s", self.build_dir)

    def _check_config_dir(self) -> None:
        check_config_dir(self.args.config_dir)

    def _load_definition(self) -> None:
        self.definition = load_definition(self.args.config_dir, self.args.definition_file)
        self.logger.info("Loaded image definition with schema version %s", self.definition.api_version)

    def _create_combustion_dirs(self) -> None:
        assert self.build_dir is not None
        try:
            self.combustion_dir, self.artefacts_dir = provision_combustion_dirs(self.build_dir)
        except BuildEnvironmentError as exc:
            raise BuildEnvironmentError(
                "Setting up the combustion directory failed.",
                f"Failed to create combustion directories: {exc.log_message}",
            ) from exc

    def _load_artifact_catalog(self) -> None:
        try:
            self.artifact_catalog = load_artifact_catalog(self.args.artifacts_file)
        except CatalogError as exc:
            raise BuildEnvironmentError(
                "Loading artifact sources metadata failed.",
                f"Parsing artifact sources failed: {exc}",
            ) from exc
        self.logger.debug("Loaded %d artifact source entries", len(self.artifact_catalog))

    def _assemble_context(self) -> None:
        assert self.build_dir and self.combustion_dir and self.artefacts_dir
        assert self.definition is not None and self.artifact_catalog is not None
        self.context = assemble_context(
            self.build_dir,
            self.combustion_dir,
            self.artefacts_dir,
            Path(self.args.config_dir),
            self.definition,
            self.artifact_catalog,
        )

    def _validate(self) -> None:
        assert self.context is not None
        failures = list(self.validator(self.context))
        if failures:
            raise build_validation_error(failures, self.logger)

    def _execute(self) -> None:
        assert self.context is not None and self.root_build_dir is not None
        try:
            self.executor.execute(self.context, self.root_build_dir)
        except BuildExecutionError as exc:
            raise ExecutionFault(
                CHECK_BUILD_LOG_MESSAGE,
                f"An error occurred building the image: {exc}",
            ) from exc
        except Exception as exc:
            raise ExecutionFault(
                f"Build failed unexpectedly. {CHECK_BUILD_LOG_MESSAGE}",
                f"Unexpected error occurred: {exc}",
            ) from exc
