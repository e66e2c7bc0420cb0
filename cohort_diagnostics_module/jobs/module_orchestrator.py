"""Job-layer entry points exposed to the orchestration framework."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping, TypeVar

from cohort_diagnostics_module.adapters import CohortDiagnosticsEnginePort, CohortExpressionCompilerPort
from cohort_diagnostics_module.domain import JobContext, ModuleMetadata, domain_build_stage_event

from .cohort_definition_set_builder import CohortDefinitionSetBuilder
from .diagnostics_invoker import DiagnosticsInvoker
from .interfaces import JobExecutionResult, JobModulePort
from .job_context_validation import job_context_validate
from .results_callbacks import ResultsDatabaseCallbacks
from .results_manifest import ResultManifestRewriter

logger = logging.getLogger(__name__)

_StageResult = TypeVar("_StageResult")


class CohortDiagnosticsModule(JobModulePort):
    """Cohort diagnostics module wired to one diagnostics engine."""

    EXECUTE_JOB_NAME = "execute"
    UPLOAD_RESULTS_JOB_NAME = "upload_results"
    CREATE_SCHEMA_JOB_NAME = "create_data_model_schema"

    def __init__(
        self,
        engine: CohortDiagnosticsEnginePort,
        compiler: CohortExpressionCompilerPort,
        module_metadata: ModuleMetadata,
    ):
        """Initialize module dependencies.

        Args:
            engine: Diagnostics engine.
            compiler: Cohort expression compiler.
            module_metadata: Static module metadata resolved at process start.

        Raises:
            ValueError: Raised when a dependency is missing.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        if compiler is None:
            raise ValueError("compiler must not be None")
        if module_metadata is None:
            raise ValueError("module_metadata must not be None")

        self._engine = engine
        self._module_metadata = module_metadata
        self._cohort_set_builder = CohortDefinitionSetBuilder(compiler=compiler, engine=engine)
        self._diagnostics_invoker = DiagnosticsInvoker(engine=engine)
        self._results_callbacks = ResultsDatabaseCallbacks(engine=engine, module_metadata=module_metadata)
        self._last_timeline: tuple[dict[str, object], ...] = ()

    @property
    def last_timeline(self) -> tuple[dict[str, object], ...]:
        """Stage events of the most recent entry-point call, including failed ones."""

        return self._last_timeline

    def module_execute(self, job_context: Mapping[str, Any] | JobContext) -> JobExecutionResult:
        """Validate, build cohorts, run diagnostics, and rewrite the results manifest.

        Args:
            job_context: Raw or validated job-context document.

        Returns:
            JobExecutionResult: Successful execution payload with stage timeline.

        Raises:
            ConfigurationError: Raised when the job context or settings are invalid.
            CompilationError: Raised when a cohort expression cannot be compiled.
            ResultsFileError: Raised when result files cannot be rewritten.
        """

        timeline: list[dict[str, object]] = [domain_build_stage_event(stage="run", status="started")]
        self._last_timeline = ()
        try:
            validated_context = self._job_run_stage(timeline, "validate", lambda: job_context_validate(job_context))

            logger.info("Creating cohort definition set from job context")
            cohort_definition_set = self._job_run_stage(
                timeline,
                "cohort_definition_set",
                lambda: self._cohort_set_builder.cohort_set_build_from_shared_resources(
                    validated_context.shared_resources
                ),
                details_builder=lambda result: {
                    "cohort_count": len(result),
                    "cohort_ids": list(result.cohort_set_ids()),
                },
            )

            invocation = self._job_run_stage(
                timeline,
                "diagnostics_arguments",
                lambda: self._diagnostics_invoker.diagnostics_build_invocation(
                    job_context=validated_context,
                    cohort_definition_set=cohort_definition_set,
                ),
            )
            self._job_run_stage(
                timeline,
                "diagnostics",
                lambda: self._diagnostics_invoker.diagnostics_invoke(invocation),
                details_builder=lambda _: {"export_folder": str(invocation.export_folder)},
            )

            rewriter = ResultManifestRewriter(
                module_metadata=self._module_metadata,
                results_specification_path=self._engine.engine_results_specification_path(),
            )
            self._job_run_stage(
                timeline,
                "results_manifest",
                lambda: rewriter.manifest_rewrite(
                    export_folder=invocation.export_folder,
                    database_id=invocation.database_id,
                ),
                details_builder=lambda result: {
                    "retained_row_count": result.retained_row_count,
                    "renamed_table_count": len(result.renamed_tables),
                    "archive_removed": result.archive_removed,
                },
            )
        except Exception as error:
            self._job_finalize_failure(timeline, self.EXECUTE_JOB_NAME, error)
            raise

        return self._job_finalize_success(timeline, self.EXECUTE_JOB_NAME)

    def module_upload_results_callback(self, job_context: Mapping[str, Any] | JobContext) -> JobExecutionResult:
        """Upload this database's results archive.

        Args:
            job_context: Raw or validated job-context document.

        Returns:
            JobExecutionResult: Successful execution payload with stage timeline.

        Raises:
            ConfigurationError: Raised when results database settings are missing.
        """

        timeline: list[dict[str, object]] = [domain_build_stage_event(stage="run", status="started")]
        self._last_timeline = ()
        try:
            validated_context = self._job_run_stage(timeline, "validate", lambda: job_context_validate(job_context))
            self._job_run_stage(
                timeline,
                "upload_results",
                lambda: self._results_callbacks.callback_upload_results(validated_context),
                details_builder=lambda zip_file_name: {"zip_file_name": zip_file_name},
            )
        except Exception as error:
            self._job_finalize_failure(timeline, self.UPLOAD_RESULTS_JOB_NAME, error)
            raise

        return self._job_finalize_success(timeline, self.UPLOAD_RESULTS_JOB_NAME)

    def module_create_data_model_schema(self, job_context: Mapping[str, Any] | JobContext) -> JobExecutionResult:
        """Create this module's results tables.

        Args:
            job_context: Raw or validated job-context document.

        Returns:
            JobExecutionResult: Successful execution payload with stage timeline.

        Raises:
            ConfigurationError: Raised when results database settings are missing.
        """

        timeline: list[dict[str, object]] = [domain_build_stage_event(stage="run", status="started")]
        self._last_timeline = ()
        try:
            validated_context = self._job_run_stage(timeline, "validate", lambda: job_context_validate(job_context))
            self._job_run_stage(
                timeline,
                "create_results_schema",
                lambda: self._results_callbacks.callback_create_data_model_schema(validated_context),
            )
        except Exception as error:
            self._job_finalize_failure(timeline, self.CREATE_SCHEMA_JOB_NAME, error)
            raise

        return self._job_finalize_success(timeline, self.CREATE_SCHEMA_JOB_NAME)

    def _job_run_stage(
        self,
        timeline: list[dict[str, object]],
        stage: str,
        operation: Callable[[], _StageResult],
        details_builder: Callable[[_StageResult], dict[str, Any]] | None = None,
    ) -> _StageResult:
        """Run one stage and record its started/completed/failed events.

        Args:
            timeline: Mutable stage timeline.
            stage: Stage name.
            operation: Stage body.
            details_builder: Optional builder of completion details from the stage result.

        Returns:
            _StageResult: Value returned by the stage body.

        Raises:
            Exception: Any failure of the stage body, re-raised unchanged.
        """

        timeline.append(domain_build_stage_event(stage=stage, status="started"))
        logger.debug("Stage %s started", stage)
        try:
            result = operation()
        except Exception as error:
            timeline.append(domain_build_stage_event(stage=stage, status="failed", error=error))
            logger.error("Stage %s failed: %s", stage, error)
            raise

        details = details_builder(result) if details_builder is not None else None
        timeline.append(domain_build_stage_event(stage=stage, status="completed", details=details))
        logger.debug("Stage %s completed", stage)
        return result

    def _job_finalize_success(self, timeline: list[dict[str, object]], job_name: str) -> JobExecutionResult:
        timeline.append(domain_build_stage_event(stage="run", status="success"))
        self._last_timeline = tuple(timeline)
        logger.info("Job %s completed", job_name)
        return JobExecutionResult(job_name=job_name, status="success", timeline=self._last_timeline)

    def _job_finalize_failure(self, timeline: list[dict[str, object]], job_name: str, error: BaseException) -> None:
        timeline.append(domain_build_stage_event(stage="run", status="failed", error=error))
        self._last_timeline = tuple(timeline)
        logger.error("Job %s failed with %s: %s", job_name, type(error).__name__, error)
