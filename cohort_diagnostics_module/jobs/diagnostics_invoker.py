"""Assembly and invocation of the diagnostics engine argument record."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Mapping

from pydantic import ValidationError

from cohort_diagnostics_module.adapters import CohortDiagnosticsEnginePort, DiagnosticsInvocation
from cohort_diagnostics_module.domain import (
    CohortDefinitionSet,
    ConfigurationError,
    DiagnosticsAnalysisSettings,
    JobContext,
    ResultsFileError,
)

logger = logging.getLogger(__name__)

_REQUIRED_EXECUTION_FIELDS: tuple[tuple[str, str], ...] = (
    ("database_id", "databaseId"),
    ("connection_details", "connectionDetails"),
    ("cdm_database_schema", "cdmDatabaseSchema"),
    ("work_database_schema", "workDatabaseSchema"),
    ("results_sub_folder", "resultsSubFolder"),
)


def job_diagnostics_parse_analysis_settings(settings: Mapping[str, Any]) -> DiagnosticsAnalysisSettings:
    """Validate the job-context `settings` section against the accepted options.

    Args:
        settings: Raw analysis settings.

    Returns:
        DiagnosticsAnalysisSettings: Validated analysis options.

    Raises:
        ConfigurationError: Raised when unknown keys are present or a value is invalid.
    """

    try:
        return DiagnosticsAnalysisSettings.model_validate(dict(settings))
    except ValidationError as error:
        unknown_keys = sorted(
            str(detail["loc"][0]) for detail in error.errors() if detail.get("type") == "extra_forbidden"
        )
        if unknown_keys:
            raise ConfigurationError(
                f"Unsupported analysis settings: {', '.join(unknown_keys)}. "
                f"Accepted settings: {', '.join(sorted(DiagnosticsAnalysisSettings.analysis_settings_accepted_keys()))}"
            ) from error
        raise ConfigurationError(f"Analysis settings validation failed. Details: {error}") from error


class DiagnosticsInvoker:
    """Map a validated job context onto one diagnostics engine call."""

    def __init__(self, engine: CohortDiagnosticsEnginePort):
        """Initialize invoker dependencies.

        Args:
            engine: Diagnostics engine.

        Raises:
            ValueError: Raised when engine is missing.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def diagnostics_build_invocation(
        self,
        job_context: JobContext,
        cohort_definition_set: CohortDefinitionSet,
    ) -> DiagnosticsInvocation:
        """Build the explicit argument record for one diagnostics run.

        The execution-level `cohortIds` filter wins; unlike the upstream module,
        which drops the key, the analysis-level `cohortIds` is used as a fallback.

        Args:
            job_context: Validated job context.
            cohort_definition_set: Freshly built cohort definition set.

        Returns:
            DiagnosticsInvocation: Complete argument record.

        Raises:
            ConfigurationError: Raised when analysis settings are invalid or
                required execution settings are missing.
        """

        analysis_settings = job_diagnostics_parse_analysis_settings(job_context.settings)
        execution_settings = job_context.module_execution_settings

        missing_fields = [
            alias for field_name, alias in _REQUIRED_EXECUTION_FIELDS if not getattr(execution_settings, field_name)
        ]
        if missing_fields:
            raise ConfigurationError(f"Execution settings missing required fields: {', '.join(missing_fields)}")
        if analysis_settings.incremental and not execution_settings.work_sub_folder:
            raise ConfigurationError("Execution settings missing workSubFolder required for incremental mode")

        cohort_ids = execution_settings.cohort_ids
        if cohort_ids is None:
            cohort_ids = analysis_settings.cohort_ids

        return DiagnosticsInvocation(
            analysis_settings=analysis_settings,
            cohort_definition_set=cohort_definition_set,
            export_folder=Path(execution_settings.results_sub_folder),
            database_id=execution_settings.database_id,
            connection_details=execution_settings.connection_details,
            cdm_database_schema=execution_settings.cdm_database_schema,
            cohort_database_schema=execution_settings.work_database_schema,
            cohort_table_names=execution_settings.cohort_table_names,
            incremental_folder=Path(execution_settings.work_sub_folder) if execution_settings.work_sub_folder else None,
            min_cell_count=execution_settings.min_cell_count,
            cohort_ids=tuple(cohort_ids) if cohort_ids is not None else None,
        )

    def diagnostics_invoke(self, invocation: DiagnosticsInvocation) -> None:
        """Run the diagnostics engine for one argument record.

        Args:
            invocation: Complete argument record.

        Raises:
            ResultsFileError: Raised when the export folder cannot be created.
        """

        try:
            invocation.export_folder.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            raise ResultsFileError(f"Cannot create export folder {invocation.export_folder}: {error}") from error

        logger.info(
            "Executing cohort diagnostics for databaseId=%s on %s (%d cohorts, minCellCount=%d)",
            invocation.database_id,
            invocation.connection_details.connection_details_describe(),
            len(invocation.cohort_definition_set),
            invocation.min_cell_count,
        )
        self._engine.engine_execute_diagnostics(invocation)
