"""Typed interfaces for the external cohort diagnostics engine."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any, Protocol

from cohort_diagnostics_module.domain import (
    CohortDefinitionSet,
    CohortSubsetDefinition,
    CohortTableNames,
    ConnectionDetails,
    DiagnosticsAnalysisSettings,
)


@dataclass(frozen=True)
class DiagnosticsInvocation:
    """Complete argument record for one diagnostics execution.

    Attributes:
        analysis_settings: Validated analysis options.
        cohort_definition_set: Cohorts to diagnose.
        export_folder: Folder receiving exported CSV files.
        database_id: Identifier of the CDM database.
        connection_details: CDM database connection details.
        cdm_database_schema: Schema holding the CDM tables.
        cohort_database_schema: Schema holding the cohort tables.
        cohort_table_names: Cohort table family names.
        incremental_folder: Folder holding incremental state.
        min_cell_count: Minimum cell count for exported counts.
        cohort_ids: Optional cohort id filter.
    """

    analysis_settings: DiagnosticsAnalysisSettings
    cohort_definition_set: CohortDefinitionSet
    export_folder: Path
    database_id: str
    connection_details: ConnectionDetails
    cdm_database_schema: str
    cohort_database_schema: str
    cohort_table_names: CohortTableNames
    incremental_folder: Path | None
    min_cell_count: int
    cohort_ids: tuple[int, ...] | None

    def diagnostics_invocation_keyword_arguments(self) -> dict[str, Any]:
        """Render the engine's camelCase keyword map for proxying adapters.

        Analysis options absent from the job context are left out so the engine
        applies its own defaults.

        Returns:
            dict[str, Any]: Keyword arguments keyed by engine parameter name.
        """

        keyword_arguments: dict[str, Any] = self.analysis_settings.model_dump(
            by_alias=True,
            exclude_unset=True,
            exclude={"cohort_ids"},
        )
        keyword_arguments.update(
            {
                "cohortDefinitionSet": self.cohort_definition_set.cohort_set_to_records(),
                "exportFolder": str(self.export_folder),
                "databaseId": self.database_id,
                "connectionDetails": self.connection_details,
                "cdmDatabaseSchema": self.cdm_database_schema,
                "cohortDatabaseSchema": self.cohort_database_schema,
                "cohortTableNames": self.cohort_table_names.model_dump(by_alias=True),
                "minCellCount": self.min_cell_count,
            }
        )
        if self.incremental_folder is not None:
            keyword_arguments["incrementalFolder"] = str(self.incremental_folder)
        if self.cohort_ids is not None:
            keyword_arguments["cohortIds"] = list(self.cohort_ids)
        return keyword_arguments


class CohortExpressionCompilerPort(Protocol):
    """Port definition for compiling cohort expressions into SQL."""

    def compiler_build_cohort_query(self, cohort_expression: dict[str, Any], generate_stats: bool) -> str:
        """Compile one decoded cohort expression into executable SQL.

        Args:
            cohort_expression: Decoded cohort expression object.
            generate_stats: Whether inclusion-rule statistics SQL is generated.

        Returns:
            str: Executable cohort SQL.

        Raises:
            ValueError: Raised when the expression is malformed.
            RuntimeError: Raised when a bridged compiler fails.
        """


class CohortDiagnosticsEnginePort(Protocol):
    """Port definition for the external cohort diagnostics engine."""

    def engine_add_cohort_subset_definition(
        self,
        cohort_definition_set: CohortDefinitionSet,
        subset_definition: CohortSubsetDefinition,
        target_cohort_ids: tuple[int, ...],
    ) -> CohortDefinitionSet:
        """Fold one subset definition into a cohort definition set.

        Args:
            cohort_definition_set: Set to extend.
            subset_definition: Subset definition to apply.
            target_cohort_ids: Cohorts the subset is applied to.

        Returns:
            CohortDefinitionSet: Set with derived subset rows appended.

        Raises:
            ValueError: Raised when the subset definition cannot be applied.
        """

    def engine_execute_diagnostics(self, invocation: DiagnosticsInvocation) -> None:
        """Run diagnostics and write CSV files into the export folder.

        Args:
            invocation: Complete argument record.

        Raises:
            RuntimeError: Raised when diagnostics execution fails.
        """

    def engine_results_specification_path(self) -> Path:
        """Return the engine's static results-specification CSV path.

        Returns:
            Path: Location of `resultsDataModelSpecification.csv`.
        """

    def engine_upload_results(
        self,
        connection_details: ConnectionDetails,
        schema: str,
        table_prefix: str,
        zip_file_name: str,
    ) -> None:
        """Upload one results archive into the results database.

        Args:
            connection_details: Results database connection details.
            schema: Results database schema.
            table_prefix: Table prefix applied to results tables.
            zip_file_name: Results archive to upload.

        Raises:
            ConnectionError: Raised when the results database is unreachable.
        """

    def engine_create_results_data_model(
        self,
        connection_details: ConnectionDetails,
        database_schema: str,
        table_prefix: str,
    ) -> None:
        """Create results tables in the results database.

        Args:
            connection_details: Results database connection details.
            database_schema: Results database schema.
            table_prefix: Table prefix applied to results tables.

        Raises:
            ConnectionError: Raised when the results database is unreachable.
        """
