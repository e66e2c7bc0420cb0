"""Results database callbacks invoked later in the orchestration pipeline."""

from __future__ import annotations

import logging
from pathlib import Path

from cohort_diagnostics_module.adapters import CohortDiagnosticsEnginePort
from cohort_diagnostics_module.domain import ConfigurationError, ConnectionDetails, JobContext, ModuleMetadata

from .results_manifest import job_results_archive_name

logger = logging.getLogger(__name__)


class ResultsDatabaseCallbacks:
    """Pass-through calls to the engine's results upload and schema creation."""

    def __init__(self, engine: CohortDiagnosticsEnginePort, module_metadata: ModuleMetadata):
        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine
        self._table_prefix = module_metadata.table_prefix

    def callback_upload_results(self, job_context: JobContext) -> str:
        """Upload the results archive of one database.

        Args:
            job_context: Validated job context.

        Returns:
            str: Uploaded archive path.

        Raises:
            ConfigurationError: Raised when results database settings or databaseId are missing.
        """

        connection_details, schema = self._callback_results_target(job_context)
        execution_settings = job_context.module_execution_settings
        if not execution_settings.database_id:
            raise ConfigurationError("Execution settings missing required fields: databaseId")

        zip_file_name = job_results_archive_name(execution_settings.database_id)
        if execution_settings.results_sub_folder:
            zip_file_name = str(Path(execution_settings.results_sub_folder) / zip_file_name)

        logger.info(
            "Uploading %s to schema %s on %s with table prefix %r",
            zip_file_name,
            schema,
            connection_details.connection_details_describe(),
            self._table_prefix,
        )
        self._engine.engine_upload_results(
            connection_details=connection_details,
            schema=schema,
            table_prefix=self._table_prefix,
            zip_file_name=zip_file_name,
        )
        return zip_file_name

    def callback_create_data_model_schema(self, job_context: JobContext) -> None:
        """Create the results tables for this module.

        Args:
            job_context: Validated job context.

        Raises:
            ConfigurationError: Raised when results database settings are missing.
        """

        connection_details, schema = self._callback_results_target(job_context)
        logger.info(
            "Creating results data model in schema %s on %s with table prefix %r",
            schema,
            connection_details.connection_details_describe(),
            self._table_prefix,
        )
        self._engine.engine_create_results_data_model(
            connection_details=connection_details,
            database_schema=schema,
            table_prefix=self._table_prefix,
        )

    @staticmethod
    def _callback_results_target(job_context: JobContext) -> tuple[ConnectionDetails, str]:
        execution_settings = job_context.module_execution_settings
        missing_fields = []
        if execution_settings.results_connection_details is None:
            missing_fields.append("resultsConnectionDetails")
        if not execution_settings.results_database_schema:
            missing_fields.append("resultsDatabaseSchema")
        if missing_fields:
            raise ConfigurationError(f"Execution settings missing required fields: {', '.join(missing_fields)}")
        return execution_settings.results_connection_details, execution_settings.results_database_schema
