"""Typed job-context contracts shared across module layers.

The orchestration framework hands every module the same job-context document.
These models give the parts this module consumes a validated, typed shape while
tolerating keys that belong to other modules.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator, model_validator
from pydantic.alias_generators import to_camel, to_pascal
from sqlalchemy.engine import URL

from .shared_resources import SharedResource, domain_parse_shared_resource

_SQLALCHEMY_DRIVER_BY_DBMS: dict[str, str] = {
    "postgresql": "postgresql",
    "redshift": "redshift",
    "sql server": "mssql",
    "pdw": "mssql",
    "synapse": "mssql",
    "oracle": "oracle",
    "sqlite": "sqlite",
    "duckdb": "duckdb",
    "snowflake": "snowflake",
    "bigquery": "bigquery",
    "spark": "databricks",
    "netezza": "netezza",
    "impala": "impala",
    "iris": "iris",
}


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class ConnectionDetails(_CamelModel):
    """Database connection details passed opaquely to the diagnostics engine.

    Attributes:
        dbms: Database platform name (`postgresql`, `sql server`, `sqlite`, ...).
        server: Server host, optionally suffixed with `/database`.
        user: Login user name.
        password: Login password; never rendered in logs.
        port: Optional server port.
        connection_string: Optional JDBC-style connection string.
        extra_settings: Optional platform-specific settings.
        path_to_driver: Optional driver folder.
    """

    dbms: str = Field(min_length=1)
    server: str | None = None
    user: str | None = None
    password: SecretStr | None = None
    port: int | None = None
    connection_string: str | None = None
    extra_settings: str | None = None
    path_to_driver: str | None = None

    @field_validator("dbms")
    @classmethod
    def _normalize_dbms(cls, value: str) -> str:
        normalized = value.strip().lower()
        if not normalized:
            raise ValueError("dbms must not be blank")
        return normalized

    def connection_details_build_url(self) -> URL:
        """Build a SQLAlchemy URL describing the connection target.

        Returns:
            URL: SQLAlchemy URL with driver, host, port and database components.
        """

        drivername = _SQLALCHEMY_DRIVER_BY_DBMS.get(self.dbms, self.dbms.replace(" ", "_"))
        host, database = None, None
        if self.server:
            if drivername in ("sqlite", "duckdb"):
                database = self.server
            elif "/" in self.server:
                host, database = self.server.split("/", 1)
            else:
                host = self.server

        return URL.create(
            drivername=drivername,
            username=self.user,
            password=self.password.get_secret_value() if self.password is not None else None,
            host=host,
            port=self.port,
            database=database,
        )

    def connection_details_describe(self) -> str:
        """Render a password-free connection description for log messages.

        Returns:
            str: Connection target with the password masked.
        """

        return self.connection_details_build_url().render_as_string(hide_password=True)


class CohortTableNames(_CamelModel):
    """Names of the cohort table family in the cohort database schema.

    Attributes:
        cohort_table: Main cohort table.
        cohort_inclusion_table: Inclusion rule table.
        cohort_inclusion_result_table: Inclusion rule result table.
        cohort_inclusion_stats_table: Inclusion rule statistics table.
        cohort_summary_stats_table: Summary statistics table.
        cohort_censor_stats_table: Censor statistics table.
    """

    cohort_table: str = Field(default="cohort", min_length=1)
    cohort_inclusion_table: str
    cohort_inclusion_result_table: str
    cohort_inclusion_stats_table: str
    cohort_summary_stats_table: str
    cohort_censor_stats_table: str

    @model_validator(mode="before")
    @classmethod
    def _derive_companion_tables(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        values = dict(data)
        cohort_table = values.get("cohortTable", values.get("cohort_table", "cohort"))
        suffixes = {
            "cohortInclusionTable": "_inclusion",
            "cohortInclusionResultTable": "_inclusion_result",
            "cohortInclusionStatsTable": "_inclusion_stats",
            "cohortSummaryStatsTable": "_summary_stats",
            "cohortCensorStatsTable": "_censor_stats",
        }
        values.setdefault("cohortTable", cohort_table)
        for alias, suffix in suffixes.items():
            snake_name = _camel_to_snake(alias)
            if alias not in values and snake_name not in values:
                values[alias] = f"{cohort_table}{suffix}"
        return values


class ModuleExecutionSettings(_CamelModel):
    """Execution and environment parameters supplied by the orchestration framework.

    Attributes:
        database_id: Identifier of the CDM database being characterized.
        connection_details: CDM database connection details.
        cdm_database_schema: Schema holding the CDM tables.
        work_database_schema: Writable schema holding the cohort tables.
        cohort_table_names: Cohort table family names.
        work_sub_folder: Module work folder, used for incremental state.
        results_sub_folder: Module results folder, used as export folder.
        min_cell_count: Minimum cell count for exported counts.
        cohort_ids: Optional cohort id filter.
        results_connection_details: Results database connection details.
        results_database_schema: Results database schema.
    """

    database_id: str | None = None
    connection_details: ConnectionDetails | None = None
    cdm_database_schema: str | None = None
    work_database_schema: str | None = None
    cohort_table_names: CohortTableNames = Field(default_factory=lambda: CohortTableNames.model_validate({}))
    work_sub_folder: str | None = None
    results_sub_folder: str | None = None
    min_cell_count: int = Field(default=5, ge=0)
    cohort_ids: list[int] | None = None
    results_connection_details: ConnectionDetails | None = None
    results_database_schema: str | None = None

    @field_validator("database_id", mode="before")
    @classmethod
    def _coerce_database_id(cls, value: Any) -> Any:
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value


class JobContext(_CamelModel):
    """Validated job-context document.

    Attributes:
        settings: Raw analysis settings for this module.
        shared_resources: Ordered, typed shared resources.
        module_execution_settings: Execution and environment parameters.
    """

    settings: dict[str, Any]
    shared_resources: list[SharedResource]
    module_execution_settings: ModuleExecutionSettings

    @field_validator("shared_resources", mode="before")
    @classmethod
    def _parse_shared_resources(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            raise ValueError("sharedResources must be a list of shared resource objects")
        return [domain_parse_shared_resource(item) for item in value]


class ModuleMetadata(BaseModel):
    """Static module metadata loaded once from `MetaData.json`.

    Attributes:
        table_prefix: Prefix applied to every results table name.
        name: Optional module name.
        version: Optional module version.
        dependencies: Optional list of upstream module names.
    """

    model_config = ConfigDict(alias_generator=to_pascal, populate_by_name=True, extra="allow", frozen=True)

    table_prefix: str = Field(min_length=1)
    name: str | None = None
    version: str | None = None
    dependencies: list[str] = Field(default_factory=list)

    @field_validator("dependencies", mode="before")
    @classmethod
    def _coerce_dependencies(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        return value


def _camel_to_snake(name: str) -> str:
    return "".join(f"_{char.lower()}" if char.isupper() else char for char in name)
