"""Shared fixtures and port stubs for module tests."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cohort_diagnostics_module.domain import CohortDefinitionRow, ModuleMetadata

RESULTS_SPECIFICATION_HEADER = "table_name,column_name,data_type,is_required,primary_key,empty_is_na,description\n"
RESULTS_SPECIFICATION_TABLES = ("cohort_count", "incidence_rate", "index_event_breakdown", "time_series", "database")


class CompilerStub:
    """Deterministic cohort compiler stub capturing compile calls."""

    def __init__(self) -> None:
        self.calls: list[dict[str, object]] = []

    def compiler_build_cohort_query(self, cohort_expression, generate_stats):
        """Return SQL derived from the expression, failing on `invalid` markers.

        Args:
            cohort_expression: Decoded cohort expression.
            generate_stats: Inclusion-rule statistics flag.

        Returns:
            str: Deterministic SQL text.

        Raises:
            ValueError: Raised when the expression carries an `invalid` key.
        """

        self.calls.append({"cohort_expression": cohort_expression, "generate_stats": generate_stats})
        if "invalid" in cohort_expression:
            raise ValueError("unsupported criteria")
        if cohort_expression.get("empty"):
            return "   "
        return f"SELECT subject_id FROM @cdm_database_schema.person -- {cohort_expression.get('title', '')}"


class EngineStub:
    """Diagnostics engine stub that records calls and writes exported CSV files."""

    def __init__(
        self,
        results_specification_path: Path,
        exported_tables=("cohort_count", "incidence_rate", "database"),
    ):
        self.results_specification_path = results_specification_path
        self.exported_tables = tuple(exported_tables)
        self.subset_calls: list[dict[str, object]] = []
        self.invocations: list[object] = []
        self.upload_calls: list[dict[str, object]] = []
        self.create_schema_calls: list[dict[str, object]] = []

    def engine_add_cohort_subset_definition(self, cohort_definition_set, subset_definition, target_cohort_ids):
        """Append one derived row per target cohort.

        Args:
            cohort_definition_set: Set to extend.
            subset_definition: Subset definition.
            target_cohort_ids: Target cohorts.

        Returns:
            CohortDefinitionSet: Extended set.
        """

        self.subset_calls.append(
            {
                "definition_id": subset_definition.definition_id,
                "target_cohort_ids": target_cohort_ids,
                "row_count": len(cohort_definition_set),
            }
        )
        derived_rows = []
        for target_cohort_id in target_cohort_ids:
            parent = cohort_definition_set.cohort_set_find(target_cohort_id)
            derived_rows.append(
                CohortDefinitionRow(
                    cohort_id=target_cohort_id * 1000 + subset_definition.definition_id,
                    cohort_name=f"{parent.cohort_name} - {subset_definition.name}",
                    sql=parent.sql,
                    json=parent.json,
                    subset_parent=target_cohort_id,
                    is_subset=True,
                    subset_definition_id=subset_definition.definition_id,
                )
            )
        return cohort_definition_set.cohort_set_extend(derived_rows)

    def engine_execute_diagnostics(self, invocation):
        """Record the invocation and write one CSV per exported table.

        Args:
            invocation: Diagnostics argument record.
        """

        self.invocations.append(invocation)
        for table_name in self.exported_tables:
            table_path = invocation.export_folder / f"{table_name}.csv"
            table_path.write_text("database_id,value\nEunomia,1\n", encoding="utf-8")
        (invocation.export_folder / f"Results_{invocation.database_id}.zip").write_bytes(b"PK")

    def engine_results_specification_path(self):
        return self.results_specification_path

    def engine_upload_results(self, connection_details, schema, table_prefix, zip_file_name):
        self.upload_calls.append(
            {
                "connection_details": connection_details,
                "schema": schema,
                "table_prefix": table_prefix,
                "zip_file_name": zip_file_name,
            }
        )

    def engine_create_results_data_model(self, connection_details, database_schema, table_prefix):
        self.create_schema_calls.append(
            {
                "connection_details": connection_details,
                "database_schema": database_schema,
                "table_prefix": table_prefix,
            }
        )


def build_cohort_expression(title: str) -> str:
    """Build a small cohort expression JSON document."""

    return json.dumps(
        {
            "title": title,
            "ConceptSets": [
                {"id": 0, "name": "celecoxib", "expression": {"items": [{"concept": {"CONCEPT_ID": 1118084}}]}}
            ],
            "PrimaryCriteria": {"CriteriaList": [{"DrugExposure": {"CodesetId": 0, "First": True}}]},
        }
    )


def build_cohort_definition_resource(**overrides) -> dict[str, object]:
    """Build the three-cohort celecoxib shared resource payload."""

    resource: dict[str, object] = {
        "cohortDefinitions": [
            {"cohortId": "1", "cohortName": "celecoxib", "cohortDefinition": build_cohort_expression("celecoxib")},
            {
                "cohortId": "2",
                "cohortName": "celecoxibAge40",
                "cohortDefinition": build_cohort_expression("celecoxibAge40"),
            },
            {
                "cohortId": "3",
                "cohortName": "celecoxibAge40Male",
                "cohortDefinition": build_cohort_expression("celecoxibAge40Male"),
            },
        ],
        "attr_class": ["CohortDefinitionSharedResources", "SharedResources"],
    }
    resource.update(overrides)
    return resource


@pytest.fixture
def results_specification_path(tmp_path) -> Path:
    """Write a five-table results specification outside the export folder."""

    specification_folder = tmp_path / "engine_settings"
    specification_folder.mkdir()
    specification_path = specification_folder / "resultsDataModelSpecification.csv"
    lines = [RESULTS_SPECIFICATION_HEADER]
    for table_name in RESULTS_SPECIFICATION_TABLES:
        lines.append(f"{table_name},database_id,varchar,Yes,Yes,NA,\n")
    specification_path.write_text("".join(lines), encoding="utf-8")
    return specification_path


@pytest.fixture
def export_folder(tmp_path) -> Path:
    return tmp_path / "results" / "CohortDiagnosticsModule_1"


@pytest.fixture
def compiler_stub() -> CompilerStub:
    return CompilerStub()


@pytest.fixture
def engine_stub(results_specification_path) -> EngineStub:
    return EngineStub(results_specification_path=results_specification_path)


@pytest.fixture
def module_metadata() -> ModuleMetadata:
    return ModuleMetadata.model_validate({"Name": "CohortDiagnosticsModule", "TablePrefix": "cd_"})


@pytest.fixture
def job_context_payload(tmp_path, export_folder) -> dict[str, object]:
    """Build a complete job-context document for the celecoxib analysis."""

    return {
        "settings": {
            "runInclusionStatistics": True,
            "runIncludedSourceConcepts": True,
            "runOrphanConcepts": True,
            "runTimeSeries": False,
            "runVisitContext": True,
            "runBreakdownIndexEvents": True,
            "runIncidenceRate": True,
            "runCohortRelationship": True,
            "runTemporalCohortCharacterization": True,
            "incremental": False,
        },
        "sharedResources": [
            {"negativeControlOutcomes": [], "attr_class": ["NegativeControlOutcomeSharedResources", "SharedResources"]},
            build_cohort_definition_resource(),
        ],
        "moduleExecutionSettings": {
            "databaseId": "Eunomia",
            "connectionDetails": {"dbms": "sqlite", "server": str(tmp_path / "eunomia.sqlite")},
            "cdmDatabaseSchema": "main",
            "workDatabaseSchema": "main",
            "cohortTableNames": {"cohortTable": "strategus_cohort_table"},
            "workSubFolder": str(tmp_path / "work" / "CohortDiagnosticsModule_1"),
            "resultsSubFolder": str(export_folder),
            "minCellCount": 5,
            "resultsConnectionDetails": {
                "dbms": "postgresql",
                "server": "results.example.org/ohdsi",
                "user": "analyst",
                "password": "s3cret",
                "port": 5432,
            },
            "resultsDatabaseSchema": "results",
        },
    }


@pytest.fixture
def cohort_definition_resource_factory():
    """Expose the celecoxib shared resource builder to tests."""

    return build_cohort_definition_resource
