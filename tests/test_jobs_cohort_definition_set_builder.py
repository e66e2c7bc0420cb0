"""Regression tests for cohort definition set construction."""

from __future__ import annotations

import json

import pytest

from cohort_diagnostics_module.domain import (
    CompilationError,
    ConfigurationError,
    CohortDefinitionSharedResource,
    domain_parse_shared_resource,
)
from cohort_diagnostics_module.jobs import CohortDefinitionSetBuilder, job_cohort_parse_id


def _build_resource(payload) -> CohortDefinitionSharedResource:
    return domain_parse_shared_resource(payload)


def test_jobs_cohort_set_builds_celecoxib_cohorts_in_order(
    compiler_stub,
    engine_stub,
    cohort_definition_resource_factory,
) -> None:
    """Build one row per cohort in list order with numeric ids and compiled SQL.

    Returns:
        None: Assertions validate the cohort definition set contents.

    Raises:
        AssertionError: Raised when rows, ids, or names differ.
    """

    builder = CohortDefinitionSetBuilder(compiler=compiler_stub, engine=engine_stub)
    resource = _build_resource(cohort_definition_resource_factory())

    cohort_definition_set = builder.cohort_set_build(resource)

    assert len(cohort_definition_set) == 3
    assert cohort_definition_set.cohort_set_ids() == (1, 2, 3)
    assert all(isinstance(cohort_id, int) for cohort_id in cohort_definition_set.cohort_set_ids())
    assert [row.cohort_name for row in cohort_definition_set] == ["celecoxib", "celecoxibAge40", "celecoxibAge40Male"]
    assert all(row.sql.strip() for row in cohort_definition_set)
    assert cohort_definition_set.rows[0].json == resource.cohort_definitions[0].cohort_definition
    assert not any(row.is_subset for row in cohort_definition_set)
    assert [call["generate_stats"] for call in compiler_stub.calls] == [False, False, False]
    assert engine_stub.subset_calls == []


def test_jobs_cohort_set_rejects_empty_cohort_definitions(compiler_stub, engine_stub) -> None:
    """Reject cohort-definition resources with no cohorts."""

    builder = CohortDefinitionSetBuilder(compiler=compiler_stub, engine=engine_stub)
    resource = _build_resource({"kind": "CohortDefinitionSharedResources", "cohortDefinitions": []})

    with pytest.raises(ConfigurationError, match="No cohort definitions found"):
        builder.cohort_set_build(resource)


@pytest.mark.parametrize(
    "overrides",
    [
        {"subsetDefs": [], "cohortSubsets": None},
        {"subsetDefs": None, "cohortSubsets": []},
        {"subsetDefs": [{"definitionId": 1, "name": "male"}]},
        {"cohortSubsets": [{"subsetId": 1, "targetCohortId": 1}]},
    ],
)
def test_jobs_cohort_set_rejects_partial_subset_specification(
    compiler_stub,
    engine_stub,
    cohort_definition_resource_factory,
    overrides,
) -> None:
    """Reject resources declaring only one of subset definitions and subset assignments.

    Returns:
        None: Assertions validate partial subset rejection before compilation.

    Raises:
        AssertionError: Raised when a partial subset specification is accepted.
    """

    builder = CohortDefinitionSetBuilder(compiler=compiler_stub, engine=engine_stub)
    resource = _build_resource(cohort_definition_resource_factory(**overrides))

    with pytest.raises(ConfigurationError, match="Cohort subset functionality requires"):
        builder.cohort_set_build(resource)
    assert compiler_stub.calls == []


def test_jobs_cohort_set_appends_subset_cohorts_after_base_cohorts(
    compiler_stub,
    engine_stub,
    cohort_definition_resource_factory,
) -> None:
    """Fold subset definitions in declaration order using matching subset assignments.

    Returns:
        None: Assertions validate target resolution and row order.

    Raises:
        AssertionError: Raised when targets or row order differ.
    """

    male_subset = json.dumps(
        {"definitionId": 5, "name": "male", "subsetOperators": [{"subsetType": "DemographicSubsetOperator"}]}
    )
    resource = _build_resource(
        cohort_definition_resource_factory(
            subsetDefs=[male_subset, {"definitionId": 6, "name": "unassigned"}],
            cohortSubsets=[
                {"subsetId": 5, "targetCohortId": 1},
                {"subsetId": 7, "targetCohortId": 2},
                {"subsetId": 5, "targetCohortId": 3},
            ],
        )
    )
    builder = CohortDefinitionSetBuilder(compiler=compiler_stub, engine=engine_stub)

    cohort_definition_set = builder.cohort_set_build(resource)

    assert engine_stub.subset_calls == [
        {"definition_id": 5, "target_cohort_ids": (1, 3), "row_count": 3},
        {"definition_id": 6, "target_cohort_ids": (), "row_count": 5},
    ]
    assert cohort_definition_set.cohort_set_ids() == (1, 2, 3, 1005, 3005)
    assert cohort_definition_set.rows[3].cohort_name == "celecoxib - male"
    assert cohort_definition_set.rows[3].subset_parent == 1
    assert resource.subset_defs[0].subset_operators == [{"subsetType": "DemographicSubsetOperator"}]


def test_jobs_cohort_set_empty_subset_lists_skip_subset_expansion(
    compiler_stub,
    engine_stub,
    cohort_definition_resource_factory,
) -> None:
    """Treat present-but-empty subset lists as no subsets."""

    builder = CohortDefinitionSetBuilder(compiler=compiler_stub, engine=engine_stub)
    resource = _build_resource(cohort_definition_resource_factory(subsetDefs=[], cohortSubsets=[]))

    assert len(builder.cohort_set_build(resource)) == 3
    assert engine_stub.subset_calls == []


@pytest.mark.parametrize(
    ("cohort_definition", "expected_message"),
    [
        ("{not json", "is not valid JSON"),
        ("[1, 2]", "must be a JSON object"),
        ('{"invalid": true}', "could not be compiled"),
        ('{"empty": true}', "compiled to empty SQL"),
    ],
)
def test_jobs_cohort_set_reports_compilation_errors_with_cohort_name(
    compiler_stub,
    engine_stub,
    cohort_definition_resource_factory,
    cohort_definition,
    expected_message,
) -> None:
    """Name the offending cohort when its expression cannot be compiled.

    Returns:
        None: Assertions validate compilation error context.

    Raises:
        AssertionError: Raised when the error lacks cohort context.
    """

    payload = cohort_definition_resource_factory()
    payload["cohortDefinitions"][1]["cohortDefinition"] = cohort_definition
    builder = CohortDefinitionSetBuilder(compiler=compiler_stub, engine=engine_stub)

    with pytest.raises(CompilationError, match=expected_message) as error_info:
        builder.cohort_set_build(_build_resource(payload))

    assert "celecoxibAge40" in str(error_info.value)
    assert error_info.value.cohort_id == 2
    assert error_info.value.error_code == "COMPILATION_ERROR"


class _BridgeFailureCompiler:
    def compiler_build_cohort_query(self, cohort_expression, generate_stats):
        raise RuntimeError("bridge call failed")


def test_jobs_cohort_set_wraps_runtime_compiler_failures(engine_stub, cohort_definition_resource_factory) -> None:
    """Name the cohort when a bridged compiler fails with a runtime error."""

    builder = CohortDefinitionSetBuilder(compiler=_BridgeFailureCompiler(), engine=engine_stub)

    with pytest.raises(CompilationError, match="could not be compiled: bridge call failed") as error_info:
        builder.cohort_set_build(_build_resource(cohort_definition_resource_factory()))

    assert error_info.value.cohort_id == 1
    assert isinstance(error_info.value.__cause__, RuntimeError)


def test_jobs_cohort_set_builds_from_shared_resource_list(
    compiler_stub,
    engine_stub,
    cohort_definition_resource_factory,
) -> None:
    """Locate the cohort-definition resource among other shared resources."""

    shared_resources = [
        domain_parse_shared_resource({"attr_class": ["NegativeControlOutcomeSharedResources"]}),
        domain_parse_shared_resource(cohort_definition_resource_factory()),
    ]
    builder = CohortDefinitionSetBuilder(compiler=compiler_stub, engine=engine_stub)

    assert builder.cohort_set_build_from_shared_resources(shared_resources).cohort_set_ids() == (1, 2, 3)


def test_jobs_cohort_parse_id_accepts_numeric_text_and_rejects_other_values() -> None:
    """Parse numeric cohort ids and reject non-numeric ones."""

    assert job_cohort_parse_id("17") == 17
    assert job_cohort_parse_id(" 4.0 ") == 4
    assert job_cohort_parse_id(2.5) == 2.5
    assert job_cohort_parse_id(9) == 9

    for invalid_value in ("abc", True, "nan", "inf"):
        with pytest.raises(ConfigurationError, match="Cohort id must be"):
            job_cohort_parse_id(invalid_value)
