"""Cohort definition set construction from the cohort-definition shared resource."""

from __future__ import annotations

import json
import logging
import math
from typing import Any, Sequence

from cohort_diagnostics_module.adapters import CohortDiagnosticsEnginePort, CohortExpressionCompilerPort
from cohort_diagnostics_module.domain import (
    CohortDefinitionEntry,
    CohortDefinitionRow,
    CohortDefinitionSet,
    CohortDefinitionSharedResource,
    CohortSubsetAssignment,
    CohortSubsetDefinition,
    CompilationError,
    ConfigurationError,
    SharedResource,
)

from .shared_resource_lookup import job_shared_resource_require_cohort_definitions

logger = logging.getLogger(__name__)


class CohortDefinitionSetBuilder:
    """Build the normalized cohort definition set consumed by diagnostics."""

    def __init__(self, compiler: CohortExpressionCompilerPort, engine: CohortDiagnosticsEnginePort):
        """Initialize builder dependencies.

        Args:
            compiler: Cohort expression compiler.
            engine: Diagnostics engine providing the add-subset operation.

        Raises:
            ValueError: Raised when a dependency is missing.
        """

        if compiler is None:
            raise ValueError("compiler must not be None")
        if engine is None:
            raise ValueError("engine must not be None")

        self._compiler = compiler
        self._engine = engine

    def cohort_set_build_from_shared_resources(self, shared_resources: Sequence[SharedResource]) -> CohortDefinitionSet:
        """Locate the cohort-definition resource and build its cohort set.

        Args:
            shared_resources: Ordered typed shared resources from the job context.

        Returns:
            CohortDefinitionSet: Base cohorts followed by subset-derived cohorts.

        Raises:
            ConfigurationError: Raised when the resource is missing, duplicated, or inconsistent.
            CompilationError: Raised when one cohort expression cannot be compiled.
        """

        resource = job_shared_resource_require_cohort_definitions(shared_resources)
        return self.cohort_set_build(resource)

    def cohort_set_build(self, resource: CohortDefinitionSharedResource) -> CohortDefinitionSet:
        """Build the cohort set for one cohort-definition resource.

        Args:
            resource: Cohort-definition shared resource.

        Returns:
            CohortDefinitionSet: Base cohorts followed by subset-derived cohorts.

        Raises:
            ConfigurationError: Raised when the resource is empty or its subset
                specification is partial.
            CompilationError: Raised when one cohort expression cannot be compiled.
        """

        if not resource.cohort_definitions:
            raise ConfigurationError("No cohort definitions found")
        job_cohort_subset_validate_specification(resource)

        cohort_definition_set = CohortDefinitionSet()
        for entry in resource.cohort_definitions:
            cohort_definition_set = cohort_definition_set.cohort_set_append(self._cohort_set_compile_entry(entry))
        logger.info("Compiled %d cohort definitions", len(cohort_definition_set))

        if resource.subset_defs:
            assignments = resource.cohort_subsets or []
            for subset_definition in resource.subset_defs:
                target_cohort_ids = job_cohort_subset_resolve_targets(subset_definition, assignments)
                logger.info(
                    "Adding subset definition %s (%s) to %d target cohorts",
                    subset_definition.definition_id,
                    subset_definition.name,
                    len(target_cohort_ids),
                )
                cohort_definition_set = self._engine.engine_add_cohort_subset_definition(
                    cohort_definition_set=cohort_definition_set,
                    subset_definition=subset_definition,
                    target_cohort_ids=target_cohort_ids,
                )

        return cohort_definition_set

    def _cohort_set_compile_entry(self, entry: CohortDefinitionEntry) -> CohortDefinitionRow:
        """Compile one cohort definition entry into a cohort set row.

        Args:
            entry: Cohort definition entry.

        Returns:
            CohortDefinitionRow: Row with compiled SQL and original JSON.

        Raises:
            ConfigurationError: Raised when the cohort id is not numeric.
            CompilationError: Raised when the expression is malformed or compiles to nothing.
        """

        cohort_id = job_cohort_parse_id(entry.cohort_id)
        cohort_label = f"cohortId={cohort_id} ({entry.cohort_name})"

        try:
            cohort_expression = json.loads(entry.cohort_definition)
        except json.JSONDecodeError as error:
            raise CompilationError(
                f"Cohort expression for {cohort_label} is not valid JSON: {error}",
                cohort_id=cohort_id,
                cohort_name=entry.cohort_name,
            ) from error
        if not isinstance(cohort_expression, dict):
            raise CompilationError(
                f"Cohort expression for {cohort_label} must be a JSON object",
                cohort_id=cohort_id,
                cohort_name=entry.cohort_name,
            )

        try:
            cohort_sql = self._compiler.compiler_build_cohort_query(cohort_expression, generate_stats=False)
        except (ValueError, TypeError, KeyError, RuntimeError) as error:
            raise CompilationError(
                f"Cohort expression for {cohort_label} could not be compiled: {error}",
                cohort_id=cohort_id,
                cohort_name=entry.cohort_name,
            ) from error

        if not isinstance(cohort_sql, str) or not cohort_sql.strip():
            raise CompilationError(
                f"Cohort expression for {cohort_label} compiled to empty SQL",
                cohort_id=cohort_id,
                cohort_name=entry.cohort_name,
            )

        return CohortDefinitionRow(
            cohort_id=cohort_id,
            cohort_name=entry.cohort_name,
            sql=cohort_sql,
            json=entry.cohort_definition,
        )


def job_cohort_subset_validate_specification(resource: CohortDefinitionSharedResource) -> None:
    """Require subset definitions and subset assignments to be declared together.

    Args:
        resource: Cohort-definition shared resource.

    Raises:
        ConfigurationError: Raised when exactly one of them is declared.
    """

    if (resource.subset_defs is None) != (resource.cohort_subsets is None):
        raise ConfigurationError(
            "Cohort subset functionality requires specifying cohort subset definition & cohort subset identifiers."
        )


def job_cohort_subset_resolve_targets(
    subset_definition: CohortSubsetDefinition,
    assignments: Sequence[CohortSubsetAssignment],
) -> tuple[int, ...]:
    """Collect target cohort ids assigned to one subset definition.

    Args:
        subset_definition: Subset definition.
        assignments: Subset-to-target assignments in declaration order.

    Returns:
        tuple[int, ...]: Target cohort ids, empty when nothing is assigned.
    """

    return tuple(
        assignment.target_cohort_id
        for assignment in assignments
        if assignment.subset_id == subset_definition.definition_id
    )


def job_cohort_parse_id(raw_cohort_id: Any) -> int | float:
    """Parse a cohort id into a number.

    Integral values are returned as `int`.

    Args:
        raw_cohort_id: Cohort id as supplied in the shared resource.

    Returns:
        int | float: Numeric cohort id.

    Raises:
        ConfigurationError: Raised when the value is not a finite number.
    """

    if isinstance(raw_cohort_id, bool):
        raise ConfigurationError(f"Cohort id must be numeric, got {raw_cohort_id!r}")
    if isinstance(raw_cohort_id, int):
        return raw_cohort_id

    try:
        numeric_value = float(str(raw_cohort_id).strip())
    except ValueError as error:
        raise ConfigurationError(f"Cohort id must be numeric, got {raw_cohort_id!r}") from error

    if not math.isfinite(numeric_value):
        raise ConfigurationError(f"Cohort id must be finite, got {raw_cohort_id!r}")
    if numeric_value.is_integer():
        return int(numeric_value)
    return numeric_value
