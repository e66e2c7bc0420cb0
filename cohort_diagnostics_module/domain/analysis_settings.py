"""Explicit analysis settings accepted by the diagnostics entry point."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class DiagnosticsAnalysisSettings(BaseModel):
    """Enumerated diagnostics options taken from the job-context `settings` section.

    Unknown keys are rejected so that misspelled or unsupported options fail at
    the module boundary instead of inside the engine.

    Attributes:
        cohort_ids: Cohort filter used when the execution settings carry none.
        run_inclusion_statistics: Export inclusion rule statistics.
        run_included_source_concepts: Export included source concepts.
        run_orphan_concepts: Export orphan concepts.
        run_time_series: Export cohort time series.
        run_visit_context: Export visit context.
        run_breakdown_index_events: Export index event breakdown.
        run_incidence_rate: Export incidence rates.
        run_cohort_relationship: Export cohort relationships.
        run_temporal_cohort_characterization: Export temporal characterization.
        temporal_covariate_settings: Opaque covariate settings for characterization.
        min_characterization_mean: Minimum covariate mean to export.
        ir_washout_period: Washout period for incidence rates, in days.
        incremental: Reuse incremental state in the work folder.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="forbid",
        frozen=True,
    )

    cohort_ids: list[int] | None = None
    run_inclusion_statistics: bool = True
    run_included_source_concepts: bool = True
    run_orphan_concepts: bool = True
    run_time_series: bool = False
    run_visit_context: bool = True
    run_breakdown_index_events: bool = True
    run_incidence_rate: bool = True
    run_cohort_relationship: bool = True
    run_temporal_cohort_characterization: bool = True
    temporal_covariate_settings: dict[str, Any] | list[dict[str, Any]] | None = None
    min_characterization_mean: float = Field(default=0.01, ge=0)
    ir_washout_period: int = Field(default=0, ge=0)
    incremental: bool = False

    @classmethod
    def analysis_settings_accepted_keys(cls) -> frozenset[str]:
        """Return the camelCase keys accepted in the `settings` section."""

        return frozenset(field.alias or name for name, field in cls.model_fields.items())
