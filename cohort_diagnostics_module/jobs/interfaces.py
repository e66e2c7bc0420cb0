"""Typed interfaces for job-layer entry points."""

from dataclasses import dataclass, field
from typing import Any, Mapping, Protocol

from cohort_diagnostics_module.domain import JobContext


@dataclass(frozen=True)
class JobExecutionResult:
    """Result contract for one module entry-point call.

    Attributes:
        job_name: Entry-point identifier.
        status: Final execution state.
        timeline: Structured stage events recorded during the call.
    """

    job_name: str
    status: str
    timeline: tuple[dict[str, object], ...] = field(default_factory=tuple)


class JobModulePort(Protocol):
    """Port definition for the entry points exposed to the orchestration framework."""

    def module_execute(self, job_context: Mapping[str, Any] | JobContext) -> JobExecutionResult:
        """Run diagnostics for one job context and rewrite its results.

        Args:
            job_context: Raw or validated job-context document.

        Returns:
            JobExecutionResult: Final execution status payload.

        Raises:
            ConfigurationError: Raised when the job context is incomplete.
        """

    def module_upload_results_callback(self, job_context: Mapping[str, Any] | JobContext) -> JobExecutionResult:
        """Upload one results archive into the results database.

        Args:
            job_context: Raw or validated job-context document.

        Returns:
            JobExecutionResult: Final execution status payload.

        Raises:
            ConfigurationError: Raised when results database settings are missing.
        """

    def module_create_data_model_schema(self, job_context: Mapping[str, Any] | JobContext) -> JobExecutionResult:
        """Create the results tables in the results database.

        Args:
            job_context: Raw or validated job-context document.

        Returns:
            JobExecutionResult: Final execution status payload.

        Raises:
            ConfigurationError: Raised when results database settings are missing.
        """
