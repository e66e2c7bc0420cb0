"""Job layer package for module entry points and their stages."""

from .cohort_definition_set_builder import (
	CohortDefinitionSetBuilder,
	job_cohort_parse_id,
	job_cohort_subset_resolve_targets,
	job_cohort_subset_validate_specification,
)
from .diagnostics_invoker import DiagnosticsInvoker, job_diagnostics_parse_analysis_settings
from .interfaces import JobExecutionResult, JobModulePort
from .job_context_validation import REQUIRED_JOB_CONTEXT_SECTIONS, job_context_load_file, job_context_validate
from .module_orchestrator import CohortDiagnosticsModule
from .results_callbacks import ResultsDatabaseCallbacks
from .results_manifest import (
	RESULTS_SPECIFICATION_FILE_NAME,
	ManifestRewriteResult,
	ResultManifestRewriter,
	job_manifest_camel_to_snake,
	job_manifest_snake_to_camel,
	job_results_archive_name,
)
from .shared_resource_lookup import job_shared_resource_find, job_shared_resource_require_cohort_definitions

__all__ = [
	"CohortDefinitionSetBuilder",
	"CohortDiagnosticsModule",
	"DiagnosticsInvoker",
	"JobExecutionResult",
	"JobModulePort",
	"ManifestRewriteResult",
	"REQUIRED_JOB_CONTEXT_SECTIONS",
	"RESULTS_SPECIFICATION_FILE_NAME",
	"ResultManifestRewriter",
	"ResultsDatabaseCallbacks",
	"job_cohort_parse_id",
	"job_cohort_subset_resolve_targets",
	"job_cohort_subset_validate_specification",
	"job_context_load_file",
	"job_context_validate",
	"job_diagnostics_parse_analysis_settings",
	"job_manifest_camel_to_snake",
	"job_manifest_snake_to_camel",
	"job_results_archive_name",
	"job_shared_resource_find",
	"job_shared_resource_require_cohort_definitions",
]
