"""Domain contracts shared across module layers."""

from .analysis_settings import DiagnosticsAnalysisSettings
from .cohort_definition_set import COHORT_DEFINITION_SET_COLUMNS, CohortDefinitionRow, CohortDefinitionSet
from .errors import (
	CohortDiagnosticsModuleError,
	CompilationError,
	ConfigurationError,
	EngineLoadError,
	ResultsFileError,
)
from .models import CohortTableNames, ConnectionDetails, JobContext, ModuleExecutionSettings, ModuleMetadata
from .shared_resources import (
	CohortDefinitionEntry,
	CohortDefinitionSharedResource,
	CohortSubsetAssignment,
	CohortSubsetDefinition,
	GenericSharedResource,
	SharedResource,
	SharedResourceKind,
	domain_parse_shared_resource,
	domain_resolve_shared_resource_kind,
)
from .timeline import domain_build_stage_event

__all__ = [
	"COHORT_DEFINITION_SET_COLUMNS",
	"CohortDefinitionEntry",
	"CohortDefinitionRow",
	"CohortDefinitionSet",
	"CohortDefinitionSharedResource",
	"CohortDiagnosticsModuleError",
	"CohortSubsetAssignment",
	"CohortSubsetDefinition",
	"CohortTableNames",
	"CompilationError",
	"ConfigurationError",
	"ConnectionDetails",
	"DiagnosticsAnalysisSettings",
	"EngineLoadError",
	"GenericSharedResource",
	"JobContext",
	"ModuleExecutionSettings",
	"ModuleMetadata",
	"ResultsFileError",
	"SharedResource",
	"SharedResourceKind",
	"domain_build_stage_event",
	"domain_parse_shared_resource",
	"domain_resolve_shared_resource_kind",
]
