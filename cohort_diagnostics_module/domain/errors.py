"""Project-native typed exceptions for cohort diagnostics module failures."""

from __future__ import annotations


class CohortDiagnosticsModuleError(Exception):
    """Base exception for module-level failures.

    Attributes:
        error_code: Deterministic error code for orchestration diagnostics.
    """

    default_error_code = "MODULE_ERROR"

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.error_code = error_code or self.default_error_code


class ConfigurationError(CohortDiagnosticsModuleError, ValueError):
    """Job context, shared resource, or analysis settings are missing or inconsistent."""

    default_error_code = "CONFIGURATION_ERROR"


class CompilationError(CohortDiagnosticsModuleError, RuntimeError):
    """Cohort expression could not be decoded or compiled into SQL.

    Attributes:
        cohort_id: Identifier of the offending cohort.
        cohort_name: Name of the offending cohort.
    """

    default_error_code = "COMPILATION_ERROR"

    def __init__(self, message: str, cohort_id: object = None, cohort_name: str | None = None):
        super().__init__(message)
        self.cohort_id = cohort_id
        self.cohort_name = cohort_name


class ResultsFileError(CohortDiagnosticsModuleError, OSError):
    """Filesystem rename, delete, or write failure while rewriting results."""

    default_error_code = "RESULTS_FILE_ERROR"


class EngineLoadError(CohortDiagnosticsModuleError, ImportError):
    """Configured diagnostics engine target could not be imported or built."""

    default_error_code = "ENGINE_LOAD_ERROR"
