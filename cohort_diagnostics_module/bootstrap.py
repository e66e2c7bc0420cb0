"""Module bootstrap wiring for startup validation and dependency assembly."""

from __future__ import annotations

from cohort_diagnostics_module.adapters import (
    COMPILER_REQUIRED_METHODS,
    ENGINE_REQUIRED_METHODS,
    adapter_load_target,
    adapter_require_methods,
)
from cohort_diagnostics_module.config import ModuleSettings, config_load_module_metadata, config_load_settings
from cohort_diagnostics_module.jobs import CohortDiagnosticsModule


def bootstrap_create_module(settings: ModuleSettings | None = None) -> CohortDiagnosticsModule:
    """Assemble the module after validating startup configuration.

    Module metadata is resolved once here and passed explicitly to every entry point.

    Args:
        settings: Optional pre-loaded settings; loaded from the environment when omitted.

    Returns:
        CohortDiagnosticsModule: Fully wired module instance.

    Raises:
        SettingsLoadError: Raised when settings or module metadata are invalid.
        EngineLoadError: Raised when an adapter target cannot be loaded.
    """

    resolved_settings = settings or config_load_settings()
    module_metadata = config_load_module_metadata(resolved_settings.module_metadata_path)

    engine = adapter_require_methods(
        adapter_load_target(resolved_settings.diagnostics_engine_target),
        ENGINE_REQUIRED_METHODS,
        role="diagnostics engine",
    )
    compiler_instance = engine
    if resolved_settings.cohort_compiler_target is not None:
        compiler_instance = adapter_load_target(resolved_settings.cohort_compiler_target)
    compiler = adapter_require_methods(compiler_instance, COMPILER_REQUIRED_METHODS, role="cohort compiler")

    return CohortDiagnosticsModule(engine=engine, compiler=compiler, module_metadata=module_metadata)
