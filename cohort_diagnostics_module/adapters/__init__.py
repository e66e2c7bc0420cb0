"""Adapter layer package for the external diagnostics engine boundary."""

from .engine_loader import (
	COMPILER_REQUIRED_METHODS,
	ENGINE_REQUIRED_METHODS,
	adapter_load_target,
	adapter_require_methods,
)
from .interfaces import CohortDiagnosticsEnginePort, CohortExpressionCompilerPort, DiagnosticsInvocation

__all__ = [
	"COMPILER_REQUIRED_METHODS",
	"ENGINE_REQUIRED_METHODS",
	"CohortDiagnosticsEnginePort",
	"CohortExpressionCompilerPort",
	"DiagnosticsInvocation",
	"adapter_load_target",
	"adapter_require_methods",
]
