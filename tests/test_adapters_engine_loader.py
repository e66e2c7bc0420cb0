"""Regression tests for dotted-path adapter loading."""

from __future__ import annotations

from collections import OrderedDict

import pytest

from cohort_diagnostics_module.adapters import (
    COMPILER_REQUIRED_METHODS,
    ENGINE_REQUIRED_METHODS,
    adapter_load_target,
    adapter_require_methods,
)
from cohort_diagnostics_module.domain import EngineLoadError


@pytest.mark.parametrize("target", ["collections:OrderedDict", "collections.OrderedDict"])
def test_adapters_load_target_builds_callable_targets(target) -> None:
    assert isinstance(adapter_load_target(target), OrderedDict)


def test_adapters_load_target_returns_non_callable_attributes() -> None:
    assert adapter_load_target("string:digits") == "0123456789"


@pytest.mark.parametrize(
    ("target", "expected_message"),
    [
        ("OrderedDict", "invalid adapter target"),
        ("collections:", "invalid adapter target"),
        ("missing_engine_package.adapter:Engine", "cannot import adapter module"),
        ("collections:MissingEngine", "has no attribute"),
        ("json:loads", "cannot build adapter target"),
    ],
)
def test_adapters_load_target_reports_unusable_targets(target, expected_message) -> None:
    """Map import, lookup, and construction failures to one error type."""

    with pytest.raises(EngineLoadError, match=expected_message) as error_info:
        adapter_load_target(target)

    assert isinstance(error_info.value, ImportError)
    assert error_info.value.error_code == "ENGINE_LOAD_ERROR"


def test_adapters_require_methods_names_missing_methods(engine_stub, compiler_stub) -> None:
    """Accept complete adapters and list every missing port method otherwise."""

    assert adapter_require_methods(engine_stub, ENGINE_REQUIRED_METHODS, role="diagnostics engine") is engine_stub
    assert adapter_require_methods(compiler_stub, COMPILER_REQUIRED_METHODS, role="cohort compiler") is compiler_stub

    with pytest.raises(EngineLoadError, match="diagnostics engine adapter CompilerStub is missing methods: "):
        adapter_require_methods(compiler_stub, ENGINE_REQUIRED_METHODS, role="diagnostics engine")
