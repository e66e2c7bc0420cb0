"""Dynamic loading of engine adapters from dotted-path targets."""

from __future__ import annotations

import importlib
import logging
from typing import Any

from cohort_diagnostics_module.domain import EngineLoadError

logger = logging.getLogger(__name__)

ENGINE_REQUIRED_METHODS: tuple[str, ...] = (
    "engine_add_cohort_subset_definition",
    "engine_execute_diagnostics",
    "engine_results_specification_path",
    "engine_upload_results",
    "engine_create_results_data_model",
)

COMPILER_REQUIRED_METHODS: tuple[str, ...] = ("compiler_build_cohort_query",)


def adapter_load_target(target: str) -> Any:
    """Import a target and instantiate it when it is a class or factory.

    Accepts `package.module:attribute` or `package.module.attribute`.

    Args:
        target: Dotted-path target.

    Returns:
        Any: Built adapter instance.

    Raises:
        EngineLoadError: Raised when the target cannot be imported or built.
    """

    normalized_target = target.strip()
    if ":" in normalized_target:
        module_path, _, attribute_name = normalized_target.partition(":")
    else:
        module_path, _, attribute_name = normalized_target.rpartition(".")
    if not module_path or not attribute_name:
        raise EngineLoadError(f"invalid adapter target={target!r}; expected `package.module:attribute`")

    try:
        module = importlib.import_module(module_path)
    except ImportError as error:
        raise EngineLoadError(f"cannot import adapter module={module_path!r}: {error}") from error

    try:
        attribute = getattr(module, attribute_name)
    except AttributeError as error:
        raise EngineLoadError(f"adapter module={module_path!r} has no attribute={attribute_name!r}") from error

    if callable(attribute):
        try:
            instance = attribute()
        except (TypeError, ValueError, RuntimeError) as error:
            raise EngineLoadError(f"cannot build adapter target={target!r}: {error}") from error
    else:
        instance = attribute

    logger.debug("Loaded adapter %s from target %s", type(instance).__name__, normalized_target)
    return instance


def adapter_require_methods(instance: Any, method_names: tuple[str, ...], role: str) -> Any:
    """Verify that an adapter instance provides every port method.

    Args:
        instance: Adapter instance.
        method_names: Required callable attribute names.
        role: Port role name used in error messages.

    Returns:
        Any: The same instance.

    Raises:
        EngineLoadError: Raised when one or more methods are missing.
    """

    missing_methods = [name for name in method_names if not callable(getattr(instance, name, None))]
    if missing_methods:
        raise EngineLoadError(
            f"{role} adapter {type(instance).__name__} is missing methods: {', '.join(missing_methods)}"
        )
    return instance
