"""Job-context validation run before any other stage touches the document."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Final, Mapping

from pydantic import ValidationError

from cohort_diagnostics_module.domain import ConfigurationError, JobContext

REQUIRED_JOB_CONTEXT_SECTIONS: Final[tuple[tuple[str, str], ...]] = (
    ("settings", "Analysis settings not found in job context"),
    ("sharedResources", "Shared resources not found in job context"),
    ("moduleExecutionSettings", "Execution settings not found in job context"),
)


def job_context_validate(job_context: Mapping[str, Any] | JobContext) -> JobContext:
    """Validate required sections and return the typed job context.

    Args:
        job_context: Raw job-context mapping or an already validated context.

    Returns:
        JobContext: Typed job context.

    Raises:
        ConfigurationError: Raised when a required section is absent or null, or
            when a section does not match its expected shape.
    """

    if isinstance(job_context, JobContext):
        return job_context
    if not isinstance(job_context, Mapping):
        raise ConfigurationError(f"Job context must be an object, got {type(job_context).__name__}")

    for section_name, missing_message in REQUIRED_JOB_CONTEXT_SECTIONS:
        if job_context.get(section_name) is None:
            raise ConfigurationError(missing_message)

    try:
        return JobContext.model_validate(dict(job_context))
    except ValidationError as error:
        raise ConfigurationError(f"Job context validation failed. Details: {error}") from error


def job_context_load_file(job_context_path: Path | str) -> dict[str, Any]:
    """Read a job-context JSON document from disk.

    Args:
        job_context_path: Location of the job-context document.

    Returns:
        dict[str, Any]: Raw job-context mapping.

    Raises:
        ConfigurationError: Raised when the file is missing or is not a JSON object.
    """

    resolved_path = Path(job_context_path)
    try:
        with resolved_path.open("r", encoding="utf-8") as job_context_file:
            payload = json.load(job_context_file)
    except FileNotFoundError as error:
        raise ConfigurationError(f"Job context file not found: {resolved_path}") from error
    except json.JSONDecodeError as error:
        raise ConfigurationError(f"Job context file {resolved_path} is not valid JSON: {error}") from error

    if not isinstance(payload, dict):
        raise ConfigurationError(f"Job context file {resolved_path} must contain a JSON object")
    return payload
