"""Stage timeline events recorded by module entry points."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from .errors import CohortDiagnosticsModuleError


def domain_build_stage_event(
    stage: str,
    status: str,
    details: dict[str, Any] | None = None,
    error: BaseException | None = None,
) -> dict[str, object]:
    """Build one structured stage event.

    Args:
        stage: Stage name.
        status: Stage status marker (`started`, `completed`, `failed`).
        details: Optional structured details object.
        error: Optional failure that ended the stage.

    Returns:
        dict[str, object]: Structured timeline event.
    """

    event_payload: dict[str, object] = {
        "stage": stage,
        "status": status,
        "at_utc": datetime.now(timezone.utc).isoformat(),
    }
    if details is not None:
        event_payload["details"] = details
    if error is not None:
        event_payload["error_type"] = type(error).__name__
        event_payload["error_message"] = str(error)
        if isinstance(error, CohortDiagnosticsModuleError):
            event_payload["error_code"] = error.error_code
    return event_payload
