"""Shared-resource lookup by explicit resource kind."""

from __future__ import annotations

from typing import Sequence

from cohort_diagnostics_module.domain import (
    CohortDefinitionSharedResource,
    ConfigurationError,
    SharedResource,
    SharedResourceKind,
)


def job_shared_resource_find(
    shared_resources: Sequence[SharedResource],
    kind: SharedResourceKind,
) -> SharedResource | None:
    """Return the single shared resource of one kind.

    Args:
        shared_resources: Ordered typed shared resources.
        kind: Resource kind to look up.

    Returns:
        SharedResource | None: Matching resource, or None when no resource matches.

    Raises:
        ConfigurationError: Raised when more than one resource has the kind.
    """

    matches = [resource for resource in shared_resources if resource.kind == kind]
    if len(matches) > 1:
        raise ConfigurationError(
            f"Found {len(matches)} shared resources of kind={kind.value}; expected at most one"
        )
    return matches[0] if matches else None


def job_shared_resource_require_cohort_definitions(
    shared_resources: Sequence[SharedResource],
) -> CohortDefinitionSharedResource:
    """Return the cohort-definition shared resource or fail.

    Args:
        shared_resources: Ordered typed shared resources.

    Returns:
        CohortDefinitionSharedResource: The cohort-definition resource.

    Raises:
        ConfigurationError: Raised when no shared resources exist, when no
            cohort-definition resource exists, or when it is duplicated.
    """

    if not shared_resources:
        raise ConfigurationError("No shared resources found")

    resource = job_shared_resource_find(shared_resources, SharedResourceKind.COHORT_DEFINITION)
    if resource is None:
        raise ConfigurationError("Cohort definition shared resource not found")
    if not isinstance(resource, CohortDefinitionSharedResource):
        raise ConfigurationError("Cohort definition shared resource has an unexpected shape")
    return resource
