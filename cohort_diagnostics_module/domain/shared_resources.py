"""Tagged shared-resource payloads consumed from the job context."""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
import json
from typing import Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel


class SharedResourceKind(str, Enum):
    """Explicit kind tag carried by every shared-resource payload."""

    COHORT_DEFINITION = "CohortDefinitionSharedResources"
    NEGATIVE_CONTROL_OUTCOME = "NegativeControlOutcomeSharedResources"
    OTHER = "Other"


_CLASS_TAG_FIELD = "attr_class"


class _SharedResourceModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        frozen=True,
    )


class CohortDefinitionEntry(_SharedResourceModel):
    """One cohort definition as declared in the shared resource.

    Attributes:
        cohort_id: Cohort identifier as supplied; parsed to a number by the builder.
        cohort_name: Human-readable cohort name.
        cohort_definition: Cohort expression JSON text.
    """

    cohort_id: int | float | str
    cohort_name: str
    cohort_definition: str

    @field_validator("cohort_definition", mode="before")
    @classmethod
    def _serialize_embedded_expression(cls, value: Any) -> Any:
        if isinstance(value, Mapping):
            return json.dumps(value)
        return value


class CohortSubsetDefinition(_SharedResourceModel):
    """Subset definition producing derived cohorts from target cohorts.

    Subset semantics belong to the diagnostics engine; the operator list is
    carried through untouched.

    Attributes:
        definition_id: Subset definition identifier.
        name: Subset definition name.
        subset_operators: Opaque subset operator payloads.
        identifier_expression: Optional expression deriving subset cohort ids.
        operator_name_concat_string: Optional separator for derived names.
        subset_cohort_name_template: Optional template for derived names.
        package_version: Version of the package that serialized the definition.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="allow", frozen=True)

    definition_id: int
    name: str = ""
    subset_operators: list[dict[str, Any]] = Field(default_factory=list)
    identifier_expression: str | None = None
    operator_name_concat_string: str | None = None
    subset_cohort_name_template: str | None = None
    package_version: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _decode_serialized_definition(cls, data: Any) -> Any:
        if isinstance(data, str):
            try:
                return json.loads(data)
            except json.JSONDecodeError as error:
                raise ValueError(f"subset definition is not valid JSON: {error}") from error
        return data


class CohortSubsetAssignment(_SharedResourceModel):
    """Link between a subset definition and one target cohort.

    Attributes:
        subset_id: Subset definition identifier.
        target_cohort_id: Cohort the subset is applied to.
    """

    subset_id: int
    target_cohort_id: int


class CohortDefinitionSharedResource(_SharedResourceModel):
    """Cohort definitions shared across modules of one analysis.

    Attributes:
        kind: Always `SharedResourceKind.COHORT_DEFINITION`.
        cohort_definitions: Ordered cohort definitions.
        subset_defs: Optional subset definitions.
        cohort_subsets: Optional subset-to-target assignments.
    """

    kind: Literal[SharedResourceKind.COHORT_DEFINITION] = SharedResourceKind.COHORT_DEFINITION
    cohort_definitions: list[CohortDefinitionEntry] = Field(default_factory=list)
    subset_defs: list[CohortSubsetDefinition] | None = None
    cohort_subsets: list[CohortSubsetAssignment] | None = None


class GenericSharedResource(_SharedResourceModel):
    """Shared resource of a kind this module does not consume.

    Attributes:
        kind: Resolved shared-resource kind.
        payload: Raw payload, kept for diagnostics.
    """

    kind: SharedResourceKind
    payload: dict[str, Any] = Field(default_factory=dict)


SharedResource = Union[CohortDefinitionSharedResource, GenericSharedResource]


def domain_resolve_shared_resource_kind(payload: Mapping[str, Any]) -> SharedResourceKind:
    """Resolve the explicit kind of one raw shared-resource payload.

    An explicit `kind` key wins. Otherwise the framework class-tag list is
    scanned for the first known tag.

    Args:
        payload: Raw shared-resource mapping.

    Returns:
        SharedResourceKind: Resolved kind, `OTHER` when no known tag is present.

    Raises:
        ValueError: Raised when an explicit `kind` value is unknown.
    """

    explicit_kind = payload.get("kind")
    if explicit_kind is not None:
        try:
            return SharedResourceKind(explicit_kind)
        except ValueError as error:
            raise ValueError(f"unknown shared resource kind={explicit_kind!r}") from error

    class_tags = payload.get(_CLASS_TAG_FIELD) or ()
    if isinstance(class_tags, str):
        class_tags = (class_tags,)
    for class_tag in class_tags:
        try:
            return SharedResourceKind(class_tag)
        except ValueError:
            continue
    return SharedResourceKind.OTHER


def domain_parse_shared_resource(payload: Any) -> SharedResource:
    """Parse one raw shared-resource payload into its typed variant.

    Args:
        payload: Raw mapping or already typed shared resource.

    Returns:
        SharedResource: Typed shared-resource variant.

    Raises:
        ValueError: Raised when payload is not a mapping or carries an unknown kind.
    """

    if isinstance(payload, (CohortDefinitionSharedResource, GenericSharedResource)):
        return payload
    if not isinstance(payload, Mapping):
        raise ValueError(f"shared resource must be an object, got {type(payload).__name__}")

    kind = domain_resolve_shared_resource_kind(payload)
    if kind is SharedResourceKind.COHORT_DEFINITION:
        body = {key: value for key, value in payload.items() if key not in ("kind", _CLASS_TAG_FIELD)}
        return CohortDefinitionSharedResource.model_validate(body)

    return GenericSharedResource(kind=kind, payload=dict(payload))
