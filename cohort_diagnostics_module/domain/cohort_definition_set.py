"""Normalized cohort definition set consumed by the diagnostics engine."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, replace

import pandas as pd

COHORT_DEFINITION_SET_COLUMNS: tuple[str, ...] = (
    "cohortId",
    "cohortName",
    "sql",
    "json",
    "subsetParent",
    "isSubset",
    "subsetDefinitionId",
)


@dataclass(frozen=True)
class CohortDefinitionRow:
    """One cohort with its compiled SQL.

    Attributes:
        cohort_id: Numeric cohort identifier.
        cohort_name: Cohort name, copied verbatim.
        sql: Compiled cohort SQL.
        json: Original cohort expression JSON.
        subset_parent: Parent cohort id for subset-derived rows.
        is_subset: Whether the row was derived by a subset definition.
        subset_definition_id: Subset definition that derived the row.
    """

    cohort_id: int | float
    cohort_name: str
    sql: str
    json: str
    subset_parent: int | float | None = None
    is_subset: bool = False
    subset_definition_id: int | None = None

    def cohort_row_to_record(self) -> dict[str, object]:
        """Return the row keyed by engine column names."""

        return {
            "cohortId": self.cohort_id,
            "cohortName": self.cohort_name,
            "sql": self.sql,
            "json": self.json,
            "subsetParent": self.subset_parent if self.subset_parent is not None else self.cohort_id,
            "isSubset": self.is_subset,
            "subsetDefinitionId": self.subset_definition_id,
        }


@dataclass(frozen=True)
class CohortDefinitionSet:
    """Ordered, immutable table of cohorts built once per execution.

    Attributes:
        rows: Cohort rows in insertion order.
    """

    rows: tuple[CohortDefinitionRow, ...] = ()

    def __len__(self) -> int:
        return len(self.rows)

    def __iter__(self) -> Iterator[CohortDefinitionRow]:
        return iter(self.rows)

    def cohort_set_append(self, row: CohortDefinitionRow) -> CohortDefinitionSet:
        """Return a new set with one row appended."""

        return replace(self, rows=self.rows + (row,))

    def cohort_set_extend(self, rows: Iterable[CohortDefinitionRow]) -> CohortDefinitionSet:
        """Return a new set with rows appended in iteration order."""

        return replace(self, rows=self.rows + tuple(rows))

    def cohort_set_ids(self) -> tuple[int | float, ...]:
        """Return cohort ids in row order."""

        return tuple(row.cohort_id for row in self.rows)

    def cohort_set_find(self, cohort_id: int | float) -> CohortDefinitionRow | None:
        """Return the row for one cohort id, or None when absent."""

        for row in self.rows:
            if row.cohort_id == cohort_id:
                return row
        return None

    def cohort_set_to_records(self) -> list[dict[str, object]]:
        """Return rows as engine-keyed dictionaries."""

        return [row.cohort_row_to_record() for row in self.rows]

    def cohort_set_to_frame(self) -> pd.DataFrame:
        """Return the set as a data frame with engine column names.

        Engine adapters that hand the set to a data-frame based engine call this
        instead of `cohort_set_to_records`.

        Returns:
            pd.DataFrame: One row per cohort in insertion order.
        """

        return pd.DataFrame.from_records(self.cohort_set_to_records(), columns=list(COHORT_DEFINITION_SET_COLUMNS))
