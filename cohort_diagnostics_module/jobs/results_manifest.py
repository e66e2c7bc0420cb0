"""Results manifest rewrite applying the module table prefix."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from pathlib import Path
import re
from typing import Final

import pandas as pd

from cohort_diagnostics_module.domain import ConfigurationError, ModuleMetadata, ResultsFileError

logger = logging.getLogger(__name__)

RESULTS_SPECIFICATION_FILE_NAME: Final[str] = "resultsDataModelSpecification.csv"
RESULTS_ARCHIVE_NAME_TEMPLATE: Final[str] = "Results_{database_id}.zip"
TABLE_NAME_COLUMN: Final[str] = "tableName"

_SNAKE_SEGMENT_PATTERN = re.compile(r"_([a-z0-9])")
_CAMEL_BOUNDARY_PATTERN = re.compile(r"([A-Z])")


def job_results_archive_name(database_id: str) -> str:
    """Return the results archive file name for one database."""

    return RESULTS_ARCHIVE_NAME_TEMPLATE.format(database_id=database_id)


def job_manifest_snake_to_camel(name: str) -> str:
    """Convert `table_name` style headers to `tableName`."""

    return _SNAKE_SEGMENT_PATTERN.sub(lambda match: match.group(1).upper(), name)


def job_manifest_camel_to_snake(name: str) -> str:
    """Convert `tableName` style headers to `table_name`."""

    return _CAMEL_BOUNDARY_PATTERN.sub(r"_\1", name).lower()


@dataclass(frozen=True)
class ManifestRewriteResult:
    """Outcome of one manifest rewrite.

    Attributes:
        manifest_path: Written manifest location.
        retained_row_count: Manifest rows kept after the existence filter.
        renamed_tables: Original table name to prefixed table name.
        archive_removed: Whether a stale results archive was deleted.
    """

    manifest_path: Path
    retained_row_count: int
    renamed_tables: dict[str, str] = field(default_factory=dict)
    archive_removed: bool = False


class ResultManifestRewriter:
    """Prefix exported result tables and rewrite the results manifest."""

    def __init__(self, module_metadata: ModuleMetadata, results_specification_path: Path | str):
        """Initialize rewriter inputs.

        Args:
            module_metadata: Static module metadata providing the table prefix.
            results_specification_path: Engine results-specification CSV.
        """

        self._table_prefix = module_metadata.table_prefix
        self._results_specification_path = Path(results_specification_path)

    def manifest_rewrite(self, export_folder: Path | str, database_id: str) -> ManifestRewriteResult:
        """Rewrite exported result files and manifest in one export folder.

        Args:
            export_folder: Folder holding diagnostics CSV output.
            database_id: Database identifier naming the stale results archive.

        Returns:
            ManifestRewriteResult: Summary of the rewrite.

        Raises:
            ConfigurationError: Raised when the specification has no table name column.
            ResultsFileError: Raised when a file cannot be read, renamed, deleted, or written.
        """

        resolved_folder = Path(export_folder)
        archive_removed = self._manifest_remove_archive(resolved_folder, database_id)

        specification = self.manifest_load_specification()
        specification = self.manifest_filter_exported(specification, resolved_folder)

        original_names = specification[TABLE_NAME_COLUMN].tolist()
        prefixed_names = [f"{self._table_prefix}{table_name}" for table_name in original_names]
        renamed_tables = dict(zip(original_names, prefixed_names))
        for original_name, prefixed_name in renamed_tables.items():
            source_path = resolved_folder / f"{original_name}.csv"
            target_path = resolved_folder / f"{prefixed_name}.csv"
            try:
                source_path.rename(target_path)
            except OSError as error:
                raise ResultsFileError(f"Cannot rename {source_path} to {target_path}: {error}") from error

        specification[TABLE_NAME_COLUMN] = prefixed_names
        manifest_path = self._manifest_write(specification, resolved_folder)
        logger.info(
            "Rewrote %s with %d rows; renamed %d result files with prefix %r",
            manifest_path,
            len(specification),
            len(renamed_tables),
            self._table_prefix,
        )

        return ManifestRewriteResult(
            manifest_path=manifest_path,
            retained_row_count=len(specification),
            renamed_tables=renamed_tables,
            archive_removed=archive_removed,
        )

    def manifest_load_specification(self) -> pd.DataFrame:
        """Load the engine results specification with camelCase headers.

        Returns:
            pd.DataFrame: Specification rows with every value kept as text.

        Raises:
            ConfigurationError: Raised when the table name column is missing.
            ResultsFileError: Raised when the specification cannot be read.
        """

        try:
            specification = pd.read_csv(self._results_specification_path, dtype=str, keep_default_na=False)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as error:
            raise ResultsFileError(
                f"Cannot read results specification {self._results_specification_path}: {error}"
            ) from error

        specification.columns = [
            job_manifest_snake_to_camel(str(column).strip().lower()) for column in specification.columns
        ]
        if TABLE_NAME_COLUMN not in specification.columns:
            raise ConfigurationError(
                f"Results specification {self._results_specification_path} has no table_name column"
            )
        return specification

    @staticmethod
    def manifest_filter_exported(specification: pd.DataFrame, export_folder: Path) -> pd.DataFrame:
        """Keep specification rows whose table CSV exists in the export folder.

        Args:
            specification: Specification rows with a `tableName` column.
            export_folder: Folder holding diagnostics CSV output.

        Returns:
            pd.DataFrame: Retained rows with a fresh index.
        """

        exported_mask = specification[TABLE_NAME_COLUMN].map(
            lambda table_name: bool(table_name) and (export_folder / f"{table_name}.csv").is_file()
        )
        return specification.loc[exported_mask.astype(bool)].reset_index(drop=True)

    @staticmethod
    def _manifest_remove_archive(export_folder: Path, database_id: str) -> bool:
        archive_path = export_folder / job_results_archive_name(database_id)
        if not archive_path.exists():
            return False
        try:
            archive_path.unlink()
        except OSError as error:
            raise ResultsFileError(f"Cannot delete results archive {archive_path}: {error}") from error
        logger.info("Removed stale results archive %s", archive_path)
        return True

    @staticmethod
    def _manifest_write(specification: pd.DataFrame, export_folder: Path) -> Path:
        manifest_path = export_folder / RESULTS_SPECIFICATION_FILE_NAME
        output = specification.rename(columns=job_manifest_camel_to_snake)
        try:
            # Replace a case-variant of the manifest instead of writing beside it.
            for existing_path in export_folder.iterdir():
                is_case_variant = existing_path.name.lower() == manifest_path.name.lower()
                if is_case_variant and existing_path.name != manifest_path.name:
                    existing_path.unlink()
            output.to_csv(manifest_path, index=False)
        except OSError as error:
            raise ResultsFileError(f"Cannot write results manifest {manifest_path}: {error}") from error
        return manifest_path
