"""Main module entrypoint for running one job-context entry point.

This module validates startup configuration, loads the job-context document and
dispatches to the selected module entry point.
"""

import argparse
import logging

from cohort_diagnostics_module.bootstrap import bootstrap_create_module
from cohort_diagnostics_module.config import config_load_settings
from cohort_diagnostics_module.jobs import job_context_load_file

logger = logging.getLogger("cohort_diagnostics_module")

_COMMAND_METHODS = {
    "execute": "module_execute",
    "upload-results": "module_upload_results_callback",
    "create-schema": "module_create_data_model_schema",
}


def main(argv: list[str] | None = None) -> None:
    """Run the selected entry point for one job-context file.

    Args:
        argv: Optional argument list; defaults to process arguments.

    Raises:
        SystemExit: Raised with status 1 when the entry point fails.
    """

    argument_parser = argparse.ArgumentParser(description="Cohort diagnostics module runtime entrypoint")
    argument_parser.add_argument(
        "command",
        choices=tuple(_COMMAND_METHODS),
        help="Entry point: `execute` runs diagnostics, `upload-results` uploads the results archive, "
        "`create-schema` creates the results tables",
        type=str,
    )
    argument_parser.add_argument(
        "job_context_path",
        help="Path to the job-context JSON document",
        type=str,
    )
    parsed_arguments = argument_parser.parse_args(argv)

    try:
        settings = config_load_settings()
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        module = bootstrap_create_module(settings=settings)
        job_context = job_context_load_file(parsed_arguments.job_context_path)
        entry_point = getattr(module, _COMMAND_METHODS[parsed_arguments.command])
        entry_point(job_context)
    except (ValueError, RuntimeError, OSError, ImportError) as error:
        logging.basicConfig(level=logging.INFO)
        logger.error("%s failed: %s", parsed_arguments.command, error)
        raise SystemExit(1) from error


if __name__ == "__main__":
    main()
