"""depsize - On-disk size of each direct dependency of a Cargo package.

    Returns:
        int: Exit code
"""
import asyncio
import logging
import os
import sys

from args import parse_args
from cli_config import apply_cli_overrides, apply_config, load_config
from common.logging_utils import configure_logging, extra_context, is_debug_enabled
from constants import Constants, ExitCodes
from errors import DepsizeError
from report.reporter import Report, build_report, render_report
from resolution.cargo import resolve_workspace
from resolution.manifest import resolve_manifest_path

logger = logging.getLogger(__name__)


async def calculate_and_display_depsize(manifest_path: str) -> Report:
    """Resolve the workspace at ``manifest_path``, size it and print the report.

    Args:
        manifest_path: Manifest of the root package.

    Returns:
        Report: The report that was printed.
    """
    workspace = await resolve_workspace(manifest_path)
    report = await build_report(workspace)
    for line in render_report(report):
        print(line)
    if report.failures:
        logger.warning("%d package(s) could not be sized.", len(report.failures))
    return report


async def run(args) -> Report:
    """Locate the manifest and produce the report."""
    manifest_path = resolve_manifest_path(getattr(args, "MANIFEST_PATH", None), os.getcwd())
    logger.info("Using manifest %s", manifest_path)
    return await calculate_and_display_depsize(manifest_path)


def main(argv=None):
    """Main function of the program."""
    args = parse_args(argv)
    # Honor CLI --loglevel by passing it to centralized logger via env
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.ENV_LOG_LEVEL] = str(args.LOG_LEVEL).upper()
    try:
        configure_logging(getattr(args, "LOG_FILE", None))
        apply_config(load_config(getattr(args, "CONFIG", None)))
        apply_cli_overrides(args)

        if is_debug_enabled(logger):
            logger.debug(
                "CLI start",
                extra=extra_context(event="function_entry", component="cli", action="main")
            )

        asyncio.run(run(args))
    except (DepsizeError, OSError) as err:
        sys.stderr.write(f"Error: {err!r}\n")
        sys.exit(ExitCodes.FILE_ERROR.value)

    sys.exit(ExitCodes.SUCCESS.value)


if __name__ == "__main__":
    main()
