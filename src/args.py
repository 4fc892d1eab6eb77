"""Argument parsing functionality for depsize."""

import argparse


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="depsize",
        description=(
            "depsize - On-disk size of each direct dependency of a Cargo package"
        ),
        add_help=True,
    )

    parser.add_argument("--manifest-path",
                        dest="MANIFEST_PATH",
                        help="Path to Cargo.toml (default: nearest one above the current directory)",
                        action="store",
                        type=str)
    parser.add_argument("--offline",
                        dest="OFFLINE",
                        help="Run cargo without accessing the network.",
                        action="store_true")
    parser.add_argument("--strict",
                        dest="STRICT",
                        help="Exit with a non-zero status code if any package cannot be sized.",
                        action="store_true")
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML or YML)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'])
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)

    return parser.parse_args(argv)
