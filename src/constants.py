"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1


class SizeUnits(Enum):
    """Byte thresholds for human-readable sizes, largest first.

    Args:
        Enum (int): Unit size in bytes.
    """

    GB = 1024 ** 3
    MB = 1024 ** 2
    KB = 1024


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    MANIFEST_FILE = "Cargo.toml"
    CARGO_BIN = "cargo"
    CARGO_OFFLINE = False
    METADATA_FORMAT_VERSION = "1"
    STRICT = False
    SKIP_HIDDEN = True
    IGNORE_FILES = [".gitignore", ".ignore"]
    GIT_IGNORE_FILES = [".gitignore"]
    GIT_DIR = ".git"
    GIT_EXCLUDE_FILE = "info/exclude"
    REQUIRE_GIT = True
    ALWAYS_SKIP_DIRS = [".git"]
    LABEL_WIDTH = 25
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    ENV_LOG_LEVEL = "DEPSIZE_LOG_LEVEL"
    DEFAULT_LOG_LEVEL = "WARNING"
    CONFIG_SECTION = "depsize"
