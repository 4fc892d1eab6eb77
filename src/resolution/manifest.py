"""Manifest discovery for the working directory."""

from __future__ import annotations

import logging
import os

from constants import Constants
from errors import ResolutionError

logger = logging.getLogger(__name__)


def find_root_manifest_for_wd(cwd: str) -> str:
    """Return the nearest manifest in ``cwd`` or any of its parents.

    Args:
        cwd: Directory to start the upward search from.

    Returns:
        Absolute path to the manifest file.

    Raises:
        ResolutionError: If no directory up to the filesystem root holds one.
    """
    current = os.path.abspath(cwd)
    while True:
        candidate = os.path.join(current, Constants.MANIFEST_FILE)
        if os.path.isfile(candidate):
            logger.debug("Found manifest at %s", candidate)
            return candidate
        parent = os.path.dirname(current)
        if parent == current:
            break
        current = parent
    raise ResolutionError(
        f"could not find `{Constants.MANIFEST_FILE}` in `{os.path.abspath(cwd)}` "
        "or any parent directory"
    )


def resolve_manifest_path(manifest_path: str | None, cwd: str) -> str:
    """Use an explicit manifest path when given, else discover one from ``cwd``."""
    if not manifest_path:
        return find_root_manifest_for_wd(cwd)
    path = os.path.abspath(os.path.join(cwd, manifest_path))
    if os.path.isdir(path):
        path = os.path.join(path, Constants.MANIFEST_FILE)
    if not os.path.isfile(path):
        raise ResolutionError(f"manifest path `{manifest_path}` does not exist")
    return path
