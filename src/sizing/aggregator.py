"""On-disk size of a package source tree.

The walk honors ``.ignore`` files at every level, ``.gitignore`` files inside
a git repository (including those of directories above the package root),
and skips hidden entries. Errors on individual entries are logged and skipped, while a
failed metadata read on an accepted file aborts the whole computation.
"""

from __future__ import annotations

import asyncio
import logging
import os
from typing import Iterator, Optional, Sequence

from common.logging_utils import extra_context, is_debug_enabled, Timer
from constants import Constants
from errors import MetadataError
from sizing.ignore_rules import IgnoreMatcher

logger = logging.getLogger(__name__)


def walk_files(
    root: str,
    skip_hidden: Optional[bool] = None,
    ignore_files: Optional[Sequence[str]] = None,
) -> Iterator[str]:
    """Yield the path of every regular file under ``root`` not excluded by ignore rules.

    Symlinks are never followed nor yielded. Directories matched by an
    ignore rule are not descended into.

    Args:
        root: Directory to traverse.
        skip_hidden: Skip dot-entries; defaults to ``Constants.SKIP_HIDDEN``.
        ignore_files: Ignore file names to honor; defaults to ``Constants.IGNORE_FILES``.
    """
    if skip_hidden is None:
        skip_hidden = Constants.SKIP_HIDDEN
    if ignore_files is None:
        ignore_files = Constants.IGNORE_FILES

    stack = [(root, IgnoreMatcher.for_root(root, ignore_files))]
    while stack:
        directory, parent_matcher = stack.pop()
        try:
            matcher = parent_matcher.child(directory)
        except (OSError, ValueError) as exc:
            logger.error("Error: %s", exc)
            matcher = parent_matcher

        try:
            with os.scandir(directory) as it:
                entries = list(it)
        except OSError as exc:
            logger.error("Error: %s", exc)
            continue

        for entry in entries:
            name = entry.name
            if skip_hidden and name.startswith("."):
                continue
            try:
                is_dir = entry.is_dir(follow_symlinks=False)
                is_file = entry.is_file(follow_symlinks=False)
            except OSError as exc:
                logger.error("Error: %s", exc)
                continue

            if is_dir:
                if name in Constants.ALWAYS_SKIP_DIRS:
                    continue
                if matcher.is_ignored(entry.path, is_dir=True):
                    continue
                stack.append((entry.path, matcher))
            elif is_file:
                if matcher.is_ignored(entry.path):
                    continue
                yield entry.path


def package_size(
    root: str,
    skip_hidden: Optional[bool] = None,
    ignore_files: Optional[Sequence[str]] = None,
) -> int:
    """Sum the byte length of every accepted regular file under ``root``.

    Raises:
        MetadataError: If reading metadata of an accepted file fails.
    """
    total = 0
    with Timer() as t:
        for path in walk_files(root, skip_hidden=skip_hidden, ignore_files=ignore_files):
            try:
                total += os.stat(path).st_size
            except OSError as exc:
                raise MetadataError(path, exc) from exc
    if is_debug_enabled(logger):
        logger.debug(
            "Sized %s",
            root,
            extra=extra_context(
                event="function_exit",
                component="sizing",
                action="package_size",
                target=root,
                size=total,
                duration_ms=t.duration_ms(),
            ),
        )
    return total


async def calculate_package_size(
    root: str,
    skip_hidden: Optional[bool] = None,
    ignore_files: Optional[Sequence[str]] = None,
) -> int:
    """Compute :func:`package_size` on a worker thread."""
    return await asyncio.to_thread(package_size, root, skip_hidden, ignore_files)
