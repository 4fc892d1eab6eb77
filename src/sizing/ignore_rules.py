"""Git-style ignore rules scoped to the directory that declares them."""

from __future__ import annotations

import logging
import os
from typing import Iterable, List, Optional, Sequence, Tuple

import pathspec

from constants import Constants

logger = logging.getLogger(__name__)


def compile_rules(lines: Iterable[str], source: str) -> pathspec.GitIgnoreSpec:
    """Compile ignore lines, logging and dropping any line that is not a valid pattern."""
    valid = []
    for line in lines:
        try:
            pathspec.GitIgnoreSpec.from_lines([line])
        except ValueError as exc:
            logger.error("Error: %s: %s", source, exc)
            continue
        valid.append(line)
    return pathspec.GitIgnoreSpec.from_lines(valid)


class IgnoreMatcher:
    """Stack of ignore-file layers collected while descending a tree.

    Each layer is the compiled contents of one ignore file together with the
    directory it lives in. Deeper layers override shallower ones, and within
    a directory later file names in ``ignore_files`` override earlier ones.
    Git-specific files (``.gitignore``, ``.git/info/exclude``) only apply
    once a directory holding ``.git`` has been entered, unless
    ``require_git`` is off.
    """

    def __init__(
        self,
        ignore_files: Sequence[str],
        layers: Optional[List[Tuple[str, pathspec.GitIgnoreSpec]]] = None,
        in_git: bool = False,
        require_git: Optional[bool] = None,
    ):
        self.ignore_files = list(ignore_files)
        self.layers = layers or []
        self.in_git = in_git
        self.require_git = Constants.REQUIRE_GIT if require_git is None else require_git

    @classmethod
    def for_root(
        cls,
        root: str,
        ignore_files: Sequence[str],
        require_git: Optional[bool] = None,
    ) -> "IgnoreMatcher":
        """Return a matcher seeded with the ignore files of every ancestor of ``root``.

        Ancestors are applied from the filesystem root downwards, so a
        ``.gitignore`` is only picked up at or below the enclosing repository.
        Unreadable ancestor files are logged and skipped.
        """
        ancestors = []
        current = os.path.dirname(os.path.abspath(root))
        while True:
            ancestors.append(current)
            parent = os.path.dirname(current)
            if parent == current:
                break
            current = parent

        matcher = cls(ignore_files, require_git=require_git)
        for directory in reversed(ancestors):
            try:
                matcher = matcher.child(directory)
            except OSError as exc:
                logger.error("Error: %s", exc)
        return matcher

    def _git_applies(self, in_git: bool) -> bool:
        return in_git or not self.require_git

    def child(self, directory: str) -> "IgnoreMatcher":
        """Return a matcher extended with the ignore files found in ``directory``.

        Raises:
            OSError: If an ignore file exists but cannot be read.
        """
        git_dir = os.path.join(directory, Constants.GIT_DIR)
        in_git = self.in_git or os.path.exists(git_dir)

        paths = []
        exclude = os.path.join(git_dir, *Constants.GIT_EXCLUDE_FILE.split("/"))
        wants_git = any(name in Constants.GIT_IGNORE_FILES for name in self.ignore_files)
        if wants_git and in_git and os.path.isdir(git_dir) and os.path.isfile(exclude):
            paths.append(exclude)
        for name in self.ignore_files:
            if name in Constants.GIT_IGNORE_FILES and not self._git_applies(in_git):
                continue
            path = os.path.join(directory, name)
            if os.path.isfile(path):
                paths.append(path)

        added = []
        for path in paths:
            with open(path, "r", encoding="utf-8", errors="replace") as fh:
                added.append((directory, compile_rules(fh.read().splitlines(), path)))
        if not added and in_git == self.in_git:
            return self
        return IgnoreMatcher(self.ignore_files, self.layers + added, in_git, self.require_git)

    def is_ignored(self, path: str, is_dir: bool = False) -> bool:
        """Return True if the nearest rule matching ``path`` ignores it."""
        for base, spec in reversed(self.layers):
            rel = os.path.relpath(path, base).replace(os.sep, "/")
            if rel == ".." or rel.startswith("../"):
                continue
            if is_dir:
                rel += "/"
            result = spec.check_file(rel)
            if result.include is not None:
                return result.include
        return False
