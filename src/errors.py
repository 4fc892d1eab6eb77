"""Exception types raised by depsize."""

from __future__ import annotations

from typing import List, Tuple


class DepsizeError(Exception):
    """Base class for all errors that end the run with a diagnostic."""


class ResolutionError(DepsizeError):
    """The manifest could not be located or cargo failed to resolve it."""

    def __init__(self, message: str, stderr: str = ""):
        super().__init__(message)
        self.message = message
        self.stderr = stderr

    def __repr__(self) -> str:
        if self.stderr:
            return f"ResolutionError({self.message!r}, stderr={self.stderr!r})"
        return f"ResolutionError({self.message!r})"


class MetadataError(DepsizeError):
    """Reading metadata of a file accepted by the walk failed."""

    def __init__(self, path: str, cause: OSError):
        super().__init__(f"failed to read metadata for {path}: {cause}")
        self.path = path
        self.cause = cause


class SizingError(DepsizeError):
    """One or more packages could not be sized while running in strict mode."""

    def __init__(self, failures: List[Tuple[str, BaseException]]):
        names = ", ".join(name for name, _ in failures)
        super().__init__(f"failed to size {len(failures)} package(s): {names}")
        self.failures = failures
