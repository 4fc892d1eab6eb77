"""Data models for resolved packages and manifest declarations."""

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

import semantic_version


class DependencyKind(Enum):
    """Kind of a declared dependency."""
    NORMAL = "normal"
    DEV = "dev"
    BUILD = "build"

    @classmethod
    def from_metadata(cls, raw: Optional[str]) -> "DependencyKind":
        """Map cargo's ``kind`` field; ``null`` means a normal dependency."""
        if raw is None:
            return cls.NORMAL
        return cls(raw)


@dataclass(frozen=True)
class PackageId:
    """Identity of one resolved package: its name pinned to one version."""
    name: str
    version: semantic_version.Version

    def __str__(self) -> str:
        return f"{self.name} v{self.version}"


@dataclass(frozen=True)
class ResolvedPackage:
    """A package chosen by resolution, with the directory holding its sources."""
    package_id: PackageId
    root: str

    @property
    def name(self) -> str:
        return self.package_id.name


@dataclass(frozen=True)
class DependencyDeclaration:
    """One dependency entry from the root manifest."""
    name_in_manifest: str
    package_name: str
    kind: DependencyKind
    target: Optional[str] = None  # platform cfg for target-specific tables


@dataclass
class WorkspaceResolve:
    """Resolution outcome consumed by the reporter."""
    manifest_path: str
    root: ResolvedPackage
    packages: List[ResolvedPackage] = field(default_factory=list)
    root_dependencies: List[DependencyDeclaration] = field(default_factory=list)

    def package_ids(self) -> List[PackageId]:
        return [pkg.package_id for pkg in self.packages]
