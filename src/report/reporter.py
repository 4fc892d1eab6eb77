"""Per-dependency size report for a resolved workspace.

Every resolved package is sized concurrently; the root package's normal
dependencies are then matched against the highest resolved version of each
name and summed.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, Iterable, List, Optional, Tuple

from common.logging_utils import extra_context, is_debug_enabled, Timer
from constants import Constants
from errors import SizingError
from report.formatting import format_row, format_total
from resolution.models import (
    DependencyDeclaration,
    DependencyKind,
    PackageId,
    ResolvedPackage,
    WorkspaceResolve,
)
from sizing.aggregator import calculate_package_size

logger = logging.getLogger(__name__)

Sizer = Callable[[str], Awaitable[int]]


@dataclass
class ReportRow:
    """One printed line: ``name (vVERSION)`` and its size in bytes."""
    label: str
    size: int


@dataclass
class Report:
    """Sorted rows, their total and the packages that could not be sized."""
    rows: List[ReportRow] = field(default_factory=list)
    total: int = 0
    failures: List[Tuple[PackageId, BaseException]] = field(default_factory=list)


async def _size_one(
    package: ResolvedPackage, sizer: Sizer
) -> Tuple[PackageId, Optional[int], Optional[BaseException]]:
    try:
        return package.package_id, await sizer(package.root), None
    except Exception as exc:  # pylint: disable=broad-exception-caught
        return package.package_id, None, exc


async def collect_package_sizes(
    packages: Iterable[ResolvedPackage], sizer: Optional[Sizer] = None
) -> Tuple[Dict[PackageId, int], List[Tuple[PackageId, BaseException]]]:
    """Size every package concurrently.

    Results are recorded in completion order; each package contributes
    either one size or one failure.

    Returns:
        (sizes keyed by package id, failures as (package id, exception))
    """
    sizer = sizer or calculate_package_size
    scheduled = {}
    for package in packages:
        scheduled.setdefault(package.package_id, package)

    sizes: Dict[PackageId, int] = {}
    failures: List[Tuple[PackageId, BaseException]] = []
    with Timer() as t:
        tasks = [asyncio.ensure_future(_size_one(pkg, sizer)) for pkg in scheduled.values()]
        for next_done in asyncio.as_completed(tasks):
            package_id, size, error = await next_done
            if error is not None:
                logger.warning("Failed to calculate size of %s: %s", package_id.name, error)
                failures.append((package_id, error))
                continue
            sizes[package_id] = size
    if is_debug_enabled(logger):
        logger.debug(
            "Sized packages",
            extra=extra_context(
                event="function_exit",
                component="reporter",
                action="collect_package_sizes",
                count=len(sizes),
                failed=len(failures),
                duration_ms=t.duration_ms(),
            ),
        )
    return sizes, failures


def distinct_normal_dependencies(
    declarations: Iterable[DependencyDeclaration],
) -> List[DependencyDeclaration]:
    """Return normal dependencies, keeping the first declaration of each name."""
    seen = set()
    result = []
    for dep in declarations:
        if dep.kind != DependencyKind.NORMAL or dep.name_in_manifest in seen:
            continue
        seen.add(dep.name_in_manifest)
        result.append(dep)
    return result


def select_latest_version(package_ids: Iterable[PackageId], package_name: str) -> Optional[PackageId]:
    """Pick the highest semantic version among ids named ``package_name``."""
    latest = None
    for package_id in package_ids:
        if package_id.name != package_name:
            continue
        if latest is None or package_id.version > latest.version:
            latest = package_id
    return latest


def build_rows(workspace: WorkspaceResolve, sizes: Dict[PackageId, int]) -> Tuple[List[ReportRow], int]:
    """Join root dependencies to their latest resolved package and its size.

    Rows are sorted ascending by size; the second element is their sum.
    """
    package_ids = workspace.package_ids()
    rows = []
    total = 0
    for dep in distinct_normal_dependencies(workspace.root_dependencies):
        package_id = select_latest_version(package_ids, dep.package_name)
        if package_id is None:
            logger.debug("No resolved package for dependency %s", dep.package_name)
            continue
        size = sizes.get(package_id)
        if size is None:
            logger.warning("Skipping %s: size unavailable", package_id)
            continue
        rows.append(ReportRow(f"{dep.name_in_manifest} (v{package_id.version})", size))
        total += size
    rows.sort(key=lambda row: row.size)
    return rows, total


async def build_report(
    workspace: WorkspaceResolve,
    sizer: Optional[Sizer] = None,
    strict: Optional[bool] = None,
) -> Report:
    """Size the workspace and assemble the report.

    Raises:
        SizingError: In strict mode, when any package failed to be sized.
    """
    if strict is None:
        strict = Constants.STRICT
    if is_debug_enabled(logger):
        logger.debug(
            "Building report",
            extra=extra_context(
                event="function_entry",
                component="report",
                action="build_report",
                target=workspace.manifest_path,
                count=len(workspace.packages),
            ),
        )
    sizes, failures = await collect_package_sizes(workspace.packages, sizer)
    if strict and failures:
        raise SizingError([(str(package_id), error) for package_id, error in failures])
    rows, total = build_rows(workspace, sizes)
    return Report(rows=rows, total=total, failures=failures)


def render_report(report: Report) -> List[str]:
    """Render the report as output lines, rows first and the total last."""
    lines = [format_row(row.label, row.size) for row in report.rows]
    lines.append(format_total(report.total))
    return lines
