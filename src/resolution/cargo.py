"""Workspace resolution through ``cargo metadata``.

Cargo performs version selection, feature unification and workspace
handling; this module only runs it and converts its JSON output into
:class:`~resolution.models.WorkspaceResolve`. The invocation enables every
feature, keeps dev-dependencies and omits ``--filter-platform`` so the
resolved set covers all targets.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from typing import Any, Dict, List, Optional

import semantic_version

from common.logging_utils import extra_context, is_debug_enabled, Timer
from constants import Constants
from errors import ResolutionError
from resolution.models import (
    DependencyDeclaration,
    DependencyKind,
    PackageId,
    ResolvedPackage,
    WorkspaceResolve,
)

logger = logging.getLogger(__name__)


def build_metadata_command(
    manifest_path: str, cargo: Optional[str] = None, offline: Optional[bool] = None
) -> List[str]:
    """Return the argv used to ask cargo for the resolved workspace."""
    cmd = [
        cargo or Constants.CARGO_BIN,
        "metadata",
        "--format-version",
        Constants.METADATA_FORMAT_VERSION,
        "--all-features",
        "--manifest-path",
        manifest_path,
    ]
    use_offline = Constants.CARGO_OFFLINE if offline is None else offline
    if use_offline:
        cmd.append("--offline")
    return cmd


def _parse_version(raw: Any, package_name: str) -> semantic_version.Version:
    try:
        return semantic_version.Version(str(raw))
    except ValueError as exc:
        raise ResolutionError(
            f"package `{package_name}` has an invalid version `{raw}`: {exc}"
        ) from exc


def _parse_package(entry: Any) -> ResolvedPackage:
    if not isinstance(entry, dict):
        raise ResolutionError(f"malformed package entry in cargo metadata: {entry!r}")
    name = entry.get("name")
    manifest = entry.get("manifest_path")
    if not isinstance(name, str) or not isinstance(manifest, str):
        raise ResolutionError(f"malformed package entry in cargo metadata: {entry.get('id')!r}")
    version = _parse_version(entry.get("version"), name)
    return ResolvedPackage(PackageId(name, version), os.path.dirname(manifest))


def _parse_dependencies(entry: Dict[str, Any]) -> List[DependencyDeclaration]:
    declarations = []
    dependencies = entry.get("dependencies") or []
    if not isinstance(dependencies, list):
        raise ResolutionError(f"malformed dependency list for `{entry.get('name')}` in cargo metadata")
    for dep in dependencies:
        if not isinstance(dep, dict):
            raise ResolutionError(f"malformed dependency entry in cargo metadata: {dep!r}")
        package_name = dep.get("name")
        if not isinstance(package_name, str):
            continue
        try:
            kind = DependencyKind.from_metadata(dep.get("kind"))
        except ValueError:
            logger.warning("Unknown dependency kind %r for %s; skipping", dep.get("kind"), package_name)
            continue
        declarations.append(
            DependencyDeclaration(
                name_in_manifest=dep.get("rename") or package_name,
                package_name=package_name,
                kind=kind,
                target=dep.get("target"),
            )
        )
    return declarations


def parse_metadata(data: Dict[str, Any], manifest_path: str) -> WorkspaceResolve:
    """Convert ``cargo metadata`` JSON into a WorkspaceResolve.

    Args:
        data: Decoded JSON document (format version 1).
        manifest_path: Manifest the metadata was requested for.

    Returns:
        The resolved package set and the root package's declarations.

    Raises:
        ResolutionError: If the document is malformed or the manifest is
            a virtual workspace manifest without a root package.
    """
    if not isinstance(data, dict) or not isinstance(data.get("packages"), list):
        raise ResolutionError("cargo metadata output has no `packages` list")

    packages: List[ResolvedPackage] = []
    root_entry: Optional[Dict[str, Any]] = None
    resolve = data.get("resolve")
    root_id = resolve.get("root") if isinstance(resolve, dict) else None
    wanted_manifest = os.path.normcase(os.path.abspath(manifest_path))

    for entry in data["packages"]:
        packages.append(_parse_package(entry))
        if root_id is not None:
            if entry.get("id") == root_id:
                root_entry = entry
        elif root_entry is None and os.path.normcase(
            os.path.abspath(str(entry.get("manifest_path", "")))
        ) == wanted_manifest:
            root_entry = entry

    if root_entry is None:
        raise ResolutionError(
            f"manifest path `{manifest_path}` is a virtual manifest, "
            "but this command requires running against an actual package"
        )

    return WorkspaceResolve(
        manifest_path=manifest_path,
        root=_parse_package(root_entry),
        packages=packages,
        root_dependencies=_parse_dependencies(root_entry),
    )


async def resolve_workspace(
    manifest_path: str, cargo: Optional[str] = None, offline: Optional[bool] = None
) -> WorkspaceResolve:
    """Run cargo and return the resolved workspace for ``manifest_path``."""
    cmd = build_metadata_command(manifest_path, cargo=cargo, offline=offline)
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "Resolving workspace",
                extra=extra_context(
                    event="function_entry",
                    component="resolution",
                    action="cargo_metadata",
                    target=manifest_path,
                ),
            )
        try:
            proc = await asyncio.create_subprocess_exec(
                *cmd,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as exc:
            raise ResolutionError(f"failed to run `{cmd[0]}`: {exc}") from exc
        stdout, stderr = await proc.communicate()
        err_text = stderr.decode("utf-8", errors="replace").strip()
        if proc.returncode != 0:
            raise ResolutionError(
                f"`{' '.join(cmd[:2])}` exited with status {proc.returncode}", stderr=err_text
            )
        try:
            data = json.loads(stdout)
        except ValueError as exc:
            raise ResolutionError(f"cargo metadata returned invalid JSON: {exc}") from exc

        workspace = parse_metadata(data, manifest_path)
        if is_debug_enabled(logger):
            logger.debug(
                "Workspace resolved",
                extra=extra_context(
                    event="function_exit",
                    component="resolution",
                    action="cargo_metadata",
                    outcome="success",
                    count=len(workspace.packages),
                    duration_ms=t.duration_ms(),
                ),
            )
    logger.info("Resolved %d packages for %s", len(workspace.packages), workspace.root.name)
    return workspace
