"""Tests for the cargo metadata adapter."""

import asyncio
import json
import os
import stat
import sys

import pytest
import semantic_version

from constants import Constants
from errors import ResolutionError
from resolution.cargo import build_metadata_command, parse_metadata, resolve_workspace
from resolution.models import DependencyKind, PackageId


def _package(name, version, root, dependencies=None, source="registry"):
    return {
        "name": name,
        "version": version,
        "id": f"{source}+{name}@{version}",
        "manifest_path": os.path.join(root, "Cargo.toml"),
        "dependencies": dependencies or [],
    }


def _dep(name, kind=None, rename=None, target=None):
    return {"name": name, "req": "*", "kind": kind, "rename": rename, "target": target,
            "optional": False, "uses_default_features": True, "features": []}


def _metadata(tmp_path, root_id="path+demo@0.1.0"):
    app_root = str(tmp_path / "demo")
    root = _package("demo", "0.1.0", app_root, dependencies=[
        _dep("serde"),
        _dep("rand", rename="random"),
        _dep("tempfile", kind="dev"),
        _dep("cc", kind="build"),
        _dep("winapi", target="cfg(windows)"),
    ], source="path")
    return {
        "version": 1,
        "workspace_root": app_root,
        "packages": [
            root,
            _package("serde", "1.0.190", "/registry/serde-1.0.190"),
            _package("rand", "0.8.5", "/registry/rand-0.8.5"),
            _package("rand", "0.7.3", "/registry/rand-0.7.3"),
            _package("tempfile", "3.8.0", "/registry/tempfile-3.8.0"),
            _package("cc", "1.0.83", "/registry/cc-1.0.83"),
            _package("winapi", "0.3.9", "/registry/winapi-0.3.9"),
        ],
        "resolve": {"nodes": [], "root": root_id},
    }


class TestParseMetadata:
    """Conversion of cargo metadata JSON."""

    def test_packages_and_roots(self, tmp_path):
        manifest = str(tmp_path / "demo" / "Cargo.toml")
        ws = parse_metadata(_metadata(tmp_path), manifest)
        assert ws.root.package_id == PackageId("demo", semantic_version.Version("0.1.0"))
        assert ws.root.root == str(tmp_path / "demo")
        assert len(ws.packages) == 7
        rand_roots = sorted(p.root for p in ws.packages if p.name == "rand")
        assert rand_roots == ["/registry/rand-0.7.3", "/registry/rand-0.8.5"]

    def test_dependency_kinds_and_renames(self, tmp_path):
        ws = parse_metadata(_metadata(tmp_path), str(tmp_path / "demo" / "Cargo.toml"))
        by_name = {d.name_in_manifest: d for d in ws.root_dependencies}
        assert by_name["serde"].kind == DependencyKind.NORMAL
        assert by_name["random"].package_name == "rand"
        assert by_name["tempfile"].kind == DependencyKind.DEV
        assert by_name["cc"].kind == DependencyKind.BUILD
        assert by_name["winapi"].target == "cfg(windows)"

    def test_root_found_by_manifest_when_resolve_root_missing(self, tmp_path):
        data = _metadata(tmp_path, root_id=None)
        ws = parse_metadata(data, str(tmp_path / "demo" / "Cargo.toml"))
        assert ws.root.name == "demo"

    def test_virtual_manifest_raises(self, tmp_path):
        data = _metadata(tmp_path, root_id=None)
        with pytest.raises(ResolutionError, match="virtual manifest"):
            parse_metadata(data, str(tmp_path / "Cargo.toml"))

    def test_invalid_version_raises(self, tmp_path):
        data = _metadata(tmp_path)
        data["packages"][1]["version"] = "not-a-version"
        with pytest.raises(ResolutionError, match="invalid version"):
            parse_metadata(data, str(tmp_path / "demo" / "Cargo.toml"))

    def test_missing_packages_raises(self, tmp_path):
        with pytest.raises(ResolutionError):
            parse_metadata({"version": 1}, str(tmp_path / "Cargo.toml"))

    def test_unknown_kind_is_skipped(self, tmp_path):
        data = _metadata(tmp_path)
        data["packages"][0]["dependencies"].append(_dep("odd", kind="weird"))
        ws = parse_metadata(data, str(tmp_path / "demo" / "Cargo.toml"))
        assert "odd" not in {d.package_name for d in ws.root_dependencies}

    def test_non_mapping_package_entry_raises(self, tmp_path):
        data = _metadata(tmp_path)
        data["packages"].append("serde 1.0.190")
        with pytest.raises(ResolutionError, match="malformed package entry"):
            parse_metadata(data, str(tmp_path / "demo" / "Cargo.toml"))

    def test_non_mapping_dependency_entry_raises(self, tmp_path):
        data = _metadata(tmp_path)
        data["packages"][0]["dependencies"].append(["serde"])
        with pytest.raises(ResolutionError, match="malformed dependency entry"):
            parse_metadata(data, str(tmp_path / "demo" / "Cargo.toml"))

    def test_non_mapping_resolve_falls_back_to_manifest(self, tmp_path):
        data = _metadata(tmp_path)
        data["resolve"] = ["unexpected"]
        ws = parse_metadata(data, str(tmp_path / "demo" / "Cargo.toml"))
        assert ws.root.name == "demo"
        assert ws.manifest_path == str(tmp_path / "demo" / "Cargo.toml")


class TestMetadataCommand:
    """cargo invocation flags."""

    def test_all_features_and_no_platform_filter(self):
        cmd = build_metadata_command("/w/Cargo.toml")
        assert cmd[:2] == ["cargo", "metadata"]
        assert "--all-features" in cmd
        assert "--no-deps" not in cmd
        assert "--filter-platform" not in cmd
        assert cmd[cmd.index("--manifest-path") + 1] == "/w/Cargo.toml"
        assert "--offline" not in cmd

    def test_offline_and_binary_from_constants(self, monkeypatch):
        monkeypatch.setattr(Constants, "CARGO_BIN", "/opt/cargo")
        monkeypatch.setattr(Constants, "CARGO_OFFLINE", True)
        cmd = build_metadata_command("/w/Cargo.toml")
        assert cmd[0] == "/opt/cargo"
        assert "--offline" in cmd

    def test_explicit_arguments_win(self, monkeypatch):
        monkeypatch.setattr(Constants, "CARGO_OFFLINE", True)
        cmd = build_metadata_command("/w/Cargo.toml", cargo="my-cargo", offline=False)
        assert cmd[0] == "my-cargo"
        assert "--offline" not in cmd


def _fake_cargo(tmp_path, stdout_file=None, exit_code=0, stderr_text=""):
    script = tmp_path / "fake-cargo"
    lines = ["#!/bin/sh", f'printf "%s\\n" "$@" > "{tmp_path / "argv.txt"}"']
    if stdout_file is not None:
        lines.append(f'cat "{stdout_file}"')
    if stderr_text:
        lines.append(f'echo "{stderr_text}" >&2')
    lines.append(f"exit {exit_code}")
    script.write_text("\n".join(lines) + "\n", encoding="utf-8")
    script.chmod(script.stat().st_mode | stat.S_IEXEC)
    return str(script)


@pytest.mark.skipif(sys.platform.startswith("win"), reason="uses a POSIX shell script as cargo")
class TestResolveWorkspace:
    """Running the collaborator as a subprocess."""

    def test_success(self, tmp_path):
        payload = tmp_path / "metadata.json"
        payload.write_text(json.dumps(_metadata(tmp_path)), encoding="utf-8")
        cargo = _fake_cargo(tmp_path, stdout_file=payload)
        manifest = str(tmp_path / "demo" / "Cargo.toml")

        ws = asyncio.run(resolve_workspace(manifest, cargo=cargo, offline=True))

        assert ws.root.name == "demo"
        argv = (tmp_path / "argv.txt").read_text(encoding="utf-8").split()
        assert argv[0] == "metadata"
        assert "--all-features" in argv
        assert "--offline" in argv

    def test_nonzero_exit_raises_with_stderr(self, tmp_path):
        cargo = _fake_cargo(tmp_path, exit_code=101, stderr_text="failed to select a version")
        with pytest.raises(ResolutionError) as exc_info:
            asyncio.run(resolve_workspace(str(tmp_path / "Cargo.toml"), cargo=cargo))
        assert "101" in str(exc_info.value)
        assert "failed to select a version" in exc_info.value.stderr

    def test_invalid_json_raises(self, tmp_path):
        payload = tmp_path / "garbage.txt"
        payload.write_text("not json", encoding="utf-8")
        cargo = _fake_cargo(tmp_path, stdout_file=payload)
        with pytest.raises(ResolutionError, match="invalid JSON"):
            asyncio.run(resolve_workspace(str(tmp_path / "Cargo.toml"), cargo=cargo))

    def test_missing_executable_raises(self, tmp_path):
        with pytest.raises(ResolutionError, match="failed to run"):
            asyncio.run(resolve_workspace(str(tmp_path / "Cargo.toml"), cargo=str(tmp_path / "no-cargo")))
