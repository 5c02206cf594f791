"""Shared fixtures that lay out miniature install trees on disk."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Optional

import pytest


def write_file(path: Path, content: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def write_manifest(directory: Path, manifest: Dict[str, Any]) -> Path:
    return write_file(directory / "package.json", json.dumps(manifest, indent=2))


class NodeProject:
    """A root project plus packages installed under ``node_modules``."""

    def __init__(self, root: Path) -> None:
        self.root = root
        self.manifest_path = root / "package.json"

    def set_root(
        self,
        dependencies: Optional[Dict[str, str]] = None,
        **fields: Any,
    ) -> Path:
        manifest: Dict[str, Any] = {"name": "app", "version": "0.0.0"}
        if dependencies is not None:
            manifest["dependencies"] = dependencies
        manifest.update(fields)
        return write_manifest(self.root, manifest)

    def write(self, relative: str, content: str = "") -> Path:
        return write_file(self.root / relative, content)

    def write_manifest(self, relative: str, manifest: Dict[str, Any]) -> Path:
        return write_manifest(self.root / relative, manifest)

    def add_package(
        self,
        name: str,
        files: Dict[str, str],
        manifest: Optional[Dict[str, Any]] = None,
        base: Optional[Path] = None,
    ) -> Path:
        """Install ``name`` under ``base/node_modules`` (default: project root)."""
        directory = (base or self.root) / "node_modules" / name
        data: Dict[str, Any] = {"name": name, "version": "1.0.0"}
        data.update(manifest or {})
        write_manifest(directory, data)
        for relative, content in files.items():
            write_file(directory / relative, content)
        return directory


@pytest.fixture
def project(tmp_path: Path) -> NodeProject:
    root = tmp_path.resolve() / "app"
    root.mkdir()
    return NodeProject(root)
