"""Tests for the esmready CLI entrypoint."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest
from rich.logging import RichHandler

import esmready.main as main
from esmready.cli.check import parse_name_filter
from esmready.main import setup_logging


@pytest.fixture(autouse=True)
def _quiet_logging(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main, "setup_logging", lambda *a, **k: None)


def _install_react(project) -> None:
    project.set_root({"react": "*", "ghost": "*"})
    project.add_package("react", {"index.js": "module.exports = {};"})


def test_parse_name_filter() -> None:
    assert parse_name_filter(None) is None
    assert parse_name_filter(" , ") is None
    assert parse_name_filter("react, lodash,") == ["react", "lodash"]


def test_check_writes_report_and_prints_summary(
    project, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    _install_react(project)
    output = tmp_path / "out" / "report.json"

    exit_code = main.main(["-p", str(project.manifest_path), "-o", str(output), "-v"])

    assert exit_code == 0
    report = json.loads(output.read_text(encoding="utf-8"))
    assert report["total"] == 1
    assert report["cjs"] == ["react"]
    assert [entry["package"] for entry in report["resolveErrors"]] == ["ghost"]
    printed = capsys.readouterr().out
    assert "ESM readiness" in printed
    assert "react" in printed


def test_check_applies_name_filter(project, tmp_path: Path) -> None:
    _install_react(project)
    output = tmp_path / "report.json"

    exit_code = main.main(
        ["-p", str(project.manifest_path), "-o", str(output), "-c", "react", "-w", "2"]
    )

    assert exit_code == 0
    report = json.loads(output.read_text(encoding="utf-8"))
    assert report["resolveErrors"] == []


def test_missing_root_manifest_exits_with_error(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    exit_code = main.main(["-p", str(tmp_path / "nope" / "package.json")])

    assert exit_code == 1
    assert "Root manifest not found" in capsys.readouterr().err


def test_invalid_configuration_is_rejected(project) -> None:
    _install_react(project)
    assert main.main(["-p", str(project.manifest_path), "--config", '{"max_workers": 0}']) == 2
    assert main.main(["-p", str(project.manifest_path), "-w", "0"]) == 2


def test_setup_logging_installs_rich_handler() -> None:
    root = logging.getLogger()
    saved = (root.level, root.handlers[:])
    try:
        setup_logging(verbose=True)
        assert root.level == logging.DEBUG
        assert [type(h) for h in root.handlers] == [RichHandler]

        setup_logging()
        assert root.level == logging.WARNING
    finally:
        root.handlers[:] = saved[1]
        root.setLevel(saved[0])
