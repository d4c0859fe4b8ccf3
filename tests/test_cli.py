"""Tests for the gridcalc command line."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
import yaml
from click.testing import CliRunner

from gridcalc.cli import main


@pytest.fixture
def sheet_file(tmp_path: Path) -> Path:
    spec = {
        "n_rows": 3,
        "n_cols": 3,
        "cells": {
            "A1": "1000",
            "A2": "=A1*2",
            "B1": "=Z99",
            "C3": "=SUM(A1:A2)",
        },
    }
    path = tmp_path / "sheet.yaml"
    path.write_text(yaml.dump(spec, default_flow_style=False))
    return path


class TestEval:
    def test_table_output(self, sheet_file: Path) -> None:
        result = CliRunner().invoke(main, ["eval", str(sheet_file)])
        assert result.exit_code == 0, result.output
        assert "$1,000.00" in result.output
        assert "$2,000.00" in result.output
        assert "$3,000.00" in result.output
        assert "#ERROR:REF" in result.output
        assert result.output.splitlines()[0].split() == ["|", "A", "|", "B", "|", "C"]

    def test_raw_output(self, sheet_file: Path) -> None:
        result = CliRunner().invoke(main, ["eval", str(sheet_file), "--raw"])
        assert result.exit_code == 0
        assert "3000" in result.output
        assert "$" not in result.output

    def test_json_output(self, sheet_file: Path) -> None:
        result = CliRunner().invoke(main, ["eval", str(sheet_file), "--json"])
        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["cells"][1][0] == "$2,000.00"
        assert data["errors"] == {"B1": "#ERROR:REF"}

    def test_currency_display_disabled_by_config(self, sheet_file: Path) -> None:
        (sheet_file.parent / "gridcalc.yaml").write_text("currency_display: false\n")
        result = CliRunner().invoke(main, ["eval", str(sheet_file)])
        assert result.exit_code == 0
        assert "$" not in result.output

    def test_bad_sheet_file(self, tmp_path: Path) -> None:
        path = tmp_path / "bad.yaml"
        path.write_text("n_rows: 1\nn_cols: 1\ncells:\n  B5: '1'\n")
        result = CliRunner().invoke(main, ["eval", str(path)])
        assert result.exit_code != 0
        assert "B5" in result.output

    def test_writes_events(self, sheet_file: Path) -> None:
        CliRunner().invoke(main, ["eval", str(sheet_file)])
        log = sheet_file.parent / "logs" / "events.ndjson"
        events = [json.loads(line) for line in log.read_text().splitlines()]
        types = [e["event_type"] for e in events]
        assert "sheet_loaded" in types
        assert "sheet_evaluated" in types
        errors = [e for e in events if e["event_type"] == "cell_error"]
        assert errors[0]["context"]["cell"] == "B1"
        assert errors[0]["error_code"] == "#ERROR:REF"

    @pytest.mark.parametrize("flags", [[], ["--json"]])
    def test_evaluates_each_cell_once(self, sheet_file: Path, monkeypatch, flags: list[str]) -> None:
        import gridcalc.sheet as sheet_mod

        calls: list[tuple[int, int]] = []
        evaluate_cell = sheet_mod.evaluate_cell

        def counting(grid, row, col):
            calls.append((row, col))
            return evaluate_cell(grid, row, col)

        monkeypatch.setattr(sheet_mod, "evaluate_cell", counting)
        result = CliRunner().invoke(main, ["eval", str(sheet_file), *flags])
        assert result.exit_code == 0, result.output
        assert len(calls) == 9


class TestCell:
    def test_formatted(self, sheet_file: Path) -> None:
        result = CliRunner().invoke(main, ["cell", str(sheet_file), "C3"])
        assert result.exit_code == 0
        assert result.output.strip() == "$3,000.00"

    def test_raw(self, sheet_file: Path) -> None:
        result = CliRunner().invoke(main, ["cell", str(sheet_file), "c3", "--raw"])
        assert result.output.strip() == "3000"

    def test_unknown_label(self, sheet_file: Path) -> None:
        result = CliRunner().invoke(main, ["cell", str(sheet_file), "D1"])
        assert result.exit_code != 0


class TestNew:
    def test_uses_configured_size(self, tmp_path: Path) -> None:
        (tmp_path / "gridcalc.yaml").write_text("default_rows: 4\ndefault_cols: 2\n")
        target = tmp_path / "blank.yaml"
        result = CliRunner().invoke(main, ["new", str(target)])
        assert result.exit_code == 0, result.output
        spec = yaml.safe_load(target.read_text())
        assert (spec["n_rows"], spec["n_cols"]) == (4, 2)
        assert spec["cells"] == {}

    def test_explicit_size(self, tmp_path: Path) -> None:
        target = tmp_path / "blank.yaml"
        result = CliRunner().invoke(main, ["new", str(target), "--rows", "3", "--cols", "5"])
        assert result.exit_code == 0
        assert "3x5" in result.output

    def test_refuses_to_overwrite(self, sheet_file: Path) -> None:
        result = CliRunner().invoke(main, ["new", str(sheet_file)])
        assert result.exit_code != 0


def test_label() -> None:
    result = CliRunner().invoke(main, ["label", "702"])
    assert result.output.strip() == "AAA"


class TestEvents:
    def test_no_events(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(main, ["events", str(tmp_path)])
        assert result.exit_code == 0
        assert "No events found" in result.output

    def test_after_eval(self, sheet_file: Path) -> None:
        runner = CliRunner()
        runner.invoke(main, ["eval", str(sheet_file)])
        result = runner.invoke(main, ["events", str(sheet_file.parent), "--level", "warning"])
        assert result.exit_code == 0
        assert "cell_error [#ERROR:REF]" in result.output
        assert "sheet_evaluated" not in result.output

    def test_filter_by_cell(self, sheet_file: Path) -> None:
        runner = CliRunner()
        runner.invoke(main, ["eval", str(sheet_file)])
        result = runner.invoke(main, ["events", str(sheet_file.parent), "--cell", "b1", "--json"])
        assert result.exit_code == 0
        found = json.loads(result.output)
        assert len(found) == 1
        assert found[0]["context"] == {"cell": "B1", "sheet": "sheet"}

        result = runner.invoke(main, ["events", str(sheet_file.parent), "--cell", "A1"])
        assert "No events found" in result.output
