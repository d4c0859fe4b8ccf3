"""Tests for the gridcalc structured event logging system."""

from __future__ import annotations

import json
from pathlib import Path

import pytest


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sink(tmp_path: Path):
    from gridcalc.logging.sink import EventSink

    return EventSink(tmp_path)


# ---------------------------------------------------------------------------
# A) Event schema
# ---------------------------------------------------------------------------


class TestGridEvent:
    def test_event_defaults(self):
        from gridcalc.logging.events import EventLevel, EventType, GridEvent

        evt = GridEvent(
            level=EventLevel.info,
            event_type=EventType.sheet_evaluated,
            message="hello",
        )
        assert evt.schema_version == 1
        assert evt.ts.endswith("Z")
        assert evt.level == "info"
        assert evt.event_type == "sheet_evaluated"
        assert evt.context == {}
        assert evt.error_code is None

    def test_json_round_trip(self):
        from gridcalc.logging.events import EventLevel, EventType, GridEvent

        evt = GridEvent(
            level=EventLevel.warning,
            event_type=EventType.cycle_detected,
            message="A1 evaluated to #CYCLE",
            context={"cell": "A1", "sheet": "budget"},
            error_code="#CYCLE",
        )
        data = evt.model_dump(mode="json")
        assert data["level"] == "warning"
        assert GridEvent.model_validate(data) == evt


# ---------------------------------------------------------------------------
# B) Sink
# ---------------------------------------------------------------------------


class TestEventSink:
    def test_creates_logs_dir(self, sink, tmp_path: Path):
        assert (tmp_path / "logs").is_dir()

    def test_write_is_sorted_ndjson(self, sink):
        from gridcalc.logging.events import EventLevel, EventType, GridEvent

        sink.write(GridEvent(level=EventLevel.info, event_type=EventType.sheet_loaded, message="a"))
        sink.write(GridEvent(level=EventLevel.warning, event_type=EventType.cell_error, message="b"))
        lines = sink.path.read_text().splitlines()
        assert len(lines) == 2
        first = json.loads(lines[0])
        assert list(first.keys()) == sorted(first.keys())
        assert first["event_type"] == "sheet_loaded"

    def test_read_global_filters_and_order(self, sink):
        from gridcalc.logging.events import EventLevel, EventType, GridEvent

        for label in ["A1", "B2", "C3"]:
            sink.write(
                GridEvent(
                    level=EventLevel.warning,
                    event_type=EventType.cell_error,
                    message=label,
                    context={"cell": label},
                )
            )
        events = sink.read_global()
        assert [e["message"] for e in events] == ["C3", "B2", "A1"]
        assert [e["message"] for e in sink.read_global(cell="B2")] == ["B2"]
        assert sink.read_global(level="error") == []
        assert len(sink.read_global(limit=2)) == 2

    def test_skips_corrupt_lines(self, sink):
        sink.path.write_text('not json\n{"level": "info", "event_type": "sheet_loaded"}\n')
        assert len(sink.read_global()) == 1

    def test_tail_read(self, tmp_path: Path):
        from gridcalc.logging.events import EventLevel, EventType, GridEvent
        from gridcalc.logging.sink import EventSink

        small = EventSink(tmp_path, tail_bytes=400)
        for i in range(20):
            small.write(GridEvent(level=EventLevel.info, event_type=EventType.sheet_saved, message=f"m{i}"))
        events = small.read_global()
        assert 0 < len(events) < 20
        assert events[0]["message"] == "m19"


# ---------------------------------------------------------------------------
# C) Module-level emit
# ---------------------------------------------------------------------------


class TestEmit:
    def test_emit_without_sink_is_noop(self, tmp_path: Path):
        from gridcalc.logging import EventType, emit_info

        emit_info(EventType.sheet_loaded, "nobody listening")
        assert not (tmp_path / "logs").exists()

    def test_emit_after_set_project_dir(self, tmp_path: Path):
        from gridcalc.logging import EventSink, EventType, emit_info, emit_warning, set_project_dir

        set_project_dir(tmp_path)
        emit_warning(EventType.cell_error, "warn", {"cell": "A1"}, error_code="#ERROR:REF")
        emit_info(EventType.sheet_saved, "saved")
        events = EventSink(tmp_path).read_global()
        assert [e["level"] for e in events] == ["info", "warning"]
        assert events[1]["error_code"] == "#ERROR:REF"
        assert events[0]["error_code"] is None

    def test_emit_never_raises(self, tmp_path: Path, monkeypatch):
        from gridcalc.logging import events as events_mod

        class Broken:
            def write(self, event):
                raise OSError("disk full")

        monkeypatch.setattr(events_mod, "_sink", Broken())
        events_mod.emit_info(events_mod.EventType.sheet_saved, "x")

    def test_sheet_render_emits_cycle_event(self, tmp_path: Path):
        from gridcalc.logging import EventSink, set_project_dir
        from gridcalc.sheet import Sheet

        set_project_dir(tmp_path)
        sheet = Sheet(2, 2, name="loop")
        sheet.set_cell("A1", "=B1")
        sheet.set_cell("B1", "=A1")
        sheet.render()

        events = EventSink(tmp_path).read_global(event_type="cycle_detected")
        assert sorted(e["context"]["cell"] for e in events) == ["A1", "B1"]
        assert {(e["level"], e["error_code"]) for e in events} == {("warning", "#CYCLE")}
        assert events[0]["context"]["sheet"] == "loop"
        summary = EventSink(tmp_path).read_global(event_type="sheet_evaluated")
        assert summary[0]["context"]["n_errors"] == 2

    def test_hash_text_is_not_logged_as_error(self, tmp_path: Path):
        from gridcalc.logging import EventSink, set_project_dir
        from gridcalc.sheet import Sheet

        set_project_dir(tmp_path)
        sheet = Sheet(1, 2)
        sheet.set_cell("A1", "#1 priority")
        sheet.set_cell("B1", "=A1")
        sheet.render()

        sink = EventSink(tmp_path)
        assert sink.read_global(level="warning") == []
        assert sink.read_global(event_type="sheet_evaluated")[0]["context"]["n_errors"] == 0
