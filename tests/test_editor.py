"""Tests for the editor bridge -- position updates, message decoding and the
sequential session that owns the diagram.
"""
from __future__ import annotations

import base64
import json

import pytest

from dbml_draw.editor import (
    EditorMessage,
    EditorSession,
    ExportPng,
    ExportSvg,
    SaveLayout,
    TableMoved,
    parse_message,
    set_table_position,
    set_table_positions,
)
from dbml_draw.errors import LayoutFileError
from dbml_draw.layout_file import read_layout
from dbml_draw.types import Column, Diagram, Position, Table, TableId


def diagram() -> Diagram:
    return Diagram(
        tables=[
            Table(id=TableId("public", "users"), columns=[Column("id", "int")], position=Position(100.0, 200.0)),
            Table(id=TableId("public", "posts"), columns=[Column("id", "int")], position=Position(400.0, 200.0)),
        ]
    )


# ============================================================================
# Position updates
# ============================================================================


class TestSetTablePosition:
    def test_moves_the_named_table(self):
        d = diagram()
        assert set_table_position(d, "public.users", 150, 250) is True
        assert d.tables[0].position == Position(150.0, 250.0)

    def test_unknown_table_is_ignored(self):
        d = diagram()
        assert set_table_position(d, "public.ghosts", 1, 2) is False
        assert [t.position for t in d.tables] == [Position(100.0, 200.0), Position(400.0, 200.0)]

    def test_bulk_update_counts_matches(self):
        d = diagram()
        n = set_table_positions(
            d,
            {"public.users": (1, 2), "public.posts": Position(3, 4), "x.y": (5, 6)},
        )
        assert n == 2
        assert d.tables[0].position == Position(1, 2)
        assert d.tables[1].position == Position(3, 4)


# ============================================================================
# Message decoding
# ============================================================================


class TestParseMessage:
    def test_table_moved(self):
        msg = parse_message('{"type":"table_moved","table_id":"public.users","x":100.0,"y":200.0}')
        assert msg == TableMoved(table_id="public.users", x=100.0, y=200.0)

    def test_save_layout(self):
        msg = parse_message(
            '{"type":"save_layout","tables":{"public.users":{"x":100,"y":200},'
            '"public.posts":{"x":400,"y":200}}}'
        )
        assert isinstance(msg, SaveLayout)
        assert msg.tables["public.users"] == Position(100.0, 200.0)
        assert len(msg.tables) == 2

    def test_exports(self):
        assert parse_message({"type": "export_svg"}) == ExportSvg()
        msg = parse_message('{"type":"export_png","data_url":"data:image/png;base64,iVBOR"}')
        assert isinstance(msg, ExportPng)

    def test_every_kind_is_an_editor_message(self):
        bodies = [
            {"type": "table_moved", "table_id": "public.users", "x": 1, "y": 2},
            {"type": "save_layout", "tables": {}},
            {"type": "export_svg"},
            {"type": "export_png", "data_url": "data:image/png;base64,"},
        ]
        for body in bodies:
            assert isinstance(parse_message(body), EditorMessage)

    def test_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown editor message type"):
            parse_message('{"type":"unknown"}')

    def test_missing_field(self):
        with pytest.raises(ValueError, match="Malformed table_moved"):
            parse_message('{"type":"table_moved","table_id":"a.b"}')

    def test_invalid_json(self):
        with pytest.raises(ValueError):
            parse_message("{")


# ============================================================================
# Session
# ============================================================================


class TestEditorSession:
    def test_table_move_is_persisted(self, tmp_path):
        session = EditorSession(diagram(), tmp_path / "test.dbml")
        session.handle(TableMoved("public.users", 150.0, 250.0))

        data = read_layout(tmp_path / "test.layout.toml")
        assert data.source == "test.dbml"
        assert data.tables["public.users"] == Position(150.0, 250.0)
        assert data.tables["public.posts"] == Position(400.0, 200.0)

    def test_queued_messages_apply_in_order(self, tmp_path):
        session = EditorSession(diagram(), tmp_path / "test.dbml", tmp_path / "custom.toml")
        session.submit(TableMoved("public.users", 1.0, 1.0))
        session.submit('{"type":"table_moved","table_id":"public.users","x":2,"y":3}')
        session.submit(SaveLayout(tables={"public.posts": Position(9.0, 9.0)}))

        assert session.process_pending() == [None, None, None]
        assert session.diagram.tables[0].position == Position(2.0, 3.0)
        assert read_layout(tmp_path / "custom.toml").tables["public.posts"] == Position(9.0, 9.0)
        assert session.process_pending() == []

    def test_unknown_table_still_saves(self, tmp_path):
        session = EditorSession(diagram(), tmp_path / "test.dbml")
        session.handle(TableMoved("public.ghosts", 5.0, 5.0))
        assert set(read_layout(tmp_path / "test.layout.toml").tables) == {"public.users", "public.posts"}

    def test_export_svg_writes_next_to_source(self, tmp_path):
        session = EditorSession(diagram(), tmp_path / "test.dbml")
        out = session.handle(ExportSvg())
        assert out == str(tmp_path / "test.svg")
        assert (tmp_path / "test.svg").read_text().startswith("<svg ")

    def test_export_png_decodes_data_url(self, tmp_path):
        payload = b"\x89PNG\r\n\x1a\nfake"
        url = "data:image/png;base64," + base64.b64encode(payload).decode()
        session = EditorSession(diagram(), tmp_path / "test.dbml")
        out = session.handle(ExportPng(url))
        assert out == str(tmp_path / "test.png")
        assert (tmp_path / "test.png").read_bytes() == payload

    def test_export_png_rejects_other_urls(self, tmp_path):
        session = EditorSession(diagram(), tmp_path / "test.dbml")
        with pytest.raises(ValueError, match="Invalid PNG data URL"):
            session.handle(ExportPng("data:image/jpeg;base64,AAAA"))

    def test_persistence_failure_propagates(self, tmp_path):
        session = EditorSession(diagram(), tmp_path / "test.dbml", tmp_path / "no-dir" / "l.toml")
        with pytest.raises(LayoutFileError):
            session.handle(TableMoved("public.users", 1.0, 1.0))
        # The in-memory move happened before the write failed
        assert session.diagram.tables[0].position == Position(1.0, 1.0)
