import datetime
import json

import pytest

from src.conceptmap.workspace import Workspace
from src.services import filesync


def test_export_filename_pattern():
    when = datetime.datetime(2024, 3, 5, 9, 7)
    assert filesync.export_filename(when) == "conversations-2024-03-05-09-07.json"


def test_export_then_import(tmp_path):
    ws = Workspace()
    ws.rename_conversation(ws.current_id, "Sorting")
    ws.store().apply_fragment({"nodes": [{"name": "Quicksort", "info": "divide and conquer"}]})
    path = filesync.export_to_folder(ws, str(tmp_path))
    with open(path, encoding="utf-8") as f:
        assert json.load(f) == ws.to_document()

    other = Workspace()
    assert filesync.import_from_file(other, path) == 1
    assert other.current.title == "Sorting"
    assert other.store().graph.nodes[0].name == "Quicksort"
    assert other.dirty


def test_import_rejects_malformed_payload():
    ws = Workspace()
    before = ws.to_document()
    with pytest.raises(ValueError):
        filesync.import_into(ws, {"x": {"title": "missing id"}})
    assert ws.to_document() == before


def test_import_of_empty_map_keeps_one_conversation():
    ws = Workspace()
    assert filesync.import_into(ws, {}) == 0
    assert len(ws.list_conversations()) == 1
