"""Tests for JSON and CSV table export."""

from __future__ import annotations

import csv
import json

import pytest

from exceptions import TableExportError
from page_analyzer import extract_tables
from table_exporter import TableExporter


@pytest.fixture
def tables(ruled_page, whitespace_page):
    return extract_tables(ruled_page) + extract_tables(whitespace_page)


def test_default_output_path(tmp_path):
    exporter = TableExporter(tmp_path / "report.pdf")

    assert exporter._get_output_path(None, ".json") == tmp_path / "report_tables.json"
    assert exporter._get_output_path("out", ".csv") == tmp_path / "out.csv"


def test_export_json(tmp_path, tables):
    exporter = TableExporter(tmp_path / "report.pdf")

    path = exporter.export_json(tables, total_pages=3)

    data = json.loads(path.read_text(encoding="utf-8"))
    assert data["pdf_name"] == "report.pdf"
    assert data["total_pages"] == 3
    assert data["pages_with_tables"] == [1]
    assert len(data["tables"]) == 2

    first = data["tables"][0]
    assert first["extraction_method"] == "spreadsheet"
    assert (first["row_count"], first["col_count"]) == (2, 2)
    assert first["bbox"] == [50, 100, 250, 140]
    assert [[c["text"] for c in row] for row in first["rows"]] == [["A", "B"], ["C", ""]]


def test_export_csv(tmp_path, tables):
    exporter = TableExporter(tmp_path / "report.pdf")

    path = exporter.export_csv(tables, output_filename="tables")

    assert path == tmp_path / "tables.csv"
    with open(path, newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[:2] == [["A", "B"], ["C", ""]]
    assert rows[2] == []
    assert rows[3] == ["Revenue", "1200"]


def test_export_to_missing_directory(tmp_path, tables):
    exporter = TableExporter(tmp_path / "report.pdf")

    with pytest.raises(TableExportError):
        exporter.export_json(tables, output_filename=str(tmp_path / "nowhere" / "out.json"))
