"""Shared fixtures for the table finder tests."""

from __future__ import annotations

from pathlib import Path

import fitz
import pytest

from config import ExtractionConfig
from page import Page
from page_fixtures import grid_rulings, make_page, make_word, whitespace_table_text


@pytest.fixture
def config() -> ExtractionConfig:
    return ExtractionConfig()


@pytest.fixture
def ruled_page() -> Page:
    """Horizontal rulings at y=100,120,140 and vertical rulings at x=50,150,250."""
    text = (
        make_word("A", 95, 105)
        + make_word("B", 195, 105)
        + make_word("C", 95, 125)
    )
    return make_page(text=text, rulings=grid_rulings([100, 120, 140], [50, 150, 250]))


@pytest.fixture
def whitespace_page() -> Page:
    """Four two-column lines at y=100,120,140,160 with no rulings."""
    return make_page(text=whitespace_table_text())


@pytest.fixture
def prose_page() -> Page:
    """Narrative paragraph lines without column gaps."""
    sentences = [
        "The quarter closed with steady results",
        "across all regions and product lines",
        "while costs remained under control",
    ]
    text = []
    for i, sentence in enumerate(sentences):
        text.extend(make_word(sentence, 50, 100 + 14 * i))
    return make_page(text=text)


@pytest.fixture
def empty_page() -> Page:
    return make_page()


def _draw_ruled_table(page: fitz.Page) -> None:
    for y in (100, 120, 140):
        page.draw_line(fitz.Point(50, y), fitz.Point(250, y))
    for x in (50, 150, 250):
        page.draw_line(fitz.Point(x, 100), fitz.Point(x, 140))
    page.insert_text(fitz.Point(60, 114), "Alpha", fontsize=10)
    page.insert_text(fitz.Point(160, 114), "12", fontsize=10)
    page.insert_text(fitz.Point(60, 134), "Beta", fontsize=10)
    page.insert_text(fitz.Point(160, 134), "7", fontsize=10)


@pytest.fixture
def ruled_pdf(tmp_path: Path) -> Path:
    """Two-page PDF: a 2x2 ruled table on page 1, a blank page 2."""
    path = tmp_path / "ruled.pdf"
    doc = fitz.open()
    _draw_ruled_table(doc.new_page(width=612, height=792))
    doc.new_page(width=612, height=792)
    doc.save(str(path))
    doc.close()
    return path


@pytest.fixture
def encrypted_pdf(tmp_path: Path) -> Path:
    """PDF whose user password is 'secret'."""
    path = tmp_path / "locked.pdf"
    doc = fitz.open()
    _draw_ruled_table(doc.new_page(width=612, height=792))
    doc.save(
        str(path),
        encryption=fitz.PDF_ENCRYPT_AES_256,
        owner_pw="owner",
        user_pw="secret",
    )
    doc.close()
    return path
