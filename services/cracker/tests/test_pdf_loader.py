"""Tests for PDFLoader page extraction and page markers."""
from pathlib import Path
from unittest.mock import MagicMock, patch

from pypdf import PdfWriter

from cracker.loaders import PDFLoader, format_page


def test_format_page() -> None:
    assert format_page(3, "Goblins.") == "--- Page 3 ---\nGoblins.\n\n"


def test_pages_are_delimited_in_order() -> None:
    pages = []
    for text in ("First page text.", None, "Third page text."):
        page = MagicMock()
        page.extract_text.return_value = text
        pages.append(page)
    reader = MagicMock()
    reader.pages = pages
    with patch("cracker.loaders.pdf_loader.PdfReader", return_value=reader):
        loaded = PDFLoader().load(Path("book.pdf"))
    assert loaded.page_count == 3
    assert loaded.content == (
        "--- Page 1 ---\nFirst page text.\n\n"
        "--- Page 2 ---\n\n\n"
        "--- Page 3 ---\nThird page text.\n\n"
    )


def test_real_blank_pdf(tmp_path: Path) -> None:
    writer = PdfWriter()
    writer.add_blank_page(width=200, height=200)
    writer.add_blank_page(width=200, height=200)
    pdf = tmp_path / "blank.pdf"
    with pdf.open("wb") as f:
        writer.write(f)
    loaded = PDFLoader().load(pdf)
    assert loaded.page_count == 2
    assert "--- Page 2 ---" in loaded.content
    assert not loaded.content.replace("--- Page 1 ---", "").replace("--- Page 2 ---", "").strip()


def test_supports_pdf_only() -> None:
    loader = PDFLoader()
    assert loader.supports(Path("a.PDF"))
    assert not loader.supports(Path("a.txt"))
