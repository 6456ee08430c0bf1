import pytest
from docx import Document
from pptx import Presentation

from studybuddy.utils.text_extract import PLACEHOLDER_TEXT, extract_text
from studybuddy.utils.text_utils import file_icon, format_file_size, split_segments


def test_unknown_type_or_missing_file_gives_placeholder(tmp_path):
    assert extract_text(None, "pdf") == PLACEHOLDER_TEXT
    assert extract_text(tmp_path / "absent.docx", "docx") == PLACEHOLDER_TEXT
    other = tmp_path / "notes.txt"
    other.write_text("plain")
    assert extract_text(other, "txt") == PLACEHOLDER_TEXT


def test_unreadable_pdf_gives_placeholder(tmp_path):
    broken = tmp_path / "broken.pdf"
    broken.write_bytes(b"%PDF-1.4\n%EOF\n")
    assert extract_text(broken, "pdf") == PLACEHOLDER_TEXT


def test_docx_paragraphs_and_tables(tmp_path):
    doc = Document()
    doc.add_paragraph("Photosynthesis converts light into chemical energy.")
    table = doc.add_table(rows=1, cols=2)
    table.rows[0].cells[0].text = "Input"
    table.rows[0].cells[1].text = "Light"
    path = tmp_path / "bio.docx"
    doc.save(str(path))

    text = extract_text(path, "docx")

    assert "Photosynthesis converts light into chemical energy." in text
    assert "Input | Light" in text


def test_pptx_slides(tmp_path):
    prs = Presentation()
    slide = prs.slides.add_slide(prs.slide_layouts[0])
    slide.shapes.title.text = "Cell division"
    path = tmp_path / "deck.pptx"
    prs.save(str(path))

    text = extract_text(path, "PPTX")

    assert text.startswith("Slide 1:")
    assert "Cell division" in text


def test_split_segments_hard_cuts_long_sentences():
    segments = split_segments("a" * 25 + ". Short.", 10)
    assert segments == ["aaaaaaaaaa", "aaaaaaaaaa", "aaaaa.", "Short."]


def test_split_segments_rejects_non_positive_size():
    with pytest.raises(ValueError):
        split_segments("One. Two.", 0)
    with pytest.raises(ValueError):
        split_segments("One. Two.", -5)


def test_display_helpers():
    assert format_file_size(512) == "512 B"
    assert format_file_size(2048) == "2.0 KB"
    assert format_file_size(3 * 1024 * 1024) == "3.0 MB"
    assert file_icon("PDF") == "file-pdf-box"
    assert file_icon("epub") == "file-document"
