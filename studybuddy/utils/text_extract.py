import logging
from pathlib import Path
from typing import Callable, Optional, Union

logger = logging.getLogger(__name__)

PLACEHOLDER_TEXT = "Could not extract text from file"

# Signature commune : (chemin du contenu, type) -> texte
TextExtractor = Callable[[Optional[Path], str], str]


def extract_pdf_text(path: Union[str, Path]) -> str:
    from pypdf import PdfReader

    reader = PdfReader(str(path))
    parts = []
    for page in reader.pages:
        text = page.extract_text() or ""
        if text.strip():
            parts.append(text)
    return "\n".join(parts)


def extract_docx_text(path: Union[str, Path]) -> str:
    from docx import Document

    doc = Document(str(path))
    parts = [p.text.strip() for p in doc.paragraphs if p.text.strip()]
    for table in doc.tables:
        for row in table.rows:
            cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
            if cells:
                parts.append(" | ".join(cells))
    return "\n\n".join(parts)


def extract_pptx_text(path: Union[str, Path]) -> str:
    from pptx import Presentation

    prs = Presentation(str(path))
    parts = []
    for i, slide in enumerate(prs.slides, 1):
        lines = []
        for shape in slide.shapes:
            if shape.has_text_frame:
                for para in shape.text_frame.paragraphs:
                    text = "".join(run.text for run in para.runs).strip()
                    if text:
                        lines.append(text)
        if lines:
            parts.append(f"Slide {i}:\n" + "\n".join(lines))
        if slide.has_notes_slide:
            notes = slide.notes_slide.notes_text_frame.text.strip()
            if notes:
                parts.append(f"Notes:\n{notes}")
    return "\n\n".join(parts)


_EXTRACTORS = {
    "pdf": extract_pdf_text,
    "docx": extract_docx_text,
    "pptx": extract_pptx_text,
}


def extract_text(path: Optional[Path], file_type: str) -> str:
    """
    Extrait le texte d'un document importé.
    Type inconnu, fichier absent ou illisible -> texte de remplacement fixe,
    pour que les fonctions IA restent utilisables.
    """
    extractor = _EXTRACTORS.get((file_type or "").lower())
    if extractor is None or path is None or not Path(path).is_file():
        return PLACEHOLDER_TEXT
    try:
        text = extractor(path)
    except Exception as e:
        logger.warning("extract_text failed for %s: %s", path, e)
        return PLACEHOLDER_TEXT
    return text if text.strip() else PLACEHOLDER_TEXT
