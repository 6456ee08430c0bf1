import re
import unicodedata


def normalize_text(text: str) -> str:
    """
    Nettoie une chaîne : trim, unicodes normalisés, espaces réduits.
    """
    if not text:
        return ""
    text = text.strip()
    text = unicodedata.normalize("NFKC", text)
    text = re.sub(r"\s+", " ", text)
    return text


def truncate(text: str, budget: int) -> str:
    return (text or "")[:max(0, budget)]


def split_segments(text: str, max_chars: int) -> list[str]:
    """
    Découpe un texte en segments de lecture (<= max_chars), alignés sur les phrases.
    Une phrase plus longue que max_chars est coupée brutalement.
    """
    if max_chars <= 0:
        raise ValueError(f"max_chars must be > 0, got {max_chars}")
    sentences = re.split(r"(?<=[.!?])\s+", normalize_text(text))
    segments: list[str] = []
    current = ""
    for s in sentences:
        if not s:
            continue
        while len(s) > max_chars:
            if current:
                segments.append(current)
                current = ""
            segments.append(s[:max_chars])
            s = s[max_chars:].lstrip()
        candidate = f"{current} {s}".strip() if current else s
        if len(candidate) <= max_chars:
            current = candidate
        else:
            segments.append(current)
            current = s
    if current:
        segments.append(current)
    return segments


def format_file_size(size: int) -> str:
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.1f} KB"
    return f"{size / (1024 * 1024):.1f} MB"


def file_icon(file_type: str) -> str:
    return {
        "pdf": "file-pdf-box",
        "docx": "file-word-box",
        "pptx": "file-powerpoint-box",
    }.get((file_type or "").lower(), "file-document")
