from __future__ import annotations

import hashlib
import logging
from io import BytesIO
from pathlib import Path
from zipfile import ZipFile

import defusedxml.ElementTree as ET

from .models import ExtractedDocument
from .upload import ALLOWED_EXTENSIONS, file_extension

logger = logging.getLogger(__name__)


class DocumentExtractionError(ValueError):
    pass


def _compute_doc_id(text: str, filename: str) -> str:
    seed = text if text.strip() else filename
    digest = hashlib.sha256(seed.encode("utf-8", errors="ignore")).hexdigest()
    return digest[:16]


def _extract_txt(content: bytes) -> tuple[str, int | None, list[str]]:
    if content.startswith((b"\xff\xfe", b"\xfe\xff")):
        encodings = ("utf-16", "utf-8", "latin-1")
    else:
        encodings = ("utf-8-sig", "utf-16", "latin-1")
    for encoding in encodings:
        try:
            return content.decode(encoding), None, []
        except UnicodeDecodeError:
            continue
    # latin-1 decodes any byte sequence, so this is unreachable in practice.
    raise DocumentExtractionError("Unable to decode this text file.")


def _extract_pdf(content: bytes) -> tuple[str, int | None, list[str]]:
    from pypdf import PdfReader

    try:
        reader = PdfReader(BytesIO(content))
        page_chunks: list[str] = []
        for page in reader.pages:
            page_text = page.extract_text() or ""
            if page_text.strip():
                page_chunks.append(page_text)
        warnings: list[str] = []
        if not page_chunks:
            warnings.append("No extractable text found in PDF.")
        return "\n\n".join(page_chunks), len(reader.pages), warnings
    except Exception as exc:
        raise DocumentExtractionError("Unable to extract text from this PDF file.") from exc


def _extract_docx_text_fallback(content: bytes) -> str:
    with ZipFile(BytesIO(content)) as archive:
        raw = archive.read("word/document.xml")
    root = ET.fromstring(raw)
    paragraphs: list[str] = []
    for paragraph in root.iter():
        if not paragraph.tag.endswith("}p"):
            continue
        texts = [node.text for node in paragraph.iter() if node.tag.endswith("}t") and node.text]
        joined = "".join(texts).strip()
        if joined:
            paragraphs.append(joined)
    return "\n".join(paragraphs)


def _extract_docx(content: bytes) -> tuple[str, int | None, list[str]]:
    warnings: list[str] = []
    try:
        from docx import Document

        document = Document(BytesIO(content))
        paragraphs = [p.text.strip() for p in document.paragraphs if p.text and p.text.strip()]
        text = "\n".join(paragraphs)
    except Exception as exc:
        logger.warning("docx_parse_fallback: %s", exc)
        try:
            text = _extract_docx_text_fallback(content)
        except Exception as fallback_exc:
            raise DocumentExtractionError("Unable to extract text from this DOCX file.") from fallback_exc
        warnings.append("python-docx could not read this file; used raw XML text instead.")
    if not text.strip():
        warnings.append("No extractable text found in DOCX.")
    return text, None, warnings


_EXTRACTORS = {
    "txt": _extract_txt,
    "pdf": _extract_pdf,
    "docx": _extract_docx,
}


def extract_text(*, filename: str, content: bytes, ext: str | None = None) -> ExtractedDocument:
    """Extract raw text from an uploaded document.

    The text is returned exactly as the parser produced it; callers sanitize it
    before it goes into any JSON payload.
    """
    source_type = ext or file_extension(filename)
    extractor = _EXTRACTORS.get(source_type)
    if extractor is None:
        raise DocumentExtractionError(
            f"Unsupported file type '.{source_type}'. Supported types: "
            + ", ".join(f".{item}" for item in ALLOWED_EXTENSIONS)
        )

    text, pages, warnings = extractor(content)
    return ExtractedDocument(
        doc_id=_compute_doc_id(text=text, filename=filename),
        filename=filename,
        source_type=source_type,
        text=text,
        pages=pages,
        warnings=warnings,
    )


def parse_document(file_path: str) -> ExtractedDocument:
    path = Path(file_path)
    if not path.exists():
        raise FileNotFoundError(f"Input document not found: '{path}'")
    return extract_text(filename=path.name, content=path.read_bytes())
