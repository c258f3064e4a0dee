from __future__ import annotations

from io import BytesIO
from zipfile import ZipFile

PDF_MAGIC = b"%PDF-"
ZIP_MAGICS = (b"PK\x03\x04", b"PK\x05\x06", b"PK\x07\x08")

ALLOWED_EXTENSIONS = ("pdf", "docx", "txt")

RESUME_CONTENT_TYPE_EXTENSION_HINTS = {
    "application/pdf": "pdf",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "text/plain": "txt",
}


class UnsupportedDocumentError(ValueError):
    pass


def format_size(num_bytes: int) -> str:
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):g} MB"
    if num_bytes >= 1024:
        return f"{num_bytes / 1024:g} KB"
    return f"{num_bytes} bytes"


class DocumentTooLargeError(ValueError):
    def __init__(self, max_bytes: int):
        super().__init__(f"File too large. Maximum allowed size is {format_size(max_bytes)}.")
        self.max_bytes = max_bytes


def file_extension(filename: str) -> str:
    return filename.rsplit(".", 1)[-1].lower() if "." in filename else ""


def resolve_extension(filename: str, content_type: str | None = None) -> str:
    ext = file_extension(filename)
    if ext:
        return ext
    hint = (content_type or "").split(";")[0].strip().lower()
    return RESUME_CONTENT_TYPE_EXTENSION_HINTS.get(hint, "")


def _is_zip_payload(content: bytes) -> bool:
    return any(content.startswith(prefix) for prefix in ZIP_MAGICS)


def _zip_has_paths(content: bytes, prefixes: tuple[str, ...]) -> bool:
    try:
        with ZipFile(BytesIO(content)) as archive:
            names = archive.namelist()
        return any(any(name.startswith(prefix) for prefix in prefixes) for name in names)
    except Exception:
        return False


def _is_probably_text_payload(content: bytes) -> bool:
    if not content:
        return False
    sample = content[:4096]
    if b"\x00" in sample:
        # UTF-16 text carries NUL bytes but always opens with a BOM.
        return sample.startswith((b"\xff\xfe", b"\xfe\xff"))
    return True


def validate_upload(*, filename: str, content: bytes, max_bytes: int, ext: str | None = None) -> str:
    """Check size, extension and magic signature; return the resolved extension."""
    ext = ext or file_extension(filename)
    if ext == "doc":
        raise UnsupportedDocumentError("Legacy .doc is not supported. Convert to .docx.")
    if ext not in ALLOWED_EXTENSIONS:
        raise UnsupportedDocumentError(
            f"Unsupported file type '.{ext}'. Allowed: {', '.join(sorted(ALLOWED_EXTENSIONS))}."
        )
    if not content:
        raise UnsupportedDocumentError("Uploaded file is empty.")
    if len(content) > max_bytes:
        raise DocumentTooLargeError(max_bytes)

    if ext == "pdf" and not content.startswith(PDF_MAGIC):
        raise UnsupportedDocumentError("File signature does not match .pdf content.")
    if ext == "docx" and (not _is_zip_payload(content) or not _zip_has_paths(content, ("word/",))):
        raise UnsupportedDocumentError("File signature does not match .docx content.")
    if ext == "txt" and not _is_probably_text_payload(content):
        raise UnsupportedDocumentError("File signature does not match .txt text content.")
    return ext
