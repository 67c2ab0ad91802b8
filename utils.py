from __future__ import annotations

import html
import io
import logging
import re
import uuid
from typing import Iterable, List, Optional

from PyPDF2 import PdfReader

from errors import ExtractionError

logger = logging.getLogger(__name__)


def make_request_id() -> str:
    return uuid.uuid4().hex[:12]


def redact_long_text(text: Optional[str], max_chars: int = 300) -> str:
    """Collapse whitespace and cut text to a preview suitable for logs."""
    if not text:
        return ""
    collapsed = " ".join(text.split())
    if len(collapsed) <= max_chars:
        return collapsed
    return collapsed[:max_chars].rstrip() + "..."


def extract_text_from_pdf_bytes(data: bytes, label: str = "PDF") -> str:
    """
    Extract plain text from PDF bytes with PyPDF2.

    Page texts are joined by newlines. Pages without a text layer contribute
    an empty string, so a scanned document yields "" rather than an error.

    Raises:
        ExtractionError: If the bytes are empty, corrupt or encrypted
    """
    if not data:
        raise ExtractionError(f"The {label} file is empty.")

    try:
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted:
            # Owner-password-only PDFs open with an empty user password
            if not reader.decrypt(""):
                raise ExtractionError(
                    f"The {label} is password protected and cannot be read.",
                    detail="decrypt('') failed",
                )
        pages = [page.extract_text() or "" for page in reader.pages]
    except ExtractionError:
        raise
    except Exception as e:
        raise ExtractionError(
            f"Could not read text from the {label}.",
            detail=f"{type(e).__name__}: {e}",
        ) from e

    text = "\n".join(pages)
    logger.debug(f"Extracted {len(text)} characters from {len(pages)} {label} page(s)")
    return text


def highlight_matches(
    text: Optional[str],
    words: Optional[Iterable[str]],
    escape_html: bool = False,
    tag: str = "mark",
) -> str:
    """
    Wrap whole-word, case-insensitive occurrences of ``words`` in ``<tag>``.

    Words are regex-escaped before being compiled into the pattern. With
    ``escape_html`` every segment (highlighted or not) is HTML-escaped.

    Example:
        >>> highlight_matches("Built with React.", ["react"])
        'Built with <mark>React</mark>.'
    """
    if not text:
        return ""

    safe: List[str] = [re.escape(w) for w in (words or []) if w]
    if not safe:
        return html.escape(text) if escape_html else text

    pattern = re.compile(r"\b(" + "|".join(safe) + r")\b", re.IGNORECASE)
    escape = html.escape if escape_html else (lambda s: s)

    parts: List[str] = []
    last = 0
    for match in pattern.finditer(text):
        parts.append(escape(text[last:match.start()]))
        parts.append(f"<{tag}>{escape(match.group(0))}</{tag}>")
        last = match.end()
    parts.append(escape(text[last:]))
    return "".join(parts)
