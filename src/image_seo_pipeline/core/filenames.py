"""SEO filename synthesis from a keyword and an image description."""

import re
import time

from .logging_config import get_logger

MAX_FILENAME_LENGTH = 200

_DISALLOWED_CHARS = re.compile(r"[^a-z0-9\s-]")
_WHITESPACE_RUNS = re.compile(r"\s+")
_HYPHEN_RUNS = re.compile(r"-+")
_EDGE_HYPHENS = re.compile(r"^-+|-+$")
_TRAILING_HYPHENS = re.compile(r"-+$")


def normalize_keyword(keyword: str) -> str:
    """
    Lowercase a keyword and reduce it to ``[a-z0-9-]``.

    Edge hyphens are kept, unlike in :func:`normalize_description`.
    """
    cleaned = _DISALLOWED_CHARS.sub("", keyword.lower().strip())
    cleaned = _WHITESPACE_RUNS.sub("-", cleaned)
    return _HYPHEN_RUNS.sub("-", cleaned)


def normalize_description(description: str) -> str:
    """Normalize a description like a keyword, then trim edge hyphens."""
    return _EDGE_HYPHENS.sub("", normalize_keyword(description))


def synthesize_filename(keyword: str, description: str, extension: str) -> str:
    """
    Build an SEO-friendly filename such as ``blue-shoes-stylish-blue-shoes.jpg``.

    Args:
        keyword: Caller supplied keyword, placed first
        description: Content description of the image
        extension: File extension without the dot

    Returns:
        Filename no longer than 200 characters plus the extension. When
        both inputs normalize to nothing the result is the bare extension,
        e.g. ``.jpg``.
    """
    try:
        clean_keyword = normalize_keyword(keyword)
        clean_description = normalize_description(description)

        if clean_keyword and clean_description:
            # a keyword ending in "-" would otherwise produce "--" at the seam
            base = _HYPHEN_RUNS.sub("-", f"{clean_keyword}-{clean_description}")
        else:
            base = clean_keyword or clean_description

        max_length = MAX_FILENAME_LENGTH - len(extension) - 1
        if len(base) > max_length:
            base = _TRAILING_HYPHENS.sub("", base[:max_length])

        return f"{base}.{extension}"
    except Exception as exc:  # noqa: BLE001
        get_logger("filenames").error(f"Filename generation failed: {exc}", exc_info=True)
        return f"image-{int(time.time() * 1000)}.{extension}"
