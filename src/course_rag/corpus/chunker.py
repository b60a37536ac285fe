"""
Character-window chunking for ingested documents.
"""

from __future__ import annotations

from typing import List

DEFAULT_MAX_CHARS = 1700
DEFAULT_OVERLAP = 200


def chunk_text(
    text: str,
    max_chars: int = DEFAULT_MAX_CHARS,
    overlap: int = DEFAULT_OVERLAP,
) -> List[str]:
    """
    Split `text` into overlapping fixed-size windows.

    The first window starts at offset 0 and every following window starts
    ``max_chars - overlap`` characters after the previous one, so consecutive
    windows share exactly `overlap` characters. The window that reaches the
    end of the text is the last one and may be shorter than `max_chars`.

    Parameters
    ----------
    text : str
        Full document text.
    max_chars : int
        Maximum window length, must be positive.
    overlap : int
        Characters shared by consecutive windows, ``0 <= overlap < max_chars``.

    Returns
    -------
    List[str]
        Ordered windows; empty for empty text.

    Raises
    ------
    ValueError
        If the window parameters are invalid.
    """
    if max_chars <= 0:
        raise ValueError(f"max_chars must be positive, got {max_chars}")
    if overlap < 0 or overlap >= max_chars:
        raise ValueError(
            f"overlap must satisfy 0 <= overlap < max_chars, got {overlap} (max_chars={max_chars})"
        )

    step = max_chars - overlap
    chunks: List[str] = []

    start = 0
    while start < len(text):
        chunks.append(text[start : start + max_chars])
        if start + max_chars >= len(text):
            break
        start += step

    return chunks
