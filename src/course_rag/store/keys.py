"""
Structured Store Keys

Keys in the durable store are tuples of string and non-negative integer
parts, e.g. ``("pack", "L1", 0)``. Backends persist them in an encoded text
form whose byte order groups every key under its prefixes, which is what
makes ordered prefix scans possible on a plain text primary key.

Encoding
--------
- ``str`` part -> ``"s" + value``
- ``int`` part -> ``"i" + zero-padded decimal`` (numeric order == text order)
- parts joined with the ASCII unit separator (0x1F)
"""

from __future__ import annotations

from typing import Tuple, Union

KeyPart = Union[str, int]
Key = Tuple[KeyPart, ...]

SEPARATOR = "\x1f"
_INT_WIDTH = 20

# Key namespaces used by the corpus
DOC_PREFIX = "lec"
CHUNK_PREFIX = "pack"
VERSION_KEY: Key = ("index_version",)


class InvalidKeyError(ValueError):
    """Raised when a key part cannot be encoded."""


def _encode_part(part: KeyPart) -> str:
    # bool is an int subclass but never a valid key part
    if isinstance(part, bool):
        raise InvalidKeyError(f"Unsupported key part: {part!r}")

    if isinstance(part, int):
        if part < 0:
            raise InvalidKeyError(f"Integer key parts must be non-negative: {part}")
        return "i" + str(part).zfill(_INT_WIDTH)

    if isinstance(part, str):
        if SEPARATOR in part:
            raise InvalidKeyError("String key parts may not contain the separator.")
        return "s" + part

    raise InvalidKeyError(f"Unsupported key part: {part!r}")


def encode_key(key: Key) -> str:
    """Encode a key tuple into its ordered text form."""
    return SEPARATOR.join(_encode_part(p) for p in key)


def decode_key(encoded: str) -> Key:
    """Inverse of `encode_key`."""
    if not encoded:
        return ()

    parts = []
    for raw in encoded.split(SEPARATOR):
        tag, body = raw[:1], raw[1:]
        if tag == "i":
            parts.append(int(body))
        elif tag == "s":
            parts.append(body)
        else:
            raise InvalidKeyError(f"Malformed encoded key part: {raw!r}")
    return tuple(parts)


def scan_prefix(prefix: Key) -> str:
    """
    Return the encoded string every key strictly under `prefix` starts with.

    The empty prefix matches every key and yields ``""``.
    """
    if not prefix:
        return ""
    return encode_key(prefix) + SEPARATOR


# ---------------------------------------------------------------------
# Corpus key constructors
# ---------------------------------------------------------------------

def doc_meta_key(doc_id: str) -> Key:
    return (DOC_PREFIX, doc_id, "meta")


def chunk_key(doc_id: str, index: int) -> Key:
    return (CHUNK_PREFIX, doc_id, index)
