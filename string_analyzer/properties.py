import re
from collections import Counter
from hashlib import sha256
from typing import Any, Dict

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def _utf8_bytes(value: str) -> bytes:
    """Encode to UTF-8, substituting U+FFFD for lone surrogates instead of raising."""
    try:
        return value.encode("utf-8")
    except UnicodeEncodeError:
        return value.encode("utf-16-le", "surrogatepass").decode("utf-16-le", "replace").encode("utf-8")


def _utf16_length(value: str) -> int:
    return len(value.encode("utf-16-le", "surrogatepass")) // 2


def content_hash(value: str) -> str:
    """SHA-256 hex digest of the raw string; the record's identity key."""
    return sha256(_utf8_bytes(value)).hexdigest()


def is_palindrome(value: str) -> bool:
    """Case and punctuation insensitive palindrome check.

    Only ``[a-z0-9]`` survive cleaning; a string with nothing left after
    cleaning is not a palindrome.
    """
    cleaned = _NON_ALNUM.sub("", value.lower())
    return bool(cleaned) and cleaned == cleaned[::-1]


def compute_properties(value: str) -> Dict[str, Any]:
    if not isinstance(value, str):
        raise TypeError("value must be a string")

    return {
        "length": _utf16_length(value),
        "is_palindrome": is_palindrome(value),
        "unique_characters": len(set(value)),
        # str.split() with no separator trims and collapses whitespace runs
        "word_count": len(value.split()),
        "sha256_hash": content_hash(value),
        "character_frequency_map": dict(Counter(value)),
    }
