import re
from typing import Any, Dict

_PALINDROME_WORDS = ("palindromic", "palindrome")
_SINGLE_WORD_PHRASES = ("single word", "single-word", "one word")
_MULTI_WORD_PHRASES = ("multiple words", "many words")

_LONGER_THAN = re.compile(r"\b(?:longer|more) than (\d+) characters?")
_SHORTER_THAN = re.compile(r"\b(?:shorter|less) than (\d+) characters?")
# The captured letter must stand alone, so "containing words" does not yield "w".
_CONTAINS_LETTER = re.compile(r"\bcontain(?:s|ing)? (?:the )?(?:letter )?([a-z])\b")
# After "with", a bare "a" is the article ("with a single word"); it is a
# letter only as "with the a" or "with (the) letter a".
_WITH_LETTER = re.compile(r"\bwith (?:(?:the )?letter ([a-z])|the ([a-z])|(?!a\b)([a-z]))\b")


def interpret_nl_query(query: str) -> Dict[str, Any]:
    """Interpret a natural language filter query into structured filters.

    Returns ``{"original": query, "parsed_filters": {...}}``. Rules fire
    independently; a query matching none of them yields empty
    ``parsed_filters``. Conflicting bounds (min_length > max_length) are
    left for the caller to reject.
    """
    if not isinstance(query, str):
        raise TypeError("query must be a string")

    q = query.lower()
    filters: Dict[str, Any] = {}

    if any(word in q for word in _PALINDROME_WORDS):
        filters["is_palindrome"] = True

    if any(phrase in q for phrase in _SINGLE_WORD_PHRASES):
        filters["word_count"] = 1
    elif any(phrase in q for phrase in _MULTI_WORD_PHRASES):
        filters["word_count_gt"] = 1

    m = _LONGER_THAN.search(q)
    if m:
        filters["min_length"] = int(m.group(1)) + 1

    m = _SHORTER_THAN.search(q)
    if m:
        filters["max_length"] = int(m.group(1)) - 1

    m = _CONTAINS_LETTER.search(q) or _WITH_LETTER.search(q)
    if m:
        filters["contains_character"] = next(g for g in m.groups() if g)
    elif "first vowel" in q:
        # Fixed compatibility heuristic, not an inference about vowels.
        filters["contains_character"] = "a"

    return {"original": query, "parsed_filters": filters}
