import logging
import re
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import SQLAlchemyError

from string_analyzer.crud import StringStore
from string_analyzer.errors import NotFoundError, TransientStoreError, ValidationError
from string_analyzer.models import StringRecord
from string_analyzer.nlp import interpret_nl_query
from string_analyzer.properties import compute_properties, content_hash

logger = logging.getLogger("string_analyzer.services")

_NON_NEGATIVE_INT = re.compile(r"^\d+$")


def _parse_non_negative_int(name: str, raw: str) -> int:
    raw = raw.strip()
    if not _NON_NEGATIVE_INT.match(raw):
        raise ValidationError(f'Invalid "{name}" parameter (must be non-negative integer)')
    return int(raw)


def validate_query_filters(
    is_palindrome: Optional[str] = None,
    min_length: Optional[str] = None,
    max_length: Optional[str] = None,
    word_count: Optional[str] = None,
    contains_character: Optional[str] = None,
) -> Dict[str, Any]:
    """Turn raw listing query parameters into a filter dict, or raise ValidationError."""
    filters: Dict[str, Any] = {}

    if is_palindrome is not None:
        if is_palindrome not in ("true", "false"):
            raise ValidationError('Invalid "is_palindrome" parameter (must be true or false)')
        filters["is_palindrome"] = is_palindrome == "true"

    if min_length is not None:
        filters["min_length"] = _parse_non_negative_int("min_length", min_length)

    if max_length is not None:
        filters["max_length"] = _parse_non_negative_int("max_length", max_length)

    if "min_length" in filters and "max_length" in filters:
        if filters["min_length"] > filters["max_length"]:
            raise ValidationError("Invalid length range (min_length cannot be greater than max_length)")

    if word_count is not None:
        filters["word_count"] = _parse_non_negative_int("word_count", word_count)

    if contains_character is not None:
        if len(contains_character) != 1:
            raise ValidationError('Invalid "contains_character" parameter (must be a single character)')
        filters["contains_character"] = contains_character

    return filters


async def create_string(value: Any, store: StringStore) -> StringRecord:
    if not isinstance(value, str):
        raise ValidationError('Invalid data type for "value" (must be string)', status_code=422)
    if value == "":
        raise ValidationError('Invalid or missing "value" field')
    try:
        value.encode("utf-8")
    except UnicodeEncodeError:
        # Lone surrogates cannot be stored as text.
        raise ValidationError('Invalid "value" field (must be valid Unicode text)') from None

    props = compute_properties(value)
    return await store.insert_if_absent(value, props)


async def get_string_by_value(string_value: str, store: StringStore) -> StringRecord:
    """Lookup record by hashing the exact provided string value."""
    if not string_value:
        raise ValidationError('Invalid "value" parameter (must be a non-empty string)')
    record = await store.find_by_id(content_hash(string_value))
    if record is None:
        raise NotFoundError("String does not exist in the system")
    return record


async def delete_string_by_value(string_value: str, store: StringStore) -> None:
    if not string_value:
        raise ValidationError('Invalid "value" parameter (must be a non-empty string)')
    # Any failure while deleting is reported as "not found": from the
    # client's side the string is either gone or was never there.
    try:
        deleted = await store.delete_by_id(content_hash(string_value))
    except (TransientStoreError, SQLAlchemyError) as e:
        logger.error("Delete failed for %r, reporting not found: %s", string_value, e)
        deleted = False
    if not deleted:
        raise NotFoundError("String does not exist in the system")


async def get_all_strings_with_filters(store: StringStore, filters: Dict[str, Any]) -> Dict[str, Any]:
    records: List[StringRecord] = await store.scan(filters)
    return {
        "data": records,
        "count": len(records),
        "filters_applied": filters,
    }


async def get_strings_by_natural_language(store: StringStore, query: Optional[str]) -> Dict[str, Any]:
    if query is None or not query.strip():
        raise ValidationError('Missing or invalid "query" parameter')

    interpreted = interpret_nl_query(query)
    parsed = interpreted["parsed_filters"]
    if not parsed:
        raise ValidationError("Unable to parse natural language query")

    if "min_length" in parsed and "max_length" in parsed and parsed["min_length"] > parsed["max_length"]:
        raise ValidationError(
            "Query parsed but resulted in conflicting filters (min_length > max_length)",
            status_code=422,
        )

    records = await store.scan(parsed)
    return {
        "data": records,
        "count": len(records),
        "interpreted_query": interpreted,
    }
