from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request, Response

from string_analyzer import services
from string_analyzer.crud import StringStore
from string_analyzer.schemas import (
    NaturalLanguageResponse,
    StringListResponse,
    StringRequest,
    StringResponse,
)

router = APIRouter()


def get_store(request: Request) -> StringStore:
    """The store is built in the app lifespan; tests may override this dependency."""
    return request.app.state.store


@router.get("/", tags=["Health"])
async def root() -> dict:
    """Welcome endpoint with basic API information."""
    return {
        "message": "Welcome to the String Analyzer API. Visit /docs for API documentation.",
        "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
    }


@router.get("/health", tags=["Health"])
async def health() -> dict:
    """Basic health check endpoint."""
    return {"status": "ok"}


@router.post(
    "/strings",
    response_model=StringResponse,
    status_code=201,
    tags=["Strings"],
    summary="Store a string and compute its properties",
)
async def create_string_endpoint(payload: StringRequest, store: StringStore = Depends(get_store)):
    return await services.create_string(payload.value, store)


@router.get(
    "/strings/filter-by-natural-language",
    response_model=NaturalLanguageResponse,
    tags=["Strings"],
    summary="Filter strings using a natural language query",
    description=(
        "Recognised phrases: palindromic/palindrome, single word/one word, multiple words, "
        "longer/more than N characters, shorter/less than N characters, "
        "containing the letter X, with the letter X (a bare \"with a\" is read as the article). "
        "\"first vowel\" maps to the letter a as a fixed heuristic."
    ),
)
async def filter_by_natural_language(
    query: Optional[str] = Query(default=None, description="Free-text filter, e.g. 'single word palindromes'"),
    store: StringStore = Depends(get_store),
):
    return await services.get_strings_by_natural_language(store, query)


@router.get(
    "/strings/{string_value:path}",
    response_model=StringResponse,
    tags=["Strings"],
    summary="Get a string by its raw value",
)
async def get_string_endpoint(string_value: str, store: StringStore = Depends(get_store)):
    return await services.get_string_by_value(string_value, store)


@router.get(
    "/strings",
    response_model=StringListResponse,
    tags=["Strings"],
    summary="List strings with optional filtering",
)
async def get_all_strings(
    is_palindrome: Optional[str] = Query(default=None, description="true or false"),
    min_length: Optional[str] = Query(default=None, description="Minimum length (inclusive)"),
    max_length: Optional[str] = Query(default=None, description="Maximum length (inclusive)"),
    word_count: Optional[str] = Query(default=None, description="Exact word count"),
    contains_character: Optional[str] = Query(default=None, description="Single character, case-sensitive"),
    store: StringStore = Depends(get_store),
):
    filters = services.validate_query_filters(is_palindrome, min_length, max_length, word_count, contains_character)
    return await services.get_all_strings_with_filters(store, filters)


@router.delete(
    "/strings/{string_value:path}",
    status_code=204,
    response_class=Response,
    tags=["Strings"],
    summary="Delete a string by its raw value",
)
async def delete_string_endpoint(string_value: str, store: StringStore = Depends(get_store)):
    await services.delete_string_by_value(string_value, store)
    return Response(status_code=204)
