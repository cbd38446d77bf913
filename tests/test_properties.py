import hashlib

import pytest

from string_analyzer.properties import compute_properties, content_hash, is_palindrome


class TestComputeProperties:
    """Tests for property computation."""

    def test_basic_analysis(self):
        props = compute_properties("hello world")
        assert props["length"] == 11
        assert props["word_count"] == 2
        assert props["is_palindrome"] is False
        assert props["unique_characters"] == 8  # Includes space as a character

    def test_hello(self):
        props = compute_properties("Hello")
        assert props["length"] == 5
        assert props["unique_characters"] == 4  # H, e, l, o
        assert props["word_count"] == 1
        assert props["is_palindrome"] is False

    def test_empty_string(self):
        props = compute_properties("")
        assert props["length"] == 0
        assert props["is_palindrome"] is False
        assert props["unique_characters"] == 0
        assert props["word_count"] == 0
        assert props["character_frequency_map"] == {}
        assert props["sha256_hash"] == hashlib.sha256(b"").hexdigest()

    def test_sentence_palindrome_ignores_case_and_spaces(self):
        props = compute_properties("A man a plan a canal Panama")
        assert props["is_palindrome"] is True
        assert props["word_count"] == 7

    def test_character_frequency_is_case_sensitive_and_keeps_spaces(self):
        freq = compute_properties("Hello World")["character_frequency_map"]
        assert freq == {"H": 1, "e": 1, "l": 3, "o": 2, " ": 1, "W": 1, "r": 1, "d": 1}

    def test_sha256_hash_of_original(self):
        value = "Mixed Case  value!"
        props = compute_properties(value)
        assert props["sha256_hash"] == hashlib.sha256(value.encode("utf-8")).hexdigest()
        assert compute_properties(value)["sha256_hash"] == props["sha256_hash"]

    def test_whitespace_only_has_no_words(self):
        assert compute_properties("   \t\n ")["word_count"] == 0

    def test_word_count_collapses_whitespace_runs(self):
        assert compute_properties("  hello   big\tworld \n")["word_count"] == 3

    def test_emoji_counts_utf16_units_for_length(self):
        props = compute_properties("😀")
        assert props["length"] == 2
        assert props["unique_characters"] == 1
        assert props["character_frequency_map"] == {"😀": 1}
        assert props["sha256_hash"] == hashlib.sha256("😀".encode("utf-8")).hexdigest()

    def test_lone_surrogate_does_not_raise(self):
        props = compute_properties("a\ud800b")
        assert props["length"] == 3
        assert props["sha256_hash"] == hashlib.sha256("a\ufffdb".encode("utf-8")).hexdigest()

    def test_control_characters_are_plain_characters(self):
        props = compute_properties("a\x00a")
        assert props["length"] == 3
        assert props["character_frequency_map"] == {"a": 2, "\x00": 1}
        assert props["is_palindrome"] is True

    def test_rejects_non_string(self):
        with pytest.raises(TypeError):
            compute_properties(123)  # type: ignore[arg-type]


class TestPalindrome:
    def test_simple(self):
        assert is_palindrome("racecar") is True
        assert is_palindrome("Racecar") is True

    def test_punctuation_is_ignored(self):
        assert is_palindrome("No 'x' in Nixon") is True

    def test_nothing_left_after_cleaning_is_not_palindrome(self):
        assert is_palindrome("!!!") is False
        assert is_palindrome("   ") is False
        assert is_palindrome("") is False

    def test_digits_count(self):
        assert is_palindrome("12321") is True
        assert is_palindrome("12345") is False


def test_content_hash_matches_hashlib():
    assert content_hash("abc") == hashlib.sha256(b"abc").hexdigest()
