"""
tests/test_sanitize.py -- Sanitizers for record fields and free-text search.

The search sanitizer feeds a LIKE filter; the record sanitizers run on every
Personnel attribute assignment. None of these need an app or a database.
"""
from security.sanitize import (
    escape_like,
    sanitize_email,
    sanitize_mobile_number,
    sanitize_name,
    sanitize_search,
)


class TestSanitizeSearch:
    def test_keeps_normal_text(self) -> None:
        assert sanitize_search("Joji Frank") == "Joji Frank"

    def test_removes_sql_keywords(self) -> None:
        result = sanitize_search("Joji UNION SELECT * FROM users Frank")
        assert "UNION" not in result.upper()
        assert "SELECT" not in result.upper()
        assert "Joji" in result
        assert "Frank" in result

    def test_keywords_removed_whole_word_only(self) -> None:
        result = sanitize_search("selection of updates")
        assert result == "selection of updates"

    def test_keyword_removal_is_case_insensitive(self) -> None:
        result = sanitize_search("a DeLeTe b insert c")
        assert "delete" not in result.lower()
        assert "insert" not in result.lower()

    def test_removes_html_tags(self) -> None:
        assert sanitize_search("<b>Joji</b> Frank") == "Joji Frank"

    def test_empty_and_none_short_circuit_to_none(self) -> None:
        assert sanitize_search("") is None
        assert sanitize_search(None) is None

    def test_whitespace_only_is_empty_string(self) -> None:
        assert sanitize_search("   ") == ""

    def test_quotes_become_entities(self) -> None:
        result = sanitize_search("Joji'middle\"Frank")
        assert "&#039;" in result
        assert "&quot;" in result
        assert "Joji" in result
        assert "middle" in result
        assert "Frank" in result

    def test_script_tags_stripped_content_kept(self) -> None:
        assert sanitize_search("Joji<script>alert()</script>Frank") == "Jojialert()Frank"


class TestRecordSanitizers:
    def test_name_drops_digits_and_symbols(self) -> None:
        assert sanitize_name("  Mary-Jane   O'Neil3! ") == "Mary-Jane O'Neil"

    def test_name_keeps_accented_letters(self) -> None:
        assert sanitize_name("José") == "José"

    def test_name_passes_non_strings_through(self) -> None:
        assert sanitize_name(None) is None
        assert sanitize_name(42) == 42

    def test_mobile_keeps_digits_plus_and_punctuation(self) -> None:
        assert sanitize_mobile_number(" +1 (555) 123-4567 ext") == "+1 (555) 123-4567"

    def test_mobile_drops_non_ascii_digits_and_spaces(self) -> None:
        assert sanitize_mobile_number("+1 555\u2003123\u0664567") == "+1 555123567"

    def test_email_lowercased_and_filtered(self) -> None:
        assert sanitize_email("  John.DOE@Acme.COM ") == "john.doe@acme.com"
        assert sanitize_email("jo hn(@)acme.com") == "john@acme.com"

    def test_escape_like_neutralizes_wildcards(self) -> None:
        assert escape_like("50%_off") == "50\\%\\_off"
