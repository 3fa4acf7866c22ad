"""
Tests for structural repair of truncated JSON.
"""

import pytest

from sitegen.errors import UnrecoverableOutput
from sitegen.parsing.repair import RepairStep, repair, strip_trailing_commas

S = RepairStep


class TestRepair:
    """Tests for repair()."""

    def test_valid_text_is_untouched(self):
        """Text that already parses comes back with no steps."""
        text = '{"title": "About", "content": ["x"]}'
        result = repair(text)

        assert result.text == text
        assert result.steps == ()
        assert result.data == {"title": "About", "content": ["x"]}

    def test_missing_closing_brace(self):
        """Output cut off right after a complete field."""
        result = repair('{"title":"Contact","email":"a@b.co","phone":"555-0100"')

        assert result.data == {"title": "Contact", "email": "a@b.co", "phone": "555-0100"}
        assert result.steps == (S.CLOSE_BRACKETS,)

    def test_unterminated_value_is_dropped(self):
        """A half-written string value takes its key with it."""
        result = repair('{"title": "About", "mission": "We grow')

        assert result.data == {"title": "About"}
        assert result.steps == (S.CLOSE_STRING, S.DROP_DANGLING_FIELD, S.CLOSE_BRACKETS)

    def test_key_without_value_is_dropped(self):
        result = repair('{"title": "A", "email":')

        assert result.data == {"title": "A"}
        assert result.steps == (S.DROP_DANGLING_FIELD, S.CLOSE_BRACKETS)

    def test_key_without_colon_is_dropped(self):
        result = repair('{"title": "A", "email"')

        assert result.data == {"title": "A"}
        assert S.DROP_DANGLING_FIELD in result.steps

    def test_partial_key_is_dropped(self):
        result = repair('{"title": "A", "ema')

        assert result.data == {"title": "A"}
        assert result.steps == (S.CLOSE_STRING, S.DROP_DANGLING_FIELD, S.CLOSE_BRACKETS)

    def test_truncated_array_element_is_kept(self):
        """Array strings have no key to lose, so they are closed instead."""
        result = repair('{"content": ["First paragraph.", "Second para')

        assert result.data == {"content": ["First paragraph.", "Second para"]}
        assert result.steps == (S.CLOSE_STRING, S.CLOSE_BRACKETS)

    def test_closers_follow_nesting(self):
        """Inner array closes before the outer object."""
        result = repair('{"values": [{"title": "Care", "icon": "Leaf"}, {"title": "Co')

        assert result.data == {"values": [{"title": "Care", "icon": "Leaf"}, {}]}
        assert result.text.endswith("}]}")

    def test_partial_literal_is_dropped(self):
        result = repair('{"title": "A", "open": tr')

        assert result.data == {"title": "A"}
        assert S.DROP_DANGLING_FIELD in result.steps

    def test_complete_number_is_kept(self):
        result = repair('{"rating": 12')

        assert result.data == {"rating": 12}
        assert result.steps == (S.CLOSE_BRACKETS,)

    def test_dangling_escape_is_removed(self):
        result = repair('{"content": ["say \\')

        assert result.data == {"content": ["say "]}

    def test_trailing_comma_after_closing(self):
        """A trailing separator needs step four after the closers."""
        result = repair('{"a": 1,')

        assert result.data == {"a": 1}
        assert result.steps == (S.CLOSE_BRACKETS, S.STRIP_TRAILING_COMMAS)

    def test_trailing_commas_in_complete_text(self):
        result = repair('{"a": [1, 2,], }')

        assert result.data == {"a": [1, 2]}
        assert result.steps == (S.STRIP_TRAILING_COMMAS,)

    def test_braces_inside_strings_are_ignored(self):
        result = repair('{"note": "use {curly} and [square]", "n": 1')

        assert result.data == {"note": "use {curly} and [square]", "n": 1}

    def test_raw_newlines_in_strings_are_tolerated(self):
        result = repair('{"content": ["line one\nline two"]')

        assert result.data == {"content": ["line one\nline two"]}

    @pytest.mark.parametrize("text", ['{"a": 1}}', '{"a" 1}', "not json at all"])
    def test_unrecoverable(self, text):
        with pytest.raises(UnrecoverableOutput):
            repair(text)


class TestIdempotence:
    """Repairing repaired text changes nothing."""

    @pytest.mark.parametrize(
        "text",
        [
            '{"title":"Contact","email":"a@b.co"',
            '{"title": "About", "mission": "We grow',
            '{"content": ["First.", "Sec',
            '{"a": {"b": [1, 2, {"c": "d',
            '{"a": 1,',
            '{"a": [1, 2,], }',
            '{"title": "A", "email":',
        ],
    )
    def test_fixed_point(self, text):
        first = repair(text)
        second = repair(first.text)

        assert second.text == first.text
        assert second.data == first.data
        assert second.steps == ()


class TestStripTrailingCommas:
    """Tests for the string-aware trailing comma pass."""

    def test_commas_inside_strings_survive(self):
        assert strip_trailing_commas('{"a": "x,}", "b": [1,]}') == '{"a": "x,}", "b": [1]}'

    def test_whitespace_between_comma_and_closer(self):
        assert strip_trailing_commas('[1,\n  ]') == "[1\n  ]"
