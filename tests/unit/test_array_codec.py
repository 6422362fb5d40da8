"""
Unit tests for the array codec.

Run: pytest tests/unit/test_array_codec.py -v
"""
import pytest

from examdeck.core import codec


class TestEncode:
    """Encoding shape."""

    def test_plain_elements_are_joined(self):
        assert codec.encode(["hello", "world"]) == "hello||world"

    def test_empty_list_is_empty_string(self):
        assert codec.encode([]) == ""

    def test_single_pipe_is_not_escaped(self):
        assert codec.encode(["a|b"]) == "a|b"

    def test_delimiter_inside_element_is_escaped(self):
        encoded = codec.encode(["a||b", "c"])
        assert encoded == "a\\|\\|b||c"
        assert encoded.count("||") == 1

    def test_edge_pipe_is_escaped(self):
        assert codec.encode(["a|", "b"]) == "a\\|||b"

    def test_backslash_is_doubled(self):
        assert codec.encode(["C:\\temp"]) == "C:\\\\temp"

    def test_lone_escape_character_round_trips(self):
        assert codec.decode(codec.encode(["\\"])) == ["\\"]

    def test_empty_element_differs_from_empty_list(self):
        assert codec.encode([""]) != codec.encode([])


class TestRoundTrip:
    """decode(encode(x)) == x, including awkward elements."""

    @pytest.mark.parametrize(
        "items",
        [
            [],
            [""],
            ["", ""],
            ["only"],
            ["Physical", "Network", "Transport"],
            ["a||b", "a|b"],
            ["|", "|"],
            ["a|", "|b"],
            ["|||", "x"],
            ["back\\slash", "trailing\\"],
            ["\\0", "\\|", "\\\\"],
            ["ends with pipe|", "", "||starts"],
            ["unicode ✓ |", "日本語||テスト"],
        ],
    )
    def test_round_trip(self, items):
        assert codec.decode(codec.encode(items)) == items

    def test_none_decodes_to_empty_list(self):
        assert codec.decode(None) == []

    def test_decode_plain_text(self):
        assert codec.decode("hello||world") == ["hello", "world"]
