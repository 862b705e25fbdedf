"""Tests for JSON extraction from free-text replies."""

from watch_commander.gateway.extraction import (
    BraceScanExtractor,
    JsonExtractor,
    StrictJsonExtractor,
    extract_json_object,
    scan_braces,
)


class TestBraceScan:
    """Test the default brace-scanning strategy."""

    def test_plain_object(self):
        assert extract_json_object('{"title": "Raid"}') == {"title": "Raid"}

    def test_leading_and_trailing_prose(self):
        text = 'Sure! Here is the mission: {"title": "Raid", "risk": 4} Hope that helps.'
        assert extract_json_object(text) == {"title": "Raid", "risk": 4}

    def test_nested_object(self):
        text = 'Result: {"title": "Raid", "rewards": {"budget": 5000}} done'
        assert extract_json_object(text) == {"title": "Raid", "rewards": {"budget": 5000}}

    def test_stray_brace_after_object(self):
        """A later closing brace in commentary does not swallow the object."""
        text = '{"title": "Raid"} and then some text with a } in it'
        assert scan_braces(text) == {"title": "Raid"}

    def test_trailing_comma_repaired(self):
        text = '{"title": "Raid", "options": ["a", "b",],}'
        assert extract_json_object(text) == {"title": "Raid", "options": ["a", "b"]}

    def test_fenced_block(self):
        text = "Here you go:\n```json\n{\"name\": \"Ana\"}\n```"
        assert extract_json_object(text) == {"name": "Ana"}

    def test_fenced_block_after_broken_brace(self):
        """A malformed inline brace falls back to the fenced block."""
        text = "Template {name: ???}\n```json\n{\"name\": \"Ana\"}\n```"
        assert BraceScanExtractor().extract(text) == {"name": "Ana"}

    def test_no_object(self):
        assert extract_json_object("I cannot help with that.") is None
        assert extract_json_object("") is None

    def test_array_is_not_an_object(self):
        assert extract_json_object("[1, 2, 3]") is None


class TestStrictExtractor:
    """Test the JSON-mode strategy."""

    def test_whole_reply_must_parse(self):
        extractor = StrictJsonExtractor()
        assert extractor.extract('{"a": 1}') == {"a": 1}
        assert extractor.extract('Here: {"a": 1}') is None

    def test_both_satisfy_protocol(self):
        assert isinstance(BraceScanExtractor(), JsonExtractor)
        assert isinstance(StrictJsonExtractor(), JsonExtractor)
