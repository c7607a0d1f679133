"""Tests for parser registry dispatch."""

import json

import pytest
from flowport_core.analyzer.registry import PARSERS, ParseFailureReason, get_parser, parse_files
from flowport_core.exceptions import FlowportError, UnknownParserError


class TestRegistry:
    def test_registered_keys(self) -> None:
        assert list(PARSERS) == ["ucd", "jenkins", "github_actions", "yaml"]

    def test_unknown_parser(self) -> None:
        with pytest.raises(UnknownParserError) as exc_info:
            get_parser("bamboo")

        assert exc_info.value.key == "bamboo"
        assert "bamboo" in str(exc_info.value)
        assert isinstance(exc_info.value, FlowportError)

    def test_unknown_parser_in_dispatch(self) -> None:
        with pytest.raises(UnknownParserError):
            parse_files("bamboo", [("a", "b")])


class TestParseFiles:
    @pytest.mark.parametrize("key", ["ucd", "jenkins", "github_actions", "yaml"])
    def test_empty_batch(self, key: str) -> None:
        outcome = parse_files(key, [])

        assert not outcome.ok
        assert outcome.reason is ParseFailureReason.EMPTY_BATCH

    def test_no_valid_documents(self) -> None:
        outcome = parse_files("ucd", [("a.json", "not json")])

        assert outcome.reason is ParseFailureReason.NO_VALID_DOCUMENTS

    @pytest.mark.parametrize("key", ["jenkins", "github_actions"])
    def test_no_recognized_files(self, key: str) -> None:
        outcome = parse_files(key, [("README.md", "hello")])

        assert outcome.reason is ParseFailureReason.NO_RECOGNIZED_FILES

    def test_success(self) -> None:
        document = json.dumps({"name": "web-app", "processes": []})

        outcome = parse_files("ucd", [("web-app.json", document)])

        assert outcome.ok
        assert outcome.parser_key == "ucd"
        assert outcome.data is not None
        assert outcome.data.component_name == "web-app"
        assert outcome.reason is None
