"""Parser registry and top-level dispatch.

The caller picks a dialect explicitly; dispatch runs that extractor and
turns a None result into an enumerable failure reason.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

from flowport_core.analyzer.extractors import (
    extract_graph_based,
    extract_raw_yaml,
    extract_script_based,
    extract_yaml_workflow,
)
from flowport_core.exceptions import UnknownParserError
from flowport_core.models import ParsedData

logger = logging.getLogger(__name__)

ExtractFunction = Callable[[list[tuple[str, str]]], ParsedData | None]


class ParseFailureReason(str, Enum):
    """Why a batch produced no result."""

    EMPTY_BATCH = "empty_batch"
    NO_VALID_DOCUMENTS = "no_valid_documents"
    NO_RECOGNIZED_FILES = "no_recognized_files"


@dataclass(frozen=True)
class ParserEntry:
    """A registered dialect parser."""

    key: str
    name: str
    description: str
    extract: ExtractFunction
    failure_reason: ParseFailureReason


@dataclass(frozen=True)
class ParseOutcome:
    """Result of dispatching one batch to a parser."""

    parser_key: str
    data: ParsedData | None = None
    reason: ParseFailureReason | None = None

    @property
    def ok(self) -> bool:
        return self.data is not None


PARSERS: dict[str, ParserEntry] = {
    entry.key: entry
    for entry in (
        ParserEntry(
            key="ucd",
            name="UrbanCode Deploy",
            description="Component template JSON exports with process graphs",
            extract=extract_graph_based,
            failure_reason=ParseFailureReason.NO_VALID_DOCUMENTS,
        ),
        ParserEntry(
            key="jenkins",
            name="Jenkins Pipeline",
            description="Jenkinsfile, config.xml, build.xml and shared library scripts",
            extract=extract_script_based,
            failure_reason=ParseFailureReason.NO_RECOGNIZED_FILES,
        ),
        ParserEntry(
            key="github_actions",
            name="GitHub Actions",
            description="Workflows, composite actions and reusable workflows",
            extract=extract_yaml_workflow,
            failure_reason=ParseFailureReason.NO_RECOGNIZED_FILES,
        ),
        ParserEntry(
            key="yaml",
            name="YAML Pipeline",
            description="Any YAML pipeline, one process per file",
            extract=extract_raw_yaml,
            failure_reason=ParseFailureReason.EMPTY_BATCH,
        ),
    )
}


def get_parser(key: str) -> ParserEntry:
    """Look up a parser by key.

    Raises:
        UnknownParserError: If the key is not registered
    """
    entry = PARSERS.get(key)
    if entry is None:
        raise UnknownParserError(key, list(PARSERS))
    return entry


def parse_files(key: str, files: list[tuple[str, str]]) -> ParseOutcome:
    """Run the selected parser over a batch of (file_name, content) tuples."""
    entry = get_parser(key)
    if not files:
        return ParseOutcome(parser_key=key, reason=ParseFailureReason.EMPTY_BATCH)

    data = entry.extract(files)
    if data is None:
        logger.info("Parser %s produced no result for %d file(s)", key, len(files))
        return ParseOutcome(parser_key=key, reason=entry.failure_reason)
    return ParseOutcome(parser_key=key, data=data)
