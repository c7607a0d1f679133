"""Flowport core: normalization of exported CI/CD pipeline definitions."""

from flowport_core.analyzer import (
    PARSERS,
    ParseFailureReason,
    ParseOutcome,
    assemble,
    detect_format,
    extract_graph_based,
    extract_raw_yaml,
    extract_script_based,
    extract_yaml_workflow,
    get_parser,
    parse_files,
    reconstruct_flows,
)
from flowport_core.archive import ArchiveMember, extract_archive, filter_relevant_files
from flowport_core.exceptions import (
    ArchiveError,
    FlowportError,
    UnknownParserError,
    UnsupportedArchiveError,
)
from flowport_core.models import (
    DialectTag,
    Edge,
    EdgeType,
    IncomingPath,
    ParsedData,
    Process,
    Step,
    StepKind,
    ValuePath,
)
from flowport_core.render import render_parsed_data
from flowport_core.settings import Settings, get_settings

__all__ = [
    # Models
    "DialectTag",
    "Edge",
    "EdgeType",
    "IncomingPath",
    "ParsedData",
    "Process",
    "Step",
    "StepKind",
    "ValuePath",
    # Analysis
    "PARSERS",
    "ParseFailureReason",
    "ParseOutcome",
    "assemble",
    "detect_format",
    "extract_graph_based",
    "extract_raw_yaml",
    "extract_script_based",
    "extract_yaml_workflow",
    "get_parser",
    "parse_files",
    "reconstruct_flows",
    "render_parsed_data",
    # Archives
    "ArchiveMember",
    "extract_archive",
    "filter_relevant_files",
    # Errors
    "ArchiveError",
    "FlowportError",
    "UnknownParserError",
    "UnsupportedArchiveError",
    # Settings
    "Settings",
    "get_settings",
]
