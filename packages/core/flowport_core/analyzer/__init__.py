"""Analyzer module for normalizing pipeline definitions.

This module provides:
- Dialect detection from file name and content
- Per-dialect extractors (graph JSON, script bundles, YAML workflows, raw YAML)
- Main/failure flow reconstruction from typed edge graphs
- A parser registry that dispatches a batch to the selected extractor
"""

from flowport_core.analyzer.assembler import assemble
from flowport_core.analyzer.detection import DETECTION_RULES, DetectionRule, detect_format
from flowport_core.analyzer.extractors import (
    extract_graph_based,
    extract_raw_yaml,
    extract_script_based,
    extract_yaml_workflow,
)
from flowport_core.analyzer.flow import FlowReconstruction, index_steps, reconstruct_flows
from flowport_core.analyzer.registry import (
    PARSERS,
    ParseFailureReason,
    ParseOutcome,
    ParserEntry,
    get_parser,
    parse_files,
)

__all__ = [
    "assemble",
    "detect_format",
    "DETECTION_RULES",
    "DetectionRule",
    "extract_graph_based",
    "extract_raw_yaml",
    "extract_script_based",
    "extract_yaml_workflow",
    "FlowReconstruction",
    "index_steps",
    "reconstruct_flows",
    "PARSERS",
    "ParseFailureReason",
    "ParseOutcome",
    "ParserEntry",
    "get_parser",
    "parse_files",
]
