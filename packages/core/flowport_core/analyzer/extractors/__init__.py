"""Extractors for each supported source dialect.

Each extractor takes a batch of (file_name, content) tuples and returns a
ParsedData, or None when nothing in the batch belonged to its dialect:
- graph_json: component template JSON exports (flows rebuilt from edges)
- script_bundle: Jenkinsfile + config.xml + build.xml + Groovy libraries
- yaml_workflow: GitHub Actions workflows, composite actions, reusable workflows
- raw_yaml: any other YAML pipeline, one process per file
"""

from flowport_core.analyzer.extractors.graph_json import (
    ComponentTemplate,
    extract_graph_based,
    parse_process,
)
from flowport_core.analyzer.extractors.raw_yaml import extract_raw_yaml
from flowport_core.analyzer.extractors.script_bundle import extract_script_based
from flowport_core.analyzer.extractors.yaml_workflow import extract_yaml_workflow

__all__ = [
    "ComponentTemplate",
    "extract_graph_based",
    "extract_raw_yaml",
    "extract_script_based",
    "extract_yaml_workflow",
    "parse_process",
]
