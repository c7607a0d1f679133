"""File dialect detection.

Classification is an ordered cascade of (predicate, tag) rules evaluated
against a file name and its content; the first matching rule wins. Unknown
content never raises, it yields DialectTag.UNKNOWN and the caller decides
whether to skip the file.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from functools import cached_property
from typing import Any

import yaml

from flowport_core.models import DialectTag

logger = logging.getLogger(__name__)

SCRIPT_EXTENSIONS = (".groovy", ".gvy", ".gy", ".gsh")
FLOW_DEFINITION_MARKER = "<flow-definition"
BUILD_SCRIPT_MARKERS = ("<project name=", "build.xml")


class FileProbe:
    """Lazily computed views of one file used by detection predicates."""

    def __init__(self, file_name: str, content: str) -> None:
        self.file_name = file_name or ""
        self.content = content or ""

    @cached_property
    def lower_name(self) -> str:
        # Archive members arrive as relative paths; rules look at the base name
        return self.file_name.replace("\\", "/").rsplit("/", 1)[-1].lower()

    @cached_property
    def stripped(self) -> str:
        return self.content.strip()

    @cached_property
    def document(self) -> dict[Any, Any] | None:
        """The content parsed as YAML, or None if it is not a YAML mapping."""
        try:
            parsed = yaml.safe_load(self.content)
        except yaml.YAMLError as e:
            logger.debug("Content of %s is not YAML: %s", self.file_name or "<unnamed>", e)
            return None
        return parsed if isinstance(parsed, dict) else None


def workflow_triggers(document: dict[Any, Any]) -> Any:
    """Return a workflow's `on:` block.

    YAML 1.1 loaders read a bare `on` key as boolean True, so both spellings are checked.
    """
    if "on" in document:
        return document["on"]
    return document.get(True)


def _is_pipeline_script(probe: FileProbe) -> bool:
    return "jenkinsfile" in probe.lower_name


def _is_job_config(probe: FileProbe) -> bool:
    return FLOW_DEFINITION_MARKER in probe.content or probe.lower_name == "config.xml"


def _is_build_config(probe: FileProbe) -> bool:
    return probe.lower_name == "build.xml"


def _is_shared_library(probe: FileProbe) -> bool:
    return (
        probe.lower_name.endswith(SCRIPT_EXTENSIONS)
        or "def " in probe.content
        or "@NonCPS" in probe.content
    )


def _is_workflow(probe: FileProbe) -> bool:
    doc = probe.document
    return doc is not None and bool(workflow_triggers(doc)) and bool(doc.get("jobs"))


def _is_reusable_workflow(probe: FileProbe) -> bool:
    if not _is_workflow(probe):
        return False
    triggers = workflow_triggers(probe.document or {})
    if isinstance(triggers, dict):
        return "workflow_call" in triggers
    if isinstance(triggers, list):
        return "workflow_call" in triggers
    return triggers == "workflow_call"


def _is_composite_action(probe: FileProbe) -> bool:
    doc = probe.document
    if doc is None:
        return False
    runs = doc.get("runs")
    return isinstance(runs, dict) and runs.get("using") == "composite"


def _is_generic_xml(probe: FileProbe) -> bool:
    return (
        probe.stripped.startswith("<?xml")
        or "<project>" in probe.content
        or probe.stripped.endswith("</flow-definition>")
    )


def _is_generic_build_xml(probe: FileProbe) -> bool:
    return _is_generic_xml(probe) and any(m in probe.content for m in BUILD_SCRIPT_MARKERS)


@dataclass(frozen=True)
class DetectionRule:
    """One step of the detection cascade."""

    name: str
    predicate: Callable[[FileProbe], bool]
    tag: DialectTag


PIPELINE_SCRIPT_RULES: tuple[DetectionRule, ...] = (
    DetectionRule("jenkinsfile_name", _is_pipeline_script, DialectTag.PIPELINE_SCRIPT),
    DetectionRule("job_config", _is_job_config, DialectTag.JOB_CONFIG_XML),
    DetectionRule("build_config_name", _is_build_config, DialectTag.BUILD_CONFIG_XML),
    DetectionRule("shared_library", _is_shared_library, DialectTag.SHARED_LIBRARY_SCRIPT),
)

WORKFLOW_RULES: tuple[DetectionRule, ...] = (
    DetectionRule("reusable_workflow", _is_reusable_workflow, DialectTag.REUSABLE_WORKFLOW_YAML),
    DetectionRule("workflow", _is_workflow, DialectTag.WORKFLOW_YAML),
    DetectionRule("composite_action", _is_composite_action, DialectTag.COMPOSITE_ACTION_YAML),
)

GENERIC_XML_RULES: tuple[DetectionRule, ...] = (
    DetectionRule("generic_build_xml", _is_generic_build_xml, DialectTag.BUILD_CONFIG_XML),
    DetectionRule("generic_xml", _is_generic_xml, DialectTag.JOB_CONFIG_XML),
)

DETECTION_RULES: tuple[DetectionRule, ...] = (
    PIPELINE_SCRIPT_RULES + WORKFLOW_RULES + GENERIC_XML_RULES
)


def detect_format(
    file_name: str,
    content: str,
    rules: Sequence[DetectionRule] = DETECTION_RULES,
) -> DialectTag:
    """Classify a file into a known dialect.

    Args:
        file_name: File name or relative path (may be empty)
        content: Full text content
        rules: Ordered rule cascade; defaults to the full cascade

    Returns:
        The tag of the first matching rule, or DialectTag.UNKNOWN
    """
    probe = FileProbe(file_name, content)
    for rule in rules:
        if rule.predicate(probe):
            logger.debug("Detected %s as %s (rule %s)", file_name, rule.tag.value, rule.name)
            return rule.tag
    logger.debug("No dialect matched %s", file_name)
    return DialectTag.UNKNOWN
