"""Raw YAML pipeline extractor.

Fallback for YAML pipelines of no specific family: each file becomes one
process with a single step carrying the raw text and its parsed structure.
A file that fails to parse still yields a process flagged as a parse error.
"""

from __future__ import annotations

import logging
from typing import Any

import yaml

from flowport_core.analyzer.assembler import assemble
from flowport_core.models import ParsedData, Process, Step, StepKind

logger = logging.getLogger(__name__)

DEFAULT_COMPONENT_NAME = "YAML Pipeline"


def _pipeline_name(data: Any) -> str | None:
    if not isinstance(data, dict):
        return None
    pipeline = data.get("pipeline")
    if isinstance(pipeline, dict) and pipeline.get("name"):
        return str(pipeline["name"])
    if data.get("name"):
        return str(data["name"])
    return None


def _parse_one(index: int, file_name: str, content: str) -> tuple[Process, Any]:
    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        logger.warning("Failed to parse YAML file %s: %s", file_name, e)
        step = Step(
            id=f"yaml-error-{index + 1}",
            name="Raw YAML Content (Parse Error)",
            kind=StepKind.SCRIPT,
            details="YAML content (failed to parse)",
            properties={"file_name": file_name, "parse_error": str(e)},
            script_body=content,
        )
        process = Process(
            name=f"YAML File {index + 1} (Parse Error)",
            description="YAML content with parse error",
            main_flow=[step],
        )
        return process, None

    step = Step(
        id=f"yaml-{index + 1}",
        name="YAML Content",
        kind=StepKind.WORKFLOW,
        details="Uploaded YAML pipeline content",
        properties={"file_name": file_name, "parsed_data": data},
        script_body=content,
    )
    process = Process(
        name=_pipeline_name(data) or f"YAML Pipeline {index + 1}",
        description="Uploaded YAML pipeline",
        main_flow=[step],
    )
    return process, data


def extract_raw_yaml(files: list[tuple[str, str]]) -> ParsedData | None:
    """Wrap each YAML file into its own single-step process.

    Returns None only for an empty batch.
    """
    if not files:
        return None

    component_name = DEFAULT_COMPONENT_NAME
    processes: list[Process] = []
    for index, (file_name, content) in enumerate(files):
        process, data = _parse_one(index, file_name, content)
        if index == 0 and isinstance(data, dict) and isinstance(data.get("pipeline"), dict):
            component_name = str(data["pipeline"].get("name") or component_name)
        processes.append(process)

    return assemble(component_name, processes)
