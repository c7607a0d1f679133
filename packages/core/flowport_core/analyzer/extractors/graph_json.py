"""Graph-based JSON extractor for deployment-tool component template exports.

Each document holds a component name plus `processes` and/or
`genericProcesses`. A process's root activity carries a flat list of step
children and the typed edges between them; step order is reconstructed
from those edges.
"""

from __future__ import annotations

import json
import logging
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from flowport_core.analyzer.assembler import assemble
from flowport_core.analyzer.flow import index_steps, reconstruct_flows
from flowport_core.models import Edge, EdgeType, ParsedData, Process, Step, StepKind

logger = logging.getLogger(__name__)

STEP_TEXT_FIELDS = (
    "name",
    "type",
    "processName",
    "pluginName",
    "commandName",
    "status",
    "propertyName",
)
EDGE_TEXT_FIELDS = ("from", "to", "type")


def scalar_text(value: Any) -> str:
    """Text form of a JSON scalar; booleans use JSON spelling."""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _scalars_to_str(data: dict[str, Any], keys: tuple[str, ...]) -> dict[str, Any]:
    coerced = dict(data)
    for key in keys:
        value = coerced.get(key)
        if isinstance(value, (bool, int, float)):
            coerced[key] = scalar_text(value)
    return coerced


# ============================================================================
# Raw document models
# ============================================================================


class RawStep(BaseModel):
    """A child activity of a process's root activity."""

    model_config = ConfigDict(extra="allow")

    name: str
    type: str = ""
    properties: dict[str, Any] = Field(default_factory=dict)
    processName: str | None = None
    pluginName: str | None = None
    commandName: str | None = None
    status: str | None = None
    propertyName: str | None = None
    postProcessingScript: Any = None
    preconditionScript: Any = None

    @model_validator(mode="before")
    @classmethod
    def _lenient_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = _scalars_to_str(data, STEP_TEXT_FIELDS)
        if data.get("properties") is None:
            data["properties"] = {}
        if data.get("type") is None:
            data["type"] = ""
        return data


class RawEdge(BaseModel):
    """An edge between two children.

    A missing `from` marks a start edge; a missing or null `type` means SUCCESS.
    """

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    source: str | None = Field(default=None, alias="from")
    to: str | None = None
    type: str | None = EdgeType.SUCCESS.value
    value: Any = None

    @model_validator(mode="before")
    @classmethod
    def _lenient_fields(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        return _scalars_to_str(data, EDGE_TEXT_FIELDS)


class RawActivity(BaseModel):
    """Root activity; children and edges are validated one by one later."""

    model_config = ConfigDict(extra="allow")

    type: Any = ""
    children: list[Any] = Field(default_factory=list)
    edges: list[Any] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _null_lists(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = {**data}
            for key in ("children", "edges"):
                if data.get(key) is None:
                    data[key] = []
        return data


class RawProcess(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    description: str | None = ""
    rootActivity: RawActivity | None = None
    linkedProcesses: list[RawProcess] = Field(default_factory=list)


class ComponentTemplate(BaseModel):
    """Top-level component template export."""

    model_config = ConfigDict(extra="allow")

    name: str
    description: str | None = ""
    processes: list[RawProcess] | None = None
    genericProcesses: list[RawProcess] | None = None

    @model_validator(mode="after")
    def _require_processes(self) -> ComponentTemplate:
        if not self.name:
            raise ValueError("component template has no name")
        if self.processes is None and self.genericProcesses is None:
            raise ValueError("component template has neither processes nor genericProcesses")
        return self

    def all_processes(self) -> list[RawProcess]:
        """Processes in export order, each generic process followed by its linked ones."""
        result = list(self.processes or [])
        for generic in self.genericProcesses or []:
            result.append(generic)
            result.extend(generic.linkedProcesses)
        return result


RawProcess.model_rebuild()
ComponentTemplate.model_rebuild()


# ============================================================================
# Conversion
# ============================================================================


def step_details(step: RawStep) -> str:
    """One-line description of what a graph step does."""
    if step.type == StepKind.PLUGIN:
        return f"Plugin: {step.pluginName} - {step.commandName}"
    if step.type == StepKind.RUN_PROCESS:
        return f"Runs Process: {step.processName}"
    if step.type == StepKind.SET_STATUS:
        return f"Set Status to: {step.status}"
    if step.type == StepKind.SWITCH:
        return f"Switch on property: {step.propertyName}"
    if step.type == StepKind.FINISH:
        return "End of Process"
    return f"Type: {step.type}"


def _script_text(value: Any) -> str | None:
    if isinstance(value, dict):
        value = value.get("body")
    if value is None or value == "":
        return None
    return str(value)


def _to_step(raw: RawStep) -> Step:
    return Step(
        id=raw.name,
        name=raw.name,
        kind=raw.type,
        details=step_details(raw),
        properties=dict(raw.properties),
        script_body=_script_text(raw.properties.get("scriptBody")),
        post_processing_script=_script_text(raw.postProcessingScript),
        precondition_script=_script_text(raw.preconditionScript),
    )


def _to_edges(raw_edges: list[RawEdge], process_name: str) -> list[Edge]:
    edges: list[Edge] = []
    for raw in raw_edges:
        if not raw.to:
            continue
        try:
            edge_type = EdgeType(raw.type or EdgeType.SUCCESS.value)
        except ValueError:
            logger.warning(
                "Skipping edge %r -> %r with unknown type %r in process %r",
                raw.source,
                raw.to,
                raw.type,
                process_name,
            )
            continue
        value = None if raw.value is None else scalar_text(raw.value)
        edges.append(Edge(source=raw.source or None, target=raw.to, type=edge_type, value=value))
    return edges


def _validate_items(
    model: type[RawStep] | type[RawEdge],
    items: list[Any],
    kind: str,
    process_name: str,
) -> list[Any]:
    """Validate children or edges individually, skipping malformed ones."""
    valid = []
    for position, item in enumerate(items):
        try:
            valid.append(model.model_validate(item))
        except ValidationError as e:
            logger.warning(
                "Skipping malformed %s #%d in process %r: %s",
                kind,
                position,
                process_name,
                e.errors()[0]["msg"],
            )
    return valid


def parse_process(raw: RawProcess) -> Process:
    """Convert one raw process into a Process with reconstructed flows."""
    description = raw.description or ""
    activity = raw.rootActivity
    children = _validate_items(RawStep, activity.children, "step", raw.name) if activity else []
    if activity is None or not children:
        return Process(name=raw.name, description=description)

    raw_edges = _validate_items(RawEdge, activity.edges, "edge", raw.name)
    steps = index_steps((_to_step(child) for child in children), raw.name)
    flows = reconstruct_flows(steps, _to_edges(raw_edges, raw.name))
    if flows.skipped_edges:
        logger.warning(
            "Process %r: ignored %d edge(s) referencing unknown steps",
            raw.name,
            flows.skipped_edges,
        )
    return Process(
        name=raw.name,
        description=description,
        main_flow=flows.main_flow,
        failure_flow=flows.failure_flow,
    )


def _unique_processes(processes: list[RawProcess]) -> list[RawProcess]:
    """First occurrence of each name wins; processes without a root activity are dropped."""
    seen: set[str] = set()
    unique: list[RawProcess] = []
    for process in processes:
        first = process.name not in seen
        seen.add(process.name)
        if first and process.rootActivity is not None:
            unique.append(process)
    return unique


def load_component_template(file_name: str, content: str) -> ComponentTemplate | None:
    """Parse and validate one exported document, or None if it is unusable."""
    try:
        data = json.loads(content.lstrip("\ufeff"))
    except json.JSONDecodeError as e:
        logger.warning("Skipping %s: not valid JSON (%s)", file_name or "<unnamed>", e)
        return None

    try:
        return ComponentTemplate.model_validate(data)
    except ValidationError as e:
        logger.warning(
            "Skipping %s: invalid component template structure (%d error(s)): %s",
            file_name or "<unnamed>",
            e.error_count(),
            e.errors()[0]["msg"],
        )
        return None


def extract_graph_based(files: list[tuple[str, str]]) -> ParsedData | None:
    """Extract processes from one or more component template exports.

    Args:
        files: List of (file_name, content) tuples

    Returns:
        ParsedData, or None when no document had a valid name and process list
    """
    templates: list[ComponentTemplate] = []
    for file_name, content in files:
        template = load_component_template(file_name, content)
        if template is not None:
            templates.append(template)

    if not templates:
        logger.error("No valid component template documents among %d file(s)", len(files))
        return None

    raw_processes: list[RawProcess] = []
    for template in templates:
        raw_processes.extend(template.all_processes())

    processes = [parse_process(p) for p in _unique_processes(raw_processes)]
    logger.info(
        "Parsed %d process(es) from %d component template(s)", len(processes), len(templates)
    )
    return assemble(", ".join(t.name for t in templates), processes)
