"""Normalized pipeline representation shared by every dialect.

This module provides the data structures every extractor produces:
- Step: one unit of work (plugin call, script, marker) inside a process
- Edge: a typed, directed link between two steps (or from the virtual start)
- Process: one pipeline/job/workflow with its main and failure flows
- ParsedData: the root document handed to downstream consumers
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

START_SOURCE = "Start"
DEFAULT_VALUE = "default"


class EdgeType(str, Enum):
    """Control-flow edge types."""

    SUCCESS = "SUCCESS"
    FAILURE = "FAILURE"
    ALWAYS = "ALWAYS"
    VALUE = "VALUE"


class StepKind:
    """Step kinds emitted by the extractors.

    Graph-based sources keep their own type strings, so this is not a closed set.
    """

    PLUGIN = "plugin"
    RUN_PROCESS = "runProcess"
    SET_STATUS = "setStatus"
    SWITCH = "switch"
    FINISH = "finish"
    SCRIPT = "script"
    CONFIG = "config"
    JOB = "job"
    WORKFLOW = "workflow"
    SUMMARY = "summary"


class DialectTag(str, Enum):
    """File dialects recognized by the format detector."""

    PIPELINE_SCRIPT = "pipeline_script"
    JOB_CONFIG_XML = "job_config_xml"
    BUILD_CONFIG_XML = "build_config_xml"
    SHARED_LIBRARY_SCRIPT = "shared_library_script"
    WORKFLOW_YAML = "workflow_yaml"
    COMPOSITE_ACTION_YAML = "composite_action_yaml"
    REUSABLE_WORKFLOW_YAML = "reusable_workflow_yaml"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class IncomingPath:
    """How control reached a step."""

    source: str
    """Name of the source step, or START_SOURCE for a start edge."""

    type: EdgeType
    value: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"source": self.source, "type": self.type.value, "value": self.value}


@dataclass(frozen=True)
class ValuePath:
    """One branch of a conditional switch."""

    value: str
    destination: str

    def to_dict(self) -> dict[str, Any]:
        return {"value": self.value, "destination": self.destination}


@dataclass(frozen=True)
class Edge:
    """A directed edge between two steps.

    A `source` of None marks a start edge.
    """

    source: str | None
    target: str
    type: EdgeType
    value: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "source": self.source,
            "target": self.target,
            "type": self.type.value,
            "value": self.value,
        }


@dataclass
class Step:
    """A single unit of work extracted from any source dialect."""

    id: str
    """Unique within its process. Graph sources use the step name."""

    name: str
    kind: str
    details: str = ""
    """One-line human-readable description."""

    properties: dict[str, Any] = field(default_factory=dict)
    """Dialect-specific metadata (plugin name, runner labels, matrix config, ...)."""

    script_body: str | None = None
    post_processing_script: str | None = None
    precondition_script: str | None = None
    incoming_paths: list[IncomingPath] = field(default_factory=list)
    on_success: str | None = None
    on_failure: str | None = None
    on_always: str | None = None
    value_paths: list[ValuePath] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.kind == StepKind.FINISH

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "kind": self.kind,
            "details": self.details,
            "properties": self.properties,
            "script_body": self.script_body,
            "post_processing_script": self.post_processing_script,
            "precondition_script": self.precondition_script,
            "incoming_paths": [p.to_dict() for p in self.incoming_paths],
            "on_success": self.on_success,
            "on_failure": self.on_failure,
            "on_always": self.on_always,
            "value_paths": [p.to_dict() for p in self.value_paths],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Step:
        """Create from dictionary."""
        return cls(
            id=data["id"],
            name=data["name"],
            kind=data["kind"],
            details=data.get("details", ""),
            properties=data.get("properties") or {},
            script_body=data.get("script_body"),
            post_processing_script=data.get("post_processing_script"),
            precondition_script=data.get("precondition_script"),
            incoming_paths=[
                IncomingPath(source=p["source"], type=EdgeType(p["type"]), value=p.get("value"))
                for p in data.get("incoming_paths", [])
            ],
            on_success=data.get("on_success"),
            on_failure=data.get("on_failure"),
            on_always=data.get("on_always"),
            value_paths=[
                ValuePath(value=p["value"], destination=p["destination"])
                for p in data.get("value_paths", [])
            ],
        )


@dataclass(frozen=True)
class Process:
    """One coherent pipeline, job or workflow with its reconstructed ordering."""

    name: str
    description: str = ""
    main_flow: list[Step] = field(default_factory=list)
    failure_flow: list[Step] = field(default_factory=list)

    @property
    def step_count(self) -> int:
        return len(self.main_flow) + len(self.failure_flow)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "main_flow": [s.to_dict() for s in self.main_flow],
            "failure_flow": [s.to_dict() for s in self.failure_flow],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Process:
        return cls(
            name=data["name"],
            description=data.get("description", ""),
            main_flow=[Step.from_dict(s) for s in data.get("main_flow", [])],
            failure_flow=[Step.from_dict(s) for s in data.get("failure_flow", [])],
        )


@dataclass(frozen=True)
class ParsedData:
    """Root normalized document: a component name and its ordered processes."""

    component_name: str
    processes: list[Process] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "component_name": self.component_name,
            "processes": [p.to_dict() for p in self.processes],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ParsedData:
        return cls(
            component_name=data["component_name"],
            processes=[Process.from_dict(p) for p in data.get("processes", [])],
        )
