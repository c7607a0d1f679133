"""YAML workflow bundle extractor.

Parses workflow automation bundles (GitHub Actions style) made of:
- Workflows: triggers + jobs + steps
- Composite actions: `runs.using: composite` with their own steps
- Reusable workflows: workflows triggered by `workflow_call`

The result holds a leading bundle-summary process followed by one process
per recognized file. The full document text is attached to exactly one step
per process (the workflow/action marker) so large text is never duplicated.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field, replace
from typing import Any

import yaml

from flowport_core.analyzer.assembler import assemble
from flowport_core.analyzer.detection import WORKFLOW_RULES, detect_format, workflow_triggers
from flowport_core.models import DialectTag, ParsedData, Process, Step, StepKind

logger = logging.getLogger(__name__)

COMPONENT_NAME = "GitHub Actions Pipeline"

_ID_UNSAFE_RE = re.compile(r"[^a-zA-Z0-9_]")


def sanitize_id(value: str) -> str:
    return _ID_UNSAFE_RE.sub("_", value).lower()


@dataclass
class WorkflowBundle:
    """Files of one bundle, grouped by sub-type in upload order."""

    workflows: list[tuple[str, str]] = field(default_factory=list)
    composite_actions: list[tuple[str, str]] = field(default_factory=list)
    reusable_workflows: list[tuple[str, str]] = field(default_factory=list)
    all_files: list[tuple[str, DialectTag]] = field(default_factory=list)

    @property
    def recognized_count(self) -> int:
        return len(self.workflows) + len(self.composite_actions) + len(self.reusable_workflows)


def categorize_files(files: list[tuple[str, str]]) -> WorkflowBundle:
    """Sort files into workflow sub-types.

    Only the workflow rules are applied, so inline scripts that happen to
    contain pipeline-script markers do not pull a YAML file into another family.
    """
    bundle = WorkflowBundle()
    for index, (file_name, content) in enumerate(files):
        name = file_name or f"workflow_{index + 1}.yml"
        tag = detect_format(name, content, rules=WORKFLOW_RULES)
        bundle.all_files.append((name, tag))

        if tag is DialectTag.WORKFLOW_YAML:
            bundle.workflows.append((name, content))
        elif tag is DialectTag.COMPOSITE_ACTION_YAML:
            bundle.composite_actions.append((name, content))
        elif tag is DialectTag.REUSABLE_WORKFLOW_YAML:
            bundle.reusable_workflows.append((name, content))
        else:
            logger.warning("Skipping %s: not a workflow, composite action or reusable workflow", name)
    return bundle


def extract_triggers(on: Any) -> list[str]:
    """Normalize a workflow's `on:` block into a list of trigger names."""
    if not on:
        return []
    if isinstance(on, str):
        return [on]
    if isinstance(on, list):
        return [str(t) for t in on]
    if isinstance(on, dict):
        return [str(t) for t in on]
    return []


def _runs_on_label(runs_on: Any) -> str:
    if isinstance(runs_on, list):
        return ", ".join(str(label) for label in runs_on)
    if isinstance(runs_on, dict):
        # Runner group form: {group: ..., labels: [...]}
        labels = runs_on.get("labels") or runs_on.get("group")
        return _runs_on_label(labels)
    return str(runs_on)


def _first_line(text: str) -> str:
    lines = text.strip().splitlines()
    return lines[0] if lines else ""


def unique_step_ids(steps: list[Step]) -> list[Step]:
    """Suffix ids that collide after sanitizing (`a-b` and `a_b` both give `a_b`)."""
    seen: set[str] = set()
    result: list[Step] = []
    for step in steps:
        step_id = step.id
        suffix = 2
        while step_id in seen:
            step_id = f"{step.id}_{suffix}"
            suffix += 1
        seen.add(step_id)
        result.append(step if step_id == step.id else replace(step, id=step_id))
    return result


def _load(file_name: str, content: str) -> dict[Any, Any]:
    """Load an already-classified document; classification guarantees a mapping."""
    data = yaml.safe_load(content)
    if not isinstance(data, dict):
        logger.warning("Expected a mapping in %s, got %s", file_name, type(data).__name__)
        return {}
    return data


# ============================================================================
# Step builders
# ============================================================================


def build_action_step(owner_id: str, entry: Any, index: int) -> Step:
    """Build one step of a job or composite action."""
    if not isinstance(entry, dict):
        entry = {"run": str(entry)}

    uses = entry.get("uses")
    run = entry.get("run")
    script = str(run) if run is not None else None
    name = entry.get("name") or uses or (_first_line(script) if script else "") or f"Step {index + 1}"

    if uses:
        details = f"GitHub Action: {uses}"
    elif script is not None:
        details = "Run Script"
    else:
        details = "Step"

    return Step(
        id=f"step_{sanitize_id(owner_id)}_{index}",
        name=str(name),
        kind=StepKind.PLUGIN if uses else StepKind.SCRIPT,
        details=details,
        properties={
            "step_id": entry.get("id"),
            "uses": uses,
            "with": entry.get("with"),
            "env": entry.get("env"),
            "if": entry.get("if"),
            "continue_on_error": entry.get("continue-on-error"),
            "timeout_minutes": entry.get("timeout-minutes"),
            "shell": entry.get("shell"),
            "working_directory": entry.get("working-directory"),
            "has_script": script is not None,
            "has_action": bool(uses),
        },
        script_body=script,
    )


def build_job_steps(job_id: str, job: Any) -> list[Step]:
    """Job marker followed by one step per job-internal action/run entry."""
    if not isinstance(job, dict):
        job = {}

    steps_list = job.get("steps") or []
    if not isinstance(steps_list, list):
        steps_list = []
    called_workflow = job.get("uses")

    if called_workflow:
        details = f"GitHub Actions Job (calls reusable workflow: {called_workflow})"
    else:
        details = f"GitHub Actions Job (runs-on: {_runs_on_label(job.get('runs-on'))})"

    marker = Step(
        id=f"job_{sanitize_id(job_id)}",
        name=f"Job: {job.get('name') or job_id}",
        kind=StepKind.JOB,
        details=details,
        properties={
            "job_id": job_id,
            "job_name": job.get("name"),
            "runs_on": job.get("runs-on"),
            "needs": job.get("needs"),
            "if": job.get("if"),
            "strategy": job.get("strategy"),
            "environment": job.get("environment"),
            "environment_variables": job.get("env") or {},
            "outputs": job.get("outputs"),
            "timeout_minutes": job.get("timeout-minutes"),
            "uses": called_workflow,
            "with": job.get("with"),
            "step_count": len(steps_list),
        },
    )
    return [marker] + [build_action_step(job_id, entry, i) for i, entry in enumerate(steps_list)]


def _jobs(document: dict[Any, Any]) -> dict[str, Any]:
    jobs = document.get("jobs")
    if not isinstance(jobs, dict):
        return {}
    return {str(job_id): job for job_id, job in jobs.items()}


def parse_workflow_file(file_name: str, content: str) -> Process:
    document = _load(file_name, content)
    jobs = _jobs(document)
    workflow_name = document.get("name")

    main_flow = [
        Step(
            id=f"workflow_{sanitize_id(file_name)}",
            name=f"Workflow: {workflow_name or file_name}",
            kind=StepKind.WORKFLOW,
            details="GitHub Actions Workflow",
            properties={
                "file_name": file_name,
                "workflow_name": workflow_name,
                "triggers": extract_triggers(workflow_triggers(document)),
                "environment_variables": document.get("env") or {},
                "concurrency": document.get("concurrency"),
                "permissions": document.get("permissions"),
                "job_count": len(jobs),
            },
            script_body=content,
        )
    ]
    for job_id, job in jobs.items():
        main_flow.extend(build_job_steps(job_id, job))

    return Process(
        name=str(workflow_name or file_name),
        description=f"GitHub Actions workflow from {file_name}",
        main_flow=unique_step_ids(main_flow),
    )


def parse_reusable_workflow(file_name: str, content: str) -> Process:
    document = _load(file_name, content)
    jobs = _jobs(document)
    workflow_name = document.get("name")
    triggers = workflow_triggers(document)
    call = triggers.get("workflow_call") if isinstance(triggers, dict) else None
    if not isinstance(call, dict):
        call = {}

    main_flow = [
        Step(
            id=f"reusable_{sanitize_id(file_name)}",
            name=f"Reusable Workflow: {workflow_name or file_name}",
            kind=StepKind.WORKFLOW,
            details="GitHub Reusable Workflow",
            properties={
                "file_name": file_name,
                "workflow_name": workflow_name,
                "triggers": extract_triggers(triggers),
                "inputs": call.get("inputs"),
                "outputs": call.get("outputs"),
                "secrets": call.get("secrets"),
                "job_count": len(jobs),
            },
            script_body=content,
        )
    ]
    for job_id, job in jobs.items():
        main_flow.extend(build_job_steps(job_id, job))

    return Process(
        name=str(workflow_name or file_name),
        description=f"Reusable workflow from {file_name}",
        main_flow=unique_step_ids(main_flow),
    )


def parse_composite_action(file_name: str, content: str) -> Process:
    document = _load(file_name, content)
    action_name = document.get("name")
    runs = document.get("runs") if isinstance(document.get("runs"), dict) else {}
    entries = runs.get("steps") or []
    if not isinstance(entries, list):
        entries = []

    main_flow = [
        Step(
            id=f"action_{sanitize_id(file_name)}",
            name=f"Composite Action: {action_name or file_name}",
            kind=StepKind.WORKFLOW,
            details="GitHub Composite Action",
            properties={
                "file_name": file_name,
                "action_name": action_name,
                "description": document.get("description"),
                "inputs": document.get("inputs"),
                "outputs": document.get("outputs"),
                "runs_using": runs.get("using"),
                "step_count": len(entries),
            },
            script_body=content,
        )
    ]
    main_flow.extend(build_action_step("composite", entry, i) for i, entry in enumerate(entries))

    return Process(
        name=str(action_name or file_name),
        description=str(document.get("description") or f"Composite action from {file_name}"),
        main_flow=unique_step_ids(main_flow),
    )


def build_summary_process(bundle: WorkflowBundle) -> Process:
    summary = Step(
        id="bundle_summary",
        name="GitHub Actions Bundle Summary",
        kind=StepKind.SUMMARY,
        details="Overview of uploaded GitHub Actions files",
        properties={
            "total_files": len(bundle.all_files),
            "workflow_count": len(bundle.workflows),
            "composite_action_count": len(bundle.composite_actions),
            "reusable_workflow_count": len(bundle.reusable_workflows),
            "file_list": [f"{name} ({tag.value})" for name, tag in bundle.all_files],
        },
    )
    return Process(
        name="Bundle Summary",
        description=f"Summary of {len(bundle.all_files)} GitHub Actions file(s)",
        main_flow=[summary],
    )


def extract_yaml_workflow(files: list[tuple[str, str]]) -> ParsedData | None:
    """Extract processes from a workflow automation bundle.

    Args:
        files: List of (file_name, content) tuples

    Returns:
        ParsedData (summary process first), or None when no file was
        a workflow, composite action or reusable workflow
    """
    bundle = categorize_files(files)
    if bundle.recognized_count == 0:
        logger.error("No workflow files found among %d file(s)", len(files))
        return None

    processes = [build_summary_process(bundle)]
    processes.extend(parse_workflow_file(name, content) for name, content in bundle.workflows)
    processes.extend(
        parse_composite_action(name, content) for name, content in bundle.composite_actions
    )
    processes.extend(
        parse_reusable_workflow(name, content) for name, content in bundle.reusable_workflows
    )

    logger.info(
        "Parsed %d workflow file(s) out of %d", bundle.recognized_count, len(bundle.all_files)
    )
    return assemble(COMPONENT_NAME, processes)
