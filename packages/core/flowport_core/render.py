"""Deterministic plain-text rendering of a ParsedData.

The output is consumed verbatim by prompt construction for migration guide
generation, so the layout is stable: component header, one section per
process, one sub-section per non-empty flow, one block per step. Scripts are
embedded unmodified inside fenced blocks.
"""

from __future__ import annotations

from flowport_core.models import ParsedData, Step

MAIN_FLOW_TITLE = "Main Execution Flow"
FAILURE_FLOW_TITLE = "Failure Handling Flow"


def _script_block(label: str, text: str) -> str:
    return f"- {label}:\n```\n{text}\n```\n"


def render_step(step: Step) -> str:
    """Render one step as a markdown-ish bullet block."""
    out = f'\n#### Step: "{step.name}"\n'
    out += f"- Type: {step.kind}\n"
    out += f"- Details: {step.details}\n"
    if step.precondition_script:
        out += _script_block("Precondition Script", step.precondition_script)
    if step.script_body:
        out += _script_block("Script Body", step.script_body)
    if step.post_processing_script:
        out += _script_block("Post-Processing Script", step.post_processing_script)
    if step.on_success:
        out += f'- On Success -> "{step.on_success}"\n'
    if step.on_failure:
        out += f'- On Failure -> "{step.on_failure}"\n'
    if step.on_always:
        out += f'- On Always -> "{step.on_always}"\n'
    for path in step.value_paths:
        out += f'- On Value "{path.value}" -> "{path.destination}"\n'
    return out


def render_parsed_data(data: ParsedData) -> str:
    """Render the whole document as plain text."""
    parts = [f"Component Template: {data.component_name}\n\n"]
    for process in data.processes:
        parts.append(f"## Process: {process.name}\n")
        parts.append(f"Description: {process.description}\n\n")
        flows = (
            (MAIN_FLOW_TITLE, process.main_flow),
            (FAILURE_FLOW_TITLE, process.failure_flow),
        )
        for title, flow in flows:
            if not flow:
                continue
            parts.append(f"### {title}\n")
            parts.extend(render_step(step) for step in flow)
    return "".join(parts)
