"""Main/failure flow reconstruction from a typed edge graph.

Graph-based sources only describe ordering through edges between named
steps. The graph may be disconnected, may contain cycles and may reference
steps that do not exist. Reconstruction runs in five passes:

1. Annotate copies of the steps with incoming paths and outgoing targets.
2. Seed the main flow from steps reached by a start edge (or, failing
   that, from every non-terminal step that is never an edge destination).
3. Depth-first traversal along SUCCESS, ALWAYS and VALUE edges.
4. Depth-first traversal from every FAILURE destination, sharing the
   visited set so no step appears twice.
5. Sweep unvisited non-terminal steps into the failure flow when they have
   an incoming FAILURE path, otherwise into the main flow.

Terminal (finish) steps are never traversed, seeded or swept.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field, replace

from flowport_core.models import (
    DEFAULT_VALUE,
    START_SOURCE,
    Edge,
    EdgeType,
    IncomingPath,
    Step,
    ValuePath,
)

logger = logging.getLogger(__name__)


@dataclass
class FlowReconstruction:
    """Result of reconstructing one process's flows."""

    main_flow: list[Step] = field(default_factory=list)
    failure_flow: list[Step] = field(default_factory=list)
    skipped_edges: int = 0


def index_steps(steps: Iterable[Step], process_name: str = "") -> dict[str, Step]:
    """Build the name-keyed step index used as the edge join key.

    Duplicate ids are flagged and the first occurrence is kept.
    """
    index: dict[str, Step] = {}
    for step in steps:
        if step.id in index:
            logger.warning(
                "Duplicate step name %r in process %r; keeping the first occurrence",
                step.id,
                process_name,
            )
            continue
        index[step.id] = step
    return index


def _annotate(nodes: dict[str, Step], edges: Iterable[Edge]) -> int:
    """Record incoming paths and outgoing targets on the working copies.

    Returns the number of edges that could not be resolved.
    """
    skipped = 0
    for edge in edges:
        target = nodes.get(edge.target)
        if target is None:
            skipped += 1
            logger.debug("Skipping dangling edge %r -> %r", edge.source, edge.target)
            continue

        if edge.source is None:
            target.incoming_paths.append(
                IncomingPath(source=START_SOURCE, type=edge.type, value=edge.value)
            )
            continue

        source = nodes.get(edge.source)
        if source is None:
            skipped += 1
            logger.debug("Skipping edge from unknown step %r -> %r", edge.source, edge.target)
            continue

        target.incoming_paths.append(
            IncomingPath(source=source.name, type=edge.type, value=edge.value)
        )

        if edge.type is EdgeType.VALUE:
            source.value_paths.append(
                ValuePath(value=edge.value or DEFAULT_VALUE, destination=target.name)
            )
            continue

        attr = {
            EdgeType.SUCCESS: "on_success",
            EdgeType.FAILURE: "on_failure",
            EdgeType.ALWAYS: "on_always",
        }[edge.type]
        previous = getattr(source, attr)
        if previous is not None and previous != target.name:
            # Last edge in input order wins
            logger.warning(
                "Step %r has more than one %s edge (%r, %r); keeping %r",
                source.name,
                edge.type.value,
                previous,
                target.name,
                target.name,
            )
        setattr(source, attr, target.name)
    return skipped


def _start_nodes(nodes: dict[str, Step], edges: list[Edge]) -> list[Step]:
    starts = [
        step
        for step in nodes.values()
        if not step.is_terminal and any(p.source == START_SOURCE for p in step.incoming_paths)
    ]
    if starts:
        return starts

    # Incomplete edge data: fall back to steps nothing points at
    destinations = {edge.target for edge in edges}
    return [
        step for step in nodes.values() if step.id not in destinations and not step.is_terminal
    ]


def _failure_entries(nodes: dict[str, Step]) -> list[str]:
    entries: dict[str, None] = {}
    for step in nodes.values():
        if step.on_failure is not None:
            entries.setdefault(step.on_failure, None)
    return list(entries)


def _traverse(
    start_id: str,
    nodes: Mapping[str, Step],
    visited: set[str],
    flow: list[Step],
) -> None:
    """Pre-order DFS along success, always and value edges (never failure)."""
    stack = [start_id]
    while stack:
        step_id = stack.pop()
        if step_id in visited:
            continue
        step = nodes.get(step_id)
        if step is None or step.is_terminal:
            continue

        visited.add(step_id)
        flow.append(step)

        successors: list[str] = []
        if step.on_success is not None:
            successors.append(step.on_success)
        if step.on_always is not None:
            successors.append(step.on_always)
        successors.extend(vp.destination for vp in step.value_paths)
        # Reversed so the first successor is explored first
        stack.extend(reversed(successors))


def reconstruct_flows(steps: Mapping[str, Step], edges: Iterable[Edge]) -> FlowReconstruction:
    """Reconstruct the ordered main and failure flows of one process.

    The input steps are not modified; the returned flows hold annotated copies.

    Args:
        steps: Steps keyed by id (the step name for graph-based sources)
        edges: Typed edges; a None source marks a start edge

    Returns:
        FlowReconstruction with main_flow, failure_flow and the skipped edge count
    """
    edge_list = list(edges)
    nodes = {
        step_id: replace(
            step,
            incoming_paths=list(step.incoming_paths),
            value_paths=list(step.value_paths),
        )
        for step_id, step in steps.items()
    }

    result = FlowReconstruction()
    result.skipped_edges = _annotate(nodes, edge_list)

    visited: set[str] = set()
    for start in _start_nodes(nodes, edge_list):
        _traverse(start.id, nodes, visited, result.main_flow)

    for entry in _failure_entries(nodes):
        _traverse(entry, nodes, visited, result.failure_flow)

    for step in nodes.values():
        if step.id in visited or step.is_terminal:
            continue
        visited.add(step.id)
        if any(p.type is EdgeType.FAILURE for p in step.incoming_paths):
            result.failure_flow.append(step)
        else:
            result.main_flow.append(step)

    return result
