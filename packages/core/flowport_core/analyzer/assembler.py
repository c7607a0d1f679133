"""Assembly of extracted processes into the root normalized document."""

from __future__ import annotations

from collections.abc import Iterable

from flowport_core.models import ParsedData, Process


def assemble(component_name: str, processes: Iterable[Process]) -> ParsedData:
    """Wrap processes into a ParsedData, preserving extractor order.

    Whether an empty process list is usable is left to the caller.
    """
    if processes is None:
        raise TypeError("processes must not be None")
    return ParsedData(component_name=component_name, processes=list(processes))
