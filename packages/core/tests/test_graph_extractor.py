"""Tests for the component template JSON extractor."""

import json
import logging
from typing import Any

import pytest
from flowport_core.analyzer.extractors.graph_json import (
    ComponentTemplate,
    RawStep,
    extract_graph_based,
    load_component_template,
    step_details,
)
from flowport_core.models import ParsedData


def _process(name: str, children: list[Any], edges: list[Any], **extra: Any) -> dict[str, Any]:
    return {
        "name": name,
        "rootActivity": {"type": "graph", "children": children, "edges": edges},
        **extra,
    }


DEPLOY_PROCESS = _process(
    "Deploy",
    children=[
        {
            "name": "Download Artifacts",
            "type": "plugin",
            "pluginName": "Versioned File Storage",
            "commandName": "Download Artifacts",
            "properties": {"directoryOffset": "."},
        },
        {
            "name": "Run Install Script",
            "type": "plugin",
            "pluginName": "Shell",
            "commandName": "Shell",
            "properties": {"scriptBody": "./install.sh --env prod\n  echo done"},
            "postProcessingScript": {"body": "if (exitCode != 0) { commandIsSuccessful = false; }"},
            "preconditionScript": "true",
        },
        {"name": "Rollback", "type": "runProcess", "processName": "Rollback Process"},
        {"name": "Set Failed", "type": "setStatus", "status": "failure"},
        {"name": "Finish", "type": "finish"},
    ],
    edges=[
        {"to": "Download Artifacts", "type": "SUCCESS"},
        {"from": "Download Artifacts", "to": "Run Install Script", "type": "SUCCESS"},
        {"from": "Run Install Script", "to": "Finish", "type": "SUCCESS"},
        {"from": "Run Install Script", "to": "Rollback", "type": "FAILURE"},
        {"from": "Rollback", "to": "Set Failed", "type": "SUCCESS"},
    ],
    description="Deploys the application",
)


def _document(name: str = "web-app", **fields: Any) -> str:
    return json.dumps({"name": name, **fields})


class TestExtractGraphBased:
    """End-to-end extraction of component templates."""

    def test_main_and_failure_flows(self) -> None:
        data = extract_graph_based([("web-app.json", _document(processes=[DEPLOY_PROCESS]))])

        assert data is not None
        assert data.component_name == "web-app"
        [process] = data.processes
        assert process.name == "Deploy"
        assert process.description == "Deploys the application"
        assert [s.name for s in process.main_flow] == ["Download Artifacts", "Run Install Script"]
        assert [s.name for s in process.failure_flow] == ["Rollback", "Set Failed"]

    def test_step_fields(self) -> None:
        data = extract_graph_based([("web-app.json", _document(processes=[DEPLOY_PROCESS]))])
        assert data is not None
        download, install = data.processes[0].main_flow
        rollback, status = data.processes[0].failure_flow

        assert download.details == "Plugin: Versioned File Storage - Download Artifacts"
        assert download.properties == {"directoryOffset": "."}
        assert install.script_body == "./install.sh --env prod\n  echo done"
        assert install.post_processing_script == "if (exitCode != 0) { commandIsSuccessful = false; }"
        assert install.precondition_script == "true"
        assert install.on_success == "Finish"
        assert install.on_failure == "Rollback"
        assert rollback.details == "Runs Process: Rollback Process"
        assert status.details == "Set Status to: failure"

    def test_generic_processes_with_linked_processes(self) -> None:
        step = [{"name": "Echo", "type": "plugin"}]
        generic = _process(
            "Generic",
            step,
            [{"to": "Echo"}],
            linkedProcesses=[_process("Linked", step, [{"to": "Echo"}])],
        )

        data = extract_graph_based([("t.json", _document(genericProcesses=[generic]))])

        assert data is not None
        assert [p.name for p in data.processes] == ["Generic", "Linked"]

    def test_multiple_documents(self, caplog: pytest.LogCaptureFixture) -> None:
        files = [
            ("a.json", _document("a", processes=[DEPLOY_PROCESS])),
            ("broken.json", "{not json"),
            ("no-processes.json", _document("c")),
            ("b.json", _document("b", processes=[DEPLOY_PROCESS])),
        ]

        with caplog.at_level(logging.WARNING):
            data = extract_graph_based(files)

        assert data is not None
        assert data.component_name == "a, b"
        assert [p.name for p in data.processes] == ["Deploy"]
        assert "broken.json" in caplog.text
        assert "no-processes.json" in caplog.text

    def test_process_without_root_activity_is_dropped(self) -> None:
        data = extract_graph_based([("t.json", _document(processes=[{"name": "Deploy"}]))])

        assert data is not None
        assert data.processes == []

    def test_empty_process_list_is_valid(self) -> None:
        data = extract_graph_based([("t.json", _document(processes=[]))])

        assert data == ParsedData(component_name="web-app", processes=[])

    def test_no_valid_documents(self) -> None:
        assert extract_graph_based([("a.json", "[]"), ("b.json", "nope")]) is None

    def test_no_children_gives_empty_flows(self) -> None:
        process = _process("Empty", [], [])

        data = extract_graph_based([("t.json", _document(processes=[process]))])

        assert data is not None
        assert data.processes[0].main_flow == []
        assert data.processes[0].failure_flow == []

    def test_unknown_edge_type_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        process = _process(
            "P",
            [{"name": "A", "type": "plugin"}, {"name": "B", "type": "plugin"}],
            [{"to": "A"}, {"from": "A", "to": "B", "type": "SOMETIMES"}],
        )

        with caplog.at_level(logging.WARNING):
            data = extract_graph_based([("t.json", _document(processes=[process]))])

        assert data is not None
        step_a = data.processes[0].main_flow[0]
        assert step_a.on_success is None
        assert "SOMETIMES" in caplog.text

    def test_switch_values_are_strings(self) -> None:
        process = _process(
            "P",
            [
                {"name": "Check", "type": "switch", "propertyName": "retries"},
                {"name": "Once", "type": "plugin"},
            ],
            [{"to": "Check"}, {"from": "Check", "to": "Once", "type": "VALUE", "value": 1}],
        )

        data = extract_graph_based([("t.json", _document(processes=[process]))])

        assert data is not None
        check = data.processes[0].main_flow[0]
        assert check.details == "Switch on property: retries"
        assert check.value_paths[0].value == "1"

    def test_null_and_numeric_fields_keep_the_document(self) -> None:
        process = _process(
            "P",
            [{"name": "A", "type": "plugin"}, {"name": "B", "type": None}, {"name": 7, "type": "plugin"}],
            [{"to": "A"}, {"from": "A", "to": "B"}, {"from": "B", "to": 7, "type": None}],
        )

        data = extract_graph_based([("t.json", _document(processes=[process]))])

        assert data is not None
        flow = data.processes[0].main_flow
        assert [s.name for s in flow] == ["A", "B", "7"]
        assert flow[1].kind == ""
        assert flow[1].on_success == "7"

    def test_malformed_child_is_skipped(self, caplog: pytest.LogCaptureFixture) -> None:
        process = _process(
            "P",
            [{"name": "A", "type": "plugin"}, {"type": "plugin"}, "not a step"],
            [{"to": "A"}, ["not", "an", "edge"]],
        )

        with caplog.at_level(logging.WARNING):
            data = extract_graph_based([("t.json", _document(processes=[process]))])

        assert data is not None
        assert [s.name for s in data.processes[0].main_flow] == ["A"]
        assert "Skipping malformed step #1" in caplog.text
        assert "Skipping malformed edge #1" in caplog.text

    def test_boolean_switch_values_use_json_spelling(self) -> None:
        process = _process(
            "P",
            [
                {"name": "Check", "type": "switch", "propertyName": "enabled"},
                {"name": "Yes", "type": "plugin"},
                {"name": "No", "type": "plugin"},
            ],
            [
                {"to": "Check"},
                {"from": "Check", "to": "Yes", "type": "VALUE", "value": True},
                {"from": "Check", "to": "No", "type": "VALUE", "value": False},
            ],
        )

        data = extract_graph_based([("t.json", _document(processes=[process]))])

        assert data is not None
        check = data.processes[0].main_flow[0]
        assert [vp.value for vp in check.value_paths] == ["true", "false"]

    def test_leading_byte_order_mark(self) -> None:
        content = "\ufeff" + _document("Comp", processes=[])

        data = extract_graph_based([("a.json", content)])

        assert data == ParsedData(component_name="Comp", processes=[])

    def test_result_survives_dict_conversion(self) -> None:
        data = extract_graph_based([("web-app.json", _document(processes=[DEPLOY_PROCESS]))])
        assert data is not None

        assert ParsedData.from_dict(json.loads(json.dumps(data.to_dict()))) == data


class TestLoadComponentTemplate:
    def test_requires_name(self) -> None:
        assert load_component_template("t.json", json.dumps({"processes": []})) is None

    def test_null_properties(self) -> None:
        content = _document(processes=[_process("P", [{"name": "A", "type": "plugin", "properties": None}], [])])

        template = load_component_template("t.json", content)

        assert isinstance(template, ComponentTemplate)
        assert template.all_processes()[0].rootActivity is not None


class TestStepDetails:
    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ({"name": "x", "type": "finish"}, "End of Process"),
            ({"name": "x", "type": "manualTask"}, "Type: manualTask"),
        ],
    )
    def test_details(self, raw: dict[str, Any], expected: str) -> None:
        assert step_details(RawStep.model_validate(raw)) == expected
