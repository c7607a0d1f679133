"""Script-based pipeline bundle extractor.

A bundle is one pipeline described by several files: the pipeline script
(Jenkinsfile), job configuration XML, Ant build XML and shared-library
Groovy scripts. The whole bundle becomes a single process whose main flow is:

    bundle summary -> pipeline script(s) -> job config(s) -> build config(s)
    -> shared library script(s)

Field extraction is best-effort pattern matching; malformed XML or script
text degrades to empty lists and flags instead of raising. Failure handling
stays as prose inside the attached pipeline script, so no failure flow is built.
"""

from __future__ import annotations

import logging
import re
import xml.etree.ElementTree as ET
from dataclasses import dataclass, field
from typing import Any

from flowport_core.analyzer.assembler import assemble
from flowport_core.analyzer.detection import detect_format
from flowport_core.models import DialectTag, ParsedData, Process, Step, StepKind

logger = logging.getLogger(__name__)

COMPONENT_NAME = "Jenkins Pipeline"
PROCESS_NAME = "Jenkins Pipeline Analysis"

STAGE_RE = re.compile(r"""stage\s*\(\s*['"]([^'"]+)['"]\s*\)""")
FUNCTION_RE = re.compile(r"def\s+([a-zA-Z_][a-zA-Z0-9_]*)\s*\(")
ANT_TARGET_RE = re.compile(r'<target\s+name="([^"]+)"')
ANT_PROJECT_RE = re.compile(r"<project\s+([^>]*)>")
ATTR_RE = re.compile(r'(\w+)="([^"]*)"')
DECLARATIVE_RE = re.compile(r"\bpipeline\s*\{")
SCRIPTED_RE = re.compile(r"\bnode\s*[({]")
POST_BLOCK_RE = re.compile(r"\bpost\s*\{")
XML_PROLOG_RE = re.compile(r"^\s*<\?xml[^>]*\?>")


@dataclass
class ScriptBundle:
    """Files of one bundle, grouped by dialect in upload order."""

    pipeline_scripts: list[tuple[str, str]] = field(default_factory=list)
    job_configs: list[tuple[str, str]] = field(default_factory=list)
    build_configs: list[tuple[str, str]] = field(default_factory=list)
    shared_libraries: list[tuple[str, str]] = field(default_factory=list)
    all_files: list[tuple[str, DialectTag]] = field(default_factory=list)

    @property
    def is_usable(self) -> bool:
        return bool(self.pipeline_scripts or self.job_configs or self.shared_libraries)


def categorize_files(files: list[tuple[str, str]]) -> ScriptBundle:
    """Sort bundle files by detected dialect; unrecognized files are only listed."""
    bundle = ScriptBundle()
    for index, (file_name, content) in enumerate(files):
        name = file_name or f"file_{index + 1}"
        tag = detect_format(name, content)
        bundle.all_files.append((name, tag))

        if tag is DialectTag.PIPELINE_SCRIPT:
            bundle.pipeline_scripts.append((name, content))
        elif tag is DialectTag.JOB_CONFIG_XML:
            bundle.job_configs.append((name, content))
        elif tag is DialectTag.BUILD_CONFIG_XML:
            bundle.build_configs.append((name, content))
        elif tag is DialectTag.SHARED_LIBRARY_SCRIPT:
            bundle.shared_libraries.append((name, content))
        else:
            logger.warning("Skipping %s: not a recognized pipeline bundle file", name)
    return bundle


# ============================================================================
# Pattern extraction
# ============================================================================


def extract_stages(content: str) -> list[str]:
    return STAGE_RE.findall(content)


def extract_functions(content: str) -> list[str]:
    return FUNCTION_RE.findall(content)


def extract_ant_targets(content: str) -> list[str]:
    return ANT_TARGET_RE.findall(content)


def pipeline_style(content: str) -> str:
    """Declarative, Scripted or Unknown, by characteristic block keywords."""
    if DECLARATIVE_RE.search(content):
        return "Declarative"
    if SCRIPTED_RE.search(content):
        return "Scripted"
    return "Unknown"


def _parse_xml(content: str) -> ET.Element | None:
    # expat only accepts XML 1.0 prologs; job exports usually declare 1.1
    try:
        return ET.fromstring(XML_PROLOG_RE.sub("", content, count=1))
    except ET.ParseError as e:
        logger.debug("XML is not well-formed, using pattern flags only: %s", e)
        return None


def _job_config_structure(root: ET.Element) -> dict[str, Any]:
    description = (root.findtext("description") or "").strip()
    parameter_names = [
        (name.text or "").strip()
        for name in root.findall(".//parameterDefinitions/*/name")
        if name.text
    ]
    triggers = root.find("triggers")
    trigger_types = [child.tag for child in triggers] if triggers is not None else []
    script_path = (root.findtext(".//definition/scriptPath") or "").strip()
    return {
        "root_element": root.tag,
        "description": description or None,
        "parameter_names": parameter_names,
        "trigger_types": trigger_types,
        "script_path": script_path or None,
    }


# ============================================================================
# Step builders
# ============================================================================


def build_summary_step(bundle: ScriptBundle) -> Step:
    return Step(
        id="summary_0",
        name="Bundle Summary",
        kind=StepKind.SUMMARY,
        details="Complete Jenkins Bundle Analysis",
        properties={
            "total_files": len(bundle.all_files),
            "has_pipeline_script": bool(bundle.pipeline_scripts),
            "has_job_config": bool(bundle.job_configs),
            "has_build_config": bool(bundle.build_configs),
            "shared_library_count": len(bundle.shared_libraries),
            "file_list": [f"{name} ({tag.value})" for name, tag in bundle.all_files],
        },
    )


def build_pipeline_step(index: int, file_name: str, content: str) -> Step:
    style = pipeline_style(content)
    stages = extract_stages(content)
    details = {
        "Declarative": "Declarative Pipeline",
        "Scripted": "Scripted Pipeline",
    }.get(style, "Pipeline Definition")
    return Step(
        id=f"pipeline_{index}",
        name=file_name,
        kind=StepKind.SCRIPT,
        details=details,
        properties={
            "file_name": file_name,
            "pipeline_type": style,
            "stages_found": len(stages),
            "stage_names": stages,
            "has_post_block": bool(POST_BLOCK_RE.search(content)),
        },
        script_body=content,
    )


def build_job_config_step(index: int, file_name: str, content: str) -> Step:
    is_pipeline = "<flow-definition" in content
    properties: dict[str, Any] = {
        "file_name": file_name,
        "job_type": "Pipeline" if is_pipeline else "Freestyle/Other",
        "has_builders": "<builders>" in content,
        "has_publishers": "<publishers>" in content,
        "has_triggers": "<triggers>" in content,
        "has_scm": "<scm" in content,
        "has_parameters": "ParametersDefinitionProperty" in content,
        "has_inline_script": "<script>" in content,
        "content_length": len(content),
    }
    root = _parse_xml(content)
    properties["xml_well_formed"] = root is not None
    if root is not None:
        properties.update(_job_config_structure(root))

    return Step(
        id=f"job_config_{index}",
        name=f"Job Configuration ({file_name})",
        kind=StepKind.CONFIG,
        details="Jenkins Pipeline Job Configuration"
        if is_pipeline
        else "Jenkins Job Configuration XML",
        properties=properties,
    )


def build_build_config_step(index: int, file_name: str, content: str) -> Step:
    targets = extract_ant_targets(content)
    project_attrs: dict[str, str] = {}
    project_match = ANT_PROJECT_RE.search(content)
    if project_match:
        project_attrs = dict(ATTR_RE.findall(project_match.group(1)))
    return Step(
        id=f"build_config_{index}",
        name=f"Build Configuration ({file_name})",
        kind=StepKind.CONFIG,
        details="Ant Build Configuration",
        properties={
            "file_name": file_name,
            "project_name": project_attrs.get("name"),
            "default_target": project_attrs.get("default"),
            "targets_found": len(targets),
            "target_names": targets,
            "content_length": len(content),
        },
    )


def build_shared_library_step(index: int, file_name: str, content: str) -> Step:
    functions = extract_functions(content)
    has_library = "@Library" in content or "import " in content
    return Step(
        id=f"shared_library_{index}",
        name=f"Shared Library: {file_name}",
        kind=StepKind.SCRIPT,
        details="Jenkins Shared Library Script" if has_library else "Groovy Script",
        properties={
            "file_name": file_name,
            "functions_found": len(functions),
            "function_names": functions,
            "has_shared_library_annotation": "@Library" in content,
            "has_imports": "import " in content,
            "has_non_cps": "@NonCPS" in content,
            "content_length": len(content),
        },
        script_body=content,
    )


def build_bundle_process(bundle: ScriptBundle) -> Process:
    main_flow = [build_summary_step(bundle)]
    main_flow.extend(
        build_pipeline_step(i, name, content)
        for i, (name, content) in enumerate(bundle.pipeline_scripts)
    )
    main_flow.extend(
        build_job_config_step(i, name, content)
        for i, (name, content) in enumerate(bundle.job_configs)
    )
    main_flow.extend(
        build_build_config_step(i, name, content)
        for i, (name, content) in enumerate(bundle.build_configs)
    )
    main_flow.extend(
        build_shared_library_step(i, name, content)
        for i, (name, content) in enumerate(bundle.shared_libraries)
    )
    return Process(
        name=PROCESS_NAME,
        description=f"Analysis of Jenkins bundle containing {len(bundle.all_files)} file(s)",
        main_flow=main_flow,
    )


def extract_script_based(files: list[tuple[str, str]]) -> ParsedData | None:
    """Extract a single process from a pipeline-as-code bundle.

    Args:
        files: List of (file_name, content) tuples

    Returns:
        ParsedData with one process, or None when no pipeline script,
        job configuration or shared library file was found
    """
    bundle = categorize_files(files)
    if not bundle.is_usable:
        logger.error(
            "No pipeline bundle files found among %d file(s): %s",
            len(files),
            [name for name, _ in bundle.all_files],
        )
        return None

    process = build_bundle_process(bundle)
    logger.info(
        "Parsed pipeline bundle: %d file(s), %d step(s)", len(bundle.all_files), process.step_count
    )
    return assemble(COMPONENT_NAME, [process])
