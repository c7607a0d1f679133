"""Pipeline upload, detection and parsing routes."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import APIRouter, File, Form, HTTPException, UploadFile
from fastapi.responses import PlainTextResponse
from flowport_core import (
    PARSERS,
    ArchiveError,
    ParsedData,
    UnknownParserError,
    detect_format,
    extract_archive,
    filter_relevant_files,
    get_settings,
    parse_files,
    render_parsed_data,
)
from flowport_core.archive import decode_text, is_archive_name
from pydantic import BaseModel

logger = logging.getLogger(__name__)

router = APIRouter(tags=["parse"])


class ParserInfo(BaseModel):
    """A registered parser."""

    key: str
    name: str
    description: str


class ParsersResponse(BaseModel):
    """Available parsers and the default selection."""

    default: str
    parsers: list[ParserInfo]


class DetectedFile(BaseModel):
    """Detected dialect of one uploaded file."""

    file_name: str
    dialect: str


class DetectResponse(BaseModel):
    files: list[DetectedFile]


class ParseResponse(BaseModel):
    """Normalized pipeline document."""

    parser: str
    component_name: str
    process_count: int
    data: dict[str, Any]


async def read_uploads(files: list[UploadFile]) -> list[tuple[str, str]]:
    """Read uploads into (file_name, content) tuples, expanding archives."""
    settings = get_settings()
    max_payload_bytes = settings.upload_max_payload_mb * 1024 * 1024

    total_bytes = 0
    inputs: list[tuple[str, str]] = []
    for upload in files:
        payload = await upload.read()
        total_bytes += len(payload)
        if total_bytes > max_payload_bytes:
            raise HTTPException(
                status_code=413,
                detail=f"Upload exceeds {settings.upload_max_payload_mb} MB",
            )

        filename = upload.filename or f"file_{len(inputs) + 1}"
        if is_archive_name(filename):
            try:
                members = extract_archive(payload, filename)
            except ArchiveError as e:
                raise HTTPException(status_code=400, detail=str(e)) from e
            relevant = filter_relevant_files(members)
            logger.info(
                "Archive %s: %d of %d member(s) look like pipeline files",
                filename,
                len(relevant),
                len(members),
            )
            inputs.extend(member.as_input() for member in relevant)
        else:
            inputs.append((filename, decode_text(payload)))
    return inputs


def _run_parser(parser: str | None, inputs: list[tuple[str, str]]) -> tuple[str, ParsedData]:
    key = parser or get_settings().default_parser
    try:
        outcome = parse_files(key, inputs)
    except UnknownParserError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    if outcome.data is None:
        reason = outcome.reason.value if outcome.reason else "unknown"
        raise HTTPException(status_code=422, detail=reason)
    return key, outcome.data


@router.get("/parsers", response_model=ParsersResponse)
async def list_parsers() -> ParsersResponse:
    """List registered parsers."""
    return ParsersResponse(
        default=get_settings().default_parser,
        parsers=[
            ParserInfo(key=entry.key, name=entry.name, description=entry.description)
            for entry in PARSERS.values()
        ],
    )


@router.post("/detect", response_model=DetectResponse)
async def detect_files(files: Annotated[list[UploadFile], File(...)]) -> DetectResponse:
    """Report the detected dialect of every uploaded (or archived) file."""
    inputs = await read_uploads(files)
    return DetectResponse(
        files=[
            DetectedFile(file_name=name, dialect=detect_format(name, content).value)
            for name, content in inputs
        ]
    )


@router.post("/parse", response_model=ParseResponse)
async def parse_upload(
    files: Annotated[list[UploadFile], File(...)],
    parser: str | None = Form(default=None),
) -> ParseResponse:
    """Parse uploaded files with the selected parser."""
    inputs = await read_uploads(files)
    key, data = _run_parser(parser, inputs)
    return ParseResponse(
        parser=key,
        component_name=data.component_name,
        process_count=len(data.processes),
        data=data.to_dict(),
    )


@router.post("/parse/text", response_class=PlainTextResponse)
async def parse_upload_as_text(
    files: Annotated[list[UploadFile], File(...)],
    parser: str | None = Form(default=None),
) -> str:
    """Parse uploaded files and return the plain-text rendering."""
    inputs = await read_uploads(files)
    _, data = _run_parser(parser, inputs)
    return render_parsed_data(data)
