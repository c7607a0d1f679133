"""Tests for upload, detection and parse routes."""

from __future__ import annotations

import io
import json
import tarfile
import zipfile
from unittest.mock import patch

import pytest
from flowport_core import Settings
from httpx import AsyncClient

JENKINSFILE = b"pipeline {\n  stages {\n    stage('Build') { steps { sh 'make' } }\n  }\n}\n"

TEMPLATE = json.dumps(
    {
        "name": "web-app",
        "processes": [
            {
                "name": "Deploy",
                "rootActivity": {
                    "children": [
                        {"name": "Install", "type": "plugin", "properties": {"scriptBody": "./install.sh"}},
                        {"name": "Finish", "type": "finish"},
                    ],
                    "edges": [
                        {"to": "Install", "type": "SUCCESS"},
                        {"from": "Install", "to": "Finish", "type": "SUCCESS"},
                    ],
                },
            }
        ],
    }
).encode()


def _zip(entries: dict[str, bytes]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as archive:
        for name, content in entries.items():
            archive.writestr(name, content)
    return buffer.getvalue()


@pytest.mark.anyio
class TestListParsers:
    async def test_lists_registered_parsers(self, client: AsyncClient) -> None:
        response = await client.get("/api/parsers")

        assert response.status_code == 200
        data = response.json()
        assert data["default"] == "jenkins"
        assert [p["key"] for p in data["parsers"]] == ["ucd", "jenkins", "github_actions", "yaml"]


@pytest.mark.anyio
class TestParseRoutes:
    """Route-level tests for parsing uploads."""

    async def test_parse_component_template(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/parse",
            data={"parser": "ucd"},
            files=[("files", ("web-app.json", TEMPLATE, "application/json"))],
        )

        assert response.status_code == 200
        body = response.json()
        assert body["parser"] == "ucd"
        assert body["component_name"] == "web-app"
        assert body["process_count"] == 1
        main_flow = body["data"]["processes"][0]["main_flow"]
        assert [s["name"] for s in main_flow] == ["Install"]
        assert main_flow[0]["script_body"] == "./install.sh"

    async def test_default_parser(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/parse",
            files=[("files", ("Jenkinsfile", JENKINSFILE, "text/plain"))],
        )

        assert response.status_code == 200
        assert response.json()["parser"] == "jenkins"

    async def test_parse_zip_archive(self, client: AsyncClient) -> None:
        archive = _zip(
            {
                "repo/Jenkinsfile": JENKINSFILE,
                "repo/README.md": b"# readme",
                "__MACOSX/repo/._Jenkinsfile": b"junk",
            }
        )

        response = await client.post(
            "/api/parse",
            data={"parser": "jenkins"},
            files=[("files", ("bundle.zip", archive, "application/zip"))],
        )

        assert response.status_code == 200
        main_flow = response.json()["data"]["processes"][0]["main_flow"]
        assert [s["id"] for s in main_flow] == ["summary_0", "pipeline_0"]
        assert main_flow[1]["properties"]["stage_names"] == ["Build"]

    async def test_unknown_parser(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/parse",
            data={"parser": "bamboo"},
            files=[("files", ("Jenkinsfile", JENKINSFILE, "text/plain"))],
        )

        assert response.status_code == 400
        assert "bamboo" in response.json()["detail"]

    async def test_no_recognized_files(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/parse",
            data={"parser": "jenkins"},
            files=[("files", ("README.md", b"hello", "text/plain"))],
        )

        assert response.status_code == 422
        assert response.json()["detail"] == "no_recognized_files"

    async def test_corrupt_archive(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/parse",
            data={"parser": "jenkins"},
            files=[("files", ("bundle.zip", b"not a zip", "application/zip"))],
        )

        assert response.status_code == 400

    async def test_truncated_tar_archive(self, client: AsyncClient) -> None:
        buffer = io.BytesIO()
        with tarfile.open(fileobj=buffer, mode="w:gz") as archive:
            payload = b"".join(b"pipeline { stage('%d') {} }\n" % i for i in range(500))
            info = tarfile.TarInfo("repo/Jenkinsfile")
            info.size = len(payload)
            archive.addfile(info, io.BytesIO(payload))
        data = buffer.getvalue()

        response = await client.post(
            "/api/parse",
            data={"parser": "jenkins"},
            files=[("files", ("bundle.tgz", data[: len(data) // 2], "application/gzip"))],
        )

        assert response.status_code == 400
        assert "TAR" in response.json()["detail"]

    async def test_byte_order_mark_upload(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/parse",
            data={"parser": "ucd"},
            files=[("files", ("web-app.json", b"\xef\xbb\xbf" + TEMPLATE, "application/json"))],
        )

        assert response.status_code == 200
        assert response.json()["component_name"] == "web-app"

        assert response.status_code == 400

    @patch("flowport_api.routes.parse.get_settings")
    async def test_payload_limit(self, mock_get_settings, client: AsyncClient) -> None:
        mock_get_settings.return_value = Settings(upload_max_payload_mb=0)

        response = await client.post(
            "/api/parse",
            data={"parser": "jenkins"},
            files=[("files", ("Jenkinsfile", JENKINSFILE, "text/plain"))],
        )

        assert response.status_code == 413

    async def test_parse_as_text(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/parse/text",
            data={"parser": "ucd"},
            files=[("files", ("web-app.json", TEMPLATE, "application/json"))],
        )

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/plain")
        assert response.text.startswith("Component Template: web-app\n\n## Process: Deploy\n")
        assert "- Script Body:\n```\n./install.sh\n```\n" in response.text


@pytest.mark.anyio
class TestDetectRoute:
    async def test_detects_each_file(self, client: AsyncClient) -> None:
        response = await client.post(
            "/api/detect",
            files=[
                ("files", ("Jenkinsfile", JENKINSFILE, "text/plain")),
                ("files", ("ci.yml", b"on: push\njobs:\n  a:\n    runs-on: x\n", "text/yaml")),
                ("files", ("notes.txt", b"hello", "text/plain")),
            ],
        )

        assert response.status_code == 200
        assert response.json()["files"] == [
            {"file_name": "Jenkinsfile", "dialect": "pipeline_script"},
            {"file_name": "ci.yml", "dialect": "workflow_yaml"},
            {"file_name": "notes.txt", "dialect": "unknown"},
        ]
