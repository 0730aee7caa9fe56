"""Tests for ScriptClient."""

from __future__ import annotations

import pytest

from sheetfreak.exceptions import APIError, NotFoundError
from sheetfreak.script import ScriptClient, ScriptFile, split_file_name

from .conftest import RecordingTransport

CONTENT = {
    "scriptId": "s1",
    "files": [
        {
            "name": "appsscript",
            "type": "JSON",
            "source": "{}",
        },
        {
            "name": "Code",
            "type": "SERVER_JS",
            "source": "function main() {}",
            "functionSet": {"values": [{"name": "main"}, {"name": "helper"}]},
        },
    ],
}


class TestSplitFileName:
    def test_extensions(self) -> None:
        assert split_file_name("Code.gs") == ("Code", "SERVER_JS")
        assert split_file_name("Sidebar.html") == ("Sidebar", "HTML")
        assert split_file_name("Code") == ("Code", None)


class TestFiles:
    @pytest.mark.asyncio
    async def test_get_content(self, transport: RecordingTransport) -> None:
        transport.add("GET", "/content", CONTENT)
        files = await ScriptClient(transport).get_content("s1")

        assert [f.name for f in files] == ["appsscript", "Code"]
        assert files[1].functions == ("main", "helper")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["Code", "Code.gs"])
    async def test_get_file_with_or_without_extension(
        self, transport: RecordingTransport, name: str
    ) -> None:
        transport.add("GET", "/content", CONTENT)
        script_file = await ScriptClient(transport).get_file("s1", name)
        assert script_file.source == "function main() {}"

    @pytest.mark.asyncio
    async def test_get_missing_file(self, transport: RecordingTransport) -> None:
        transport.add("GET", "/content", CONTENT)
        with pytest.raises(NotFoundError):
            await ScriptClient(transport).get_file("s1", "Other.gs")

    @pytest.mark.asyncio
    async def test_write_replaces_existing(self, transport: RecordingTransport) -> None:
        transport.add("GET", "/content", CONTENT)
        await ScriptClient(transport).write_file("s1", "Code.gs", "function v2() {}")

        put = transport.calls_to("PUT", "/content")[0]
        assert put["body"]["files"] == [
            {"name": "appsscript", "type": "JSON", "source": "{}"},
            {"name": "Code", "type": "SERVER_JS", "source": "function v2() {}"},
        ]

    @pytest.mark.asyncio
    async def test_write_appends_new(self, transport: RecordingTransport) -> None:
        transport.add("GET", "/content", CONTENT)
        written = await ScriptClient(transport).write_file("s1", "Sidebar.html", "<p></p>")

        assert written == ScriptFile(name="Sidebar", type="HTML", source="<p></p>")
        files = transport.calls_to("PUT")[0]["body"]["files"]
        assert len(files) == 3
        assert files[-1]["type"] == "HTML"

    @pytest.mark.asyncio
    async def test_list_functions(self, transport: RecordingTransport) -> None:
        transport.add("GET", "/content", CONTENT)
        assert await ScriptClient(transport).list_functions("s1") == ["main", "helper"]


class TestProjects:
    @pytest.mark.asyncio
    async def test_create_bound_project(self, transport: RecordingTransport) -> None:
        transport.add("POST", "/projects", {"scriptId": "s9", "title": "T", "parentId": "p"})
        project = await ScriptClient(transport).create_project("T", "p")

        assert project.script_id == "s9"
        assert project.edit_url == "https://script.google.com/d/s9/edit"
        assert transport.calls[0]["body"] == {"title": "T", "parentId": "p"}

    @pytest.mark.asyncio
    async def test_unbound_project_has_no_parent(self, transport: RecordingTransport) -> None:
        await ScriptClient(transport).create_project("T")
        assert transport.calls[0]["body"] == {"title": "T"}


class TestExecution:
    @pytest.mark.asyncio
    async def test_run_returns_result(self, transport: RecordingTransport) -> None:
        transport.add("POST", ":run", {"done": True, "response": {"result": 42}})
        result = await ScriptClient(transport).run_function("s1", "answer", [1, "x"])

        assert result == 42
        assert transport.calls[0]["body"] == {
            "function": "answer",
            "parameters": [1, "x"],
            "devMode": False,
        }

    @pytest.mark.asyncio
    async def test_run_execution_error(self, transport: RecordingTransport) -> None:
        transport.add(
            "POST",
            ":run",
            {
                "done": True,
                "error": {
                    "code": 3,
                    "message": "ScriptError",
                    "details": [{"errorMessage": "ReferenceError: x is not defined"}],
                },
            },
        )
        with pytest.raises(APIError, match="ReferenceError"):
            await ScriptClient(transport).run_function("s1", "broken")


class TestVersionsAndDeployments:
    @pytest.mark.asyncio
    async def test_create_version(self, transport: RecordingTransport) -> None:
        transport.add("POST", "/versions", {"versionNumber": 3})
        assert await ScriptClient(transport).create_version("s1", "release") == 3

    @pytest.mark.asyncio
    async def test_create_deployment(self, transport: RecordingTransport) -> None:
        transport.add("POST", "/deployments", {"deploymentId": "d1"})
        deployment = await ScriptClient(transport).create_deployment("s1", 3, "release")

        assert deployment.deployment_id == "d1"
        assert transport.calls[0]["body"] == {
            "versionNumber": 3,
            "manifestFileName": "appsscript",
            "description": "release",
        }

    @pytest.mark.asyncio
    async def test_list(self, transport: RecordingTransport) -> None:
        transport.add("GET", "/versions", {"versions": [{"versionNumber": 1}]})
        transport.add("GET", "/deployments", {"deployments": [{"deploymentId": "d1"}]})
        client = ScriptClient(transport)

        assert await client.list_versions("s1") == [{"versionNumber": 1}]
        assert [d.deployment_id for d in await client.list_deployments("s1")] == ["d1"]
