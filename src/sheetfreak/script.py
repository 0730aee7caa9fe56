"""ScriptClient - Apps Script v1 project, execution and deployment calls."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from sheetfreak.exceptions import APIError, InvalidInputError, NotFoundError
from sheetfreak.transport import SCRIPT_API_BASE, Transport

FILE_TYPES = ("SERVER_JS", "HTML", "JSON")
_EXTENSIONS = {".gs": "SERVER_JS", ".js": "SERVER_JS", ".html": "HTML", ".json": "JSON"}


# --- Data classes ---


@dataclass(frozen=True)
class ScriptFile:
    """A single file within an Apps Script project.

    ``name`` has no extension; the API keys files by name and type.
    """

    name: str
    type: str  # SERVER_JS, HTML, or JSON
    source: str
    functions: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "type": self.type, "source": self.source}


@dataclass(frozen=True)
class ProjectMetadata:
    script_id: str
    title: str
    parent_id: str = ""  # Non-empty for bound scripts
    create_time: str = ""
    update_time: str = ""

    @property
    def edit_url(self) -> str:
        return f"https://script.google.com/d/{self.script_id}/edit"


@dataclass(frozen=True)
class Deployment:
    deployment_id: str
    update_time: str = ""
    config: dict[str, Any] = field(default_factory=dict)


# --- Parsing helpers ---


def _parse_project_metadata(data: dict[str, Any], script_id: str = "") -> ProjectMetadata:
    return ProjectMetadata(
        script_id=data.get("scriptId", script_id),
        title=data.get("title", ""),
        parent_id=data.get("parentId", ""),
        create_time=data.get("createTime", ""),
        update_time=data.get("updateTime", ""),
    )


def _parse_file(data: dict[str, Any]) -> ScriptFile:
    function_set = data.get("functionSet", {}).get("values", [])
    return ScriptFile(
        name=data.get("name", ""),
        type=data.get("type", "SERVER_JS"),
        source=data.get("source", ""),
        functions=tuple(f["name"] for f in function_set if f.get("name")),
    )


def _parse_deployment(data: dict[str, Any]) -> Deployment:
    return Deployment(
        deployment_id=data.get("deploymentId", ""),
        update_time=data.get("updateTime", ""),
        config=data.get("deploymentConfig", {}),
    )


def split_file_name(file_name: str) -> tuple[str, str | None]:
    """Split ``Code.gs`` into ``("Code", "SERVER_JS")``.

    Returns a None type when the name has no recognised extension.
    """
    for ext, file_type in _EXTENSIONS.items():
        if file_name.endswith(ext):
            return file_name[: -len(ext)], file_type
    return file_name, None


class ScriptClient:
    """Client for the Apps Script API."""

    def __init__(self, transport: Transport) -> None:
        self._transport = transport

    # --- Projects ---

    async def create_project(self, title: str, parent_id: str | None = None) -> ProjectMetadata:
        """Create a project, bound to parent_id when given."""
        body: dict[str, str] = {"title": title}
        if parent_id:
            body["parentId"] = parent_id
        data = await self._transport.request("POST", f"{SCRIPT_API_BASE}/projects", body=body)
        return _parse_project_metadata(data)

    async def get_project(self, script_id: str) -> ProjectMetadata:
        data = await self._transport.request("GET", f"{SCRIPT_API_BASE}/projects/{script_id}")
        return _parse_project_metadata(data, script_id)

    async def get_content(self, script_id: str) -> list[ScriptFile]:
        data = await self._transport.request(
            "GET", f"{SCRIPT_API_BASE}/projects/{script_id}/content"
        )
        return [_parse_file(f) for f in data.get("files", [])]

    async def update_content(self, script_id: str, files: list[ScriptFile]) -> dict[str, Any]:
        """Replace all files in a project (atomic operation)."""
        return await self._transport.request(
            "PUT",
            f"{SCRIPT_API_BASE}/projects/{script_id}/content",
            body={"files": [f.to_dict() for f in files]},
        )

    # --- Files ---

    async def get_file(self, script_id: str, file_name: str) -> ScriptFile:
        """Fetch one file. ``Code`` and ``Code.gs`` both match the file Code."""
        name, _ = split_file_name(file_name)
        for script_file in await self.get_content(script_id):
            if script_file.name in (file_name, name):
                return script_file
        raise NotFoundError(f"Script file not found: {file_name}", {"file": file_name})

    async def write_file(
        self,
        script_id: str,
        file_name: str,
        source: str,
        file_type: str | None = None,
    ) -> ScriptFile:
        """Replace or add a single file, then push the whole project.

        The type defaults to the one implied by the file extension, or
        SERVER_JS.
        """
        name, implied_type = split_file_name(file_name)
        resolved_type = file_type or implied_type or "SERVER_JS"
        if resolved_type not in FILE_TYPES:
            raise InvalidInputError(f"Unsupported script file type: {resolved_type}")
        new_file = ScriptFile(name=name, type=resolved_type, source=source)

        files = await self.get_content(script_id)
        for i, existing in enumerate(files):
            if existing.name == name:
                files[i] = new_file
                break
        else:
            files.append(new_file)

        await self.update_content(script_id, files)
        return new_file

    async def list_functions(self, script_id: str) -> list[str]:
        functions: list[str] = []
        for script_file in await self.get_content(script_id):
            functions.extend(script_file.functions)
        return functions

    # --- Execution ---

    async def run_function(
        self,
        script_id: str,
        function_name: str,
        parameters: list[Any] | None = None,
        dev_mode: bool = False,
    ) -> Any:
        """Run a function and return its result.

        Raises:
            APIError: If the script raised during execution
        """
        data = await self._transport.request(
            "POST",
            f"{SCRIPT_API_BASE}/scripts/{script_id}:run",
            body={
                "function": function_name,
                "parameters": parameters or [],
                "devMode": dev_mode,
            },
        )
        error = data.get("error")
        if error:
            details = error.get("details") or [{}]
            message = details[0].get("errorMessage") or error.get("message", "unknown error")
            raise APIError(f"Script execution failed: {message}")
        return data.get("response", {}).get("result")

    # --- Versions and deployments ---

    async def create_version(self, script_id: str, description: str = "") -> int:
        data = await self._transport.request(
            "POST",
            f"{SCRIPT_API_BASE}/projects/{script_id}/versions",
            body={"description": description},
        )
        return int(data.get("versionNumber", 1))

    async def list_versions(self, script_id: str) -> list[dict[str, Any]]:
        data = await self._transport.request(
            "GET", f"{SCRIPT_API_BASE}/projects/{script_id}/versions"
        )
        versions: list[dict[str, Any]] = data.get("versions", [])
        return versions

    async def create_deployment(
        self, script_id: str, version_number: int, description: str = ""
    ) -> Deployment:
        data = await self._transport.request(
            "POST",
            f"{SCRIPT_API_BASE}/projects/{script_id}/deployments",
            body={
                "versionNumber": version_number,
                "manifestFileName": "appsscript",
                "description": description,
            },
        )
        return _parse_deployment(data)

    async def list_deployments(self, script_id: str) -> list[Deployment]:
        data = await self._transport.request(
            "GET", f"{SCRIPT_API_BASE}/projects/{script_id}/deployments"
        )
        return [_parse_deployment(d) for d in data.get("deployments", [])]
