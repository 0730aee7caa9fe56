"""Tests for the sheetfreak command line."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any

import pytest

from sheetfreak import __main__ as cli
from sheetfreak.__main__ import main, parse_spreadsheet_id

from .conftest import RecordingTransport, sheets_metadata

URL = "https://docs.google.com/spreadsheets/d/1AbC-dEf_123/edit#gid=0"


@pytest.fixture(autouse=True)
def config_dir(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    path = tmp_path / "config"
    monkeypatch.setenv("SHEETFREAK_CONFIG_DIR", str(path))
    for key in ("CREDENTIALS_PATH", "OUTPUT_FORMAT", "VERBOSE_ERRORS", "LOG_LEVEL", "LOG_JSON"):
        monkeypatch.delenv(f"SHEETFREAK_{key}", raising=False)
    return path


@pytest.fixture
def api(monkeypatch: pytest.MonkeyPatch) -> RecordingTransport:
    """Route every command through a recording transport."""
    transport = RecordingTransport()
    monkeypatch.setattr(cli, "create_transport", lambda config: transport)
    return transport


class TestParseSpreadsheetId:
    def test_url(self) -> None:
        assert parse_spreadsheet_id(URL) == "1AbC-dEf_123"

    def test_plain_id(self) -> None:
        assert parse_spreadsheet_id("1AbC-dEf_123") == "1AbC-dEf_123"


class TestFormatDryRun:
    def test_cells_unqualified_needs_no_credentials(
        self, capsys: pytest.CaptureFixture[str]
    ) -> None:
        code = main(["format", "cells", URL, "A1:B2", "--bold", "--bg-color", "yellow",
                     "--dry-run"])

        assert code == 0
        request = json.loads(capsys.readouterr().out)["requests"][0]["repeatCell"]
        assert request["fields"] == "userEnteredFormat(backgroundColor,textFormat.bold)"
        assert request["range"]["sheetId"] == 0
        assert request["cell"]["userEnteredFormat"]["backgroundColor"] == {
            "red": 1.0,
            "green": 1.0,
            "blue": 0.0,
            "alpha": 1.0,
        }

    def test_no_bold_sets_false(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["format", "cells", "id", "A1:A1", "--no-bold", "--dry-run"]) == 0
        request = json.loads(capsys.readouterr().out)["requests"][0]["repeatCell"]
        assert request["cell"]["userEnteredFormat"] == {"textFormat": {"bold": False}}

    def test_borders_top_only(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["format", "borders", "id", "A1:C3", "--top", "--dry-run"]) == 0
        body = json.loads(capsys.readouterr().out)["requests"][0]["updateBorders"]
        assert body["top"] == {
            "style": "SOLID",
            "color": {"red": 0.0, "green": 0.0, "blue": 0.0, "alpha": 1.0},
        }
        assert "bottom" not in body

    def test_cells_from_json_file(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        spec = tmp_path / "format.json"
        spec.write_text(json.dumps({"horizontalAlignment": "CENTER", "wrapStrategy": "WRAP"}))
        assert main(["format", "cells", "id", "A1:A9", "--json", str(spec), "--dry-run"]) == 0
        request = json.loads(capsys.readouterr().out)["requests"][0]["repeatCell"]
        assert request["fields"] == "userEnteredFormat(horizontalAlignment,wrapStrategy)"

    def test_qualified_range_resolves_sheet(
        self, api: RecordingTransport, capsys: pytest.CaptureFixture[str]
    ) -> None:
        api.add("GET", "/sid", sheets_metadata(("Sheet1", 0), ("My Sheet", 7)))
        assert main(["format", "cells", "sid", "'My Sheet'!C3:D4", "--italic", "--dry-run"]) == 0

        request = json.loads(capsys.readouterr().out)["requests"][0]["repeatCell"]
        assert request["range"]["sheetId"] == 7
        assert api.calls_to("POST") == []
        assert api.closed


class TestFormatApply:
    def test_cells_sends_batch_update(self, api: RecordingTransport) -> None:
        assert main(["format", "cells", URL, "A1:D1", "--bold"]) == 0

        batch = api.calls_to("POST", "1AbC-dEf_123:batchUpdate")
        assert len(batch) == 1
        assert "repeatCell" in batch[0]["body"]["requests"][0]

    def test_resize_columns(self, api: RecordingTransport) -> None:
        api.add("GET", "/sid", sheets_metadata(("Data", 4)))
        assert main(["format", "resize-columns", "sid", "Data", "0", "2", "120"]) == 0
        request = api.calls_to("POST")[0]["body"]["requests"][0]
        assert request["updateDimensionProperties"]["range"]["endIndex"] == 3


class TestErrors:
    def test_invalid_range(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["format", "cells", "id", "A1-B2", "--bold", "--dry-run"]) == 1
        err = capsys.readouterr().err
        assert "Error: Invalid range format: A1-B2" in err
        assert "INVALID_RANGE" not in err

    def test_verbose_prints_structured_error(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["--verbose", "format", "cells", "id", "A1-B2", "--bold", "--dry-run"]) == 1
        assert '"code": "INVALID_RANGE"' in capsys.readouterr().err

    def test_invalid_color(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["format", "cells", "id", "A1:B2", "--bg-color", "notacolor",
                     "--dry-run"]) == 1
        assert "Invalid color format: notacolor" in capsys.readouterr().err

    def test_no_format_options(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["format", "cells", "id", "A1:B2", "--dry-run"]) == 1
        assert "No formatting options" in capsys.readouterr().err

    def test_malformed_format_json(
        self, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        spec = tmp_path / "format.json"
        spec.write_text(json.dumps({"textFormat": "bold"}))
        assert main(["format", "cells", "id", "A1:B2", "--json", str(spec), "--dry-run"]) == 1
        assert "Field textFormat must be an object" in capsys.readouterr().err

    def test_borders_need_edges(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["format", "borders", "id", "A1:B2", "--dry-run"]) == 1
        assert "--all" in capsys.readouterr().err

    def test_not_configured(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["data", "read", "id", "A1:B2"]) == 1
        assert "Authentication not configured" in capsys.readouterr().err

    def test_unknown_tab(
        self, api: RecordingTransport, capsys: pytest.CaptureFixture[str]
    ) -> None:
        api.add("GET", "/sid", sheets_metadata(("Sheet1", 0)))
        assert main(["tab", "delete", "sid", "Ghost"]) == 1
        assert "Sheet not found: Ghost" in capsys.readouterr().err


class TestData:
    def test_read_json(self, api: RecordingTransport, capsys: pytest.CaptureFixture[str]) -> None:
        api.add("GET", "/values/", {"values": [["a", "b"]]})
        assert main(["data", "read", "sid", "A1:B1", "--format", "json"]) == 0
        assert json.loads(capsys.readouterr().out) == {"range": "A1:B1", "values": [["a", "b"]]}

    def test_output_format_setting(
        self,
        api: RecordingTransport,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        monkeypatch.setenv("SHEETFREAK_OUTPUT_FORMAT", "csv")
        api.add("GET", "/values/", {"values": [["a", "b"]]})
        assert main(["data", "read", "sid", "A1:B1"]) == 0
        assert capsys.readouterr().out == '"a","b"\n'

    def test_write_single_value(self, api: RecordingTransport) -> None:
        api.add("PUT", "/values/", {"updatedCells": 1})
        assert main(["data", "write", "sid", "A1:A1", "hello"]) == 0
        assert api.calls[0]["body"]["values"] == [["hello"]]

    def test_write_json_file(self, api: RecordingTransport, tmp_path: Path) -> None:
        values = tmp_path / "values.json"
        values.write_text(json.dumps({"values": [[1, 2], [3, 4]]}))
        assert main(["data", "append", "sid", "A1:B1", "--json", str(values)]) == 0
        assert api.calls[0]["body"]["values"] == [[1, 2], [3, 4]]

    def test_write_needs_value(self, api: RecordingTransport) -> None:
        assert main(["data", "write", "sid", "A1:A1"]) == 1
        assert api.calls == []

    def test_batch_rejects_bad_shape(self, api: RecordingTransport, tmp_path: Path) -> None:
        payload = tmp_path / "batch.json"
        payload.write_text(json.dumps([{"range": "A1"}]))
        assert main(["data", "batch", "sid", "--json", str(payload)]) == 1


class TestSheetInfo:
    def test_csv_output_is_pure_csv(
        self, api: RecordingTransport, capsys: pytest.CaptureFixture[str]
    ) -> None:
        api.add("GET", "/files/sid", {"id": "sid", "name": "Budget", "webViewLink": "https://x"})
        api.add("GET", "spreadsheets/sid", sheets_metadata(("Sheet1", 0)))
        assert main(["sheet", "info", "sid", "--format", "csv"]) == 0
        assert capsys.readouterr().out == (
            '"sheetId","title","index","rows","columns"\n"0","Sheet1","0","1000","26"\n'
        )

    def test_table_output_has_header_lines(
        self, api: RecordingTransport, capsys: pytest.CaptureFixture[str]
    ) -> None:
        api.add("GET", "/files/sid", {"id": "sid", "name": "Budget", "webViewLink": "https://x"})
        api.add("GET", "spreadsheets/sid", sheets_metadata(("Sheet1", 0)))
        assert main(["sheet", "info", "sid", "--format", "table"]) == 0
        assert "Title: Budget" in capsys.readouterr().out


class TestTransportSetup:
    def test_credentials_loaded_off_event_loop(self, monkeypatch: pytest.MonkeyPatch) -> None:
        transport = RecordingTransport()
        threads: list[int] = []

        def create(config: Any) -> RecordingTransport:
            threads.append(threading.get_ident())
            return transport

        monkeypatch.setattr(cli, "create_transport", create)
        assert main(["tab", "list", "sid", "--format", "json"]) == 0
        assert threads and threads[0] != threading.get_ident()
        assert transport.closed


class TestContext:
    def test_set_then_get(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["context", "set", URL]) == 0
        capsys.readouterr()
        assert main(["context", "get", "--format", "json"]) == 0
        assert json.loads(capsys.readouterr().out)["currentSpreadsheet"] == "1AbC-dEf_123"


class TestScriptCommands:
    def test_template_apply_creates_project(
        self, api: RecordingTransport, capsys: pytest.CaptureFixture[str]
    ) -> None:
        api.add("POST", "/projects", {"scriptId": "s1", "title": "Auto-Refresh Data"})
        code = main(
            ["script", "template-apply", "sid", "auto-refresh",
             "--var", "API_URL=https://api.example.com/rows"]
        )

        assert code == 0
        create = api.calls_to("POST", "/projects")[0]
        assert create["body"] == {"title": "Auto-Refresh Data", "parentId": "sid"}
        files = api.calls_to("PUT", "/projects/s1/content")[0]["body"]["files"]
        assert files[0]["name"] == "Code"
        assert "API_URL: 'https://api.example.com/rows'" in files[0]["source"]
        assert "refreshData (HOURLY)" in capsys.readouterr().out

    def test_template_apply_missing_variable(
        self, api: RecordingTransport, capsys: pytest.CaptureFixture[str]
    ) -> None:
        assert main(["script", "template-apply", "sid", "auto-refresh"]) == 1
        assert "API_URL" in capsys.readouterr().err
        assert api.calls == []

    def test_deployment_create_makes_version(self, api: RecordingTransport) -> None:
        api.add("POST", "/versions", {"versionNumber": 4})
        api.add("POST", "/deployments", {"deploymentId": "d1"})
        assert main(["script", "deployment-create", "s1", "release"]) == 0
        deploy = api.calls_to("POST", "/deployments")[0]
        assert deploy["body"]["versionNumber"] == 4

    def test_run_parses_json_arguments(
        self, api: RecordingTransport, capsys: pytest.CaptureFixture[str]
    ) -> None:
        api.add("POST", ":run", {"response": {"result": "ok"}})
        assert main(["script", "run", "s1", "doThing", "5", "text", '{"a": 1}']) == 0
        assert api.calls[0]["body"]["parameters"] == [5, "text", {"a": 1}]
        assert json.loads(capsys.readouterr().out) == {"status": "success", "result": "ok"}

    def test_template_list_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["script", "template-list", "--format", "json"]) == 0
        names = [t["name"] for t in json.loads(capsys.readouterr().out)["templates"]]
        assert names == ["auto-refresh", "custom-menu", "on-edit-validator"]


class TestAuth:
    def test_status_not_configured(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert main(["auth", "status"]) == 1
        assert "Not configured" in capsys.readouterr().out

    def test_init_skip_verify(self, tmp_path: Path, config_dir: Path) -> None:
        key = tmp_path / "sa.json"
        key.write_text(
            json.dumps(
                {
                    "type": "service_account",
                    "client_email": "robot@p.iam.gserviceaccount.com",
                    "private_key": "fake",
                }
            )
        )
        assert main(["auth", "init", str(key), "--skip-verify"]) == 0
        saved = json.loads((config_dir / "config.json").read_text())
        assert saved["credentials_path"] == str(key.resolve())
