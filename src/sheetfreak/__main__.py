"""CLI entry point for sheetfreak.

Usage:
    sheetfreak auth init <credentials.json>
    sheetfreak data read <spreadsheet_id_or_url> <range>
    sheetfreak format cells <spreadsheet_id_or_url> <range> --bold --bg-color yellow
    sheetfreak format borders <spreadsheet_id_or_url> <range> --all --style SOLID
    sheetfreak script template-apply <spreadsheet_id_or_url> auto-refresh --var API_URL=...
"""

from __future__ import annotations

import argparse
import asyncio
import json
import re
import sys
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any

from sheetfreak.a1 import RangeReference, resolve_range
from sheetfreak.colors import parse_color
from sheetfreak.config import ConfigManager
from sheetfreak.credentials import ServiceAccountAuth
from sheetfreak.drive import SHARE_ROLES, DriveClient
from sheetfreak.exceptions import (
    InvalidInputError,
    NotConfiguredError,
    SheetFreakError,
)
from sheetfreak.logging import logger, setup_logging
from sheetfreak.output import (
    OUTPUT_FORMATS,
    print_json,
    print_message,
    render_records,
    render_values,
)
from sheetfreak.request_builder import (
    BORDER_EDGES,
    BORDER_STYLES,
    HORIZONTAL_ALIGNMENTS,
    NUMBER_FORMAT_TYPES,
    VERTICAL_ALIGNMENTS,
    WRAP_STRATEGIES,
    BorderSpec,
    CellFormatSpec,
    NumberFormatSpec,
    TextFormatSpec,
    build_border_request,
    build_format_request,
)
from sheetfreak.script import FILE_TYPES, ScriptClient
from sheetfreak.sheets import SheetsClient
from sheetfreak.templates import (
    get_configured_template,
    get_template,
    get_template_source,
    list_templates,
)
from sheetfreak.transport import GoogleAPITransport, Transport


def parse_spreadsheet_id(id_or_url: str) -> str:
    """Extract spreadsheet ID from a URL or return as-is if already an ID."""
    # https://docs.google.com/spreadsheets/d/SPREADSHEET_ID/edit...
    url_pattern = r"docs\.google\.com/spreadsheets/d/([a-zA-Z0-9_-]+)"
    match = re.search(url_pattern, id_or_url)
    if match:
        return match.group(1)
    return id_or_url


# --- Plumbing ---


def create_transport(config: ConfigManager) -> Transport:
    """Authenticate with the configured service account."""
    credentials_path = config.get_credentials_path()
    if not credentials_path:
        raise NotConfiguredError()
    auth = ServiceAccountAuth(credentials_path, cache_tokens=True)
    token = auth.get_token()
    return GoogleAPITransport(access_token=token.access_token)


@asynccontextmanager
async def open_transport(args: argparse.Namespace) -> AsyncIterator[Transport]:
    # google-auth refreshes tokens with blocking requests calls
    transport = await asyncio.to_thread(create_transport, args.config)
    try:
        yield transport
    finally:
        await transport.close()


def _read_json_file(path: str) -> Any:
    file_path = Path(path)
    if not file_path.exists():
        raise InvalidInputError(f"File not found: {file_path}")
    try:
        return json.loads(file_path.read_text())
    except json.JSONDecodeError as e:
        raise InvalidInputError(f"Invalid JSON in {file_path}: {e}") from e


def _load_values(value: str | None, json_file: str | None) -> list[list[Any]]:
    """Values from --json (a 2D array or {"values": ...}) or a single cell."""
    if json_file:
        data = _read_json_file(json_file)
        values = data.get("values") if isinstance(data, dict) else data
        if not isinstance(values, list) or not all(isinstance(row, list) for row in values):
            raise InvalidInputError(
                f"{json_file} must contain a 2D array or an object with a values array"
            )
        return values
    if value is not None:
        return [[value]]
    raise InvalidInputError("Either provide a value or use --json with a file")


def _parse_vars(pairs: list[str] | None) -> dict[str, str]:
    result: dict[str, str] = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key:
            raise InvalidInputError(f"Expected KEY=VALUE, got: {pair}")
        result[key] = value
    return result


def _parse_run_argument(raw: str) -> Any:
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        return raw


# --- auth ---


async def cmd_auth_init(args: argparse.Namespace) -> int:
    """Validate a service account key and store its path."""
    auth = ServiceAccountAuth(args.credentials, cache_tokens=True)
    if not args.skip_verify:
        await asyncio.to_thread(auth.get_token, True)
    args.config.set_credentials_path(auth.credentials_path)
    print_message("Authentication configured")
    print(f"Service account: {auth.service_account_email}")
    return 0


async def cmd_auth_status(args: argparse.Namespace) -> int:
    credentials_path = args.config.get_credentials_path()
    if not credentials_path:
        print_message("Not configured. Run: sheetfreak auth init <credentials.json>", "yellow")
        return 1
    auth = ServiceAccountAuth(credentials_path)
    info = auth.account_info()
    info["credentials_path"] = credentials_path
    if args.format == "json":
        print_json(info)
    else:
        print(f"Credentials: {credentials_path}")
        print(f"Service account: {info['email']}")
        print(f"Scopes: {', '.join(info['scopes'])}")
    return 0


# --- sheet ---


async def cmd_sheet_create(args: argparse.Namespace) -> int:
    async with open_transport(args) as transport:
        info = await DriveClient(transport).create_spreadsheet(args.name)
    if args.format == "json":
        print_json(info.to_dict())
    else:
        print_message(f"Created: {info.title}")
        print(f"ID: {info.spreadsheet_id}")
        print(f"URL: {info.url}")
    return 0


async def cmd_sheet_list(args: argparse.Namespace) -> int:
    async with open_transport(args) as transport:
        spreadsheets = await DriveClient(transport).list_spreadsheets(args.limit)
    render_records(
        [s.to_dict() for s in spreadsheets],
        ["spreadsheetId", "title", "spreadsheetUrl"],
        args.format,
        title="Spreadsheets",
        key="spreadsheets",
    )
    return 0


async def cmd_sheet_info(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    async with open_transport(args) as transport:
        info = await DriveClient(transport).get_spreadsheet_info(spreadsheet_id)
        tabs = await SheetsClient(transport).list_sheets(spreadsheet_id)
    records = [
        {
            "sheetId": t.sheet_id,
            "title": t.title,
            "index": t.index,
            "rows": t.row_count,
            "columns": t.column_count,
        }
        for t in tabs
    ]
    if args.format == "json":
        print_json({**info.to_dict(), "sheets": records})
        return 0
    if args.format == "table":
        print(f"Title: {info.title}")
        print(f"ID: {info.spreadsheet_id}")
        print(f"URL: {info.url}")
    render_records(records, ["sheetId", "title", "index", "rows", "columns"], args.format,
                   title="Sheets", key="sheets")
    return 0


async def cmd_sheet_copy(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    async with open_transport(args) as transport:
        info = await DriveClient(transport).copy_spreadsheet(spreadsheet_id, args.new_name)
    if args.format == "json":
        print_json(info.to_dict())
    else:
        print_message(f"Copied to: {info.title}")
        print(f"ID: {info.spreadsheet_id}")
        print(f"URL: {info.url}")
    return 0


async def cmd_sheet_share(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    async with open_transport(args) as transport:
        await DriveClient(transport).share_spreadsheet(spreadsheet_id, args.email, args.role)
    print_message(f"Shared with {args.email} as {args.role}")
    return 0


async def cmd_sheet_delete(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    async with open_transport(args) as transport:
        await DriveClient(transport).delete_spreadsheet(spreadsheet_id)
    print_message(f"Deleted spreadsheet: {spreadsheet_id}")
    return 0


# --- context ---


async def cmd_context_set(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    args.config.set_context(spreadsheet_id)
    print_message(f"Context set to: {spreadsheet_id}")
    return 0


async def cmd_context_get(args: argparse.Namespace) -> int:
    context = args.config.get_context()
    current = args.config.get_current_spreadsheet()
    if args.format == "json":
        print_json({"currentSpreadsheet": current, "lastUpdated": context.get("lastUpdated")})
        return 0
    if not current:
        print_message("No context set", "yellow")
        return 0
    print(f"Current spreadsheet: {current}")
    if context.get("lastUpdated"):
        print(f"Last updated: {context['lastUpdated']}")
    return 0


# --- data ---


async def cmd_data_read(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    async with open_transport(args) as transport:
        values = await SheetsClient(transport).read(spreadsheet_id, args.range)
    render_values(values, args.format, args.range)
    return 0


async def cmd_data_write(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    values = _load_values(args.value, args.json)
    async with open_transport(args) as transport:
        result = await SheetsClient(transport).write(spreadsheet_id, args.range, values)
    print_message(f"Updated {result.get('updatedCells', 0)} cells in {args.range}")
    return 0


async def cmd_data_clear(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    async with open_transport(args) as transport:
        await SheetsClient(transport).clear(spreadsheet_id, args.range)
    print_message(f"Cleared range: {args.range}")
    return 0


async def cmd_data_append(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    values = _load_values(args.value, args.json)
    async with open_transport(args) as transport:
        result = await SheetsClient(transport).append(spreadsheet_id, args.range, values)
    updated_rows = result.get("updates", {}).get("updatedRows", len(values))
    print_message(f"Appended {updated_rows} rows")
    return 0


async def cmd_data_batch(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    updates = _read_json_file(args.json)
    if not isinstance(updates, list) or not all(
        isinstance(u, dict) and "range" in u and "values" in u for u in updates
    ):
        raise InvalidInputError("JSON file must contain an array of {range, values} objects")
    async with open_transport(args) as transport:
        result = await SheetsClient(transport).batch_write(spreadsheet_id, updates)
    print_message(
        f"Updated {result.get('totalUpdatedCells', 0)} cells in {len(updates)} ranges"
    )
    return 0


# --- tab ---


async def cmd_tab_list(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    async with open_transport(args) as transport:
        tabs = await SheetsClient(transport).list_sheets(spreadsheet_id)
    render_records(
        [
            {
                "index": t.index,
                "title": t.title,
                "sheetId": t.sheet_id,
                "size": f"{t.row_count}x{t.column_count}",
            }
            for t in tabs
        ],
        ["index", "title", "sheetId", "size"],
        args.format,
        title=f"Sheets in {spreadsheet_id}",
        key="sheets",
    )
    return 0


async def cmd_tab_add(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    async with open_transport(args) as transport:
        sheet_id = await SheetsClient(transport).add_sheet(spreadsheet_id, args.title)
    print_message(f"Created sheet: {args.title} (ID: {sheet_id})")
    return 0


async def cmd_tab_delete(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    async with open_transport(args) as transport:
        await SheetsClient(transport).delete_sheet(spreadsheet_id, args.title)
    print_message(f"Deleted sheet: {args.title}")
    return 0


async def cmd_tab_rename(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    async with open_transport(args) as transport:
        await SheetsClient(transport).rename_sheet(
            spreadsheet_id, args.old_title, args.new_title
        )
    print_message(f"Renamed sheet: {args.old_title} -> {args.new_title}")
    return 0


# --- format ---


def cell_format_from_args(args: argparse.Namespace) -> CellFormatSpec:
    """Build a CellFormatSpec from --json or individual flags."""
    if args.json:
        return CellFormatSpec.from_dict(_read_json_file(args.json))

    text = TextFormatSpec(
        bold=args.bold,
        italic=args.italic,
        underline=args.underline,
        strikethrough=args.strikethrough,
        font_size=args.font_size,
        font_family=args.font_family,
        foreground_color=parse_color(args.text_color) if args.text_color else None,
    )
    number_format = None
    if args.number_format or args.number_pattern:
        number_format = NumberFormatSpec(type=args.number_format, pattern=args.number_pattern)
    return CellFormatSpec(
        background_color=parse_color(args.bg_color) if args.bg_color else None,
        text_format=None if text == TextFormatSpec() else text,
        horizontal_alignment=args.align,
        vertical_alignment=args.valign,
        wrap_strategy=args.wrap,
        number_format=number_format,
    )


def border_spec_from_args(args: argparse.Namespace) -> BorderSpec:
    if args.json:
        return BorderSpec.from_dict(_read_json_file(args.json))
    edges = BORDER_EDGES if args.all else [e for e in BORDER_EDGES if getattr(args, e)]
    if not edges:
        raise InvalidInputError("Select borders with --all or --top/--bottom/--left/--right")
    color = parse_color(args.color) if args.color else None
    return BorderSpec.uniform(edges, style=args.style, color=color)


async def _apply_range_request(
    args: argparse.Namespace,
    builder: Callable[[RangeReference, Any], dict[str, Any]],
    apply: Callable[..., Awaitable[dict[str, Any]]],
    spec: Any,
) -> int:
    """Resolve the range, then send or (with --dry-run) print one request."""
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    if args.dry_run and "!" not in args.range:
        # Unqualified ranges resolve without a sheet list.
        ref = resolve_range(args.range, lambda _title: None)
        print_json({"requests": [builder(ref, spec)]})
        return 0

    async with open_transport(args) as transport:
        request = await apply(
            SheetsClient(transport), spreadsheet_id, args.range, spec, dry_run=args.dry_run
        )
    if args.dry_run:
        print_json({"requests": [request]})
    return 0


async def cmd_format_cells(args: argparse.Namespace) -> int:
    spec = cell_format_from_args(args)
    if spec == CellFormatSpec():
        raise InvalidInputError("No formatting options given")
    result = await _apply_range_request(
        args, build_format_request, SheetsClient.format_cells, spec
    )
    if not args.dry_run:
        print_message(f"Formatting applied to range: {args.range}")
    return result


async def cmd_format_borders(args: argparse.Namespace) -> int:
    spec = border_spec_from_args(args)
    result = await _apply_range_request(
        args, build_border_request, SheetsClient.apply_borders, spec
    )
    if not args.dry_run:
        print_message(f"Borders applied to range: {args.range}")
    return result


async def cmd_format_resize_columns(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    async with open_transport(args) as transport:
        await SheetsClient(transport).resize_columns(
            spreadsheet_id, args.sheet_title, args.start, args.end, args.pixel_size
        )
    print_message(f"Resized columns {args.start}-{args.end} to {args.pixel_size}px")
    return 0


async def cmd_format_resize_rows(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    async with open_transport(args) as transport:
        await SheetsClient(transport).resize_rows(
            spreadsheet_id, args.sheet_title, args.start, args.end, args.pixel_size
        )
    print_message(f"Resized rows {args.start}-{args.end} to {args.pixel_size}px")
    return 0


async def cmd_format_auto_resize_columns(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    async with open_transport(args) as transport:
        await SheetsClient(transport).auto_resize_columns(
            spreadsheet_id, args.sheet_title, args.start, args.end
        )
    print_message(f"Auto-resized columns {args.start}-{args.end}")
    return 0


# --- script ---


async def cmd_script_list(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    async with open_transport(args) as transport:
        bound = await DriveClient(transport).find_bound_script(spreadsheet_id)
    if bound is None:
        print_message("No script attached to this spreadsheet", "yellow")
        return 0
    render_records(
        [{"scriptId": bound.script_id, "title": bound.title, "updated": bound.update_time}],
        ["scriptId", "title", "updated"],
        args.format,
        key="scripts",
    )
    return 0


async def cmd_script_create(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    async with open_transport(args) as transport:
        project = await ScriptClient(transport).create_project(args.title, spreadsheet_id)
    if args.format == "json":
        print_json({"scriptId": project.script_id, "title": project.title, "url": project.edit_url})
    else:
        print_message("Script project created")
        print(f"Script ID: {project.script_id}")
        print(f"URL: {project.edit_url}")
    return 0


async def cmd_script_deploy(args: argparse.Namespace) -> int:
    """Push a local file into the spreadsheet's bound script."""
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    source_path = Path(args.script_file)
    if not source_path.exists():
        raise InvalidInputError(f"File not found: {source_path}")
    source = source_path.read_text()

    async with open_transport(args) as transport:
        script = ScriptClient(transport)
        bound = await DriveClient(transport).find_bound_script(spreadsheet_id)
        if bound is not None:
            script_id = bound.script_id
        elif args.create_if_missing:
            project = await script.create_project(args.title or source_path.stem, spreadsheet_id)
            script_id = project.script_id
        else:
            raise InvalidInputError(
                "No script attached to spreadsheet. Use --create-if-missing to create one"
            )
        written = await script.write_file(script_id, source_path.stem, source)
    print_message(f"Deployed {written.name} to script {script_id}")
    return 0


async def cmd_script_read(args: argparse.Namespace) -> int:
    async with open_transport(args) as transport:
        script = ScriptClient(transport)
        if args.all:
            files = await script.get_content(args.script_id)
        else:
            files = [await script.get_file(args.script_id, args.file_name)]
    if args.format == "json":
        print_json({"files": [f.to_dict() for f in files]})
        return 0
    for f in files:
        if args.all:
            print(f"// File: {f.name} ({f.type})")
        print(f.source)
    return 0


async def cmd_script_write(args: argparse.Namespace) -> int:
    source_path = Path(args.source_file)
    if not source_path.exists():
        raise InvalidInputError(f"File not found: {source_path}")
    async with open_transport(args) as transport:
        written = await ScriptClient(transport).write_file(
            args.script_id, args.file_name, source_path.read_text(), args.type
        )
    print_message(f"File written: {written.name}")
    return 0


async def cmd_script_run(args: argparse.Namespace) -> int:
    parameters = [_parse_run_argument(a) for a in args.args]
    async with open_transport(args) as transport:
        result = await ScriptClient(transport).run_function(
            args.script_id, args.function, parameters, dev_mode=args.dev_mode
        )
    print_json({"status": "success", "result": result})
    return 0


async def cmd_script_functions(args: argparse.Namespace) -> int:
    async with open_transport(args) as transport:
        functions = await ScriptClient(transport).list_functions(args.script_id)
    render_records([{"function": f} for f in functions], ["function"], args.format,
                   key="functions")
    return 0


async def cmd_script_version_create(args: argparse.Namespace) -> int:
    async with open_transport(args) as transport:
        version = await ScriptClient(transport).create_version(args.script_id, args.description)
    print_message(f"Version created: {version}")
    return 0


async def cmd_script_versions(args: argparse.Namespace) -> int:
    async with open_transport(args) as transport:
        versions = await ScriptClient(transport).list_versions(args.script_id)
    render_records(versions, ["versionNumber", "description", "createTime"], args.format,
                   key="versions")
    return 0


async def cmd_script_deployments(args: argparse.Namespace) -> int:
    async with open_transport(args) as transport:
        deployments = await ScriptClient(transport).list_deployments(args.script_id)
    render_records(
        [{"deploymentId": d.deployment_id, "updated": d.update_time} for d in deployments],
        ["deploymentId", "updated"],
        args.format,
        key="deployments",
    )
    return 0


async def cmd_script_deployment_create(args: argparse.Namespace) -> int:
    """Deploy a version, creating a new version first when none is given."""
    async with open_transport(args) as transport:
        script = ScriptClient(transport)
        version = args.version
        if version is None:
            version = await script.create_version(args.script_id, args.description)
        deployment = await script.create_deployment(args.script_id, version, args.description)
    print_message(f"Deployment created: {deployment.deployment_id} (version {version})")
    return 0


async def cmd_script_template_list(args: argparse.Namespace) -> int:
    render_records(
        [
            {
                "name": t.name,
                "title": t.title,
                "description": t.description,
                "triggers": ", ".join(tr.describe() for tr in t.triggers),
            }
            for t in list_templates()
        ],
        ["name", "title", "description", "triggers"],
        args.format,
        title="Apps Script templates",
        key="templates",
    )
    return 0


async def cmd_script_template_show(args: argparse.Namespace) -> int:
    template = get_template(args.template)
    source = get_template_source(args.template)
    print(f"{template.title}")
    print(f"Description: {template.description}\n")
    if template.variables:
        print("Configuration variables:")
        for v in template.variables:
            marker = "*" if v.required else ""
            default = f" (default: {v.default})" if v.default else ""
            print(f"  {marker}{v.name}{default}")
            print(f"    {v.description}")
        print()
    if template.triggers:
        print("Recommended triggers:")
        for t in template.triggers:
            print(f"  {t.describe()}")
        print()
    print(source)
    return 0


async def cmd_script_template_apply(args: argparse.Namespace) -> int:
    spreadsheet_id = parse_spreadsheet_id(args.spreadsheet)
    template = get_template(args.template)
    config: dict[str, str] = {}
    if args.config_file:
        loaded = _read_json_file(args.config_file)
        if not isinstance(loaded, dict):
            raise InvalidInputError(f"{args.config_file} must contain a JSON object")
        config.update({k: str(v) for k, v in loaded.items()})
    config.update(_parse_vars(args.var))
    source = get_configured_template(template.name, config)

    async with open_transport(args) as transport:
        script = ScriptClient(transport)
        bound = await DriveClient(transport).find_bound_script(spreadsheet_id)
        if bound is not None:
            script_id = bound.script_id
        else:
            logger.info("Creating script project for {}", spreadsheet_id)
            script_id = (await script.create_project(template.title, spreadsheet_id)).script_id
        await script.write_file(script_id, args.file_name, source, "SERVER_JS")

    print_message(f"Template {template.name} applied to script {script_id}")
    for trigger in template.triggers:
        print(f"  Recommended trigger: {trigger.describe()}")
    return 0


# --- Parser ---


def _add_format_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--format",
        choices=OUTPUT_FORMATS,
        default=None,
        help="Output format (default: output_format setting, else table)",
    )


def _add_spreadsheet(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("spreadsheet", help="Spreadsheet ID or full Google Sheets URL")


def _upper(value: str) -> str:
    return value.upper()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="sheetfreak",
        description="Manipulate Google Sheets from the command line",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Debug logging and structured errors"
    )
    groups = parser.add_subparsers(dest="group", required=True)

    # auth
    auth = groups.add_parser("auth", help="Manage authentication")
    auth_sub = auth.add_subparsers(dest="command", required=True)
    p = auth_sub.add_parser("init", help="Configure a service account key")
    p.add_argument("credentials", help="Path to the service account JSON key")
    p.add_argument(
        "--skip-verify", action="store_true", help="Do not fetch a token to verify the key"
    )
    p.set_defaults(func=cmd_auth_init)
    p = auth_sub.add_parser("status", help="Show the configured account")
    _add_format_option(p)
    p.set_defaults(func=cmd_auth_status)

    # sheet
    sheet = groups.add_parser("sheet", help="Manage spreadsheets")
    sheet_sub = sheet.add_subparsers(dest="command", required=True)
    p = sheet_sub.add_parser("create", help="Create a spreadsheet")
    p.add_argument("name")
    _add_format_option(p)
    p.set_defaults(func=cmd_sheet_create)
    p = sheet_sub.add_parser("list", help="List spreadsheets")
    p.add_argument("--limit", type=int, default=100, help="Maximum number of results")
    _add_format_option(p)
    p.set_defaults(func=cmd_sheet_list)
    p = sheet_sub.add_parser("info", help="Show spreadsheet details and tabs")
    _add_spreadsheet(p)
    _add_format_option(p)
    p.set_defaults(func=cmd_sheet_info)
    p = sheet_sub.add_parser("copy", help="Copy a spreadsheet")
    _add_spreadsheet(p)
    p.add_argument("new_name")
    _add_format_option(p)
    p.set_defaults(func=cmd_sheet_copy)
    p = sheet_sub.add_parser("share", help="Share a spreadsheet with a user")
    _add_spreadsheet(p)
    p.add_argument("email")
    p.add_argument("--role", choices=SHARE_ROLES, default="writer")
    p.set_defaults(func=cmd_sheet_share)
    p = sheet_sub.add_parser("delete", help="Delete a spreadsheet")
    _add_spreadsheet(p)
    p.set_defaults(func=cmd_sheet_delete)

    # context
    context = groups.add_parser("context", help="Manage the current working spreadsheet")
    context_sub = context.add_subparsers(dest="command", required=True)
    p = context_sub.add_parser("set", help="Set the current spreadsheet")
    _add_spreadsheet(p)
    p.set_defaults(func=cmd_context_set)
    p = context_sub.add_parser("get", help="Show the current spreadsheet")
    _add_format_option(p)
    p.set_defaults(func=cmd_context_get)

    # data
    data = groups.add_parser("data", help="Read and write cell values")
    data_sub = data.add_subparsers(dest="command", required=True)
    p = data_sub.add_parser("read", help="Read a range")
    _add_spreadsheet(p)
    p.add_argument("range")
    _add_format_option(p)
    p.set_defaults(func=cmd_data_read)
    for name, func, help_text in (
        ("write", cmd_data_write, "Write a value or a JSON 2D array"),
        ("append", cmd_data_append, "Append rows after existing data"),
    ):
        p = data_sub.add_parser(name, help=help_text)
        _add_spreadsheet(p)
        p.add_argument("range")
        p.add_argument("value", nargs="?", default=None)
        p.add_argument("--json", help="Path to JSON file with values")
        p.set_defaults(func=func)
    p = data_sub.add_parser("clear", help="Clear a range")
    _add_spreadsheet(p)
    p.add_argument("range")
    p.set_defaults(func=cmd_data_clear)
    p = data_sub.add_parser("batch", help="Write several ranges from a JSON file")
    _add_spreadsheet(p)
    p.add_argument("--json", required=True, help="JSON array of {range, values} objects")
    p.set_defaults(func=cmd_data_batch)

    # tab
    tab = groups.add_parser("tab", help="Manage sheets within a spreadsheet")
    tab_sub = tab.add_subparsers(dest="command", required=True)
    p = tab_sub.add_parser("list", help="List sheets")
    _add_spreadsheet(p)
    _add_format_option(p)
    p.set_defaults(func=cmd_tab_list)
    p = tab_sub.add_parser("add", help="Add a sheet")
    _add_spreadsheet(p)
    p.add_argument("title")
    p.set_defaults(func=cmd_tab_add)
    p = tab_sub.add_parser("delete", help="Delete a sheet")
    _add_spreadsheet(p)
    p.add_argument("title")
    p.set_defaults(func=cmd_tab_delete)
    p = tab_sub.add_parser("rename", help="Rename a sheet")
    _add_spreadsheet(p)
    p.add_argument("old_title")
    p.add_argument("new_title")
    p.set_defaults(func=cmd_tab_rename)

    # format
    fmt = groups.add_parser("format", help="Format cells, borders and dimensions")
    fmt_sub = fmt.add_subparsers(dest="command", required=True)
    p = fmt_sub.add_parser("cells", help="Apply cell formatting to a range")
    _add_spreadsheet(p)
    p.add_argument("range", help="A1 range such as A1:D1 or 'My Sheet'!A1:D1")
    p.add_argument("--bg-color", help="Background color (hex #RRGGBB or named color)")
    p.add_argument("--text-color", help="Text color (hex #RRGGBB or named color)")
    for flag in ("bold", "italic", "underline", "strikethrough"):
        p.add_argument(f"--{flag}", action=argparse.BooleanOptionalAction, default=None)
    p.add_argument("--font-size", type=int)
    p.add_argument("--font-family")
    p.add_argument("--align", type=_upper, choices=HORIZONTAL_ALIGNMENTS)
    p.add_argument("--valign", type=_upper, choices=VERTICAL_ALIGNMENTS)
    p.add_argument("--wrap", type=_upper, choices=WRAP_STRATEGIES)
    p.add_argument("--number-format", type=_upper, choices=NUMBER_FORMAT_TYPES)
    p.add_argument("--number-pattern", help="Number format pattern, e.g. 0.00%%")
    p.add_argument("--json", help="Load a CellFormat object from a JSON file")
    p.add_argument("--dry-run", action="store_true", help="Print the request instead")
    p.set_defaults(func=cmd_format_cells)

    p = fmt_sub.add_parser("borders", help="Apply borders to a range")
    _add_spreadsheet(p)
    p.add_argument("range")
    p.add_argument("--all", action="store_true", help="Apply to all four edges")
    for edge in BORDER_EDGES:
        p.add_argument(f"--{edge}", action="store_true")
    p.add_argument("--style", type=_upper, choices=BORDER_STYLES, default="SOLID")
    p.add_argument("--color", help="Border color (default: black)")
    p.add_argument("--json", help="Load border config from a JSON file")
    p.add_argument("--dry-run", action="store_true", help="Print the request instead")
    p.set_defaults(func=cmd_format_borders)

    for name, func, unit, help_text in (
        ("resize-columns", cmd_format_resize_columns, "col", "Set column width (0-based)"),
        ("resize-rows", cmd_format_resize_rows, "row", "Set row height (1-based)"),
    ):
        p = fmt_sub.add_parser(name, help=help_text)
        _add_spreadsheet(p)
        p.add_argument("sheet_title")
        p.add_argument("start", type=int, metavar=f"start-{unit}")
        p.add_argument("end", type=int, metavar=f"end-{unit}")
        p.add_argument("pixel_size", type=int)
        p.set_defaults(func=func)
    p = fmt_sub.add_parser("auto-resize-columns", help="Fit columns to content (0-based)")
    _add_spreadsheet(p)
    p.add_argument("sheet_title")
    p.add_argument("start", type=int, metavar="start-col")
    p.add_argument("end", type=int, metavar="end-col")
    p.set_defaults(func=cmd_format_auto_resize_columns)

    # script
    script = groups.add_parser("script", help="Manage Apps Script projects")
    script_sub = script.add_subparsers(dest="command", required=True)
    p = script_sub.add_parser("list", help="Show the script bound to a spreadsheet")
    _add_spreadsheet(p)
    _add_format_option(p)
    p.set_defaults(func=cmd_script_list)
    p = script_sub.add_parser("create", help="Create a bound script project")
    _add_spreadsheet(p)
    p.add_argument("title")
    _add_format_option(p)
    p.set_defaults(func=cmd_script_create)
    p = script_sub.add_parser("deploy", help="Push a local file to the bound script")
    _add_spreadsheet(p)
    p.add_argument("script_file")
    p.add_argument("--title", help="Project title when creating")
    p.add_argument("--create-if-missing", action="store_true")
    p.set_defaults(func=cmd_script_deploy)
    p = script_sub.add_parser("read", help="Print script source")
    p.add_argument("script_id")
    p.add_argument("file_name", nargs="?", default="Code")
    p.add_argument("--all", action="store_true", help="Read every file")
    p.add_argument("--format", choices=("code", "json"), default="code")
    p.set_defaults(func=cmd_script_read)
    p = script_sub.add_parser("write", help="Replace or add one file")
    p.add_argument("script_id")
    p.add_argument("file_name")
    p.add_argument("source_file")
    p.add_argument("--type", type=_upper, choices=FILE_TYPES, default=None)
    p.set_defaults(func=cmd_script_write)
    p = script_sub.add_parser("run", help="Run a function")
    p.add_argument("script_id")
    p.add_argument("function")
    p.add_argument("args", nargs="*", help="Arguments, parsed as JSON when possible")
    p.add_argument("--dev-mode", action="store_true")
    p.set_defaults(func=cmd_script_run)
    p = script_sub.add_parser("functions", help="List functions")
    p.add_argument("script_id")
    _add_format_option(p)
    p.set_defaults(func=cmd_script_functions)
    p = script_sub.add_parser("version-create", help="Create a version")
    p.add_argument("script_id")
    p.add_argument("description")
    p.set_defaults(func=cmd_script_version_create)
    p = script_sub.add_parser("versions", help="List versions")
    p.add_argument("script_id")
    _add_format_option(p)
    p.set_defaults(func=cmd_script_versions)
    p = script_sub.add_parser("deployments", help="List deployments")
    p.add_argument("script_id")
    _add_format_option(p)
    p.set_defaults(func=cmd_script_deployments)
    p = script_sub.add_parser("deployment-create", help="Create a deployment")
    p.add_argument("script_id")
    p.add_argument("description")
    p.add_argument("--version", type=int, help="Version to deploy (default: new version)")
    p.set_defaults(func=cmd_script_deployment_create)
    p = script_sub.add_parser("template-list", help="List Apps Script templates")
    _add_format_option(p)
    p.set_defaults(func=cmd_script_template_list)
    p = script_sub.add_parser("template-show", help="Show a template")
    p.add_argument("template")
    p.set_defaults(func=cmd_script_template_show)
    p = script_sub.add_parser("template-apply", help="Install a template in the bound script")
    _add_spreadsheet(p)
    p.add_argument("template")
    p.add_argument("--config", dest="config_file", help="JSON file of template variables")
    p.add_argument("--var", action="append", metavar="KEY=VALUE", help="Template variable")
    p.add_argument("--file-name", default="Code", help="Script file to write (default: Code)")
    p.set_defaults(func=cmd_script_template_apply)

    return parser


async def _dispatch(args: argparse.Namespace, verbose_errors: bool) -> int:
    try:
        result: int = await args.func(args)
        return result
    except SheetFreakError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        if verbose_errors:
            print(json.dumps(e.to_dict(), indent=2), file=sys.stderr)
        return 1


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)
    args.config = ConfigManager()

    try:
        settings = args.config.settings()
    except SheetFreakError as e:
        print(f"Error: {e.message}", file=sys.stderr)
        return 1

    setup_logging(
        "DEBUG" if args.verbose else settings.log_level, json_logs=settings.log_json
    )
    if getattr(args, "format", "unset") is None:
        args.format = settings.output_format

    return asyncio.run(_dispatch(args, args.verbose or settings.verbose_errors))


if __name__ == "__main__":
    sys.exit(main())
