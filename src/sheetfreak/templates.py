"""Apps Script template registry.

Templates are ``.gs`` files shipped in ``script_templates/``. Each declares a
``const CONFIG = {...}`` object whose string entries are filled in from
user-supplied variables before the source is pushed to a script project.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path

from sheetfreak.exceptions import TemplateConfigError, TemplateNotFoundError

TEMPLATE_DIR = Path(__file__).parent / "script_templates"


@dataclass(frozen=True)
class TemplateVariable:
    name: str
    description: str
    default: str | None = None
    required: bool = False


@dataclass(frozen=True)
class TriggerConfig:
    """A trigger the template expects to be installed."""

    function_name: str
    event_type: str | None = None  # ON_OPEN, ON_EDIT, ON_CHANGE, ON_FORM_SUBMIT
    time_based: str | None = None  # HOURLY, DAILY, WEEKLY, MONTHLY

    def describe(self) -> str:
        return f"{self.function_name} ({self.event_type or self.time_based})"


@dataclass(frozen=True)
class Template:
    name: str
    title: str
    description: str
    file: str
    variables: tuple[TemplateVariable, ...] = ()
    triggers: tuple[TriggerConfig, ...] = field(default_factory=tuple)

    @property
    def path(self) -> Path:
        return TEMPLATE_DIR / self.file


TEMPLATES: tuple[Template, ...] = (
    Template(
        name="auto-refresh",
        title="Auto-Refresh Data",
        description="Automatically refresh data from an external API on a schedule",
        file="auto-refresh.gs",
        variables=(
            TemplateVariable("API_URL", "The URL of your API endpoint", required=True),
            TemplateVariable(
                "TARGET_RANGE",
                "The range where data should be written (e.g., Data!A1)",
                default="Data!A1",
                required=True,
            ),
            TemplateVariable("API_KEY", "Optional API key for authentication"),
        ),
        triggers=(TriggerConfig("refreshData", time_based="HOURLY"),),
    ),
    Template(
        name="custom-menu",
        title="Custom Menu",
        description="Add a custom menu with actions to your spreadsheet",
        file="custom-menu.gs",
        variables=(TemplateVariable("MENU_NAME", "Title of the menu", default="Tools"),),
        triggers=(TriggerConfig("onOpen", event_type="ON_OPEN"),),
    ),
    Template(
        name="on-edit-validator",
        title="Data Validator",
        description="Validate and format data automatically when cells are edited",
        file="on-edit-validator.gs",
        variables=(
            TemplateVariable("SHEET_NAME", "Only validate this sheet (all sheets if empty)"),
            TemplateVariable(
                "INVALID_COLOR", "Background for invalid cells", default="#f4cccc"
            ),
        ),
        triggers=(TriggerConfig("onEdit", event_type="ON_EDIT"),),
    ),
)


def list_templates() -> list[Template]:
    return list(TEMPLATES)


def get_template(name: str) -> Template:
    for template in TEMPLATES:
        if template.name == name:
            return template
    available = ", ".join(t.name for t in TEMPLATES)
    raise TemplateNotFoundError(
        f"Template '{name}' not found. Available templates: {available}",
        {"name": name, "available": [t.name for t in TEMPLATES]},
    )


def get_template_source(name: str) -> str:
    template = get_template(name)
    if not template.path.exists():
        raise TemplateNotFoundError(f"Template file not found: {template.file}")
    return template.path.read_text(encoding="utf-8")


def _escape_js_string(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace("'", "\\'")
        .replace('"', '\\"')
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def apply_template_variables(source: str, variables: dict[str, str]) -> str:
    """Substitute ``KEY: '...'`` entries with the given values.

    Values are escaped for a JavaScript string literal. Keys without a
    matching entry in the source are ignored.
    """
    result = source
    for key, value in variables.items():
        pattern = re.compile(rf"({re.escape(key)}:\s*['\"])([^'\"]*)(['\"])")
        escaped = _escape_js_string(value)
        result = pattern.sub(lambda m, v=escaped: f"{m.group(1)}{v}{m.group(3)}", result)
    return result


def validate_template_config(template: Template, config: dict[str, str]) -> list[str]:
    """Return a list of problems with config; empty when valid."""
    errors: list[str] = []
    for variable in template.variables:
        if variable.required and not config.get(variable.name) and not variable.default:
            errors.append(f"Required variable '{variable.name}' is missing")
    known = {v.name for v in template.variables}
    for key in config:
        if key not in known:
            errors.append(f"Unknown variable '{key}' for template '{template.name}'")
    return errors


def get_configured_template(name: str, config: dict[str, str]) -> str:
    """Return template source with defaults and config applied.

    Raises:
        TemplateNotFoundError: If the template is unknown
        TemplateConfigError: If required variables are missing
    """
    template = get_template(name)
    source = get_template_source(name)

    errors = validate_template_config(template, config)
    if errors:
        raise TemplateConfigError(errors)

    full_config = dict(config)
    for variable in template.variables:
        if not full_config.get(variable.name) and variable.default:
            full_config[variable.name] = variable.default

    return apply_template_variables(source, full_config)
