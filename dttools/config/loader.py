from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..errors import ConfigFault
from ..models.profile import (
    CellReplacement,
    HeaderMapping,
    IonChromatographyProfile,
    ProfileKind,
    ReportTemplate,
    SentinelTag,
    TextReplacement,
    TransformProfile,
    VocNmhcProfile,
)

"""Config loader.

Responsibilities:
- Load the bundled YAML profile tables (config/profiles/<name>.yml)
- Validate them against config/schemas/<name>.schema.json
- Build the frozen profile models
- Read the optional boilerplate text file (proton_config.txt), falling back to
  the profile's default text when it is absent or unreadable
"""

__all__ = [
    "ConfigError",
    "PROFILES_DIR",
    "SCHEMAS_DIR",
    "available_profiles",
    "load_profile",
    "read_header_text",
    "load_header_text",
]

logger = logging.getLogger(__name__)

_config_dir = Path(__file__).parent
PROFILES_DIR = _config_dir / "profiles"
SCHEMAS_DIR = _config_dir / "schemas"


class ConfigError(Exception):
    pass


def available_profiles() -> list[str]:
    return sorted(p.stem for p in PROFILES_DIR.glob("*.yml"))


def _validate_profile_schema(name: str, data: dict[str, Any], schemas_dir: Path) -> None:
    """Validate profile data against its JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            profile data fails validation.
    """
    schema_path = schemas_dir / f"{name}.schema.json"
    if not schema_path.exists():
        raise ConfigError(f"profile schema not found: {schema_path}")

    try:
        schema = json.loads(schema_path.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"profile validation failed: {e.message}") from e


def _build_ion_profile(data: dict[str, Any]) -> IonChromatographyProfile:
    tpl = data["template"]
    template = ReportTemplate(
        sheet_title=tpl["sheet_title"],
        notice=tpl["notice"],
        header_rows=[list(map(str, row)) for row in tpl["header_rows"]],
        header_start_row=tpl["header_start_row"],
        data_start_row=tpl["data_start_row"],
        notice_fill=tpl["notice_fill"],
        header_fill=tpl["header_fill"],
        time_fill=tpl["time_fill"],
        column_widths=dict(tpl.get("column_widths") or {}),
        default_width=tpl.get("default_width"),
    )
    return IonChromatographyProfile(
        name=data["name"],
        time_column=data["time_column"],
        date_column=data.get("date_column"),
        time_destination=data["time_destination"],
        columns=HeaderMapping(columns=dict(data["columns"])),
        flag_markers=tuple(data["flag_markers"]),
        sentinel_values=tuple(data["sentinel_values"]),
        template=template,
        config_file=data["config_file"],
        default_header_text=data["default_header_text"],
        missing_tokens=tuple(data.get("missing_tokens", [])),
    )


def _build_voc_profile(data: dict[str, Any]) -> VocNmhcProfile:
    renamed = set(data["sheet_renames"].values())
    cell_replacements = tuple(CellReplacement(**c) for c in data.get("cell_replacements", []))
    for c in cell_replacements:
        if c.sheet not in renamed:
            # 対象シートはリネーム後の名前で指定する
            raise ConfigError(f"cell replacement targets unknown sheet '{c.sheet}' ({c.cell})")
    return VocNmhcProfile(
        name=data["name"],
        sheet_renames=dict(data["sheet_renames"]),
        replacements=tuple(TextReplacement(**r) for r in data["replacements"]),
        cell_replacements=cell_replacements,
        sentinel_tags=tuple(SentinelTag(**s) for s in data.get("sentinel_tags", [])),
        strip_parentheses_from_row=data["strip_parentheses_from_row"],
        highlight_fill=data["highlight_fill"],
    )


_BUILDERS = {
    ProfileKind.ION_CHROMATOGRAPHY.value: _build_ion_profile,
    ProfileKind.VOC_NMHC.value: _build_voc_profile,
}


def load_profile(
    name: str, profiles_dir: Path | None = None, schemas_dir: Path | None = None
) -> TransformProfile:
    """Load, validate and build the named profile."""
    profiles_dir = profiles_dir or PROFILES_DIR
    schemas_dir = schemas_dir or SCHEMAS_DIR
    path = profiles_dir / f"{name}.yml"
    if not path.exists():
        raise ConfigError(f"profile not found: {name} ({path})")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"profile {name} must be a mapping, got {type(data).__name__}")

    _validate_profile_schema(name, data, schemas_dir)

    builder = _BUILDERS.get(data["kind"])
    if builder is None:  # pragma: no cover (schema const で弾かれる)
        raise ConfigError(f"unknown profile kind: {data['kind']}")
    return builder(data)


def read_header_text(path: Path) -> str | None:
    """Read the boilerplate text file.

    Returns None when the file does not exist.

    Raises:
        ConfigFault: the file exists but cannot be read or decoded
    """
    if not path.exists():
        return None
    try:
        return path.read_text(encoding="utf-8").strip()
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigFault(f"cannot read config file {path}: {e}") from e


def load_header_text(profile: IonChromatographyProfile, directory: Path | None = None) -> str:
    """Resolve the report header text (cell A2) for a run.

    Looks for the profile's config file in the working directory unless another
    directory is given. Unreadable files fall back to the default text.
    """
    path = (directory or Path.cwd()) / profile.config_file
    try:
        text = read_header_text(path)
    except ConfigFault as e:
        logger.warning(f"config: {e}; using default header text")
        return profile.default_header_text
    if text is None:
        logger.debug(f"config file not found: {path}; using default header text")
        return profile.default_header_text
    return text
