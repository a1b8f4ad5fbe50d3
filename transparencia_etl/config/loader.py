from __future__ import annotations

import json
import os
from dataclasses import replace
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import DEFAULT_TRAILING_NOTE_COLUMNS, ConverterConfig, EtlConfig

"""Config loader.

Responsibilities:
- Load YAML config (default ``config/etl.yml``)
- Validate against the bundled JSON schema (``config_schema.json``)
- Apply defaults for every missing key
- Apply environment overrides (ETL_SOURCE_DIRECTORY / ETL_OUTPUT_DIRECTORY / ETL_WORKERS)

優先順位: CLI 引数 > 環境変数 (.env 含む) > YAML > 既定値。CLI 引数は cli 側で適用する。
"""

__all__ = [
    "ConfigError",
    "DEFAULT_CONFIG_PATH",
    "SCHEMA_PATH",
    "load_config",
    "apply_env_overrides",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/etl.yml")

ENV_SOURCE_DIRECTORY = "ETL_SOURCE_DIRECTORY"
ENV_OUTPUT_DIRECTORY = "ETL_OUTPUT_DIRECTORY"
ENV_WORKERS = "ETL_WORKERS"


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails validation (unknown keys, wrong types, ...).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def _build_config(data: dict[str, Any]) -> EtlConfig:
    conv_raw = data.get("converter") or {}
    converter = ConverterConfig(
        kind=conv_raw.get("kind", "pandas"),
        command=tuple(conv_raw.get("command", ())),
        delimiter=conv_raw.get("delimiter", ","),
        sheet=conv_raw.get("sheet", 0),
    )
    notes = dict(DEFAULT_TRAILING_NOTE_COLUMNS)
    notes.update(data.get("trailing_note_columns") or {})
    return EtlConfig(
        source_directory=data.get("source_directory", "."),
        output_directory=data.get("output_directory", "./output"),
        workers=data.get("workers", 4),
        worker_mode=data.get("worker_mode", "process"),
        skip_header_lines=data.get("skip_header_lines", 6),
        delimiter=data.get("delimiter", ";"),
        trailing_note_columns=notes,
        converter=converter,
    )


def apply_env_overrides(cfg: EtlConfig, environ: dict[str, str] | None = None) -> EtlConfig:
    """Return a copy of cfg with ETL_* environment variables applied."""
    env = os.environ if environ is None else environ
    changes: dict[str, Any] = {}
    if env.get(ENV_SOURCE_DIRECTORY):
        changes["source_directory"] = env[ENV_SOURCE_DIRECTORY]
    if env.get(ENV_OUTPUT_DIRECTORY):
        changes["output_directory"] = env[ENV_OUTPUT_DIRECTORY]
    if env.get(ENV_WORKERS):
        try:
            workers = int(env[ENV_WORKERS])
        except ValueError as e:
            raise ConfigError(f"{ENV_WORKERS} must be an integer: {env[ENV_WORKERS]!r}") from e
        if workers < 1:
            raise ConfigError(f"{ENV_WORKERS} must be >= 1: {workers}")
        changes["workers"] = workers
    if not changes:
        return cfg
    return replace(cfg, **changes)


def load_config(path: Path | None = None) -> EtlConfig:
    """Load the YAML config.

    With ``path=None`` the default ``config/etl.yml`` is used when present,
    otherwise built-in defaults apply. An explicit path that does not exist is
    an error.
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.exists():
            return EtlConfig()
        path = DEFAULT_CONFIG_PATH
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")

    _validate_config_schema(data)
    return _build_config(data)
