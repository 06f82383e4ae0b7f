"""Config loader — merges a YAML file, environment variables and CLI overrides."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

import yaml

from prshots.schemas.config import CaptureConfig

# Environment variable -> CaptureConfig field
ENV_VARS = {
    "GITHUB_TOKEN": "token",
    "REPO_OWNER": "owner",
    "REPO_NAME": "repo",
    "GITHUB_AUTHOR": "author",
    "BROWSER_URL": "browser_endpoint",
    "OUTPUT_DIR": "output_directory",
    "BATCH_SIZE": "batch_size",
}


def _read_yaml(path: Path) -> dict[str, Any]:
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    raw = yaml.safe_load(path.read_text())
    # An empty file is an empty mapping; everything may come from the environment.
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ValueError(f"Config file must be a YAML mapping, got {type(raw).__name__}")
    return raw


def load_config(
    path: str | Path | None = None,
    *,
    overrides: dict[str, Any] | None = None,
    environ: dict[str, str] | None = None,
) -> CaptureConfig:
    """Load and validate the capture config.

    Precedence, lowest to highest: YAML file, environment variables, then
    ``overrides`` (``None`` values are ignored so unset CLI options don't
    clobber anything).

    Raises ``FileNotFoundError`` if ``path`` doesn't exist, ``ValueError`` if
    the YAML isn't a mapping and ``pydantic.ValidationError`` if the merged
    values are invalid.
    """
    raw: dict[str, Any] = _read_yaml(Path(path)) if path is not None else {}

    env = os.environ if environ is None else environ
    for var, field in ENV_VARS.items():
        value = env.get(var)
        if value:
            raw[field] = value

    for field, value in (overrides or {}).items():
        if value is not None:
            raw[field] = value

    return CaptureConfig(**raw)
