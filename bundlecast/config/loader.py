# Copyright 2025 Roger Cibrian
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""Service configuration loader for Bundlecast.

Reads the YAML file that tells the CLI (or a host process) where the
catalog lives, how to resolve storage URIs, and which request defaults to
apply.

Merge Behavior
--------------
The file is deep-merged over built-in defaults with "last wins" semantics:
  - **Dicts**: Recursively merged (keys from overlay override base)
  - **Lists**: Completely replaced (NOT appended/extended)
  - **Scalars**: Overwritten (strings, numbers, booleans)

Built-in defaults::

    defaults:
      channel: production
    catalog:
      type: file
      timeout: 30
    storage:
      passthrough: true

Path Resolution
---------------
Relative paths are resolved against the CONFIG FILE location, so a config
and its catalog can be moved together. Currently resolved paths:
  - catalog.path

Functions
---------
load_service_config : function
    Load, merge, and validate a service configuration (main public API).

Error Handling
--------------
- ConfigError: Missing file, YAML parse errors, empty files, or invalid
  sections
- All errors are chained with "from err" for better debugging

Examples
--------
Basic usage:

    >>> from pathlib import Path
    >>> from bundlecast.config import load_service_config
    >>> cfg = load_service_config(Path("bundlecast.yaml"))
    >>> cfg["catalog"]["type"]
    'file'
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Any

import yaml

from bundlecast.exceptions import ConfigError

CATALOG_TYPES: tuple[str, ...] = ("file", "http")

DEFAULT_CONFIG: dict[str, Any] = {
    "defaults": {"channel": "production"},
    "catalog": {"type": "file", "timeout": 30},
    "storage": {"passthrough": True},
}


# -------------------------------
# YAML helpers
# -------------------------------


def _load_yaml_file(p: Path) -> Any:
    """Load a YAML file and return the parsed Python object.

    Raises:
        ConfigError: When the file does not exist, is invalid YAML, or is
            empty.
    """
    if not p.exists():
        raise ConfigError(f"file not found: {p}")
    try:
        with p.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as err:
        raise ConfigError(f"Error parsing YAML: {p}: {err}") from err
    if data is None:
        raise ConfigError(f"YAML file is empty: {p}")
    return data


# -------------------------------
# Merge logic
# -------------------------------


def _deep_merge_dicts(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    """Deep-merge two dicts with "overlay wins".

    Rules:
      - dict + dict -> deep merge
      - list + list -> overlay REPLACES base (not concatenated)
      - everything else -> overlay overwrites base

    This function does not mutate inputs; returns a new dict.
    """
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge_dicts(result[k], v)
        else:
            # Replace lists and scalars entirely
            result[k] = v
    return result


# -------------------------------
# Path resolution
# -------------------------------


def _resolve_known_paths(cfg: dict[str, Any], config_dir: Path) -> None:
    """Resolve relative path fields inside the merged config.

    Currently handled:
      - cfg["catalog"]["path"]

    Modifies cfg in place.
    """
    catalog = cfg.get("catalog")
    if not isinstance(catalog, dict):
        return
    raw_path = catalog.get("path")
    if isinstance(raw_path, str) and raw_path:
        p = Path(raw_path)
        if not p.is_absolute():
            catalog["path"] = str((config_dir / p).resolve())


# -------------------------------
# Validation
# -------------------------------


def _validate_config(cfg: dict[str, Any], config_path: Path) -> None:
    for section in ("defaults", "catalog", "storage"):
        if not isinstance(cfg.get(section), dict):
            raise ConfigError(f"{section} section must be a mapping: {config_path}")

    catalog = cfg["catalog"]
    catalog_type = catalog.get("type")
    if catalog_type not in CATALOG_TYPES:
        raise ConfigError(
            f"catalog.type must be one of {', '.join(CATALOG_TYPES)}, "
            f"got {catalog_type!r}"
        )
    if catalog_type == "file" and not catalog.get("path"):
        raise ConfigError("catalog.path is required when catalog.type is 'file'")
    if catalog_type == "http" and not catalog.get("url"):
        raise ConfigError("catalog.url is required when catalog.type is 'http'")

    headers = catalog.get("headers")
    if headers is not None and not isinstance(headers, dict):
        raise ConfigError("catalog.headers must be a mapping")

    timeout = catalog.get("timeout")
    if isinstance(timeout, bool) or not isinstance(timeout, (int, float)) or timeout <= 0:
        raise ConfigError(f"catalog.timeout must be a positive number, got {timeout!r}")

    channel = cfg["defaults"].get("channel")
    if not isinstance(channel, str) or not channel:
        raise ConfigError("defaults.channel must be a non-empty string")


# -------------------------------
# Public API
# -------------------------------


def load_service_config(config_path: Path) -> dict[str, Any]:
    """Load, merge, and validate a service configuration file.

    Steps
      1) Read the YAML file (must be a mapping).
      2) Merge it over the built-in defaults.
      3) Resolve catalog.path relative to the config file.
      4) Validate the catalog and defaults sections.

    Args:
        config_path: Path to the YAML configuration file.

    Returns:
        The merged configuration dict.

    Raises:
        ConfigError: On a missing file, YAML errors, empty files, or
            invalid sections. The storage section is checked when the
            resolver is built (see build_storage_resolver()).

    """
    from bundlecast.logging import get_global_logger

    logger = get_global_logger()

    config_path = Path(config_path).resolve()
    logger.verbose("CONFIG", f"Loading config: {config_path}")

    raw = _load_yaml_file(config_path)
    if not isinstance(raw, dict):
        raise ConfigError(f"top-level YAML must be a mapping (dict): {config_path}")

    merged = _deep_merge_dicts(copy.deepcopy(DEFAULT_CONFIG), raw)
    _resolve_known_paths(merged, config_path.parent)
    _validate_config(merged, config_path)

    logger.verbose(
        "CONFIG",
        f"Catalog: {merged['catalog']['type']}, "
        f"default channel: {merged['defaults']['channel']}",
    )
    logger.debug("CONFIG", f"Effective config: {merged}")
    return merged
