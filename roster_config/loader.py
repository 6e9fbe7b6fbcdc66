"""
Configuration Loader (``roster_config.loader``).

Responsibility
--------------
Loads YAML files and parses them into ``EngineConfig``.  Services never
call this directly; the runtime entry point is
``roster_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Top-level value that is not a mapping  -> ``ValueError``.
* Unknown or invalid keys  -> ``ValueError`` from ``EngineConfig``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from roster_config.schema import EngineConfig

DEFAULTS_PATH = Path(__file__).parent / "defaults.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
        ValueError: if the document is not a mapping.
    """
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    return data


def load_config(*paths: Path) -> EngineConfig:
    """
    Merge the YAML files in order (later keys win) and build the config.

    The bundled defaults are always applied first.
    """
    merged: dict[str, Any] = dict(load_yaml_file(DEFAULTS_PATH))
    for path in paths:
        merged.update(load_yaml_file(path))
    return EngineConfig.from_dict(merged)


def compute_checksum(config: EngineConfig) -> str:
    """Deterministic SHA-256 over the canonical JSON form of the config."""
    canonical = json.dumps(config.to_dict(), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()
