"""
roster_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration
    files or environment variables directly.

Architecture position:
    Configuration -- sits beside ``roster_kernel`` and below
    ``roster_services``.  The kernel MUST NEVER import from
    ``roster_config``.

Failure modes:
    - ``FileNotFoundError`` -- override file does not exist.
    - ``ValueError`` -- unknown keys or invalid values.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``ROSTER_CONFIG_TRACE`` log entry with the config checksum, tying
    every computed cost back to the parameters that produced it.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from roster_config.loader import compute_checksum, load_config
from roster_config.schema import EngineConfig, OutgoingSharePolicy

_logger = logging.getLogger("roster_kernel.config")

CONFIG_PATH_ENV = "ROSTER_CONFIG_PATH"


def get_active_config(path: Path | str | None = None) -> EngineConfig:
    """The ONLY public configuration entrypoint.

    Args:
        path: Optional YAML override file.  When omitted, the file named
            by the ``ROSTER_CONFIG_PATH`` environment variable is used if
            set; otherwise only the bundled defaults apply.

    Raises:
        FileNotFoundError: If the override file does not exist.
        ValueError: If configuration validation fails.
    """
    override = path if path is not None else os.environ.get(CONFIG_PATH_ENV)
    config = load_config(Path(override)) if override else load_config()

    _logger.info(
        "ROSTER_CONFIG_TRACE",
        extra={
            "trace_type": "ROSTER_CONFIG_TRACE",
            "config_source": str(override) if override else "defaults",
            "checksum": compute_checksum(config),
            "outgoing_share_policy": config.outgoing_share_policy,
            "portfolio_max_workers": config.portfolio_max_workers,
        },
    )
    return config


__all__ = [
    "CONFIG_PATH_ENV",
    "EngineConfig",
    "OutgoingSharePolicy",
    "get_active_config",
]
