from __future__ import annotations

"""
Configuration Domain Management.

Provides the default build configuration (a plain dictionary consumed by the
pipeline) and loading of JSON configuration files with default fallback.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

from staticbuild.domain.constants import (
    DEFAULT_EXCLUDE_DIRS,
    DEFAULT_EXCLUDE_NAMES,
    DEFAULT_JS_BACKEND,
    DEFAULT_MIRROR_SKIP_EXTS,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_PRESERVE_ATTR,
    DEFAULT_STATIC_DIRS,
)

logger = logging.getLogger(__name__)

CONFIG_KEYS = (
    "source_root",
    "output_root",
    "exclude_dirs",
    "exclude_names",
    "static_dirs",
    "mirror_skip_exts",
    "preserve_attr",
    "js_backend",
    "copy_other_files",
    "workers",
)


# -----------------------------------------------------------------------------
# Configuration Models (Dict-based)
# -----------------------------------------------------------------------------
def get_default_config() -> Dict[str, Any]:
    """
    Generate the default build configuration.
    This dictionary drives the behavior of the Pipeline.

    Returns:
        Dict[str, Any]: Default configuration values.
    """
    base = os.getcwd()
    return {
        # IO Paths
        "source_root": base,
        "output_root": os.path.join(base, DEFAULT_OUTPUT_DIR),

        # Exclusion & Mirroring
        "exclude_dirs": list(DEFAULT_EXCLUDE_DIRS),
        "exclude_names": list(DEFAULT_EXCLUDE_NAMES),
        "static_dirs": list(DEFAULT_STATIC_DIRS),
        "mirror_skip_exts": list(DEFAULT_MIRROR_SKIP_EXTS),

        # Markup
        "preserve_attr": DEFAULT_PRESERVE_ATTR,

        # Minification
        "js_backend": DEFAULT_JS_BACKEND,

        # Optional behavior
        "copy_other_files": False,
        "workers": 1,
    }


# -----------------------------------------------------------------------------
# Persistence Logic
# -----------------------------------------------------------------------------
def load_config(path: Optional[str] = None) -> Dict[str, Any]:
    """
    Load a build configuration from a JSON file merged over the defaults.

    Unknown keys are dropped. A missing or corrupted file is not fatal: the
    defaults are returned and the problem is logged.

    Args:
        path: Path to a JSON object file. None returns the defaults.

    Returns:
        Dict[str, Any]: The merged configuration.
    """
    config = get_default_config()
    if not path:
        return config

    if not os.path.exists(path):
        logger.warning(f"Config file not found at '{path}'. Using defaults.")
        return config

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"Failed to load config '{path}': {e}. Using defaults.")
        return config

    if not isinstance(data, dict):
        logger.warning("Corrupted config file (expected a JSON object). Using defaults.")
        return config

    unknown = sorted(k for k in data if k not in CONFIG_KEYS)
    if unknown:
        logger.warning(f"Ignoring unknown config keys: {', '.join(unknown)}")

    config.update({k: v for k, v in data.items() if k in CONFIG_KEYS})
    logger.debug(f"Configuration loaded from {path}")
    return config
