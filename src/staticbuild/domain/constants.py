from __future__ import annotations

"""
Domain Constants and Static Data Structures.

Centralizes the fixed build vocabulary: exclusion tokens, static directory
names, extension families and the markers recognized inside markup documents.
"""

import re
from typing import Final, FrozenSet, List, Tuple

APP_NAME = "StaticBuild"
APP_VERSION = "1.0.0"

DEFAULT_OUTPUT_DIR = "dist"

# -----------------------------------------------------------------------------
# EXCLUSION AND MIRROR DEFAULTS
# -----------------------------------------------------------------------------

DEFAULT_EXCLUDE_DIRS: Tuple[str, ...] = (
    "node_modules", "scripts", ".git", ".github", ".vscode", "dist",
)

DEFAULT_EXCLUDE_NAMES: Tuple[str, ...] = (
    "package.json", "package-lock.json",
)

# Only the contents of these top-level directories are copied (avoids assets/assets)
DEFAULT_STATIC_DIRS: Tuple[str, ...] = (
    "assets", "images", "img", "public", "fonts", "icons",
)

# Never raw-copied by the mirror, they go through the code minifier
DEFAULT_MIRROR_SKIP_EXTS: Tuple[str, ...] = (".js", ".css")

# -----------------------------------------------------------------------------
# CLASSIFICATION
# -----------------------------------------------------------------------------

MINIFIED_NAME_PATTERN: Final[re.Pattern] = re.compile(r"\.min\.(js|css)$", re.IGNORECASE)

JS_EXTENSIONS: FrozenSet[str] = frozenset({".js"})
CSS_EXTENSIONS: FrozenSet[str] = frozenset({".css"})
MARKUP_EXTENSIONS: FrozenSet[str] = frozenset({".html", ".htm"})

# -----------------------------------------------------------------------------
# MARKUP MARKERS
# -----------------------------------------------------------------------------

DEFAULT_PRESERVE_ATTR = "data-preserve"
LD_JSON_TYPE = "application/ld+json"
MODULE_TYPE = "module"

# Script types whose body is classic JavaScript
JS_MIME_TYPES: FrozenSet[str] = frozenset({
    "",
    "text/javascript",
    "application/javascript",
    "application/x-javascript",
    "text/ecmascript",
    "application/ecmascript",
    "text/jscript",
    "text/livescript",
})

JS_BACKENDS: List[str] = ["rjsmin", "terser", "auto"]
DEFAULT_JS_BACKEND = "auto"
