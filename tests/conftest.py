from __future__ import annotations

"""
Global Pytest Configuration and Fixtures.

This module sets up the testing environment, including:
1. Path manipulation to ensure the 'src' directory is importable.
2. A small sample site shared by the stage, engine and CLI tests.
"""

import os
import sys
from pathlib import Path
from typing import Any, Dict

import pytest

# -----------------------------------------------------------------------------
# Path Configuration
# -----------------------------------------------------------------------------
_SRC_PATH = os.path.abspath(os.path.join(os.path.dirname(__file__), "..", "src"))
if _SRC_PATH not in sys.path:
    sys.path.insert(0, _SRC_PATH)


# -----------------------------------------------------------------------------
# Shared Fixtures
# -----------------------------------------------------------------------------
SAMPLE_HTML = """<!DOCTYPE html>
<html>
  <head>
    <title>Sample &amp; Site</title>
    <!-- page styles -->
    <style type="text/css">
      body   {  color : red ;  }
    </style>
    <script type="application/ld+json">
      {"@context": "https://schema.org",   "@type": "WebSite"}
    </script>
  </head>
  <body>
    <p>Hello   &copy;   world</p>
    <pre>  keep
      this   spacing  </pre>
    <script>
      // greet the user
      function greet(name) {
        return "Hello, " + name;
      }
    </script>
    <script data-preserve>
      var   untouched   =   1 ;
    </script>
  </body>
</html>
"""


@pytest.fixture
def site_tree(tmp_path: Path) -> Path:
    """
    Create a representative static site.

    Structure:
    /site
      index.html
      app.js            (plain script with comments)
      lib.min.js        (already minified, must be byte-copied)
      style.css
      robots.txt        (loose 'other' file)
      package.json      (excluded name)
      /assets
        logo.svg
        site.css        (mirror must not raw-copy it)
        /fonts
          a.woff2
      /docs
        page.htm
      /node_modules
        /dep
          index.js      (excluded directory)
    """
    site = tmp_path / "site"
    site.mkdir()

    (site / "index.html").write_text(SAMPLE_HTML, encoding="utf-8")
    (site / "app.js").write_text(
        "// app entry\nfunction add(a, b) {\n    return a + b;\n}\n\n/* end */\n",
        encoding="utf-8",
    )
    (site / "lib.min.js").write_text("var a=1;\n/* kept */\n", encoding="utf-8")
    (site / "style.css").write_text("/* c */\nbody {\n  margin : 0 ;\n}\n", encoding="utf-8")
    (site / "robots.txt").write_text("User-agent: *\n", encoding="utf-8")
    (site / "package.json").write_text('{"name": "site"}', encoding="utf-8")

    assets = site / "assets"
    (assets / "fonts").mkdir(parents=True)
    (assets / "logo.svg").write_text("<svg></svg>", encoding="utf-8")
    (assets / "site.css").write_text("a {  color : blue ; }\n", encoding="utf-8")
    (assets / "fonts" / "a.woff2").write_bytes(b"\x00\x01binary")

    docs = site / "docs"
    docs.mkdir()
    (docs / "page.htm").write_text("<html><body>  <p>Doc</p>  </body></html>", encoding="utf-8")

    dep = site / "node_modules" / "dep"
    dep.mkdir(parents=True)
    (dep / "index.js").write_text("module.exports = 1;", encoding="utf-8")

    return site


@pytest.fixture
def build_config(site_tree: Path, tmp_path: Path) -> Dict[str, Any]:
    """Return a complete configuration targeting the sample site."""
    return {
        "source_root": str(site_tree),
        "output_root": str(tmp_path / "out"),
        "exclude_dirs": ["node_modules", "scripts", ".git", ".github", ".vscode", "dist"],
        "exclude_names": ["package.json", "package-lock.json"],
        "static_dirs": ["assets", "images", "img", "public", "fonts", "icons"],
        "mirror_skip_exts": [".js", ".css"],
        "preserve_attr": "data-preserve",
        "js_backend": "rjsmin",
        "copy_other_files": False,
        "workers": 1,
    }
