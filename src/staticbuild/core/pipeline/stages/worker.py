from __future__ import annotations

"""
Atomic Build Workers.

Encapsulates the processing of a single file unit. Each worker reads one
source file, transforms it and writes the result to the mirrored relative
path under the output root. Workers never raise: they return a status
dictionary that the orchestrator aggregates, so they are safe to run inside
a ThreadPoolExecutor.
"""

import logging
import os
import re
from typing import Any, Dict, Optional, Sequence

from staticbuild.core.processing.markup import transform_markup
from staticbuild.core.processing.minifier import minify_code
from staticbuild.domain.build_models import FileRecord, PathKind
from staticbuild.domain.constants import DEFAULT_JS_BACKEND, DEFAULT_PRESERVE_ATTR
from staticbuild.infra.fs import copy_file, read_text_file, write_text_file

logger = logging.getLogger(__name__)


# -----------------------------------------------------------------------------
# PUBLIC API
# -----------------------------------------------------------------------------

def output_path_for(record: FileRecord, output_root: str) -> str:
    """Destination of a record: the same relative path under the output root."""
    return os.path.join(output_root, *record.parts)


def process_code_file(
        record: FileRecord,
        kind: PathKind,
        output_root: str,
        js_backend: str = DEFAULT_JS_BACKEND,
) -> Dict[str, Any]:
    """
    Minify (or byte-copy) one standalone script or stylesheet.

    Already-minified files bypass the minifier. When minification fails the
    original content is written instead and the failure is reported.

    Args:
        record: Source file.
        kind: CODE_JS, CODE_CSS or ALREADY_MINIFIED.
        output_root: Destination root.
        js_backend: JavaScript minifier backend.

    Returns:
        Dict[str, Any]: Status with 'ok', 'rel_path', 'kind', 'minified'
                        and 'error' keys.
    """
    dest = output_path_for(record, output_root)
    result: Dict[str, Any] = {
        "ok": True,
        "rel_path": record.rel_path,
        "kind": kind,
        "minified": False,
        "error": "",
    }

    try:
        if kind is PathKind.ALREADY_MINIFIED:
            copy_file(record.file_path, dest)
            logger.debug(f"Copied (already minified): {record.rel_path}")
            return result

        content = read_text_file(record.file_path)
        outcome = minify_code(content, kind, backend=js_backend)
        write_text_file(dest, outcome.content)

        if not outcome.ok:
            logger.warning(f"Minification failed for {record.rel_path}: {outcome.error}. Original kept.")
            result.update({"ok": False, "error": outcome.error})
            return result

        result["minified"] = True
        logger.debug(f"Minified: {record.rel_path}")
        return result

    except UnicodeDecodeError as e:
        # Undecodable source: pass the bytes through untouched
        logger.warning(f"Not UTF-8, copied unchanged: {record.rel_path}: {e}")
        result.update({"ok": False, "error": str(e)})
        try:
            copy_file(record.file_path, dest)
        except OSError as copy_err:
            result["error"] = f"{e}; copy failed: {copy_err}"
        return result

    except OSError as e:
        logger.warning(f"Worker failed for {record.rel_path}: {e}")
        result.update({"ok": False, "error": str(e)})
        return result


def process_markup_file(
        record: FileRecord,
        output_root: str,
        js_backend: str = DEFAULT_JS_BACKEND,
        preserve_attr: str = DEFAULT_PRESERVE_ATTR,
        fragments: Optional[Sequence[re.Pattern]] = None,
) -> Dict[str, Any]:
    """
    Transform one markup document and write it to the output tree.

    A document-level failure skips the file entirely (nothing is written).
    Per-element inline failures are reported as diagnostics while the
    document is still written.

    Args:
        record: Source document.
        output_root: Destination root.
        js_backend: Backend for inline scripts.
        preserve_attr: Per-element opt-out attribute.
        fragments: Fragment patterns for the document minifier.

    Returns:
        Dict[str, Any]: Status with 'ok', 'rel_path', 'written',
                        'diagnostics' and 'error' keys.
    """
    result: Dict[str, Any] = {
        "ok": True,
        "rel_path": record.rel_path,
        "written": False,
        "diagnostics": [],
        "error": "",
    }

    try:
        text = read_text_file(record.file_path)
        outcome = transform_markup(
            text,
            js_backend=js_backend,
            preserve_attr=preserve_attr,
            fragments=list(fragments) if fragments is not None else None,
        )
        if not outcome.ok:
            logger.warning(f"Markup skipped for {record.rel_path}: {outcome.error}")
            result.update({"ok": False, "error": outcome.error})
            return result

        write_text_file(output_path_for(record, output_root), outcome.content)

        for diag in outcome.diagnostics:
            logger.warning(f"{record.rel_path}: {diag}")

        result.update({"written": True, "diagnostics": list(outcome.diagnostics)})
        logger.debug(f"Markup written: {record.rel_path}")
        return result

    except (OSError, UnicodeDecodeError) as e:
        logger.warning(f"Worker failed for {record.rel_path}: {e}")
        result.update({"ok": False, "error": str(e)})
        return result
