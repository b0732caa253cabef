"""Load OIS documents from a URL, local file, or stdin.

This module is the only place oischeck touches the outside world to obtain a
document. It accepts JSON and YAML with automatic format detection and always
returns a ``dict``; anything else is rejected before validation starts.

The single public function is :func:`load_document`. Its result is meant to
be passed to :meth:`~oischeck.validator.OisValidator.validate`.
"""

from __future__ import annotations

import json
import logging
import sys
from pathlib import Path
from typing import Any

import httpx
import yaml

from oischeck.exceptions import DocumentLoadError

logger = logging.getLogger(__name__)


def load_document(source: str) -> dict[str, Any]:
    """Load an OIS document from URL, file path, or stdin (``"-"``).

    Args:
        source: A URL (http/https), file path, or ``"-"`` for stdin.

    Returns:
        The parsed document.

    Raises:
        DocumentLoadError: If the source cannot be read or parsed, or does
            not contain a JSON/YAML object.
    """
    if source == "-":
        logger.debug("Reading document from stdin")
        content = sys.stdin.read()
        if not content.strip():
            raise DocumentLoadError("No input received from stdin")
        return _parse_content(content, hint="")

    if source.startswith(("http://", "https://")):
        logger.debug("Fetching document from %s", source)
        return _load_from_url(source)

    logger.debug("Reading document from file %s", source)
    return _load_from_file(source)


def _load_from_url(url: str) -> dict[str, Any]:
    """Fetch a document over HTTP, using the content type as a format hint."""
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise DocumentLoadError(
            f"HTTP {exc.response.status_code} fetching document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise DocumentLoadError(f"Failed to fetch document from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"
    return _parse_content(response.text, hint=hint)


def _load_from_file(path: str) -> dict[str, Any]:
    """Read a local document, using the file extension as a format hint."""
    file_path = Path(path)
    if not file_path.is_file():
        raise DocumentLoadError(f"Document not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise DocumentLoadError(f"Failed to read document {path}: {exc}") from exc

    if not content.strip():
        raise DocumentLoadError(f"Document is empty: {path}")

    suffix = file_path.suffix.lower()
    hint = ""
    if suffix == ".json":
        hint = "json"
    elif suffix in (".yaml", ".yml"):
        hint = "yaml"
    return _parse_content(content, hint=hint)


def _parse_content(content: str, hint: str = "") -> dict[str, Any]:
    """Parse *content* as JSON, falling back to YAML unless hinted as JSON.

    Raises:
        DocumentLoadError: If neither format applies or the result is not an object.
    """
    if hint != "yaml":
        try:
            return _ensure_object(json.loads(content))
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise DocumentLoadError(f"Invalid JSON: {exc}") from exc
            json_error = exc
    else:
        json_error = None

    try:
        return _ensure_object(yaml.safe_load(content))
    except yaml.YAMLError as exc:
        msg = "Failed to parse document as JSON or YAML"
        if json_error is not None:
            msg += f"\n  JSON error: {json_error}"
        msg += f"\n  YAML error: {exc}"
        raise DocumentLoadError(msg) from exc


def _ensure_object(result: Any) -> dict[str, Any]:
    if not isinstance(result, dict):
        kind = type(result).__name__ if result is not None else "empty document"
        raise DocumentLoadError(f"Document must be a JSON/YAML object (got {kind})")
    return result
