"""Load and save description documents (local file, URL, or stdin).

The linking engine works on plain dictionaries and never touches the
filesystem or the network. This module is the I/O collaborator the CLI uses
to obtain those dictionaries and to write augmented documents back out.

JSON and YAML are both accepted. Format detection uses the file suffix or
the response ``content-type`` when available and otherwise tries JSON first,
then YAML. No structural validation beyond "the top level is a mapping" is
performed; missing titles and similar gaps are the registry's business.
"""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Any, Iterable

import httpx
import yaml

from oaslink.exceptions import SpecParseError

_JSON_SUFFIXES = frozenset({".json"})
_YAML_SUFFIXES = frozenset({".yaml", ".yml"})


def load_document(source: str) -> dict[str, Any]:
    """Load one description document from a URL, file path, or stdin (``-``).

    Args:
        source: An ``http(s)`` URL, a local file path, or ``-`` for stdin.

    Returns:
        The parsed document.

    Raises:
        SpecParseError: If the source cannot be read or parsed.
    """
    if source == "-":
        return _load_from_stdin()
    if source.startswith(("http://", "https://")):
        return _load_from_url(source)
    return _load_from_file(source)


def load_documents(sources: Iterable[str]) -> list[dict[str, Any]]:
    """Load several documents, preserving the order of *sources*.

    Order matters downstream: the registry keeps the first document of any
    duplicated title, and ``AutoLink<N>`` numbering follows registry order.
    """
    return [load_document(source) for source in sources]


def _load_from_stdin() -> dict[str, Any]:
    try:
        content = sys.stdin.read()
    except OSError as exc:
        raise SpecParseError(f"Failed to read from stdin: {exc}") from exc

    if not content.strip():
        raise SpecParseError("No input received from stdin")
    return _parse_content(content, source="stdin")


def _load_from_url(url: str) -> dict[str, Any]:
    try:
        response = httpx.get(url, timeout=30.0, follow_redirects=True)
        response.raise_for_status()
    except httpx.HTTPStatusError as exc:
        raise SpecParseError(
            f"HTTP {exc.response.status_code} fetching document from {url}"
        ) from exc
    except httpx.RequestError as exc:
        raise SpecParseError(f"Failed to fetch document from {url}: {exc}") from exc

    content_type = response.headers.get("content-type", "")
    hint = ""
    if "json" in content_type:
        hint = "json"
    elif "yaml" in content_type or "yml" in content_type:
        hint = "yaml"
    return _parse_content(response.text, hint=hint, source=url)


def _load_from_file(path: str) -> dict[str, Any]:
    file_path = Path(path)
    if not file_path.is_file():
        raise SpecParseError(f"Document not found: {path}")

    try:
        content = file_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise SpecParseError(f"Failed to read {path}: {exc}") from exc

    if not content.strip():
        raise SpecParseError(f"Document is empty: {path}")
    return _parse_content(content, hint=_format_hint(file_path), source=path)


def _format_hint(path: Path) -> str:
    suffix = path.suffix.lower()
    if suffix in _JSON_SUFFIXES:
        return "json"
    if suffix in _YAML_SUFFIXES:
        return "yaml"
    return ""


def _parse_content(content: str, hint: str = "", source: str = "") -> dict[str, Any]:
    """Parse *content* as JSON or YAML into a mapping.

    JSON is tried first unless *hint* says YAML; valid JSON is also valid
    YAML, but the JSON parser is stricter and gives better errors. An
    explicit ``json`` hint disables the YAML fallback.

    Raises:
        SpecParseError: If neither parser accepts the content, or the top
            level is not a mapping.
    """
    errors: list[str] = []

    if hint != "yaml":
        try:
            return _require_mapping(json.loads(content), source)
        except json.JSONDecodeError as exc:
            if hint == "json":
                raise SpecParseError(f"Invalid JSON in {source or 'input'}: {exc}") from exc
            errors.append(f"JSON error: {exc}")

    try:
        return _require_mapping(yaml.safe_load(content), source)
    except yaml.YAMLError as exc:
        errors.append(f"YAML error: {exc}")

    details = "".join(f"\n  {line}" for line in errors)
    raise SpecParseError(f"Failed to parse {source or 'input'} as JSON or YAML{details}")


def _require_mapping(value: Any, source: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        kind = type(value).__name__ if value is not None else "empty document"
        raise SpecParseError(
            f"Document {source or 'input'} must be a JSON/YAML object (got {kind})"
        )
    return value


def dump_document(document: dict[str, Any], path: Path) -> None:
    """Write *document* to *path* as YAML or JSON, chosen by the file suffix.

    ``.yaml``/``.yml`` files are written with :func:`yaml.safe_dump` keeping
    key order; anything else is written as indented JSON. The write is
    atomic (temp file, then rename).
    """
    from oaslink.config import atomic_write

    if path.suffix.lower() in _YAML_SUFFIXES:
        text = yaml.safe_dump(document, sort_keys=False, allow_unicode=True)
    else:
        text = json.dumps(document, indent=2, ensure_ascii=False) + "\n"
    atomic_write(path, text)
