"""Resolve ``$ref`` JSON Reference pointers against their owning document.

Responses, link templates, and parameters in a description document may all
be written as ``{"$ref": "#/components/..."}`` indirections. The linking
engine never rewrites documents to inline them; instead every phase asks a
per-document :class:`RefResolver` for the object behind an entry when it
needs it. Lookups are memoised per document, so shared components referenced
from many operations are only walked once.

Only **internal** references (those starting with ``#/``) are supported.
External file or URL references, pointers to missing keys, and reference
chains that loop back on themselves all raise
:class:`~oaslink.exceptions.RefResolutionError`: a broken pointer means the
input document is malformed, which is fatal for the enclosing call.
"""

from __future__ import annotations

from typing import Any, Optional

from oaslink.exceptions import RefResolutionError


def is_reference(obj: Any) -> bool:
    """Return ``True`` if *obj* is a ``{"$ref": "..."}`` indirection."""
    return isinstance(obj, dict) and isinstance(obj.get("$ref"), str)


def resolve_pointer(ref: str, root: dict[str, Any], document: Optional[str] = None) -> Any:
    """Resolve a single ``$ref`` string against *root*.

    Parses JSON Pointer references like ``#/components/responses/User`` and
    navigates *root* to locate the referenced value, decoding RFC 6901
    escapes (``~1`` for ``/``, ``~0`` for ``~``) in each segment.

    Args:
        ref: The ``$ref`` string (e.g., ``"#/components/links/Owner"``).
        root: The document to resolve against.
        document: Label of *root*, used in error messages only.

    Returns:
        The value found at the referenced path.

    Raises:
        RefResolutionError: If the reference is external (does not start
            with ``#/``), or if any segment does not exist in the document.
    """
    where = f" in '{document}'" if document else ""
    if not ref.startswith("#/"):
        raise RefResolutionError(
            f"External $ref not supported{where}: {ref}. "
            "Only internal references (#/...) are handled.",
            ref=ref,
            document=document,
        )

    current: Any = root
    for raw_segment in ref[2:].split("/"):
        segment = raw_segment.replace("~1", "/").replace("~0", "~")

        if isinstance(current, dict):
            if segment not in current:
                raise RefResolutionError(
                    f"Cannot resolve $ref '{ref}'{where}: key '{segment}' not found at path",
                    ref=ref,
                    document=document,
                )
            current = current[segment]
        elif isinstance(current, list):
            try:
                current = current[int(segment)]
            except (ValueError, IndexError) as exc:
                raise RefResolutionError(
                    f"Cannot resolve $ref '{ref}'{where}: invalid array index '{segment}'",
                    ref=ref,
                    document=document,
                ) from exc
        else:
            raise RefResolutionError(
                f"Cannot resolve $ref '{ref}'{where}: "
                f"cannot navigate into {type(current).__name__}",
                ref=ref,
                document=document,
            )

    return current


class RefResolver:
    """Memoising ``$ref`` resolver bound to one document.

    Args:
        document: The raw document every pointer is resolved against.
        label: The document's registry label, used in error messages.

    Example::

        resolver = RefResolver(raw, label="Users")
        response = resolver.resolve(raw["paths"]["/users"]["get"]["responses"]["200"])
    """

    def __init__(self, document: dict[str, Any], label: Optional[str] = None) -> None:
        self._document = document
        self._label = label
        self._cache: dict[str, Any] = {}

    @property
    def label(self) -> Optional[str]:
        return self._label

    def lookup(self, ref: str) -> Any:
        """Return the raw target of *ref*, consulting the cache first."""
        try:
            return self._cache[ref]
        except KeyError:
            pass
        value = resolve_pointer(ref, self._document, self._label)
        self._cache[ref] = value
        return value

    def resolve(self, obj: Any) -> Any:
        """Follow *obj* through any chain of ``$ref`` indirections.

        Non-reference values are returned unchanged. A reference whose
        target is itself a reference is followed until a concrete object is
        reached.

        Raises:
            RefResolutionError: If a pointer is broken or the chain is
                circular.
        """
        chain: list[str] = []
        while is_reference(obj):
            ref = obj["$ref"]
            if ref in chain:
                raise RefResolutionError(
                    f"Circular $ref chain in '{self._label}': {' -> '.join(chain + [ref])}",
                    ref=ref,
                    document=self._label,
                )
            chain.append(ref)
            obj = self.lookup(ref)
        return obj
