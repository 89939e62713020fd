"""Label description documents and give the other phases uniform access to them.

Every document taking part in linking is identified by its ``info.title``;
that label is what cross-document ``operationRef`` values are prefixed with.
:func:`label_documents` builds the label mapping and :class:`SpecRegistry`
wraps it with one memoising :class:`~oaslink.parser.resolver.RefResolver`
per document plus the operation and parameter walkers shared by the index,
matcher, and validator phases.

Documents are never modified here.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator

from oaslink.models import HTTPMethod, OperationKey
from oaslink.parser.resolver import RefResolver

logger = logging.getLogger(__name__)

# Ascending, so every walk over a path item is deterministic.
_HTTP_METHODS = tuple(sorted(m.value for m in HTTPMethod))


def label_documents(documents: Iterable[Any]) -> dict[str, dict[str, Any]]:
    """Map each document's ``info.title`` to the document.

    Documents without a title, or that are not mappings at all, are
    excluded with a warning. When two documents share a title the first
    one wins and the later one is excluded with a warning. Insertion order
    of the result follows *documents*.

    Args:
        documents: Raw description documents, in load order.

    Returns:
        An ordered ``{label: document}`` mapping.
    """
    labeled: dict[str, dict[str, Any]] = {}

    for position, document in enumerate(documents):
        if not isinstance(document, dict):
            logger.warning(
                "Document #%d is not a mapping (got %s); excluded from linking",
                position,
                type(document).__name__,
            )
            continue

        info = document.get("info")
        title = info.get("title") if isinstance(info, dict) else None
        if not isinstance(title, str) or not title:
            logger.warning(
                "Document #%d has no info.title; titles are required for linking, excluded",
                position,
            )
            continue

        if title in labeled:
            logger.warning(
                "Document #%d duplicates title '%s'; keeping the first document with that title",
                position,
                title,
            )
            continue

        labeled[title] = document

    return labeled


class SpecRegistry:
    """Labelled documents plus per-document ``$ref`` resolvers.

    Args:
        documents: Output of :func:`label_documents`.

    Example::

        registry = SpecRegistry.from_documents([users_doc, orders_doc])
        for key in registry.operations("Users"):
            params = registry.parameters(key)
    """

    def __init__(self, documents: dict[str, dict[str, Any]]) -> None:
        self._documents = dict(documents)
        self._resolvers = {
            label: RefResolver(document, label=label)
            for label, document in self._documents.items()
        }

    @classmethod
    def from_documents(cls, documents: Iterable[Any]) -> SpecRegistry:
        """Label *documents* and wrap the result."""
        return cls(label_documents(documents))

    @property
    def labels(self) -> list[str]:
        """Registered labels in registration order."""
        return list(self._documents)

    def __contains__(self, label: object) -> bool:
        return label in self._documents

    def __iter__(self) -> Iterator[str]:
        return iter(self._documents)

    def __len__(self) -> int:
        return len(self._documents)

    def document(self, label: str) -> dict[str, Any]:
        return self._documents[label]

    def resolver(self, label: str) -> RefResolver:
        return self._resolvers[label]

    # ------------------------------------------------------------------ #
    # Operation walking
    # ------------------------------------------------------------------ #

    def operations(self, label: str) -> list[OperationKey]:
        """Every operation of document *label*, path- then method-ascending.

        Path-item keys that are not HTTP verbs (``parameters``, ``summary``,
        ``x-*`` extensions) are skipped, as are non-mapping entries.
        """
        paths = self._documents[label].get("paths")
        if not isinstance(paths, dict):
            return []

        keys: list[OperationKey] = []
        for path in sorted(paths):
            path_item = paths[path]
            if not isinstance(path_item, dict):
                continue
            for method in _HTTP_METHODS:
                if isinstance(path_item.get(method), dict):
                    keys.append(OperationKey(document=label, path=path, method=HTTPMethod(method)))
        return keys

    def has_operation(self, key: OperationKey) -> bool:
        if key.document not in self._documents:
            return False
        paths = self._documents[key.document].get("paths")
        if not isinstance(paths, dict) or not isinstance(paths.get(key.path), dict):
            return False
        return isinstance(paths[key.path].get(key.method.value), dict)

    def operation(self, key: OperationKey) -> dict[str, Any]:
        """Return the raw operation object for *key*.

        Raises:
            KeyError: If *key* does not name an operation of a registered
                document.
        """
        if not self.has_operation(key):
            raise KeyError(str(key))
        return self._documents[key.document]["paths"][key.path][key.method.value]

    def parameters(self, key: OperationKey) -> list[dict[str, Any]]:
        """Effective, ``$ref``-resolved parameters of an operation.

        Path-level parameters apply to every operation under the path;
        an operation-level parameter with the same ``name`` and ``in``
        replaces the path-level one. Entries that are not mappings after
        resolution are dropped.

        Raises:
            RefResolutionError: If a parameter ``$ref`` is broken.
        """
        resolver = self._resolvers[key.document]
        path_item = self._documents[key.document]["paths"][key.path]
        operation = self.operation(key)

        path_params = _resolved_list(path_item.get("parameters"), resolver)
        op_params = _resolved_list(operation.get("parameters"), resolver)
        return _merge_parameters(path_params, op_params)

    def required_parameters(self, key: OperationKey) -> list[str]:
        """Names of parameters a call to *key* cannot be made without.

        A parameter is required when it says ``required: true``; path
        parameters are always required regardless of the flag.
        """
        names: list[str] = []
        for param in self.parameters(key):
            name = param.get("name")
            if not isinstance(name, str) or not name:
                continue
            if param.get("required") is True or param.get("in") == "path":
                names.append(name)
        return names

    def responses(self, key: OperationKey) -> dict[str, Any]:
        """Status code -> ``$ref``-resolved response object of an operation.

        Raises:
            RefResolutionError: If a response ``$ref`` is broken.
        """
        raw = self.operation(key).get("responses")
        if not isinstance(raw, dict):
            return {}
        resolver = self._resolvers[key.document]
        resolved: dict[str, Any] = {}
        for status_code, response in raw.items():
            response = resolver.resolve(response)
            if isinstance(response, dict):
                resolved[str(status_code)] = response
        return resolved


def _resolved_list(raw: Any, resolver: RefResolver) -> list[dict[str, Any]]:
    if not isinstance(raw, list):
        return []
    resolved = (resolver.resolve(item) for item in raw)
    return [item for item in resolved if isinstance(item, dict)]


def _merge_parameters(
    path_params: list[dict[str, Any]],
    op_params: list[dict[str, Any]],
) -> list[dict[str, Any]]:
    """Merge path-level and operation-level parameters.

    Operation-level parameters override path-level parameters with the
    same name and location (``in`` field), per the OpenAPI specification.
    Path-level survivors come first, in their declared order.
    """
    overridden = {(param.get("name", ""), param.get("in", "")) for param in op_params}
    merged = [
        param
        for param in path_params
        if (param.get("name", ""), param.get("in", "")) not in overridden
    ]
    merged.extend(op_params)
    return merged
