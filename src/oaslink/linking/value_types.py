"""Group operation parameters by their semantic value-type tag.

A parameter annotated with ``x-parameterValueType: UserID`` declares that it
accepts values of the domain concept ``UserID``, whatever the parameter
happens to be called. The value-type index maps every such tag to the
parameters that accept it, across every registered document, and is the
lookup table the matcher consults for each link template.

Iteration order is documents in registry order, paths ascending, methods
ascending, then the operation's effective parameter order, so the index
(and everything derived from it) is identical between runs.
"""

from __future__ import annotations

import logging

from oaslink.linking.registry import SpecRegistry
from oaslink.models import ParameterReference, ValueTypeIndex

logger = logging.getLogger(__name__)

PARAMETER_VALUE_TYPE = "x-parameterValueType"


def index_document(registry: SpecRegistry, label: str) -> ValueTypeIndex:
    """Build the value-type index for a single registered document.

    Parameters without a tag are skipped silently. A tagged parameter
    without a usable name is skipped with a warning.

    Raises:
        RefResolutionError: If a parameter ``$ref`` cannot be resolved.
    """
    index: ValueTypeIndex = {}

    for key in registry.operations(label):
        for param in registry.parameters(key):
            value_type = param.get(PARAMETER_VALUE_TYPE)
            if not isinstance(value_type, str) or not value_type:
                continue

            name = param.get("name")
            if not isinstance(name, str) or not name:
                logger.warning(
                    "Parameter tagged '%s' in %s has no name; skipped",
                    value_type,
                    key,
                )
                continue

            index.setdefault(value_type, []).append(
                ParameterReference(
                    document=key.document,
                    path=key.path,
                    method=key.method,
                    name=name,
                )
            )

    return index


def merge_indexes(partials: list[ValueTypeIndex]) -> ValueTypeIndex:
    """Concatenate per-document indexes, bucket by bucket, in list order."""
    merged: ValueTypeIndex = {}
    for partial in partials:
        for value_type, refs in partial.items():
            merged.setdefault(value_type, []).extend(refs)
    return merged


def build_value_type_index(registry: SpecRegistry) -> ValueTypeIndex:
    """Build the value-type index over every registered document.

    Args:
        registry: The labelled documents.

    Returns:
        ``{tag: [ParameterReference, ...]}`` with buckets and entries in
        first-seen order.

    Example::

        index = build_value_type_index(registry)
        index["UserID"]
        # [ParameterReference(document='Users', path='/users/{id}', method='get', name='id')]
    """
    return merge_indexes([index_document(registry, label) for label in registry])
