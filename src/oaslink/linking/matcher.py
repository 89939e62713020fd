"""Turn link templates into candidate links against concrete operations.

For every ``(tag, value)`` pair a template declares, the value-type index
lists the parameters (on any operation of any registered document) that
accept that tag. Each of them yields a binding ``parameter name -> value``
on a candidate link to that parameter's operation.

Candidates are keyed by ``(template, target operation)``. A tag shared by
parameters on several operations therefore produces one independent
candidate per operation, each with only the bindings that belong to it.

A template may also name the value type its target is expected to return
(``x-valueType``). Target operations none of whose responses declare that
type in ``x-responseValueType`` are dropped for that template. This is an
expected filtering outcome and is only logged at debug level.
"""

from __future__ import annotations

import logging
from typing import Iterable

from oaslink.linking.registry import SpecRegistry
from oaslink.linking.smart_links import response_value_types
from oaslink.models import LinkCandidate, LinkTemplate, OperationKey, ValueTypeIndex

logger = logging.getLogger(__name__)


def declares_response_value_type(
    registry: SpecRegistry, target: OperationKey, value_type: str
) -> bool:
    """Return ``True`` if any response of *target* yields *value_type*.

    Responses are ``$ref``-resolved against the target's own document.

    Raises:
        RefResolutionError: If a response ``$ref`` of *target* is broken.
    """
    for response in registry.responses(target).values():
        if any(entry.value_type == value_type for entry in response_value_types(response)):
            return True
    return False


def match_templates(
    templates: Iterable[LinkTemplate],
    index: ValueTypeIndex,
    registry: SpecRegistry,
) -> list[LinkCandidate]:
    """Propose candidate links for every template.

    Args:
        templates: Every template of every registered document, in
            extraction order.
        index: The complete value-type index.
        registry: The labelled documents.

    Returns:
        Candidates ordered by template, then by the order in which each
        target received its first binding.

    Raises:
        RefResolutionError: If a target response ``$ref`` is broken.
    """
    candidates: list[LinkCandidate] = []
    compatibility: dict[tuple[OperationKey, str], bool] = {}

    for template in templates:
        by_target: dict[OperationKey, LinkCandidate] = {}

        for tag, value in template.parameters.items():
            for ref in index.get(tag, ()):
                target = ref.operation

                if template.value_type is not None:
                    check = (target, template.value_type)
                    if check not in compatibility:
                        compatibility[check] = declares_response_value_type(
                            registry, target, template.value_type
                        )
                    if not compatibility[check]:
                        logger.debug(
                            "Link '%s': %s does not return '%s'; not linked",
                            template.name,
                            target,
                            template.value_type,
                        )
                        continue

                candidate = by_target.get(target)
                if candidate is None:
                    candidate = LinkCandidate(template=template, target=target)
                    by_target[target] = candidate
                candidate.parameters[ref.name] = value

        candidates.extend(by_target.values())

    return candidates
