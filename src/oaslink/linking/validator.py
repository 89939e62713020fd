"""Drop candidate links that could not produce a complete call.

A target parameter is required when it declares ``required: true`` or sits
``in: path``. Path parameters are always required by OpenAPI, whether or not
the flag is written.
"""

from __future__ import annotations

import logging
from typing import Iterable

from oaslink.linking.registry import SpecRegistry
from oaslink.models import LinkCandidate, OperationKey

logger = logging.getLogger(__name__)


def missing_parameters(candidate: LinkCandidate, required: Iterable[str]) -> list[str]:
    return [name for name in required if name not in candidate.parameters]


def prune_incomplete(
    candidates: Iterable[LinkCandidate], registry: SpecRegistry
) -> list[LinkCandidate]:
    """Keep only candidates that bind every required parameter of their target.

    Each discarded candidate is reported with a warning naming the link and
    the missing parameter(s). Survivors keep their relative order.

    Raises:
        RefResolutionError: If a target parameter ``$ref`` is broken.
    """
    required_by_target: dict[OperationKey, list[str]] = {}
    kept: list[LinkCandidate] = []

    for candidate in candidates:
        if candidate.target not in required_by_target:
            required_by_target[candidate.target] = registry.required_parameters(candidate.target)

        missing = missing_parameters(candidate, required_by_target[candidate.target])
        if missing:
            logger.warning(
                "Link '%s' from %s to %s could not be established due to missing parameter %s",
                candidate.display_name,
                candidate.template.origin,
                candidate.target,
                ", ".join(missing),
            )
            continue
        kept.append(candidate)

    return kept
