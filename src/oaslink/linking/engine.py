"""Run the linking phases end to end.

The computation is a batch over already-loaded documents:

1. **Scan** -- per registered document, build its slice of the value-type
   index and extract its link templates. Documents are independent, so
   this phase may run on a thread pool (``LinkConfig.max_workers``).
2. **Barrier** -- every scan result is joined and merged in registry
   order. The matcher never sees a partial index.
3. **Match**, **prune** and de-duplicate -- sequential.
4. **Emit** -- standalone mapping (:func:`resolve_links`) or injection into
   document copies (:func:`inject_links`). One key counter per call.

Inputs are never mutated.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Iterable, Optional

from oaslink.linking.emitter import drop_duplicates, emit_links, inject_into_documents
from oaslink.linking.matcher import match_templates
from oaslink.linking.registry import SpecRegistry
from oaslink.linking.smart_links import StatusCodeResolver, extract_document_templates
from oaslink.linking.validator import prune_incomplete
from oaslink.linking.value_types import index_document, merge_indexes
from oaslink.models import LinkCandidate, LinkConfig, LinkTemplate, ResolvedLink, ValueTypeIndex

logger = logging.getLogger(__name__)


@dataclass
class LinkPlan:
    """Everything the phases produced before emission.

    Attributes:
        registry: The labelled documents.
        index: The complete value-type index.
        templates: Every extracted template, in extraction order.
        candidates: Candidates that survived validation, in emission order.
    """

    registry: SpecRegistry
    index: ValueTypeIndex = field(default_factory=dict)
    templates: list[LinkTemplate] = field(default_factory=list)
    candidates: list[LinkCandidate] = field(default_factory=list)


def _scan_document(
    registry: SpecRegistry,
    label: str,
    config: LinkConfig,
    status_code_resolver: Optional[StatusCodeResolver],
) -> tuple[ValueTypeIndex, list[LinkTemplate]]:
    index = index_document(registry, label)
    templates = extract_document_templates(
        registry,
        label,
        auto_links=config.auto_links,
        status_code_resolver=status_code_resolver,
    )
    return index, templates


def _scan(
    registry: SpecRegistry,
    config: LinkConfig,
    status_code_resolver: Optional[StatusCodeResolver],
) -> tuple[ValueTypeIndex, list[LinkTemplate]]:
    labels = registry.labels
    if config.max_workers > 1 and len(labels) > 1:
        with ThreadPoolExecutor(max_workers=config.max_workers) as pool:
            futures = [
                pool.submit(_scan_document, registry, label, config, status_code_resolver)
                for label in labels
            ]
            # result() re-raises a worker's RefResolutionError here.
            results = [future.result() for future in futures]
    else:
        results = [
            _scan_document(registry, label, config, status_code_resolver) for label in labels
        ]

    index = merge_indexes([partial for partial, _ in results])
    templates = [template for _, per_document in results for template in per_document]
    return index, templates


def build_link_plan(
    documents: Iterable[Any],
    *,
    config: Optional[LinkConfig] = None,
    status_code_resolver: Optional[StatusCodeResolver] = None,
) -> LinkPlan:
    """Run every phase up to (not including) key assignment.

    Args:
        documents: Raw description documents in load order.
        config: Engine settings; defaults to :class:`LinkConfig()`.
        status_code_resolver: Picks the response scanned for ``x-links``;
            defaults to
            :func:`~oaslink.linking.smart_links.resolve_primary_status_code`.

    Raises:
        RefResolutionError: If any ``$ref`` the phases need is broken.
    """
    config = config or LinkConfig()
    registry = SpecRegistry.from_documents(documents)

    index, templates = _scan(registry, config, status_code_resolver)
    logger.debug(
        "Indexed %d value type(s) and %d template(s) across %d document(s)",
        len(index),
        len(templates),
        len(registry),
    )

    candidates = match_templates(templates, index, registry)
    survivors = drop_duplicates(prune_incomplete(candidates, registry))
    logger.debug("%d of %d candidate link(s) are complete", len(survivors), len(candidates))

    return LinkPlan(registry=registry, index=index, templates=templates, candidates=survivors)


def resolve_links(
    documents: Iterable[Any],
    *,
    config: Optional[LinkConfig] = None,
    status_code_resolver: Optional[StatusCodeResolver] = None,
) -> dict[str, ResolvedLink]:
    """Derive every link across *documents* as a standalone mapping.

    Example::

        links = resolve_links([users_doc, orders_doc])
        links["owner"].operation_ref
        # 'Users#/paths/~1users~1{id}/get'
    """
    config = config or LinkConfig()
    plan = build_link_plan(documents, config=config, status_code_resolver=status_code_resolver)
    return emit_links(plan.candidates, config.key_strategy)


def inject_links(
    documents: Iterable[Any],
    *,
    config: Optional[LinkConfig] = None,
    status_code_resolver: Optional[StatusCodeResolver] = None,
) -> list[Any]:
    """Return copies of *documents* with derived links added to their responses.

    Existing link keys are never overwritten and links already present
    are not duplicated, so feeding the result back in returns it unchanged.
    """
    config = config or LinkConfig()
    documents = list(documents)
    plan = build_link_plan(documents, config=config, status_code_resolver=status_code_resolver)
    return inject_into_documents(
        documents,
        plan.registry,
        plan.candidates,
        key_strategy=config.key_strategy,
        links_field=config.links_field,
    )
