"""Assign keys to validated links and write them out.

Two output modes are supported:

* **Standalone** (:func:`emit_links`) -- a single ``{key: ResolvedLink}``
  mapping covering the whole pass. Keys are unique across it.
* **Injection** (:func:`inject_into_documents`) -- each link is added to the
  ``links`` object of the response it originates from, in a deep copy of
  the input documents. Keys are unique per response; existing entries are
  never overwritten and an identical existing link is not added again, so
  injecting into already-injected documents changes nothing. A response
  written as a ``$ref`` is the one structural change: it is replaced by an
  inlined copy of its target before the link is added, so the link lands on
  that operation alone and not on every operation sharing the component.

In both modes a template keeps its own name when the key strategy allows
it and the name is still free in the output scope. Otherwise, and always
for implicit templates, the key is ``AutoLink<N>`` with ``N`` drawn from one
counter per emission pass, starting at 0.

Both modes see the same candidates: :func:`drop_duplicates` removes
candidates that would write an identical link from the same response.
"""

from __future__ import annotations

import copy
import logging
from typing import Any, Container, Iterable

from oaslink.linking.registry import SpecRegistry
from oaslink.models import KeyStrategy, LinkCandidate, ResolvedLink
from oaslink.parser.resolver import RefResolver, is_reference

logger = logging.getLogger(__name__)

AUTO_LINK_PREFIX = "AutoLink"


class KeyAllocator:
    """Hands out link keys for one emission pass.

    Args:
        strategy: Whether template names may be kept.
    """

    def __init__(self, strategy: KeyStrategy = KeyStrategy.PRESERVE) -> None:
        self._strategy = KeyStrategy(strategy)
        self._counter = 0

    def next_auto(self, taken: Container[str]) -> str:
        """Return the next ``AutoLink<N>`` key not present in *taken*."""
        while True:
            key = f"{AUTO_LINK_PREFIX}{self._counter}"
            self._counter += 1
            if key not in taken:
                return key

    def allocate(self, candidate: LinkCandidate, taken: Container[str]) -> str:
        name = candidate.template.name
        if (
            self._strategy is KeyStrategy.PRESERVE
            and not candidate.template.is_implicit
            and name not in taken
        ):
            return name
        return self.next_auto(taken)


def _link_identity(candidate: LinkCandidate) -> tuple[Any, ...]:
    template = candidate.template
    return (template.origin, template.status_code, candidate.operation_ref)


def drop_duplicates(candidates: Iterable[LinkCandidate]) -> list[LinkCandidate]:
    """Keep the first of any candidates yielding the same link on one response.

    Two candidates are the same link when they share origin operation,
    status code, ``operationRef`` and parameter bindings. This happens when
    an ``x-links`` entry and the response's ``x-responseValueType`` bind one
    target identically; the explicit template comes first and is kept.
    """
    seen: dict[tuple[Any, ...], list[dict[str, Any]]] = {}
    kept: list[LinkCandidate] = []
    for candidate in candidates:
        bindings = seen.setdefault(_link_identity(candidate), [])
        if candidate.parameters in bindings:
            logger.debug(
                "Link from %s to %s duplicates an earlier one; skipped",
                candidate.template.origin,
                candidate.target,
            )
            continue
        bindings.append(candidate.parameters)
        kept.append(candidate)
    return kept


def to_resolved_link(candidate: LinkCandidate, key: str) -> ResolvedLink:
    template = candidate.template
    return ResolvedLink(
        key=key,
        operation_ref=candidate.operation_ref,
        parameters=dict(candidate.parameters),
        description=template.description,
        request_body=template.request_body,
        origin=template.origin,
        status_code=template.status_code,
        target=candidate.target,
    )


def emit_links(
    candidates: Iterable[LinkCandidate],
    key_strategy: KeyStrategy = KeyStrategy.PRESERVE,
) -> dict[str, ResolvedLink]:
    """Key every candidate and return the standalone link mapping.

    Args:
        candidates: Validated candidates in emission order.
        key_strategy: Whether template names may be kept as keys.

    Returns:
        ``{key: ResolvedLink}`` in emission order.
    """
    allocator = KeyAllocator(key_strategy)
    emitted: dict[str, ResolvedLink] = {}
    for candidate in candidates:
        key = allocator.allocate(candidate, emitted)
        emitted[key] = to_resolved_link(candidate, key)
    return emitted


def _same_link(existing: Any, candidate: LinkCandidate) -> bool:
    return (
        isinstance(existing, dict)
        and existing.get("operationRef") == candidate.operation_ref
        and existing.get("parameters") == candidate.parameters
    )


def _origin_response(
    document: dict[str, Any], candidate: LinkCandidate
) -> dict[str, Any] | None:
    """Locate the origin response of *candidate* inside *document*.

    A response written as a ``$ref`` is replaced by a copy of its target
    first, so the link lands on this operation only and not on every
    operation sharing the referenced component.
    """
    origin = candidate.template.origin
    operation = document["paths"][origin.path][origin.method.value]
    responses = operation["responses"]

    for code in list(responses):
        if str(code) != candidate.template.status_code:
            continue
        response = responses[code]
        if is_reference(response):
            response = copy.deepcopy(RefResolver(document, origin.document).resolve(response))
            responses[code] = response
        return response if isinstance(response, dict) else None
    return None


def inject_into_documents(
    documents: list[Any],
    registry: SpecRegistry,
    candidates: Iterable[LinkCandidate],
    key_strategy: KeyStrategy = KeyStrategy.PRESERVE,
    links_field: str = "links",
) -> list[Any]:
    """Return copies of *documents* with every candidate added as a link.

    Args:
        documents: The documents the registry was built from, in the same
            order. They are not modified.
        registry: The registry the candidates were produced against.
        candidates: Validated candidates in emission order.
        key_strategy: Whether template names may be kept as keys.
        links_field: Response field the links are written to.

    Returns:
        One document per input, in input order. Documents the registry
        excluded are returned as unchanged copies.
    """
    copies = copy.deepcopy(documents)
    by_label: dict[str, dict[str, Any]] = {}
    for original, duplicate in zip(documents, copies):
        for label in registry:
            if registry.document(label) is original:
                by_label[label] = duplicate

    allocator = KeyAllocator(key_strategy)

    for candidate in candidates:
        origin = candidate.template.origin
        response = _origin_response(by_label[origin.document], candidate)
        if response is None:
            continue

        links = response.setdefault(links_field, {})
        if not isinstance(links, dict):
            logger.warning(
                "Response %s of %s has a non-object '%s' field; link not injected",
                candidate.template.status_code,
                origin,
                links_field,
            )
            continue

        if any(_same_link(existing, candidate) for existing in links.values()):
            logger.debug("Link to %s already present on %s; skipped", candidate.target, origin)
            continue

        key = allocator.allocate(candidate, links)
        links[key] = to_resolved_link(candidate, key).to_link_object()
        logger.debug("Linked %s => %s as '%s'", origin, candidate.target, key)

    return copies
