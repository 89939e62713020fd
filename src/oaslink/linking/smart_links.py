"""Extract link templates ("smart links") from operation responses.

Two kinds of link intent are recognised on a response:

* **Explicit templates** -- entries of the response's ``x-links`` object.
  Each names the semantic tags it can supply and the value for each::

      x-links:
        owner:
          x-valueType: User          # optional target compatibility filter
          parameters:
            UserID: $response.body#/userId

  Only the operation's *primary* response is scanned for these; see
  :func:`resolve_primary_status_code`.

* **Implicit templates** -- derived from ``x-responseValueType``, which
  says what domain values the response body yields and where::

      x-responseValueType:
        - x-valueType: UserID
          x-path: userId

  Every response of the operation carrying the tag yields one nameless
  template binding each declared value type to its body expression. These
  are emitted under ``AutoLink<N>`` keys.

Both kinds become :class:`~oaslink.models.LinkTemplate` objects and flow
through the same matcher, validator, and emitter.
"""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Optional

from oaslink.linking.registry import SpecRegistry
from oaslink.models import LinkTemplate, OperationKey, ResponseValueType

logger = logging.getLogger(__name__)

SMART_LINKS = "x-links"
RESPONSE_VALUE_TYPE = "x-responseValueType"
LINK_VALUE_TYPE = "x-valueType"
VALUE_TYPE_PATH = "x-path"

StatusCodeResolver = Callable[[str, str, dict[str, Any]], Optional[str]]
"""``(path, method, document) -> status code or None``."""

_SUCCESS_STATUS_RX = re.compile(r"^2([0-9]{2}|XX)$")


def resolve_primary_status_code(
    path: str, method: str, document: dict[str, Any]
) -> Optional[str]:
    """Pick the status code whose response describes an operation's success.

    Among the operation's response codes matching ``2xx`` (or the ``2XX``
    range), the only one is returned; when there are several, ``"200"`` is
    preferred and otherwise the first declared wins. Operations with no
    success response yield ``None``.
    """
    paths = document.get("paths")
    path_item = paths.get(path) if isinstance(paths, dict) else None
    operation = path_item.get(method) if isinstance(path_item, dict) else None
    if not isinstance(operation, dict) or not isinstance(operation.get("responses"), dict):
        return None

    success_codes = [
        str(code) for code in operation["responses"] if _SUCCESS_STATUS_RX.match(str(code))
    ]
    if not success_codes:
        return None
    if len(success_codes) > 1:
        if "200" in success_codes:
            return "200"
        logger.debug(
            "Operation %s %s declares several success responses %s; using '%s'",
            method.upper(),
            path,
            success_codes,
            success_codes[0],
        )
    return success_codes[0]


def response_value_types(response: dict[str, Any]) -> list[ResponseValueType]:
    """Normalise a response's ``x-responseValueType`` into a list.

    Accepts a bare tag string (one entry, no body path) or a list whose
    items are ``{"x-valueType": ..., "x-path": ...}`` objects or bare
    strings. Malformed items are ignored.
    """
    raw = response.get(RESPONSE_VALUE_TYPE)
    if isinstance(raw, str):
        return [ResponseValueType(value_type=raw)] if raw else []
    if not isinstance(raw, list):
        return []

    value_types: list[ResponseValueType] = []
    for item in raw:
        if isinstance(item, str) and item:
            value_types.append(ResponseValueType(value_type=item))
        elif isinstance(item, dict) and isinstance(item.get(LINK_VALUE_TYPE), str):
            body_path = item.get(VALUE_TYPE_PATH)
            value_types.append(
                ResponseValueType(
                    value_type=item[LINK_VALUE_TYPE],
                    body_path=body_path if isinstance(body_path, str) else None,
                )
            )
    return value_types


def _raw_response(registry: SpecRegistry, key: OperationKey, status_code: str) -> Any:
    responses = registry.operation(key).get("responses")
    if not isinstance(responses, dict):
        return None
    for code, response in responses.items():
        if str(code) == status_code:
            return response
    return None


def get_endpoint_smart_links(
    registry: SpecRegistry,
    key: OperationKey,
    status_code_resolver: Optional[StatusCodeResolver] = None,
) -> dict[str, LinkTemplate]:
    """Return the explicit link templates of one operation, by link name.

    Args:
        registry: The labelled documents.
        key: The operation to scan.
        status_code_resolver: Picks the response to scan; defaults to
            :func:`resolve_primary_status_code`.

    Returns:
        ``{link name: LinkTemplate}`` in declaration order. Empty when no
        primary response can be determined or it declares no ``x-links``.

    Raises:
        RefResolutionError: If the response or a link entry is a broken
            ``$ref``.
    """
    pick = status_code_resolver or resolve_primary_status_code
    document = registry.document(key.document)
    status_code = pick(key.path, key.method.value, document)
    if status_code is None:
        return {}
    status_code = str(status_code)

    resolver = registry.resolver(key.document)
    response = resolver.resolve(_raw_response(registry, key, status_code))
    if not isinstance(response, dict) or not isinstance(response.get(SMART_LINKS), dict):
        return {}

    templates: dict[str, LinkTemplate] = {}
    for name, entry in response[SMART_LINKS].items():
        link = resolver.resolve(entry)
        if not isinstance(link, dict):
            logger.warning("Smart link '%s' on %s is not an object; skipped", name, key)
            continue

        parameters = link.get("parameters")
        value_type = link.get(LINK_VALUE_TYPE)
        description = link.get("description")
        templates[str(name)] = LinkTemplate(
            name=str(name),
            origin=key,
            status_code=status_code,
            value_type=value_type if isinstance(value_type, str) and value_type else None,
            parameters=dict(parameters) if isinstance(parameters, dict) else {},
            description=description if isinstance(description, str) else None,
            request_body=link.get("requestBody"),
        )

    return templates


def get_endpoint_value_type_links(
    registry: SpecRegistry, key: OperationKey
) -> list[LinkTemplate]:
    """Derive implicit templates from the ``x-responseValueType`` of each response.

    When one response declares the same value type twice, the first
    declaration is used.

    Raises:
        RefResolutionError: If a response is a broken ``$ref``.
    """
    templates: list[LinkTemplate] = []

    for status_code, response in registry.responses(key).items():
        parameters: dict[str, Any] = {}
        for value_type in response_value_types(response):
            if value_type.value_type in parameters:
                logger.debug(
                    "Response %s of %s repeats value type '%s'; keeping the first path",
                    status_code,
                    key,
                    value_type.value_type,
                )
                continue
            parameters[value_type.value_type] = value_type.body_expression()

        if parameters:
            templates.append(
                LinkTemplate(origin=key, status_code=status_code, parameters=parameters)
            )

    return templates


def extract_document_templates(
    registry: SpecRegistry,
    label: str,
    *,
    auto_links: bool = True,
    status_code_resolver: Optional[StatusCodeResolver] = None,
) -> list[LinkTemplate]:
    """Collect every link template declared in document *label*.

    Operations are visited in registry order; within an operation explicit
    templates come first, in declaration order, followed by implicit ones
    when *auto_links* is enabled.
    """
    templates: list[LinkTemplate] = []
    for key in registry.operations(label):
        templates.extend(get_endpoint_smart_links(registry, key, status_code_resolver).values())
        if auto_links:
            templates.extend(get_endpoint_value_type_links(registry, key))
    return templates
