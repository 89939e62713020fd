"""Semantic link resolution engine.

Derives OpenAPI link objects between operations -- possibly in different
documents -- from semantic value-type annotations:

* ``x-parameterValueType`` on a parameter: the domain value it accepts.
* ``x-links`` on a response: named link templates keyed by value type.
* ``x-responseValueType`` on a response: the domain values its body yields.

Typical usage::

    from oaslink.linking import resolve_links, inject_links

    links = resolve_links([users_doc, orders_doc])
    augmented = inject_links([users_doc, orders_doc])

Sub-modules, in pipeline order:

* :mod:`~oaslink.linking.registry` -- document labelling and access.
* :mod:`~oaslink.linking.value_types` -- the value-type index.
* :mod:`~oaslink.linking.smart_links` -- template extraction.
* :mod:`~oaslink.linking.matcher` -- candidate links.
* :mod:`~oaslink.linking.validator` -- required-parameter pruning.
* :mod:`~oaslink.linking.emitter` -- key assignment and output.
* :mod:`~oaslink.linking.engine` -- the phased driver.
"""

from oaslink.linking.engine import LinkPlan, build_link_plan, inject_links, resolve_links
from oaslink.linking.registry import SpecRegistry, label_documents
from oaslink.linking.smart_links import resolve_primary_status_code
from oaslink.linking.value_types import build_value_type_index

__all__ = [
    "LinkPlan",
    "SpecRegistry",
    "build_link_plan",
    "build_value_type_index",
    "inject_links",
    "label_documents",
    "resolve_links",
    "resolve_primary_status_code",
]
