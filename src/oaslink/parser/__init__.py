"""Document I/O and ``$ref`` resolution.

Typical usage::

    from oaslink.parser import load_documents, RefResolver

    docs = load_documents(["users.yaml", "https://example.com/orders.json"])
    resolver = RefResolver(docs[0], label="Users")

Sub-modules:

* :mod:`~oaslink.parser.loader` -- I/O layer (URL, file, stdin) plus format
  detection, and atomic write-back of augmented documents.
* :mod:`~oaslink.parser.resolver` -- Memoised per-document ``$ref``
  resolution with circular-chain detection.
"""

from oaslink.parser.loader import dump_document, load_document, load_documents
from oaslink.parser.resolver import RefResolver, is_reference, resolve_pointer

__all__ = [
    "load_document",
    "load_documents",
    "dump_document",
    "RefResolver",
    "is_reference",
    "resolve_pointer",
]
