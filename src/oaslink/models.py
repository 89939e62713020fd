"""Canonical Pydantic models shared across all oaslink modules.

This is the single source of truth for data shapes in the project. Raw
description documents stay plain ``dict`` objects exactly as the loader (or
any other caller) produced them; everything the engine derives from them is
modelled here. The models fall into two groups:

**Configuration models** -- serialised as JSON in the user's config
directory or the project-local ``oaslink.json``:
    :class:`KeyStrategy` and :class:`LinkConfig`.

**Engine models** -- produced by the linking phases and consumed by the
emitter and the CLI:
    :class:`HTTPMethod`, :class:`OperationKey`, :class:`ParameterReference`,
    :class:`ResponseValueType`, :class:`LinkTemplate`, :class:`LinkCandidate`,
    and :class:`ResolvedLink`.

Identity-carrying models (:class:`OperationKey`, :class:`ParameterReference`)
are frozen so they can key dictionaries.
"""

from __future__ import annotations

import enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


# --- Configuration ---


class KeyStrategy(str, enum.Enum):
    """How the emitter names the links it produces.

    ``PRESERVE`` keeps a template's own name whenever it is free in the
    output scope and falls back to ``AutoLink<N>`` otherwise. ``AUTO``
    always synthesises ``AutoLink<N>`` keys.
    """

    PRESERVE = "preserve"
    AUTO = "auto"


class LinkConfig(BaseModel):
    """Engine settings, resolved by :func:`~oaslink.config.resolve_config`.

    Fields here have defaults suitable for library use; the CLI layers the
    user config file, the project config file, ``OASLINK_*`` environment
    variables, and command-line flags on top of them.
    """

    key_strategy: KeyStrategy = Field(
        default=KeyStrategy.PRESERVE, description="Link key naming: preserve or auto"
    )
    auto_links: bool = Field(
        default=True,
        description="Derive links from x-responseValueType declarations",
    )
    max_workers: int = Field(
        default=1, ge=1, description="Worker threads for the per-document indexing phase"
    )
    links_field: str = Field(
        default="links", description="Response field that injected links are written to"
    )


# --- Engine models ---


class HTTPMethod(str, enum.Enum):
    """HTTP methods recognised as operations inside an OpenAPI path item.

    Any other key of a path item (``parameters``, ``summary``, ``x-*``
    extensions, ...) is not an operation and is ignored by every phase.
    """

    GET = "get"
    PUT = "put"
    POST = "post"
    DELETE = "delete"
    OPTIONS = "options"
    HEAD = "head"
    PATCH = "patch"
    TRACE = "trace"


def escape_pointer_token(token: str) -> str:
    """Escape a single JSON Pointer token (RFC 6901: ``~`` then ``/``)."""
    return token.replace("~", "~0").replace("/", "~1")


class OperationKey(BaseModel):
    """Identity of one operation: ``(document label, path, method)``."""

    model_config = ConfigDict(frozen=True)

    document: str
    path: str
    method: HTTPMethod

    def pointer(self) -> str:
        """Return the document-local pointer ``#/paths/<path>/<method>``."""
        return f"#/paths/{escape_pointer_token(self.path)}/{self.method.value}"

    def operation_ref(self, origin_document: str) -> str:
        """Render an ``operationRef`` as seen from *origin_document*.

        The document label is prefixed only when the operation lives in a
        different document than the link's origin.
        """
        prefix = self.document if self.document != origin_document else ""
        return f"{prefix}{self.pointer()}"

    def __str__(self) -> str:
        return f"{self.document}{self.pointer()}"


class ParameterReference(BaseModel):
    """One value-type index entry: a named parameter of one operation."""

    model_config = ConfigDict(frozen=True)

    document: str
    path: str
    method: HTTPMethod
    name: str

    @property
    def operation(self) -> OperationKey:
        """The operation declaring this parameter."""
        return OperationKey(document=self.document, path=self.path, method=self.method)


ValueTypeIndex = dict[str, list[ParameterReference]]
"""Semantic tag -> parameters accepting it, in first-seen order."""


class ResponseValueType(BaseModel):
    """One ``{valueType, bodyPath}`` pair declared on a response.

    A response's ``x-responseValueType`` may be a bare string (one entry with
    no body path) or a list of ``{"x-valueType", "x-path"}`` objects; see
    :func:`~oaslink.linking.smart_links.response_value_types`.
    """

    value_type: str
    body_path: Optional[str] = None

    def body_expression(self) -> str:
        """Runtime expression selecting this value from the response body."""
        if not self.body_path:
            return "$response.body"
        return f"$response.body#/{self.body_path.lstrip('/')}"


class LinkTemplate(BaseModel):
    """A link intent declared on (or derived from) one operation response.

    Explicit templates come from a response's ``x-links`` entries and carry
    their name. Implicit templates are derived from the response's value-type
    declarations and have ``name=None``; they are always emitted under a
    synthesised ``AutoLink<N>`` key.
    """

    name: Optional[str] = None
    origin: OperationKey
    status_code: str
    value_type: Optional[str] = Field(
        default=None, description="Expected x-responseValueType of the target operation"
    )
    parameters: dict[str, Any] = Field(
        default_factory=dict, description="Semantic tag -> literal or runtime expression"
    )
    description: Optional[str] = None
    request_body: Any = None

    @property
    def is_implicit(self) -> bool:
        return self.name is None


class LinkCandidate(BaseModel):
    """A proposed link from one template to one concrete target operation.

    Candidates are keyed by ``(template, target)``: bindings found on
    different target operations never share a parameter map.
    """

    template: LinkTemplate
    target: OperationKey
    parameters: dict[str, Any] = Field(
        default_factory=dict, description="Target parameter name -> value"
    )

    @property
    def operation_ref(self) -> str:
        return self.target.operation_ref(self.template.origin.document)

    @property
    def display_name(self) -> str:
        """Name used in diagnostics before a key has been assigned."""
        return self.template.name or f"<{self.template.origin} {self.template.status_code}>"


class ResolvedLink(BaseModel):
    """A validated, keyed link ready to be written out.

    :meth:`to_link_object` renders the OpenAPI *Link Object* consumers see;
    ``origin``, ``status_code`` and ``target`` are kept for callers that need
    to know where the link came from (the injection mode, the CLI tables).
    """

    key: str
    operation_ref: str
    parameters: dict[str, Any] = Field(default_factory=dict)
    description: Optional[str] = None
    request_body: Any = None
    origin: OperationKey
    status_code: str
    target: OperationKey

    def to_link_object(self) -> dict[str, Any]:
        """Return the plain OpenAPI Link Object for this link."""
        link: dict[str, Any] = {
            "operationRef": self.operation_ref,
            "parameters": dict(self.parameters),
        }
        if self.description is not None:
            link["description"] = self.description
        if self.request_body is not None:
            link["requestBody"] = self.request_body
        return link
