"""oaslink -- Derive OpenAPI links across description documents.

Operations in one or more OpenAPI 3 documents are annotated with semantic
value types (``x-parameterValueType``, ``x-responseValueType``) and link
templates (``x-links``). oaslink matches those annotations across documents
and emits standard OpenAPI *Link Objects*, either as one standalone mapping
or injected into the responses they originate from.

Typical workflow::

    oaslink resolve users.yaml orders.yaml
    oaslink inject users.yaml orders.yaml --out-dir linked/

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware configuration and precedence resolution.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes following clig.dev conventions.
    output: stdout/stderr formatting system with Rich support.
    linking: The link resolution engine.
    parser: Document loading and ``$ref`` resolution.
"""

__version__ = "0.1.0"
