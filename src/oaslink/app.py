"""Typer application and CLI entry point for oaslink.

The CLI is a thin driver around :mod:`oaslink.linking`: it loads the given
description documents (files, URLs, or stdin), resolves the effective
:class:`~oaslink.models.LinkConfig`, runs the engine, and prints or writes
the result.

Commands:

* ``oaslink resolve`` -- print the derived links as one mapping.
* ``oaslink inject`` -- write copies of the documents with the links added
  to their responses.
* ``oaslink index`` -- print the value-type index the links are built from.
* ``oaslink config`` -- print the effective configuration.

The :func:`main` function is the console-script entry point declared in
``pyproject.toml``. :class:`~oaslink.exceptions.OaslinkError` exits with
its ``exit_code``; anything else writes a crash log under the data
directory.
"""

from __future__ import annotations

import signal
import sys
import traceback
from datetime import datetime
from pathlib import Path
from typing import Any, Optional

import typer

from oaslink import __version__
from oaslink.exceptions import OaslinkError
from oaslink.exit_codes import EXIT_GENERIC_FAILURE
from oaslink.models import KeyStrategy, LinkConfig
from oaslink.output import error, info, print_json, print_table, success


app = typer.Typer(
    name="oaslink",
    help="Derive cross-document OpenAPI links from semantic value-type annotations.",
    no_args_is_help=True,
    add_completion=False,
    rich_markup_mode="rich",
)

_SOURCES_ARGUMENT = typer.Argument(
    ..., help="Description documents: file paths, http(s) URLs, or '-' for stdin."
)
_KEY_STRATEGY_OPTION = typer.Option(
    None, "--key-strategy", help="Link key naming: preserve (template names) or auto."
)
_AUTO_LINKS_OPTION = typer.Option(
    None,
    "--auto-links/--no-auto-links",
    help="Also derive links from x-responseValueType declarations.",
)
_WORKERS_OPTION = typer.Option(
    None, "--workers", min=1, help="Worker threads for the per-document indexing phase."
)


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"oaslink {__version__}")
        raise typer.Exit()


@app.callback()
def main_callback(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    json_output: bool = typer.Option(False, "--json", help="JSON output format."),
    plain_output: bool = typer.Option(False, "--plain", help="Plain text output."),
    no_color: bool = typer.Option(False, "--no-color", help="Disable color output."),
    quiet: bool = typer.Option(
        False, "--quiet", "-q", help="Suppress non-essential output."
    ),
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable debug output."
    ),
) -> None:
    """Initialise output formatting and route engine logging to stderr."""
    from oaslink.output import OutputFormat, OutputManager, install_log_handler, set_output

    fmt = OutputFormat.AUTO
    if json_output:
        fmt = OutputFormat.JSON
    elif plain_output:
        fmt = OutputFormat.PLAIN

    set_output(OutputManager(format=fmt, no_color=no_color, quiet=quiet, verbose=verbose))
    install_log_handler(verbose=verbose)

    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose


def _fail(exc: OaslinkError) -> typer.Exit:
    error(str(exc))
    return typer.Exit(code=exc.exit_code)


def _load(
    sources: list[str],
    key_strategy: Optional[KeyStrategy],
    auto_links: Optional[bool],
    workers: Optional[int],
) -> tuple[list[dict[str, Any]], LinkConfig]:
    from oaslink.config import resolve_config
    from oaslink.parser import load_documents

    config = resolve_config(
        cli_key_strategy=key_strategy.value if key_strategy is not None else None,
        cli_auto_links=auto_links,
        cli_max_workers=workers,
    )
    return load_documents(sources), config


def _is_json_output() -> bool:
    from oaslink.output import OutputFormat, get_output

    return get_output().format == OutputFormat.JSON


def _format_parameters(parameters: dict[str, Any]) -> str:
    return ", ".join(f"{name}={value}" for name, value in parameters.items())


@app.command("resolve")
def resolve_command(
    sources: list[str] = _SOURCES_ARGUMENT,
    key_strategy: Optional[KeyStrategy] = _KEY_STRATEGY_OPTION,
    auto_links: Optional[bool] = _AUTO_LINKS_OPTION,
    workers: Optional[int] = _WORKERS_OPTION,
) -> None:
    """Print every derived link as a single key -> link mapping.

    Example::

        oaslink resolve users.yaml orders.yaml
        oaslink --json resolve users.yaml orders.yaml > links.json
    """
    from oaslink.linking import resolve_links

    try:
        documents, config = _load(sources, key_strategy, auto_links, workers)
        links = resolve_links(documents, config=config)
    except OaslinkError as exc:
        raise _fail(exc) from None

    if _is_json_output():
        print_json({
            key: {**link.to_link_object(), "x-origin": str(link.origin), "x-status": link.status_code}
            for key, link in links.items()
        })
        return

    if not links:
        info("No links could be derived from these documents.")
        return

    rows = [
        [key, str(link.origin), link.status_code, link.operation_ref, _format_parameters(link.parameters)]
        for key, link in links.items()
    ]
    print_table(["Key", "From", "Status", "operationRef", "Parameters"], rows, title=f"Links ({len(rows)})")


def _output_name(source: str, position: int, suffix: Optional[str], used: set[str]) -> str:
    """Pick the file name an augmented document is written under.

    File inputs keep their own name (suffix optionally replaced); URL and
    stdin inputs become ``document-<position>``. Clashes get the position
    appended to the stem.
    """
    if source == "-" or source.startswith(("http://", "https://")):
        path = Path(f"document-{position}{suffix or '.json'}")
    else:
        path = Path(Path(source).name)
        if suffix:
            path = path.with_suffix(suffix)

    name = path.name
    if name in used:
        name = f"{path.stem}-{position}{path.suffix}"
    used.add(name)
    return name


@app.command("inject")
def inject_command(
    sources: list[str] = _SOURCES_ARGUMENT,
    out_dir: Path = typer.Option(
        ..., "--out-dir", "-o", file_okay=False, help="Directory the augmented documents are written to."
    ),
    output_format: Optional[str] = typer.Option(
        None, "--format", help="Force output format: json or yaml (default: keep each input's)."
    ),
    key_strategy: Optional[KeyStrategy] = _KEY_STRATEGY_OPTION,
    auto_links: Optional[bool] = _AUTO_LINKS_OPTION,
    workers: Optional[int] = _WORKERS_OPTION,
) -> None:
    """Write copies of the documents with derived links added to their responses.

    Example::

        oaslink inject users.yaml orders.yaml --out-dir linked/
    """
    from oaslink.exceptions import InvalidUsageError
    from oaslink.linking import inject_links
    from oaslink.parser import dump_document

    try:
        if output_format not in (None, "json", "yaml"):
            raise InvalidUsageError(f"Unsupported --format '{output_format}'; use json or yaml")
        documents, config = _load(sources, key_strategy, auto_links, workers)
        augmented = inject_links(documents, config=config)
    except OaslinkError as exc:
        raise _fail(exc) from None

    suffix = f".{output_format}" if output_format else None
    used: set[str] = set()
    for position, (source, document) in enumerate(zip(sources, augmented)):
        target = out_dir / _output_name(source, position, suffix, used)
        dump_document(document, target)
        info(f"Wrote {target}")

    success(f"Injected links into {len(augmented)} document(s).")


@app.command("index")
def index_command(
    sources: list[str] = _SOURCES_ARGUMENT,
) -> None:
    """Print the value-type index: which parameters accept which semantic tag."""
    from oaslink.linking import SpecRegistry, build_value_type_index
    from oaslink.parser import load_documents

    try:
        registry = SpecRegistry.from_documents(load_documents(sources))
        index = build_value_type_index(registry)
    except OaslinkError as exc:
        raise _fail(exc) from None

    if _is_json_output():
        print_json({
            value_type: [ref.model_dump(mode="json") for ref in refs]
            for value_type, refs in index.items()
        })
        return

    rows = [
        [value_type, ref.name, str(ref.operation)]
        for value_type, refs in index.items()
        for ref in refs
    ]
    print_table(["Value type", "Parameter", "Operation"], rows, title=f"Value types ({len(index)})")


@app.command("config")
def config_command() -> None:
    """Print the effective configuration after applying every config layer."""
    from oaslink.config import resolve_config

    try:
        config = resolve_config()
    except OaslinkError as exc:
        raise _fail(exc) from None
    print_json(config.model_dump(mode="json"))


def _setup_signal_handlers() -> None:
    """Install a SIGINT handler so Ctrl-C exits cleanly."""

    def _handler(signum: int, frame: Any) -> None:  # noqa: ANN401
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)

    signal.signal(signal.SIGINT, _handler)


def _write_crash_log(exc: Exception) -> str:
    """Write a crash traceback to disk and return the log file path."""
    from oaslink.config import get_data_dir

    logs_dir = get_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    log_path = logs_dir / f"crash-{timestamp}.log"
    log_path.write_text(
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    )
    return str(log_path)


def main() -> None:
    """CLI entry point invoked by the ``oaslink`` console script.

    Raises:
        SystemExit: Always raised (either by Typer or explicitly).
    """
    _setup_signal_handlers()
    try:
        app()
    except SystemExit:
        raise
    except KeyboardInterrupt:
        sys.stderr.write("\nCancelled.\n")
        sys.exit(130)
    except OaslinkError as exc:
        error(str(exc))
        sys.exit(exc.exit_code)
    except Exception as exc:
        log_path = _write_crash_log(exc)
        error(f"Unexpected error. Debug log: {log_path}")
        sys.exit(EXIT_GENERIC_FAILURE)
