"""mapwright Command Line Interface.

Entry point for the mapwright CLI tool. Every command reads a Visual Config
document (JSON) and writes its result to stdout; logs go to stderr.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Literal

import typer
import yaml
from dynaconf.vendor.ruamel.yaml.parser import ParserError as YamlParserError
from dynaconf.vendor.ruamel.yaml.scanner import ScannerError as YamlScannerError
from pydantic import ValidationError

from mapwright import __version__
from mapwright.contracts.errors import DocumentFormatError, GraphValidationError
from mapwright.contracts.graph import MappingGraph
from mapwright.core.config import MapwrightSettings, default_settings, load_settings

__all__ = [
    "app",
]

app = typer.Typer(
    name="mapwright",
    help="mapwright: source-to-target mapping graphs.",
    no_args_is_help=True,
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"mapwright version {__version__}")
        raise typer.Exit()


def _load_dotenv(env_file: Path | None = None) -> bool:
    """Load environment variables from .env file.

    Args:
        env_file: Explicit path to .env file. If None, searches for .env
                 in current directory and parent directories.

    Raises:
        typer.Exit: If explicit env_file path doesn't exist.
    """
    from dotenv import load_dotenv

    if env_file is not None:
        if not env_file.exists():
            typer.secho(f"Error: .env file not found: {env_file}", fg=typer.colors.RED, err=True)
            raise typer.Exit(1)
        return load_dotenv(env_file, override=False)

    return load_dotenv(override=False)


def _format_error(title: str, message: str, hint: str | None = None, details: list[str] | None = None) -> None:
    """Display a formatted error with optional hint and details."""
    from rich.console import Console
    from rich.panel import Panel
    from rich.text import Text

    console = Console(stderr=True)

    content = Text()
    content.append(message, style="white")

    if details:
        content.append("\n\n")
        for detail in details:
            content.append(f"  • {detail}\n", style="dim")

    if hint:
        content.append("\n")
        content.append("Hint: ", style="yellow bold")
        content.append(hint, style="yellow")

    console.print(Panel(content, title=f"[red bold]{title}[/]", border_style="red", expand=False))


def _settings_from_file(settings: Path) -> MapwrightSettings:
    try:
        return load_settings(settings)
    except (YamlParserError, YamlScannerError) as e:
        _format_error(
            title="YAML Syntax Error",
            message=f"Failed to parse {settings.name}",
            details=[str(e.problem)] if hasattr(e, "problem") else None,
            hint="Check for unclosed brackets, incorrect indentation, or invalid characters.",
        )
        raise typer.Exit(1) from None
    except FileNotFoundError:
        _format_error(title="File Not Found", message=f"Settings file does not exist: {settings}")
        raise typer.Exit(1) from None
    except ValidationError as e:
        details = [f"{'.'.join(str(x) for x in error['loc'])}: {error['msg']}" for error in e.errors()]
        _format_error(
            title="Configuration Validation Failed",
            message=f"Invalid settings in {settings.name}",
            details=details,
            hint="Check field names, types, and allowed values.",
        )
        raise typer.Exit(1) from None


@app.callback()
def main(
    ctx: typer.Context,
    version: bool | None = typer.Option(
        None,
        "--version",
        "-V",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    settings: Path | None = typer.Option(
        None,
        "--settings",
        "-s",
        help="Path to settings YAML file.",
    ),
    no_dotenv: bool = typer.Option(
        False,
        "--no-dotenv",
        help="Skip loading .env file.",
    ),
    env_file: Path | None = typer.Option(
        None,
        "--env-file",
        help="Path to .env file (skips automatic search).",
    ),
    log_level: str | None = typer.Option(
        None,
        "--log-level",
        help="Override the configured log level (DEBUG, INFO, WARNING, ERROR).",
    ),
    json_logs: bool = typer.Option(
        False,
        "--json-logs",
        help="Output structured JSON logs (for machine processing).",
    ),
) -> None:
    """mapwright: source-to-target mapping graphs."""
    from mapwright.core.logging import configure_logging

    # .env first so MAPWRIGHT_* variables reach the settings loader
    if not no_dotenv:
        _load_dotenv(env_file=env_file)

    config = _settings_from_file(settings.expanduser()) if settings is not None else default_settings()

    level = (log_level or config.logging.level).upper()
    if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
        typer.echo(f"Error: invalid log level: {log_level}", err=True)
        raise typer.Exit(1)
    configure_logging(json_output=json_logs or config.logging.json_output, level=level)

    ctx.obj = config


def _settings(ctx: typer.Context) -> MapwrightSettings:
    return ctx.obj if isinstance(ctx.obj, MapwrightSettings) else default_settings()


def _read_graph(document: Path) -> tuple[MappingGraph, str]:
    """Import a Visual Config file; returns the graph and the document name."""
    from mapwright.serialization import import_visual_config

    try:
        text = document.expanduser().read_text(encoding="utf-8")
    except FileNotFoundError:
        _format_error(title="File Not Found", message=f"Document does not exist: {document}")
        raise typer.Exit(1) from None

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        _format_error(title="Invalid JSON", message=f"Failed to parse {document.name}", details=[str(e)])
        raise typer.Exit(1) from None

    try:
        graph = import_visual_config(data)
    except DocumentFormatError as e:
        _format_error(
            title="Malformed Document",
            message=f"{document.name} is not a Visual Config document",
            details=e.details,
            hint="A Visual Config needs top-level 'nodes' and 'connections' sections.",
        )
        raise typer.Exit(1) from None

    name = data.get("name") if isinstance(data.get("name"), str) else None
    return graph, name or document.stem


def _emit(text: str, output: Path | None) -> None:
    if output is None:
        typer.echo(text)
        return
    output.expanduser().write_text(text + "\n", encoding="utf-8")
    typer.echo(f"Wrote {output}", err=True)


@app.command()
def resolve(
    ctx: typer.Context,
    document: Path = typer.Argument(..., help="Visual Config JSON file."),
    output_format: Literal["json", "yaml"] = typer.Option(
        "json",
        "--format",
        "-f",
        help="Output format: 'json' or 'yaml'.",
    ),
) -> None:
    """Resolve every Target field and print the values."""
    from mapwright.contracts.graph import TargetNode
    from mapwright.engine import resolve_graph

    graph, _ = _read_graph(document)
    result = resolve_graph(graph, settings=_settings(ctx).resolution)

    report: dict[str, Any] = {
        "targets": {
            node.id: {"fieldValues": dict(node.field_values), "output": list(node.output_data)}
            for node in result.nodes
            if isinstance(node, TargetNode)
        },
        "warnings": [
            {"code": warning.code, "message": warning.message, "nodeIds": list(warning.node_ids)}
            for warning in result.warnings
        ],
    }
    if output_format == "yaml":
        typer.echo(yaml.safe_dump(json.loads(json.dumps(report, default=str)), sort_keys=False).rstrip())
    else:
        typer.echo(json.dumps(report, indent=2, default=str))


@app.command(name="compile")
def compile_command(
    ctx: typer.Context,
    document: Path = typer.Argument(..., help="Visual Config JSON file."),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the Execution Config here instead of stdout.",
    ),
    name: str | None = typer.Option(
        None,
        "--name",
        "-n",
        help="Mapping name (defaults to the document's name).",
    ),
) -> None:
    """Compile a Visual Config into an Execution Config (canonical JSON)."""
    from mapwright.engine import compile_execution_config

    graph, document_name = _read_graph(document)
    config = compile_execution_config(graph, name or document_name, settings=_settings(ctx).export)
    _emit(config.to_json(), output)


@app.command()
def validate(
    ctx: typer.Context,
    document: Path = typer.Argument(..., help="Visual Config JSON file."),
) -> None:
    """Strictly validate a Visual Config: structure, cycles, dangling references."""
    from mapwright.core.dag import MappingDAG
    from mapwright.engine import resolve_graph

    graph, _ = _read_graph(document)
    try:
        MappingDAG(graph).validate()
    except GraphValidationError as e:
        _format_error(title="Graph Validation Failed", message=str(e))
        raise typer.Exit(1) from None

    result = resolve_graph(graph, settings=_settings(ctx).resolution)
    for warning in result.warnings:
        typer.secho(f"Warning [{warning.code}]: {warning.message}", fg=typer.colors.YELLOW, err=True)

    typer.echo(f"Mapping is valid: {len(graph.nodes)} nodes, {len(graph.edges)} connections")


@app.command()
def roundtrip(
    ctx: typer.Context,
    document: Path = typer.Argument(..., help="Visual Config JSON file."),
    output: Path | None = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the re-exported document here instead of stdout.",
    ),
) -> None:
    """Import, resolve and re-export a Visual Config (normalizes the document)."""
    from mapwright.engine import resolve_graph
    from mapwright.serialization import dumps, export_visual_config

    config = _settings(ctx)
    graph, name = _read_graph(document)
    resolved = resolve_graph(graph, settings=config.resolution).graph
    exported = export_visual_config(resolved, name, settings=config.export)
    _emit(dumps(exported, indent=config.export.indent), output)
