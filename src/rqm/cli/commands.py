"""CLI commands for rqm."""

from __future__ import annotations

import functools
import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path
from typing import TYPE_CHECKING, Any, TypeVar

import click
import yaml

from rqm.core.errors import RqmError

if TYPE_CHECKING:
    from rqm.core.models import Requirement, RequirementConfig

F = TypeVar("F", bound=Callable[..., Any])


def _cli_error_handler(f: F) -> F:
    """Decorator that catches common CLI errors and exits cleanly."""

    @functools.wraps(f)
    def wrapper(*args: Any, **kwargs: Any) -> Any:
        try:
            return f(*args, **kwargs)
        except click.Abort:
            click.echo("Aborted.")
            sys.exit(1)
        except (RqmError, ValueError, FileNotFoundError, OSError, yaml.YAMLError) as e:
            click.echo(f"Error: {e}", err=True)
            sys.exit(1)
        except Exception as e:
            # Catch-all for unexpected errors with type info for debugging
            click.echo(f"Unexpected error: {type(e).__name__}: {e}", err=True)
            sys.exit(1)

    return wrapper  # type: ignore[return-value]


def _resolve_file(file: Path | None) -> Path:
    """Return the requirements file to use, falling back to [tool.rqm]."""
    from rqm.config.loader import load_config

    if file is None:
        file = Path(load_config().requirements_file)
    if not file.exists():
        raise FileNotFoundError(f"file does not exist: {file}")
    return file


def _load_document(file: Path | None) -> tuple[Path, RequirementConfig]:
    from rqm.parser import parse_file

    path = _resolve_file(file)
    return path, parse_file(path)


_file_argument = click.argument("file", required=False, type=click.Path(path_type=Path))


@click.group()
@click.version_option(package_name="rqm")
@click.option("--verbose", "-v", count=True, help="Enable verbose logging (can be repeated)")
def cli(verbose: int) -> None:
    """rqm - requirements management in code."""
    if verbose:
        logging.basicConfig(
            level=logging.DEBUG if verbose > 1 else logging.INFO,
            format="%(levelname)s %(name)s: %(message)s",
        )


@cli.command("validate")
@_file_argument
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.option(
    "--schema",
    type=click.Path(exists=True, path_type=Path),
    help="JSON Schema to validate against (default: bundled schema)",
)
@_cli_error_handler
def validate(file: Path | None, as_json: bool, schema: Path | None) -> None:
    r"""Validate a requirements YAML file.

    Checks, in order, stopping at the first failure:

    - YAML syntax and document structure
    - Conformance to the requirements schema
    - Uniqueness of every summary
    - Owner references (email, @handle, or defined alias)

    \b
    Examples::

        rqm validate                   # Validate the configured file
        rqm validate reqs.yml --json   # Machine-readable result
    """
    from rqm.config.loader import load_config
    from rqm.results import validate_yaml
    from rqm.validation import SchemaChecker

    path = _resolve_file(file)
    configured_schema = load_config().schema
    if schema is None and configured_schema:
        schema = Path(configured_schema)

    result = validate_yaml(path.read_text(encoding="utf-8"), SchemaChecker(schema))

    if as_json:
        click.echo(result.to_json())
    elif result.valid:
        click.echo(f"Validating {path}...")
        click.echo("✓ YAML syntax valid")
        click.echo("✓ Schema validation passed")
        click.echo("✓ All summaries unique")
        click.echo("✓ Owner references valid")
        click.echo("\nValidation successful!")
    else:
        click.echo(f"Validating {path}...")
        click.echo("\n✗ Validation failed:")
        for message in result.errors:
            click.echo(f"  - {message}")

    if not result.valid:
        sys.exit(1)


@cli.command("check")
@_file_argument
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@_cli_error_handler
def check(file: Path | None, as_json: bool) -> None:
    """Check for circular references in the requirements graph.

    Cycles are found by a depth-first search; the report lists at least
    one cycle per cyclic region but is not an exhaustive enumeration.
    """
    from rqm.results import check_cycles

    path, config = _load_document(file)
    result = check_cycles(config)

    if as_json:
        click.echo(result.to_json())
        if result.has_cycles:
            sys.exit(1)
        return

    click.echo(f"Checking {path} for circular references...\n")

    if not result.has_cycles:
        click.echo("✓ No circular references detected")
        click.echo("  The requirements graph is acyclic (DAG)")
        return

    click.echo(f"✗ Found {len(result.cycles)} circular reference(s):\n")
    for i, cycle in enumerate(result.cycles, start=1):
        click.echo(f"Cycle {i}:")
        for j, node in enumerate(cycle):
            if j == len(cycle) - 1:
                click.echo(f"  `-- {node} -> (back to {cycle[0]})")
            else:
                click.echo(f"  |-- {node}")
        click.echo("")

    click.echo("Circular references can cause infinite loops during traversal.")
    click.echo("Consider restructuring your requirements to remove cycles.")
    sys.exit(1)


@cli.command("graph")
@_file_argument
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@_cli_error_handler
def graph(file: Path | None, as_json: bool) -> None:
    """Display the requirements dependency graph."""
    from rqm.results import check_cycles

    path, config = _load_document(file)
    result = check_cycles(config)

    if as_json:
        click.echo(result.to_json())
        return

    click.echo(f"Requirements Dependency Graph for {path}:\n")
    if not result.graph:
        click.echo("  (empty graph)")
        return

    for node, deps in result.graph.items():
        if deps:
            click.echo(f"  {node} -> {', '.join(deps)}")
        else:
            click.echo(f"  {node} -> (no dependencies)")

    click.echo("")
    if result.has_cycles:
        click.echo(f"Warning: Graph contains {len(result.cycles)} cycle(s)")
    else:
        click.echo("✓ Graph is acyclic (DAG)")


def _print_requirement_tree(req: Requirement, prefix: str, is_last: bool, details: bool) -> None:
    """Print one requirement and its children as a tree.

    Args:
        req: The requirement to print.
        prefix: Indentation built up by the enclosing calls.
        is_last: Whether this is the last sibling at its level.
        details: Also print name, owner, status, and priority.
    """
    from rqm.core.models import Requirement

    connector = "`-- " if is_last else "|-- "
    label = req.summary
    if req.name:
        label = f"{label} [{req.name}]"
    click.echo(f"{prefix}{connector}{label}")

    child_prefix = prefix + ("    " if is_last else "|   ")
    if details:
        for key in ("owner", "status", "priority"):
            value = getattr(req, key)
            if value is not None:
                shown = value.value if hasattr(value, "value") else value
                click.echo(f"{child_prefix}  {key}: {shown}")

    for i, child in enumerate(req.requirements):
        last = i == len(req.requirements) - 1
        if isinstance(child, Requirement):
            _print_requirement_tree(child, child_prefix, last, details)
        else:
            click.echo(f"{child_prefix}{'`-- ' if last else '|-- '}-> {child.summary}")


@cli.command("list")
@_file_argument
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["tree", "table", "json"]),
    default="tree",
    show_default=True,
    help="Output format",
)
@click.option("--details", "-d", is_flag=True, help="Show owner, status, and priority in tree output")
@_cli_error_handler
def list_requirements(file: Path | None, output_format: str, details: bool) -> None:
    """List all requirements from a YAML file."""
    _path, config = _load_document(file)

    if output_format == "json":
        click.echo(json.dumps(config.to_dict(), indent=2))
        return

    if output_format == "table":
        rows = [
            (
                req.summary,
                req.name or "",
                req.owner.value if req.owner else "",
                req.status.value if req.status else "",
                req.priority.value if req.priority else "",
            )
            for req in config.all_requirements()
        ]
        headers = ("SUMMARY", "NAME", "OWNER", "STATUS", "PRIORITY")
        widths = [max([len(h)] + [len(row[i]) for row in rows]) for i, h in enumerate(headers)]
        click.echo("  ".join(h.ljust(w) for h, w in zip(headers, widths)).rstrip())
        for row in rows:
            click.echo("  ".join(cell.ljust(w) for cell, w in zip(row, widths)).rstrip())
        return

    click.echo(f"Requirements (v{config.version})")
    if config.aliases:
        click.echo("\nAliases:")
        for alias in config.aliases:
            contact = f" <{alias.email}>" if alias.email else ""
            click.echo(f"  @{alias.alias} -> {alias.name or alias.alias}{contact}")
    click.echo("\nRequirements:")
    for i, req in enumerate(config.requirements):
        _print_requirement_tree(req, "", i == len(config.requirements) - 1, details)


@cli.command("deps")
@click.argument("summary")
@_file_argument
@click.option("--reverse", "-r", is_flag=True, help="Show dependents instead of dependencies")
@_cli_error_handler
def deps(summary: str, file: Path | None, reverse: bool) -> None:
    """Show the direct dependencies of a requirement.

    SUMMARY is the requirement's summary text.
    """
    from rqm.graph import RequirementGraph

    _path, config = _load_document(file)
    req_graph = RequirementGraph.from_config(config)

    if reverse:
        found = req_graph.dependents(summary)
        label = "Dependents"
    else:
        found = req_graph.dependencies(summary)
        label = "Dependencies"

    click.echo(f"{label} of '{summary}':")
    if not found:
        click.echo("  (none)")
    for req in found:
        click.echo(f"  - {req.summary}")


@cli.command("order")
@_file_argument
@_cli_error_handler
def order(file: Path | None) -> None:
    """Print requirements in topological order (parents first)."""
    from rqm.graph import RequirementGraph

    _path, config = _load_document(file)
    for i, req in enumerate(RequirementGraph.from_config(config).topological_sort(), start=1):
        click.echo(f"{i:>3}. {req.summary}")


@cli.command("init")
@click.option("--prefix", "-p", default=None, help="Prefix for generated IDs (default: [tool.rqm] id_prefix)")
@click.option(
    "--dir",
    "store_dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Metadata store directory (default: [tool.rqm] metadata_dir)",
)
@_cli_error_handler
def init(prefix: str | None, store_dir: Path | None) -> None:
    """Initialize a metadata store for generated requirement IDs."""
    from rqm.config.loader import load_config
    from rqm.metadata import MetadataStore

    config = load_config()
    for warning in config.validate():
        click.echo(f"Warning: {warning}", err=True)

    store = MetadataStore.init(store_dir or Path(config.metadata_dir), prefix or config.id_prefix)
    click.echo(f"Initialized metadata store at {store.root} (prefix: {store.project_config.project_prefix})")


@cli.command("ids")
@_file_argument
@click.option(
    "--dir",
    "store_dir",
    type=click.Path(path_type=Path),
    default=None,
    help="Metadata store directory (default: [tool.rqm] metadata_dir)",
)
@_cli_error_handler
def ids(file: Path | None, store_dir: Path | None) -> None:
    """Assign or refresh generated IDs for every requirement.

    The document is validated first; IDs are only assigned to valid
    documents.
    """
    from rqm.config.loader import load_config
    from rqm.metadata import MetadataStore
    from rqm.validation import SchemaChecker, Validator

    config = load_config()
    _path, document = _load_document(file)
    Validator(SchemaChecker(Path(config.schema) if config.schema else None)).validate(document)

    store = MetadataStore.open(store_dir or Path(config.metadata_dir))
    for summary, meta in store.assign_ids(document).items():
        click.echo(f"{meta.generated_id}  {summary}")
