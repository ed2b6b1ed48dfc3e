"""
mermaid-guard command line.

Exit codes:
    0  graph accepted / no re-anchoring needed
    2  validation failed / re-anchoring required
    1  usage, IO or malformed-document errors
"""

import json
import logging
import sys
from pathlib import Path
from typing import Optional

import click
import typer

from . import config
from .compiler.canonical import content_hash
from .compiler.loader import load_graph_file, load_snapshot, read_json
from .compiler.render_mermaid import render_mermaid
from .drift.drift_meter import DriftMeter, DriftThresholds
from .dsl.mermaid import extract_mermaid_blocks, normalize_mermaid, parse_to_ast
from .ir.errors import MermaidGuardError
from .ir.graph import ALLOWED_TIERS
from .ir.snapshot import AstSnapshot
from .observability import setup_logging
from .validation.graph_validator import validate
from .validation.profile import default_profile

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_FAILED = 2

app = typer.Typer(add_completion=False, help="Validate Mermaid graphs and measure drift.")


@app.callback()
def _configure(
    log_level: str = typer.Option(config.LOG_LEVEL, "--log-level", help="Logging level."),
    log_format: str = typer.Option(config.LOG_FORMAT, "--log-format", help="'text' or 'json'."),
) -> None:
    setup_logging(log_level, log_format)


def _fail(exc: MermaidGuardError) -> None:
    typer.echo(f"error: {exc.message}", err=True)
    for problem in exc.details.get("problems", []):
        typer.echo(f"  - {problem}", err=True)
    raise typer.Exit(code=EXIT_ERROR)


def _echo_json(payload: dict) -> None:
    typer.echo(json.dumps(payload, indent=2, sort_keys=True))


@app.command()
def check(
    document: Path = typer.Argument(..., help="Graph JSON document."),
    max_nodes: Optional[int] = typer.Option(None, "--max-nodes"),
    max_edges: Optional[int] = typer.Option(None, "--max-edges"),
    max_depth: Optional[int] = typer.Option(None, "--max-depth"),
    as_json: bool = typer.Option(False, "--json", help="Print the result as JSON."),
) -> None:
    """Validate a graph document against the safety profile."""
    try:
        loaded = load_graph_file(
            document,
            {"maxNodes": max_nodes, "maxEdges": max_edges, "maxDepth": max_depth},
        )
    except MermaidGuardError as exc:
        _fail(exc)

    profile = default_profile().with_budgets(loaded.budgets)
    result = validate(loaded.graph, profile)
    digest = content_hash(loaded.graph)

    if as_json:
        _echo_json({**result.to_dict(), "contentHash": digest, "profile": profile.profile_name})
    else:
        typer.echo(result.get_summary())
        for error in result.errors:
            typer.echo(f"ERROR: {error}")
        for warning in result.warnings:
            typer.echo(f"WARNING: {warning}")
        typer.echo(f"contentHash: {digest}")

    raise typer.Exit(code=EXIT_OK if result.ok else EXIT_FAILED)


@app.command("drift-check")
def drift_check(
    document: Path = typer.Argument(..., help="Current graph JSON document."),
    snapshot: Optional[Path] = typer.Option(None, "--snapshot", help="Previous snapshot JSON."),
    tier: Optional[str] = typer.Option(
        None, "--tier", help="Override the tier recorded in the snapshot."
    ),
    write_snapshot: Optional[Path] = typer.Option(
        None, "--write-snapshot", help="Write the resulting snapshot here."
    ),
) -> None:
    """Compare a graph with its previous snapshot and apply the tier policy."""
    if tier is not None and tier not in ALLOWED_TIERS:
        raise typer.BadParameter(f"unknown tier '{tier}'", param_hint="--tier")

    try:
        current = load_graph_file(document).graph
        prior = load_snapshot(read_json(snapshot)) if snapshot else None
    except MermaidGuardError as exc:
        _fail(exc)

    if prior is not None and tier is not None:
        prior = prior.model_copy(update={"tier": tier})

    report = DriftMeter(DriftThresholds.from_config()).analyze(prior, current)
    _echo_json(report.to_dict())

    if write_snapshot is not None:
        new_snapshot = AstSnapshot.capture(current, report.new_tier)
        try:
            write_snapshot.write_text(
                json.dumps(new_snapshot.to_document(), indent=2, sort_keys=True) + "\n",
                encoding="utf-8",
            )
        except OSError as exc:
            typer.echo(f"error: failed to write {write_snapshot}: {exc}", err=True)
            raise typer.Exit(code=EXIT_ERROR)
        logger.info("snapshot written to %s", write_snapshot,
                    extra={"content_hash": new_snapshot.content_hash})

    raise typer.Exit(code=EXIT_FAILED if report.force_reanchor else EXIT_OK)


@app.command()
def render(document: Path = typer.Argument(..., help="Graph JSON document.")) -> None:
    """Render a graph document as flowchart text."""
    try:
        graph = load_graph_file(document).graph
    except MermaidGuardError as exc:
        _fail(exc)
    typer.echo(render_mermaid(graph))


@app.command()
def parse(source: Path = typer.Argument(..., help="Flowchart text file.")) -> None:
    """Parse flowchart text into a graph JSON document."""
    try:
        text = source.read_text(encoding="utf-8")
    except OSError as exc:
        typer.echo(f"error: failed to read {source}: {exc}", err=True)
        raise typer.Exit(code=EXIT_ERROR)

    profile = default_profile()
    try:
        graph = parse_to_ast(
            normalize_mermaid(text),
            max_nodes=profile.max_nodes,
            max_edges=profile.max_edges,
            max_subgraphs=profile.max_subgraphs,
        )
    except MermaidGuardError as exc:
        _fail(exc)
    _echo_json(graph.to_document())


@app.command()
def scan(
    markdown: Path = typer.Argument(..., help="Markdown file with ```mermaid blocks."),
    as_json: bool = typer.Option(False, "--json"),
    strict: bool = typer.Option(False, "--strict", help="Exit 2 when any block has errors."),
) -> None:
    """Parse and validate every mermaid block in a markdown file."""
    try:
        text = markdown.read_text(encoding="utf-8")
    except OSError as exc:
        typer.echo(f"error: failed to read {markdown}: {exc}", err=True)
        raise typer.Exit(code=EXIT_ERROR)

    profile = default_profile()
    reports = []
    for block in extract_mermaid_blocks(text):
        entry = {"index": block.index, "startLine": block.start_line, "endLine": block.end_line}
        try:
            # Budgets are reported by validate(); the builder only guards memory here.
            graph = parse_to_ast(
                normalize_mermaid(block.code),
                max_nodes=max(profile.max_nodes * 4, 80),
                max_edges=max(profile.max_edges * 4, 120),
            )
        except MermaidGuardError as exc:
            entry.update(ok=False, errors=exc.details.get("problems") or [exc.message],
                         warnings=[], contentHash=None)
        else:
            result = validate(graph, profile)
            entry.update(ok=result.ok, errors=list(result.errors),
                         warnings=list(result.warnings), contentHash=content_hash(graph))
        reports.append(entry)

    failed = [entry for entry in reports if not entry["ok"]]
    if as_json:
        _echo_json({"file": str(markdown), "blocks": reports, "failed": len(failed)})
    else:
        if not reports:
            typer.echo(f"{markdown}: no mermaid blocks found")
        for entry in reports:
            status = "OK" if entry["ok"] else "FAILED"
            typer.echo(
                f"{markdown}:{entry['startLine']}-{entry['endLine']} block {entry['index']}: {status}"
            )
            for error in entry["errors"]:
                typer.echo(f"  ERROR: {error}")
            for warning in entry["warnings"]:
                typer.echo(f"  WARNING: {warning}")

    raise typer.Exit(code=EXIT_FAILED if strict and failed else EXIT_OK)


def main() -> None:
    """Console entry point. Usage errors exit 1 rather than click's default 2."""
    try:
        code = app(standalone_mode=False)
    except click.ClickException as exc:
        exc.show()
        sys.exit(EXIT_ERROR)
    except click.Abort:
        sys.exit(EXIT_ERROR)
    sys.exit(code if isinstance(code, int) else EXIT_OK)


if __name__ == "__main__":
    main()
