"""Typer-based CLI for docdrift documentation staleness checks."""

from __future__ import annotations

import json
import logging
from dataclasses import asdict
from pathlib import Path
from typing import Any, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from . import __version__, config
from .config_manager import load_analysis_settings, load_docs_dir
from .decision import DecisionCascade, DecisionResult
from .differ import CategoryDiff, DiffReport, StructuralDiffer
from .doc_introspection import DocumentationIntrospector
from .errors import GitSourceError, ParseError
from .git_source import read_file_at_revision
from .models import DocMetadata, StructuralModel
from .parser import StructureExtractor
from .private_changes import unified_diff
from .storage import DecisionStore, content_hash

console = Console()
err_console = Console(stderr=True)

app = typer.Typer(
    help="📄 docdrift: decide when generated PHP documentation has gone stale.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


def version_callback(value: bool):
    """Print version and exit."""
    if value:
        typer.echo(f"docdrift v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", help="Log analysis steps to stderr."),
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        help="Show version and exit.",
        callback=version_callback,
        is_eager=True,
    ),
):
    """docdrift: structural diffing and regeneration decisions for PHP docs."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


# ===================================================================
# Helpers
# ===================================================================

def _fail(message: str) -> None:
    err_console.print(f"[red]❌ {message}[/red]")
    raise typer.Exit(code=1)


def _check_extension(path: Path) -> None:
    if path.suffix.lower() not in config.SUPPORTED_EXTENSIONS:
        _fail(f"{path} is not a PHP file (expected one of: {', '.join(sorted(config.SUPPORTED_EXTENSIONS))})")


def _read_source(path: Path) -> str:
    _check_extension(path)
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        _fail(f"Cannot read {path}: {exc}")
    return ""


def _build_cascade() -> DecisionCascade:
    return DecisionCascade(assessor=load_analysis_settings().build_assessor())


def _load_doc(doc: Optional[Path], source_path: Path) -> Optional[DocMetadata]:
    introspector = DocumentationIntrospector(load_docs_dir())
    if doc is not None:
        metadata = introspector.analyze(doc)
        if metadata is None:
            err_console.print(f"[yellow]⚠ No usable documentation at {doc}; treating as undocumented[/yellow]")
        return metadata
    return introspector.analyze_source(source_path)


def _extract(path: Path) -> StructuralModel:
    try:
        return StructureExtractor().extract(_read_source(path))
    except ParseError as exc:
        _fail(f"Cannot parse {path}: {exc}")
    return StructuralModel.empty()


def _print_decision(result: DecisionResult, file_label: str) -> None:
    color = "red" if result.should_regenerate else "green"
    verdict = "REGENERATE" if result.should_regenerate else "SKIP"
    table = Table(show_header=False, box=None)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    table.add_row("Reason", result.reason_code.value)
    table.add_row("Confidence", f"{result.confidence:.2f}")
    table.add_row("Severity", result.severity.value)
    table.add_row("Relevance", f"{result.relevance_score}/100")
    if result.affected_sections:
        table.add_row("Sections", ", ".join(result.affected_sections))
    for line in result.reasoning:
        table.add_row("Why", line)
    console.print(Panel(table, title=f"[bold {color}]{verdict}[/bold {color}] {file_label}", border_style=color))


def _emit(result: DecisionResult, file_label: str, as_json: bool) -> None:
    if as_json:
        typer.echo(json.dumps({"file": file_label, **result.to_dict()}, indent=2))
    else:
        _print_decision(result, file_label)


def _record(file_label: str, source: str, result: DecisionResult) -> None:
    store = DecisionStore(config.DB_FILE)
    try:
        row_id = store.record(file_label, content_hash(source), result)
    finally:
        store.close()
    err_console.print(f"[dim]Recorded decision #{row_id} in {config.DB_FILE}[/dim]")


def _json_default(value: Any) -> Any:
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


# ===================================================================
# Commands
# ===================================================================

@app.command("analyze")
def analyze(
    old: Path = typer.Argument(..., help="Previous version of the PHP file (empty file = new file)."),
    new: Path = typer.Argument(..., help="Current version of the PHP file."),
    doc: Optional[Path] = typer.Option(None, "--doc", "-d", help="Existing Markdown documentation."),
    as_json: bool = typer.Option(False, "--json", help="Print the decision as JSON."),
    record: bool = typer.Option(False, "--record", help="Store the decision in the decision log."),
):
    """Decide whether documentation for NEW must be regenerated."""
    old_source = _read_source(old)
    new_source = _read_source(new)
    result = _build_cascade().evaluate(old_source, new_source, _load_doc(doc, new))
    _emit(result, str(new), as_json)
    if record:
        _record(str(new), new_source, result)


@app.command("analyze-git")
def analyze_git(
    path: Path = typer.Argument(..., help="PHP file, relative to the repository root."),
    rev: str = typer.Option("HEAD~1", "--rev", "-r", help="Revision holding the previous version."),
    repo: Path = typer.Option(Path("."), "--repo", help="Git repository root."),
    doc: Optional[Path] = typer.Option(None, "--doc", "-d", help="Existing Markdown documentation."),
    as_json: bool = typer.Option(False, "--json", help="Print the decision as JSON."),
    record: bool = typer.Option(False, "--record", help="Store the decision in the decision log."),
):
    """Compare PATH at --rev against the working tree."""
    _check_extension(path)
    try:
        old_source = read_file_at_revision(repo, path, rev)
    except GitSourceError as exc:
        _fail(str(exc))
        return
    working_copy = path if path.is_absolute() else repo / path
    new_source = _read_source(working_copy)
    result = _build_cascade().evaluate(old_source, new_source, _load_doc(doc, path))
    _emit(result, str(path), as_json)
    if record:
        _record(str(path), new_source, result)


def _category_rows(table: Table, label: str, category: CategoryDiff) -> None:
    for name in sorted(category.added):
        table.add_row(label, name, "[green]added[/green]", "")
    for name in sorted(category.removed):
        table.add_row(label, name, "[red]removed[/red]", "")
    for name, member_diff in sorted(category.modified.items()):
        details = []
        if member_diff is not None:
            if member_diff.extends_changed:
                details.append("extends")
            if member_diff.implements_changes.has_changes:
                details.append("implements")
            if member_diff.modifiers_changed.has_changes:
                details.append("modifiers")
            for kind, changes in (
                ("methods", member_diff.methods_changes),
                ("properties", member_diff.properties_changes),
                ("constants", member_diff.constants_changes),
            ):
                for verb, names in (("+", changes.added), ("-", changes.removed), ("~", changes.modified)):
                    if names:
                        details.append(f"{kind} {verb}{', '.join(sorted(names))}")
        table.add_row(label, name, "[yellow]modified[/yellow]", "; ".join(details))


def _print_diff(report: DiffReport) -> None:
    summary = report.summary()
    if not report.has_changes:
        console.print("[green]✓ No structural changes[/green]")
        return

    table = Table(title=f"Structural changes (severity: {summary['severity']})")
    table.add_column("Category", style="cyan")
    table.add_column("Name", style="bold")
    table.add_column("Change")
    table.add_column("Details", style="dim")
    if report.namespace_changed:
        table.add_row("namespace", f"{report.old.namespace} → {report.new.namespace}", "[yellow]modified[/yellow]", "")
    for name in sorted(report.uses.added):
        table.add_row("imports", name, "[green]added[/green]", "")
    for name in sorted(report.uses.removed):
        table.add_row("imports", name, "[red]removed[/red]", "")
    _category_rows(table, "class", report.classes)
    _category_rows(table, "interface", report.interfaces)
    _category_rows(table, "trait", report.traits)
    _category_rows(table, "function", report.functions)
    _category_rows(table, "constant", report.constants)
    console.print(table)


@app.command("diff")
def diff(
    old: Path = typer.Argument(..., help="Previous version of the PHP file."),
    new: Path = typer.Argument(..., help="Current version of the PHP file."),
    as_json: bool = typer.Option(False, "--json", help="Print the diff report as JSON."),
    text: bool = typer.Option(False, "--text", help="Also print a unified text diff."),
):
    """Show declaration-level differences between two versions."""
    report = StructuralDiffer().diff(_extract(old), _extract(new))
    if as_json:
        typer.echo(json.dumps(report.to_dict(), indent=2))
        return
    _print_diff(report)
    if text:
        patch = unified_diff(_read_source(old), _read_source(new), new.name)
        console.print(patch or "[dim](no textual changes)[/dim]", markup=False, highlight=False)


@app.command("structure")
def structure(
    file: Path = typer.Argument(..., help="PHP file to inspect."),
    as_json: bool = typer.Option(False, "--json", help="Print the model as JSON."),
):
    """Print the structural model extracted from FILE."""
    model = _extract(file)
    if as_json:
        typer.echo(json.dumps(asdict(model), indent=2, default=_json_default))
        return

    if model.namespace:
        console.print(f"[bold]namespace[/bold] {model.namespace}")
    for name in sorted(model.imports):
        console.print(f"[dim]use[/dim] {name}")

    for kind, declarations in (("class", model.classes), ("interface", model.interfaces), ("trait", model.traits)):
        for name, decl in declarations.items():
            table = Table(title=f"{kind} {name}", title_justify="left")
            table.add_column("Member", style="cyan")
            table.add_column("Visibility")
            table.add_column("Signature")
            for method in decl.methods:
                params = ", ".join(
                    " ".join(filter(None, [p.type, ("..." if p.variadic else "") + ("&" if p.by_ref else "") + p.name]))
                    for p in method.parameters
                )
                returns = f": {method.return_type}" if method.return_type else ""
                table.add_row("method", method.visibility.value, f"{method.name}({params}){returns}")
            for prop in decl.properties:
                table.add_row("property", prop.visibility.value, " ".join(filter(None, [prop.type, prop.name])))
            for const in decl.constants:
                table.add_row("const", const.visibility.value, f"{const.name} = {const.value}")
            console.print(table)

    for function in model.functions:
        params = ", ".join(p.name for p in function.parameters)
        console.print(f"[bold]function[/bold] {function.name}({params})")
    for const in model.constants:
        console.print(f"[bold]const[/bold] {const.name} = {const.value}")
    if model.is_empty:
        console.print("[dim]No declarations found[/dim]")


@app.command("history")
def history(
    limit: int = typer.Option(20, "--limit", "-n", min=1, help="Number of decisions to show."),
    file: Optional[str] = typer.Option(None, "--file", "-f", help="Only decisions for this file."),
    as_json: bool = typer.Option(False, "--json", help="Print the decisions as JSON."),
):
    """List recorded decisions, newest first."""
    store = DecisionStore(config.DB_FILE)
    try:
        records = store.recent(limit=limit, file_path=file)
    finally:
        store.close()

    if as_json:
        typer.echo(json.dumps([rec.to_dict() for rec in records], indent=2))
        return

    if not records:
        typer.echo("No decisions recorded yet.")
        raise typer.Exit(code=0)

    table = Table(title="Decision history")
    table.add_column("#", justify="right")
    table.add_column("File", style="cyan", overflow="fold")
    table.add_column("Verdict")
    table.add_column("Reason", no_wrap=True)
    table.add_column("Conf.", justify="right")
    table.add_column("Hash", style="dim")
    for rec in records:
        verdict = "[red]regenerate[/red]" if rec.should_regenerate else "[green]skip[/green]"
        table.add_row(str(rec.id), rec.file_path, verdict, rec.reason_code, f"{rec.confidence:.2f}", rec.content_hash[:10])
    console.print(table)


@app.command("show-config")
def show_config():
    """Show effective configuration."""
    settings = load_analysis_settings()
    table = Table(title="docdrift configuration", show_header=False)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value")
    table.add_row("config file", f"{config.CONFIG_FILE}{'' if config.CONFIG_FILE.exists() else ' (not found, defaults)'}")
    table.add_row("decision log", str(config.DB_FILE))
    table.add_row("docs_dir", load_docs_dir())
    table.add_row("private_change_percentage", str(settings.private_change_percentage))
    table.add_row("private_changed_lines", str(settings.private_changed_lines))
    table.add_row("private_keyword_changes", str(settings.private_keyword_changes))
    table.add_row("extra_keywords", ", ".join(settings.extra_keywords) or "-")
    console.print(table)


if __name__ == "__main__":
    app()
