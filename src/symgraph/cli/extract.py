"""symg extract command - extract symbol records from source files."""

from pathlib import Path

import click
from rich.console import Console

from symgraph.config import load_config
from symgraph.core.errors import SymgraphError
from symgraph.core.languages import get_all_indexable_extensions
from symgraph.core.logging import set_request_id
from symgraph.core.progress import make_records_table, pluralize, spinner, status
from symgraph.index import FileRecord, process_paths


def _collect(paths: tuple[Path, ...]) -> list[Path]:
    """Expand directories into their supported source files (sorted)."""
    extensions = get_all_indexable_extensions()
    files: list[Path] = []
    for path in paths:
        if path.is_dir():
            files.extend(sorted(p for p in path.rglob("*") if p.is_file() and p.suffix.lower() in extensions))
        else:
            files.append(path)
    return files


def _print_diagnostics(console: Console, records: list[FileRecord]) -> None:
    for record in records:
        for diag in record.diagnostics:
            color = {"fatal": "red", "error": "yellow", "warning": "magenta"}.get(diag.severity, "dim")
            console.print(
                f"{record.file_path}:{diag.span.start_line}:{diag.span.start_col}: "
                f"[{color}]{diag.severity}[/{color}] {diag.message}",
                highlight=False,
                soft_wrap=True,
            )


@click.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("-l", "--language", default=None, help="Force a language instead of detecting it")
@click.option("--json", "as_json", is_flag=True, help="Output one JSON record per line")
@click.option("-w", "--workers", type=int, default=None, help="Worker processes (default from config)")
@click.option("--no-locals", is_flag=True, help="Skip local variables and parameters")
@click.option("--no-references", is_flag=True, help="Skip references")
@click.pass_context
def extract_command(
    ctx: click.Context,
    paths: tuple[Path, ...],
    language: str | None,
    as_json: bool,
    workers: int | None,
    no_locals: bool,
    no_references: bool,
) -> None:
    """Extract symbols and references from PATHS.

    Directories are searched recursively for supported source files.
    Exits with status 1 if any file was aborted.
    """
    # Loaded by the group; load here when the command runs standalone
    config = (ctx.find_object(dict) or {}).get("config")
    if config is None:
        try:
            config = load_config()
        except SymgraphError as e:
            raise click.ClickException(e.message) from e

    updates: dict[str, object] = {}
    if workers is not None:
        if workers < 1:
            raise click.BadParameter("must be >= 1", param_hint="--workers")
        updates["max_workers"] = workers
    if no_locals:
        updates["include_locals"] = False
    if no_references:
        updates["include_references"] = False
    if updates:
        config = config.model_copy(update={"extractor": config.extractor.model_copy(update=updates)})

    files = _collect(paths)
    if not files:
        raise click.ClickException("No supported source files found")

    set_request_id()
    with spinner(f"Extracting {pluralize(len(files), 'file')}"):
        records = process_paths(files, config, language=language)

    if as_json:
        for record in records:
            click.echo(record.to_json())
    else:
        console = Console()
        console.print(make_records_table(records))
        _print_diagnostics(console, records)
        symbols = sum(len(r.symbols) for r in records)
        references = sum(len(r.references) for r in records)
        status(
            f"{pluralize(len(records), 'file')}, {pluralize(symbols, 'symbol')}, "
            f"{pluralize(references, 'reference')}",
            style="success",
        )

    if any(r.aborted for r in records):
        raise SystemExit(1)
