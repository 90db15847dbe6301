"""Command line interface for work catalog."""

import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import click
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from . import __version__
from .core.formatter import CatalogFormatter
from .core.parser import NumberParser
from .core.registry import SchemeRegistry
from .core.resolver import CatalogIndex, QueryResolver
from .core.batch import BatchResolver
from .core.sort_keys import SortKeyGenerator, find_collisions, sort_numbers
from .domain.queries import GroupSelector, Query, QueryResult, RangeSelector
from .domain.result import DomainError, Result, partition
from .domain.scheme import CatalogScheme
from .exceptions import SchemeDefinitionError, WorkCatalogError
from .infrastructure.loaders import (
    build_registry,
    composer_index,
    load_composer_overrides,
    load_scheme_file,
    read_index_file,
)
from .models.config import Config, default_config_path, load_config, resolve_data_dir

console = Console()
err_console = Console(stderr=True)


class CatalogSession:
    """Configuration and lazily loaded data shared by the commands."""

    def __init__(self, config: Config, data_dir: Path):
        self.config = config
        self.data_dir = data_dir
        self._registry: Optional[SchemeRegistry] = None

    @property
    def index_path(self) -> Path:
        return self.data_dir / self.config.index_file

    @property
    def registry(self) -> SchemeRegistry:
        if self._registry is None:
            self._registry = build_registry(self.data_dir, self.config)
        return self._registry

    def scheme(self, scheme_id: str, composer: Optional[str] = None) -> CatalogScheme:
        found = self.registry.lookup(scheme_id, composer)
        if found.is_failure():
            _abort(str(found.error()))
        return found.value()

    def index(self, composer: str) -> CatalogIndex:
        found = composer_index(read_index_file(self.index_path), composer)
        if found.is_failure():
            _abort(str(found.error()))
        return found.value()

    def strict(self, flag: Optional[bool]) -> Optional[bool]:
        return flag if flag is not None else self.config.queries.strict


def _abort(message: str) -> None:
    err_console.print(f"[red]Error: {escape(message)}[/red]", highlight=False, soft_wrap=True)
    sys.exit(1)


def _setup_logging(verbose: int, config: Config) -> None:
    if verbose > 1:
        level = logging.DEBUG
    elif verbose == 1:
        level = logging.INFO
    else:
        level = getattr(logging, config.logging.level.upper(), logging.WARNING)

    logger = logging.getLogger("work_catalog")
    logger.handlers[:] = [RichHandler(console=err_console, show_path=False)]
    logger.setLevel(level)


def _print_warnings(result: QueryResult) -> None:
    for warning in result.warnings:
        err_console.print(f"[yellow]Warning: {escape(str(warning))}[/yellow]", highlight=False, soft_wrap=True)


@click.group()
@click.version_option(version=__version__)
@click.option(
    '--data-dir',
    type=click.Path(file_okay=False, path_type=Path),
    help='Directory holding catalogs/, composers/ and index/'
)
@click.option(
    '--config',
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    help='Configuration file path'
)
@click.option('--verbose', '-v', count=True, help='Verbose output (repeat for debug)')
@click.pass_context
def cli(ctx: click.Context, data_dir: Optional[Path], config: Optional[Path], verbose: int):
    """Resolve, sort and format catalog numbers of musical works."""
    try:
        if config:
            cfg = load_config(config)
        elif default_config_path().is_file():
            cfg = load_config(default_config_path())
        else:
            cfg = Config.default()
    except WorkCatalogError as e:
        _abort(str(e))

    _setup_logging(verbose, cfg)
    ctx.obj = CatalogSession(cfg, resolve_data_dir(data_dir, cfg))


@cli.command()
@click.argument('composer')
@click.argument('scheme')
@click.argument('number')
@click.option('--edition', help='Edition the number is quoted from')
@click.option(
    '--strict/--no-strict',
    default=None,
    help='Refuse superseded numbers instead of substituting them'
)
@click.option('--range', 'as_range', is_flag=True, help='Treat NUMBER as START-END')
@click.option('--group', 'as_group', is_flag=True, help='List every member of the group NUMBER')
@click.option('--json', 'as_json', is_flag=True, help='Print the result as JSON')
@click.pass_obj
def get(session: CatalogSession, composer: str, scheme: str, number: str, edition: Optional[str],
        strict: Optional[bool], as_range: bool, as_group: bool, as_json: bool):
    """Look up NUMBER of SCHEME for COMPOSER."""
    if as_range and as_group:
        raise click.UsageError("--range and --group are mutually exclusive")

    options = {"edition": edition, "strict": session.strict(strict)}
    if as_range:
        bounds = RangeSelector.parse(number)
        if bounds.is_failure():
            _abort(str(bounds.error()))
        query = Query(composer, scheme, bounds.value(), **options)
    elif as_group:
        query = Query(composer, scheme, GroupSelector(number), **options)
    else:
        query = Query.exact(composer, scheme, number, **options)

    try:
        catalog_scheme = session.scheme(scheme, composer)
        result = QueryResolver(session.registry).resolve(query, session.index(composer))
    except WorkCatalogError as e:
        _abort(str(e))

    if result.is_failure():
        _abort(str(result.error()))
    found = result.value()

    if as_json:
        click.echo(json.dumps(found.to_dict(), indent=2))
    else:
        _print_warnings(found)
        if found.is_empty:
            err_console.print(f"[yellow]No {catalog_scheme.id} {escape(number)} for {escape(composer)}[/yellow]",
                              highlight=False)
        else:
            formatter = CatalogFormatter()
            table = Table(title=f"{composer} {catalog_scheme.name}")
            table.add_column("Number", style="cyan")
            table.add_column("Composition")
            for entry in found:
                table.add_row(escape(formatter.format(catalog_scheme, entry.number)), escape(entry.composition_id))
            console.print(table)

    if found.is_empty:
        sys.exit(1)


@cli.command()
@click.argument('scheme')
@click.argument('numbers', type=click.File('r'), default='-')
@click.option('--composer', help='Use the composer-specific definition of SCHEME')
@click.pass_obj
def sort(session: CatalogSession, scheme: str, numbers, composer: Optional[str]):
    """Sort catalog numbers (one per line, stdin by default) in catalog order."""
    try:
        catalog_scheme = session.scheme(scheme, composer)
    except WorkCatalogError as e:
        _abort(str(e))

    raw = [line.strip() for line in numbers if line.strip()]
    ordered, rejected = sort_numbers(catalog_scheme, raw)
    for number in ordered:
        click.echo(number)
    for number in rejected:
        err_console.print(f"[red]Not a valid {catalog_scheme.id} number: {escape(number)}[/red]", highlight=False)

    if rejected:
        sys.exit(1)


@cli.command('sort-key')
@click.argument('scheme')
@click.argument('number')
@click.pass_obj
def sort_key(session: CatalogSession, scheme: str, number: str):
    """Print the sort key of NUMBER."""
    try:
        catalog_scheme = session.scheme(scheme)
    except WorkCatalogError as e:
        _abort(str(e))

    key = NumberParser().parse(catalog_scheme, number).map(
        lambda parsed: SortKeyGenerator().for_number(catalog_scheme, parsed)
    )
    if key.is_failure():
        _abort(str(key.error()))
    click.echo(str(key.value()))


@cli.command('format')
@click.argument('scheme')
@click.argument('number')
@click.option('--composer', help='Use the composer-specific definition of SCHEME')
@click.pass_obj
def format_number(session: CatalogSession, scheme: str, number: str, composer: Optional[str]):
    """Print NUMBER in the canonical format of SCHEME."""
    try:
        catalog_scheme = session.scheme(scheme, composer)
    except WorkCatalogError as e:
        _abort(str(e))

    formatter = CatalogFormatter()
    formatted = formatter.recognize(catalog_scheme, number).map(
        lambda parsed: formatter.format(catalog_scheme, parsed)
    )
    if formatted.is_failure():
        _abort(str(formatted.error()))
    click.echo(formatted.value())


@cli.command()
@click.pass_obj
def validate(session: CatalogSession):
    """Check scheme files, edition aliases and the catalog index."""
    config = session.config
    problems: List[Tuple[str, str]] = []
    schemes: List[CatalogScheme] = []

    console.print(f"\n[cyan]Validating catalog data in: {session.data_dir}[/cyan]")

    catalogs_dir = session.data_dir / config.catalogs_dir
    scheme_files = sorted(catalogs_dir.glob("*.json")) if catalogs_dir.is_dir() else []
    if not scheme_files:
        problems.append((str(catalogs_dir), "no scheme files found"))
    for path in scheme_files:
        try:
            schemes.append(load_scheme_file(path))
        except SchemeDefinitionError as e:
            problems.append((path.name, str(e)))

    registry: Optional[SchemeRegistry] = None
    try:
        overrides = load_composer_overrides(session.data_dir / config.composers_dir)
        registry = SchemeRegistry(schemes, overrides)
    except SchemeDefinitionError as e:
        problems.append(("registry", str(e)))

    if registry is not None:
        for (composer, scheme_id), error in registry.integrity_errors().items():
            label = f"{composer}/{scheme_id}" if composer else scheme_id
            problems.append((label, str(error)))

    entry_count = 0
    if session.index_path.is_file() and registry is not None:
        try:
            raw_index = read_index_file(session.index_path)
        except WorkCatalogError as e:
            problems.append((config.index_file, str(e)))
            raw_index = {}
        for composer, by_scheme in raw_index.items():
            for scheme_id, numbers in by_scheme.items():
                entry_count += len(numbers)
                problems.extend(_index_problems(registry, composer, scheme_id, numbers))
    elif not session.index_path.is_file():
        console.print(f"[yellow]No index at {session.index_path}[/yellow]")

    summary = Table(title="Catalog Data")
    summary.add_column("Item", style="cyan")
    summary.add_column("Count", justify="right")
    summary.add_row("Scheme files", str(len(scheme_files)))
    summary.add_row("Schemes loaded", str(len(registry) if registry is not None else 0))
    summary.add_row("Index entries", str(entry_count))
    summary.add_row("Problems", str(len(problems)))
    console.print(summary)

    if problems:
        console.print(f"\n[red]Found {len(problems)} problems:[/red]")
        for where, message in problems:
            console.print(f"  • {where}: {message}", highlight=False, markup=False, soft_wrap=True)
        sys.exit(1)

    console.print("\n[green]✓ Catalog data is consistent![/green]")


def _index_problems(registry: SchemeRegistry, composer: str, scheme_id: str,
                    numbers: Dict[str, str]) -> List[Tuple[str, str]]:
    where = f"index {composer}/{scheme_id}"
    found = registry.lookup(scheme_id, composer)
    if found.is_failure():
        return [(where, str(found.error()))]

    scheme = found.value()
    parser = NumberParser()
    problems = []
    parsed = []
    for number, composition_id in numbers.items():
        result = parser.parse(scheme, number)
        if result.is_failure():
            problems.append((where, str(result.error())))
        else:
            parsed.append((result.value(), composition_id))

    problems.extend((where, str(error)) for error in find_collisions(scheme, parsed))
    return problems


@cli.command()
@click.argument('composer')
@click.argument('scheme')
@click.argument('numbers', type=click.File('r'), default='-')
@click.option('--edition', help='Edition the numbers are quoted from')
@click.option('--strict/--no-strict', default=None, help='Refuse superseded numbers')
@click.option('--workers', type=click.IntRange(min=1), help='Worker threads')
@click.option('--fail-fast', is_flag=True, help='Stop at the first failing number')
@click.option('--json', 'as_json', is_flag=True, help='Print the results as JSON')
@click.pass_obj
def batch(session: CatalogSession, composer: str, scheme: str, numbers, edition: Optional[str],
          strict: Optional[bool], workers: Optional[int], fail_fast: bool, as_json: bool):
    """Resolve many numbers (one per line, stdin by default) at once."""
    raw = [line.strip() for line in numbers if line.strip()]
    queries = [
        Query.exact(composer, scheme, number, edition=edition, strict=session.strict(strict))
        for number in raw
    ]

    try:
        index = session.index(composer)
        resolver = BatchResolver(
            QueryResolver(session.registry),
            max_workers=workers or session.config.queries.max_workers,
        )
        results = resolver.resolve_all(queries, index, fail_fast=fail_fast)
    except WorkCatalogError as e:
        _abort(str(e))

    _, errors = partition(results)
    if as_json:
        click.echo(json.dumps([_batch_item(n, r) for n, r in zip(raw, results)], indent=2))
    else:
        for number, result in zip(raw, results):
            if result.is_failure():
                err_console.print(f"[red]{escape(number)}: {escape(str(result.error()))}[/red]", highlight=False,
                                  soft_wrap=True)
                continue
            found = result.value()
            _print_warnings(found)
            ids = ", ".join(found.composition_ids) or "-"
            click.echo(f"{number}\t{ids}")

    if len(results) < len(raw):
        err_console.print(f"[yellow]Stopped after {len(results)} of {len(raw)} numbers[/yellow]")
    if errors:
        sys.exit(1)


def _batch_item(number: str, result: Result[QueryResult, DomainError]) -> Dict[str, object]:
    if result.is_failure():
        return {"query": number, "error": str(result.error())}
    return {"query": number, **result.value().to_dict()}


def main():
    """Entry point for the CLI."""
    cli()


if __name__ == '__main__':
    main()
