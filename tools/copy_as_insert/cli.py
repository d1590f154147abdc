"""CLI interface for Copy as INSERT."""

import sys
from pathlib import Path
from typing import Optional, Tuple

import click

from shared.cli import create_table, error, handle_errors, info, print_table, success, warning
from shared.logger import setup_logger

from .classifier import DateCulture
from .config import load_settings
from .exceptions import CopyAsInsertError
from .generator import generate_sql
from .history import ConversionHistory
from .inference import apply_quick_mode, infer_types, override_column_type, parse_overrides
from .models import TableSchema
from .parser import parse_tabular_text


def display_columns(schema: TableSchema) -> None:
    """Show the inferred column types."""
    table = create_table(title="Inferred columns")
    table.add_column("#", justify="right", style="cyan", width=4)
    table.add_column("Column", style="bold")
    table.add_column("Type", style="yellow")
    table.add_column("Confidence", justify="right")
    table.add_column("Null", justify="center")
    table.add_column("Sample", style="dim")
    table.add_column("Reason", style="dim")

    for idx, col in enumerate(schema.columns, 1):
        type_label = col.sql_type.value
        if col.max_length is not None:
            type_label += f"({col.max_length})"
        if col.is_primary_key:
            type_label += " PK"

        confidence_style = "green" if col.confidence_percent >= 90 else "yellow"
        table.add_row(
            str(idx),
            col.name,
            type_label,
            f"[{confidence_style}]{col.confidence_percent}%[/{confidence_style}]",
            "yes" if col.allow_null else "no",
            col.sample_value[:30],
            col.reason,
        )

    print_table(table, to_stderr=True)


def read_input(input_file: str) -> str:
    if input_file == "-":
        return sys.stdin.read()
    with open(input_file, "r", encoding="utf-8-sig") as f:
        return f.read()


@click.command()
@click.argument("input_file", type=click.Path(exists=True, dir_okay=False, allow_dash=True))
@click.option("--table", "-t", required=True, help="Table name")
@click.option("--schema", "-s", "schema_name", help="SQL schema (default from settings, usually dbo)")
@click.option(
    "--output",
    "-o",
    type=click.Path(path_type=Path),
    help="Output SQL file (print to stdout if not specified)",
)
@click.option("--temporal/--no-temporal", default=None, help="Create a system-versioned temporal table")
@click.option("--temporary/--no-temporary", default=None, help="Create a session #temp table")
@click.option("--temporal-suffix/--no-temporal-suffix", default=None, help="Append _Temporal to temporal tables")
@click.option("--detect-bit/--no-detect-bit", default=None, help="Detect boolean columns as BIT")
@click.option("--detect-primary-key/--no-detect-primary-key", default=None, help="Flag the first INT or ID column")
@click.option("--identity-pk/--no-identity-pk", default=None, help="Emit the primary key as IDENTITY, not inserted")
@click.option(
    "--culture",
    type=click.Choice([c.value for c in DateCulture], case_sensitive=False),
    help="Fallback culture for dates (eu = day first)",
)
@click.option("--no-header", is_flag=True, help="First line is data, not column names")
@click.option("--quick", "-q", is_flag=True, help="Quick mode: every column NVARCHAR(100)")
@click.option(
    "--type",
    "type_overrides",
    multiple=True,
    help="Override a column type, e.g. --type Code=NVARCHAR(20)",
)
@click.option("--show-types", is_flag=True, help="Show inferred column types")
@click.option("--history", "history_file", type=click.Path(path_type=Path), help="Append result to a JSON history file")
@click.option("--config", "config_file", type=click.Path(exists=True, path_type=Path), help="Settings TOML file")
@click.option("--verbose", "-v", is_flag=True, help="Verbose output")
@handle_errors
def main(
    input_file: str,
    table: str,
    schema_name: Optional[str],
    output: Optional[Path],
    temporal: Optional[bool],
    temporary: Optional[bool],
    temporal_suffix: Optional[bool],
    detect_bit: Optional[bool],
    detect_primary_key: Optional[bool],
    identity_pk: Optional[bool],
    culture: Optional[str],
    no_header: bool,
    quick: bool,
    type_overrides: Tuple[str, ...],
    show_types: bool,
    history_file: Optional[Path],
    config_file: Optional[Path],
    verbose: bool,
):
    """
    Copy as INSERT - turn pasted spreadsheet rows into SQL Server SQL.

    Reads tab or comma separated text, infers column types and generates a
    CREATE TABLE plus batched INSERT statements. Use - to read stdin.

    Examples:

        \b
        # Clipboard dump to a temp table
        copy-as-insert rows.tsv --table Products --temporary

        \b
        # Temporal table in the sales schema
        copy-as-insert rows.tsv -t Orders -s sales --temporal

        \b
        # Pipe from the clipboard and show inferred types
        xclip -o | copy-as-insert - -t Import --show-types

        \b
        # Keep zero padded codes as text with a fixed width
        copy-as-insert rows.tsv -t Items --type Code=NVARCHAR(20)

        \b
        # Quick mode: everything NVARCHAR(100) into #temp
        copy-as-insert rows.tsv -t temp --quick --temporary
    """
    # Setup logging
    log_level = "DEBUG" if verbose else "INFO"
    setup_logger(__name__, level=log_level)

    settings = load_settings(config_file)

    # Command line flags win over settings
    if detect_bit is not None:
        settings.detect_bit = detect_bit
    if detect_primary_key is not None:
        settings.detect_primary_key = detect_primary_key
    if identity_pk is not None:
        settings.identity_primary_key = identity_pk
    if culture:
        settings.date_culture = culture.lower()

    is_temporal = settings.temporal_by_default if temporal is None else temporal
    is_temporary = settings.temporary_by_default if temporary is None else temporary
    append_suffix = settings.append_temporal_suffix if temporal_suffix is None else temporal_suffix
    schema_name = schema_name or settings.default_schema

    try:
        text = read_input(input_file)
        schema = parse_tabular_text(text, has_headers=not no_header)
        info(f"Parsed {schema.row_count} rows x {len(schema.columns)} columns")

        if quick:
            apply_quick_mode(schema)
        else:
            infer_types(schema, settings.inference_options())

        for name, sql_type, length in parse_overrides(list(type_overrides)):
            override_column_type(schema, name, sql_type, max_length=length)

        if show_types:
            display_columns(schema)

        result = generate_sql(
            schema,
            table_name=table,
            schema_name=schema_name,
            is_temporal=is_temporal,
            is_temporary=is_temporary,
            append_temporal_suffix=append_suffix,
            options=settings.generator_options(),
        )

    except (CopyAsInsertError, ValueError, OSError) as e:
        error(f"Conversion failed: {e}")
        if verbose:
            raise
        sys.exit(1)

    if history_file:
        history = ConversionHistory(max_history=settings.history_limit)
        if history_file.exists():
            try:
                history.load_from_file(history_file)
            except ValueError as e:
                warning(f"Starting a new history: {e}")
        history.add(result)
        history.save_to_file(history_file)

    if not result.success:
        error(f"Conversion failed: {result.error_message}")
        sys.exit(1)

    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(result.sql)
        info(f"SQL written to: {output}")
    else:
        click.echo(result.sql, nl=False)

    success(f"Generated {result.summary}")
    sys.exit(0)


if __name__ == "__main__":
    main()
