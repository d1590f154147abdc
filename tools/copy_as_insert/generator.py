"""SQL Server CREATE TABLE / INSERT generation."""

import re
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from shared.logger import get_logger

from .classifier import (
    DEFAULT_CULTURE,
    DateCulture,
    is_null_representation,
    parse_bit,
    parse_datetime,
    parse_decimal,
    parse_int64,
    strip_thousands,
)
from .exceptions import CopyAsInsertError, TableNameError
from .models import ColumnTypeInfo, ConversionResult, SqlType, TableSchema

logger = get_logger(__name__)

# SQL Server caps a VALUES table constructor at 1000 rows.
BATCH_SIZE = 1000

MAX_IDENTIFIER_LENGTH = 128
MAX_NVARCHAR_LENGTH = 4000
DEFAULT_NVARCHAR_LENGTH = 255

DEFAULT_SCHEMA = "dbo"
TEMPORAL_SUFFIX = "_Temporal"
HISTORY_SUFFIX = "_History"

NULL_LITERAL = "NULL"

RESERVED_KEYWORDS = frozenset(
    {"SELECT", "INSERT", "UPDATE", "DELETE", "CREATE", "ALTER", "DROP", "TABLE", "DATABASE", "VIEW"}
)

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_@#][A-Za-z0-9_@#]*$")


@dataclass
class GeneratorOptions:
    """
    Optional generation behaviour.

    Attributes:
        identity_primary_key: Emit the flagged primary key as an IDENTITY
            column and leave it out of the INSERT column list
        culture: Fallback culture for date parsing
    """

    identity_primary_key: bool = False
    culture: DateCulture = DEFAULT_CULTURE


def format_int(value: str, culture: DateCulture = DEFAULT_CULTURE) -> str:
    number = parse_int64(strip_thousands(value.strip()))
    return str(number) if number is not None else NULL_LITERAL


def format_float(value: str, culture: DateCulture = DEFAULT_CULTURE) -> str:
    number = parse_decimal(value)
    return format(number, "f") if number is not None else NULL_LITERAL


def format_datetime(value: str, culture: DateCulture = DEFAULT_CULTURE) -> str:
    parsed = parse_datetime(value, culture)
    if parsed is None:
        return NULL_LITERAL
    # DATETIME2(7): seven fractional digits, microseconds plus a trailing zero
    return f"'{parsed:%Y-%m-%d %H:%M:%S}.{parsed.microsecond:06d}0'"


def format_bit(value: str, culture: DateCulture = DEFAULT_CULTURE) -> str:
    flag = parse_bit(value)
    if flag is None:
        return NULL_LITERAL
    return "1" if flag else "0"


def format_text(value: str, culture: DateCulture = DEFAULT_CULTURE) -> str:
    return "'" + value.replace("'", "''") + "'"


def nvarchar_type(column: ColumnTypeInfo) -> str:
    length = column.max_length
    if length is None:
        length = DEFAULT_NVARCHAR_LENGTH
    if length > MAX_NVARCHAR_LENGTH:
        return "NVARCHAR(MAX)"
    return f"NVARCHAR({max(length, 1)})"


@dataclass(frozen=True)
class SqlTypeSpec:
    """Physical column type and value formatter for one SqlType."""

    ddl: Callable[[ColumnTypeInfo], str]
    format_value: Callable[[str, DateCulture], str]


SQL_TYPE_SPECS: Dict[SqlType, SqlTypeSpec] = {
    SqlType.INT: SqlTypeSpec(lambda col: "INT", format_int),
    SqlType.FLOAT: SqlTypeSpec(lambda col: "DECIMAL(18,4)", format_float),
    SqlType.DATETIME: SqlTypeSpec(lambda col: "DATETIME2(7)", format_datetime),
    SqlType.BIT: SqlTypeSpec(lambda col: "BIT", format_bit),
    SqlType.TEXT: SqlTypeSpec(nvarchar_type, format_text),
}


def format_value(value: Optional[str], sql_type: SqlType, culture: DateCulture = DEFAULT_CULTURE) -> str:
    """
    Render one raw value as a SQL literal for its declared type.

    NULL spellings always become ``NULL``. Values that do not parse as the
    declared type also become ``NULL`` rather than raising.
    """
    if is_null_representation(value):
        return NULL_LITERAL
    return SQL_TYPE_SPECS[sql_type].format_value(value, culture)


def validate_table_name(table_name: str) -> None:
    """
    Check a table name against SQL Server identifier rules.

    Raises:
        TableNameError: If the name is empty, too long, malformed or reserved
    """
    if not table_name or not table_name.strip():
        raise TableNameError("Table name cannot be empty")

    if len(table_name) > MAX_IDENTIFIER_LENGTH:
        raise TableNameError(f"Table name cannot exceed {MAX_IDENTIFIER_LENGTH} characters")

    if not _IDENTIFIER_RE.match(table_name):
        raise TableNameError(f"Table name contains invalid characters: {table_name}")

    if table_name.upper() in RESERVED_KEYWORDS:
        raise TableNameError(f"Table name is a reserved SQL keyword: {table_name}")


def validate_schema_name(schema_name: str) -> None:
    """
    Check a schema name against SQL Server identifier rules.

    Raises:
        TableNameError: If the name is empty, too long or malformed
    """
    if not schema_name or len(schema_name) > MAX_IDENTIFIER_LENGTH or not _IDENTIFIER_RE.match(schema_name):
        raise TableNameError(f"Invalid schema name: {schema_name!r}")


def quote_identifier(name: str) -> str:
    """Bracket an identifier, doubling any ``]`` inside it."""
    return "[" + name.replace("]", "]]") + "]"


def qualified_name(name: str, schema_name: str, is_temporary: bool) -> str:
    """``[#name]`` for session temp tables, ``[schema].[name]`` otherwise."""
    if is_temporary:
        return quote_identifier(f"#{name}")
    return f"{quote_identifier(schema_name)}.{quote_identifier(name)}"


def resolve_table_name(table_name: str, is_temporal: bool, append_temporal_suffix: bool) -> str:
    if is_temporal and append_temporal_suffix:
        return f"{table_name}{TEMPORAL_SUFFIX}"
    return table_name


def _identity_index(schema: TableSchema, options: GeneratorOptions) -> int:
    if not options.identity_primary_key:
        return -1
    return schema.primary_key_index


def column_definition(column: ColumnTypeInfo, identity: bool = False) -> str:
    """One column line of the CREATE TABLE body."""
    if identity:
        return f"{quote_identifier(column.name)} INT IDENTITY(1,1) NOT NULL PRIMARY KEY"
    return f"{quote_identifier(column.name)} {SQL_TYPE_SPECS[column.sql_type].ddl(column)} NULL"


def generate_create_table(
    schema: TableSchema,
    table_name: str,
    schema_name: str = DEFAULT_SCHEMA,
    is_temporal: bool = False,
    is_temporary: bool = False,
    append_temporal_suffix: bool = False,
    options: Optional[GeneratorOptions] = None,
) -> str:
    """
    Generate the CREATE TABLE statement.

    Temporal tables get period columns and SYSTEM_VERSIONING with a
    ``<table>_History`` history table.
    """
    options = options or GeneratorOptions()
    full_name = qualified_name(
        resolve_table_name(table_name, is_temporal, append_temporal_suffix), schema_name, is_temporary
    )
    identity_idx = _identity_index(schema, options)

    body = [
        column_definition(col, identity=(idx == identity_idx))
        for idx, col in enumerate(schema.columns)
    ]

    if is_temporal:
        body.extend(
            [
                "SysStartTime DATETIME2 GENERATED ALWAYS AS ROW START NOT NULL",
                "SysEndTime DATETIME2 GENERATED ALWAYS AS ROW END NOT NULL",
                "PERIOD FOR SYSTEM_TIME (SysStartTime, SysEndTime)",
            ]
        )

    lines = [f"CREATE TABLE {full_name}", "("]
    lines.append(",\n".join(f"    {item}" for item in body))

    if is_temporal:
        history_name = qualified_name(f"{table_name}{HISTORY_SUFFIX}", schema_name, is_temporary)
        lines.append(")")
        lines.append(
            f"WITH (SYSTEM_VERSIONING = ON (HISTORY_TABLE = {history_name}, DATA_CONSISTENCY_CHECK = ON));"
        )
    else:
        lines.append(");")

    return "\n".join(lines)


def generate_insert_statements(
    schema: TableSchema,
    table_name: str,
    schema_name: str = DEFAULT_SCHEMA,
    is_temporal: bool = False,
    is_temporary: bool = False,
    append_temporal_suffix: bool = False,
    options: Optional[GeneratorOptions] = None,
    batch_size: int = BATCH_SIZE,
) -> List[str]:
    """
    Generate batched INSERT statements, one per ``batch_size`` rows.

    The target name and column list match :func:`generate_create_table`.

    Returns:
        List of INSERT statements (empty when there are no rows)
    """
    options = options or GeneratorOptions()
    full_name = qualified_name(
        resolve_table_name(table_name, is_temporal, append_temporal_suffix), schema_name, is_temporary
    )
    identity_idx = _identity_index(schema, options)

    indices = [idx for idx in range(len(schema.columns)) if idx != identity_idx]
    column_list = ", ".join(quote_identifier(schema.columns[idx].name) for idx in indices)
    logger.debug(f"Insert columns ({len(indices)}): {column_list}")

    statements = []
    degraded = 0

    for start in range(0, schema.row_count, batch_size):
        tuples = []
        for row in schema.rows[start : start + batch_size]:
            values = []
            for idx in indices:
                raw = row[idx]
                literal = format_value(raw, schema.columns[idx].sql_type, options.culture)
                if literal == NULL_LITERAL and not is_null_representation(raw):
                    degraded += 1
                values.append(literal)
            tuples.append(f"({', '.join(values)})")

        statements.append(f"INSERT INTO {full_name} ({column_list}) VALUES {', '.join(tuples)};")

    if degraded:
        logger.debug(f"{degraded} value(s) did not match their column type and were written as NULL")

    logger.info(f"Generated {len(statements)} INSERT statement(s)")
    return statements


def generate_sql(
    schema: TableSchema,
    table_name: str,
    schema_name: str = DEFAULT_SCHEMA,
    is_temporal: bool = False,
    is_temporary: bool = False,
    append_temporal_suffix: bool = False,
    options: Optional[GeneratorOptions] = None,
) -> ConversionResult:
    """
    Generate the full script: CREATE TABLE followed by batched INSERTs.

    Validation problems never raise; they come back as a failed result with
    no SQL.

    Args:
        schema: Typed schema (after inference and overrides)
        table_name: Target table name
        schema_name: SQL schema, ignored for temporary tables
        is_temporal: Add system versioning
        is_temporary: Create a session ``#temp`` table
        append_temporal_suffix: Append ``_Temporal`` to temporal tables
        options: Optional generation behaviour

    Returns:
        ConversionResult
    """
    options = options or GeneratorOptions()
    resolved_name = resolve_table_name(table_name, is_temporal, append_temporal_suffix)

    try:
        validate_table_name(table_name)
        if not is_temporary:
            validate_schema_name(schema_name)
        schema.validate()

        create_stmt = generate_create_table(
            schema, table_name, schema_name, is_temporal, is_temporary, append_temporal_suffix, options
        )
        insert_stmts = generate_insert_statements(
            schema, table_name, schema_name, is_temporal, is_temporary, append_temporal_suffix, options
        )

    except (CopyAsInsertError, ValueError) as e:
        logger.warning(f"SQL generation failed for {table_name!r}: {e}")
        return ConversionResult(
            success=False,
            table_name=resolved_name,
            schema_name=schema_name,
            error_message=str(e),
        )

    sql = "\n\n".join([create_stmt] + insert_stmts) + "\n"

    logger.info(f"Generated SQL for {resolved_name} ({schema.row_count} rows)")
    return ConversionResult(
        success=True,
        sql=sql,
        row_count=schema.row_count,
        table_name=resolved_name,
        schema_name=schema_name,
    )
