"""Column type inference over raw pasted values."""

from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple, Union

from shared.logger import get_logger

from .classifier import (
    DEFAULT_CULTURE,
    DateCulture,
    has_decimal_separator,
    has_leading_zero,
    is_boolean_literal,
    is_null_representation,
    matches_date_pattern,
    parse_datetime,
    parse_decimal,
    parse_int64,
)
from .models import ColumnTypeInfo, SqlType, TableSchema

logger = get_logger(__name__)

DATETIME_THRESHOLD = 0.80
INT_THRESHOLD = 0.85
BIT_THRESHOLD = 0.90
FLOAT_THRESHOLD = 0.85

QUICK_MODE_LENGTH = 100


@dataclass
class InferenceOptions:
    """
    Switches for the optional inference heuristics.

    Attributes:
        detect_bit: Try BIT between INT and FLOAT
        detect_primary_key: Flag the first INT or ID-named column
        culture: Fallback culture for date parsing
    """

    detect_bit: bool = False
    detect_primary_key: bool = False
    culture: DateCulture = DEFAULT_CULTURE


@dataclass(frozen=True)
class TypeCandidate:
    """One detection rule in the priority list."""

    sql_type: SqlType
    threshold: float
    family: str
    matches: Callable[[str, InferenceOptions], bool]


def is_datetime_value(value: str, options: InferenceOptions) -> bool:
    return parse_datetime(value, options.culture) is not None or matches_date_pattern(value)


def is_int_value(value: str, options: InferenceOptions) -> bool:
    if has_decimal_separator(value) or has_leading_zero(value):
        return False
    return parse_int64(value) is not None


def is_bit_value(value: str, options: InferenceOptions) -> bool:
    return is_boolean_literal(value)


def is_float_value(value: str, options: InferenceOptions) -> bool:
    number = parse_decimal(value)
    if number is None:
        return False
    return has_decimal_separator(value) or number != number.to_integral_value()


DATETIME_CANDIDATE = TypeCandidate(
    SqlType.DATETIME, DATETIME_THRESHOLD, "match date/time formats", is_datetime_value
)
INT_CANDIDATE = TypeCandidate(SqlType.INT, INT_THRESHOLD, "are valid integers", is_int_value)
BIT_CANDIDATE = TypeCandidate(
    SqlType.BIT, BIT_THRESHOLD, "are boolean values (true/false, yes/no, on/off, 0/1)", is_bit_value
)
FLOAT_CANDIDATE = TypeCandidate(SqlType.FLOAT, FLOAT_THRESHOLD, "are decimal numbers", is_float_value)


def candidates_for(options: InferenceOptions) -> List[TypeCandidate]:
    """Detection rules in priority order; TEXT is the implicit fallback."""
    ordered = [DATETIME_CANDIDATE, INT_CANDIDATE]
    if options.detect_bit:
        ordered.append(BIT_CANDIDATE)
    ordered.append(FLOAT_CANDIDATE)
    return ordered


def _percent(ratio: float) -> int:
    return int(round(ratio * 100))


def classify_values(
    values: List[str], options: InferenceOptions
) -> Tuple[SqlType, float, str]:
    """
    Pick the best type for a list of non-null values.

    Returns:
        Tuple of (sql_type, confidence_score, reason)
    """
    if not values:
        return SqlType.TEXT, 1.0, "all values empty or NULL"

    total = len(values)
    for candidate in candidates_for(options):
        matched = sum(1 for v in values if candidate.matches(v, options))
        ratio = matched / total
        if ratio >= candidate.threshold:
            return candidate.sql_type, ratio, f"{_percent(ratio)}% of values {candidate.family}"

    return SqlType.TEXT, 1.0, "no pattern matched"


def infer_column(
    column: ColumnTypeInfo,
    values: List[str],
    options: Optional[InferenceOptions] = None,
) -> ColumnTypeInfo:
    """
    Infer type metadata for one column and store it on ``column``.

    Args:
        column: Descriptor to update
        values: Every raw value of the column, in row order
        options: Inference switches

    Returns:
        The updated descriptor
    """
    options = options or InferenceOptions()

    non_null = [v for v in values if not is_null_representation(v)]
    sql_type, score, reason = classify_values(non_null, options)

    column.sql_type = sql_type
    column.confidence_score = score
    column.reason = reason
    column.allow_null = len(non_null) < len(values)
    column.is_primary_key = False

    if sql_type == SqlType.TEXT:
        column.max_length = max((len(v) for v in non_null), default=0)
    else:
        column.max_length = None

    if non_null:
        column.sample_value = non_null[0]
    elif values:
        column.sample_value = values[0] or ""
    else:
        column.sample_value = ""

    logger.debug(
        f"Column {column.name!r}: {sql_type.value} "
        f"({column.confidence_percent}%, {reason})"
    )
    return column


def detect_primary_key(schema: TableSchema) -> int:
    """
    Flag the first INT column, or the first column named like an ID.

    The flagged column is made NOT NULL. Only one column is flagged.

    Returns:
        Index of the flagged column or -1
    """
    for col in schema.columns:
        col.is_primary_key = False

    for idx, col in enumerate(schema.columns):
        if col.sql_type == SqlType.INT or "id" in col.name.lower():
            col.is_primary_key = True
            col.allow_null = False
            logger.debug(f"Primary key candidate: {col.name!r}")
            return idx
    return -1


def infer_types(schema: TableSchema, options: Optional[InferenceOptions] = None) -> None:
    """
    Infer types for every column of ``schema`` in place.

    Args:
        schema: Parsed table; must be rectangular
        options: Inference switches

    Raises:
        SchemaError: If a row does not have one value per column
    """
    options = options or InferenceOptions()
    schema.validate()

    for idx, column in enumerate(schema.columns):
        infer_column(column, schema.column_values(idx), options)

    if options.detect_primary_key:
        detect_primary_key(schema)

    logger.info(f"Inferred types for {len(schema.columns)} columns over {schema.row_count} rows")


def override_column_type(
    schema: TableSchema,
    column: Union[int, str],
    sql_type: Union[SqlType, str],
    max_length: Optional[int] = None,
) -> ColumnTypeInfo:
    """
    Replace the inferred type of one column.

    Raw values stay untouched. For TEXT the length defaults to the longest
    non-null value.

    Args:
        schema: Schema to edit
        column: Column index or name
        sql_type: New type (enum or name such as ``"INT"``)
        max_length: Explicit NVARCHAR length

    Returns:
        The updated descriptor

    Raises:
        SchemaError: If the column does not exist
        ValueError: If the type name is unknown
    """
    idx = schema.find_column(column)
    target = sql_type if isinstance(sql_type, SqlType) else SqlType.parse(sql_type)
    col = schema.columns[idx]

    col.sql_type = target
    col.confidence_score = 1.0
    col.reason = "overridden by user"

    if target == SqlType.TEXT:
        if max_length is None:
            values = [v for v in schema.column_values(idx) if not is_null_representation(v)]
            max_length = max((len(v) for v in values), default=0)
        col.max_length = max_length
    else:
        col.max_length = None

    logger.debug(f"Column {col.name!r} overridden to {target.value}")
    return col


def apply_quick_mode(schema: TableSchema, length: int = QUICK_MODE_LENGTH) -> None:
    """Treat every column as NVARCHAR(``length``), skipping inference."""
    for col in schema.columns:
        col.sql_type = SqlType.TEXT
        col.max_length = length
        col.confidence_score = 1.0
        col.reason = "quick mode"
        col.is_primary_key = False

    logger.debug(f"Quick mode: {len(schema.columns)} columns as NVARCHAR({length})")


def parse_overrides(overrides: List[str]) -> List[Tuple[str, SqlType, Optional[int]]]:
    """
    Parse ``COLUMN=TYPE`` or ``COLUMN=NVARCHAR(LENGTH)`` override strings.

    A parenthesised suffix on non-text types (``DECIMAL(18,4)``) is ignored.

    Raises:
        ValueError: On malformed overrides or unknown types
    """
    parsed = []
    for override in overrides:
        if "=" not in override:
            raise ValueError(f"Invalid override {override!r}. Use COLUMN=TYPE")
        name, type_text = (part.strip() for part in override.split("=", 1))
        length_text = None
        if type_text.endswith(")") and "(" in type_text:
            type_text, length_text = type_text[:-1].split("(", 1)

        sql_type = SqlType.parse(type_text)
        length = None
        if sql_type == SqlType.TEXT and length_text:
            try:
                length = int(length_text)
            except ValueError:
                raise ValueError(f"Invalid length in override {override!r}")
        parsed.append((name, sql_type, length))
    return parsed
