"""Schema and result types shared by inference and SQL generation."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from .exceptions import SchemaError


class SqlType(str, Enum):
    """Column types the generator knows how to emit."""

    INT = "INT"
    FLOAT = "FLOAT"
    DATETIME = "DATETIME2"
    BIT = "BIT"
    TEXT = "NVARCHAR"

    @classmethod
    def parse(cls, value: str) -> "SqlType":
        """
        Resolve a user supplied type name.

        Accepts member names and values in any case, plus a few common
        aliases (``DATETIME``, ``DECIMAL``, ``VARCHAR``...).

        Raises:
            ValueError: If the name is unknown
        """
        key = value.strip().upper()
        if key in _ALIASES:
            return _ALIASES[key]
        for member in cls:
            if key in (member.name, member.value):
                return member
        raise ValueError(f"Unknown SQL type: {value}")


_ALIASES = {
    "INTEGER": SqlType.INT,
    "BIGINT": SqlType.INT,
    "DECIMAL": SqlType.FLOAT,
    "MONEY": SqlType.FLOAT,
    "DATE": SqlType.DATETIME,
    "BOOL": SqlType.BIT,
    "BOOLEAN": SqlType.BIT,
    "VARCHAR": SqlType.TEXT,
    "STRING": SqlType.TEXT,
}


class DataSource(str, Enum):
    """Where a schema's rows came from (informational only)."""

    CLIPBOARD_TSV = "clipboard_tsv"
    CLIPBOARD_CSV = "clipboard_csv"
    CLIPBOARD_SINGLE = "clipboard_single"
    MANUAL = "manual"


@dataclass
class ColumnTypeInfo:
    """Inferred (or overridden) type information for one column."""

    name: str
    sql_type: SqlType = SqlType.TEXT
    confidence_score: float = 0.0
    reason: str = ""
    sample_value: str = ""
    allow_null: bool = True
    max_length: Optional[int] = None
    is_primary_key: bool = False

    @property
    def confidence_percent(self) -> int:
        """Confidence as a whole percentage."""
        return int(round(self.confidence_score * 100))


@dataclass
class TableSchema:
    """
    Columns plus raw row values for one pasted table.

    Rows are lists of strings, one entry per column. Raw values are never
    rewritten after parsing; inference and overrides only touch ``columns``.
    """

    columns: List[ColumnTypeInfo] = field(default_factory=list)
    rows: List[List[str]] = field(default_factory=list)
    source: DataSource = DataSource.MANUAL
    original_table_name: str = "ParsedTable"

    @classmethod
    def from_rows(
        cls,
        headers: List[str],
        rows: List[List[str]],
        source: DataSource = DataSource.MANUAL,
    ) -> "TableSchema":
        """Build a schema from header names and row values."""
        schema = cls(
            columns=[ColumnTypeInfo(name=h) for h in headers],
            rows=[list(r) for r in rows],
            source=source,
        )
        schema.validate()
        return schema

    @property
    def row_count(self) -> int:
        return len(self.rows)

    @property
    def column_names(self) -> List[str]:
        return [c.name for c in self.columns]

    @property
    def primary_key_index(self) -> int:
        """Index of the flagged primary key column, or -1."""
        for idx, col in enumerate(self.columns):
            if col.is_primary_key:
                return idx
        return -1

    def column_values(self, index: int) -> List[str]:
        """All raw values of one column, in row order."""
        return [row[index] for row in self.rows]

    def find_column(self, key: Any) -> int:
        """
        Resolve a column by index or name (case-insensitive).

        Raises:
            SchemaError: If no such column exists
        """
        if isinstance(key, int):
            if 0 <= key < len(self.columns):
                return key
            raise SchemaError(f"Column index out of range: {key}")

        wanted = str(key).lower()
        for idx, col in enumerate(self.columns):
            if col.name.lower() == wanted:
                return idx
        raise SchemaError(f"Unknown column: {key}")

    def validate(self) -> None:
        """
        Check that every row has one value per column.

        Raises:
            SchemaError: On the first row with the wrong width
        """
        width = len(self.columns)
        for idx, row in enumerate(self.rows):
            if len(row) != width:
                raise SchemaError(
                    f"Row {idx} has {len(row)} values, expected {width}",
                    details={"row": idx, "expected": width, "actual": len(row)},
                )


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of one SQL generation call."""

    success: bool
    sql: str = ""
    row_count: int = 0
    table_name: str = ""
    schema_name: str = "dbo"
    error_message: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def summary(self) -> str:
        """One-line description, e.g. ``Orders (15 rows)``."""
        return f"{self.table_name} ({self.row_count} rows)"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": self.success,
            "sql": self.sql,
            "row_count": self.row_count,
            "table_name": self.table_name,
            "schema_name": self.schema_name,
            "error_message": self.error_message,
            "timestamp": self.timestamp.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ConversionResult":
        return cls(
            success=data["success"],
            sql=data.get("sql", ""),
            row_count=data.get("row_count", 0),
            table_name=data.get("table_name", ""),
            schema_name=data.get("schema_name", "dbo"),
            error_message=data.get("error_message"),
            timestamp=datetime.fromisoformat(data["timestamp"]),
        )
