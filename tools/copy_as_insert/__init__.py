"""Copy as INSERT - turn pasted spreadsheet rows into SQL Server SQL."""

from .classifier import DateCulture, is_null_representation
from .generator import GeneratorOptions, format_value, generate_sql
from .inference import InferenceOptions, apply_quick_mode, infer_types, override_column_type
from .models import ColumnTypeInfo, ConversionResult, SqlType, TableSchema
from .parser import parse_tabular_text

__all__ = [
    "ColumnTypeInfo",
    "ConversionResult",
    "DateCulture",
    "GeneratorOptions",
    "InferenceOptions",
    "SqlType",
    "TableSchema",
    "apply_quick_mode",
    "format_value",
    "generate_sql",
    "infer_types",
    "is_null_representation",
    "override_column_type",
    "parse_tabular_text",
]
