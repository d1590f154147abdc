"""Tests for SQL Server script generation."""

import pytest

from tools.copy_as_insert.classifier import DateCulture
from tools.copy_as_insert.generator import (
    GeneratorOptions,
    format_value,
    generate_create_table,
    generate_insert_statements,
    generate_sql,
    nvarchar_type,
    quote_identifier,
    validate_table_name,
)
from tools.copy_as_insert.exceptions import TableNameError
from tools.copy_as_insert.inference import InferenceOptions, infer_types
from tools.copy_as_insert.models import ColumnTypeInfo, SqlType, TableSchema


def typed_schema(headers, rows, **options):
    """Parse-free helper: build and infer a schema."""
    schema = TableSchema.from_rows(headers, rows)
    infer_types(schema, InferenceOptions(**options))
    return schema


@pytest.fixture
def products():
    """Two product rows with integer IDs and dot decimal prices."""
    return typed_schema(["ID", "Price"], [["1", "19.99"], ["2", "29.99"]])


class TestEndToEnd:
    """Test complete scripts."""

    def test_products_temp_table(self, products):
        """Test the products table into #temp."""
        result = generate_sql(products, "Products", is_temporary=True)

        assert result.success is True
        assert result.row_count == 2
        assert result.table_name == "Products"
        assert "CREATE TABLE [#Products]" in result.sql
        assert "[Price] DECIMAL(18,4)" in result.sql
        assert "INSERT INTO [#Products] ([ID], [Price]) VALUES (1, 19.99), (2, 29.99);" in result.sql

    def test_products_full_script(self, products):
        """Test the exact script layout."""
        result = generate_sql(products, "Products", is_temporary=True)

        assert result.sql == (
            "CREATE TABLE [#Products]\n"
            "(\n"
            "    [ID] INT NULL,\n"
            "    [Price] DECIMAL(18,4) NULL\n"
            ");\n"
            "\n"
            "INSERT INTO [#Products] ([ID], [Price]) VALUES (1, 19.99), (2, 29.99);\n"
        )

    def test_schema_qualified_name(self, products):
        """Test [schema].[name] for regular tables."""
        result = generate_sql(products, "Products", schema_name="sales")

        assert "CREATE TABLE [sales].[Products]" in result.sql
        assert "INSERT INTO [sales].[Products]" in result.sql
        assert result.schema_name == "sales"

    def test_null_handling(self):
        """Test European decimals with NULL spellings."""
        schema = typed_schema(["Amount"], [["100,00"], [""], ["NULL"], ["200,50"]])
        col = schema.columns[0]

        assert col.sql_type == SqlType.FLOAT
        assert col.allow_null is True

        result = generate_sql(schema, "Amounts", is_temporary=True)
        assert "VALUES (100.00), (NULL), (NULL), (200.50);" in result.sql

    def test_all_columns_nullable(self):
        """Test that NOT NULL is never emitted without identity mode."""
        schema = typed_schema(["Count"], [["1"], ["2"]])
        assert schema.columns[0].allow_null is False

        result = generate_sql(schema, "Counts")
        assert "[Count] INT NULL" in result.sql
        assert "NOT NULL" not in result.sql

    def test_idempotent(self, products):
        """Test repeated calls give identical output."""
        first = generate_sql(products, "Products", schema_name="dbo", is_temporal=True)
        second = generate_sql(products, "Products", schema_name="dbo", is_temporal=True)

        assert first.sql == second.sql

    def test_summary(self, products):
        """Test the one-line result summary."""
        result = generate_sql(products, "Products")

        assert result.summary == "Products (2 rows)"


class TestTemporal:
    """Test system-versioned tables."""

    def test_temporal_clauses(self, products):
        """Test period columns and SYSTEM_VERSIONING."""
        sql = generate_sql(products, "Orders", is_temporal=True).sql

        assert "SysStartTime DATETIME2 GENERATED ALWAYS AS ROW START NOT NULL" in sql
        assert "SysEndTime DATETIME2 GENERATED ALWAYS AS ROW END NOT NULL" in sql
        assert "PERIOD FOR SYSTEM_TIME (SysStartTime, SysEndTime)" in sql
        assert (
            "WITH (SYSTEM_VERSIONING = ON (HISTORY_TABLE = [dbo].[Orders_History], "
            "DATA_CONSISTENCY_CHECK = ON));"
        ) in sql

    def test_suffix_only_when_temporal(self, products):
        """Test _Temporal needs both flags."""
        plain = generate_sql(products, "Orders", append_temporal_suffix=True)
        temporal = generate_sql(products, "Orders", is_temporal=True, append_temporal_suffix=True)

        assert "[dbo].[Orders]" in plain.sql
        assert "_Temporal" not in plain.sql
        assert "CREATE TABLE [dbo].[Orders_Temporal]" in temporal.sql
        assert "INSERT INTO [dbo].[Orders_Temporal]" in temporal.sql
        assert temporal.table_name == "Orders_Temporal"

    def test_non_temporal_closes_with_semicolon(self, products):
        """Test the plain table terminator."""
        create = generate_create_table(products, "Orders")

        assert create.endswith("\n);")
        assert "SYSTEM_VERSIONING" not in create


class TestValidation:
    """Test table name validation."""

    @pytest.mark.parametrize("name", ["SELECT", "select", "Drop", "table", "VIEW"])
    def test_reserved_keywords(self, products, name):
        """Test reserved keywords in any case."""
        result = generate_sql(products, name)

        assert result.success is False
        assert result.sql == ""
        assert result.row_count == 0
        assert "reserved" in result.error_message

    @pytest.mark.parametrize("name", ["1Table", "My Table", "Orders;DROP", "Ta-ble", "[Orders]"])
    def test_invalid_characters(self, products, name):
        """Test names outside the identifier pattern."""
        result = generate_sql(products, name)

        assert result.success is False
        assert "invalid characters" in result.error_message

    @pytest.mark.parametrize("name", ["", "   "])
    def test_empty_name(self, products, name):
        """Test empty table names."""
        result = generate_sql(products, name)

        assert result.success is False
        assert result.error_message == "Table name cannot be empty"

    def test_length_limit(self, products):
        """Test the 128 character limit."""
        assert generate_sql(products, "T" * 128).success is True

        result = generate_sql(products, "T" * 129)
        assert result.success is False
        assert "128" in result.error_message

    @pytest.mark.parametrize("name", ["Orders", "_tmp", "@var", "#t1", "Table_2024"])
    def test_valid_names(self, name):
        """Test names that are accepted."""
        validate_table_name(name)

    def test_validate_raises(self):
        """Test the error type."""
        with pytest.raises(TableNameError):
            validate_table_name("INSERT")

    def test_bad_schema_name(self, products):
        """Test schema names are checked for regular tables."""
        result = generate_sql(products, "Orders", schema_name="dbo; DROP")

        assert result.success is False
        assert "schema" in result.error_message

    def test_schema_ignored_for_temp(self, products):
        """Test schema names are unused for #temp tables."""
        result = generate_sql(products, "Orders", schema_name="", is_temporary=True)

        assert result.success is True

    def test_ragged_schema_fails(self):
        """Test rows of the wrong width fail the call."""
        schema = TableSchema(columns=[ColumnTypeInfo(name="A"), ColumnTypeInfo(name="B")], rows=[["1"]])

        result = generate_sql(schema, "Orders")
        assert result.success is False
        assert result.sql == ""


class TestColumnTypes:
    """Test physical column types."""

    @pytest.mark.parametrize(
        "max_length,expected",
        [(None, "NVARCHAR(255)"), (0, "NVARCHAR(1)"), (1, "NVARCHAR(1)"), (4000, "NVARCHAR(4000)"), (4001, "NVARCHAR(MAX)")],
    )
    def test_nvarchar_sizes(self, max_length, expected):
        """Test NVARCHAR length clamping."""
        assert nvarchar_type(ColumnTypeInfo(name="c", max_length=max_length)) == expected

    def test_physical_types(self):
        """Test one column of every type."""
        schema = TableSchema(
            columns=[
                ColumnTypeInfo(name="A", sql_type=SqlType.INT),
                ColumnTypeInfo(name="B", sql_type=SqlType.FLOAT),
                ColumnTypeInfo(name="C", sql_type=SqlType.DATETIME),
                ColumnTypeInfo(name="D", sql_type=SqlType.BIT),
                ColumnTypeInfo(name="E", sql_type=SqlType.TEXT, max_length=12),
            ],
        )
        create = generate_create_table(schema, "AllTypes")

        assert "[A] INT NULL" in create
        assert "[B] DECIMAL(18,4) NULL" in create
        assert "[C] DATETIME2(7) NULL" in create
        assert "[D] BIT NULL" in create
        assert "[E] NVARCHAR(12) NULL" in create

    def test_closing_bracket_in_column_name(self):
        """Test an embedded ] is doubled in DDL and the INSERT column list."""
        schema = typed_schema(["a]b", "Qty"], [["x", "1"]])
        result = generate_sql(schema, "Odd", is_temporary=True)

        assert "    [a]]b] NVARCHAR(1) NULL," in result.sql
        assert "INSERT INTO [#Odd] ([a]]b], [Qty]) VALUES ('x', 1);" in result.sql

    @pytest.mark.parametrize(
        "name,expected",
        [("Price", "[Price]"), ("a]b", "[a]]b]"), ("]]", "[]]]]]"), ("Unit Price", "[Unit Price]")],
    )
    def test_quote_identifier(self, name, expected):
        """Test bracket quoting."""
        assert quote_identifier(name) == expected


class TestFormatValue:
    """Test per-value literal formatting."""

    @pytest.mark.parametrize("sql_type", list(SqlType))
    @pytest.mark.parametrize("value", ["", "NULL", "n/a", "(null)", None])
    def test_nulls_for_every_type(self, value, sql_type):
        """Test NULL spellings regardless of type."""
        assert format_value(value, sql_type) == "NULL"

    @pytest.mark.parametrize(
        "value,expected",
        [("42", "42"), ("-7", "-7"), ("1.234", "1234"), ("1,234,567", "1234567"), ("abc", "NULL")],
    )
    def test_int(self, value, expected):
        """Test integer literals."""
        assert format_value(value, SqlType.INT) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [("19.99", "19.99"), ("0,0673", "0.0673"), ("1.234,56", "1234.56"), ("5", "5"), ("abc", "NULL")],
    )
    def test_float(self, value, expected):
        """Test decimal literals use a dot and no grouping."""
        assert format_value(value, SqlType.FLOAT) == expected

    @pytest.mark.parametrize("value", ["1e30", "1e200000000", "99999999999999999999999999999"])
    def test_float_out_of_range(self, value):
        """Test values beyond the decimal range become NULL."""
        assert format_value(value, SqlType.FLOAT) == "NULL"

    def test_float_tiny_exponent(self):
        """Test huge negative exponents stay short."""
        assert format_value("1e-200000000", SqlType.FLOAT) == "0." + "0" * 28

    def test_datetime(self):
        """Test seven fractional digits."""
        assert format_value("2024-01-16 09:46:06.870", SqlType.DATETIME) == "'2024-01-16 09:46:06.8700000'"
        assert format_value("2024-01-16", SqlType.DATETIME) == "'2024-01-16 00:00:00.0000000'"

    def test_datetime_culture(self):
        """Test ambiguous dates read month first, day first only as fallback."""
        assert format_value("03/05/2024", SqlType.DATETIME) == "'2024-03-05 00:00:00.0000000'"
        assert format_value("31.12.2024", SqlType.DATETIME, DateCulture.EUROPEAN) == "'2024-12-31 00:00:00.0000000'"

    def test_datetime_unparsable(self):
        """Test bad dates degrade to NULL."""
        assert format_value("not a date", SqlType.DATETIME) == "NULL"

    @pytest.mark.parametrize(
        "value,expected",
        [("true", "1"), ("YES", "1"), ("y", "1"), ("1", "1"), ("off", "0"), ("F", "0"), ("0", "0"), ("maybe", "NULL")],
    )
    def test_bit(self, value, expected):
        """Test BIT literals."""
        assert format_value(value, SqlType.BIT) == expected

    def test_text_quotes(self):
        """Test embedded quotes are doubled."""
        assert format_value("O'Brien", SqlType.TEXT) == "'O''Brien'"
        assert format_value("0001", SqlType.TEXT) == "'0001'"

    def test_text_keeps_whitespace(self):
        """Test text values are not trimmed."""
        assert format_value(" a ", SqlType.TEXT) == "' a '"


class TestBatching:
    """Test INSERT batching."""

    def make_schema(self, row_count):
        return TableSchema(
            columns=[ColumnTypeInfo(name="N", sql_type=SqlType.INT)],
            rows=[[str(i)] for i in range(row_count)],
        )

    @pytest.mark.parametrize("rows,statements", [(0, 0), (1, 1), (1000, 1), (1001, 2), (2500, 3)])
    def test_statement_count(self, rows, statements):
        """Test ceil(rows / 1000) statements."""
        inserts = generate_insert_statements(self.make_schema(rows), "Numbers")

        assert len(inserts) == statements

    def test_batch_sizes(self):
        """Test each batch has at most 1000 tuples."""
        inserts = generate_insert_statements(self.make_schema(2500), "Numbers")

        assert [stmt.count("(") - 1 for stmt in inserts] == [1000, 1000, 500]

    def test_batches_separated_by_blank_line(self):
        """Test the script layout between batches."""
        result = generate_sql(self.make_schema(1001), "Numbers")

        assert result.sql.count("\n\nINSERT INTO [dbo].[Numbers]") == 2

    def test_no_rows(self):
        """Test an empty table still gets its CREATE TABLE."""
        result = generate_sql(self.make_schema(0), "Numbers")

        assert result.success is True
        assert result.row_count == 0
        assert "INSERT" not in result.sql
        assert result.sql.startswith("CREATE TABLE [dbo].[Numbers]")


class TestIdentityMode:
    """Test the optional IDENTITY primary key mode."""

    def make_schema(self):
        return typed_schema(
            ["OrderId", "Customer"],
            [["1", "Ann"], ["2", "Bob"]],
            detect_primary_key=True,
        )

    def test_default_includes_all_columns(self):
        """Test primary keys are inserted unless identity mode is on."""
        result = generate_sql(self.make_schema(), "Orders")

        assert "[OrderId] INT NULL" in result.sql
        assert "([OrderId], [Customer]) VALUES (1, 'Ann'), (2, 'Bob');" in result.sql

    def test_identity_excludes_key(self):
        """Test the key becomes IDENTITY and leaves the INSERT list."""
        options = GeneratorOptions(identity_primary_key=True)
        result = generate_sql(self.make_schema(), "Orders", options=options)

        assert "[OrderId] INT IDENTITY(1,1) NOT NULL PRIMARY KEY" in result.sql
        assert "([Customer]) VALUES ('Ann'), ('Bob');" in result.sql

    def test_identity_without_key(self):
        """Test identity mode without a flagged column."""
        schema = typed_schema(["Customer"], [["Ann"]])
        result = generate_sql(schema, "Orders", options=GeneratorOptions(identity_primary_key=True))

        assert "IDENTITY" not in result.sql
        assert "([Customer]) VALUES ('Ann');" in result.sql
