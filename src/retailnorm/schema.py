"""
Column names and dtypes for the flat transaction export and the
normalized tables derived from it.
"""

from __future__ import annotations

from pathlib import Path

import polars as pl
from loguru import logger

import retailnorm.errors as errors

# Source columns
INVOICE_NO = "InvoiceNo"
STOCK_CODE = "StockCode"
DESCRIPTION = "Description"
QUANTITY = "Quantity"
INVOICE_DATE = "InvoiceDate"
UNIT_PRICE = "UnitPrice"
CUSTOMER_ID = "CustomerID"
COUNTRY = "Country"

# Derived columns
PRODUCT_ID = "ProductID"
PRODUCT_DESCRIPTION = "ProductDescription"
INVOICE_LINE_ID = "InvoiceLineID"

# Original position of a record in the export, used for first-seen ordering
ROW_ORDER = "__row_order"

SOURCE_SCHEMA: dict[str, pl.DataType] = {
    INVOICE_NO: pl.Utf8(),
    STOCK_CODE: pl.Utf8(),
    DESCRIPTION: pl.Utf8(),
    QUANTITY: pl.Int64(),
    INVOICE_DATE: pl.Datetime(),
    UNIT_PRICE: pl.Float64(),
    CUSTOMER_ID: pl.Int64(),
    COUNTRY: pl.Utf8(),
}

SOURCE_COLUMNS = list(SOURCE_SCHEMA)

# Columns that must be present on every record
REQUIRED_VALUES = [INVOICE_NO, STOCK_CODE, INVOICE_DATE]

CUSTOMERS = "customers"
PRODUCTS = "products"
INVOICES = "invoices"
INVOICE_LINES = "invoice_lines"

TABLE_COLUMNS: dict[str, list[str]] = {
    CUSTOMERS: [CUSTOMER_ID, COUNTRY],
    PRODUCTS: [PRODUCT_ID, STOCK_CODE, PRODUCT_DESCRIPTION],
    INVOICES: [INVOICE_NO, INVOICE_DATE, CUSTOMER_ID],
    INVOICE_LINES: [INVOICE_LINE_ID, INVOICE_NO, PRODUCT_ID, QUANTITY, UNIT_PRICE],
}

PRIMARY_KEYS: dict[str, str] = {
    CUSTOMERS: CUSTOMER_ID,
    PRODUCTS: PRODUCT_ID,
    INVOICES: INVOICE_NO,
    INVOICE_LINES: INVOICE_LINE_ID,
}


def prepare_source(
    df: pl.DataFrame, timestamp_format: str | None = None
) -> pl.DataFrame:
    """
    Validate and coerce a raw transaction export.

    Checks that all source columns exist, casts them to the canonical
    dtypes, rejects records with missing keys, and appends the row-order
    column that resolvers use to break ties by first appearance.

    Args:
        df: Raw transaction records
        timestamp_format: strftime format used when InvoiceDate is text.
            Defaults to None (let polars infer the format).

    Returns:
        DataFrame restricted to the source columns plus the row-order column

    Raises:
        SourceSchemaError: If columns are missing, keys are null, or
            InvoiceDate cannot be parsed
    """
    missing = [column for column in SOURCE_COLUMNS if column not in df.columns]
    if missing:
        raise errors.SourceSchemaError(
            f"Transaction export is missing columns: {missing}",
            hint=f"Expected columns: {', '.join(SOURCE_COLUMNS)}",
        )

    df = df.select(SOURCE_COLUMNS)

    try:
        df = df.with_columns(
            _timestamp_expr(df.schema[INVOICE_DATE], timestamp_format),
            *[
                _cast_expr(column, df.schema[column], dtype)
                for column, dtype in SOURCE_SCHEMA.items()
                if column != INVOICE_DATE
            ],
        )
    except pl.exceptions.PolarsError as e:
        raise errors.SourceSchemaError(
            f"Could not coerce transaction columns: {e}",
            hint="Pass timestamp_format if InvoiceDate is not ISO 8601.",
        ) from e

    null_counts = df.select(pl.col(REQUIRED_VALUES).null_count()).row(0, named=True)
    null_keys = {column: count for column, count in null_counts.items() if count}
    if null_keys:
        raise errors.SourceSchemaError(
            f"Required columns contain null values: {null_keys}",
        )

    logger.debug(f"Prepared {df.height:,} transaction records")
    return df.with_row_index(ROW_ORDER)


def _cast_expr(column: str, current: pl.DataType, target: pl.DataType) -> pl.Expr:
    col = pl.col(column)
    # csv exports write integer ids as "17850.0"
    if current == pl.Utf8 and target.is_integer():
        return col.str.strip_chars().cast(pl.Float64).cast(target)
    return col.cast(target)


def _timestamp_expr(dtype: pl.DataType, timestamp_format: str | None) -> pl.Expr:
    col = pl.col(INVOICE_DATE)
    if dtype == pl.Utf8:
        return col.str.strip_chars().str.to_datetime(format=timestamp_format)
    return col.cast(pl.Datetime())


def load_source(source: str | Path, encoding: str = "utf8") -> pl.DataFrame:
    """
    Load a transaction export from file path.

    Args:
        source: Path to source data file
        encoding: Text encoding of csv files, e.g. "latin-1" for the public
            ecommerce export or "utf8-lossy" to replace invalid bytes.
            Defaults to "utf8". Ignored for parquet.

    Returns:
        DataFrame containing source data

    Raises:
        ValueError: If file format is not supported (only .parquet and .csv)
        SourceSchemaError: If the file cannot be decoded or parsed
    """
    path = Path(source)

    try:
        match path.suffix:
            case ".parquet":
                return pl.read_parquet(path)
            case ".csv":
                # StockCode and InvoiceNo mix digits and letters; keep text and
                # let prepare_source cast
                return pl.read_csv(path, infer_schema=False, encoding=encoding)
            case _:
                raise ValueError(f"Unsupported source format: {path.suffix}")
    except pl.exceptions.PolarsError as e:
        raise errors.SourceSchemaError(
            f"Could not read {path}: {e}",
            hint="Set source.encoding in retailnorm.yaml (e.g. latin-1) or pass --encoding.",
        ) from e
