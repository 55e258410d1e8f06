"""
Invariant checks for normalized tables.

Checks compare the resolved tables against the repaired transaction
records they were derived from:

- every record has a customer id after repair
- one customer per distinct customer id, one product per stock code,
  one invoice per invoice number, one line per record
- primary keys are unique and non-null
- every foreign key points at an existing row
"""

from __future__ import annotations

import polars as pl
from loguru import logger

import retailnorm.errors as errors
from retailnorm.results import NormalizedTables
from retailnorm.schema import (
    CUSTOMER_ID,
    CUSTOMERS,
    INVOICE_LINES,
    INVOICE_NO,
    INVOICES,
    PRIMARY_KEYS,
    PRODUCT_ID,
    PRODUCTS,
    STOCK_CODE,
)

Failure = tuple[str, str, str]

# (child table, column, parent table)
FOREIGN_KEYS: list[tuple[str, str, str]] = [
    (INVOICES, CUSTOMER_ID, CUSTOMERS),
    (INVOICE_LINES, INVOICE_NO, INVOICES),
    (INVOICE_LINES, PRODUCT_ID, PRODUCTS),
]


def check_tables(source: pl.DataFrame, tables: NormalizedTables) -> list[Failure]:
    """
    Run every invariant check and collect failures.

    Args:
        source: Repaired transaction records the tables were built from
        tables: Resolved tables

    Returns:
        List of (table, check, message) tuples, empty when all checks pass
    """
    failures: list[Failure] = []

    missing_ids = source.get_column(CUSTOMER_ID).null_count()
    if missing_ids:
        failures.append(
            ("source", "repair_totality", f"{missing_ids:,} records have no customer id")
        )

    expected_rows = {
        CUSTOMERS: source.get_column(CUSTOMER_ID).n_unique(),
        PRODUCTS: source.get_column(STOCK_CODE).n_unique(),
        INVOICES: source.get_column(INVOICE_NO).n_unique(),
        INVOICE_LINES: source.height,
    }

    frames = tables.tables()
    for name, df in frames.items():
        if df.height != expected_rows[name]:
            failures.append(
                (
                    name,
                    "cardinality",
                    f"expected {expected_rows[name]:,} rows, got {df.height:,}",
                )
            )
        failures.extend(_check_primary_key(name, df))

    for child, column, parent in FOREIGN_KEYS:
        orphans = (
            frames[child]
            .select(column)
            .join(frames[parent].select(column), on=column, how="anti")
            .height
        )
        if orphans:
            failures.append(
                (
                    child,
                    "foreign_key",
                    f"{orphans:,} rows reference a {column} missing from {parent}",
                )
            )

    return failures


def validate_tables(source: pl.DataFrame, tables: NormalizedTables) -> None:
    """
    Raise if any invariant check fails.

    Args:
        source: Repaired transaction records the tables were built from
        tables: Resolved tables

    Raises:
        TableValidationError: If one or more checks fail
    """
    failures = check_tables(source, tables)
    if failures:
        raise errors.TableValidationError(failures)
    logger.debug("All table invariants hold")


def _check_primary_key(name: str, df: pl.DataFrame) -> list[Failure]:
    key = PRIMARY_KEYS[name]
    column = df.get_column(key)
    failures: list[Failure] = []

    nulls = column.null_count()
    if nulls:
        failures.append((name, "not_null_key", f"{nulls:,} rows have a null {key}"))

    duplicated = column.drop_nulls().is_duplicated().sum()
    if duplicated:
        failures.append(
            (name, "unique_key", f"{duplicated:,} rows share a duplicated {key}")
        )
    return failures
