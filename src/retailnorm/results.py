from __future__ import annotations

from dataclasses import dataclass

import polars as pl

from retailnorm.schema import (
    COUNTRY,
    CUSTOMER_ID,
    CUSTOMERS,
    DESCRIPTION,
    INVOICE_DATE,
    INVOICE_LINE_ID,
    INVOICE_LINES,
    INVOICE_NO,
    INVOICES,
    PRODUCT_DESCRIPTION,
    PRODUCT_ID,
    PRODUCTS,
    QUANTITY,
    STOCK_CODE,
    UNIT_PRICE,
)


@dataclass(frozen=True)
class NormalizedTables:
    """
    The four tables produced by one normalization run.

    Attributes:
        customers: One row per customer id with its country
        products: One row per stock code with its canonical description
        invoices: One row per invoice with its date and customer
        invoice_lines: One row per source transaction record
    """

    customers: pl.DataFrame
    products: pl.DataFrame
    invoices: pl.DataFrame
    invoice_lines: pl.DataFrame

    def tables(self) -> dict[str, pl.DataFrame]:
        """
        Return tables keyed by name, referenced tables first.

        Returns:
            Mapping of table name to DataFrame in dependency order
        """
        return {
            CUSTOMERS: self.customers,
            PRODUCTS: self.products,
            INVOICES: self.invoices,
            INVOICE_LINES: self.invoice_lines,
        }

    def row_counts(self) -> dict[str, int]:
        return {name: df.height for name, df in self.tables().items()}

    def denormalize(self) -> pl.DataFrame:
        """
        Join the tables back into the flat transaction layout.

        Descriptions, dates and countries come from the resolved entities,
        so the result is the cleaned version of the original export.

        Returns:
            DataFrame with the source columns, one row per invoice line
        """
        return (
            self.invoice_lines.join(self.invoices, on=INVOICE_NO, how="inner")
            .join(self.products, on=PRODUCT_ID, how="inner")
            .join(self.customers, on=CUSTOMER_ID, how="inner")
            .sort(INVOICE_LINE_ID)
            .select(
                INVOICE_NO,
                STOCK_CODE,
                pl.col(PRODUCT_DESCRIPTION).alias(DESCRIPTION),
                QUANTITY,
                INVOICE_DATE,
                UNIT_PRICE,
                CUSTOMER_ID,
                COUNTRY,
            )
        )
