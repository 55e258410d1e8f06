"""
Entity resolvers.

Each resolver collapses the repeated, sometimes contradictory observations
of one real-world entity in the transaction export into a single canonical
row. All resolvers expect a frame produced by ``prepare_source`` followed
by ``repair_customer_ids``.
"""

import polars as pl
from loguru import logger

import retailnorm.errors as errors
import retailnorm.policies as policies
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
    ROW_ORDER,
    STOCK_CODE,
    TABLE_COLUMNS,
)
from retailnorm.utils import assign_sequence

_COUNT = "__count"
_FIRST_ROW = "__first_row"
_CUSTOMER_IDS = "__customer_ids"
_DATE_COUNT = "__date_count"


def resolve_customers(
    df: pl.DataFrame,
    tie_break: policies.TieBreak = "first_seen",
) -> pl.DataFrame:
    """
    Build one Customer row per customer id.

    The country is taken from the customer's most recent transaction.
    When several transactions share that timestamp, source row order
    decides according to ``tie_break``.

    Args:
        df: Repaired transaction records
        tie_break: "first_seen" or "last_seen". Defaults to "first_seen".

    Returns:
        DataFrame with CustomerID and Country, sorted by CustomerID
    """
    ambiguous = (
        df.group_by(CUSTOMER_ID)
        .agg(pl.col(COUNTRY).n_unique().alias(_COUNT))
        .filter(pl.col(_COUNT) > 1)
        .height
    )
    if ambiguous:
        logger.info(
            f"{ambiguous:,} customers appear in more than one country; "
            "keeping the country of the latest invoice"
        )

    customers = (
        df.sort(
            [CUSTOMER_ID, INVOICE_DATE, ROW_ORDER],
            descending=[False, True, tie_break == "last_seen"],
            nulls_last=True,
        )
        .group_by(CUSTOMER_ID, maintain_order=True)
        .agg(pl.col(COUNTRY).first())
    )

    logger.debug(f"Resolved {customers.height:,} customers")
    return customers.select(TABLE_COLUMNS[CUSTOMERS])


def resolve_products(
    df: pl.DataFrame,
    tie_break: policies.DescriptionTieBreak = "first_seen",
    order: policies.ProductOrder = "first_seen",
) -> pl.DataFrame:
    """
    Build one Product row per stock code with its most frequent description.

    Null and blank descriptions do not vote. A stock code whose every
    description is blank still gets a product, with a null description.

    Args:
        df: Repaired transaction records
        tie_break: "first_seen" picks the description that appeared first in
            the export, "lexical" the alphabetically smallest. Defaults to
            "first_seen".
        order: "first_seen" numbers products by first appearance,
            "stock_code" by stock code. Defaults to "first_seen".

    Returns:
        DataFrame with ProductID, StockCode and ProductDescription
    """
    has_text = pl.col(DESCRIPTION).str.strip_chars().str.len_chars().fill_null(0) > 0

    counts = (
        df.filter(has_text)
        .group_by([STOCK_CODE, DESCRIPTION])
        .agg(
            pl.len().alias(_COUNT),
            pl.col(ROW_ORDER).min().alias(_FIRST_ROW),
        )
    )

    ambiguous = counts.group_by(STOCK_CODE).len().filter(pl.col("len") > 1).height
    if ambiguous:
        logger.info(
            f"{ambiguous:,} stock codes have several descriptions; "
            "keeping the most frequent"
        )

    tie_column = _FIRST_ROW if tie_break == "first_seen" else DESCRIPTION
    descriptions = (
        counts.sort([STOCK_CODE, _COUNT, tie_column], descending=[False, True, False])
        .group_by(STOCK_CODE, maintain_order=True)
        .agg(pl.col(DESCRIPTION).first().alias(PRODUCT_DESCRIPTION))
    )

    products = (
        df.group_by(STOCK_CODE)
        .agg(pl.col(ROW_ORDER).min().alias(_FIRST_ROW))
        .join(descriptions, on=STOCK_CODE, how="left")
    )

    undescribed = products.filter(pl.col(PRODUCT_DESCRIPTION).is_null())
    if undescribed.height:
        logger.warning(
            f"No description available for {undescribed.height:,} stock codes: "
            f"{undescribed.sort(_FIRST_ROW).get_column(STOCK_CODE).head(10).to_list()}"
        )

    sort_key = _FIRST_ROW if order == "first_seen" else STOCK_CODE
    products = assign_sequence(products.sort(sort_key), PRODUCT_ID)

    logger.debug(f"Resolved {products.height:,} products")
    return products.select(TABLE_COLUMNS[PRODUCTS])


def resolve_invoices(df: pl.DataFrame) -> pl.DataFrame:
    """
    Build one Invoice row per invoice number.

    The invoice date is the earliest timestamp recorded for the invoice;
    in the export these differ by a minute at most.

    Args:
        df: Repaired transaction records

    Returns:
        DataFrame with InvoiceNo, InvoiceDate and CustomerID in order of
        first appearance

    Raises:
        InvoiceConflictError: If an invoice is linked to several customers
    """
    per_invoice = df.group_by(INVOICE_NO).agg(
        pl.col(INVOICE_DATE).min(),
        pl.col(CUSTOMER_ID).first(),
        pl.col(CUSTOMER_ID).unique().sort().alias(_CUSTOMER_IDS),
        pl.col(INVOICE_DATE).n_unique().alias(_DATE_COUNT),
        pl.col(ROW_ORDER).min().alias(_FIRST_ROW),
    )
    per_invoice = per_invoice.sort(_FIRST_ROW)

    conflicts = per_invoice.filter(pl.col(_CUSTOMER_IDS).list.len() > 1)
    if conflicts.height:
        raise errors.InvoiceConflictError(
            dict(
                zip(
                    conflicts.get_column(INVOICE_NO).to_list(),
                    conflicts.get_column(_CUSTOMER_IDS).to_list(),
                )
            )
        )

    collapsed = per_invoice.filter(pl.col(_DATE_COUNT) > 1).height
    if collapsed:
        logger.debug(
            f"{collapsed:,} invoices have several timestamps; keeping the earliest"
        )

    logger.debug(f"Resolved {per_invoice.height:,} invoices")
    return per_invoice.select(TABLE_COLUMNS[INVOICES])


def expand_lines(df: pl.DataFrame, products: pl.DataFrame) -> pl.DataFrame:
    """
    Emit one InvoiceLine per transaction record.

    The stock code of each record is replaced by the ProductID of its
    resolved product. Lines keep the order of the export.

    Args:
        df: Repaired transaction records
        products: Output of resolve_products

    Returns:
        DataFrame with InvoiceLineID, InvoiceNo, ProductID, Quantity and
        UnitPrice

    Raises:
        UnresolvedProductError: If a record's stock code has no product
    """
    lines = df.join(
        products.select(STOCK_CODE, PRODUCT_ID), on=STOCK_CODE, how="left"
    ).sort(ROW_ORDER)

    unresolved = (
        lines.filter(pl.col(PRODUCT_ID).is_null())
        .get_column(STOCK_CODE)
        .unique(maintain_order=True)
        .to_list()
    )
    if unresolved:
        raise errors.UnresolvedProductError(unresolved)

    lines = assign_sequence(lines, INVOICE_LINE_ID)

    logger.debug(f"Expanded {lines.height:,} invoice lines")
    return lines.select(TABLE_COLUMNS[INVOICE_LINES])
