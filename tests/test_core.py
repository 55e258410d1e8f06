import polars as pl
import pytest

from retailnorm import (
    CountrySentinels,
    NormalizedTables,
    Normalizer,
    ResolutionPolicy,
    normalize,
)
from retailnorm.errors import (
    InvoiceConflictError,
    SourceSchemaError,
    UnmappedCountryError,
)

from conftest import make_transactions, ts


def test_normalize_single_invoice_with_two_descriptions():
    # Given two lines of one invoice whose descriptions differ in case
    source = make_transactions(
        [
            ("INV1", "A1", "Widget", 3, ts(1, 10, 0), 1.0, 5, "United Kingdom"),
            ("INV1", "A1", "widget", 2, ts(1, 10, 1), 1.0, 5, "United Kingdom"),
        ]
    )

    # When normalizing
    tables = normalize(source)

    # Then one customer, product and invoice are resolved with two lines
    assert tables.customers.rows() == [(5, "United Kingdom")]
    assert tables.products.rows() == [(1, "A1", "Widget")]
    assert tables.invoices.rows() == [("INV1", ts(1, 10, 0), 5)]
    assert tables.invoice_lines.get_column("Quantity").to_list() == [3, 2]
    assert tables.invoice_lines.get_column("ProductID").to_list() == [1, 1]


def test_normalize_repairs_missing_customer_by_country():
    # Given a Bahrain record with no customer id
    source = make_transactions(
        [("INV1", "A1", "Widget", 1, ts(1, 10, 0), 1.0, None, "Bahrain")]
    )

    # When normalizing
    tables = normalize(source)

    # Then the invoice and customer use the Bahrain sentinel
    assert tables.customers.rows() == [(-5, "Bahrain")]
    assert tables.invoices.item(0, "CustomerID") == -5


def test_run_returns_normalized_tables(transactions):
    tables = Normalizer().run(transactions)

    assert isinstance(tables, NormalizedTables)
    assert tables.row_counts() == {
        "customers": 4,
        "products": 4,
        "invoices": 6,
        "invoice_lines": 9,
    }


def test_run_preserves_cardinalities(transactions):
    # Given the sample export
    # When normalizing
    tables = Normalizer().run(transactions)

    # Then each table matches the distinct keys of the export
    assert tables.products.height == transactions.get_column("StockCode").n_unique()
    assert tables.invoices.height == transactions.get_column("InvoiceNo").n_unique()
    assert tables.invoice_lines.height == transactions.height


def test_run_is_idempotent_on_its_own_output(transactions):
    # Given tables resolved from the export
    first = Normalizer().run(transactions)

    # When the denormalized result is normalized again
    second = Normalizer().run(first.denormalize())

    # Then the entities are unchanged
    assert second.customers.equals(first.customers)
    assert second.products.equals(first.products)
    assert second.invoices.equals(first.invoices)
    assert second.invoice_lines.equals(first.invoice_lines)


def test_denormalize_uses_resolved_entities(transactions):
    tables = Normalizer().run(transactions)

    flat = tables.denormalize()

    assert flat.columns == transactions.columns
    assert flat.height == transactions.height
    cyprus_line = flat.row(3, named=True)
    assert cyprus_line["Country"] == "Austria"
    assert cyprus_line["Description"] == "WHITE HANGING HEART T-LIGHT HOLDER"
    assert cyprus_line["InvoiceDate"] == ts(1, 8, 45)


def test_run_applies_policy(transactions):
    normalizer = Normalizer(policy=ResolutionPolicy(product_order="stock_code"))

    tables = normalizer.run(transactions)

    assert tables.products.get_column("StockCode").to_list() == [
        "20713",
        "71053",
        "85123A",
        "DOT",
    ]


def test_run_with_custom_sentinels(transactions):
    sentinels = CountrySentinels(countries={"United Kingdom": -100, "Bahrain": -200})

    tables = Normalizer(sentinels=sentinels).run(transactions)

    assert tables.customers.get_column("CustomerID").to_list() == [
        -200,
        -100,
        12370,
        17850,
    ]


def test_run_strict_unmapped_country_raises():
    source = make_transactions(
        [("INV1", "A1", "Widget", 1, ts(1, 10, 0), 1.0, None, "Iceland")]
    )
    normalizer = Normalizer(policy=ResolutionPolicy(on_unmapped_country="error"))

    with pytest.raises(UnmappedCountryError):
        normalizer.run(source)


def test_run_raises_on_invoice_conflict():
    source = make_transactions(
        [
            ("INV1", "A1", "Widget", 1, ts(1, 10, 0), 1.0, 5, "France"),
            ("INV1", "A1", "Widget", 1, ts(1, 10, 0), 1.0, None, "France"),
        ]
    )

    with pytest.raises(InvoiceConflictError):
        normalize(source)


def test_run_rejects_malformed_source(transactions):
    with pytest.raises(SourceSchemaError):
        normalize(transactions.drop("StockCode"))


def test_run_parses_text_export_with_timestamp_format(transactions):
    # Given the export with timestamps written as text
    source = transactions.with_columns(
        pl.col("InvoiceDate").dt.strftime("%m/%d/%Y %H:%M")
    )

    # When normalizing with the matching format
    tables = Normalizer(timestamp_format="%m/%d/%Y %H:%M").run(source)

    # Then dates are parsed back
    assert tables.invoices.item(0, "InvoiceDate") == ts(1, 8, 26)


def test_normalizer_is_reusable(transactions):
    normalizer = Normalizer()

    first = normalizer.run(transactions)
    second = normalizer.run(transactions)

    assert first.products.equals(second.products)
