import pytest

from retailnorm.errors import (
    ConfigError,
    InvoiceConflictError,
    ResolutionError,
    RetailnormError,
    SourceSchemaError,
    TableValidationError,
    UnmappedCountryError,
    UnresolvedProductError,
)


def test_error_with_message_only():
    # Given an error with just a message
    error = SourceSchemaError("Transaction export is missing columns")

    # When converting to string
    error_str = str(error)

    # Then it should be the message alone
    assert error_str == "Transaction export is missing columns"


def test_error_with_hint():
    # Given an error with a hint
    error = ConfigError("No retailnorm.yaml found.", hint="Create retailnorm.yaml")

    # When converting to string
    error_str = str(error)

    # Then the hint should follow on its own line
    assert error_str.startswith("No retailnorm.yaml found.")
    assert "\nHint: Create retailnorm.yaml" in error_str
    assert error.hint == "Create retailnorm.yaml"


@pytest.mark.parametrize(
    "error",
    [
        SourceSchemaError("x"),
        ConfigError("x"),
        UnmappedCountryError(["Iceland"], default=-99),
        InvoiceConflictError({"INV1": [1, 2]}),
        UnresolvedProductError(["A1"]),
        TableValidationError([("products", "unique_key", "x")]),
    ],
)
def test_errors_share_base_class(error):
    assert isinstance(error, RetailnormError)


def test_resolution_errors_share_base_class():
    assert issubclass(UnmappedCountryError, ResolutionError)
    assert issubclass(InvoiceConflictError, ResolutionError)
    assert issubclass(UnresolvedProductError, ResolutionError)


def test_unmapped_country_error_names_countries_and_default():
    # Given countries without a sentinel
    error = UnmappedCountryError(["Iceland", None], default=-99)

    # When converting to string
    error_str = str(error)

    # Then the countries and the fallback are mentioned
    assert "'Iceland', None" in error_str
    assert "-99" in error_str
    assert "Hint:" in error_str


def test_invoice_conflict_error_truncates_listing():
    # Given more conflicts than are listed
    conflicts = {f"INV{i}": [i, i + 100] for i in range(8)}

    # When converting to string
    error = InvoiceConflictError(conflicts)
    error_str = str(error)

    # Then the first five are shown and the rest counted
    assert error_str.startswith("8 invoice(s) reference more than one customer")
    assert "INV4: [4, 104]" in error_str
    assert "INV5" not in error_str
    assert "... and 3 more" in error_str
    assert error.conflicts == conflicts


def test_unresolved_product_error_lists_codes():
    error = UnresolvedProductError(["A1", "B2"])

    assert "2 stock code(s)" in str(error)
    assert "A1, B2" in str(error)


def test_table_validation_error_lists_failures():
    # Given two failed checks
    failures = [
        ("products", "unique_key", "2 rows share a duplicated ProductID"),
        ("invoice_lines", "cardinality", "expected 9 rows, got 8"),
    ]

    # When converting to string
    error_str = str(TableValidationError(failures))

    # Then each failure has its own line
    assert error_str.splitlines() == [
        "Validation failed:",
        "  products [unique_key]: 2 rows share a duplicated ProductID",
        "  invoice_lines [cardinality]: expected 9 rows, got 8",
    ]


def test_hint_follows_message_directly():
    error = SourceSchemaError("Bad export", hint="Check the columns")

    assert str(error).splitlines() == ["Bad export", "Hint: Check the columns"]
