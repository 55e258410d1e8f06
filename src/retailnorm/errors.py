"""
Exception types raised by retailnorm.

Every error carries a human-readable message and an optional hint that
is rendered on its own line when the error is printed.
"""

from __future__ import annotations


class RetailnormError(Exception):
    """Base class for all retailnorm errors."""

    def __init__(self, message: str, hint: str | None = None) -> None:
        self.message = message
        self.hint = hint
        super().__init__(self._format())

    def _format(self) -> str:
        parts = [self.message]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        return "\n".join(parts)

    def __str__(self) -> str:
        return self._format()


class SourceSchemaError(RetailnormError):
    """Raised when the transaction export is missing columns or keys."""


class ConfigError(RetailnormError):
    """Raised when retailnorm.yaml cannot be loaded or validated."""


class ResolutionError(RetailnormError):
    """Base class for failures while resolving entities from transactions."""


class UnmappedCountryError(ResolutionError):
    """
    Raised when a record without a customer id has a country with no sentinel.

    Attributes:
        countries: Countries that have no entry in the sentinel mapping
        default: Sentinel that would have been used as a fallback
    """

    def __init__(self, countries: list[str | None], default: int) -> None:
        self.countries = countries
        self.default = default
        shown = ", ".join(repr(c) for c in countries)
        super().__init__(
            f"No customer id sentinel defined for countries: {shown}",
            hint=(
                "Add the countries to sentinels.countries in retailnorm.yaml, or set "
                f"policy.on_unmapped_country to 'warn' to fall back to {default}."
            ),
        )


class InvoiceConflictError(ResolutionError):
    """
    Raised when an invoice number is associated with several customers.

    Attributes:
        conflicts: Mapping of invoice number to the distinct customer ids seen
    """

    def __init__(self, conflicts: dict[str, list[int]]) -> None:
        self.conflicts = conflicts
        sample = list(conflicts.items())[:5]
        lines = [f"  {invoice}: {ids}" for invoice, ids in sample]
        if len(conflicts) > len(sample):
            lines.append(f"  ... and {len(conflicts) - len(sample)} more")
        super().__init__(
            f"{len(conflicts)} invoice(s) reference more than one customer:\n"
            + "\n".join(lines),
            hint="Each InvoiceNo must belong to exactly one CustomerID.",
        )


class UnresolvedProductError(ResolutionError):
    """
    Raised when transaction rows reference a stock code with no product.

    Attributes:
        stock_codes: Stock codes that could not be matched
    """

    def __init__(self, stock_codes: list[str]) -> None:
        self.stock_codes = stock_codes
        super().__init__(
            f"{len(stock_codes)} stock code(s) have no resolved product: "
            + ", ".join(stock_codes[:10])
        )


class TableValidationError(RetailnormError):
    """
    Raised when resolved tables break one or more invariants.

    Attributes:
        failures: List of (table, check, message) tuples
    """

    def __init__(self, failures: list[tuple[str, str, str]]) -> None:
        self.failures = failures
        lines = [f"  {table} [{check}]: {message}" for table, check, message in failures]
        super().__init__("Validation failed:\n" + "\n".join(lines))
