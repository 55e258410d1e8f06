"""
Customer identifier repair.

Records without a CustomerID are assigned a negative sentinel chosen from
a fixed per-country table. Negative values keep the repaired ids apart
from the positive ids present in the export.
"""

from __future__ import annotations

from collections import Counter
from typing import ClassVar

import polars as pl
from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, model_validator

import retailnorm.errors as errors
import retailnorm.policies as policies
from retailnorm.schema import COUNTRY, CUSTOMER_ID

DEFAULT_COUNTRY_SENTINELS: dict[str, int] = {
    "Israel": -1,
    "Portugal": -2,
    "EIRE": -3,
    "Hong Kong": -4,
    "Bahrain": -5,
    "United Kingdom": -6,
    "Switzerland": -7,
    "France": -8,
    "Unspecified": -9,
}

DEFAULT_SENTINEL = -99


class CountrySentinels(BaseModel):
    """
    Mapping from country to the sentinel customer id used when none is known.

    Attributes:
        countries: Country name to negative sentinel id
        default: Sentinel used for countries missing from the mapping

    Example:
        sentinels = CountrySentinels(countries={"Iceland": -10}, default=-99)
        sentinels.sentinel_for("Iceland")  # -10
    """

    countries: dict[str, int] = Field(
        default_factory=lambda: dict(DEFAULT_COUNTRY_SENTINELS)
    )
    default: int = DEFAULT_SENTINEL

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="forbid")

    @model_validator(mode="after")
    def validate_sentinels(self) -> CountrySentinels:
        """Sentinels must be negative and must not collide with each other."""
        values = [*self.countries.values(), self.default]
        non_negative = [v for v in values if v >= 0]
        if non_negative:
            raise ValueError(f"Sentinel ids must be negative, got {non_negative}")

        duplicates = sorted(v for v, n in Counter(values).items() if n > 1)
        if duplicates:
            raise ValueError(f"Sentinel ids must be distinct, duplicated: {duplicates}")
        return self

    def sentinel_for(self, country: str | None) -> int:
        if country is None:
            return self.default
        return self.countries.get(country, self.default)


def repair_customer_ids(
    df: pl.DataFrame,
    sentinels: CountrySentinels,
    on_unmapped: policies.UnmappedCountryAction = "warn",
) -> pl.DataFrame:
    """
    Fill missing customer ids with per-country sentinels.

    Records that already carry a CustomerID are left untouched.

    Args:
        df: Prepared transaction records
        sentinels: Country to sentinel mapping
        on_unmapped: "warn" to fall back to the default sentinel with a
            warning, "error" to raise. Defaults to "warn".

    Returns:
        DataFrame with no null CustomerID values

    Raises:
        UnmappedCountryError: If on_unmapped is "error" and a record with no
            customer id belongs to a country missing from the mapping
    """
    missing = pl.col(CUSTOMER_ID).is_null()
    mapped = pl.col(COUNTRY).is_in(list(sentinels.countries)).fill_null(False)

    unmapped = (
        df.filter(missing & ~mapped)
        .get_column(COUNTRY)
        .unique(maintain_order=True)
        .to_list()
    )
    if unmapped:
        if on_unmapped == "error":
            raise errors.UnmappedCountryError(unmapped, default=sentinels.default)
        logger.warning(
            f"No sentinel for countries {unmapped}; "
            f"using default customer id {sentinels.default}"
        )

    repaired_count = df.select(missing.sum()).item()
    logger.debug(f"Repairing {repaired_count:,} records without a customer id")

    fill = (
        pl.col(COUNTRY)
        .replace_strict(
            sentinels.countries,
            default=sentinels.default,
            return_dtype=pl.Int64,
        )
        .fill_null(sentinels.default)
    )
    return df.with_columns(
        pl.when(missing).then(fill).otherwise(pl.col(CUSTOMER_ID)).alias(CUSTOMER_ID)
    )
