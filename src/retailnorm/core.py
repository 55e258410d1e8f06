from __future__ import annotations

import polars as pl
from loguru import logger

import retailnorm.policies as policies
import retailnorm.repair as repair
import retailnorm.resolvers as resolvers
import retailnorm.schema as schema
import retailnorm.validation as validation
from retailnorm.results import NormalizedTables


class Normalizer:
    """
    Normalization pipeline for flat eCommerce transaction exports.

    Runs the resolution steps in dependency order: identifier repair,
    customer and product resolution, invoice resolution, line expansion,
    and finally invariant validation. A Normalizer holds configuration
    only, so the same instance can be run on any number of exports.

    Attributes:
        sentinels: Country to sentinel mapping for missing customer ids
        policy: Tie-break and failure policies
        timestamp_format: strftime format for text InvoiceDate values

    Example:
        from retailnorm import Normalizer, ResolutionPolicy

        normalizer = Normalizer(policy=ResolutionPolicy(product_order="stock_code"))
        tables = normalizer.run(pl.read_parquet("data/ecommerce.parquet"))
        tables.products.head()
    """

    def __init__(
        self,
        sentinels: repair.CountrySentinels | None = None,
        policy: policies.ResolutionPolicy | None = None,
        timestamp_format: str | None = None,
    ) -> None:
        """
        Initialize the pipeline.

        Args:
            sentinels: Sentinel mapping. Defaults to the built-in table.
            policy: Resolution policy. Defaults to ResolutionPolicy().
            timestamp_format: Format for text timestamps. Defaults to None
                (inferred).
        """
        self.sentinels = sentinels or repair.CountrySentinels()
        self.policy = policy or policies.ResolutionPolicy()
        self.timestamp_format = timestamp_format

    def run(self, source: pl.DataFrame) -> NormalizedTables:
        """
        Normalize a transaction export into four tables.

        Args:
            source: Flat transaction records

        Returns:
            NormalizedTables with customers, products, invoices and lines

        Raises:
            SourceSchemaError: If the export is malformed
            ResolutionError: If an entity cannot be resolved unambiguously
            TableValidationError: If the resolved tables break an invariant
        """
        logger.info(f"Normalizing {source.height:,} transaction records")

        records = self.repair(source)

        logger.info("Resolving customers")
        customers = resolvers.resolve_customers(
            records, tie_break=self.policy.country_tie_break
        )

        logger.info("Resolving products")
        products = resolvers.resolve_products(
            records,
            tie_break=self.policy.description_tie_break,
            order=self.policy.product_order,
        )

        logger.info("Resolving invoices")
        invoices = resolvers.resolve_invoices(records)

        logger.info("Expanding invoice lines")
        invoice_lines = resolvers.expand_lines(records, products)

        tables = NormalizedTables(
            customers=customers,
            products=products,
            invoices=invoices,
            invoice_lines=invoice_lines,
        )
        validation.validate_tables(records, tables)

        counts = ", ".join(f"{n:,} {name}" for name, n in tables.row_counts().items())
        logger.info(f"Normalized into {counts}")
        return tables

    def repair(self, source: pl.DataFrame) -> pl.DataFrame:
        """
        Prepare the export and fill in missing customer ids.

        Args:
            source: Flat transaction records

        Returns:
            Typed records with no null CustomerID and a row-order column
        """
        records = schema.prepare_source(source, self.timestamp_format)
        logger.info("Repairing missing customer ids")
        return repair.repair_customer_ids(
            records,
            self.sentinels,
            on_unmapped=self.policy.on_unmapped_country,
        )


def normalize(
    source: pl.DataFrame,
    sentinels: repair.CountrySentinels | None = None,
    policy: policies.ResolutionPolicy | None = None,
    timestamp_format: str | None = None,
) -> NormalizedTables:
    """
    Normalize a transaction export with a one-off Normalizer.

    Args:
        source: Flat transaction records
        sentinels: Sentinel mapping. Defaults to the built-in table.
        policy: Resolution policy. Defaults to ResolutionPolicy().
        timestamp_format: Format for text timestamps. Defaults to None.

    Returns:
        NormalizedTables for the export
    """
    return Normalizer(
        sentinels=sentinels, policy=policy, timestamp_format=timestamp_format
    ).run(source)
