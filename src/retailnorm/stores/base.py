"""
Abstract base class for table stores.

Defines the Store ABC that storage implementations inherit from, plus the
shared logic for persisting a whole set of normalized tables.
"""

from abc import ABC, abstractmethod
from pathlib import Path

import polars as pl
from loguru import logger

import retailnorm.manifest as manifest
from retailnorm.results import NormalizedTables


class Store(ABC):
    """
    Abstract base class for normalized table storage backends.

    Defines the interface that all storage implementations must provide
    for persisting and retrieving tables with their metadata.
    """

    @abstractmethod
    def write(
        self,
        table_name: str,
        df: pl.DataFrame,
        source: str | None = None,
    ) -> manifest.TableMetadata:
        """
        Persist a table and its metadata.

        Args:
            table_name: Name of the table (e.g. "customers")
            df: Table data
            source: Transaction export the table was derived from

        Returns:
            Metadata describing what was written
        """
        ...

    @abstractmethod
    def read(self, table_name: str, columns: list[str] | None = None) -> pl.DataFrame:
        """
        Retrieve a stored table.

        Args:
            table_name: Name of the table
            columns: Specific columns to read. If None, reads all columns.

        Returns:
            Table data as a DataFrame

        Raises:
            FileNotFoundError: If the table has not been written
        """
        ...

    @abstractmethod
    def exists(self, table_name: str) -> bool:
        """
        Check whether a table has been written.

        Args:
            table_name: Name of the table

        Returns:
            True if the table exists in storage, False otherwise
        """
        ...

    @abstractmethod
    def path_for(self, table_name: str) -> Path | str:
        """
        Get the storage path for a table.

        Args:
            table_name: Name of the table

        Returns:
            Path or str where the table is or would be stored
        """
        ...

    @abstractmethod
    def read_metadata(self, table_name: str) -> manifest.TableMetadata | None:
        """
        Read a table's metadata.

        Args:
            table_name: Name of the table

        Returns:
            TableMetadata if present and valid, None otherwise
        """
        ...

    @abstractmethod
    def list_metadata(self) -> list[manifest.TableMetadata]:
        """
        List metadata for every stored table.

        Returns:
            List of TableMetadata
        """
        ...

    def write_tables(
        self,
        tables: NormalizedTables,
        source: str | None = None,
        force: bool = False,
    ) -> dict[str, manifest.TableMetadata]:
        """
        Persist every normalized table as one set.

        Surrogate keys are numbered per run, so tables from different runs
        must never be mixed. If any table already exists and force is False,
        nothing is written.

        Args:
            tables: Output of a normalization run
            source: Transaction export the tables were derived from
            force: Overwrite existing tables. Defaults to False.

        Returns:
            Mapping of written table names to their metadata, empty when the
            set was skipped
        """
        frames = tables.tables()

        existing = [name for name in frames if self.exists(name)]
        if existing and not force:
            logger.debug(f"Skipping write, store already holds {existing}")
            return {}

        written: dict[str, manifest.TableMetadata] = {}
        for name, df in frames.items():
            logger.info(f"Writing {name}")
            written[name] = self.write(name, df, source=source)

        return written
