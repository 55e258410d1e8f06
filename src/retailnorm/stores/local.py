"""
Local filesystem storage backend.

Stores each normalized table as a Parquet file with a JSON metadata file.
"""

from pathlib import Path
from typing import override

import polars as pl

import retailnorm.manifest as manifest
from retailnorm.schema import PRIMARY_KEYS
from retailnorm.stores.base import Store


class LocalStore(Store):
    """
    Local filesystem storage backend using Parquet format.

    Layout:
        normalized/
        ├── customers.parquet
        ├── customers.meta.json
        ├── products.parquet
        ├── products.meta.json
        └── ...

    Attributes:
        path: Root directory for storing table files

    Example:
        store = LocalStore("./normalized")
        store.write_tables(tables, source="data/ecommerce.csv")
        customers = store.read("customers")
    """

    def __init__(self, path: str | Path = "./normalized"):
        """
        Initialize local storage backend.

        Args:
            path: Directory path for table storage. Defaults to "./normalized".
        """
        self.path = Path(path)
        self.path.mkdir(parents=True, exist_ok=True)

    @override
    def path_for(self, table_name: str) -> Path:
        return self.path / f"{table_name}.parquet"

    def metadata_path_for(self, table_name: str) -> Path:
        return self.path / f"{table_name}.meta.json"

    @override
    def write(
        self,
        table_name: str,
        df: pl.DataFrame,
        source: str | None = None,
    ) -> manifest.TableMetadata:
        """
        Write a table to parquet and record its metadata.

        Args:
            table_name: Name of the table
            df: Table data
            source: Transaction export the table was derived from

        Returns:
            Metadata with path, row count and column dtypes
        """
        path = self.path_for(table_name)
        df.write_parquet(path)

        metadata = manifest.TableMetadata(
            name=table_name,
            path=str(path),
            primary_key=PRIMARY_KEYS.get(table_name, df.columns[0]),
            row_count=df.height,
            last_updated=manifest.utc_now(),
            source=source,
            columns=manifest.derive_column_metadata(df),
        )
        manifest.write_metadata_file(self.metadata_path_for(table_name), metadata)
        return metadata

    @override
    def read(self, table_name: str, columns: list[str] | None = None) -> pl.DataFrame:
        path = self.path_for(table_name)

        if not path.exists():
            raise FileNotFoundError(
                f"Table '{table_name}' not found. Run 'retailnorm run' first."
            )

        return pl.read_parquet(path, columns=columns)

    @override
    def exists(self, table_name: str) -> bool:
        return self.path_for(table_name).exists()

    @override
    def read_metadata(self, table_name: str) -> manifest.TableMetadata | None:
        return manifest.read_metadata_file(self.metadata_path_for(table_name))

    @override
    def list_metadata(self) -> list[manifest.TableMetadata]:
        """
        List metadata of all stored tables.

        Scans for .meta.json files and reads each one, skipping any that
        are missing or malformed.

        Returns:
            List of TableMetadata sorted by table name
        """
        metadata_list: list[manifest.TableMetadata] = []

        for meta_path in sorted(self.path.glob("*.meta.json")):
            meta = manifest.read_metadata_file(meta_path)
            if meta:
                metadata_list.append(meta)

        return metadata_list
