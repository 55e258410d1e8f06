"""
Manifest module for table metadata tracking.

Provides dataclasses describing a stored table and utilities for
reading/writing the per-table .meta.json files written next to the data.
"""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import polars as pl


@dataclass
class ColumnMetadata:
    """
    Metadata for a single column in a stored table.

    Attributes:
        name: Column name
        dtype: Data type string (e.g., "Int64", "String")
    """

    name: str
    dtype: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ColumnMetadata:
        """Create from dictionary."""
        return cls(name=data["name"], dtype=data.get("dtype"))


@dataclass
class TableMetadata:
    """
    Metadata for a single normalized table.

    Attributes:
        name: Table name (customers, products, invoices, invoice_lines)
        path: Storage path of the parquet file
        primary_key: Primary key column
        row_count: Number of rows written
        last_updated: ISO 8601 timestamp of the write
        source: Transaction export the table was derived from
        columns: Column names and dtypes
    """

    name: str
    path: str
    primary_key: str
    row_count: int
    last_updated: str
    source: str | None = None
    columns: list[ColumnMetadata] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "name": self.name,
            "path": self.path,
            "primary_key": self.primary_key,
            "row_count": self.row_count,
            "last_updated": self.last_updated,
        }
        if self.source:
            result["source"] = self.source
        if self.columns:
            result["columns"] = [col.to_dict() for col in self.columns]
        return result

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TableMetadata:
        """Create from dictionary."""
        columns = [ColumnMetadata.from_dict(c) for c in data.get("columns", [])]
        return cls(
            name=data["name"],
            path=data["path"],
            primary_key=data["primary_key"],
            row_count=data["row_count"],
            last_updated=data["last_updated"],
            source=data.get("source"),
            columns=columns,
        )


def derive_column_metadata(df: pl.DataFrame) -> list[ColumnMetadata]:
    """Capture name and dtype of every column in a table."""
    return [ColumnMetadata(name=name, dtype=str(dtype)) for name, dtype in df.schema.items()]


def utc_now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def write_metadata_file(path: Path, metadata: TableMetadata) -> None:
    """
    Write table metadata to a JSON file.

    Args:
        path: Path to write the .meta.json file
        metadata: TableMetadata to serialize
    """
    with open(path, "w") as f:
        json.dump(metadata.to_dict(), f, indent=2)


def read_metadata_file(path: Path) -> TableMetadata | None:
    """
    Read table metadata from a JSON file.

    Args:
        path: Path to the .meta.json file

    Returns:
        TableMetadata if file exists and is valid, None otherwise
    """
    if not path.exists():
        return None
    try:
        with open(path) as f:
            data = json.load(f)
        return TableMetadata.from_dict(data)
    except (json.JSONDecodeError, KeyError):
        return None
