"""Tests for manifest module."""

import json

import polars as pl

from retailnorm.manifest import (
    ColumnMetadata,
    TableMetadata,
    derive_column_metadata,
    read_metadata_file,
    utc_now,
    write_metadata_file,
)


def _metadata(**overrides):
    values = dict(
        name="customers",
        path="normalized/customers.parquet",
        primary_key="CustomerID",
        row_count=4,
        last_updated="2024-01-01T00:00:00Z",
    )
    values.update(overrides)
    return TableMetadata(**values)


def test_column_metadata_to_dict_excludes_none_values():
    # Given a column without a dtype
    col = ColumnMetadata(name="CustomerID")

    # When converting to dict
    result = col.to_dict()

    # Then None values should be excluded
    assert result == {"name": "CustomerID"}


def test_table_metadata_to_dict_omits_empty_optionals():
    result = _metadata().to_dict()

    assert "source" not in result
    assert "columns" not in result


def test_table_metadata_round_trips_through_dict():
    # Given metadata with every field set
    meta = _metadata(
        source="data/ecommerce.csv",
        columns=[ColumnMetadata("CustomerID", "Int64"), ColumnMetadata("Country", "String")],
    )

    # When serializing and parsing
    restored = TableMetadata.from_dict(meta.to_dict())

    # Then it should be equal
    assert restored == meta


def test_derive_column_metadata_captures_dtypes():
    df = pl.DataFrame({"CustomerID": [1], "Country": ["France"]})

    columns = derive_column_metadata(df)

    assert [c.name for c in columns] == ["CustomerID", "Country"]
    assert [c.dtype for c in columns] == ["Int64", "String"]


def test_write_and_read_metadata_file(tmp_path):
    # Given metadata written to disk
    path = tmp_path / "customers.meta.json"
    meta = _metadata(source="data/ecommerce.csv")
    write_metadata_file(path, meta)

    # When reading it back
    restored = read_metadata_file(path)

    # Then the content matches
    assert restored == meta
    assert json.loads(path.read_text())["row_count"] == 4


def test_read_metadata_file_missing_returns_none(tmp_path):
    assert read_metadata_file(tmp_path / "missing.meta.json") is None


def test_read_metadata_file_incomplete_returns_none(tmp_path):
    path = tmp_path / "customers.meta.json"
    path.write_text(json.dumps({"name": "customers"}))

    assert read_metadata_file(path) is None


def test_utc_now_is_iso_with_z_suffix():
    assert utc_now().endswith("Z")
