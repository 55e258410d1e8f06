"""Shared test fixtures for retailnorm tests."""

import tempfile
from datetime import datetime
from pathlib import Path

import polars as pl
import pytest
from loguru import logger

from retailnorm import Normalizer
from retailnorm.schema import SOURCE_SCHEMA


def make_transactions(rows: list[tuple]) -> pl.DataFrame:
    """Build a transaction export from (invoice, stock, desc, qty, ts, price, cust, country) rows."""
    return pl.DataFrame(rows, schema=SOURCE_SCHEMA, orient="row")


def ts(day: int, hour: int, minute: int) -> datetime:
    return datetime(2010, 12, day, hour, minute)


@pytest.fixture
def temp_dir():
    """Temporary directory that's cleaned up after test."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def transactions():
    """
    Small export with the kinds of noise found in the real data.

    - customer 12370 moves from Cyprus to Austria
    - stock code 85123A has two descriptions, 20713 has a null one
    - stock code DOT never has a description
    - invoice 536370 spans two timestamps a minute apart
    - three records have no customer id (two UK, one Bahrain)
    """
    return make_transactions(
        [
            ("536365", "85123A", "WHITE HANGING HEART T-LIGHT HOLDER", 6, ts(1, 8, 26), 2.55, 17850, "United Kingdom"),
            ("536365", "71053", "WHITE METAL LANTERN", 6, ts(1, 8, 26), 3.39, 17850, "United Kingdom"),
            ("536370", "20713", "JUMBO BAG OWLS", 24, ts(1, 8, 45), 1.95, 12370, "Cyprus"),
            ("536370", "85123A", "CREAM HANGING HEART T-LIGHT HOLDER", 12, ts(1, 8, 46), 2.95, 12370, "Cyprus"),
            ("536544", "20713", None, 1, ts(1, 14, 32), 4.21, None, "United Kingdom"),
            ("536544", "DOT", None, 1, ts(1, 14, 32), 569.77, None, "United Kingdom"),
            ("536600", "20713", "JUMBO BAG OWLS", 10, ts(2, 10, 0), 1.95, 12370, "Austria"),
            ("536601", "85123A", "WHITE HANGING HEART T-LIGHT HOLDER", 3, ts(3, 9, 0), 2.55, 17850, "United Kingdom"),
            ("536602", "71053", "WHITE METAL LANTERN", 2, ts(3, 11, 0), 3.39, None, "Bahrain"),
        ]
    )


@pytest.fixture
def records(transactions):
    """Prepared and repaired records ready for the resolvers."""
    return Normalizer().repair(transactions)


@pytest.fixture
def transactions_csv(temp_dir):
    """The export as the original csv writes it: text columns, float ids."""
    path = temp_dir / "ecommerce.csv"
    path.write_text(
        "InvoiceNo,StockCode,Description,Quantity,InvoiceDate,UnitPrice,CustomerID,Country\n"
        "536365,85123A,WHITE HANGING HEART T-LIGHT HOLDER,6,12/01/2010 08:26,2.55,17850.0,United Kingdom\n"
        "536365,71053,WHITE METAL LANTERN,6,12/01/2010 08:26,3.39,17850.0,United Kingdom\n"
        "536366,22633,HAND WARMER UNION JACK,6,12/01/2010 08:28,1.85,,United Kingdom\n"
        "C536379,D,Discount,-1,12/01/2010 09:41,27.5,14527.0,United Kingdom\n"
    )
    return path


@pytest.fixture
def config_file(temp_dir):
    """retailnorm.yaml matching the csv fixture's timestamp format."""
    path = temp_dir / "retailnorm.yaml"
    path.write_text(
        f"""
default_profile: dev
profiles:
  dev:
    store:
      path: {temp_dir / "normalized"}
    source:
      timestamp_format: "%m/%d/%Y %H:%M"
"""
    )
    return path


@pytest.fixture
def log_messages():
    """Messages logged through loguru during the test."""
    messages: list[str] = []
    handler_id = logger.add(
        lambda message: messages.append(message.record["message"]), level="DEBUG"
    )
    yield messages
    logger.remove(handler_id)
