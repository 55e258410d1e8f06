"""
retailnorm: Normalize flat eCommerce transaction exports.

This package turns a denormalized transaction export into Customers,
Products, Invoices and InvoiceLines tables with explicit, auditable
resolution rules.

Public API:
    Normalizer: Configurable normalization pipeline
    normalize: One-call normalization with default settings
    NormalizedTables: Container for the four resolved tables
    ResolutionPolicy: Tie-break and failure policies
    CountrySentinels: Sentinel ids for missing customer ids
    LocalStore: Local filesystem storage backend
    load_source: Read a .csv or .parquet export
"""

from retailnorm.core import Normalizer, normalize
from retailnorm.policies import ResolutionPolicy
from retailnorm.repair import CountrySentinels
from retailnorm.results import NormalizedTables
from retailnorm.schema import load_source
from retailnorm.stores import LocalStore

__all__ = [
    "Normalizer",
    "normalize",
    "NormalizedTables",
    "ResolutionPolicy",
    "CountrySentinels",
    "LocalStore",
    "load_source",
]
