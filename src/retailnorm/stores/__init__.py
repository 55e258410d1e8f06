"""
Storage backends for normalized tables.

Stores:
    LocalStore: Local filesystem storage (Parquet + JSON metadata)

Example:
    from retailnorm.stores import LocalStore

    store = LocalStore("./normalized")
"""

from retailnorm.stores.base import Store
from retailnorm.stores.local import LocalStore

__all__ = [
    "Store",
    "LocalStore",
]
