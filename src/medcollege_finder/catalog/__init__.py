"""
Catalog Module - Read-only college catalog access.
==================================================

Components:
- store: Partition tables and aggregate college/course tables over sqlite3
- reference: TTL-cached reference lists (streams, states, course types)
"""

from medcollege_finder.catalog.store import (
    PARTITION_ORDER,
    Catalog,
    CatalogPartition,
)
from medcollege_finder.catalog.reference import ReferenceData

__all__ = [
    "PARTITION_ORDER",
    "Catalog",
    "CatalogPartition",
    "ReferenceData",
]
