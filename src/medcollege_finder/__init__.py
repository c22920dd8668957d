"""
MedCollege Finder - Ranked search over Indian medical, dental and DNB colleges
==============================================================================

Resolves free-text queries (college names, abbreviations, course codes,
locations) against a read-only catalog partitioned into:

- Medical colleges (MBBS, MD, MS, DM, MCh)
- Dental colleges (BDS, MDS)
- DNB hospitals

Search flow: analyze query → generate variations → run strategies in
parallel across partitions → filter by course type → score → deduplicate
→ group by college.
"""

__version__ = "0.1.0"
__author__ = "MedCollege Finder Team"
__license__ = "MIT"

# Public API - subpackages are imported on demand
__all__ = [
    # Version info
    "__version__",
    "__author__",
    "__license__",
    # Main modules
    "shared",
    "catalog",
    "search",
    "cli",
]
