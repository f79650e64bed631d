"""
TUS Guide
Faceted search and multi-period comparison of medical residency placements.

Architecture:
- SQLite (or PostgreSQL): institutions and per-period placement results
- FastAPI: read-only JSON API (facets, search, CSV export)
- Offline CSV importer replaces the dataset wholesale
"""

__version__ = "1.0.0"
