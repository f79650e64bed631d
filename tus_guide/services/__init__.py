"""
Services module - facet resolution, multi-period search, CSV export and import.
"""
