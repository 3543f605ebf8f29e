"""Patrimony (asset inventory) management toolkit.

Spreadsheet / CSV import with lenient normalization, two-file reconciliation,
and pluggable storage (local JSON documents or PostgreSQL).
"""

__version__ = "0.3.0"
