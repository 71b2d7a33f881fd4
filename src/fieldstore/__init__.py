"""
fieldstore - data access layer for the field-testing application.

Unified CRUD over an embedded SQLite file or a hosted PostgreSQL database,
plus a race-safe sequence allocator for project numbers.
"""

__version__ = "0.1.0"

from fieldstore.core import *  # noqa
