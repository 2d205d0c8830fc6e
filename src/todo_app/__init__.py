"""
To Do application: SQLite-backed REST API plus an optimistic-sync console client.
"""

__version__ = "0.1.0"
