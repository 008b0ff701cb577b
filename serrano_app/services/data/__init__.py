"""
Data access helpers.

Modules:
  sql_clauses : Pure functions for SQLAlchemy WHERE clause construction.
"""
