"""Unit tests for the database layer in muse_ai/core/database.

Repository tests run against in-memory SQLite so they need no external
database service.
"""
