"""
Per-entity repository modules for database access.

Each module exposes narrow, hand-written operations for one table group;
every operation takes the caller's Session and returns pydantic records.
"""
