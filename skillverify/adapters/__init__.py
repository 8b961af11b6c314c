"""External adapters for the SkillVerify service.

This package contains all external dependencies (SQLite, PostgreSQL,
HTTP servers, system clock, etc.) and provides implementations of the
core port interfaces.

Adapter Organization:

- store/: Adapters for User aggregate persistence (memory, SQLite, PostgreSQL)
- api/: HTTP request handlers and server exposing the REST surface
- runtime.py: System clock and UUID id supplier
"""
