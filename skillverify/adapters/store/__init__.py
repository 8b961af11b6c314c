"""User store adapters for aggregate persistence.

Implementations support multiple backends:
- In-memory (ephemeral, for development and tests)
- SQLite (zero-config, single-file)
- PostgreSQL (distributed, scalable)
"""
