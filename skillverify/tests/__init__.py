"""Test suite for the SkillVerify service.

Organized into three categories:

1. core/: Unit tests for core domain logic
   - Minimal dependencies, fast execution
   - Uses in-memory fakes for ports

2. adapters/: Integration tests for adapter implementations
   - Stores against real SQLite files, HTTP server over a real socket
   - Validates adapter behavior and error handling

3. fakes/: Port implementations for testing
   - In-memory implementations of UserStorePort, ClockPort, IdSupplierPort
   - Used by core unit tests
"""
