"""
Test suite for photoshare.

- Unit tests for models, services, configuration and operator tasks
- Integration tests for the HTTP endpoints against an in-memory blob store
"""
