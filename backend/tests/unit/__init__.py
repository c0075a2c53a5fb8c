"""
Unit Tests

Unit tests run without external services. Database-backed services use an
in-memory SQLite database; pure components use mocked collaborators.
"""
