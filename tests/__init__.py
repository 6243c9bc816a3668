"""Helm Test Suite

This package contains all tests for Helm.

Test organization:
- unit/: Unit tests for individual modules
  - learning/: Event log, pattern store, pattern analyzer, nudges, config
  - journal/: Entries, entity extraction, streaks, insights
  - tasks/: Task manager and reporting tools

Running tests:
    # All tests
    pytest

    # Specific module
    pytest tests/unit/learning/
"""
