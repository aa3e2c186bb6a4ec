"""
MedCare Test Suite
==================

This package contains all tests for the MedCare medicine-adherence tracker.

Test Structure:
- test_services/: Schedule expansion, ledger, resolver, aggregation, tracker, export
- test_tools/: Document store and notification sinks
- test_actions/: Reminder scheduler
- test_api/: API endpoint tests for FastAPI routes
- conftest.py: Shared pytest fixtures

Running Tests:
    # Run all tests
    pytest

    # Run specific test module
    pytest tests/test_api/

    # Run only marked tests
    pytest -m "unit"
    pytest -m "api"
"""
