"""
STIGQter Test Suite

Test Organization:
- test_core/ - Core infrastructure tests (state, config, logging, deps)
- test_xml/ - XML processing tests (schema, sanitizer, utils)
- test_io/ - File operations and download tests
- test_db/ - Schema, entity and DbManager tests
- test_validation/ - Checklist and benchmark validation tests
- test_workers/ - Worker tests (CCIs, STIGs, assets, checklists, reports)
- test_ui/ - Command-line interface tests
- test_integration/ - End-to-end workflow tests

samples.py holds the NIST feed, CCI list, XCCDF benchmark and checklist
documents the fixtures in conftest.py write to disk.

Requirements:
- Python 3.9+
- pytest (for running tests)
- pytest-cov (for coverage reports)

Running Tests:
    # All tests
    python -m pytest tests/ -v

    # Specific module
    python -m pytest tests/test_db/ -v

    # With coverage
    python -m pytest tests/ -v --cov=stigqter --cov-report=html

    # Skip the end-to-end workflows
    python -m pytest tests/ -m "not integration"
"""

__version__ = "1.0.0"
__all__ = []
