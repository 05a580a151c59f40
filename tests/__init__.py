"""
Test suite for the WOT orders backend.

Run all tests: pytest
Run with coverage: pytest --cov=. --cov-report=html
Run unit tests only: pytest tests/unit/
Run specific file: pytest tests/unit/test_csv_import_service.py -v
"""
