"""
Polyglot Content Test Suite

Test Structure:
    tests/
    ├── conftest.py          # Shared fixtures and configuration
    └── unit/                # Unit tests (in-memory SQLite, mocked collaborators)
        ├── test_config.py           # Settings and YAML config
        ├── test_content_models.py   # Request/response validation
        ├── test_error_handling.py   # Service errors and middleware
        ├── test_translation_store.py
        ├── test_exercise_validator.py
        ├── test_lesson_ordering.py
        ├── test_lesson_visibility.py
        ├── test_exercise_service.py
        ├── test_lesson_service.py
        └── test_image_registry.py

Running Tests:
    # Run all tests
    pytest backend/tests/ -v

    # Run with coverage
    pytest backend/tests/ --cov=polyglot --cov-report=html
"""
