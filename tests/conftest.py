"""Pytest configuration for dataknobs_validate tests."""

import sys
from pathlib import Path

import pytest

# Add the package source to path for testing
src_path = Path(__file__).parent.parent / "src"
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))


@pytest.fixture
def person_specs():
    """Specs for a simple person record."""
    return {
        "name": {"type": "string", "max_length_chars": 30},
        "email": {"type": "string", "regex": r"^[^@\s]+@[^@\s]+$", "optional": True},
        "score": {"types": ["float", "int"], "min_value": 0, "max_value": 10, "default": 5},
    }
