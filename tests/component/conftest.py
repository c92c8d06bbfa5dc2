"""
Component Test Layer Configuration

Structure:
    tests/component/
    └── ad/      AdService facade, repository SQL, clients, event handling

Usage:
    pytest tests/component -v
"""
import os
import sys

import pytest

# Set testing environment BEFORE any imports
os.environ["ENV"] = "testing"
os.environ["ENVIRONMENT"] = "testing"

# Add project root
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))


def pytest_configure(config):
    """Configure custom markers"""
    config.addinivalue_line(
        "markers", "component: marks tests as component tests"
    )


def pytest_collection_modifyitems(config, items):
    """Auto-mark every test under tests/component"""
    for item in items:
        if "/component/" in str(item.fspath):
            item.add_marker(pytest.mark.component)
