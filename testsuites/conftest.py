"""
================================================================================
Root Pytest Configuration
================================================================================

This module provides the root pytest configuration for the entire test suite.
It registers common markers and tags tests by directory.

================================================================================
"""

import pytest


def pytest_configure(config):
    """Configure pytest with project-wide custom markers."""

    # Priority markers
    config.addinivalue_line(
        "markers", "P0: Critical priority tests - must pass for release"
    )
    config.addinivalue_line(
        "markers", "P1: High priority tests - important functionality"
    )
    config.addinivalue_line(
        "markers", "P2: Medium priority tests - edge cases and minor features"
    )
    config.addinivalue_line(
        "markers", "P3: Low priority tests - extensive validation"
    )

    # Test type markers
    config.addinivalue_line(
        "markers", "smoke: Quick verification tests"
    )
    config.addinivalue_line(
        "markers", "unit: Tests running on the in-memory driver"
    )
    config.addinivalue_line(
        "markers", "browser: Tests running on a real Playwright browser"
    )


def pytest_collection_modifyitems(config, items):
    """
    Modify collected test items.

    Tests are tagged after the directory they live in, so that a suite can be
    selected with `-m unit` or `-m browser`.
    """
    for item in items:
        path = str(item.fspath)
        if "browser_testing" in path:
            item.add_marker(pytest.mark.browser)
        elif "unit" in path:
            item.add_marker(pytest.mark.unit)


def pytest_report_header(config):
    """Add custom header to pytest output."""
    return [
        "",
        "=" * 60,
        "UI Resilience Layer Test Suite",
        "=" * 60,
        "",
    ]
