"""
================================================================================
Browser Testing Pytest Configuration
================================================================================

Fixtures running the resilience layer against a real Playwright browser.

Key Features:
- One browser per test module, one isolated context per test
- Pages are rendered from inline HTML, no application server needed
- Tests are skipped when no browser binary is installed
- Screenshot capture on failure

================================================================================
"""

from typing import Generator

import pytest
from playwright.sync_api import Error as PlaywrightError

from ui_resilience.framework.browser_manager import BrowserManager
from ui_resilience.framework.session import BrowserSession
from ui_resilience.framework.timeouts import Timeouts


# ================================================================================
# Browser Fixtures
# ================================================================================

@pytest.fixture(scope="module")
def browser_manager() -> Generator[BrowserManager, None, None]:
    """
    Module-scoped browser manager.

    Skips the module when the configured browser cannot be launched
    (e.g. `playwright install` was never run).
    """
    manager = BrowserManager(headless=True)
    try:
        manager.start()
    except PlaywrightError as ex:
        manager.close()
        pytest.skip(f"Browser '{manager.browser_type}' not available: {ex.message}")
    yield manager
    manager.close()


@pytest.fixture
def session(browser_manager: BrowserManager) -> BrowserSession:
    """Function-scoped session on a fresh context, with short timeouts."""
    timeouts = Timeouts(default=5, short=2, open_page=5, close_dialog=5, recovery_pause=0.2)
    return browser_manager.new_session(timeouts=timeouts)


@pytest.fixture
def render(session: BrowserSession):
    """Render inline HTML in the session page."""

    def _render(html: str) -> None:
        session.driver.page.set_content(html)
        session.reset_frame()

    return _render


# ================================================================================
# Test Lifecycle Hooks
# ================================================================================

@pytest.hookimpl(hookwrapper=True)
def pytest_runtest_makereport(item, call):
    """Attach a screenshot of the page to the Allure report when a test fails."""
    outcome = yield
    report = outcome.get_result()

    if report.when == "call" and report.failed:
        session = getattr(item, "funcargs", {}).get("session")
        if isinstance(session, BrowserSession):
            session.attach_screenshot("failure_screenshot")
