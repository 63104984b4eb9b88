"""
Fixtures of the unit tests: a fake driver, a fake clock and a session wired
on both, so that every wait is deterministic and instantaneous.
"""

import pytest

from fake_driver import FakeClock, FakeDriver
from ui_resilience.framework.page_registry import PageTypeRegistry
from ui_resilience.framework.session import BrowserSession
from ui_resilience.framework.timeouts import Timeouts
from ui_resilience.framework.topology import StaticTopology
from ui_resilience.framework.wait_engine import Waiter


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def driver():
    return FakeDriver()


@pytest.fixture
def timeouts():
    return Timeouts(default=10, short=2, open_page=5, close_dialog=5)


@pytest.fixture
def registry():
    return PageTypeRegistry()


@pytest.fixture
def topology():
    return StaticTopology()


@pytest.fixture
def session(driver, clock, timeouts, registry, topology):
    waiter = Waiter.from_timeouts(timeouts, clock=clock.now, sleep=clock.sleep)
    return BrowserSession(
        driver,
        timeouts=timeouts,
        waiter=waiter,
        topology=topology,
        registry=registry,
    )
