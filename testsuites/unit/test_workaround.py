import pytest

from fake_driver import Node, document
from ui_resilience.framework.errors import (
    ElementNotFoundError,
    StructuralError,
    WorkaroundFailedError,
)
from ui_resilience.framework.locators import Locator
from ui_resilience.framework.page_base import BasePage
from ui_resilience.framework.workaround import PageRefreshWorkaround, run_with_workaround

GRID = Locator.css("#grid")


@pytest.fixture
def page(session):
    return BasePage("https://app.example.com/reports", None, session)


def find_grid(page):
    return lambda: page.wait_for_element(GRID, timeout=1)


def test_workaround_cures_symptom(page, driver):
    driver.load(document())

    def refresh():
        driver.refreshes += 1
        driver.load(document(Node("div", id="grid")))

    driver.refresh = refresh

    element = run_with_workaround(
        find_grid(page),
        lambda: PageRefreshWorkaround(page, "Grid never displayed"),
        signature=ElementNotFoundError,
    )

    assert element.locator == GRID
    assert driver.refreshes == 1
    assert page.location in page.session.workaround_locations


def test_second_workaround_on_same_location_fails(page, session):
    PageRefreshWorkaround(page, "first")

    with pytest.raises(WorkaroundFailedError, match="second"):
        PageRefreshWorkaround(page, "second")


def test_non_failing_workaround_can_repeat(page):
    PageRefreshWorkaround(page, "first")
    workaround = PageRefreshWorkaround(page, "again", fail=False, report=False)

    assert "kind=normal" in str(workaround)


def test_original_error_raised_when_not_cured(page, driver):
    driver.load(document())

    with pytest.raises(ElementNotFoundError) as error:
        run_with_workaround(
            find_grid(page),
            lambda: PageRefreshWorkaround(page, "Grid never displayed"),
            signature=ElementNotFoundError,
        )

    assert driver.refreshes == 1
    assert isinstance(error.value.__cause__, ElementNotFoundError)
    assert error.value.__cause__ is not error.value


def test_unrelated_error_is_not_worked_around(page, driver):
    def broken():
        raise StructuralError("bad locator")

    with pytest.raises(StructuralError):
        run_with_workaround(
            broken,
            lambda: PageRefreshWorkaround(page, "never"),
            signature=lambda ex: "not displayed" in str(ex),
        )

    assert driver.refreshes == 0
    assert page.session.workaround_locations == set()


def test_workaround_failure_propagates(page, driver):
    driver.load(document())
    page.session.workaround_locations.add(page.location)

    with pytest.raises(WorkaroundFailedError):
        run_with_workaround(
            find_grid(page),
            lambda: PageRefreshWorkaround(page, "Grid never displayed"),
            signature=ElementNotFoundError,
        )
