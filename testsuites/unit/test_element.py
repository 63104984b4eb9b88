import pytest

from fake_driver import Node, document, fatal
from ui_resilience.framework.errors import FatalDriverError, TransientDriverError
from ui_resilience.framework.locators import Locator

SAVE = Locator.css("#save")
ITEM = Locator.css("li.item")


def items(*texts, **kwargs):
    return [Node("li", text, class_="item", **kwargs) for text in texts]


def test_click_recovers_replaced_element(session, driver):
    old = Node("button", id="save")
    driver.load(document(old))
    element = session.finder.wait_for_element(SAVE)

    new = Node("button", id="save")
    old.replace_with(new)
    element.click()

    assert old.clicks == 0
    assert new.clicks == 1
    assert element.stale is False


def test_recovery_prefers_element_at_same_position(session, driver):
    driver.load(document(*items("a", "b", "c")))
    element = session.finder.wait_for_elements(ITEM)[1]

    # whole list rendered again
    body = driver.body
    for node in list(body.children):
        node.remove()
    body.add(*items("a2", "b2", "c2"))

    assert element.get_text() == "b2"
    assert element.ordinal == 1


def test_recovery_skips_hidden_element_at_same_position(session, driver, clock):
    driver.load(document(*items("a", "b", "c")))
    element = session.finder.wait_for_elements(ITEM)[1]

    body = driver.body
    for node in list(body.children):
        node.remove()
    fresh = items("a2", "b2", "c2")
    fresh[1].displayed = False
    body.add(*fresh)

    # the hidden element at the same position is kept as the closest match
    assert element.get_text() == "b2"


def test_recovery_uses_closest_match_on_last_attempt(session, driver, clock):
    driver.load(document(*items("a", "b", "c")))
    element = session.finder.wait_for_elements(ITEM)[2]

    body = driver.body
    for node in list(body.children):
        node.remove()
    body.add(*items("x", "y"))

    assert element.get_text() == "x"
    # every recovery attempt but the last one refused the approximate match
    assert clock.sleeps.count(session.waiter.interval) == session.max_recovery_attempts


def test_release_finds_element_again(session, driver):
    old = Node("button", "Save", id="save")
    driver.load(document(old))
    element = session.finder.wait_for_element(SAVE)

    element.release()
    assert element.stale is True
    old.replace_with(Node("button", "Save changes", id="save"))

    assert element.text == "Save changes"
    assert element.stale is False


def test_child_recovers_its_parent_first(session, driver):
    form = Node("form", id="login").add(Node("input", name="user"))
    driver.load(document(form))
    child = session.finder.wait_for_element(Locator.css("#login")).wait_for_element(
        Locator.css("input[name='user']")
    )

    new_input = Node("input", name="user")
    form.replace_with(Node("form", id="login").add(new_input))
    child.type_text("alice")

    assert new_input.value == "alice"


def test_operation_retries_are_capped(session, driver):
    button = Node("button", id="save")
    driver.load(document(button))
    element = session.finder.wait_for_element(SAVE)

    driver.fail_next("click", times=5)
    element.click()
    assert button.clicks == 1

    driver.fail_next("click", times=6)
    with pytest.raises(TransientDriverError):
        element.click()
    assert button.clicks == 1


def test_operation_without_recovery_raises_at_once(session, driver):
    driver.load(document(Node("button", id="save")))
    element = session.finder.wait_for_element(SAVE)

    driver.fail_next("click")
    with pytest.raises(TransientDriverError):
        element.click(recovery=False)
    assert driver.calls["click"] == 1


def test_fatal_error_is_not_recovered(session, driver):
    driver.load(document(Node("button", id="save")))
    element = session.finder.wait_for_element(SAVE)

    driver.fail_next("get_attribute", fatal())
    with pytest.raises(FatalDriverError):
        element.get_attribute("id")
    assert driver.calls["find"] == 1


def test_element_queries(session, driver):
    driver.load(document(
        Node("input", id="save", type="submit", enabled=False),
        Node("span", id="hidden", displayed=False),
    ))
    element = session.finder.wait_for_element(SAVE)
    hidden = session.finder.wait_for_element(Locator.css("#hidden"), displayed=False)

    assert element.get_attribute("type") == "submit"
    assert element.get_attribute("missing") is None
    assert element.is_enabled() is False
    assert element.is_displayed() is True
    assert hidden.is_displayed() is False
    assert element.is_in_frame() is False
    element.scroll_into_view()
    assert driver.calls["scroll"] == 1


def test_vanished_element_is_not_displayed(session, driver):
    button = Node("button", id="save")
    driver.load(document(button))
    element = session.finder.wait_for_element(SAVE)

    button.remove()

    assert element.is_displayed(recovery=False) is False
