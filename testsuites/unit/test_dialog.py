import pytest

from fake_driver import Node, document, iframe
from ui_resilience.framework.dialog import AbstractDialog, ConfirmationDialog, DialogState
from ui_resilience.framework.errors import StructuralError, WaitTimeoutError
from ui_resilience.framework.frames import IndexedFrame
from ui_resilience.framework.locators import Locator
from ui_resilience.framework.page_base import BasePage

DIALOG = Locator.css("div.dialog")
TRIGGER = Locator.css("#rename")


class RenameDialog(AbstractDialog):
    def close_button_locator(self, validate):
        return Locator.css("button.ok" if validate else "button.cancel")


def dialog_node(dialog_id=None, cancellable=True):
    root = Node("div", class_="dialog", **({"id": dialog_id} if dialog_id else {}))
    ok = Node("button", "OK", class_="ok")
    ok.on_click = lambda driver: root.remove()
    root.add(ok)
    if cancellable:
        cancel = Node("button", "Cancel", class_="cancel")
        cancel.on_click = lambda driver: root.remove()
        root.add(cancel)
    return root


def trigger_opening(container, *dialog_ids):
    trigger = Node("button", "Rename", id="rename")
    trigger.on_click = lambda driver: container.add(*[dialog_node(i) for i in dialog_ids])
    return trigger


@pytest.fixture
def page(session):
    return BasePage("https://app.example.com/files", None, session)


def test_open_dialog(page, driver):
    body = driver.load(document()).children[0]
    trigger = body.add(trigger_opening(body, "dlg-1")).children[0]
    dialog = RenameDialog(page, DIALOG)

    element = dialog.open(TRIGGER)

    assert dialog.state is DialogState.OPEN
    assert element.get_attribute("id") == "dlg-1"
    assert dialog.opening_element.locator == TRIGGER
    assert trigger.clicks == 1


def test_open_ignores_dialogs_already_displayed(page, driver):
    body = driver.load(document(dialog_node("dlg-0"))).children[0]
    body.add(trigger_opening(body, "dlg-1"))

    element = RenameDialog(page, DIALOG).open(TRIGGER)

    assert element.get_attribute("id") == "dlg-1"


def test_open_ignores_dialogs_without_id_already_displayed(page, driver, clock):
    driver.fresh_handles = True
    existing = dialog_node()
    body = driver.load(document(existing)).children[0]
    added = dialog_node()
    trigger = Node("button", id="rename")
    trigger.on_click = lambda d: body.add(added)
    body.add(trigger)

    element = RenameDialog(page, DIALOG).open(TRIGGER)

    assert element.native.node is added
    assert existing.attached
    assert RenameDialog.DUPLICATES_PAUSE not in clock.sleeps


def test_duplicated_dialogs_keep_the_last_one(page, driver, clock):
    body = driver.load(document()).children[0]
    body.add(trigger_opening(body, "dlg-1", "dlg-2"))
    dialog = RenameDialog(page, DIALOG)

    element = dialog.open(TRIGGER)

    assert element.get_attribute("id") == "dlg-2"
    assert [n.attrs["id"] for n in body.children if n.tag == "div"] == ["dlg-2"]
    assert RenameDialog.DUPLICATES_PAUSE in clock.sleeps
    assert dialog.state is DialogState.OPEN


def test_open_clicks_again_until_dialog_shows_up(page, driver):
    body = driver.load(document()).children[0]
    trigger = Node("button", id="rename")
    trigger.on_click = lambda d: trigger.clicks == 3 and body.add(dialog_node("dlg-1"))
    body.add(trigger)

    element = RenameDialog(page, DIALOG).open(TRIGGER)

    assert element.get_attribute("id") == "dlg-1"
    assert trigger.clicks == 3


def test_open_gives_up_after_retries(page, driver, session):
    trigger = Node("button", id="rename")
    driver.load(document(trigger))
    dialog = RenameDialog(page, DIALOG)

    with pytest.raises(WaitTimeoutError, match="Failing to open the dialog"):
        dialog.open(TRIGGER)

    assert trigger.clicks == session.max_recovery_attempts + 1
    assert dialog.state is DialogState.CLOSED


def test_failed_opening_restores_frame(page, driver, session):
    driver.load(document(iframe(Node("button", id="rename")), iframe(name="popups")))
    session.select_frame(IndexedFrame(0))
    dialog = RenameDialog(page, DIALOG, frame=IndexedFrame(1))

    with pytest.raises(WaitTimeoutError, match="Failing to open the dialog"):
        dialog.open(TRIGGER)

    assert dialog.state is DialogState.CLOSED
    assert session.current_frame == IndexedFrame(0)
    assert driver.current is driver.body.children[0].content


def test_disabled_trigger_leaves_dialog_closed(page, driver):
    trigger = Node("button", id="rename", enabled=False)
    driver.load(document(trigger))
    dialog = RenameDialog(page, DIALOG)

    with pytest.raises(WaitTimeoutError):
        dialog.open(TRIGGER)

    assert dialog.state is DialogState.CLOSED
    assert trigger.clicks == 0


def test_close_dialog(page, driver):
    body = driver.load(document()).children[0]
    body.add(trigger_opening(body, "dlg-1"))
    dialog = RenameDialog(page, DIALOG)
    dialog.open(TRIGGER)
    node = body.children[-1]

    dialog.close()

    assert not node.attached
    assert dialog.state is DialogState.CLOSED
    assert dialog.element is None


def test_close_clicks_again_on_browsers_ignoring_first_click(page, driver, clock):
    driver.ignores_first_close_click = True
    root = Node("div", class_="dialog", id="dlg-1")
    ok = Node("button", "OK", class_="ok")
    ok.on_click = lambda d: ok.clicks > 1 and root.remove()
    driver.load(document(root.add(ok)))
    dialog = RenameDialog(page, DIALOG)
    dialog.opened()

    dialog.close()

    assert ok.clicks == 2
    assert not root.attached
    assert clock.elapsed >= dialog.close_timeout


def test_close_fails_when_dialog_stays(page, driver):
    root = Node("div", class_="dialog", id="dlg-1").add(Node("button", "OK", class_="ok"))
    driver.load(document(root))
    dialog = RenameDialog(page, DIALOG)
    dialog.opened()

    with pytest.raises(WaitTimeoutError, match="still true"):
        dialog.close()

    assert dialog.state is DialogState.OPEN
    assert dialog.element is not None


def test_failed_closing_restores_frame(page, driver, session):
    driver.load(document(iframe(), iframe(name="popups")))
    content = driver.body.children[0].content.children[0]
    popups = driver.body.children[1].content.children[0]
    trigger = Node("button", id="rename")
    trigger.on_click = lambda d: popups.add(
        Node("div", class_="dialog", id="dlg-1").add(Node("button", "OK", class_="ok"))
    )
    content.add(trigger)

    session.select_frame(IndexedFrame(0))
    dialog = RenameDialog(page, DIALOG, frame=IndexedFrame(1))
    dialog.open(TRIGGER)
    assert session.current_frame == IndexedFrame(1)

    with pytest.raises(WaitTimeoutError):
        dialog.close()

    assert dialog.state is DialogState.OPEN
    assert session.current_frame == IndexedFrame(0)
    assert driver.current is driver.body.children[0].content


def test_close_restores_frame_of_opening(page, driver, session):
    driver.load(document(iframe(), iframe(name="popups")))
    content = driver.body.children[0].content.children[0]
    popups = driver.body.children[1].content.children[0]
    content.add(trigger_opening(popups, "dlg-1"))

    session.select_frame(IndexedFrame(0))
    dialog = RenameDialog(page, DIALOG, frame=IndexedFrame(1))
    element = dialog.open(TRIGGER)
    assert element.frame == IndexedFrame(1)
    assert dialog.open_frame == IndexedFrame(0)

    dialog.close()

    assert session.current_frame == IndexedFrame(0)
    assert driver.current is driver.body.children[0].content


def test_cancel_all(page, driver):
    driver.load(document(
        dialog_node("dlg-1"),
        dialog_node("dlg-2", cancellable=False),
        dialog_node("dlg-3"),
    ))
    dialog = RenameDialog(page, DIALOG)

    assert dialog.cancel_all() == 2
    assert [n.attrs["id"] for n in driver.body.children] == ["dlg-2"]
    assert dialog.state is DialogState.CLOSED


def test_alert_during_opening_is_purged(page, driver):
    body = driver.load(document()).children[0]
    trigger = Node("button", id="rename")

    def open_with_alert(d):
        body.add(dialog_node("dlg-1"))
        d.alerts.append("Autosave done")

    trigger.on_click = open_with_alert
    body.add(trigger)

    element = RenameDialog(page, DIALOG).open(TRIGGER)

    assert driver.accepted == ["Autosave done"]
    assert element.get_attribute("id") == "dlg-1"


def test_dialog_closed_by_alert_is_opened_again(page, driver):
    body = driver.load(document()).children[0]
    trigger = Node("button", id="rename")

    def open_dialog(d):
        body.add(dialog_node(f"dlg-{trigger.clicks}"))
        if trigger.clicks == 1:
            d.alerts.append("Session refreshed")

    trigger.on_click = open_dialog
    body.add(trigger)

    accept = driver.accept_alert

    def accept_and_close():
        accept()
        for node in [n for n in body.children if n.tag == "div"]:
            node.remove()

    driver.accept_alert = accept_and_close

    element = RenameDialog(page, DIALOG).open(TRIGGER)

    assert trigger.clicks == 2
    assert element.get_attribute("id") == "dlg-2"


def test_close_if_opened_before_timeout(page, driver, clock):
    body = driver.load(document()).children[0]
    dialog = RenameDialog(page, DIALOG)

    assert dialog.close_if_opened_before_timeout(1) is False

    clock.at(clock.elapsed + 1, lambda: body.add(dialog_node("dlg-1")))
    assert dialog.close_if_opened_before_timeout(3) is True
    assert body.children == []


def test_closed_before_timeout(page, driver, clock):
    root = dialog_node("dlg-1")
    driver.load(document(root))
    clock.at(3, root.remove)
    dialog = RenameDialog(page, DIALOG)

    dialog.closed_before_timeout(5)

    assert not root.attached
    assert dialog.state is DialogState.CLOSED


def test_confirmation_dialog_buttons_by_label(page, driver):
    root = Node("div", class_="confirm")
    yes = Node("button", "  Yes,\n delete ")
    no = Node("button", "Keep")
    yes.on_click = no.on_click = lambda d: root.remove()
    driver.load(document(root.add(yes, no)))

    confirm = ConfirmationDialog(page, Locator.css("div.confirm"), ok_text="yes, delete", cancel_text="Keep")
    confirm.opened()
    confirm.close()

    assert yes.clicks == 1
    assert no.clicks == 0


def test_confirmation_dialog_unknown_label(page, driver):
    driver.load(document(Node("div", class_="confirm").add(Node("button", "OK"))))
    confirm = ConfirmationDialog(page, Locator.css("div.confirm"))
    confirm.opened()

    with pytest.raises(StructuralError, match="No button 'Cancel'"):
        confirm.cancel()


def test_opened_without_dialog(page, driver):
    driver.load(document())

    with pytest.raises(WaitTimeoutError, match="Cannot find any dialog"):
        RenameDialog(page, DIALOG).opened()
