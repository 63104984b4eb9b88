import pytest

from fake_driver import Node, document
from ui_resilience.framework.errors import StructuralError, WaitTimeoutError
from ui_resilience.framework.locators import Locator
from ui_resilience.framework.page_base import BasePage
from ui_resilience.framework.topology import LoginOperation, StaticTopology, User

HOME = "https://app.example.com/home"
SETTINGS = "https://app.example.com/settings"

ALICE = User("alice", "Alice")
BOB = User("bob", "Bob")


class HomePage(BasePage):
    pass


class SettingsPage(BasePage):
    READY_LOCATOR = Locator.by_test_id("settings-form")


class RecordingLogin(LoginOperation):
    performed = []

    def perform_login(self):
        RecordingLogin.performed.append((self.page.location, self.identity))


@pytest.fixture
def topology():
    RecordingLogin.performed = []
    return StaticTopology(login_operation=RecordingLogin)


@pytest.fixture
def registry(registry):
    registry.register("home")(HomePage)
    registry.register("settings", SettingsPage)
    return registry


@pytest.fixture
def cache(session, driver):
    driver.pages[HOME] = lambda: document(Node("h1", "Home"))
    driver.pages[SETTINGS] = lambda: document(Node("form", data_testid="settings-form"))
    return session.page_cache


def test_register_as_decorator_and_class_tag():
    from ui_resilience.framework.page_registry import PageTypeRegistry

    registry = PageTypeRegistry()

    @registry.register()
    class AboutPage(BasePage):
        pass

    assert AboutPage in registry
    assert registry.resolve(AboutPage) is AboutPage
    # unregistered page classes are their own factory
    assert registry.resolve(HomePage) is HomePage


def test_unknown_page_type(registry):
    with pytest.raises(StructuralError, match="Unknown page type 'missing'"):
        registry.resolve("missing")


def test_duplicate_registration(registry):
    registry.register("home", HomePage)

    with pytest.raises(StructuralError, match="already registered"):
        registry.register("home", SettingsPage)


def test_factory_must_build_a_page(registry, session):
    registry.register("broken", lambda *args: object())

    with pytest.raises(StructuralError, match="returned object"):
        registry.create("broken", HOME, None, session)


def test_get_or_create_returns_same_instance(cache):
    first = cache.get_or_create(HOME, ALICE, "home")
    second = cache.get_or_create(HOME, ALICE, "home")

    assert first is second
    assert isinstance(first, HomePage)
    assert first.page_type == "home"
    assert first.handle == "main-window"
    assert len(cache) == 1


def test_new_page_has_pending_login(cache):
    page = cache.get_or_create(HOME, ALICE, "home")

    assert page.pending_login
    assert RecordingLogin.performed == []


def test_pending_login_without_login_operation(cache, session):
    session.topology = StaticTopology()
    page = cache.get_or_create(HOME, ALICE, "home")

    assert page.pending_login
    assert page.login_operation is None

    page.load()

    assert not page.pending_login
    assert session.topology.logged_identity(HOME) == ALICE


def test_anonymous_page_needs_no_login(cache):
    page = cache.get_or_create(HOME, None, "home")

    assert not page.pending_login


def test_open_page_navigates_and_logs_in(cache, driver, topology):
    page = cache.open_page(HOME, ALICE, "home")

    assert driver.navigations == [HOME]
    assert RecordingLogin.performed == [(HOME, ALICE)]
    assert not page.pending_login
    assert topology.logged_identity(HOME) == ALICE


def test_identity_switch_reuses_page_with_one_login(cache, topology):
    page = cache.open_page(HOME, ALICE, "home")
    logouts = []
    page.logout_action = lambda: logouts.append(page.identity)

    switched = cache.get_or_create(HOME, BOB, "home")
    again = cache.get_or_create(HOME, BOB, "home")

    assert switched is page is again
    assert page.identity == BOB
    assert logouts == [ALICE]
    assert RecordingLogin.performed == [(HOME, ALICE), (HOME, BOB)]
    assert topology.logged_identity(HOME) == BOB
    assert len(cache) == 1


def test_access_order(cache):
    a = cache.get_or_create(HOME, ALICE, "home")
    b = cache.get_or_create(SETTINGS, ALICE, "settings")
    assert cache.pages == [a, b]
    assert cache.current is b

    c = cache.get_or_create(HOME, BOB, "home")

    assert c is a
    assert cache.pages == [b, c]
    assert cache.current is c


def test_cache_page_replaces_same_key(cache, session):
    a = cache.get_or_create(HOME, ALICE, "home")
    b = cache.get_or_create(SETTINGS, ALICE, "settings")
    c = HomePage(HOME, ALICE, session)

    cache.cache_page(c)

    assert cache.pages == [b, c]
    assert a not in cache.pages
    assert c.handle == "main-window"


def test_cached_page_type_mismatch(cache):
    cache.get_or_create(HOME, ALICE, "home")

    with pytest.raises(StructuralError, match="not a page of type 'settings'"):
        cache.get_or_create(HOME, ALICE, "settings")


def test_data_replaced_on_access(cache):
    page = cache.get_or_create(HOME, ALICE, "home", data={"tab": "news"})
    assert page.data == {"tab": "news"}

    cache.get_or_create(HOME, ALICE, "home", data={"tab": "sport"})
    assert page.data == {"tab": "sport"}

    cache.get_or_create(HOME, ALICE, "home")
    assert page.data == {}


def test_remove_and_clear(cache):
    home = cache.get_or_create(HOME, ALICE, "home")
    settings = cache.get_or_create(SETTINGS, ALICE, "settings")

    cache.remove(home)
    assert cache.pages == [settings]
    assert cache.cached_page(HOME, ALICE) is None

    cache.clear()
    assert cache.current is None


def test_ready_locator_is_awaited(cache, driver):
    page = cache.open_page(SETTINGS, None, "settings")
    assert driver.url == SETTINGS

    driver.pages[SETTINGS] = lambda: document(Node("form"))
    with pytest.raises(WaitTimeoutError):
        page.load()


def test_click_link_pauses_around_click(cache, driver, clock):
    driver.pages[HOME] = lambda: document(Node("a", "Settings", id="settings"))
    page = cache.open_page(HOME, None, "home")

    link = page.click_link(Locator.css("#settings"))

    assert driver.body.children[0].clicks == 1
    assert clock.sleeps[-2:] == [0.5, 0.5]
    assert link.locator == Locator.css("#settings")


def test_page_timeout_budget(cache, clock):
    page = cache.get_or_create(HOME, ALICE, "home")

    page.start_timeout(5, "Home page never settled")
    clock.sleep(3)
    page.test_timeout()
    clock.sleep(3)

    with pytest.raises(WaitTimeoutError, match="never settled"):
        page.test_timeout()
    page.reset_timeout()
