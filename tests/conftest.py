import asyncio
from collections import defaultdict
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from riot_tests import console
from riot_tests.plugin import set_current_plugin
from riot_tests.session import Session

RIOT_URL = "https://app.example.com"
HOMESERVER_URL = "https://hs.example.com"


class FakeEmitter:
    """Minimal stand-in for the event emitter API of Playwright objects."""

    def __init__(self):
        self._listeners = defaultdict(list)

    def on(self, event, handler):
        self._listeners[event].append(handler)

    def remove_listener(self, event, handler):
        self._listeners[event].remove(handler)

    def emit(self, event, *args):
        for handler in list(self._listeners[event]):
            handler(*args)

    def listener_count(self, event) -> int:
        return len(self._listeners[event])


class FakeJSHandle:
    def __init__(self, value):
        self.json_value = AsyncMock(return_value=value)


class FakeElement:
    """Element handle that behaves like a text input for typing tests."""

    def __init__(self, value="", **properties):
        self.value = value
        self.properties = properties
        self._selected = False

    async def click(self, click_count=1):
        self._selected = click_count >= 3

    async def press(self, key):
        if key != "Backspace":
            raise ValueError(f"unexpected key {key}")
        self.value = "" if self._selected else self.value[:-1]
        self._selected = False

    async def type(self, text):
        for char in text:
            if self._selected:
                self.value, self._selected = "", False
            self.value += char

    async def get_property(self, name):
        return FakeJSHandle(self.properties[name])


class FakeWorker:
    """A target without a main frame, as a worker would be."""

    url = "https://app.example.com/sw.js"


class FakeContext(FakeEmitter):
    pass


class FakePage(FakeEmitter):
    """Page with a fixed set of present selectors.

    wait_for_selector resolves immediately for present selectors and
    otherwise sleeps for the whole timeout before raising, like the engine.
    """

    def __init__(self):
        super().__init__()
        self.context = FakeContext()
        self.main_frame = object()
        self.elements = {}
        self.goto = AsyncMock(return_value=None)
        self.set_viewport_size = AsyncMock()

    async def query_selector(self, selector):
        matches = self.elements.get(selector, [])
        return matches[0] if matches else None

    async def query_selector_all(self, selector):
        return list(self.elements.get(selector, []))

    async def wait_for_selector(self, selector, state="visible", timeout=30000):
        if self.elements.get(selector):
            return self.elements[selector][0]
        await asyncio.sleep(timeout / 1000)
        raise PlaywrightTimeoutError(f"Timeout {timeout}ms exceeded.")


class FakeBrowser:
    def __init__(self, page=None):
        self.page = page or FakePage()
        self.new_page = AsyncMock(return_value=self.page)
        self.close = AsyncMock()


class FakeConsoleMessage:
    def __init__(self, text):
        self.text = text


class FakeResponse:
    def __init__(self, status):
        self.status = status


class FakeRequest:
    def __init__(self, url, method="GET", resource_type="xhr", status=200, delay=0.0):
        self.url = url
        self.method = method
        self.resource_type = resource_type
        self._status = status
        self._delay = delay

    async def response(self):
        await asyncio.sleep(self._delay)
        return FakeResponse(self._status) if self._status is not None else None


@pytest.fixture(autouse=True)
def plain_output():
    console.force_color(False)
    yield
    console.force_color(None)
    set_current_plugin(None)


@pytest.fixture
def page():
    return FakePage()


@pytest.fixture
def browser(page):
    return FakeBrowser(page)


@pytest_asyncio.fixture
async def session(browser, page):
    session = Session(browser, page, "alice", RIOT_URL, HOMESERVER_URL)
    yield session
    await session.close()
