"""Browser session driving one simulated user of the chat client."""

import asyncio
import logging
from contextlib import asynccontextmanager
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

from playwright.async_api import ElementHandle, Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError
from playwright.async_api import async_playwright

from riot_tests.errors import ClosedSessionError, LaunchError, WaitTimeoutError
from riot_tests.logbuffer import LogBuffer
from riot_tests.logger import Logger

logger = logging.getLogger(__name__)

VIEWPORT = {"width": 1280, "height": 800}
DEFAULT_TIMEOUT = 5000


class SessionState(str, Enum):
    READY = "ready"
    CLOSING = "closing"
    CLOSED = "closed"


def format_console_message(msg) -> str:
    return f"{msg.text}\n"


async def format_finished_request(request) -> str:
    response = await request.response()
    return f"{request.resource_type} {response.status} {request.method} {request.url} \n"


def is_page_target(target) -> bool:
    """Pages carry a main frame; workers and other targets do not.

    The context "page" event only delivers pages today (workers arrive on
    "serviceworker" and the page's "worker" event); the check keeps
    wait_for_new_page from resolving with anything else if that changes.
    """
    return getattr(target, "main_frame", None) is not None


async def _abort_launch(pw, browser):
    """Release whatever a failed launch already started."""
    try:
        if browser is not None:
            await browser.close()
    except Exception as e:
        logger.warning("Could not close browser after failed launch: %s", e)
    finally:
        if pw is not None:
            await pw.stop()


class Session:
    """Owns one browser and one page for a single simulated user.

    Build it with ``Session.create`` (or ``session_scope``); the constructor
    only wires already launched handles. Console messages and finished
    requests of the page are captured into ``console_log`` and
    ``network_log`` for the whole lifetime of the session.
    """

    def __init__(
        self,
        browser,
        page: Page,
        username: str,
        riot_url: str,
        homeserver_url: str,
        playwright=None,
        max_log_entries: Optional[int] = None,
    ):
        self.browser = browser
        self.page = page
        self.playwright = playwright
        self.username = username
        self.riot_url = riot_url
        self.homeserver_url = homeserver_url
        self.console_log = LogBuffer(
            page, "console", format_console_message,
            max_entries=max_log_entries,
        )
        self.network_log = LogBuffer(
            page, "requestfinished", format_finished_request,
            is_async=True, max_entries=max_log_entries,
        )
        self.log = Logger(username)
        self.state = SessionState.READY
        self._close_task: Optional[asyncio.Task] = None

    @classmethod
    async def create(
        cls,
        username: str,
        launch_options: Optional[Dict[str, Any]],
        riot_url: str,
        homeserver_url: str,
        browser_name: str = "chromium",
        max_log_entries: Optional[int] = None,
    ) -> "Session":
        """Launch a browser, open a 1280x800 page and return the wired session.

        Args:
            username: Label used for this user's diagnostic output
            launch_options: Passed unchanged to the browser type's launch()
            riot_url: Base URL of the web client under test
            homeserver_url: Homeserver the client talks to
            browser_name: "chromium", "firefox" or "webkit"
            max_log_entries: Optional cap for each log buffer

        Raises:
            LaunchError: The browser or its page could not be started
        """
        pw = browser = None
        try:
            pw = await async_playwright().start()
            browser_type = getattr(pw, browser_name)
            browser = await browser_type.launch(**(launch_options or {}))
            page = await browser.new_page()
            await page.set_viewport_size(VIEWPORT)
        except BaseException as e:
            await _abort_launch(pw, browser)
            if not isinstance(e, Exception):
                raise
            raise LaunchError(f"Could not launch {browser_name} for {username}: {e}") from e

        logger.debug("Launched %s for %s", browser_name, username)
        return cls(
            browser, page, username, riot_url, homeserver_url,
            playwright=pw, max_log_entries=max_log_entries,
        )

    async def __aenter__(self) -> "Session":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    @property
    def closed(self) -> bool:
        return self.state is not SessionState.READY

    def _ensure_ready(self, operation: str):
        if self.closed:
            raise ClosedSessionError(operation, self.username)

    # === Logs ===
    def console_logs(self) -> List[str]:
        return self.console_log.buffer

    def network_logs(self) -> List[str]:
        return self.network_log.buffer

    # === Element properties ===
    async def get_element_property(self, handle: ElementHandle, property_name: str):
        self._ensure_ready("get_element_property")
        prop = await handle.get_property(property_name)
        return await prop.json_value()

    async def inner_text(self, handle: ElementHandle) -> str:
        return await self.get_element_property(handle, "innerText")

    async def get_outer_html(self, handle: ElementHandle) -> str:
        return await self.get_element_property(handle, "outerHTML")

    async def try_get_inner_text(self, selector: str) -> Optional[str]:
        """Inner text of the first match, or None when nothing matches."""
        field = await self.query(selector)
        if field is None:
            return None
        return await self.inner_text(field)

    async def print_elements(self, label: str, elements: List[ElementHandle]):
        html = await asyncio.gather(*(self.get_outer_html(e) for e in elements))
        self.log.log(label, *html)

    # === Interaction ===
    async def replace_input_text(self, field: ElementHandle, text: str):
        """Replace an input's value by simulating the keystrokes a user would make."""
        self._ensure_ready("replace_input_text")
        # click 3 times to select all text
        await field.click(click_count=3)
        await field.press("Backspace")
        await field.type(text)

    # === Queries ===
    async def query(self, selector: str) -> Optional[ElementHandle]:
        self._ensure_ready("query")
        return await self.page.query_selector(selector)

    async def wait_and_query(self, selector: str, timeout: int = DEFAULT_TIMEOUT) -> ElementHandle:
        """Wait until an element matching selector is visible and return it."""
        self._ensure_ready("wait_and_query")
        try:
            return await self.page.wait_for_selector(selector, state="visible", timeout=timeout)
        except PlaywrightTimeoutError as e:
            raise WaitTimeoutError("wait_and_query", timeout, selector) from e

    async def query_all(self, selector: str) -> List[ElementHandle]:
        self._ensure_ready("query_all")
        return await self.page.query_selector_all(selector)

    async def wait_and_query_all(self, selector: str, timeout: int = DEFAULT_TIMEOUT) -> List[ElementHandle]:
        """Wait for one visible match, then return every current match.

        The number of matches is not awaited; callers that need an exact
        count have to check it themselves.
        """
        await self.wait_and_query(selector, timeout)
        return await self.query_all(selector)

    # === Navigation ===
    def url(self, path: str) -> str:
        return self.riot_url + path

    async def goto(self, url: str):
        self._ensure_ready("goto")
        return await self.page.goto(url)

    async def _wait_for_event(
        self,
        emitter,
        event: str,
        operation: str,
        timeout: int,
        accept: Optional[Callable[[Any], bool]] = None,
    ):
        loop = asyncio.get_running_loop()
        result = loop.create_future()

        def on_event(payload=None):
            if result.done():
                return
            if accept is not None and not accept(payload):
                return
            result.set_result(payload)

        emitter.on(event, on_event)
        try:
            return await asyncio.wait_for(result, timeout / 1000)
        except asyncio.TimeoutError:
            raise WaitTimeoutError(operation, timeout, event) from None
        finally:
            emitter.remove_listener(event, on_event)

    async def wait_for_reload(self, timeout: int = DEFAULT_TIMEOUT):
        """Resolve on the next DOMContentLoaded of the page."""
        self._ensure_ready("wait_for_reload")
        await self._wait_for_event(self.page, "domcontentloaded", "wait_for_reload", timeout)

    async def wait_for_new_page(self, timeout: int = DEFAULT_TIMEOUT) -> Page:
        """Resolve with the next page or tab opened in this session's browser context."""
        self._ensure_ready("wait_for_new_page")
        return await self._wait_for_event(
            self.page.context, "page", "wait_for_new_page", timeout,
            accept=is_page_target,
        )

    async def delay(self, ms: int):
        await asyncio.sleep(ms / 1000)

    # === Lifecycle ===
    async def close(self):
        """Close the browser and its page.

        Calls made while closing is under way wait for it to finish; calls
        after that return at once (re-raising a failed close's error).
        """
        if self._close_task is None:
            self.state = SessionState.CLOSING
            self._close_task = asyncio.ensure_future(self._close())
        await asyncio.shield(self._close_task)

    async def _close(self):
        try:
            await self.console_log.close()
            await self.network_log.close()
            await self.browser.close()
        finally:
            if self.playwright is not None:
                await self.playwright.stop()
            self.state = SessionState.CLOSED
            logger.debug("Closed session of %s", self.username)


@asynccontextmanager
async def session_scope(
    username: str,
    launch_options: Optional[Dict[str, Any]],
    riot_url: str,
    homeserver_url: str,
    **kwargs,
):
    """Create a session that is closed on every exit path."""
    session = await Session.create(username, launch_options, riot_url, homeserver_url, **kwargs)
    try:
        yield session
    finally:
        await session.close()


async def open_sessions(
    usernames: List[str],
    launch_options: Optional[Dict[str, Any]],
    riot_url: str,
    homeserver_url: str,
    **kwargs,
) -> List[Session]:
    """Launch one session per user concurrently.

    If any launch fails, the sessions that did start are closed before the
    error is raised.
    """
    results = await asyncio.gather(
        *(Session.create(name, launch_options, riot_url, homeserver_url, **kwargs) for name in usernames),
        return_exceptions=True,
    )
    sessions = [r for r in results if isinstance(r, Session)]
    failures = [r for r in results if isinstance(r, BaseException)]
    if failures:
        await asyncio.gather(*(s.close() for s in sessions))
        raise failures[0]
    return sessions
