from contextlib import AsyncExitStack

import pytest
import pytest_asyncio

from riot_tests.config import get_settings
from riot_tests.output import write_session_logs
from riot_tests.plugin import log_artifact
from riot_tests.session import session_scope


@pytest.hookimpl(hookwrapper=True, tryfirst=True)
def pytest_runtest_makereport(item, call):
    """Keep each phase's report on the item so fixtures can see failures."""
    outcome = yield
    report = outcome.get_result()
    setattr(item, f"report_{report.when}", report)


def scenario_failed(node) -> bool:
    return any(
        getattr(getattr(node, f"report_{when}", None), "failed", False)
        for when in ("setup", "call")
    )


@pytest.fixture(scope="session")
def settings():
    return get_settings()


@pytest_asyncio.fixture
async def open_session(request, settings):
    """Factory opening sessions for any number of users.

    Every session is closed at teardown; when the scenario failed, their
    console and network logs are written to the reports directory first.
    """
    sessions = []
    async with AsyncExitStack() as stack:
        async def _open(username: str = None):
            session = await stack.enter_async_context(session_scope(
                username or settings.username,
                settings.launch_options(),
                settings.riot_url,
                settings.homeserver_url,
                browser_name=settings.browser,
                max_log_entries=settings.max_log_entries,
            ))
            sessions.append(session)
            return session

        yield _open

        if scenario_failed(request.node):
            for session in sessions:
                paths = await write_session_logs(
                    session, settings.reports_path / "sessions", request.node.name
                )
                for path in paths:
                    log_artifact(path, username=session.username)


@pytest_asyncio.fixture
async def session(open_session):
    return await open_session()
