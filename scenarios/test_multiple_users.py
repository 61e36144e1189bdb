"""Several simulated users driving their own browsers at the same time."""

import asyncio

import pytest

from riot_tests.step import step

APP_ROOT = "#matrixchat"
BOOT_TIMEOUT = 20000


@pytest.mark.multiuser
@pytest.mark.asyncio
async def test_two_users_boot_independently(open_session):
    alice = await open_session("alice")
    bob = await open_session("bob")
    assert alice.browser is not bob.browser

    async def boot(session):
        with step("Open the web client", log=session.log):
            await session.goto(session.url("/"))
            await session.wait_and_query(APP_ROOT, BOOT_TIMEOUT)

    await asyncio.gather(boot(alice), boot(bob))

    with step("Verify each user captured their own network log"):
        await asyncio.gather(alice.network_log.drain(), bob.network_log.drain())
        assert alice.network_logs() is not bob.network_logs()
        assert alice.network_logs() and bob.network_logs()
