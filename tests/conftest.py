import os

import pytest
import pytest_asyncio

# Keep reconnect loops from sleeping in tests
os.environ.setdefault("RECONNECT_DELAY_SECONDS", "0")

from mechbot.api.twitch import TwitchUser  # noqa: E402
from mechbot.commands.registry import CommandRegistry  # noqa: E402
from mechbot.logging_config import error_aggregator  # noqa: E402
from mechbot.storage.memory import MemoryStore  # noqa: E402
from tests.fixtures.fakes import FakeChat, FakeTwitchAPI, TransportFactory  # noqa: E402


@pytest.fixture(autouse=True)
def _reset_error_aggregator():
    """Error counts from one test must not trip rate alerts in the next."""
    error_aggregator.reset()
    yield
    error_aggregator.reset()


@pytest_asyncio.fixture
async def store():
    s = MemoryStore()
    await s.open()
    yield s
    await s.close()


@pytest.fixture
def api():
    return FakeTwitchAPI(
        users=[
            TwitchUser(id=10, login="chan", display_name="Chan"),
            TwitchUser(id=20, login="foo", display_name="Foo"),
            TwitchUser(id=30, login="bar", display_name="Bar"),
            TwitchUser(id=40, login="other", display_name="Other"),
        ]
    )


@pytest.fixture
def chat():
    return FakeChat()


@pytest.fixture
def transports():
    return TransportFactory()


@pytest.fixture
def registry(store, api):
    return CommandRegistry(store, store, api)
