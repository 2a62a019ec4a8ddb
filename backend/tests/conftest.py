from datetime import datetime, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.orm import sessionmaker

from powerswitch.database import create_tables, make_engine
from powerswitch.services import live_refresh
from powerswitch.services.telegram_client import DeliveryResult
from powerswitch.store import RecordStore

T0 = datetime(2026, 3, 1, 10, 0, tzinfo=timezone.utc)


class FakeNotifier:
    """Stands in for TelegramNotifier; records what would have been sent."""

    def __init__(self, ok: bool = True, configured: bool = True, chat_id: str = "42"):
        self.ok = ok
        self.configured = configured
        self.chat_id = chat_id
        self.sent: list[dict] = []
        self._next_id = 100

    async def deliver(self, text, parse_mode="HTML", chat_id=None):
        self.sent.append({"text": text, "parse_mode": parse_mode, "chat_id": chat_id})
        if not self.ok:
            return DeliveryResult(ok=False)
        self._next_id += 1
        return DeliveryResult(ok=True, message_id=str(self._next_id))

    async def send_message(self, text, parse_mode="HTML", chat_id=None):
        return (await self.deliver(text, parse_mode, chat_id)).ok


@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    create_tables(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def store(engine):
    return RecordStore(sessionmaker(bind=engine, autocommit=False, autoflush=False))


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture(autouse=True)
def _reset_live_refresh():
    yield
    live_refresh.reset()


@pytest.fixture
async def client(store, notifier):
    from powerswitch.main import app
    from powerswitch.services.telegram_client import get_notifier
    from powerswitch.store import get_optional_store, get_store

    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_optional_store] = lambda: store
    app.dependency_overrides[get_notifier] = lambda: notifier
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c
    app.dependency_overrides.clear()
