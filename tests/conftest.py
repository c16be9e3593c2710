"""pytest fixtures for NEDApay backend tests.

Provides:
- test_environment: Autouse fixture keeping settings in test mode
- webhook_secret: Shared secret used to sign test payloads
- db_engine: Function-scoped in-memory SQLite engine with ledger tables
- uow_factory: Function-scoped UnitOfWork factory
- ledger: LedgerService bound to the test database
- sign: Reference HMAC signer for building webhook signatures
- recording_handlers: Dispatch handlers that record which branch ran
"""

import hashlib
import hmac
import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ["APP_ENV"] = "test"

from nedapay.core.database import create_session_factory, init_db  # noqa: E402
from nedapay.services.blockradar.events import WebhookEnvelope  # noqa: E402
from nedapay.services.ledger import LedgerService  # noqa: E402
from nedapay.uow import create_uow_factory  # noqa: E402


def _hmac_hex(body: bytes, secret: str) -> str:
    return hmac.new(key=secret.encode("utf-8"), msg=body, digestmod=hashlib.sha256).hexdigest()


@pytest.fixture(autouse=True)
def test_environment(monkeypatch):
    """Keep every test in the test environment with no ambient secret."""
    monkeypatch.setenv("APP_ENV", "test")
    monkeypatch.delenv("BLOCKRADAR_WEBHOOK_SECRET", raising=False)


@pytest.fixture
def sign():
    """Hex HMAC-SHA256 signer computed independently of the code under test."""
    return _hmac_hex


@pytest.fixture
def webhook_secret() -> str:
    return "s3cret"


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create in-memory database engine with all ledger tables.

    StaticPool keeps a single connection so every session sees the same database.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        echo=False,
    )
    await init_db(engine)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def uow_factory(db_engine: AsyncEngine):
    """Provide function-scoped UnitOfWork factory."""
    return create_uow_factory(create_session_factory(db_engine))


@pytest_asyncio.fixture
async def ledger(uow_factory) -> LedgerService:
    return LedgerService(uow_factory)


class RecordingHandlers:
    """Handler set that records which branch ran and with what envelope."""

    def __init__(self, fail_on: str | None = None):
        self.calls: list[tuple[str, WebhookEnvelope]] = []
        self.fail_on = fail_on

    async def _record(self, name: str, envelope: WebhookEnvelope):
        self.calls.append((name, envelope))
        if name == self.fail_on:
            raise RuntimeError(f"{name} exploded")
        return {"handled_by": name}

    async def on_deposit_pending(self, envelope):
        return await self._record("on_deposit_pending", envelope)

    async def on_deposit_confirmed(self, envelope):
        return await self._record("on_deposit_confirmed", envelope)

    async def on_withdrawal_pending(self, envelope):
        return await self._record("on_withdrawal_pending", envelope)

    async def on_withdrawal_confirmed(self, envelope):
        return await self._record("on_withdrawal_confirmed", envelope)

    async def on_withdrawal_failed(self, envelope):
        return await self._record("on_withdrawal_failed", envelope)

    async def on_address_created(self, envelope):
        return await self._record("on_address_created", envelope)

    async def on_unknown(self, envelope):
        return await self._record("on_unknown", envelope)


@pytest.fixture
def recording_handlers():
    """Factory for RecordingHandlers: ``recording_handlers(fail_on="on_unknown")``."""
    return RecordingHandlers
