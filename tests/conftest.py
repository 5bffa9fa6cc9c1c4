"""Shared test fixtures."""

from __future__ import annotations

import json
import os
from collections.abc import AsyncGenerator, Awaitable, Callable

from eth_account import Account
from eth_account.messages import encode_defunct
from eth_account.signers.local import LocalAccount

# Deterministic admin wallet; settings must see it before the app is imported.
ADMIN_PRIVATE_KEY = "0x" + "11" * 32
ADMIN_ACCOUNT: LocalAccount = Account.from_key(ADMIN_PRIVATE_KEY)

os.environ["ZL_STORE_BACKEND"] = "memory"
os.environ["ZL_REDIS_URL"] = ""
os.environ["ZL_JWT_ALGORITHM"] = "HS256"
os.environ["ZL_JWT_SECRET"] = "test-secret-not-for-production-use"
os.environ["ZL_ADMIN_ADDRESSES"] = json.dumps([ADMIN_ACCOUNT.address])
os.environ["ZL_CHAIN_RPC_URL"] = ""
os.environ["ZL_LOG_FORMAT"] = "console"

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from zerolag.auth.jwt import reset_keys  # noqa: E402
from zerolag.config import get_settings  # noqa: E402
from zerolag.dependencies import reset_services, set_staking_contract  # noqa: E402
from zerolag.main import create_app  # noqa: E402
from zerolag.store import MemoryRecordStore, set_store  # noqa: E402

get_settings.cache_clear()
reset_keys()


def sign_message(account: LocalAccount, message: str) -> str:
    """personal_sign the message and return a 0x-prefixed hex signature."""
    signed = Account.sign_message(encode_defunct(text=message), private_key=account.key)
    return "0x" + bytes(signed.signature).hex()


@pytest.fixture
def sign() -> Callable[[LocalAccount, str], str]:
    return sign_message


@pytest.fixture
def wallet() -> LocalAccount:
    return Account.create()


@pytest.fixture
def other_wallet() -> LocalAccount:
    return Account.create()


@pytest.fixture
def admin_wallet() -> LocalAccount:
    return ADMIN_ACCOUNT


@pytest_asyncio.fixture
async def store() -> AsyncGenerator[MemoryRecordStore, None]:
    """Fresh in-memory record store installed as the active store."""
    memory = MemoryRecordStore()
    set_store(memory)
    reset_services()
    set_staking_contract(None)
    yield memory
    set_store(None)
    reset_services()
    set_staking_contract(None)


@pytest_asyncio.fixture
async def client(store: MemoryRecordStore) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP test client over the ASGI app (lifespan skipped, store injected)."""
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


async def _login(client: AsyncClient, account: LocalAccount) -> str:
    """Run the nonce/verify handshake and return the access token."""
    nonce = await client.post("/api/auth/nonce", json={"address": account.address})
    message = nonce.json()["nonce"]
    response = await client.post("/api/auth/verify", json={
        "address": account.address,
        "signature": sign_message(account, message),
    })
    assert response.status_code == 200, response.text
    return response.json()["accessToken"]


@pytest_asyncio.fixture
async def auth_headers(client: AsyncClient, wallet: LocalAccount) -> dict[str, str]:
    token = await _login(client, wallet)
    return {"Authorization": f"Bearer {token}"}


@pytest_asyncio.fixture
async def admin_headers(client: AsyncClient, admin_wallet: LocalAccount) -> dict[str, str]:
    token = await _login(client, admin_wallet)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def login() -> Callable[[AsyncClient, LocalAccount], Awaitable[str]]:
    return _login
