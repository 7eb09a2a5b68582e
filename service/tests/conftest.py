"""
Shared fakes for the bridge tests.

FakeTelegram records outbound sends instead of calling the Bot API.
FakeRunner stands in for the process runner and records how many
worker runs overlap.
"""

import asyncio

import pytest

from chatbridge.config import Settings, get_settings
from chatbridge.services.container import build_services
from chatbridge.services.process_runner import RunSuccess
from chatbridge.services.product_lookup import parse_product_lookup


class FakeTelegram:
    def __init__(self):
        self.texts: list[tuple[int, str, str | None]] = []
        self.photos: list[tuple[int, str, str, str | None]] = []

    async def send_text(self, chat_id, text, token=None):
        self.texts.append((chat_id, text, token))
        await asyncio.sleep(0)
        return True

    async def send_photo(self, chat_id, image_url, caption, token=None):
        self.photos.append((chat_id, image_url, caption, token))
        await asyncio.sleep(0)
        return True

    async def send_product_details(self, chat_id, json_output, token=None, is_group=False):
        product = parse_product_lookup(json_output, is_group)
        if product.image_url:
            return await self.send_photo(chat_id, product.image_url, product.message, token)
        return await self.send_text(chat_id, product.message, token)

    def messages_for(self, chat_id):
        return [text for cid, text, _ in self.texts if cid == chat_id]


class FakeRunner:
    def __init__(self, results=None, default=None):
        self.calls: list[tuple[str, tuple[str, ...]]] = []
        self.results = list(results or [])
        self.default = default or RunSuccess(stdout="ok\n")
        self.active = 0
        self.max_active = 0

    async def __call__(self, program, args):
        self.calls.append((program, tuple(args)))
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            return self.results.pop(0) if self.results else self.default
        finally:
            self.active -= 1


TEST_ENV = {
    "TELEGRAM_TOKEN_SEPTIMODIABOUTIQUE_BOT": "boutique-token",
    "TELEGRAM_TOKEN_GASTOS_BOT": "gastos-token",
}


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        telegram_token="default-token",
        python_bin="/opt/venv/bin/python",
        expense_script="/opt/workers/expense.py",
        pagomovil_script="/opt/workers/pagomovil.py",
        node_bin="/usr/bin/node",
        report_script="/opt/workers/report.js",
        product_lookup_script="/opt/workers/product_lookup.js",
        pagomovil_accounts=["wuilliam", "gilza"],
    )


@pytest.fixture
def telegram():
    return FakeTelegram()


@pytest.fixture
def runner():
    return FakeRunner()


@pytest.fixture
def make_services(settings, telegram, runner):
    def _make(env=None):
        return build_services(
            settings=settings,
            runner=runner,
            telegram=telegram,
            environ=TEST_ENV if env is None else env,
        )
    return _make
