import os
import tempfile

import pytest
from fastapi.testclient import TestClient

# Set test environment variables before importing app
os.environ["APP_ENV"] = "dev"
os.environ.setdefault("DATA_DIR", tempfile.mkdtemp(prefix="figurine-bot-tests-"))
os.environ.setdefault("CHAT_DRY_RUN", "true")
os.environ.setdefault("PAYMENT_WEBHOOK_SECRET", "test_payment_secret")
os.environ.setdefault("TYPING_DELAY_MIN_MS", "0")
os.environ.setdefault("TYPING_DELAY_MAX_MS", "0")
os.environ.setdefault("PREVIEW_STEP_DELAY_MS", "0")
# No real credentials in tests: OpenAI/Shopify/Z-API stay disabled unless a test injects fakes
for _key in ("OPENAI_API_KEY", "SHOPIFY_DOMAIN", "SHOPIFY_STOREFRONT_TOKEN", "ZAPI_INSTANCE", "ZAPI_TOKEN"):
    os.environ.pop(_key, None)

from figurine_bot.core.config import Settings  # noqa: E402
from figurine_bot.core.runtime import build_runtime  # noqa: E402
from figurine_bot.main import app  # noqa: E402
from tests.helpers.fakes import CapturingGateway, FakeCatalog, FakeImageGenerator  # noqa: E402

TEST_PAYMENT_SECRET = "test_payment_secret"


@pytest.fixture
def test_settings(tmp_path):
    """Settings with a per-test data dir and no pacing delays."""
    return Settings(
        data_dir=str(tmp_path),
        chat_dry_run=True,
        payment_webhook_secret=TEST_PAYMENT_SECRET,
        typing_delay_min_ms=0,
        typing_delay_max_ms=0,
        preview_step_delay_ms=0,
        preview_checkout_url="https://pay.example.com/preview",
        appmax_link_16="https://checkout.example.com/16",
        appmax_link_21=None,
        admin_phones="5511900000001",
    )


@pytest.fixture
def gateway():
    return CapturingGateway()


@pytest.fixture
def image_generator():
    return FakeImageGenerator()


@pytest.fixture
def catalog():
    return FakeCatalog()


@pytest.fixture
def runtime(test_settings, gateway, image_generator, catalog):
    return build_runtime(
        test_settings,
        gateway=gateway,
        image_generator=image_generator,
        catalog=catalog,
    )


@pytest.fixture
def client(runtime):
    """Test client bound to the test runtime (startup keeps an installed runtime)."""
    app.state.runtime = runtime
    with TestClient(app) as test_client:
        yield test_client
    app.state.runtime = None
