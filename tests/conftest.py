"""Pytest configuration and shared fixtures."""

import pytest
import respx

from oura_mcp.config import OuraAppConfig
from oura_mcp.crypto import KEY_SIZE
from oura_mcp.lifecycle import TokenLifecycleManager
from oura_mcp.token_store import TokenStore
from tests.stubs.fake_oauth import FakeGrantService
from tests.stubs.oura_api_stub import OuraAPIStubber

BEARER_TOKEN = "test-operator-secret"
ENCRYPTION_KEY_HEX = "00112233445566778899aabbccddeeff00112233445566778899aabbccddeeff"


@pytest.fixture
def encryption_key() -> bytes:
    key = bytes.fromhex(ENCRYPTION_KEY_HEX)
    assert len(key) == KEY_SIZE
    return key


@pytest.fixture
def token_path(tmp_path):
    return tmp_path / "data" / "oura_tokens.enc"


@pytest.fixture
def app_config(token_path) -> OuraAppConfig:
    """Provide a complete Oura configuration for testing."""
    return OuraAppConfig(
        _env_file=None,
        oura_client_id="test_client_id",
        oura_client_secret="test_client_secret",
        oura_redirect_uri="http://localhost:8000/oauth/callback",
        mcp_bearer_token=BEARER_TOKEN,
        token_encryption_key=ENCRYPTION_KEY_HEX,
        token_file_path=token_path,
    )


@pytest.fixture
def store(token_path, encryption_key) -> TokenStore:
    return TokenStore(token_path, encryption_key)


@pytest.fixture
def grant_service() -> FakeGrantService:
    return FakeGrantService()


@pytest.fixture
def lifecycle(store, grant_service) -> TokenLifecycleManager:
    return TokenLifecycleManager(store, grant_service)


@pytest.fixture
def respx_mock():
    """Provide a respx mock router for the Oura API."""
    with respx.mock(
        base_url="https://api.ouraring.com/v2", assert_all_called=False
    ) as respx_mock:
        yield respx_mock


@pytest.fixture
def stub_api(respx_mock) -> OuraAPIStubber:
    """Provide an Oura API stubber."""
    return OuraAPIStubber(respx_mock)


@pytest.fixture
def token_endpoint():
    """Provide a respx route for the Oura token endpoint."""
    with respx.mock(assert_all_called=False) as mock:
        yield mock.post("https://api.ouraring.com/oauth/token")
