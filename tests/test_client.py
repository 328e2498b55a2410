import pytest

from goto_client.client import GotoClient, check_health
from goto_client.domain.models.auth import AuthContext
from goto_client.domain.models.errors import ConfigError, ServerError
from goto_client.infrastructure.config.settings import reload_settings

from conftest import FakeTransport, json_response


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch, tmp_path):
    # Keep a developer's .env or shell exports out of the settings under test
    monkeypatch.chdir(tmp_path)
    for name in ("GOTO_API_KEY", "GOTO_TENANT_ID", "GOTO_BASE_URL", "GOTO_MAX_ATTEMPTS",
                 "GOTO_RETRY_BASE_DELAY", "GOTO_STREAM_TIMEOUT_S", "LOG_LEVEL"):
        monkeypatch.delenv(name, raising=False)
    yield


@pytest.mark.parametrize("api_key,tenant_id", [("", "t"), ("k", ""), ("  ", "t")])
def test_auth_context_requires_both_fields(api_key, tenant_id):
    with pytest.raises(ConfigError):
        AuthContext(api_key=api_key, tenant_id=tenant_id)


def test_auth_context_headers_and_masked_repr():
    ctx = AuthContext(api_key="secret-key", tenant_id="tenant-a")
    assert ctx.headers() == {"x-api-key": "secret-key", "x-tenant-id": "tenant-a"}
    assert "secret-key" not in repr(ctx)


def test_resource_clients_share_one_auth_context(auth):
    client = GotoClient(auth, transport=FakeTransport())
    assert client.catalog._auth is auth
    assert client.discovery._auth is auth
    assert client.chat._auth is auth


def test_health_is_sent_without_credentials(auth):
    transport = FakeTransport(json_response(200, {"status": "ok"}))
    client = GotoClient(auth, transport=transport)
    assert client.is_available()
    call = transport.calls[0]
    assert call["path"] == "/health"
    assert "x-api-key" not in call["headers"]


def test_check_health_rejects_unexpected_payload():
    transport = FakeTransport(json_response(200, {"name": "Goto Demo API"}))
    with pytest.raises(ServerError):
        check_health(transport)


def test_api_info(auth):
    transport = FakeTransport(json_response(200, {"name": "Goto Demo API"}))
    assert GotoClient(auth, transport=transport).api_info() == {"name": "Goto Demo API"}
    assert transport.calls[0]["path"] == "/api/"


def test_client_requires_base_url_or_transport(auth):
    with pytest.raises(ConfigError):
        GotoClient(auth)


def test_from_settings_reads_environment(monkeypatch):
    monkeypatch.setenv("GOTO_API_KEY", "env-key")
    monkeypatch.setenv("GOTO_TENANT_ID", "env-tenant")
    monkeypatch.setenv("GOTO_BASE_URL", "https://api.example.com/")
    monkeypatch.setenv("GOTO_MAX_ATTEMPTS", "5")
    monkeypatch.setenv("GOTO_STREAM_TIMEOUT_S", "300")
    settings = reload_settings()

    assert settings.api.base_url == "https://api.example.com"
    client = GotoClient.from_settings(settings, transport=FakeTransport())
    assert client.auth.api_key == "env-key"
    assert client.auth.tenant_id == "env-tenant"
    assert client._retry.config.max_attempts == 5
    assert client.chat._stream_timeout == 300.0


def test_from_settings_fails_fast_without_credentials():
    settings = reload_settings()
    assert settings.validate_required_settings() == ["GOTO_API_KEY", "GOTO_TENANT_ID"]
    with pytest.raises(ConfigError):
        GotoClient.from_settings(settings, transport=FakeTransport())


def test_settings_to_dict_masks_api_key(monkeypatch):
    monkeypatch.setenv("GOTO_API_KEY", "very-secret")
    monkeypatch.setenv("LOG_LEVEL", "verbose")
    settings = reload_settings()
    data = settings.to_dict()
    assert data["api"]["api_key"] == "***"
    assert data["log_level"] == "INFO"
