import pytest

from leadboard.config import Settings, load_settings
from leadboard.core.exceptions import ConfigurationError


def test_missing_backend_variables_fail_fast(monkeypatch):
    monkeypatch.delenv('SUPABASE_URL', raising=False)
    monkeypatch.delenv('SUPABASE_ANON_KEY', raising=False)

    with pytest.raises(ConfigurationError) as excinfo:
        load_settings()

    assert 'SUPABASE_ANON_KEY' in str(excinfo.value)
    assert 'SUPABASE_URL' in str(excinfo.value)


def test_blank_anon_key_counts_as_missing(monkeypatch):
    monkeypatch.setenv('SUPABASE_ANON_KEY', '   ')

    with pytest.raises(ConfigurationError) as excinfo:
        load_settings()

    assert 'SUPABASE_ANON_KEY' in str(excinfo.value)


def test_realtime_url_derived_from_project_url():
    settings = Settings(SUPABASE_URL='https://abc.supabase.co/', SUPABASE_ANON_KEY='k')

    assert settings.base_url == 'https://abc.supabase.co'
    assert settings.realtime_url == 'wss://abc.supabase.co/realtime/v1/websocket'


def test_local_project_uses_plain_websocket():
    settings = Settings(SUPABASE_URL='http://localhost:54321', SUPABASE_ANON_KEY='k')

    assert settings.realtime_url == 'ws://localhost:54321/realtime/v1/websocket'


def test_prefix_and_cors_normalisation():
    settings = Settings(
        SUPABASE_URL='https://abc.supabase.co',
        SUPABASE_ANON_KEY='k',
        API_V1_PREFIX='/api/v2/',
        CORS_ORIGINS='http://a.test, http://b.test',
    )

    assert settings.api_v1_prefix == '/api/v2'
    assert settings.cors_origins == ['http://a.test', 'http://b.test']
    assert settings.sync_strategy == 'refetch'
    assert settings.realtime_events_per_second == 10


def test_invalid_database_url_rejected():
    with pytest.raises(ValueError):
        Settings(SUPABASE_URL='https://abc.supabase.co', SUPABASE_ANON_KEY='k', DATABASE_URL='mysql://x')
