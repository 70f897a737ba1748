"""
Integration test fixtures. Overrides the upstream model and settings on the app.
"""
import pytest


@pytest.fixture
def test_settings():
    from api.config import Settings
    return Settings(
        _env_file=None,
        openai_api_key="test-key",
        model_chat="gpt-4o",
        token_ceiling_free=1500,
        token_ceiling_pro=6000,
        history_max_turns=6,
        log_to_console=False,
    )


@pytest.fixture
def usage_tracker(test_settings):
    from api.utils.usage_tracker import UsageTracker
    return UsageTracker(test_settings.model_pricing())


@pytest.fixture
def api_client(fake_llm, test_settings, usage_tracker):
    """FastAPI TestClient with a fake upstream model and fixed settings."""
    from fastapi.testclient import TestClient
    from api.api import app
    from api.config import get_settings
    from api.utils.deps import get_chat_model, get_usage_tracker, get_vin_model
    app.dependency_overrides[get_chat_model] = lambda: fake_llm
    app.dependency_overrides[get_vin_model] = lambda: fake_llm
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_usage_tracker] = lambda: usage_tracker
    with TestClient(app) as client:
        yield client
    app.dependency_overrides.clear()
