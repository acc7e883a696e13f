"""Pytest configuration and fixtures."""

import os

import pytest

# Settings are built per test; the key only has to be present
os.environ.setdefault("ANTHROPIC_API_KEY", "test-key")

from cryonexus.config import Settings, get_settings  # noqa: E402
from cryonexus.services.prompts import (  # noqa: E402
    ROUTER_SYSTEM_PROMPT,
    SYNTHESIS_SYSTEM_PROMPT,
    specialist_system_prompt,
)
from tests.factories import analyses_for, make_routing, make_synthesis  # noqa: E402
from tests.fakes import FakeNews, ScriptedLLM  # noqa: E402


@pytest.fixture(autouse=True)
def clear_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def settings(tmp_path):
    """Provide settings fixture with short timeouts and no .env file."""
    return Settings(
        _env_file=None,
        anthropic_api_key="test-key",
        agent_timeout_seconds=0.5,
        router_timeout_seconds=1.0,
        synthesis_timeout_seconds=1.0,
        country_data_path=tmp_path / "country_data.json",
        recordings_dir=tmp_path / "recordings",
    )


@pytest.fixture
def scripted_llm():
    """LLM scripted for the Suez + heat wave scenario (7/9/8/6/8, geopolitical+economic)."""
    llm = ScriptedLLM()
    llm.script(ROUTER_SYSTEM_PROMPT, structured=make_routing())
    for domain, analysis in analyses_for().items():
        llm.script(
            specialist_system_prompt(domain),
            structured=analysis,
            chunks=(f"{domain.value} ", "assessment ", "text."),
        )
    llm.script(
        SYNTHESIS_SYSTEM_PROMPT,
        structured=make_synthesis(score=42),
        chunks=("Cascading ", "failure."),
    )
    return llm


@pytest.fixture
def fake_news():
    return FakeNews()
