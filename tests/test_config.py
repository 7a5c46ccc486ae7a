"""Settings from the environment and chat model construction."""

import pytest

from infrastructure.config import Settings
from infrastructure.llm.llm_builder import build_llm


def test_settings_from_env(monkeypatch, tmp_path):
    monkeypatch.setenv("LLM_PROVIDER", " Groq ")
    monkeypatch.setenv("DB_PATH", str(tmp_path / "shop.db"))
    monkeypatch.setenv("MAX_HISTORY_MESSAGES", "20")
    monkeypatch.setenv("STREAM_IDLE_TIMEOUT", "0")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = Settings.from_env(project_root=tmp_path)

    assert settings.llm_provider == "groq"
    assert settings.active_llm_model == settings.llm_model_groq
    assert settings.db_path == str(tmp_path / "shop.db")
    assert settings.max_history_messages == 20
    assert settings.stream_idle_timeout == 0
    assert settings.log_level == "DEBUG"


def test_unknown_provider_is_rejected():
    with pytest.raises(ValueError, match="Unsupported LLM_PROVIDER"):
        build_llm(provider="bard", model="x")


@pytest.mark.parametrize("provider", ["openai", "groq"])
def test_hosted_providers_need_a_key(provider):
    with pytest.raises(ValueError, match="API_KEY"):
        build_llm(provider=provider, model="x")


def test_ollama_model_supports_tool_binding():
    llm = build_llm(provider="ollama", model="llama3.2", max_tokens=256)

    assert type(llm).__name__ == "ChatOllama"
    assert hasattr(llm, "bind_tools")
