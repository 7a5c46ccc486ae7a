"""
infrastructure.llm.llm_builder - Centralized chat model construction.

Single source of truth for building the streaming, tool-calling chat model
the Conversation Session binds the workshop tools to. The provider is
controlled by the LLM_PROVIDER environment variable.

Supported providers:
    - "openai"  → langchain_openai.ChatOpenAI
    - "groq"    → langchain_groq.ChatGroq
    - "ollama"  → langchain_ollama.ChatOllama
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, Optional

from langchain_core.language_models import BaseChatModel

logger = logging.getLogger(__name__)


def _require_key(provider: str, key: str, env_var: str) -> str:
    if not key:
        raise ValueError(f"{env_var} is required when LLM_PROVIDER='{provider}'")
    return key


def _openai(opts: Dict[str, Any]) -> BaseChatModel:
    from langchain_openai import ChatOpenAI

    kwargs: Dict[str, Any] = {
        "model": opts["model"],
        "temperature": opts["temperature"],
        "api_key": _require_key("openai", opts["openai_api_key"], "OPENAI_API_KEY"),
        "streaming": True,
    }
    if opts["max_tokens"] is not None:
        kwargs["max_tokens"] = opts["max_tokens"]
    return ChatOpenAI(**kwargs)


def _groq(opts: Dict[str, Any]) -> BaseChatModel:
    from langchain_groq import ChatGroq

    kwargs: Dict[str, Any] = {
        "model": opts["model"],
        "temperature": opts["temperature"],
        "api_key": _require_key("groq", opts["groq_api_key"], "GROQ_API_KEY"),
        "streaming": True,
    }
    if opts["max_tokens"] is not None:
        kwargs["max_tokens"] = opts["max_tokens"]
    return ChatGroq(**kwargs)


def _ollama(opts: Dict[str, Any]) -> BaseChatModel:
    from langchain_ollama import ChatOllama

    kwargs: Dict[str, Any] = {
        "model": opts["model"],
        "temperature": opts["temperature"],
        "base_url": opts["ollama_base_url"],
    }
    if opts["max_tokens"] is not None:
        kwargs["num_predict"] = opts["max_tokens"]
    return ChatOllama(**kwargs)


_BUILDERS: Dict[str, Callable[[Dict[str, Any]], BaseChatModel]] = {
    "openai": _openai,
    "groq": _groq,
    "ollama": _ollama,
}


def build_llm(
    *,
    provider: str,
    model: str,
    temperature: float = 0,
    ollama_base_url: str = "http://localhost:11434/",
    openai_api_key: str = "",
    groq_api_key: str = "",
    max_tokens: Optional[int] = None,
) -> BaseChatModel:
    """Build a streaming, tool-calling chat model for the given provider.

    Args:
        provider: One of "openai", "groq", "ollama".
        model: Model name for the selected provider.
        temperature: Sampling temperature.
        ollama_base_url: Ollama server URL (only used when provider="ollama").
        openai_api_key: API key for OpenAI.
        groq_api_key: API key for Groq.
        max_tokens: Maximum tokens per response (provider default if None).

    Raises:
        ValueError: If the provider is unknown or required credentials are missing.
    """
    provider = provider.lower().strip()
    builder = _BUILDERS.get(provider)
    if builder is None:
        raise ValueError(
            f"Unsupported LLM_PROVIDER: '{provider}'. "
            f"Must be one of {', '.join(repr(p) for p in _BUILDERS)}."
        )

    llm = builder({
        "model": model,
        "temperature": temperature,
        "ollama_base_url": ollama_base_url,
        "openai_api_key": openai_api_key,
        "groq_api_key": groq_api_key,
        "max_tokens": max_tokens,
    })
    logger.info("Built %s chat model (provider=%s, model=%s)", type(llm).__name__, provider, model)
    return llm
