"""
infrastructure.config - Typed, injectable configuration.

A frozen dataclass that can be constructed from the environment (and an
optional .env file) or passed explicitly in tests.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional


@dataclass(frozen=True)
class Settings:
    """Centralized configuration for the workshop assistant.

    No module-level globals: construct via from_env() or pass explicitly
    in tests.
    """
    project_root: Path = Path(".")

    # ── LLM provider ────────────────────────────────────────────
    # Allowed: "openai", "groq", "ollama"
    llm_provider: str = "ollama"

    # Model names; only the one matching llm_provider is used.
    llm_model_ollama: str = "llama3.2"
    llm_model_openai: str = "gpt-4.1-mini"
    llm_model_groq: str = "llama-3.3-70b-versatile"
    llm_temperature: float = 0.3

    # Connection details
    ollama_base_url: str = "http://localhost:11434/"
    groq_api_key: str = ""
    openai_api_key: str = ""

    # Persistence
    db_path: str = "workshop.db"
    workspace_id: str = "default"

    # Conversation
    max_history_messages: int = 50
    # Seconds to wait for the next fragment of a model stream; 0 disables.
    stream_idle_timeout: float = 60.0

    log_level: str = "INFO"

    @property
    def active_llm_model(self) -> str:
        """Return the model name for the currently active LLM provider."""
        if self.llm_provider == "openai":
            return self.llm_model_openai
        elif self.llm_provider == "groq":
            return self.llm_model_groq
        return self.llm_model_ollama

    @classmethod
    def from_env(cls, project_root: Optional[Path] = None) -> Settings:
        """Build Settings from environment variables (and .env, if present)."""
        from dotenv import load_dotenv
        load_dotenv()

        root = project_root or Path(__file__).resolve().parent.parent.parent

        return cls(
            project_root=root,
            llm_provider=os.getenv("LLM_PROVIDER", "ollama").lower().strip(),
            llm_model_ollama=os.getenv("LLM_MODEL_OLLAMA", "llama3.2"),
            llm_model_openai=os.getenv("LLM_MODEL_OPENAI", "gpt-4.1-mini"),
            llm_model_groq=os.getenv("LLM_MODEL_GROQ", "llama-3.3-70b-versatile"),
            llm_temperature=float(os.getenv("LLM_TEMPERATURE", "0.3")),
            ollama_base_url=os.getenv("OLLAMA_BASE_URL", "http://localhost:11434/"),
            groq_api_key=os.getenv("GROQ_API_KEY", ""),
            openai_api_key=os.getenv("OPENAI_API_KEY", ""),
            db_path=os.getenv("DB_PATH", str(root / "workshop.db")),
            workspace_id=os.getenv("WORKSPACE_ID", "default"),
            max_history_messages=int(os.getenv("MAX_HISTORY_MESSAGES", "50")),
            stream_idle_timeout=float(os.getenv("STREAM_IDLE_TIMEOUT", "60")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )
