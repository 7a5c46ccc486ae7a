"""
Run the Workshop Assistant CLI.

Usage:
    python run_cli.py [COMMAND] [OPTIONS]

Commands:
    chat        Interactive chat with the assistant
    ask         One-shot chat turn
    dashboard   Monthly summary, debts and the last three months
    schedule    Orders with a delivery date, soonest first
    history     Show the saved chat transcript
    export      Write a JSON backup of the whole workspace
    import      Replace the workspace with a JSON backup
    order | expense | notepad | material | inventory | calc   Direct record operations

Examples:
    python run_cli.py chat
    python run_cli.py ask "سجل مصروف كهرباء 350 جنيه"
    python run_cli.py order list --search كنبة --sort oldest

Environment variables (all optional):
    LLM_PROVIDER          "openai", "groq", or "ollama" (default: ollama)
    LLM_MODEL_OPENAI      Model name when LLM_PROVIDER=openai (default: gpt-4.1-mini)
    LLM_MODEL_GROQ        Model name when LLM_PROVIDER=groq (default: llama-3.3-70b-versatile)
    LLM_MODEL_OLLAMA      Model name when LLM_PROVIDER=ollama (default: llama3.2)
    LLM_TEMPERATURE       Sampling temperature (default: 0.3)
    OPENAI_API_KEY        Required when LLM_PROVIDER=openai
    GROQ_API_KEY          Required when LLM_PROVIDER=groq
    OLLAMA_BASE_URL       Ollama server URL (default: http://localhost:11434/)
    DB_PATH               SQLite database file path (default: ./workshop.db)
    WORKSPACE_ID          Snapshot key inside the database (default: default)
    MAX_HISTORY_MESSAGES  Saved messages replayed to the model (default: 50)
    STREAM_IDLE_TIMEOUT   Seconds to wait for the model's next fragment, 0 = no limit (default: 60)
    LOG_LEVEL             Logging level (default: INFO)
"""

import sys
from pathlib import Path

# Ensure src/ is importable
sys.path.insert(0, str(Path(__file__).parent / "src"))

from adapters.cli.main import app

if __name__ == "__main__":
    app()
