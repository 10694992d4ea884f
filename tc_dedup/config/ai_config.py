"""
Settings for the optional LLM augmentation layer.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

_project_root = Path(__file__).parent.parent.parent
if (_project_root / ".env").exists():
    load_dotenv(_project_root / ".env")
else:
    load_dotenv()


class AIConfig:
    """Configuration for AI analysis settings."""

    MODEL = os.getenv("AI_MODEL", "claude-3-5-haiku-20241022")
    MAX_TOKENS = int(os.getenv("AI_MAX_TOKENS", "2000"))

    # Rate limiting settings
    RATE_LIMIT_DELAY = float(os.getenv("AI_RATE_LIMIT_DELAY", "1.0"))  # Seconds between requests
    RATE_LIMIT_RETRY_WAIT = float(os.getenv("AI_RATE_LIMIT_RETRY_WAIT", "60"))

    # Hook settings: the augmenter calls the LLM a bounded number of times per run
    HOOK_TIMEOUT = float(os.getenv("AI_HOOK_TIMEOUT", "60"))
    MAX_HOOK_CALLS = int(os.getenv("AI_MAX_HOOK_CALLS", "2"))

    @classmethod
    def api_key(cls):
        return os.getenv("ANTHROPIC_API_KEY")
