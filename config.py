"""
Configuration management for Inbox Relay.

Loads environment variables from .env file and provides typed access to
service-level settings. Backend settings live in infra.config.
"""

import os
import re
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent / ".env"
load_dotenv(env_path)


class Config:
    """Configuration class for Inbox Relay."""

    # Service
    PORT = int(os.getenv("PORT", "8000"))
    ENVIRONMENT = os.getenv("ENVIRONMENT", "development")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # Reported by /env-check
    REQUIRED_ENV_VARS = (
        "SUPABASE_URL",
        "SUPABASE_SERVICE_KEY",
        "OPENAI_API_KEY",
        "AISENSY_API_KEY",
        "AISENSY_CAMPAIGN_ID",
        "WEBHOOK_SECRET",
        "WEBHOOK_VERIFY_TOKEN",
    )

    @classmethod
    def missing_required(cls) -> list[str]:
        """Required variables unset in the current environment (read live)."""
        return [key for key in cls.REQUIRED_ENV_VARS if not os.getenv(key)]

    @classmethod
    def redacted_store_url(cls) -> Optional[str]:
        """SUPABASE_URL with everything after the scheme hidden."""
        url = os.getenv("SUPABASE_URL")
        if not url:
            return None
        return re.sub(r"^(https?://)(.*)$", r"\1…", url)


if __name__ == "__main__":
    # Test configuration loading
    print("Configuration loaded:")
    print(f"  Port: {Config.PORT}")
    print(f"  Environment: {Config.ENVIRONMENT}")
    print(f"  Store URL: {Config.redacted_store_url()}")
    missing = Config.missing_required()
    print(f"\n  Missing: {', '.join(missing) if missing else 'none'}")
