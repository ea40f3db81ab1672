"""
Infrastructure configuration system.

Environment-based backend selection. Built once at startup; validate()
fails fast with every missing setting named.
"""

import os
from dataclasses import dataclass
from typing import Literal, Optional

from inbox import InboxStore, SQLiteInboxStore
from inference import ModelBackend, OpenAIModelBackend, StubModelBackend
from transport.aisensy import AiSensySender
from transport.aisensy.sender import DEFAULT_ENDPOINT

InboxBackendType = Literal["supabase", "sqlite"]
LLMBackendType = Literal["openai", "stub"]


class ConfigError(Exception):
    """Required configuration is missing or invalid."""
    pass


def _first_env(*names: str) -> Optional[str]:
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


@dataclass
class InfraConfig:
    """Infrastructure configuration from environment."""

    # Inbox store
    inbox_backend: InboxBackendType
    supabase_url: Optional[str]
    supabase_key: Optional[str]
    inbox_table: str
    sqlite_path: str

    # LLM
    llm_backend: LLMBackendType
    openai_api_key: Optional[str]
    openai_model: str
    openai_base_url: str
    openai_max_tokens: int
    openai_temperature: float

    # Messaging provider
    aisensy_api_key: Optional[str]
    aisensy_campaign: Optional[str]
    aisensy_template: str
    aisensy_endpoint: str
    aisensy_timeout: float

    # Webhook
    webhook_secret: Optional[str]
    webhook_verify_token: Optional[str]

    @classmethod
    def from_env(cls) -> "InfraConfig":
        """
        Load configuration from environment variables.

        Supabase credentials accept the names used by the older Vercel
        deployment as fallbacks.
        """
        try:
            max_tokens = int(os.getenv("OPENAI_MAX_TOKENS", "200"))
            temperature = float(os.getenv("OPENAI_TEMPERATURE", "0.2"))
            timeout = float(os.getenv("AISENSY_TIMEOUT", "30"))
        except ValueError as e:
            raise ConfigError(f"Invalid numeric setting: {e}") from e

        return cls(
            inbox_backend=os.getenv("INBOX_BACKEND", "supabase"),  # type: ignore
            supabase_url=_first_env("SUPABASE_URL", "NEXT_PUBLIC_SUPABASE_URL"),
            supabase_key=_first_env(
                "SUPABASE_SERVICE_KEY",
                "SUPABASE_KEY",
                "SUPABASE_ANON_KEY",
                "NEXT_PUBLIC_SUPABASE_ANON_KEY",
            ),
            inbox_table=os.getenv("INBOX_TABLE", "inbox"),
            sqlite_path=os.getenv("INBOX_SQLITE_PATH", "./inbox.db"),

            llm_backend=os.getenv("LLM_BACKEND", "openai"),  # type: ignore
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4o-mini"),
            openai_base_url=os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1"),
            openai_max_tokens=max_tokens,
            openai_temperature=temperature,

            aisensy_api_key=os.getenv("AISENSY_API_KEY") or None,
            aisensy_campaign=os.getenv("AISENSY_CAMPAIGN_ID") or None,
            aisensy_template=os.getenv("AISENSY_TEMPLATE_NAME", "auto_reply_fallback"),
            aisensy_endpoint=os.getenv("AISENSY_ENDPOINT", DEFAULT_ENDPOINT),
            aisensy_timeout=timeout,

            webhook_secret=os.getenv("WEBHOOK_SECRET") or None,
            webhook_verify_token=os.getenv("WEBHOOK_VERIFY_TOKEN") or None,
        )

    def validate(self) -> None:
        """
        Raises:
            ConfigError: naming every setting the selected backends need
        """
        problems = []

        if self.inbox_backend == "supabase":
            if not self.supabase_url:
                problems.append("SUPABASE_URL")
            if not self.supabase_key:
                problems.append("SUPABASE_SERVICE_KEY")
        elif self.inbox_backend != "sqlite":
            problems.append(f"INBOX_BACKEND (unknown value {self.inbox_backend!r})")

        if self.llm_backend == "openai":
            if not self.openai_api_key:
                problems.append("OPENAI_API_KEY")
        elif self.llm_backend != "stub":
            problems.append(f"LLM_BACKEND (unknown value {self.llm_backend!r})")

        if not self.aisensy_api_key:
            problems.append("AISENSY_API_KEY")
        if not self.aisensy_campaign:
            problems.append("AISENSY_CAMPAIGN_ID")

        if problems:
            raise ConfigError(f"Missing or invalid configuration: {', '.join(problems)}")

    def create_inbox_store(self) -> InboxStore:
        """Create inbox store instance based on configuration."""
        if self.inbox_backend == "sqlite":
            return SQLiteInboxStore(db_path=self.sqlite_path)

        from inbox.supabase import SupabaseInboxStore
        return SupabaseInboxStore(
            url=self.supabase_url,
            key=self.supabase_key,
            table=self.inbox_table,
        )

    def create_llm_backend(self) -> ModelBackend:
        """Create LLM backend instance based on configuration."""
        if self.llm_backend == "stub":
            return StubModelBackend()
        return OpenAIModelBackend(
            api_key=self.openai_api_key,
            model_name=self.openai_model,
            base_url=self.openai_base_url,
            max_tokens=self.openai_max_tokens,
            temperature=self.openai_temperature,
        )

    def create_sender(self) -> AiSensySender:
        """Create the AiSensy sender."""
        return AiSensySender(
            api_key=self.aisensy_api_key,
            campaign_name=self.aisensy_campaign,
            template_name=self.aisensy_template,
            endpoint=self.aisensy_endpoint,
            timeout=self.aisensy_timeout,
        )


def get_config() -> InfraConfig:
    """Get infrastructure configuration from the current environment."""
    return InfraConfig.from_env()
