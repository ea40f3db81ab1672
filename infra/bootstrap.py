"""
Infrastructure initialization and bootstrap.

Singleton pattern for wiring the inbound message processor from
configuration.
"""

from typing import Optional

from inbox import InboxStore
from inference import ModelBackend
from relay import (
    Dispatcher,
    InboundMessageProcessor,
    ReplyGenerator,
    ServiceWindowResolver,
)
from transport.aisensy import AiSensySender, WebhookAuthenticator

from .config import ConfigError, InfraConfig, get_config


class InfraBootstrap:
    """
    Bootstrap infrastructure based on configuration.

    Singleton pattern - single instance per process. Construction validates
    the configuration first and raises ConfigError before any client is built.
    """

    _instance: Optional["InfraBootstrap"] = None

    def __init__(self, config: Optional[InfraConfig] = None):
        """Initialize bootstrap with configuration."""
        self.config = config or get_config()
        self.config.validate()

        try:
            self.inbox_store = self.config.create_inbox_store()
            self.llm_backend = self.config.create_llm_backend()
            self.sender = self.config.create_sender()
        except Exception as e:
            # e.g. SupabaseException for a malformed project URL
            raise ConfigError(f"Failed to initialize backends: {e}") from e
        self.processor = InboundMessageProcessor(
            authenticator=WebhookAuthenticator(self.config.webhook_secret),
            resolver=ServiceWindowResolver(self.inbox_store),
            replies=ReplyGenerator(self.llm_backend),
            dispatcher=Dispatcher(self.inbox_store, self.sender),
        )

    @classmethod
    def get_instance(cls, config: Optional[InfraConfig] = None) -> "InfraBootstrap":
        """
        Get singleton instance.

        Args:
            config: Optional custom configuration (only used first time)
        """
        if cls._instance is None:
            cls._instance = cls(config)
        return cls._instance

    @classmethod
    def reset(cls):
        """Reset singleton (for testing)."""
        cls._instance = None

    def get_inbox_store(self) -> InboxStore:
        return self.inbox_store

    def get_llm_backend(self) -> ModelBackend:
        return self.llm_backend

    def get_sender(self) -> AiSensySender:
        return self.sender

    def get_processor(self) -> InboundMessageProcessor:
        return self.processor

    def __repr__(self) -> str:
        """String representation showing configured backends."""
        return (
            f"InfraBootstrap(inbox={self.config.inbox_backend}, "
            f"llm={self.config.llm_backend}, "
            f"webhook_secret={'set' if self.config.webhook_secret else 'unset'})"
        )


def bootstrap_infrastructure(config: Optional[InfraConfig] = None) -> InfraBootstrap:
    """
    Bootstrap all infrastructure backends.

    Raises:
        ConfigError: required settings are missing
    """
    return InfraBootstrap.get_instance(config)
