"""
Infrastructure module exports.

Configuration and bootstrap for the inbox store, model backend and sender.
"""

from .config import ConfigError, InfraConfig, get_config, InboxBackendType, LLMBackendType
from .bootstrap import InfraBootstrap, bootstrap_infrastructure

__all__ = [
    "ConfigError",
    "InfraConfig",
    "get_config",
    "InboxBackendType",
    "LLMBackendType",
    "InfraBootstrap",
    "bootstrap_infrastructure",
]
