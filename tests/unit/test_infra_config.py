"""
Unit tests for environment configuration and bootstrap.
"""

from unittest.mock import patch

import pytest

from config import Config
from inbox import SQLiteInboxStore
from inference import OpenAIModelBackend, StubModelBackend
from infra import ConfigError, InfraBootstrap, InfraConfig
from relay import InboundMessageProcessor

BASE_ENV = {
    "INBOX_BACKEND": "sqlite",
    "LLM_BACKEND": "stub",
    "AISENSY_API_KEY": "key",
    "AISENSY_CAMPAIGN_ID": "campaign",
}


class TestFromEnv:
    def test_defaults(self):
        with patch.dict("os.environ", {}, clear=True):
            config = InfraConfig.from_env()

        assert config.inbox_backend == "supabase"
        assert config.llm_backend == "openai"
        assert config.openai_model == "gpt-4o-mini"
        assert config.openai_max_tokens == 200
        assert config.openai_temperature == 0.2
        assert config.aisensy_template == "auto_reply_fallback"
        assert config.webhook_secret is None

    def test_supabase_key_fallback_names(self):
        env = {"NEXT_PUBLIC_SUPABASE_URL": "https://x.supabase.co", "SUPABASE_ANON_KEY": "anon"}
        with patch.dict("os.environ", env, clear=True):
            config = InfraConfig.from_env()

        assert config.supabase_url == "https://x.supabase.co"
        assert config.supabase_key == "anon"

    def test_service_key_preferred(self):
        env = {"SUPABASE_SERVICE_KEY": "service", "SUPABASE_KEY": "plain"}
        with patch.dict("os.environ", env, clear=True):
            assert InfraConfig.from_env().supabase_key == "service"

    def test_bad_number_is_config_error(self):
        with patch.dict("os.environ", {"OPENAI_TEMPERATURE": "warm"}, clear=True):
            with pytest.raises(ConfigError):
                InfraConfig.from_env()


class TestValidate:
    def test_missing_everything_named(self):
        with patch.dict("os.environ", {}, clear=True):
            config = InfraConfig.from_env()

        with pytest.raises(ConfigError) as exc_info:
            config.validate()

        message = str(exc_info.value)
        for name in ("SUPABASE_URL", "SUPABASE_SERVICE_KEY", "OPENAI_API_KEY",
                     "AISENSY_API_KEY", "AISENSY_CAMPAIGN_ID"):
            assert name in message

    def test_local_backends_need_only_provider(self):
        with patch.dict("os.environ", BASE_ENV, clear=True):
            InfraConfig.from_env().validate()

    def test_unknown_backend_rejected(self):
        with patch.dict("os.environ", {**BASE_ENV, "LLM_BACKEND": "magic"}, clear=True):
            with pytest.raises(ConfigError, match="LLM_BACKEND"):
                InfraConfig.from_env().validate()


class TestFactories:
    def test_openai_backend_built_with_settings(self):
        env = {**BASE_ENV, "LLM_BACKEND": "openai", "OPENAI_API_KEY": "sk", "OPENAI_MAX_TOKENS": "50"}
        with patch.dict("os.environ", env, clear=True):
            backend = InfraConfig.from_env().create_llm_backend()

        assert isinstance(backend, OpenAIModelBackend)
        assert backend.max_tokens == 50

    def test_sender_built_with_settings(self):
        with patch.dict("os.environ", {**BASE_ENV, "AISENSY_TEMPLATE_NAME": "tmpl"}, clear=True):
            sender = InfraConfig.from_env().create_sender()

        assert sender.campaign_name == "campaign"
        assert sender.template_name == "tmpl"


class TestBootstrap:
    def setup_method(self):
        InfraBootstrap.reset()

    def teardown_method(self):
        InfraBootstrap.reset()

    def test_bootstrap_wires_processor(self, tmp_path):
        env = {**BASE_ENV, "INBOX_SQLITE_PATH": str(tmp_path / "inbox.db"), "WEBHOOK_SECRET": "s"}
        with patch.dict("os.environ", env, clear=True):
            infra = InfraBootstrap.get_instance()

        assert isinstance(infra.get_processor(), InboundMessageProcessor)
        assert isinstance(infra.get_inbox_store(), SQLiteInboxStore)
        assert isinstance(infra.get_llm_backend(), StubModelBackend)
        assert infra.get_processor().authenticator.secret == "s"
        assert InfraBootstrap.get_instance() is infra

    def test_bootstrap_fails_fast(self):
        with patch.dict("os.environ", {}, clear=True):
            with pytest.raises(ConfigError):
                InfraBootstrap.get_instance()

        assert InfraBootstrap._instance is None

    def test_client_construction_error_is_config_error(self):
        env = {
            **BASE_ENV,
            "INBOX_BACKEND": "supabase",
            "SUPABASE_URL": "not-a-url",
            "SUPABASE_SERVICE_KEY": "k",
        }
        with patch.dict("os.environ", env, clear=True):
            with patch("inbox.supabase.create_client", side_effect=RuntimeError("Invalid URL")):
                with pytest.raises(ConfigError, match="Invalid URL"):
                    InfraBootstrap.get_instance()

        assert InfraBootstrap._instance is None


class TestEnvCheckConfig:
    def test_missing_required_read_live(self):
        with patch.dict("os.environ", {"SUPABASE_URL": "https://x.supabase.co"}, clear=True):
            missing = Config.missing_required()

        assert "SUPABASE_URL" not in missing
        assert "WEBHOOK_VERIFY_TOKEN" in missing

    def test_redacted_store_url(self):
        with patch.dict("os.environ", {"SUPABASE_URL": "https://abc.supabase.co"}, clear=True):
            assert Config.redacted_store_url() == "https://…"

        with patch.dict("os.environ", {}, clear=True):
            assert Config.redacted_store_url() is None
