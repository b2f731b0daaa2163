#!/usr/bin/env python3
"""
Tests for configuration loading and logging setup
"""

import json
import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent.parent))

from config import Config
from utils.errors import ConfigurationError
from utils.logging_config import StructuredFormatter, TimedLogger, request_id_var


class TestConfig:
    """Environment parsing and validation"""

    def test_defaults(self, monkeypatch):
        for name in ('FETCH_TIMEOUT_S', 'FETCH_CONCURRENCY', 'OPENAI_MODEL', 'SMTP_PORT', 'NOISE_PHRASES_EXTRA'):
            monkeypatch.delenv(name, raising=False)

        settings = Config()

        assert settings.FETCH_TIMEOUT_S == 20
        assert settings.FETCH_CONCURRENCY == 4
        assert settings.OPENAI_MODEL == 'gpt-4o-mini'
        assert settings.SMTP_PORT == 587
        assert settings.NOISE_PHRASES_EXTRA == []

    def test_noise_phrases_list(self, monkeypatch):
        monkeypatch.setenv('NOISE_PHRASES_EXTRA', 'cookie policy | advertisement||')
        assert Config().NOISE_PHRASES_EXTRA == ['cookie policy', 'advertisement']

    def test_mail_from_defaults_to_user(self, monkeypatch):
        monkeypatch.setenv('SMTP_USER', 'bot@example.com')
        monkeypatch.delenv('MAIL_FROM', raising=False)
        assert Config().MAIL_FROM == 'bot@example.com'

    @pytest.mark.parametrize("name,value", [
        ('FETCH_CONCURRENCY', '0'),
        ('FETCH_TIMEOUT_S', '-1'),
        ('IMAGE_FETCH_CONCURRENCY', '0'),
        ('SMTP_PORT', '70000'),
    ])
    def test_invalid_values(self, monkeypatch, name, value):
        monkeypatch.setenv(name, value)
        with pytest.raises(ConfigurationError):
            Config()

    def test_summary_hides_secrets(self, monkeypatch):
        monkeypatch.setenv('OPENAI_API_KEY', 'sk-very-secret')
        monkeypatch.setenv('SMTP_PASS', 'hunter2')
        text = str(Config())

        assert 'sk-very-secret' not in text
        assert 'hunter2' not in text
        assert 'Quiz Available: True' in text


class TestLogging:
    """Structured output and timing"""

    def test_structured_formatter(self):
        record = logging.LogRecord('clippings', logging.INFO, __file__, 1, "Composed %d pages", (3,), None)
        record.page_count = 3
        token = request_id_var.set('req-1')
        try:
            entry = json.loads(StructuredFormatter().format(record))
        finally:
            request_id_var.reset(token)

        assert entry['message'] == "Composed 3 pages"
        assert entry['page_count'] == 3
        assert entry['request_id'] == 'req-1'

    def test_timed_logger_propagates(self, caplog):
        logger = logging.getLogger('clippings.test')

        with caplog.at_level(logging.DEBUG, logger='clippings.test'):
            with pytest.raises(RuntimeError):
                with TimedLogger(logger, "risky step"):
                    raise RuntimeError("boom")

        assert any("Failed risky step" in message for message in caplog.messages)
