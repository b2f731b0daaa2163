"""
Configuration for the Clippings article compiler
"""

import os
from dotenv import load_dotenv

from utils.errors import ConfigurationError

# Load environment variables from .env
load_dotenv()


DEFAULT_USER_AGENT = 'Mozilla/5.0 (compatible; ArticlePdfBot/1.0; +https://example.com)'


def _env_bool(name: str, default: str = 'false') -> bool:
    return os.getenv(name, default).lower() == 'true'


class Config:
    """Settings read from the environment"""

    def __init__(self):
        # Fetching
        self.USER_AGENT = os.getenv('USER_AGENT', DEFAULT_USER_AGENT)
        self.FETCH_TIMEOUT_S = float(os.getenv('FETCH_TIMEOUT_S', '20'))
        self.FETCH_CONCURRENCY = int(os.getenv('FETCH_CONCURRENCY', '4'))
        self.IMAGE_FETCH_CONCURRENCY = int(os.getenv('IMAGE_FETCH_CONCURRENCY', '4'))

        # Extra boilerplate phrases, separated by "|"
        self.NOISE_PHRASES_EXTRA = [
            phrase.strip()
            for phrase in os.getenv('NOISE_PHRASES_EXTRA', '').split('|')
            if phrase.strip()
        ]

        # Comprehension quiz (OpenAI)
        self.OPENAI_API_KEY = os.getenv('OPENAI_API_KEY', '')
        self.OPENAI_MODEL = os.getenv('OPENAI_MODEL', 'gpt-4o-mini')
        self.QUIZ_TEMPERATURE = float(os.getenv('QUIZ_TEMPERATURE', '0.4'))
        self.QUIZ_MAX_TOKENS = int(os.getenv('QUIZ_MAX_TOKENS', '1200'))
        self.QUIZ_SUMMARY_CHARS = int(os.getenv('QUIZ_SUMMARY_CHARS', '1400'))

        # Mail delivery
        self.SMTP_HOST = os.getenv('SMTP_HOST', '')
        self.SMTP_PORT = int(os.getenv('SMTP_PORT', '587'))
        self.SMTP_USER = os.getenv('SMTP_USER', '')
        self.SMTP_PASS = os.getenv('SMTP_PASS', '')
        self.MAIL_FROM = os.getenv('MAIL_FROM', '') or self.SMTP_USER
        self.DEFAULT_KINDLE_EMAIL = os.getenv('DEFAULT_KINDLE_EMAIL', '')

        # Fonts
        self.FONTS_DIR = os.getenv('FONTS_DIR', 'fonts')

        # Server and logging
        self.PORT = int(os.getenv('PORT', '3000'))
        self.LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')
        self.STRUCTURED_LOGGING = _env_bool('STRUCTURED_LOGGING')
        self.DEBUG_MODE = _env_bool('DEBUG_MODE')

        self._validate_config()

    def _validate_config(self):
        """Reject settings the pipeline cannot run with"""
        if self.FETCH_TIMEOUT_S <= 0:
            raise ConfigurationError("FETCH_TIMEOUT_S must be greater than 0")

        if self.FETCH_CONCURRENCY <= 0:
            raise ConfigurationError("FETCH_CONCURRENCY must be greater than 0")

        if self.IMAGE_FETCH_CONCURRENCY <= 0:
            raise ConfigurationError("IMAGE_FETCH_CONCURRENCY must be greater than 0")

        if not 1 <= self.SMTP_PORT <= 65535:
            raise ConfigurationError(f"SMTP_PORT out of range: {self.SMTP_PORT}")

        if self.QUIZ_SUMMARY_CHARS <= 0:
            raise ConfigurationError("QUIZ_SUMMARY_CHARS must be greater than 0")

    def is_quiz_available(self) -> bool:
        """Check whether an OpenAI key is configured"""
        return bool(self.OPENAI_API_KEY)

    def is_mail_configured(self) -> bool:
        return bool(self.SMTP_HOST and self.SMTP_USER and self.SMTP_PASS and self.MAIL_FROM)

    def __str__(self) -> str:
        """Configuration summary without secrets"""
        return f"""Configuration:
- Fetch Timeout: {self.FETCH_TIMEOUT_S}s
- Fetch Concurrency: {self.FETCH_CONCURRENCY}
- Quiz Available: {self.is_quiz_available()} ({self.OPENAI_MODEL})
- Mail Configured: {self.is_mail_configured()}
- Fonts Dir: {self.FONTS_DIR}
- Log Level: {self.LOG_LEVEL}"""


# Global configuration instance
config = Config()
