# taskflow/config/settings.py
# Environment-driven configuration for the task lifecycle and time-tracking service

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: str) -> List[str]:
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class Settings:
    """Application settings grouped by concern"""

    DATABASE = {
        'url': os.getenv('DATABASE_URL', 'sqlite:///./taskflow.db'),
        'sslmode': os.getenv('DATABASE_SSLMODE', 'require'),
        'echo': _env_bool('DATABASE_ECHO', 'false'),
    }

    AUTH = {
        'secret_key': os.getenv('SECRET_KEY', 'change-me-in-production'),
        'algorithm': os.getenv('ALGORITHM', 'HS256'),
        'access_token_expire_minutes': int(os.getenv('ACCESS_TOKEN_EXPIRE_MINUTES', 60 * 24)),
    }

    CORS = {
        'origins': _env_list(
            'CORS_ORIGINS',
            'http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000',
        ),
    }

    # Pomodoro countdown lengths in seconds
    POMODORO = {
        'work_seconds': int(os.getenv('POMODORO_WORK_SECONDS', 25 * 60)),
        'break_seconds': int(os.getenv('POMODORO_BREAK_SECONDS', 5 * 60)),
    }

    NOTIFICATIONS = {
        'horizon_days': int(os.getenv('NOTIFICATION_HORIZON_DAYS', 4)),
        'limit': int(os.getenv('NOTIFICATION_LIMIT', 10)),
    }

    SCHEDULER = {
        'enabled': _env_bool('SCHEDULER_ENABLED', 'true'),
        'alert_refresh_minutes': int(os.getenv('ALERT_REFRESH_MINUTES', 15)),
    }

    ASSISTANT = {
        'api_key': os.getenv('OPENAI_API_KEY', ''),
        'base_url': os.getenv('OPENAI_BASE_URL') or None,
        'model': os.getenv('OPENAI_MODEL', 'gpt-3.5-turbo'),
        'timeout_seconds': float(os.getenv('ASSISTANT_TIMEOUT_SECONDS', 20)),
    }

    # Attachment metadata limits (binary storage lives elsewhere)
    ATTACHMENTS = {
        'max_file_size': int(os.getenv('MAX_ATTACHMENT_SIZE', 10 * 1024 * 1024)),  # 10MB
        'blocked_extensions': {
            '.exe', '.bat', '.cmd', '.com', '.scr', '.pif', '.vbs',
            '.jar', '.msi', '.dll', '.ps1', '.sh',
        },
    }

    LOGGING = {
        'level': os.getenv('LOG_LEVEL', 'INFO').upper(),
    }

    @classmethod
    def is_postgres(cls) -> bool:
        """Check whether the configured database is PostgreSQL"""
        return cls.DATABASE['url'].startswith(('postgres://', 'postgresql'))

    @classmethod
    def is_sqlite(cls) -> bool:
        return cls.DATABASE['url'].startswith('sqlite')

    @classmethod
    def is_extension_blocked(cls, extension: str) -> bool:
        """Check if an attachment extension is blocked"""
        return extension.lower() in cls.ATTACHMENTS['blocked_extensions']
