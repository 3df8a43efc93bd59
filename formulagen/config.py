# formulagen/config.py
import os
from typing import List, Optional

from pydantic import BaseModel, Field

DEFAULT_GEMINI_MODEL = 'gemini-2.0-flash'


class Settings(BaseModel):
    """Runtime configuration, read once at startup and passed down explicitly."""

    gemini_api_key: Optional[str] = None
    gemini_model: str = DEFAULT_GEMINI_MODEL
    gemini_base_url: Optional[str] = None
    request_timeout: float = Field(default=30.0, gt=0)
    copy_reset_seconds: float = Field(default=2.0, gt=0)
    max_sessions: int = Field(default=1000, ge=1)
    cors_origins: List[str] = Field(default_factory=lambda: ['*'])
    log_level: str = 'INFO'

    @property
    def has_credential(self) -> bool:
        return bool(self.gemini_api_key and self.gemini_api_key.strip())

    @classmethod
    def from_env(cls, environ=None) -> 'Settings':
        """Build settings from environment variables, leaving unset ones at their defaults."""
        env = os.environ if environ is None else environ
        values = {}

        api_key = env.get('GEMINI_API_KEY') or env.get('VITE_GEMINI_API_KEY')
        if api_key:
            values['gemini_api_key'] = api_key

        for var, field in (
            ('GEMINI_MODEL', 'gemini_model'),
            ('GEMINI_BASE_URL', 'gemini_base_url'),
            ('GEMINI_TIMEOUT', 'request_timeout'),
            ('COPY_RESET_SECONDS', 'copy_reset_seconds'),
            ('MAX_SESSIONS', 'max_sessions'),
            ('LOG_LEVEL', 'log_level'),
        ):
            if env.get(var):
                values[field] = env[var]

        if env.get('CORS_ORIGINS'):
            values['cors_origins'] = [o.strip() for o in env['CORS_ORIGINS'].split(',') if o.strip()]

        return cls(**values)
