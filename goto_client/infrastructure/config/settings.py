"""
Configuration settings - Infrastructure component for managing client configuration.
Uses pydantic-settings for validation and environment variable loading.
"""

from __future__ import annotations
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ApiSettings(BaseSettings):
    """API endpoint and credentials."""

    model_config = SettingsConfigDict(env_prefix='GOTO_', env_file='.env', extra='ignore')

    api_key: str = Field('', description='Value for the x-api-key header')
    tenant_id: str = Field('', description='Value for the x-tenant-id header')
    base_url: str = Field('http://127.0.0.1:8787')

    @field_validator('base_url')
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip('/')


class RetrySettings(BaseSettings):
    """Retry and backoff configuration."""

    model_config = SettingsConfigDict(env_prefix='GOTO_', env_file='.env', extra='ignore')

    max_attempts: int = Field(3, ge=1, le=10)
    retry_base_delay: float = Field(1.0, ge=0)
    retry_max_delay: float = Field(30.0, ge=0)
    retry_jitter: float = Field(0.0, ge=0, le=1)


class TimeoutSettings(BaseSettings):
    """Request deadlines, in seconds."""

    model_config = SettingsConfigDict(env_prefix='GOTO_', env_file='.env', extra='ignore')

    connect_timeout_s: float = Field(5.0, gt=0)
    request_timeout_s: float = Field(30.0, gt=0)
    # Measured from connection start, not per chunk
    stream_timeout_s: float = Field(120.0, gt=0)


class AppSettings(BaseSettings):
    """Main client settings."""

    model_config = SettingsConfigDict(env_file='.env', case_sensitive=False, extra='ignore')

    api: ApiSettings = Field(default_factory=ApiSettings)
    retry: RetrySettings = Field(default_factory=RetrySettings)
    timeouts: TimeoutSettings = Field(default_factory=TimeoutSettings)

    log_level: str = Field('INFO')

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            return 'INFO'
        return v.upper()

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary, with the API key masked."""
        data = self.model_dump()
        if data['api'].get('api_key'):
            data['api']['api_key'] = '***'
        return data

    def validate_required_settings(self) -> List[str]:
        """Validate required settings and return list of missing ones."""
        missing = []
        if not self.api.api_key:
            missing.append('GOTO_API_KEY')
        if not self.api.tenant_id:
            missing.append('GOTO_TENANT_ID')
        return missing


_settings: Optional[AppSettings] = None


def get_settings() -> AppSettings:
    """Get cached settings instance."""
    global _settings
    if _settings is None:
        _settings = AppSettings()
    return _settings


def reload_settings() -> AppSettings:
    """Reload settings from environment (for testing)."""
    global _settings
    _settings = AppSettings()
    return _settings
