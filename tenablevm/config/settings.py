"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://cloud.tenable.com"
DEFAULT_TIMEOUT = 60


class ConfigurationError(RuntimeError):
    """Required setting missing or malformed."""
    pass


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).
    
    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)
    
    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback
    
    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name
    
    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.debug("Loaded %s from /run/secrets", secret_name)
                return secret_value
        except OSError as e:
            logger.warning("Failed to read /run/secrets/%s: %s", secret_name, e)
    
    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            logger.debug("Loaded %s from environment", env_var)
            return secret_value
    
    return None


def _mask(value: str) -> str:
    if not value:
        return "EMPTY"
    return "***"


@dataclass(frozen=True)
class TenableConfig:
    """Immutable client configuration shared by every service."""
    access_key: str
    secret_key: str
    base_url: str = DEFAULT_BASE_URL
    timeout: float = DEFAULT_TIMEOUT
    
    def __repr__(self) -> str:
        return (
            f"TenableConfig(access_key={_mask(self.access_key)}, secret_key={_mask(self.secret_key)}, "
            f"base_url={self.base_url!r}, timeout={self.timeout!r})"
        )
    
    @property
    def api_keys_header(self) -> str:
        """Value of the X-ApiKeys header for these credentials."""
        return f"accessKey={self.access_key}; secretKey={self.secret_key};"


def _parse_timeout(raw: str) -> float:
    try:
        timeout = float(raw)
    except ValueError:
        raise ConfigurationError(f"TENABLE_TIMEOUT must be a number of seconds, got {raw!r}") from None
    if timeout <= 0:
        raise ConfigurationError(f"TENABLE_TIMEOUT must be positive, got {raw!r}")
    return timeout


def load_settings(
    access_key: Optional[str] = None,
    secret_key: Optional[str] = None,
    base_url: Optional[str] = None,
    timeout: Optional[float] = None,
) -> TenableConfig:
    """Build configuration from explicit values, /run/secrets and environment.
    
    Explicit arguments always take precedence over the environment.
    
    Raises:
        ConfigurationError: If a credential cannot be resolved
    """
    access_key = access_key or _load_secret_from_file("tenable_access_key", "TENABLE_ACCESS_KEY")
    if not access_key:
        raise ConfigurationError(
            "An access key must be provided either explicitly or via the TENABLE_ACCESS_KEY environment variable."
        )
    
    secret_key = secret_key or _load_secret_from_file("tenable_secret_key", "TENABLE_SECRET_KEY")
    if not secret_key:
        raise ConfigurationError(
            "A secret key must be provided either explicitly or via the TENABLE_SECRET_KEY environment variable."
        )
    
    base_url = base_url or os.environ.get("TENABLE_BASE_URL") or DEFAULT_BASE_URL
    
    if timeout is None:
        raw_timeout = os.environ.get("TENABLE_TIMEOUT", "").strip()
        timeout = _parse_timeout(raw_timeout) if raw_timeout else DEFAULT_TIMEOUT
    
    config = TenableConfig(
        access_key=access_key,
        secret_key=secret_key,
        base_url=base_url,
        timeout=timeout,
    )
    logger.info("Loaded Tenable settings: %r", config)
    return config
