"""Configuration management for the judicial portal client.

This module handles loading configuration from environment variables and a
``.env`` file, with proper fallbacks and validation.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

DEFAULT_API_URL = "https://consultaprocesos.ramajudicial.gov.co:448/api/v2"
DEFAULT_BASE_URL = "https://consultaprocesos.ramajudicial.gov.co"


@dataclass
class PortalConfig:
    """Configuration settings for the judicial consultation portal."""

    # Endpoints
    api_url: str = DEFAULT_API_URL
    base_url: str = DEFAULT_BASE_URL

    # HTTP behaviour
    timeout: float = 30.0  # seconds, per call
    max_attempts: int = 2
    retry_backoff: float = 1.0  # seconds, doubled per retry
    rate_limit: float = 0.0  # seconds to pause after each successful request

    # Output settings
    download_dir: Path = Path("downloads")
    log_level: str = "INFO"
    log_file: Optional[Path] = None


def load_config() -> PortalConfig:
    """Load configuration with proper fallbacks.

    Priority:
    1. Environment variables
    2. .env file
    3. Default values

    Returns:
        PortalConfig: Loaded configuration
    """
    load_dotenv()
    log_file = os.getenv("JUDICIAL_PORTAL_LOG_FILE")
    try:
        config = PortalConfig(
            api_url=os.getenv("JUDICIAL_PORTAL_API_URL", DEFAULT_API_URL).rstrip("/"),
            base_url=os.getenv("JUDICIAL_PORTAL_BASE_URL", DEFAULT_BASE_URL).rstrip("/"),
            timeout=float(os.getenv("JUDICIAL_PORTAL_TIMEOUT", "30")),
            max_attempts=int(os.getenv("JUDICIAL_PORTAL_MAX_ATTEMPTS", "2")),
            retry_backoff=float(os.getenv("JUDICIAL_PORTAL_RETRY_BACKOFF", "1.0")),
            rate_limit=float(os.getenv("JUDICIAL_PORTAL_RATE_LIMIT", "0")),
            download_dir=Path(os.getenv("JUDICIAL_PORTAL_DOWNLOAD_DIR", "downloads")),
            log_level=os.getenv("JUDICIAL_PORTAL_LOG_LEVEL", "INFO"),
            log_file=Path(log_file) if log_file else None,
        )
    except ValueError as e:
        logger.error(f"Error loading configuration: {e}")
        raise

    if config.max_attempts < 1:
        logger.warning(f"max_attempts={config.max_attempts} is invalid; using 1")
        config.max_attempts = 1

    return config
