"""Base API client for making HTTP requests."""

from typing import Dict

from judicial_case_aggregator.config import PortalConfig


class BaseAPIClient:
    """Base class for all API clients."""

    def __init__(self, config: PortalConfig):
        self.config = config

    def _build_headers(self) -> Dict[str, str]:
        return {"Accept": "application/json, text/plain, */*"}
