from .client import AsyncPortalClient, build_endpoints
