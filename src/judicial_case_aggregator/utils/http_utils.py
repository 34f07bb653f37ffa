"""Retrying HTTP helpers shared by the portal client."""

import asyncio
import random
from pathlib import Path
from typing import Any, Dict, Optional

import httpx
from loguru import logger

from judicial_case_aggregator.shared.errors import TransportFailure

RETRYABLE_STATUS = {429, 500, 502, 503, 504}


async def safe_async_request(
    client: httpx.AsyncClient,
    method: str,
    url: str,
    params: Optional[Dict[str, Any]] = None,
    json: Optional[Dict[str, Any]] = None,
    max_attempts: int = 2,
    backoff: float = 1.0,
    rate_limit: float = 0.0,
    timeout: Optional[float] = None,
) -> Optional[Any]:
    """Send one JSON request with retry and backoff.

    Returns the decoded body, or None when the portal answers 404 or an
    empty body ("no data"). Raises ``TransportFailure`` once retries are
    exhausted, on any other 4xx, or on a body that is not JSON.
    """
    delay = backoff
    for attempt in range(1, max_attempts + 1):
        try:
            resp = await client.request(
                method,
                url,
                params=params,
                json=json,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            )
            if resp.status_code == 404:
                logger.debug(f"HTTP 404 on {url}; treating as no data.")
                return None
            resp.raise_for_status()
        except httpx.HTTPStatusError as e:
            code = e.response.status_code
            if code not in RETRYABLE_STATUS:
                raise TransportFailure(f"HTTP {code} on {url}", url=url, status_code=code) from e
            logger.warning(f"[{attempt}/{max_attempts}] HTTP {code} on {url}; error.")
            if attempt == max_attempts:
                logger.error(f"Giving up on {url} after {max_attempts} attempts.")
                raise TransportFailure(f"HTTP {code} on {url}", url=url, status_code=code) from e
        except (httpx.TimeoutException, httpx.TransportError) as e:
            kind = "timeout" if isinstance(e, httpx.TimeoutException) else "transport error"
            logger.warning(f"[{attempt}/{max_attempts}] {kind} on {url}: {e!r}")
            if attempt == max_attempts:
                logger.error(f"Giving up on {url} after {max_attempts} attempts.")
                raise TransportFailure(f"{kind} on {url}", url=url) from e
        else:
            if rate_limit:
                await asyncio.sleep(rate_limit + random.random() * 0.5)
            if not resp.content.strip():
                return None
            try:
                return resp.json()
            except ValueError as e:
                raise TransportFailure(
                    f"Invalid JSON from {url}", url=url, status_code=resp.status_code
                ) from e
        await asyncio.sleep(delay)
        delay = min(delay * 2, 10)
    return None


async def safe_async_download(
    client: httpx.AsyncClient,
    url: str,
    path: Path,
    params: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
    max_attempts: int = 2,
    backoff: float = 1.0,
    timeout: Optional[float] = None,
) -> Path:
    """Stream a binary response to ``path`` with retry and logging.

    A partially written file is removed before retrying or failing.
    """
    path.parent.mkdir(parents=True, exist_ok=True)
    delay = backoff
    for attempt in range(1, max_attempts + 1):
        try:
            async with client.stream(
                "GET",
                url,
                params=params,
                headers=headers,
                timeout=timeout if timeout is not None else httpx.USE_CLIENT_DEFAULT,
            ) as r:
                r.raise_for_status()
                with open(path, "wb") as f:
                    async for chunk in r.aiter_bytes():
                        f.write(chunk)
            logger.info(f"Downloaded {url} to {path}")
            return path
        except httpx.HTTPStatusError as e:
            path.unlink(missing_ok=True)
            code = e.response.status_code
            if code not in RETRYABLE_STATUS or attempt == max_attempts:
                raise TransportFailure(
                    f"HTTP {code} downloading {url}", url=url, status_code=code
                ) from e
            logger.warning(f"[{attempt}/{max_attempts}] HTTP {code} downloading {url}")
        except (httpx.TimeoutException, httpx.TransportError) as e:
            path.unlink(missing_ok=True)
            if attempt == max_attempts:
                raise TransportFailure(f"Failed to download {url}: {e!r}", url=url) from e
            logger.warning(f"[{attempt}/{max_attempts}] Failed to download {url}: {e!r}")
        await asyncio.sleep(delay)
        delay = min(delay * 2, 10)
    raise TransportFailure(f"Failed to download {url} after {max_attempts} attempts", url=url)
