from pathlib import Path
from typing import Optional

import httpx
from loguru import logger
from tenacity import (
    RetryError,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from beyleague.config.settings import settings

RETRYABLE_STATUS_CODES = {408, 429, 500, 502, 503, 504}


class ImportSourceError(Exception):
    """Raised when the batch CSV cannot be read."""

    pass


class _RetryableStatus(Exception):
    pass


def is_url(source: str) -> bool:
    return source.startswith(("http://", "https://"))


@retry(
    stop=stop_after_attempt(4),
    wait=wait_exponential(multiplier=1, min=1, max=10),
    retry=retry_if_exception_type((httpx.RequestError, _RetryableStatus)),
    reraise=False,
)
async def _fetch(client: httpx.AsyncClient, url: str) -> str:
    response = await client.get(url)
    if response.status_code in RETRYABLE_STATUS_CODES:
        logger.warning(f"Retrying {url} after status {response.status_code}")
        raise _RetryableStatus(str(response.status_code))
    if response.status_code >= 400:
        raise ImportSourceError(
            f"Could not load {url} from the server (status {response.status_code})."
        )
    return response.text


async def read_source(source: str, client: Optional[httpx.AsyncClient] = None) -> str:
    """Returns the CSV text from a local path or an http(s) URL."""
    if not is_url(source):
        path = Path(source)
        try:
            return path.read_text(encoding="utf-8-sig")
        except OSError as e:
            raise ImportSourceError(f"Could not read {path}: {e}") from e

    owns_client = client is None
    client = client or httpx.AsyncClient(
        timeout=httpx.Timeout(settings.store_timeout_seconds), follow_redirects=True
    )
    try:
        logger.debug(f"Fetching batch CSV from {source}")
        return await _fetch(client, source)
    except RetryError as e:
        raise ImportSourceError(
            f"Failed to fetch {source} after multiple retries"
        ) from e.last_attempt.exception()
    finally:
        if owns_client:
            await client.aclose()
