"""
HTTP fetcher for page content.

Thin aiohttp wrapper shared by the direct and proxy fetches. Each call has
its own timeout so one source timing out never affects the other.
"""
import aiohttp
from typing import Optional, Dict

from logs.logging_config import get_logger
from .config import CONTENT_USER_AGENT, CONTENT_CONNECTION_POOL_LIMIT
from .schemas import FetchResponse

logger = get_logger("fetcher")


class HttpFetcher:
    """Lazily-created pooled aiohttp session returning FetchResponse objects."""

    def __init__(self, user_agent: str = CONTENT_USER_AGENT, pool_limit: int = CONTENT_CONNECTION_POOL_LIMIT):
        self._user_agent = user_agent
        self._pool_limit = pool_limit
        self._session: Optional[aiohttp.ClientSession] = None

    async def get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            connector = aiohttp.TCPConnector(limit=self._pool_limit)
            self._session = aiohttp.ClientSession(
                connector=connector,
                headers={"User-Agent": self._user_agent},
            )
            logger.debug(f"[FETCHER] Session created | pool_limit={self._pool_limit}")
        return self._session

    async def fetch(
        self,
        url: str,
        timeout: float,
        headers: Optional[Dict[str, str]] = None,
    ) -> FetchResponse:
        """
        GET a URL and read its body as text.

        Raises:
            asyncio.TimeoutError: If the request exceeds timeout
            aiohttp.ClientError: On connection or protocol errors
        """
        session = await self.get_session()
        async with session.get(
            url,
            headers=headers,
            timeout=aiohttp.ClientTimeout(total=timeout),
            allow_redirects=True,
        ) as response:
            body = await response.text(errors="replace")
            return FetchResponse(
                status=response.status,
                headers={k.lower(): v for k, v in response.headers.items()},
                text=body,
                url=str(response.url),
            )

    async def close(self):
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("[FETCHER] Session closed")
        self._session = None
