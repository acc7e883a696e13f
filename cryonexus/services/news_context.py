"""News context service using the GDELT DOC API."""

import asyncio
from typing import Optional

import httpx

from cryonexus.config import Settings
from cryonexus.logger import get_logger
from cryonexus.models.domain import Domain

logger = get_logger(__name__)

NO_CONTEXT = "No recent news context available."


class NewsContextGateway:
    """Fetch short recent-news snippets for each specialist domain."""

    def __init__(self, settings: Settings, client: Optional[httpx.AsyncClient] = None):
        self.timeout = settings.context_timeout_seconds
        self.max_records = settings.context_max_records
        self.client = client or httpx.AsyncClient(
            base_url=settings.gdelt_api_base_url,
            timeout=self.timeout,
        )
        logger.info("NewsContextGateway initialized with GDELT API")

    async def _search(self, query: str, max_records: int) -> str:
        response = await self.client.get(
            "/doc/doc",
            params={
                "query": query,
                "mode": "artlist",
                "format": "json",
                "maxrecords": max_records,
            },
        )
        response.raise_for_status()
        data = response.json()

        articles = data.get("articles") if isinstance(data, dict) else None
        if not isinstance(articles, list) or not articles:
            logger.info(f"No articles for '{query}'")
            return NO_CONTEXT

        titles = [a.get("title", "") for a in articles if isinstance(a, dict)]
        titles = [t for t in titles if t]
        if not titles:
            return NO_CONTEXT

        logger.info(f"News search '{query}' returned {len(titles)} articles")
        return "\n".join(f"- {title}" for title in titles)

    async def fetch(self, query: str, max_records: Optional[int] = None) -> str:
        """
        Fetch a context snippet for one query.

        Args:
            query: Free-text news query
            max_records: Number of articles to request

        Returns:
            Article titles as a bullet list, or NO_CONTEXT on timeout, error
            or an empty result
        """
        if not query or not query.strip():
            return NO_CONTEXT

        logger.debug(f"Fetching news context for: {query}")
        try:
            return await asyncio.wait_for(
                self._search(query, max_records or self.max_records),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            logger.warning(f"News context timed out after {self.timeout}s for '{query}'")
            return NO_CONTEXT
        except Exception as e:
            logger.warning(f"News context fetch failed for '{query}': {e}")
            return NO_CONTEXT

    async def fetch_all(self, queries: dict[Domain, str]) -> dict[Domain, str]:
        """Fetch the context of every domain concurrently."""
        logger.info(f"Fetching news context for {len(queries)} domains")
        domains = list(queries)
        snippets = await asyncio.gather(*(self.fetch(queries[d]) for d in domains))
        return dict(zip(domains, snippets))

    async def aclose(self):
        """Close the HTTP client."""
        logger.debug("Closing NewsContextGateway client")
        await self.client.aclose()
