import os
import io
import re
import csv
import copy
import json
import time
import asyncio
import logging
from collections import deque
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx
from cachetools import TTLCache

from src.utils.semrush.errors import SemrushApiError, kind_for_status

logger = logging.getLogger(__name__)

SEMRUSH_API_URL = os.environ.get("SEMRUSH_API_URL", "https://api.semrush.com")
REQUEST_TIMEOUT = float(os.environ.get("SEMRUSH_REQUEST_TIMEOUT", "30"))
RATE_LIMIT_PER_SECOND = int(os.environ.get("SEMRUSH_RATE_LIMIT_PER_SECOND", "10"))
CACHE_TTL_SECONDS = float(os.environ.get("SEMRUSH_CACHE_TTL_SECONDS", "300"))
CACHE_MAX_SIZE = 1024

# Semrush reports failures as "ERROR <code> :: <message>" with HTTP 200
ERROR_LINE = re.compile(r"^ERROR\s*(\d+)\s*::(.*)$", re.DOTALL)
NOTHING_FOUND_CODE = 50
SEMRUSH_ERROR_KINDS = {
    120: "auth",
    131: "rate_limit",
    132: "rate_limit",
    134: "rate_limit",
}

DOMAIN_COMPETITORS_COLUMNS = "Dn,Cr,Np,Or,Ot,Oc,Ad"
BACKLINKS_COLUMNS = (
    "source_title,source_url,target_url,anchor,page_score,domain_score,"
    "external_num,internal_num,first_seen,last_seen"
)
REFDOMAINS_COLUMNS = "domain,domain_score,backlinks_num,ip,country,first_seen,last_seen"
KEYWORD_OVERVIEW_COLUMNS = "Ph,Nq,Cp,Co,Nr,Td"
KEYWORD_DETAIL_COLUMNS = "Ph,Nq,Cp,Co,Nr,Td,In,Kd"
BROAD_MATCH_COLUMNS = "Ph,Nq,Cp,Co,Nr,Td,Fk,In,Kd"
KEYWORD_DIFFICULTY_COLUMNS = "Ph,Kd"
DOMAIN_ORGANIC_COLUMNS = "Ph,Po,Pp,Pd,Nq,Cp,Ur,Tr,Tc,Co,Nr,Td"
DOMAIN_PAID_COLUMNS = "Ph,Po,Pp,Pd,Ab,Nq,Cp,Tr,Tc,Co,Nr,Td"


class RateLimiter:
    """Allow at most ``per_second`` acquisitions in any one-second window"""

    def __init__(
        self,
        per_second: int,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.per_second = per_second
        self._clock = clock
        self._sleep = sleep
        self._timestamps: deque = deque()
        self._lock = asyncio.Lock()

    async def acquire(self) -> None:
        if self.per_second <= 0:
            return

        async with self._lock:
            while True:
                now = self._clock()
                while self._timestamps and now - self._timestamps[0] >= 1.0:
                    self._timestamps.popleft()
                if len(self._timestamps) < self.per_second:
                    self._timestamps.append(now)
                    return
                await self._sleep(1.0 - (now - self._timestamps[0]))


def parse_response(text: str, endpoint: str) -> Any:
    """
    Parse a Semrush response body.

    JSON bodies are decoded as-is. Everything else is treated as the
    semicolon separated CSV the analytics API returns, and becomes a list
    of row dicts keyed by the header line.
    """
    body = text.strip()
    if not body:
        return []

    if body.startswith("{") or body.startswith("["):
        try:
            return json.loads(body)
        except json.JSONDecodeError:
            raise SemrushApiError(
                f"Failed to parse JSON response: {body[:100]}...",
                500,
                endpoint,
                "parsing",
                {"response_text": body[:1000]},
            )

    rows = list(csv.reader(io.StringIO(body), delimiter=";"))
    headers = rows[0]
    results = []
    for line_number, values in enumerate(rows[1:], start=1):
        if not values:
            continue
        if len(values) != len(headers):
            raise SemrushApiError(
                f"Failed to parse CSV response: mismatched columns in row "
                f"{line_number}: expected {len(headers)}, got {len(values)}",
                500,
                endpoint,
                "parsing",
                {"response_text": body[:1000]},
            )
        results.append(dict(zip(headers, values)))
    return results


class SemrushClient:
    """Async client for the Semrush analytics and backlinks APIs"""

    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        rate_limiter: Optional[RateLimiter] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        cache_ttl: Optional[float] = None,
    ):
        """
        Args:
            api_key: Semrush API key
            base_url: API root, defaults to SEMRUSH_API_URL
            timeout: Request timeout in seconds
            rate_limiter: Shared pacing for outgoing requests
            transport: httpx transport override
            cache_ttl: Seconds to keep successful responses, defaults to
                SEMRUSH_CACHE_TTL_SECONDS. 0 disables the cache.
        """
        if not api_key:
            raise ValueError("Semrush API key is required")

        self.api_key = api_key
        self.base_url = (base_url or SEMRUSH_API_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else REQUEST_TIMEOUT
        self.rate_limiter = rate_limiter or RateLimiter(RATE_LIMIT_PER_SECOND)
        self.transport = transport

        ttl = cache_ttl if cache_ttl is not None else CACHE_TTL_SECONDS
        self.cache: Optional[TTLCache] = (
            TTLCache(maxsize=CACHE_MAX_SIZE, ttl=ttl) if ttl > 0 else None
        )

    async def _request(
        self, report_type: str, params: Dict[str, Any], backlinks: bool = False
    ) -> Any:
        """Make a request to the Semrush API and return the parsed body"""
        url = f"{self.base_url}/analytics/v1/" if backlinks else f"{self.base_url}/"

        query = {"type": report_type}
        for key, value in params.items():
            if value is None or value == "":
                continue
            query[key] = str(value).lower() if isinstance(value, bool) else str(value)

        # The API key is left out of the cache key
        cache_key = (url, tuple(sorted(query.items())))
        if self.cache is not None and cache_key in self.cache:
            logger.debug(f"Cache hit for Semrush report: {report_type}")
            return copy.deepcopy(self.cache[cache_key])

        result = await self._fetch(url, report_type, {**query, "key": self.api_key})

        if self.cache is not None:
            self.cache[cache_key] = copy.deepcopy(result)
        return result

    async def _fetch(self, url: str, report_type: str, query: Dict[str, str]) -> Any:
        await self.rate_limiter.acquire()
        logger.debug(f"Requesting Semrush report: {report_type}")

        try:
            async with httpx.AsyncClient(
                transport=self.transport, timeout=self.timeout
            ) as client:
                response = await client.get(url, params=query)
        except httpx.RequestError as e:
            logger.error(f"Network error calling Semrush ({report_type}): {e}")
            raise SemrushApiError(
                f"Network error: {e}", None, report_type, "network"
            ) from e

        text = response.text

        if response.status_code >= 400:
            logger.error(
                f"HTTP error occurred: {response.status_code} - {text[:200]}"
            )
            raise SemrushApiError(
                f"API request failed: {response.status_code} {response.reason_phrase}",
                response.status_code,
                report_type,
                kind_for_status(response.status_code),
                {"response_text": text[:1000]},
            )

        if text.startswith("ERROR"):
            match = ERROR_LINE.match(text.strip())
            if match:
                code = int(match.group(1))
                message = match.group(2).strip() or "Unknown API error"
                if code == NOTHING_FOUND_CODE:
                    return []
                kind = SEMRUSH_ERROR_KINDS.get(code) or kind_for_status(code)
            else:
                code = None
                message = re.sub(r"^ERROR\s*:*\s*", "", text).strip() or "Unknown API error"
                kind = "unknown"
            logger.error(f"Semrush returned an error for {report_type}: {message}")
            raise SemrushApiError(message, code, report_type, kind)

        return parse_response(text, report_type)

    async def get_domain_ranks(
        self, domain: str, database: str, export_columns: str
    ) -> List[Dict[str, str]]:
        return await self._request(
            "domain_ranks",
            {"domain": domain, "database": database, "export_columns": export_columns},
        )

    async def get_domain_competitors(
        self, domain: str, database: str, limit: int
    ) -> List[Dict[str, str]]:
        return await self._request(
            "domain_organic_organic",
            {
                "domain": domain,
                "database": database,
                "display_limit": limit,
                "export_columns": DOMAIN_COMPETITORS_COLUMNS,
            },
        )

    async def get_backlinks(self, target: str, limit: int) -> List[Dict[str, str]]:
        return await self._request(
            "backlinks",
            {
                "target": target,
                "target_type": "url" if "/" in target else "root_domain",
                "display_limit": limit,
                "export_columns": BACKLINKS_COLUMNS,
            },
            backlinks=True,
        )

    async def get_backlinks_refdomains(
        self, target: str, limit: int
    ) -> List[Dict[str, str]]:
        return await self._request(
            "backlinks_refdomains",
            {
                "target": target,
                "target_type": "url" if "/" in target else "root_domain",
                "display_limit": limit,
                "export_columns": REFDOMAINS_COLUMNS,
            },
            backlinks=True,
        )

    async def get_keyword_overview(
        self, keyword: str, database: str, restrict_to_db: bool = False
    ) -> List[Dict[str, str]]:
        """
        Keyword metrics for one phrase.

        With ``restrict_to_db`` only the given database is queried
        (``phrase_this``); otherwise all databases are (``phrase_all``).
        """
        if restrict_to_db:
            return await self._request(
                "phrase_this",
                {
                    "phrase": keyword,
                    "database": database,
                    "export_columns": KEYWORD_DETAIL_COLUMNS,
                },
            )
        return await self._request(
            "phrase_all",
            {
                "phrase": keyword,
                "database": database,
                "export_columns": KEYWORD_OVERVIEW_COLUMNS,
            },
        )

    async def get_batch_keyword_overview(
        self, keywords: List[str], database: str
    ) -> List[Dict[str, str]]:
        return await self._request(
            "phrase_these",
            {
                "phrase": ";".join(keywords),
                "database": database,
                "export_columns": KEYWORD_DETAIL_COLUMNS,
            },
        )

    async def get_related_keywords(
        self, keyword: str, database: str, limit: int
    ) -> List[Dict[str, str]]:
        return await self._request(
            "phrase_related",
            {
                "phrase": keyword,
                "database": database,
                "display_limit": limit,
                "export_columns": KEYWORD_OVERVIEW_COLUMNS,
            },
        )

    async def get_broad_match_keywords(
        self, keyword: str, database: str, limit: int
    ) -> List[Dict[str, str]]:
        return await self._request(
            "phrase_fullsearch",
            {
                "phrase": keyword,
                "database": database,
                "display_limit": limit,
                "export_columns": BROAD_MATCH_COLUMNS,
            },
        )

    async def get_phrase_questions(
        self, keyword: str, database: str, limit: int
    ) -> List[Dict[str, str]]:
        return await self._request(
            "phrase_questions",
            {
                "phrase": keyword,
                "database": database,
                "display_limit": limit,
                "export_columns": KEYWORD_DETAIL_COLUMNS,
            },
        )

    async def get_keyword_difficulty(
        self, keywords: List[str], database: str
    ) -> List[Dict[str, str]]:
        return await self._request(
            "phrase_kdi",
            {
                "phrase": ";".join(keywords),
                "database": database,
                "export_columns": KEYWORD_DIFFICULTY_COLUMNS,
            },
        )

    async def get_domain_organic_keywords(
        self, domain: str, database: str, limit: int
    ) -> List[Dict[str, str]]:
        return await self._request(
            "domain_organic",
            {
                "domain": domain,
                "database": database,
                "display_limit": limit,
                "export_columns": DOMAIN_ORGANIC_COLUMNS,
            },
        )

    async def get_domain_paid_keywords(
        self, domain: str, database: str, limit: int
    ) -> List[Dict[str, str]]:
        return await self._request(
            "domain_adwords",
            {
                "domain": domain,
                "database": database,
                "display_limit": limit,
                "export_columns": DOMAIN_PAID_COLUMNS,
            },
        )
