"""Async client for the Decibel REST API (markets, subaccounts, orders)."""
import logging
from typing import Any, Dict, List, Optional

import aiohttp
import msgspec

from .decibel_models import ListingResponse, MarketSpec, OrderStatusResponse, SubaccountRecord
from .exceptions import ApiRequestError

logger = logging.getLogger(__name__)


class DecibelRestClient:
    """Thin wrapper over the indexed REST API.

    Use as an async context manager so the HTTP session is closed::

        async with DecibelRestClient(base_url) as rest:
            markets = await rest.get_markets()
    """

    def __init__(
        self,
        base_url: str,
        bearer_token: Optional[str] = None,
        session: Optional[aiohttp.ClientSession] = None,
        timeout: float = 10.0,
    ):
        """Initialize the REST client.

        Args:
            base_url: API base URL (e.g., https://api.netna.aptoslabs.com/decibel)
            bearer_token: Optional token sent as ``Authorization: Bearer``
            session: Existing session to reuse; it is not closed by this client
            timeout: Total request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.bearer_token = bearer_token
        self._session = session
        self._owns_session = session is None
        self._timeout = aiohttp.ClientTimeout(total=timeout)

    async def __aenter__(self) -> "DecibelRestClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/json"}
        if self.bearer_token:
            headers["Authorization"] = f"Bearer {self.bearer_token}"
        return headers

    def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(headers=self.headers, timeout=self._timeout)
            self._owns_session = True
        return self._session

    async def close(self) -> None:
        if self._owns_session and self._session is not None and not self._session.closed:
            await self._session.close()

    async def _get_json(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        url = f"{self.base_url}{path}"
        session = self._get_session()
        async with session.get(url, params=params) as response:
            if response.status != 200:
                body = await response.text()
                logger.error(f"GET {url} failed: HTTP {response.status}")
                raise ApiRequestError(response.status, url, body)
            return await response.json(content_type=None)

    async def get_markets(self) -> List[MarketSpec]:
        """Fetch the current market list. Never cached, markets may change between runs."""
        data = await self._get_json("/api/v1/markets")
        markets = msgspec.convert(data, List[MarketSpec], strict=False)
        logger.info(f"Loaded {len(markets)} markets from API")
        return markets

    async def list_subaccounts(self, owner_address: str) -> ListingResponse:
        """List the subaccounts the indexer knows for ``owner_address``.

        Non-OK answers are returned with ``ok=False`` instead of raising, so
        a lagging indexer can be polled. Network errors propagate.
        """
        url = f"{self.base_url}/api/v1/subaccounts"
        session = self._get_session()
        async with session.get(url, params={"owner": owner_address}) as response:
            if response.status != 200:
                logger.debug(f"Subaccount listing returned HTTP {response.status}")
                return ListingResponse(ok=False, status=response.status)

            data = await response.json(content_type=None)
            records = msgspec.convert(data or [], List[SubaccountRecord], strict=False)
            logger.debug(f"Indexer lists {len(records)} subaccount(s) for {owner_address}")
            return ListingResponse(ok=True, status=response.status, records=records)

    async def get_order(
        self, market_address: str, user_address: str, client_order_id: str
    ) -> OrderStatusResponse:
        """Query one order by its client order id.

        Raises:
            ApiRequestError: on any non-OK answer, including 404 for orders
                that are unknown or not indexed yet
        """
        data = await self._get_json(
            "/api/v1/orders",
            params={
                "market_address": market_address,
                "user_address": user_address,
                "client_order_id": client_order_id,
            },
        )
        return msgspec.convert(data, OrderStatusResponse, strict=False)
