"""
StarCatalog Transport Layer - HTTP Backend

Fetches listings and details from an OMDb-style JSON API over httpx.

Usage:
    transport = HttpTransport(TransportConfig(api_key="YOUR_KEY"))
    records = await transport.fetch_listing("hobbit")
    detail = await transport.fetch_detail("tt0903624")
    await transport.aclose()

The API answers ``{"Response": "False", "Error": "..."}`` for failures,
including an empty search; the latter is reported as an empty listing.
"""

import logging
from typing import Any, Dict, List, Mapping, Optional

import httpx

from ..config import TransportConfig
from ..errors import ParseFailure, TransportFailure
from .base import Transport

logger = logging.getLogger(__name__)

NOT_FOUND_ERRORS = ("movie not found!", "not found")


class HttpTransport(Transport):
    """
    httpx-backed catalog transport.

    Config:
        base_url: API endpoint
        api_key: Sent as ``apikey`` when set
        timeout: Request timeout in seconds
        listing_param / detail_param: Query parameter names for term and id
        listing_key: Key of the record list inside a listing response
        extra_detail_params: Extra query parameters for detail requests
    """

    def __init__(self, config: Optional[TransportConfig] = None, client: Optional[httpx.AsyncClient] = None):
        """
        Initialize the transport.

        Args:
            config: Transport configuration
            client: Optional pre-built client (mock injection for tests)
        """
        self.config = config or TransportConfig()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=self.config.timeout)

    async def fetch_listing(self, term: str) -> List[Dict[str, Any]]:
        payload = await self._get({self.config.listing_param: term})

        if self._is_api_error(payload):
            message = str(payload.get("Error", "unknown error"))
            if message.lower() in NOT_FOUND_ERRORS:
                logger.debug(f"No listing results for '{term}'")
                return []
            raise TransportFailure(f"Listing for '{term}' rejected: {message}")

        records = payload.get(self.config.listing_key)
        if not isinstance(records, list):
            raise ParseFailure(f"Listing response has no '{self.config.listing_key}' list")
        return records

    async def fetch_detail(self, entity_id: str) -> Dict[str, Any]:
        params = {self.config.detail_param: entity_id, **self.config.extra_detail_params}
        payload = await self._get(params)

        if self._is_api_error(payload):
            raise TransportFailure(
                f"Detail for {entity_id} rejected: {payload.get('Error', 'unknown error')}"
            )
        return payload

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _get(self, params: Dict[str, str]) -> Dict[str, Any]:
        if self.config.api_key:
            params = {**params, "apikey": self.config.api_key}

        try:
            response = await self._client.get(self.config.base_url, params=params)
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            raise TransportFailure(f"HTTP {e.response.status_code} from {self.config.base_url}", cause=e)
        except httpx.HTTPError as e:
            raise TransportFailure(f"Request to {self.config.base_url} failed: {e}", cause=e)

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseFailure("Response body is not valid JSON", cause=e)

        if not isinstance(payload, dict):
            raise ParseFailure(f"Expected a JSON object, got {type(payload).__name__}")
        return payload

    @staticmethod
    def _is_api_error(payload: Mapping[str, Any]) -> bool:
        return str(payload.get("Response", "True")).lower() == "false"
