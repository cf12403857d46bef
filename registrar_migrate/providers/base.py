"""Abstract base class for provider API adapters."""

import asyncio
import json
from abc import ABC, abstractmethod
from typing import Any, TypeVar

import httpx
import structlog
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from ..core.exceptions import ProviderHttpError, SchemaError
from ..core.rate_limiter import SlidingWindowRateLimiter

logger = structlog.get_logger()

T = TypeVar("T")


class BaseProviderClient(ABC):
    """Shared request plumbing: rate limiting, auth headers, shape validation."""

    provider_name: str = "provider"
    base_url: str = ""

    def __init__(
        self,
        rate_limiter: SlidingWindowRateLimiter,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ):
        self.logger = logger.bind(component=self.__class__.__name__.lower())
        self.rate_limiter = rate_limiter
        self.timeout = timeout
        self._client = http_client
        self._owns_client = http_client is None

    @abstractmethod
    def auth_headers(self) -> dict[str, str]:
        """Authentication headers for every request."""

    @abstractmethod
    async def verify_credentials(self) -> bool:
        """Check that the configured credentials are accepted."""

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=httpx.Timeout(self.timeout, connect=10.0))
        return self._client

    async def aclose(self) -> None:
        """Close the underlying HTTP client if this adapter created it."""
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _send(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Send one request after acquiring a rate limiter slot."""
        await self.rate_limiter.acquire()

        headers = {**self.auth_headers(), "Accept": "application/json"}
        if json_body is not None:
            headers["Content-Type"] = "application/json"

        self.logger.debug("Provider request", method=method, path=path)
        try:
            response = await self._get_client().request(
                method,
                f"{self.base_url}{path}",
                json=json_body,
                params=params,
                headers=headers,
            )
        except httpx.HTTPError as e:
            raise ProviderHttpError(
                f"{self.provider_name} request failed: {e}",
                self.provider_name,
                status_code=0,
            ) from e

        self.logger.debug(
            "Provider response", method=method, path=path, status=response.status_code
        )
        return response

    def _decode_json(self, response: httpx.Response) -> Any:
        """Decode a JSON body, treating empty or malformed bodies as shape errors."""
        text = response.text
        if not text:
            raise SchemaError(
                f"{self.provider_name} returned an empty body where JSON was expected",
                self.provider_name,
            )
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise SchemaError(
                f"{self.provider_name} returned invalid JSON: {e}", self.provider_name
            ) from e

    def _validate(self, schema: type[T] | Any, payload: Any) -> T:
        """Check a payload against the expected shape.

        Args:
            schema: Model class or typing construct such as ``list[Model]``
            payload: Decoded JSON

        Raises:
            SchemaError: If the payload does not match
        """
        try:
            return TypeAdapter(schema).validate_python(payload)
        except PydanticValidationError as e:
            raise SchemaError(
                f"{self.provider_name} response did not match expected shape: {e}",
                self.provider_name,
            ) from e

    async def _sleep(self, seconds: float) -> None:
        """Suspend between retries and polls."""
        await asyncio.sleep(seconds)
