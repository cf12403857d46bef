"""GoDaddy registrar API adapter (migration source)."""

import json
from typing import Any

import httpx

from ..constants import GODADDY, GODADDY_BASE_URL, RESOURCE_LOCK_MARKER, RESOURCE_LOCK_STATUS
from ..core.exceptions import ProviderError, ProviderHttpError, ResourceLockError
from ..core.rate_limiter import SlidingWindowRateLimiter
from ..models.godaddy import GoDaddyCredentials, GoDaddyDnsRecord, GoDaddyDomain
from ..utils import assert_valid_domain
from .base import BaseProviderClient

# Defaults sit below GoDaddy's published 60 requests/minute
DEFAULT_RATE_LIMIT = 55
DEFAULT_RATE_WINDOW = 60.0

RESOURCE_LOCK_MAX_RETRIES = 4
RESOURCE_LOCK_BASE_DELAY = 5.0


def is_resource_lock(status_code: int, body: str) -> bool:
    """Whether a response is GoDaddy's transient per-domain mutation lock."""
    return status_code == RESOURCE_LOCK_STATUS and RESOURCE_LOCK_MARKER in body


class GoDaddyClient(BaseProviderClient):
    """Typed wrapper around the GoDaddy v1 domains API.

    Mutating calls retry the transient resource lock with linear backoff;
    reads only pass through the rate limiter.
    """

    provider_name = GODADDY
    base_url = GODADDY_BASE_URL

    def __init__(
        self,
        credentials: GoDaddyCredentials,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        lock_max_retries: int = RESOURCE_LOCK_MAX_RETRIES,
        lock_base_delay: float = RESOURCE_LOCK_BASE_DELAY,
    ):
        super().__init__(
            rate_limiter
            or SlidingWindowRateLimiter(DEFAULT_RATE_LIMIT, DEFAULT_RATE_WINDOW, name=GODADDY),
            http_client=http_client,
            timeout=timeout,
        )
        self.credentials = credentials
        self.lock_max_retries = lock_max_retries
        self.lock_base_delay = lock_base_delay

    def auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"sso-key {self.credentials.api_key}:{self.credentials.api_secret}"
        }

    def _error(self, response: httpx.Response) -> ProviderHttpError:
        body = response.text
        error_cls = (
            ResourceLockError
            if is_resource_lock(response.status_code, body)
            else ProviderHttpError
        )
        return error_cls(
            f"GoDaddy API error {response.status_code}: {body}",
            GODADDY,
            status_code=response.status_code,
            body=body,
        )

    async def _request(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET a JSON document."""
        response = await self._send("GET", path, params=params)
        if not response.is_success:
            raise self._error(response)
        return self._decode_json(response)

    async def _request_text(self, path: str) -> str:
        response = await self._send("GET", path)
        if not response.is_success:
            raise self._error(response)
        return response.text

    async def _mutate(self, method: str, path: str, json_body: Any = None) -> None:
        """Issue a mutating call, retrying the resource lock with linear backoff.

        The delay before retry ``n`` is ``lock_base_delay * n``.

        Raises:
            ResourceLockError: If the lock persists past ``lock_max_retries``
            ProviderHttpError: On any other non-2xx response
        """
        attempt = 0
        while True:
            attempt += 1
            response = await self._send(method, path, json_body=json_body)
            if response.is_success:
                return

            error = self._error(response)
            if isinstance(error, ResourceLockError) and attempt <= self.lock_max_retries:
                delay = self.lock_base_delay * attempt
                self.logger.warning(
                    "GoDaddy resource lock, retrying",
                    path=path,
                    attempt=attempt,
                    delay_seconds=delay,
                )
                await self._sleep(delay)
                continue
            raise error

    async def list_domains(self) -> list[GoDaddyDomain]:
        """List active domains in the account."""
        data = await self._request("/v1/domains", params={"limit": 1000, "statuses": "ACTIVE"})
        return self._validate(list[GoDaddyDomain], data)

    async def get_domain_detail(self, domain: str) -> GoDaddyDomain:
        assert_valid_domain(domain)
        data = await self._request(f"/v1/domains/{domain}")
        return self._validate(GoDaddyDomain, data)

    async def get_dns_records(self, domain: str) -> list[GoDaddyDnsRecord]:
        assert_valid_domain(domain)
        data = await self._request(f"/v1/domains/{domain}/records")
        return self._validate(list[GoDaddyDnsRecord], data)

    async def remove_privacy(self, domain: str) -> None:
        assert_valid_domain(domain)
        await self._mutate("DELETE", f"/v1/domains/{domain}/privacy")

    async def prepare_for_transfer(self, domain: str) -> None:
        """Unlock the domain and disable auto-renew.

        If the combined update is rejected for a reason other than the
        resource lock, retry with only the unlock field.
        """
        assert_valid_domain(domain)
        path = f"/v1/domains/{domain}"
        try:
            await self._mutate("PATCH", path, {"locked": False, "renewAuto": False})
        except ResourceLockError:
            raise
        except ProviderHttpError as e:
            if RESOURCE_LOCK_MARKER in e.body:
                raise
            self.logger.warning(
                "Combined unlock rejected, retrying unlock only",
                domain=domain,
                status=e.status_code,
            )
            await self._mutate("PATCH", path, {"locked": False})

    async def get_auth_code(self, domain: str) -> str:
        """Fetch the transfer auth code.

        The dedicated endpoint is not available for every TLD; on 404 fall
        back to the code embedded in the domain detail.
        """
        assert_valid_domain(domain)
        try:
            text = await self._request_text(f"/v1/domains/{domain}/transferAuthCode")
        except ProviderHttpError as e:
            if e.status_code != 404:
                raise
            text = ""

        code = _parse_auth_code(text)
        if code:
            return code

        self.logger.info("Auth code endpoint unavailable, reading domain detail", domain=domain)
        detail = await self.get_domain_detail(domain)
        if detail.auth_code:
            return detail.auth_code
        raise ProviderHttpError(
            f"GoDaddy has no auth code available for {domain}. Check the GoDaddy dashboard.",
            GODADDY,
            status_code=404,
        )

    async def update_nameservers(self, domain: str, nameservers: list[str]) -> None:
        assert_valid_domain(domain)
        await self._mutate("PATCH", f"/v1/domains/{domain}", {"nameServers": nameservers})

    async def verify_credentials(self) -> bool:
        try:
            await self._request("/v1/domains", params={"limit": 1})
        except ProviderError as e:
            self.logger.warning("GoDaddy credential check failed", error=str(e))
            return False
        return True


def _parse_auth_code(text: str) -> str:
    """Accept a plain string, a JSON string, or a JSON array of strings."""
    text = text.strip()
    if not text:
        return ""
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError:
        parsed = None

    if isinstance(parsed, str):
        return parsed
    if isinstance(parsed, list) and parsed and isinstance(parsed[0], str):
        return parsed[0]
    return text.strip('"')
