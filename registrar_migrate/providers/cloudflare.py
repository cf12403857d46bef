"""Cloudflare API adapter (migration destination: DNS zone and registrar)."""

import base64
import time
from typing import Any

import httpx

from ..constants import CLOUDFLARE, CLOUDFLARE_BASE_URL, ZONE_ACTIVE_STATUS
from ..core.exceptions import PollTimeoutError, ProviderError, ProviderHttpError
from ..core.rate_limiter import SlidingWindowRateLimiter
from ..models.cloudflare import (
    AuthCodeCheck,
    CloudflareCredentials,
    CloudflareDnsRecord,
    CloudflareEnvelope,
    CloudflareZone,
    RegistrantContact,
    TransferResponse,
)
from ..utils import assert_valid_domain
from .base import BaseProviderClient

# Defaults sit below Cloudflare's published 1200 requests/5 minutes
DEFAULT_RATE_LIMIT = 1100
DEFAULT_RATE_WINDOW = 300.0

ZONE_POLL_INTERVAL = 10.0
ZONE_ACTIVATION_TIMEOUT = 300.0


def _encode_auth_code(auth_code: str) -> str:
    return base64.b64encode(auth_code.encode("utf-8")).decode("ascii")


class CloudflareClient(BaseProviderClient):
    """Typed wrapper around the Cloudflare v4 API."""

    provider_name = CLOUDFLARE
    base_url = CLOUDFLARE_BASE_URL

    def __init__(
        self,
        credentials: CloudflareCredentials,
        rate_limiter: SlidingWindowRateLimiter | None = None,
        http_client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        zone_poll_interval: float = ZONE_POLL_INTERVAL,
        zone_activation_timeout: float = ZONE_ACTIVATION_TIMEOUT,
    ):
        super().__init__(
            rate_limiter
            or SlidingWindowRateLimiter(DEFAULT_RATE_LIMIT, DEFAULT_RATE_WINDOW, name=CLOUDFLARE),
            http_client=http_client,
            timeout=timeout,
        )
        self.credentials = credentials
        self.zone_poll_interval = zone_poll_interval
        self.zone_activation_timeout = zone_activation_timeout

    def auth_headers(self) -> dict[str, str]:
        if self.credentials.auth_type == "global-key":
            return {
                "X-Auth-Key": self.credentials.api_key or "",
                "X-Auth-Email": self.credentials.email or "",
            }
        return {"Authorization": f"Bearer {self.credentials.api_token}"}

    async def _request(
        self,
        method: str,
        path: str,
        *,
        json_body: Any = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a request and unwrap the ``result`` of a successful envelope."""
        response = await self._send(method, path, json_body=json_body, params=params)
        body = response.text
        if not response.is_success:
            raise ProviderHttpError(
                f"Cloudflare API error {response.status_code}: {body}",
                CLOUDFLARE,
                status_code=response.status_code,
                body=body,
            )

        envelope = self._validate(CloudflareEnvelope, self._decode_json(response))
        if not envelope.success:
            details = ", ".join(f"{e.code}: {e.message}" for e in envelope.errors)
            raise ProviderHttpError(
                f"Cloudflare API error: {details or 'request unsuccessful'}",
                CLOUDFLARE,
                status_code=response.status_code,
                body=body,
            )
        return envelope.result

    async def create_zone(self, domain: str) -> CloudflareZone:
        assert_valid_domain(domain)
        data = await self._request(
            "POST",
            "/zones",
            json_body={
                "name": domain,
                "account": {"id": self.credentials.account_id},
                "jump_start": True,
                "type": "full",
            },
        )
        return self._validate(CloudflareZone, data)

    async def get_zone_by_name(self, domain: str) -> CloudflareZone | None:
        assert_valid_domain(domain)
        data = await self._request(
            "GET",
            "/zones",
            params={"name": domain, "account.id": self.credentials.account_id},
        )
        zones = self._validate(list[CloudflareZone], data)
        return zones[0] if zones else None

    async def get_zone_status(self, zone_id: str) -> CloudflareZone:
        data = await self._request("GET", f"/zones/{zone_id}")
        return self._validate(CloudflareZone, data)

    async def create_dns_record(
        self, zone_id: str, record: CloudflareDnsRecord
    ) -> CloudflareDnsRecord:
        data = await self._request(
            "POST", f"/zones/{zone_id}/dns_records", json_body=record.to_payload()
        )
        return self._validate(CloudflareDnsRecord, data)

    async def check_auth_code(self, domain: str, auth_code: str) -> AuthCodeCheck:
        assert_valid_domain(domain)
        data = await self._request(
            "POST",
            f"/accounts/{self.credentials.account_id}/registrar/domains/{domain}/check_auth",
            json_body={"auth_code": _encode_auth_code(auth_code)},
        )
        return self._validate(AuthCodeCheck, data or {})

    async def initiate_transfer(
        self,
        zone_id: str,
        domain: str,
        auth_code: str,
        contact: RegistrantContact,
    ) -> TransferResponse:
        """Submit the registrar transfer; completion happens asynchronously."""
        assert_valid_domain(domain)
        data = await self._request(
            "POST",
            f"/zones/{zone_id}/registrar/domains/{domain}/transfer",
            json_body={
                "auth_code": _encode_auth_code(auth_code),
                "auto_renew": True,
                "years": 1,
                "privacy": True,
                "import_dns": True,
                "registrant": contact.model_dump(),
                "fee_acknowledgement": {"transfer_fee": 0, "icann_fee": 0},
            },
        )
        return self._validate(TransferResponse, data or {})

    async def wait_for_zone_active(self, zone_id: str) -> CloudflareZone:
        """Poll zone status until it is active.

        Raises:
            PollTimeoutError: If the zone is not active within the activation timeout
        """
        deadline = time.monotonic() + self.zone_activation_timeout
        while time.monotonic() < deadline:
            zone = await self.get_zone_status(zone_id)
            if zone.status == ZONE_ACTIVE_STATUS:
                return zone
            self.logger.debug("Zone not active yet", zone_id=zone_id, status=zone.status)
            await self._sleep(self.zone_poll_interval)

        raise PollTimeoutError(
            f"Cloudflare zone {zone_id} did not become active within "
            f"{self.zone_activation_timeout:g}s",
            CLOUDFLARE,
        )

    async def verify_credentials(self) -> bool:
        endpoint = "/user" if self.credentials.auth_type == "global-key" else "/user/tokens/verify"
        try:
            await self._request("GET", endpoint)
        except ProviderError as e:
            self.logger.warning("Cloudflare credential check failed", error=str(e))
            return False
        return True
