"""Cloudflare API data models."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .enums import CloudflareAuthType


class CloudflareZone(BaseModel):
    """Zone as returned by the Cloudflare zones endpoints."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    status: str
    name_servers: list[str] | None = None


class CloudflareDnsRecord(BaseModel):
    """DNS record in Cloudflare's shape; ``id`` is only set on responses."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    type: str
    name: str
    content: str
    ttl: int
    proxied: bool | None = None
    priority: int | None = None
    data: dict[str, Any] | None = None

    def to_payload(self) -> dict[str, Any]:
        """Request body for record creation."""
        return self.model_dump(exclude={"id"}, exclude_none=True)


class SrvData(BaseModel):
    """Structured SRV target."""

    priority: int
    weight: int
    port: int
    target: str
    service: str
    proto: str
    name: str


class CaaData(BaseModel):
    """Structured CAA flag/tag/value."""

    flags: int
    tag: str
    value: str


class CloudflareApiMessage(BaseModel):
    code: int
    message: str


class CloudflareEnvelope(BaseModel):
    """Standard ``{success, errors, result}`` response wrapper."""

    model_config = ConfigDict(extra="ignore")

    success: bool
    errors: list[CloudflareApiMessage] = Field(default_factory=list)
    result: Any = None


class AuthCodeCheck(BaseModel):
    model_config = ConfigDict(extra="ignore")

    message: str = ""


class TransferResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    name: str = ""
    message: str = ""


class RegistrantContact(BaseModel):
    """ICANN registrant contact required to complete a registrar transfer."""

    first_name: str
    last_name: str
    organization: str = ""
    address: str
    address2: str = ""
    city: str
    state: str
    zip: str
    country: str
    phone: str
    email: str


class CloudflareCredentials(BaseModel):
    """Scoped API token or global API key credentials.

    Only global API keys can drive registrar transfers; scoped tokens are
    limited to zone and DNS management.
    """

    auth_type: CloudflareAuthType = "token"
    account_id: str
    api_token: str | None = Field(default=None, repr=False)
    api_key: str | None = Field(default=None, repr=False)
    email: str | None = None

    @model_validator(mode="after")
    def _check_auth_fields(self) -> "CloudflareCredentials":
        if self.auth_type == "token" and not self.api_token:
            raise ValueError("api_token is required for token authentication")
        if self.auth_type == "global-key" and not (self.api_key and self.email):
            raise ValueError("api_key and email are required for global-key authentication")
        return self

    @property
    def transfer_capable(self) -> bool:
        return self.auth_type == "global-key"
