"""GoDaddy API data models."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class GoDaddyDomain(BaseModel):
    """Domain as returned by the GoDaddy domains endpoints."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    domain: str
    domain_id: int = Field(alias="domainId")
    status: str
    expires: str | None = None
    expiration_protected: bool | None = Field(default=None, alias="expirationProtected")
    hold_registrar: bool | None = Field(default=None, alias="holdRegistrar")
    locked: bool | None = None
    privacy: bool | None = None
    renew_auto: bool | None = Field(default=None, alias="renewAuto")
    renewable: bool | None = None
    transfer_protected: bool | None = Field(default=None, alias="transferProtected")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    auth_code: str | None = Field(default=None, alias="authCode", repr=False)
    name_servers: list[str] | None = Field(default=None, alias="nameServers")


class GoDaddyDnsRecord(BaseModel):
    """DNS record in GoDaddy's flat shape."""

    model_config = ConfigDict(extra="ignore")

    type: str
    name: str
    data: str
    ttl: int
    priority: int | None = None
    weight: int | None = None
    port: int | None = None
    service: str | None = None
    protocol: str | None = None


class GoDaddyCredentials(BaseModel):
    """GoDaddy production API key pair."""

    api_key: str
    api_secret: str = Field(repr=False)
