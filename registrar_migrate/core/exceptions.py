"""Core exceptions for registrar migration operations."""


class RegistrarMigrateError(Exception):
    """Base exception for registrar migration operations."""


class ValidationError(RegistrarMigrateError):
    """Domain name or record rejected before any request was made."""


class ConfigurationError(RegistrarMigrateError):
    """Configuration validation or loading failed."""


class ProviderError(RegistrarMigrateError):
    """Base exception for failures reported by a provider adapter."""

    def __init__(self, message: str, provider: str):
        super().__init__(message)
        self.provider = provider


class ProviderHttpError(ProviderError):
    """Provider answered with a non-2xx response or an unsuccessful envelope."""

    def __init__(self, message: str, provider: str, status_code: int, body: str = ""):
        super().__init__(message, provider)
        self.status_code = status_code
        self.body = body


class ResourceLockError(ProviderHttpError):
    """Source provider is still processing a previous mutation on the domain.

    Retried inside the adapter; only raised once the retry budget is spent.
    """


class SchemaError(ProviderError):
    """Provider response did not match the expected shape."""


class PollTimeoutError(ProviderError, TimeoutError):
    """Polling for an asynchronous provider state exceeded its budget."""


class TransferIneligibleError(RegistrarMigrateError):
    """Domain rejected by preflight checks; never attempted."""

    def __init__(self, domain: str, reasons: list[str]):
        super().__init__(f"{domain} is not eligible for transfer: {'; '.join(reasons)}")
        self.domain = domain
        self.reasons = reasons


class StoreError(RegistrarMigrateError):
    """Migration store operation failed."""


class StoreCorruptionError(StoreError):
    """Persisted migration state could not be decoded."""
