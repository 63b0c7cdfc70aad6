"""Exception types raised by the Decibel onboarding toolkit."""
from typing import Optional


class DecibelError(Exception):
    """Base class for all onboarding errors."""


class ConfigurationError(DecibelError):
    """Missing or malformed settings. Fatal, never retried."""


class InvalidInputError(DecibelError):
    """Input that cannot be turned into a correct on-chain value."""


class IndexerUnavailableError(DecibelError):
    """The indexing API answered with a non-OK status."""

    def __init__(self, status: int, message: str = ""):
        self.status = status
        super().__init__(message or f"Indexer returned HTTP {status}")


class ApiRequestError(DecibelError):
    """A REST request outside of a polling loop failed."""

    def __init__(self, status: int, url: str, body: Optional[str] = None):
        self.status = status
        self.url = url
        self.body = body
        super().__init__(f"API returned {status} for {url}")


class FaucetError(DecibelError):
    """The faucet rejected a funding request."""


class TransactionFailedError(DecibelError):
    """A submitted transaction was committed but did not succeed."""

    def __init__(self, tx_hash: str, vm_status: str = ""):
        self.tx_hash = tx_hash
        self.vm_status = vm_status
        super().__init__(f"Transaction {tx_hash} failed: {vm_status or 'unknown status'}")


class TransactionTimeoutError(DecibelError):
    """A submitted transaction was not confirmed in time. It may still commit."""

    def __init__(self, tx_hash: str):
        self.tx_hash = tx_hash
        super().__init__(f"Transaction {tx_hash} was not confirmed in time, it may still succeed")
