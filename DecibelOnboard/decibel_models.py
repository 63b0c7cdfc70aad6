"""Decibel-specific data models for onboarding and order placement."""
import msgspec
from typing import Optional, Dict, List, Any, Union
from enum import Enum

from .exceptions import InvalidInputError


class MarketSpec(msgspec.Struct, frozen=True):
    """One tradable instrument as listed by the markets endpoint.

    Grid sizes are integers in chain units. Field names on the wire follow
    the REST API (``px_decimals``, ``sz_decimals``).
    """
    market_name: str
    market_addr: str
    price_decimals: int = msgspec.field(name="px_decimals")
    size_decimals: int = msgspec.field(name="sz_decimals")
    tick_size: int
    lot_size: int
    min_size: int
    max_leverage: Optional[float] = None

    def __post_init__(self):
        if self.tick_size <= 0 or self.lot_size <= 0:
            raise InvalidInputError(
                f"Market {self.market_name}: tick_size and lot_size must be positive "
                f"(got {self.tick_size}, {self.lot_size})"
            )
        if self.price_decimals < 0 or self.size_decimals < 0:
            raise InvalidInputError(
                f"Market {self.market_name}: decimal exponents must be non-negative"
            )
        if self.min_size < 0:
            raise InvalidInputError(f"Market {self.market_name}: min_size must be non-negative")

    @property
    def min_size_human(self) -> float:
        """Minimum order size in human units."""
        return self.min_size / (10 ** self.size_decimals)


class NormalizedOrderParams(msgspec.Struct, frozen=True):
    """Grid-aligned order parameters ready for transaction construction."""
    human_price: float
    human_size: float
    chain_price: int
    chain_size: int
    size_clamped: bool = False


class IdentifierSource(str, Enum):
    """Where a resolved identifier was trusted from.

    EVENT_UNVERIFIED means the indexer answered without listing the event
    address; EVENT_EXTRACTED means the indexer never answered.
    """
    API_VERIFIED = "ApiVerified"
    EVENT_UNVERIFIED = "EventUnverified"
    EVENT_EXTRACTED = "EventExtracted"
    CALCULATED = "Calculated"


class ResolvedIdentifier(msgspec.Struct, frozen=True):
    """Canonical identifier of an entity created by a transaction."""
    value: str
    source: IdentifierSource
    attempts: int = 0

    @property
    def is_verified(self) -> bool:
        return self.source == IdentifierSource.API_VERIFIED


class CreatedEntityHints(msgspec.Struct, frozen=True):
    """Candidates known before the indexer is consulted."""
    owner_address: str
    calculated_candidate: str
    event_candidate: Optional[str] = None


class PollOutcome(str, Enum):
    """Result of a single polling attempt."""
    SUCCESS = "Success"
    EMPTY_RESULT = "EmptyResult"
    TRANSIENT_ERROR = "TransientError"


class PollAttempt(msgspec.Struct, frozen=True):
    """Bookkeeping for one attempt of a bounded polling loop."""
    attempt_number: int
    delay_before_attempt: float
    outcome: PollOutcome
    error: Optional[str] = None


class SubaccountRecord(msgspec.Struct):
    """Entry returned by the subaccount listing endpoint."""
    subaccount_address: str
    primary_account_address: Optional[str] = None
    is_primary: bool = False
    is_active: bool = True
    custom_label: Optional[str] = None


class ListingResponse(msgspec.Struct):
    """Indexed-listing lookup result. ``ok`` is False for non-2xx answers."""
    ok: bool
    status: int
    records: List[SubaccountRecord] = []


class TransactionEvent(msgspec.Struct):
    """Event emitted by a committed transaction."""
    type: str
    data: Dict[str, Any] = {}
    sequence_number: Optional[str] = None


class OrderDetails(msgspec.Struct):
    """Order fields reported by the orders endpoint and the order stream."""
    market: Optional[str] = None
    client_order_id: Optional[str] = None
    order_id: Optional[Union[int, str]] = None
    order_type: Optional[str] = None
    order_direction: Optional[str] = None
    is_buy: Optional[bool] = None
    price: Optional[float] = None
    orig_size: Optional[float] = None
    remaining_size: Optional[float] = None
    is_reduce_only: Optional[bool] = None
    transaction_version: Optional[Union[int, str]] = None
    unix_ms: Optional[int] = None

    @property
    def filled_size(self) -> Optional[float]:
        if self.orig_size is None or self.remaining_size is None:
            return None
        return self.orig_size - self.remaining_size


class OrderStatusResponse(msgspec.Struct):
    """Order status with optional details."""
    status: str
    details: Optional[str] = None
    order: Optional[OrderDetails] = None


class TimeInForce(int, Enum):
    """Time in force codes accepted by ``place_order_to_subaccount``."""
    GTC = 0
    POST_ONLY = 1
    IOC = 2


class DecibelSettings(msgspec.Struct):
    """Settings for one onboarding run."""
    package_address: str = "0xb8a5788314451ce4d2fbbad32e1bad88d4184b73943b7fe5166eab93cf1a5a95"
    fullnode_url: str = "https://api.netna.staging.aptoslabs.com/v1"
    api_wallet_address: str = ""
    api_wallet_private_key: str = ""
    rest_api_base_url: str = "https://api.netna.aptoslabs.com/decibel"
    websocket_url: str = "wss://api.netna.aptoslabs.com/decibel/ws"
    faucet_url: str = "https://faucet-dev-netna-us-central1-410192433417.us-central1.run.app"
    api_bearer_token: str = ""
    subaccount_address: str = ""
    market_address: str = ""
    market_name: str = "BTC-PERP"
    poll_max_attempts: int = 5
    poll_base_delay: float = 2.0


class FundingResult(msgspec.Struct, frozen=True):
    """Outcome of a faucet funding run. Balances are in octas."""
    skipped: bool
    balance_before: int
    balance_after: Optional[int] = None
    confirmed: bool = False


class DepositResult(msgspec.Struct, frozen=True):
    """Outcome of a collateral deposit."""
    tx_hash: str
    subaccount: str
    asset_metadata: str
    chain_amount: int
    subaccount_record: Optional[SubaccountRecord] = None


class PlacedOrder(msgspec.Struct, frozen=True):
    """An order accepted on chain."""
    tx_hash: str
    client_order_id: str
    market: MarketSpec
    is_buy: bool
    params: NormalizedOrderParams
