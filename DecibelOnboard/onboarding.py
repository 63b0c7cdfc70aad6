"""Onboarding steps: fund, create subaccount, mint, deposit, place an order.

Each step takes its collaborators explicitly (chain client, REST client,
settings store, pollers) so the steps can run against fakes.
"""
import logging
import time
from typing import Optional

from .address_deriver import USDC_METADATA_SEED, addresses_equal, derive_object_address
from .chain_client import OCTAS_PER_APT
from .confirmation_poller import ConfirmationPoller
from .config_loader import SettingsStore
from .decibel_models import (
    DepositResult,
    FundingResult,
    ListingResponse,
    PlacedOrder,
    ResolvedIdentifier,
    TimeInForce,
)
from .exceptions import InvalidInputError
from .faucet import DEFAULT_FAUCET_AMOUNT, fund_from_faucet
from .market_info import find_market
from .quantity_normalizer import normalize_order, usdc_to_chain_units
from .reconciliation import ReconciliationEngine, build_subaccount_hints

logger = logging.getLogger(__name__)


def new_client_order_id() -> str:
    """Client order id used to look the order up later."""
    return f"order-{int(time.time() * 1000)}"


def collateral_metadata_address(package_address: str) -> str:
    """Address of the USDC metadata object, derived from the package address."""
    return derive_object_address(package_address, USDC_METADATA_SEED)


async def wait_for_balance_increase(chain, previous_balance: int, poller: ConfirmationPoller) -> Optional[int]:
    """Poll the wallet balance until it exceeds ``previous_balance``.

    Returns:
        The last balance observed, or None if no read succeeded
    """
    balance = await poller.poll(chain.get_apt_balance, lambda b: b > previous_balance)
    if not poller.satisfied:
        logger.warning(
            f"Balance has not increased after {poller.max_attempts} checks, "
            f"the faucet transfer may need more time"
        )
    return balance


async def fund_wallet(
    chain,
    faucet_url: str,
    poller: ConfirmationPoller,
    threshold_octas: int = OCTAS_PER_APT,
    amount: int = DEFAULT_FAUCET_AMOUNT,
) -> FundingResult:
    """Top up the API wallet with gas unless it already holds ``threshold_octas``."""
    try:
        balance_before = await chain.get_apt_balance()
    except Exception as e:
        # New accounts may not be readable yet, request funds anyway
        logger.warning(f"Could not fetch balance (account may not exist yet): {e}")
        balance_before = 0
    logger.info(f"Current balance: {balance_before / OCTAS_PER_APT:.4f} APT")

    if balance_before >= threshold_octas:
        logger.info("Balance sufficient, skipping faucet request")
        return FundingResult(skipped=True, balance_before=balance_before, balance_after=balance_before, confirmed=True)

    await fund_from_faucet(faucet_url, chain.address, amount)
    balance_after = await wait_for_balance_increase(chain, balance_before, poller)

    return FundingResult(
        skipped=False,
        balance_before=balance_before,
        balance_after=balance_after,
        confirmed=poller.satisfied,
    )


async def create_and_resolve_subaccount(
    chain,
    rest,
    store: SettingsStore,
    engine: ReconciliationEngine,
) -> ResolvedIdentifier:
    """Create a trading subaccount and persist its resolved address.

    The transaction is confirmed before reconciliation starts, so indexer
    trouble only lowers the confidence tag and never fails the step.
    """
    tx_hash = await chain.create_subaccount()
    await chain.wait_for_transaction(tx_hash)

    events = await chain.get_transaction_events(tx_hash)
    hints = build_subaccount_hints(chain.address, events)
    logger.info(
        f"Subaccount candidates: event={hints.event_candidate or '(none)'}, "
        f"calculated={hints.calculated_candidate}"
    )

    async def list_owned() -> ListingResponse:
        return await rest.list_subaccounts(chain.address)

    resolved = await engine.resolve(hints, list_owned)
    store.write("subaccount_address", resolved.value)
    logger.info(f"Resolved subaccount {resolved.value} ({resolved.source.value})")
    return resolved


async def mint_collateral(chain, amount: float, restricted: bool = False) -> str:
    """Mint testnet USDC to the API wallet and wait for it."""
    chain_amount = usdc_to_chain_units(amount)
    if chain_amount <= 0:
        raise InvalidInputError(f"Mint amount must be positive, got {amount}")

    tx_hash = await chain.mint_usdc(chain_amount, restricted=restricted)
    await chain.wait_for_transaction(tx_hash)
    return tx_hash


async def deposit_collateral(
    chain,
    rest,
    store: SettingsStore,
    amount: float,
    poller: ConfirmationPoller,
) -> DepositResult:
    """Deposit USDC from the API wallet into the configured subaccount.

    The indexer check afterwards is advisory: a missing listing is logged
    and reported as ``subaccount_record=None``.
    """
    subaccount = store.require("subaccount_address")
    chain_amount = usdc_to_chain_units(amount)
    if chain_amount <= 0:
        raise InvalidInputError(f"Deposit amount must be positive, got {amount}")

    metadata = collateral_metadata_address(store.settings.package_address)
    logger.info(f"USDC metadata address: {metadata}")

    tx_hash = await chain.deposit_to_subaccount(subaccount, metadata, chain_amount)
    await chain.wait_for_transaction(tx_hash)

    def lists_subaccount(response: ListingResponse) -> bool:
        return response.ok and any(addresses_equal(r.subaccount_address, subaccount) for r in response.records)

    async def list_owned() -> ListingResponse:
        return await rest.list_subaccounts(chain.address)

    response = await poller.poll(list_owned, lists_subaccount)
    record = None
    if poller.satisfied:
        record = next(r for r in response.records if addresses_equal(r.subaccount_address, subaccount))
    else:
        logger.warning(f"Could not confirm subaccount {subaccount} with the indexer (not critical)")

    return DepositResult(
        tx_hash=tx_hash,
        subaccount=subaccount,
        asset_metadata=metadata,
        chain_amount=chain_amount,
        subaccount_record=record,
    )


async def place_limit_order(
    chain,
    rest,
    store: SettingsStore,
    price: float,
    size: float,
    is_buy: bool,
    market_name: Optional[str] = None,
    time_in_force: TimeInForce = TimeInForce.GTC,
) -> PlacedOrder:
    """Normalize and place a limit order on the configured subaccount."""
    subaccount = store.require("subaccount_address")

    markets = await rest.get_markets()
    market = find_market(markets, market_name or store.settings.market_name)

    params = normalize_order(price, size, market)
    if params.chain_size == 0:
        raise InvalidInputError("Order size must be positive")

    client_order_id = new_client_order_id()
    tx_hash = await chain.place_order(
        subaccount=subaccount,
        market_address=market.market_addr,
        chain_price=params.chain_price,
        chain_size=params.chain_size,
        is_buy=is_buy,
        client_order_id=client_order_id,
        time_in_force=time_in_force,
    )
    await chain.wait_for_transaction(tx_hash)

    return PlacedOrder(
        tx_hash=tx_hash,
        client_order_id=client_order_id,
        market=market,
        is_buy=is_buy,
        params=params,
    )
