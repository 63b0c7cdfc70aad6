"""
Tests for the onboarding steps, run against fake chain and REST collaborators.
"""
import asyncio
import logging
from unittest.mock import AsyncMock, patch

import pytest

from DecibelOnboard.address_deriver import derive_object_address
from DecibelOnboard.chain_client import OCTAS_PER_APT
from DecibelOnboard.confirmation_poller import ConfirmationPoller
from DecibelOnboard.decibel_models import (
    IdentifierSource,
    ListingResponse,
    SubaccountRecord,
    TimeInForce,
    TransactionEvent,
)
from DecibelOnboard.exceptions import ConfigurationError, InvalidInputError
from DecibelOnboard.faucet import DEFAULT_FAUCET_AMOUNT
from DecibelOnboard.onboarding import (
    collateral_metadata_address,
    create_and_resolve_subaccount,
    deposit_collateral,
    fund_wallet,
    mint_collateral,
    new_client_order_id,
    place_limit_order,
)
from DecibelOnboard.reconciliation import ReconciliationEngine

PACKAGE = "0xb8a5788314451ce4d2fbbad32e1bad88d4184b73943b7fe5166eab93cf1a5a95"
WALLET = "0x" + "0" * 62 + "aa"
SUBACCOUNT = "0x" + "5" * 64
FAUCET_URL = "https://faucet.example.test"


class FakeChain:
    """Records submitted transactions; balances are read in order, the last one repeats."""

    address = WALLET

    def __init__(self, balances=(0,), events=()):
        self.balances = list(balances)
        self.events = list(events)
        self.submitted = []
        self.waited = []

    async def get_apt_balance(self, address=None):
        if len(self.balances) > 1:
            return self.balances.pop(0)
        return self.balances[0]

    async def wait_for_transaction(self, tx_hash):
        self.waited.append(tx_hash)

    async def get_transaction_events(self, tx_hash):
        return self.events

    async def create_subaccount(self):
        self.submitted.append(("create_subaccount", {}))
        return "0xcreate"

    async def mint_usdc(self, chain_amount, restricted=False):
        self.submitted.append(("mint_usdc", {"chain_amount": chain_amount, "restricted": restricted}))
        return "0xmint"

    async def deposit_to_subaccount(self, subaccount, asset_metadata, chain_amount):
        self.submitted.append(("deposit_to_subaccount", {
            "subaccount": subaccount,
            "asset_metadata": asset_metadata,
            "chain_amount": chain_amount,
        }))
        return "0xdeposit"

    async def place_order(self, **kwargs):
        self.submitted.append(("place_order", kwargs))
        return "0xorder"


class FakeRest:
    """Replays subaccount listings in order; the last one repeats."""

    def __init__(self, markets=(), listings=()):
        self.markets = list(markets)
        self.listings = list(listings) or [ListingResponse(ok=True, status=200)]
        self.listing_calls = 0

    async def get_markets(self):
        return self.markets

    async def list_subaccounts(self, owner_address):
        assert owner_address == WALLET
        self.listing_calls += 1
        return self.listings[min(self.listing_calls, len(self.listings)) - 1]


def listed(*addresses):
    return ListingResponse(
        ok=True,
        status=200,
        records=[SubaccountRecord(subaccount_address=a, primary_account_address=WALLET) for a in addresses],
    )


@pytest.fixture
def poller(sleep):
    return ConfirmationPoller(max_attempts=3, base_delay=2.0, sleep=sleep, label="test")


class TestFundWallet:

    def test_skips_faucet_when_balance_is_enough(self, poller):
        chain = FakeChain(balances=[2 * OCTAS_PER_APT])

        with patch("DecibelOnboard.onboarding.fund_from_faucet", new=AsyncMock()) as faucet:
            result = asyncio.run(fund_wallet(chain, FAUCET_URL, poller))

        assert result.skipped
        assert result.confirmed
        faucet.assert_not_awaited()

    def test_funds_and_confirms_balance_increase(self, poller, sleep):
        chain = FakeChain(balances=[0, 0, 100 * OCTAS_PER_APT])

        with patch("DecibelOnboard.onboarding.fund_from_faucet", new=AsyncMock()) as faucet:
            result = asyncio.run(fund_wallet(chain, FAUCET_URL, poller))

        faucet.assert_awaited_once_with(FAUCET_URL, WALLET, DEFAULT_FAUCET_AMOUNT)
        assert not result.skipped
        assert result.confirmed
        assert result.balance_before == 0
        assert result.balance_after == 100 * OCTAS_PER_APT
        assert sleep.delays == [2.0, 4.0]

    def test_unreadable_balance_still_requests_funds(self, poller):
        chain = FakeChain()
        chain.get_apt_balance = AsyncMock(side_effect=[ConnectionError("fullnode unreachable"), 100 * OCTAS_PER_APT])

        with patch("DecibelOnboard.onboarding.fund_from_faucet", new=AsyncMock()) as faucet:
            result = asyncio.run(fund_wallet(chain, FAUCET_URL, poller))

        faucet.assert_awaited_once()
        assert result.balance_before == 0
        assert result.confirmed

    def test_unconfirmed_balance_is_not_an_error(self, poller):
        chain = FakeChain(balances=[0])

        with patch("DecibelOnboard.onboarding.fund_from_faucet", new=AsyncMock()):
            result = asyncio.run(fund_wallet(chain, FAUCET_URL, poller))

        assert not result.confirmed
        assert result.balance_after == 0


class TestCreateSubaccount:

    def test_resolves_and_persists_event_address(self, store_factory, sleep):
        store = store_factory()
        event = TransactionEvent(
            type=f"{PACKAGE}::dex_accounts::SubaccountCreatedEvent",
            data={"owner": WALLET, "subaccount": {"inner": SUBACCOUNT}},
        )
        chain = FakeChain(events=[event])
        rest = FakeRest(listings=[listed(), listed(SUBACCOUNT)])
        engine = ReconciliationEngine(max_attempts=5, base_delay=2.0, sleep=sleep)

        resolved = asyncio.run(create_and_resolve_subaccount(chain, rest, store, engine))

        assert resolved.value == SUBACCOUNT
        assert resolved.source == IdentifierSource.API_VERIFIED
        assert chain.waited == ["0xcreate"]
        assert store.settings.subaccount_address == SUBACCOUNT
        assert f"SUBACCOUNT_ADDRESS={SUBACCOUNT}" in store.env_path.read_text()

    def test_without_event_or_index_uses_calculated_address(self, store_factory, sleep):
        store = store_factory()
        engine = ReconciliationEngine(max_attempts=2, base_delay=1.0, sleep=sleep)

        resolved = asyncio.run(create_and_resolve_subaccount(FakeChain(), FakeRest(), store, engine))

        assert resolved.source == IdentifierSource.CALCULATED
        assert resolved.value == derive_object_address(WALLET, "decibel_dex_primary")
        assert store.settings.subaccount_address == resolved.value


class TestCollateral:

    def test_metadata_address_is_derived_from_package(self):
        assert collateral_metadata_address(PACKAGE) == derive_object_address(PACKAGE, "USDC")

    def test_mint_converts_to_six_decimals(self):
        chain = FakeChain()

        tx_hash = asyncio.run(mint_collateral(chain, 250))

        assert tx_hash == "0xmint"
        assert chain.submitted == [("mint_usdc", {"chain_amount": 250_000_000, "restricted": False})]
        assert chain.waited == ["0xmint"]

    def test_mint_rejects_non_positive_amount(self):
        with pytest.raises(InvalidInputError):
            asyncio.run(mint_collateral(FakeChain(), 0))

    def test_deposit(self, store_factory, poller):
        store = store_factory(env_lines=[f"SUBACCOUNT_ADDRESS={SUBACCOUNT}"])
        chain = FakeChain()
        rest = FakeRest(listings=[listed(SUBACCOUNT.upper().replace("0X", "0x"))])

        result = asyncio.run(deposit_collateral(chain, rest, store, 1000, poller))

        assert result.chain_amount == 1_000_000_000
        assert result.asset_metadata == derive_object_address(PACKAGE, "USDC")
        assert result.subaccount_record is not None
        name, args = chain.submitted[0]
        assert name == "deposit_to_subaccount"
        assert args["subaccount"] == SUBACCOUNT
        assert chain.waited == ["0xdeposit"]

    def test_deposit_listing_check_is_advisory(self, store_factory, poller):
        store = store_factory(env_lines=[f"SUBACCOUNT_ADDRESS={SUBACCOUNT}"])
        rest = FakeRest(listings=[ListingResponse(ok=False, status=500)])

        result = asyncio.run(deposit_collateral(FakeChain(), rest, store, 1000, poller))

        assert result.subaccount_record is None
        assert rest.listing_calls == 3

    def test_deposit_requires_subaccount(self, store_factory, poller):
        chain = FakeChain()

        with pytest.raises(ConfigurationError, match="SUBACCOUNT_ADDRESS"):
            asyncio.run(deposit_collateral(chain, FakeRest(), store_factory(), 1000, poller))

        assert chain.submitted == []


class TestPlaceOrder:

    def test_places_normalized_order(self, store_factory, market):
        store = store_factory(env_lines=[f"SUBACCOUNT_ADDRESS={SUBACCOUNT}"])
        chain = FakeChain()

        placed = asyncio.run(place_limit_order(
            chain, FakeRest(markets=[market]), store, price=50000, size=0.001, is_buy=True,
        ))

        name, args = chain.submitted[0]
        assert name == "place_order"
        assert args["subaccount"] == SUBACCOUNT
        assert args["market_address"] == market.market_addr
        assert args["chain_price"] == 50_000_000_000_000
        assert args["chain_size"] == 1_000_000
        assert args["time_in_force"] == TimeInForce.GTC
        assert args["client_order_id"] == placed.client_order_id
        assert placed.client_order_id.startswith("order-")
        assert placed.market is market
        assert chain.waited == ["0xorder"]

    def test_small_size_is_clamped(self, store_factory, market):
        store = store_factory(env_lines=[f"SUBACCOUNT_ADDRESS={SUBACCOUNT}"])

        placed = asyncio.run(place_limit_order(
            FakeChain(), FakeRest(markets=[market]), store, price=50000, size=0.00001, is_buy=False,
        ))

        assert placed.params.size_clamped
        assert placed.params.chain_size == market.min_size

    def test_clamp_warning_logged_once(self, store_factory, market, caplog):
        store = store_factory(env_lines=[f"SUBACCOUNT_ADDRESS={SUBACCOUNT}"])

        with caplog.at_level(logging.WARNING):
            asyncio.run(place_limit_order(
                FakeChain(), FakeRest(markets=[market]), store, price=50000, size=0.00001, is_buy=True,
            ))

        clamp_warnings = [r for r in caplog.records if "minimum" in r.getMessage()]
        assert len(clamp_warnings) == 1

    def test_non_finite_price_rejected_before_submission(self, store_factory, market):
        store = store_factory(env_lines=[f"SUBACCOUNT_ADDRESS={SUBACCOUNT}"])
        chain = FakeChain()

        with pytest.raises(InvalidInputError):
            asyncio.run(place_limit_order(chain, FakeRest(markets=[market]), store, float("nan"), 0.001, True))

        assert chain.submitted == []

    def test_unknown_market(self, store_factory, market):
        store = store_factory(env_lines=[f"SUBACCOUNT_ADDRESS={SUBACCOUNT}", "MARKET_NAME=DOGE-PERP"])

        with pytest.raises(ConfigurationError, match="BTC-PERP"):
            asyncio.run(place_limit_order(FakeChain(), FakeRest(markets=[market]), store, 1.0, 1.0, True))

    def test_zero_size_rejected(self, store_factory, market):
        store = store_factory(env_lines=[f"SUBACCOUNT_ADDRESS={SUBACCOUNT}"])

        with pytest.raises(InvalidInputError):
            asyncio.run(place_limit_order(FakeChain(), FakeRest(markets=[market]), store, 50000, 0, True))


def test_client_order_id_uses_milliseconds():
    with patch("DecibelOnboard.onboarding.time.time", return_value=1_700_000_000.5):
        assert new_client_order_id() == "order-1700000000500"
