"""Aptos fullnode access: balances and Decibel entry function transactions."""
import logging
from typing import Any, List, Optional, Sequence

import msgspec
from aptos_sdk.account import Account
from aptos_sdk.async_client import ApiError, RestClient
from aptos_sdk.bcs import Serializer
from aptos_sdk.transactions import EntryFunction, TransactionArgument, TransactionPayload

from .address_deriver import normalize_address, parse_address
from .decibel_models import TimeInForce, TransactionEvent
from .exceptions import ConfigurationError, TransactionFailedError, TransactionTimeoutError

logger = logging.getLogger(__name__)

OCTAS_PER_APT = 100_000_000


def _option(value: Any, encoder) -> TransactionArgument:
    # Option<T> shares the BCS layout of a vector holding zero or one element
    values = [] if value is None else [value]
    return TransactionArgument(values, Serializer.sequence_serializer(encoder))


def _address(value: str) -> TransactionArgument:
    return TransactionArgument(parse_address(value), Serializer.struct)


class DecibelChainClient:
    """Signs and submits Decibel transactions with the Aptos SDK."""

    def __init__(self, fullnode_url: str, private_key: str, package_address: str):
        """Initialize the chain client.

        Args:
            fullnode_url: Aptos fullnode REST URL
            private_key: Hex Ed25519 private key of the API wallet
            package_address: Address of the Decibel Move package
        """
        if not private_key:
            raise ConfigurationError("API_WALLET_PRIVATE_KEY not set in environment variables")

        self.client = RestClient(fullnode_url)
        self.account = Account.load_key(private_key)
        self.package_address = normalize_address(package_address)

    @property
    def address(self) -> str:
        return normalize_address(str(self.account.address()))

    async def close(self) -> None:
        await self.client.close()

    async def __aenter__(self) -> "DecibelChainClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def get_apt_balance(self, address: Optional[str] = None) -> int:
        """Return the APT balance in octas (defaults to the API wallet)."""
        account_address = parse_address(address or self.address)
        try:
            return await self.client.account_balance(account_address)
        except ApiError as e:
            if e.status_code == 404:
                logger.info(f"Account {account_address} not found on chain yet, balance is 0")
                return 0
            raise

    async def submit_entry_function(
        self, module: str, function: str, args: Sequence[TransactionArgument]
    ) -> str:
        """Build, sign and submit ``<package>::<module>::<function>``.

        Returns:
            Transaction hash
        """
        payload = EntryFunction.natural(f"{self.package_address}::{module}", function, [], list(args))
        signed = await self.client.create_bcs_signed_transaction(self.account, TransactionPayload(payload))
        tx_hash = await self.client.submit_bcs_transaction(signed)
        logger.info(f"Submitted {module}::{function}: {tx_hash}")
        return tx_hash

    async def wait_for_transaction(self, tx_hash: str) -> None:
        """Wait until the transaction is committed.

        Raises:
            TransactionTimeoutError: if it is still pending when the SDK gives up
            TransactionFailedError: if it was committed unsuccessfully
        """
        logger.info(f"Waiting for transaction: {tx_hash}")
        try:
            await self.client.wait_for_transaction(tx_hash)
        except AssertionError as e:
            # The SDK asserts both on its wait deadline and on the success flag
            if "timed out" in str(e):
                logger.warning(f"Transaction {tx_hash} still pending, check it on the explorer")
                raise TransactionTimeoutError(tx_hash)
            raise TransactionFailedError(tx_hash, str(e))
        logger.info(f"Transaction confirmed: {tx_hash}")

    async def get_transaction_events(self, tx_hash: str) -> List[TransactionEvent]:
        """Return the events emitted by a committed transaction.

        A failed lookup yields no events; a transaction that did not succeed
        raises :class:`TransactionFailedError`.
        """
        try:
            transaction = await self.client.transaction_by_hash(tx_hash)
        except ApiError as e:
            logger.warning(f"Could not fetch events of {tx_hash}: {e}")
            return []

        if not transaction.get("success", False):
            raise TransactionFailedError(tx_hash, transaction.get("vm_status", ""))

        return msgspec.convert(transaction.get("events", []), List[TransactionEvent], strict=False)

    async def create_subaccount(self) -> str:
        return await self.submit_entry_function("dex_accounts", "create_new_subaccount", [])

    async def mint_usdc(self, chain_amount: int, restricted: bool = False) -> str:
        """Mint testnet USDC to the API wallet.

        ``restricted`` uses ``usdc::restricted_mint``, capped per account;
        otherwise the unrestricted staging ``usdc::mint`` is called.
        """
        if restricted:
            return await self.submit_entry_function(
                "usdc", "restricted_mint", [TransactionArgument(chain_amount, Serializer.u64)]
            )
        return await self.submit_entry_function(
            "usdc", "mint",
            [_address(self.address), TransactionArgument(chain_amount, Serializer.u64)],
        )

    async def deposit_to_subaccount(self, subaccount: str, asset_metadata: str, chain_amount: int) -> str:
        return await self.submit_entry_function(
            "dex_accounts", "deposit_to_subaccount_at",
            [
                _address(subaccount),
                _address(asset_metadata),
                TransactionArgument(chain_amount, Serializer.u64),
            ],
        )

    async def place_order(
        self,
        subaccount: str,
        market_address: str,
        chain_price: int,
        chain_size: int,
        is_buy: bool,
        client_order_id: str,
        time_in_force: TimeInForce = TimeInForce.GTC,
        reduce_only: bool = False,
    ) -> str:
        """Submit ``place_order_to_subaccount``. Prices and sizes are chain units."""
        return await self.submit_entry_function(
            "dex_accounts", "place_order_to_subaccount",
            [
                _address(subaccount),
                _address(market_address),
                TransactionArgument(chain_price, Serializer.u64),
                TransactionArgument(chain_size, Serializer.u64),
                TransactionArgument(is_buy, Serializer.bool),
                TransactionArgument(int(time_in_force), Serializer.u8),
                TransactionArgument(reduce_only, Serializer.bool),
                _option(client_order_id, Serializer.str),
                _option(None, Serializer.u64),  # stop_price
                _option(None, Serializer.u64),  # tp_trigger_price
                _option(None, Serializer.u64),  # tp_limit_price
                _option(None, Serializer.u64),  # sl_trigger_price
                _option(None, Serializer.u64),  # sl_limit_price
                _option(None, Serializer.struct),  # builder_addr
                _option(None, Serializer.u64),  # builder_fee
            ],
        )
