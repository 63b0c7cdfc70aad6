#!/usr/bin/env python3
"""Step 3: Deposit USDC from the API wallet into the trading subaccount."""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from DecibelOnboard.chain_client import DecibelChainClient
from DecibelOnboard.confirmation_poller import ConfirmationPoller
from DecibelOnboard.config_loader import SettingsStore
from DecibelOnboard.console import add_log_level_argument, configure_logging, rule
from DecibelOnboard.exceptions import ConfigurationError, DecibelError
from DecibelOnboard.onboarding import deposit_collateral
from DecibelOnboard.rest_client import DecibelRestClient


async def main(args) -> int:
    print("💵 Depositing USDC to Subaccount\n")

    store = SettingsStore(env_path=args.env_file)
    settings = store.settings

    try:
        store.validate()
        store.require("subaccount_address")
    except ConfigurationError as e:
        print(f"❌ {e}")
        print("\nYou must first run: python create_subaccount.py\n")
        return 1

    try:
        poller = ConfirmationPoller(
            max_attempts=settings.poll_max_attempts,
            base_delay=settings.poll_base_delay,
            label="Subaccount check",
        )
        async with DecibelChainClient(
            settings.fullnode_url, settings.api_wallet_private_key, settings.package_address
        ) as chain, DecibelRestClient(settings.rest_api_base_url, settings.api_bearer_token) as rest:
            print(f"Account:     {chain.address}")
            print(f"Subaccount:  {settings.subaccount_address}\n")
            result = await deposit_collateral(chain, rest, store, args.amount, poller)
    except DecibelError as e:
        print(f"❌ Error depositing USDC: {e}")
        print("\nPossible causes:")
        print("  1. No USDC in your account (run: python mint_usdc.py)")
        print("  2. Insufficient APT for gas fees")
        print("  3. Invalid subaccount address\n")
        return 1

    print(rule())
    print("🎉 USDC Deposit Complete!")
    print(rule())
    print(f"Amount (chain):   {result.chain_amount}")
    print(f"Asset metadata:   {result.asset_metadata}")
    print(f"Transaction:      {result.tx_hash}")
    if result.subaccount_record is not None:
        record = result.subaccount_record
        print(f"Indexed:          active={record.is_active} primary={record.is_primary} "
              f"label={record.custom_label or '(none)'}")
    print("\nNext step: python place_order.py\n")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Deposit USDC collateral to the subaccount")
    parser.add_argument("--amount", type=float, default=200.0, help="USDC amount")
    parser.add_argument("--env-file", default=None, help="Path to the .env file")
    add_log_level_argument(parser)
    args = parser.parse_args()
    configure_logging(args.log_level)
    sys.exit(asyncio.run(main(args)))
