#!/usr/bin/env python3
"""Step 2: Create a trading subaccount and record its address in .env."""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from DecibelOnboard.chain_client import DecibelChainClient
from DecibelOnboard.config_loader import SettingsStore
from DecibelOnboard.console import add_log_level_argument, configure_logging, describe_source, rule
from DecibelOnboard.exceptions import DecibelError
from DecibelOnboard.onboarding import create_and_resolve_subaccount
from DecibelOnboard.reconciliation import ReconciliationEngine
from DecibelOnboard.rest_client import DecibelRestClient


async def main(args) -> int:
    print("🏦 Creating Trading Subaccount\n")

    store = SettingsStore(env_path=args.env_file)
    settings = store.settings

    try:
        store.validate()
        engine = ReconciliationEngine(
            max_attempts=settings.poll_max_attempts,
            base_delay=settings.poll_base_delay,
        )
        async with DecibelChainClient(
            settings.fullnode_url, settings.api_wallet_private_key, settings.package_address
        ) as chain, DecibelRestClient(settings.rest_api_base_url, settings.api_bearer_token) as rest:
            print(f"Account: {chain.address}\n")
            resolved = await create_and_resolve_subaccount(chain, rest, store, engine)
    except DecibelError as e:
        print(f"❌ Error creating subaccount: {e}")
        return 1

    print(rule())
    print("🎉 Subaccount Creation Complete!")
    print(rule())
    print(f"Subaccount Address: {resolved.value}")
    print(f"Source:             {resolved.source.value} ({describe_source(resolved.source)})")
    print(f"Saved to:           {store.env_path}")
    print(rule() + "\n")

    if not resolved.is_verified:
        print("⚠️ Check the address before relying on it:")
        print(f'   curl "{settings.rest_api_base_url}/api/v1/subaccounts?owner={chain.address}"\n')

    print("Next steps:")
    print("  1. python mint_usdc.py       - Mint testnet USDC")
    print("  2. python deposit_usdc.py    - Deposit USDC to subaccount")
    print("  3. python place_order.py     - Place your first order\n")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a Decibel trading subaccount")
    parser.add_argument("--env-file", default=None, help="Path to the .env file")
    add_log_level_argument(parser)
    args = parser.parse_args()
    configure_logging(args.log_level)
    sys.exit(asyncio.run(main(args)))
