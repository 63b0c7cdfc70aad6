#!/usr/bin/env python3
"""Step 2.5: Mint testnet USDC collateral to the API wallet."""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from DecibelOnboard.chain_client import DecibelChainClient
from DecibelOnboard.config_loader import SettingsStore
from DecibelOnboard.console import add_log_level_argument, configure_logging, rule
from DecibelOnboard.exceptions import DecibelError
from DecibelOnboard.onboarding import mint_collateral
from DecibelOnboard.quantity_normalizer import USDC_DECIMALS, usdc_to_chain_units


async def main(args) -> int:
    print("💰 Minting Testnet USDC\n")

    store = SettingsStore(env_path=args.env_file)
    settings = store.settings

    print(f"Amount (human):    {args.amount} USDC")
    print(f"Amount (chain):    {usdc_to_chain_units(args.amount)} (with {USDC_DECIMALS} decimals)")
    print(f"Mint type:         {'restricted (250 USDC cap)' if args.restricted else 'unrestricted (staging)'}\n")

    try:
        store.validate()
        async with DecibelChainClient(
            settings.fullnode_url, settings.api_wallet_private_key, settings.package_address
        ) as chain:
            tx_hash = await mint_collateral(chain, args.amount, restricted=args.restricted)
    except DecibelError as e:
        print(f"❌ Error minting USDC: {e}")
        return 1

    print(rule())
    print("🎉 USDC Minting Complete!")
    print(rule())
    print(f"Transaction: {tx_hash}")
    print("This USDC is trading collateral (NOT the same as APT gas fees).\n")
    print("Next step: python deposit_usdc.py\n")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Mint testnet USDC")
    parser.add_argument("--amount", type=float, default=1000.0, help="USDC amount")
    parser.add_argument("--restricted", action="store_true", help="Use the capped restricted_mint")
    parser.add_argument("--env-file", default=None, help="Path to the .env file")
    add_log_level_argument(parser)
    args = parser.parse_args()
    configure_logging(args.log_level)
    sys.exit(asyncio.run(main(args)))
