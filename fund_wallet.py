#!/usr/bin/env python3
"""Step 0: Fund the API wallet with APT (gas) from the Netna faucet."""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from DecibelOnboard.chain_client import DecibelChainClient, OCTAS_PER_APT
from DecibelOnboard.confirmation_poller import ConfirmationPoller
from DecibelOnboard.config_loader import SettingsStore
from DecibelOnboard.console import add_log_level_argument, configure_logging, rule
from DecibelOnboard.exceptions import DecibelError
from DecibelOnboard.faucet import DEFAULT_FAUCET_AMOUNT
from DecibelOnboard.onboarding import fund_wallet


async def main(args) -> int:
    print("💰 Funding Wallet from Netna Faucet\n")

    store = SettingsStore(env_path=args.env_file)
    settings = store.settings

    try:
        store.validate()
        async with DecibelChainClient(
            settings.fullnode_url, settings.api_wallet_private_key, settings.package_address
        ) as chain:
            print(f"Account: {chain.address}\n")
            poller = ConfirmationPoller(
                max_attempts=settings.poll_max_attempts,
                base_delay=settings.poll_base_delay,
                label="Balance check",
            )
            result = await fund_wallet(chain, settings.faucet_url, poller, amount=args.amount)
    except DecibelError as e:
        print(f"❌ Error funding from faucet: {e}")
        print("\nYou can try manual funding:")
        print(f"curl -X POST '{settings.faucet_url}/mint?amount={args.amount}&address=<address without 0x>'\n")
        return 1

    if result.skipped:
        print(f"ℹ️ Balance {result.balance_before / OCTAS_PER_APT:.4f} APT is sufficient, skipped faucet.\n")
        return 0

    balance = (result.balance_after or 0) / OCTAS_PER_APT
    if result.confirmed:
        print(rule())
        print("🎉 Wallet Funded Successfully!")
        print(rule())
        print(f"You now have {balance:.4f} APT for transaction fees.\n")
        print("Next steps:")
        print("  1. python create_subaccount.py  - Create trading subaccount")
        print("  2. python mint_usdc.py          - Mint USDC collateral")
        print("  3. python deposit_usdc.py       - Deposit to subaccount\n")
    else:
        print(f"⚠️ Balance check: {balance:.4f} APT (may need more time)")
        print("   The faucet request was accepted; check again in a few seconds.\n")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Fund the API wallet from the faucet")
    parser.add_argument("--amount", type=int, default=DEFAULT_FAUCET_AMOUNT, help="Amount in octas")
    parser.add_argument("--env-file", default=None, help="Path to the .env file")
    add_log_level_argument(parser)
    args = parser.parse_args()
    configure_logging(args.log_level)
    sys.exit(asyncio.run(main(args)))
