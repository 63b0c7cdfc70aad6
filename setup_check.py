#!/usr/bin/env python3
"""Step 1: Validate configuration and check connectivity (chain, REST, WebSocket)."""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

import websockets

from DecibelOnboard.chain_client import DecibelChainClient, OCTAS_PER_APT
from DecibelOnboard.config_loader import SettingsStore
from DecibelOnboard.console import add_log_level_argument, configure_logging, rule
from DecibelOnboard.exceptions import ConfigurationError, DecibelError
from DecibelOnboard.market_info import select_display_market
from DecibelOnboard.rest_client import DecibelRestClient

LOW_BALANCE_APT = 0.01


async def check_websocket(url: str, timeout: float = 5.0) -> None:
    async with websockets.connect(url, open_timeout=timeout):
        pass


async def main(args) -> int:
    print("🚀 Decibel Setup & Connection Test\n")

    store = SettingsStore(env_path=args.env_file)
    try:
        store.validate()
    except ConfigurationError as e:
        print(f"🚨 {e}")
        print("\n💡 Please check your .env file and ensure all required values are set.\n")
        return 1

    settings = store.settings
    print("📋 Current Configuration:")
    print(rule(width=60))
    print(store.describe())
    print(rule(width=60) + "\n")

    async with DecibelChainClient(
        settings.fullnode_url, settings.api_wallet_private_key, settings.package_address
    ) as chain:
        print(f"✅ Using account: {chain.address}\n")
        try:
            balance = await chain.get_apt_balance() / OCTAS_PER_APT
            print(f"💰 APT Balance: {balance:.4f} APT")
            if balance < LOW_BALANCE_APT:
                print("⚠️ Low APT balance! Run: python fund_wallet.py\n")
            else:
                print("✅ Sufficient APT for gas fees\n")
        except Exception as e:
            print(f"❌ Error checking balance: {e}\n")

    async with DecibelRestClient(settings.rest_api_base_url, settings.api_bearer_token) as rest:
        try:
            markets = await rest.get_markets()
        except (DecibelError, OSError) as e:
            print(f"❌ Error fetching markets: {e}\n")
            markets = []

    if markets:
        print(f"✅ Found {len(markets)} markets:\n")
        print(rule())
        print("Market Name".ljust(15) + "Market Address".ljust(50) + "Min Size")
        print(rule())
        for market in markets[:10]:
            print(market.market_name.ljust(15) + market.market_addr[:45].ljust(50) + f"{market.min_size_human:.4f}")
        if len(markets) > 10:
            print(f"... and {len(markets) - 10} more")
        print(rule() + "\n")

        example = select_display_market(markets, settings.market_name)
        label = "Market Config" if example.market_name == settings.market_name else "Example Market Config"
        print(f"📊 {label} ({example.market_name}):")
        print(f"   tick_size={example.tick_size} lot_size={example.lot_size} min_size={example.min_size} "
              f"px_decimals={example.price_decimals} sz_decimals={example.size_decimals}\n")

    try:
        await check_websocket(settings.websocket_url)
        print("✅ WebSocket connection successful\n")
    except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as e:
        print(f"❌ WebSocket connection failed: {e}\n")

    print("🎉 Setup check complete! Next: python create_subaccount.py\n")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Check Decibel configuration and connectivity")
    parser.add_argument("--env-file", default=None, help="Path to the .env file")
    add_log_level_argument(parser)
    args = parser.parse_args()
    configure_logging(args.log_level)
    sys.exit(asyncio.run(main(args)))
