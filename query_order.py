#!/usr/bin/env python3
"""Step 6: Query order status by client order id."""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from DecibelOnboard.config_loader import SettingsStore
from DecibelOnboard.console import add_log_level_argument, configure_logging, print_order_status, rule
from DecibelOnboard.exceptions import ApiRequestError, DecibelError
from DecibelOnboard.market_info import find_market
from DecibelOnboard.rest_client import DecibelRestClient

STATUS_HINTS = {
    "Open": "📋 Order is OPEN and waiting to be filled",
    "Filled": "✅ Order is FILLED! Your trade has been executed",
    "PartiallyFilled": "⏳ Order is PARTIALLY FILLED, the rest is still open",
    "Cancelled": "❌ Order was CANCELLED",
}


async def main(args) -> int:
    print("🔍 Querying Order Status\n")

    store = SettingsStore(env_path=args.env_file)
    settings = store.settings
    user_address = args.user_address or settings.api_wallet_address
    if not user_address:
        print("❌ API_WALLET_ADDRESS not set (or pass --user-address)\n")
        return 1

    print(f"Client Order ID: {args.client_order_id}")
    print(f"User Address:    {user_address}\n")

    try:
        async with DecibelRestClient(settings.rest_api_base_url, settings.api_bearer_token) as rest:
            market_address = args.market_address or settings.market_address
            if not market_address:
                markets = await rest.get_markets()
                market = find_market(markets, settings.market_name)
                market_address = market.market_addr
                print(f"Using market: {market.market_name} ({market_address})\n")

            status = await rest.get_order(market_address, user_address, args.client_order_id)
    except ApiRequestError as e:
        print(f"❌ {e}")
        if e.status == 404:
            print("\nOrder not found. Possible reasons:")
            print("  1. Wrong client_order_id or market address")
            print("  2. Order hasn't been indexed yet (wait a few seconds)")
            print("  3. User address doesn't match\n")
        return 1
    except DecibelError as e:
        print(f"❌ Error querying order: {e}")
        return 1

    print(rule())
    print("📊 Order Information")
    print(rule())
    print_order_status(status)
    print(rule() + "\n")
    if status.status in STATUS_HINTS:
        print(STATUS_HINTS[status.status] + "\n")
    print("💡 Tip: python watch_order_updates.py streams updates in real time\n")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Query a Decibel order by client order id")
    parser.add_argument("client_order_id", help="Client order id printed by place_order.py")
    parser.add_argument("--market-address", default=None, help="Market address (default: MARKET_ADDRESS)")
    parser.add_argument("--user-address", default=None, help="User address (default: API_WALLET_ADDRESS)")
    parser.add_argument("--env-file", default=None, help="Path to the .env file")
    add_log_level_argument(parser)
    args = parser.parse_args()
    configure_logging(args.log_level)
    sys.exit(asyncio.run(main(args)))
