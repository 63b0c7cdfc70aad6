#!/usr/bin/env python3
"""Step 4: Place a limit order on the trading subaccount."""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from DecibelOnboard.chain_client import DecibelChainClient
from DecibelOnboard.config_loader import SettingsStore
from DecibelOnboard.console import add_log_level_argument, configure_logging, print_order_params, rule
from DecibelOnboard.decibel_models import TimeInForce
from DecibelOnboard.exceptions import DecibelError
from DecibelOnboard.onboarding import place_limit_order
from DecibelOnboard.rest_client import DecibelRestClient

# Example order; a real bot would take these from its strategy
EXAMPLE_PRICE = 50000
EXAMPLE_SIZE = 0.001


async def main(args) -> int:
    print("📊 Placing Your First Order\n")

    store = SettingsStore(env_path=args.env_file)
    settings = store.settings

    try:
        store.validate()
        async with DecibelChainClient(
            settings.fullnode_url, settings.api_wallet_private_key, settings.package_address
        ) as chain, DecibelRestClient(settings.rest_api_base_url, settings.api_bearer_token) as rest:
            placed = await place_limit_order(
                chain, rest, store,
                price=args.price,
                size=args.size,
                is_buy=not args.sell,
                market_name=args.market,
                time_in_force=TimeInForce[args.tif],
            )
    except DecibelError as e:
        print(f"❌ Error placing order: {e}")
        print("\nPossible causes:")
        print("  1. Insufficient USDC collateral in subaccount")
        print("  2. Invalid price/size (check market minimums)")
        print("  3. Insufficient APT for gas fees")
        print("  4. Market is not active\n")
        return 1

    print(rule())
    print("🎉 Order Placement Complete!")
    print(rule())
    print(f"Market:           {placed.market.market_name}")
    print(f"Side:             {'BUY' if placed.is_buy else 'SELL'}")
    print(f"Price:            ${placed.params.human_price:,}")
    print(f"Size:             {placed.params.human_size}")
    print(f"Client Order ID:  {placed.client_order_id}")
    print(f"Transaction:      {placed.tx_hash}")
    print(rule() + "\n")
    print_order_params(placed.params, placed.market)
    print("\nTo query this order:")
    print(f"  python query_order.py {placed.client_order_id} --market-address {placed.market.market_addr}\n")
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Place a limit order on Decibel")
    parser.add_argument("--price", type=float, default=EXAMPLE_PRICE, help="Limit price")
    parser.add_argument("--size", type=float, default=EXAMPLE_SIZE, help="Order size")
    parser.add_argument("--sell", action="store_true", help="Sell instead of buy")
    parser.add_argument("--market", default=None, help="Market name (default: MARKET_NAME)")
    parser.add_argument("--tif", default="GTC", choices=[t.name for t in TimeInForce], help="Time in force")
    parser.add_argument("--env-file", default=None, help="Path to the .env file")
    add_log_level_argument(parser)
    args = parser.parse_args()
    configure_logging(args.log_level)
    sys.exit(asyncio.run(main(args)))
