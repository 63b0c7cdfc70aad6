#!/usr/bin/env python3
"""Step 6: Watch live order updates over WebSocket. Press Ctrl+C to stop."""
import argparse
import asyncio
import json
import sys
from datetime import datetime, timezone
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from DecibelOnboard.config_loader import SettingsStore
from DecibelOnboard.console import add_log_level_argument, configure_logging, print_order_status
from DecibelOnboard.decibel_ws import DecibelWebSocketClient, order_updates_topic


def on_subscription(success: bool, message: str) -> None:
    if success:
        print(f"✅ Subscription confirmed: {message}")
        print("👂 Listening for order updates... (Ctrl+C to stop)\n")
    else:
        print(f"❌ Subscription failed: {message}")


def on_order_update(topic: str, update) -> None:
    print("\n" + "═" * 80)
    print("🔔 ORDER UPDATE RECEIVED")
    print("═" * 80)
    print(f"Time: {datetime.now(timezone.utc).isoformat()}\n")
    print_order_status(update)
    print("═" * 80 + "\n")


def on_message(message) -> None:
    print("📨 Message received:")
    print(json.dumps(message, indent=2))


async def main(args) -> int:
    print("📡 Connecting to WebSocket for Live Updates\n")

    settings = SettingsStore(env_path=args.env_file).settings
    user_address = args.user_address or settings.api_wallet_address
    if not user_address:
        print("❌ API_WALLET_ADDRESS not set (or pass --user-address)\n")
        return 1

    topic = order_updates_topic(user_address)
    print(f"WebSocket URL: {settings.websocket_url}")
    print(f"Topic:         {topic}\n")

    client = DecibelWebSocketClient(settings.websocket_url)
    client.on_subscription = on_subscription
    client.on_order_update = on_order_update
    client.on_message = on_message
    client.subscribe(topic)

    try:
        await client.run()
    finally:
        await client.stop()
    return 0


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Stream Decibel order updates")
    parser.add_argument("--user-address", default=None, help="User address (default: API_WALLET_ADDRESS)")
    parser.add_argument("--env-file", default=None, help="Path to the .env file")
    add_log_level_argument(parser)
    args = parser.parse_args()
    configure_logging(args.log_level)
    try:
        sys.exit(asyncio.run(main(args)))
    except KeyboardInterrupt:
        print("\n🔌 WebSocket closed")
