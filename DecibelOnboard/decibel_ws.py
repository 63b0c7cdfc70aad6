"""WebSocket client for Decibel order updates using websockets library."""
import asyncio
import json
import logging
from typing import Any, Callable, Dict, Optional, Set

import msgspec
import websockets

from .decibel_models import OrderStatusResponse

logger = logging.getLogger(__name__)

ORDER_UPDATES_PREFIX = "order_updates:"


def order_updates_topic(user_address: str) -> str:
    return f"{ORDER_UPDATES_PREFIX}{user_address}"


class DecibelWebSocketClient:
    """Receive-only WebSocket client for Decibel topics."""

    def __init__(self, url: str, max_reconnect_attempts: int = 10):
        """Initialize WebSocket client.

        Args:
            url: WebSocket URL (e.g., wss://api.netna.aptoslabs.com/decibel/ws)
            max_reconnect_attempts: Reconnects before giving up
        """
        self.url = url
        self.ws = None
        self.running = False

        # Callbacks
        self.on_subscription: Optional[Callable[[bool, str], None]] = None
        self.on_order_update: Optional[Callable[[str, OrderStatusResponse], None]] = None
        self.on_message: Optional[Callable[[Dict[str, Any]], None]] = None
        self.on_error: Optional[Callable[[Exception], None]] = None

        self.topics: Set[str] = set()

        # Reconnection settings
        self.reconnect_attempts = 0
        self.max_reconnect_attempts = max_reconnect_attempts
        self.reconnect_delay = 1.0
        self.max_reconnect_delay = 60.0

    def subscribe(self, topic: str) -> None:
        """Register a topic; it is (re)sent on every connection."""
        self.topics.add(topic)

    async def run(self) -> None:
        """Connect and process messages until stopped or out of reconnects."""
        self.running = True
        while self.running:
            try:
                logger.info(f"Connecting to Decibel WebSocket: {self.url}")
                async with websockets.connect(
                    self.url,
                    ping_interval=20,
                    ping_timeout=10,
                    close_timeout=10,
                ) as ws:
                    self.ws = ws
                    self.reconnect_attempts = 0
                    await self._send_subscriptions()
                    async for message in ws:
                        if not self.running:
                            break
                        await self._dispatch_raw(message)
            except websockets.exceptions.ConnectionClosed as e:
                logger.info(f"WebSocket connection closed: {e}")
            except (OSError, asyncio.TimeoutError, websockets.exceptions.WebSocketException) as e:
                logger.error(f"WebSocket error: {e}")
                if self.on_error:
                    self.on_error(e)
            finally:
                self.ws = None

            if not self.running or not await self._wait_before_reconnect():
                break

        self.running = False

    async def stop(self) -> None:
        self.running = False
        if self.ws is not None:
            await self.ws.close()

    async def _send_subscriptions(self) -> None:
        for topic in sorted(self.topics):
            await self.ws.send(json.dumps({"Subscribe": {"topic": topic}}))
            logger.debug(f"Sent subscription: {topic}")

    async def _wait_before_reconnect(self) -> bool:
        self.reconnect_attempts += 1
        if self.reconnect_attempts > self.max_reconnect_attempts:
            logger.error("Max reconnection attempts reached")
            return False

        delay = min(
            self.reconnect_delay * (2 ** (self.reconnect_attempts - 1)),
            self.max_reconnect_delay
        )
        logger.info(f"Reconnecting in {delay} seconds (attempt {self.reconnect_attempts})")
        await asyncio.sleep(delay)
        return True

    async def _dispatch_raw(self, message) -> None:
        try:
            data = json.loads(message)
        except json.JSONDecodeError as e:
            logger.error(f"Failed to parse WebSocket message: {e}")
            return
        self.handle_message(data)

    def handle_message(self, data: Dict[str, Any]) -> None:
        """Route one decoded message to the matching callback."""
        if "success" in data:
            success = bool(data.get("success"))
            text = data.get("message", "")
            if success:
                logger.info(f"Subscription confirmed: {text}")
            else:
                logger.error(f"Subscription failed: {text}")
            if self.on_subscription:
                self.on_subscription(success, text)
            return

        topic = data.get("topic", "")
        if isinstance(topic, str) and topic.startswith(ORDER_UPDATES_PREFIX) and "order" in data:
            try:
                update = msgspec.convert(data["order"], OrderStatusResponse, strict=False)
            except msgspec.ValidationError as e:
                logger.error(f"Malformed order update on {topic}: {e}")
                if self.on_message:
                    self.on_message(data)
                return
            if self.on_order_update:
                self.on_order_update(topic, update)
            return

        logger.debug(f"Unhandled message: {data}")
        if self.on_message:
            self.on_message(data)
