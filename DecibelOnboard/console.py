"""Console helpers shared by the step scripts."""
import argparse
import logging

from .decibel_models import IdentifierSource, MarketSpec, NormalizedOrderParams, OrderStatusResponse

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def add_log_level_argument(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--log-level",
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set the logging level (default: INFO)"
    )


def configure_logging(level: str) -> None:
    numeric_level = getattr(logging, level.upper())
    logging.basicConfig(level=numeric_level, format=LOG_FORMAT, force=True)
    # Keep HTTP and websocket internals quiet unless debugging
    for name in ("aiohttp", "websockets", "httpx", "asyncio"):
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))


def rule(char: str = "━", width: int = 80) -> str:
    return char * width


def print_order_params(params: NormalizedOrderParams, market: MarketSpec) -> None:
    print("\n📊 Order Parameters:")
    print(rule(width=60))
    print(f"Market:          {market.market_name}")
    print(f"Price (human):   ${params.human_price:,}")
    print(f"Price (chain):   {params.chain_price}")
    print(f"Size (human):    {params.human_size}")
    print(f"Size (chain):    {params.chain_size}")
    print(f"Tick size:       {market.tick_size}")
    print(f"Lot size:        {market.lot_size}")
    print(rule(width=60) + "\n")


def describe_source(source: IdentifierSource) -> str:
    """One-line advice on how far an identifier can be trusted."""
    if source == IdentifierSource.API_VERIFIED:
        return "confirmed by the indexer"
    if source == IdentifierSource.EVENT_UNVERIFIED:
        return "taken from the transaction event; the indexer has not listed it yet"
    if source == IdentifierSource.EVENT_EXTRACTED:
        return "taken from the transaction event; the indexer could not be reached"
    return "calculated locally; verify it before depositing large amounts"


def print_order_status(status: OrderStatusResponse) -> None:
    print(f"Status:           {status.status}")
    print(f"Details:          {status.details or '(none)'}\n")

    order = status.order
    if order is None:
        return

    direction = order.order_direction or ("Buy" if order.is_buy else "Sell")
    price = f"${order.price:,}" if order.price is not None else "N/A"
    print("Order Details:")
    print(f"  Market:          {order.market}")
    print(f"  Client Order ID: {order.client_order_id}")
    print(f"  Order ID:        {order.order_id}")
    print(f"  Type:            {order.order_type}")
    print(f"  Direction:       {direction}")
    print(f"  Price:           {price}")
    print(f"  Original Size:   {order.orig_size}")
    print(f"  Remaining Size:  {order.remaining_size}")
    print(f"  Filled Size:     {order.filled_size}")
    print(f"  Reduce Only:     {order.is_reduce_only}")
    if order.transaction_version is not None:
        print(f"  TX Version:      {order.transaction_version}")
