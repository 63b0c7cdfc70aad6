"""Testnet faucet access for gas funding."""
import asyncio
import logging
from typing import Any, Optional

import aiohttp

from .exceptions import FaucetError

logger = logging.getLogger(__name__)

DEFAULT_FAUCET_AMOUNT = 10_000_000_000  # 100 APT in octas


async def fund_from_faucet(
    faucet_url: str,
    address: str,
    amount: int = DEFAULT_FAUCET_AMOUNT,
    session: Optional[aiohttp.ClientSession] = None,
) -> Any:
    """Request ``amount`` octas for ``address`` from the faucet.

    Args:
        faucet_url: Faucet base URL
        address: Address to fund, with or without the 0x prefix
        amount: Amount in octas
        session: Optional session to reuse

    Returns:
        The faucet's JSON answer (usually a list of transaction hashes)

    Raises:
        FaucetError: if the faucet answers with a non-OK status or cannot be reached
    """
    clean_address = address[2:] if address.startswith("0x") else address
    url = f"{faucet_url.rstrip('/')}/mint"
    params = {"amount": str(amount), "address": clean_address}

    logger.info(f"Requesting {amount} octas ({amount / 100_000_000:g} APT) from {faucet_url}")

    own_session = session is None
    session = session or aiohttp.ClientSession()
    try:
        async with session.post(url, params=params, data=b"") as response:
            if response.status >= 400:
                error_text = await response.text()
                raise FaucetError(f"Faucet request failed: {response.status} {response.reason}\n{error_text}")
            try:
                result = await response.json(content_type=None)
            except ValueError:
                result = await response.text()
    except (aiohttp.ClientError, asyncio.TimeoutError) as e:
        raise FaucetError(f"Faucet request to {url} failed: {e}")
    finally:
        if own_session:
            await session.close()

    logger.info("Faucet request successful")
    return result
